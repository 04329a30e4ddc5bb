# erp_pos/api/routers/carts.py
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from erp_pos.api.deps import (
    get_lock_service,
    get_notifier,
    get_session_store,
    require_permission,
    to_http,
)
from erp_pos.data.database import get_db
from erp_pos.domain.exceptions import PosException
from erp_pos.domain.schemas import (
    CartOut,
    CheckoutIn,
    CheckoutStateOut,
    CurrentUser,
    ItemIn,
    QuantityIn,
    SaleOut,
    ScanIn,
    SessionOut,
)
from erp_pos.services.cart_service import CartService
from erp_pos.services.checkout_service import CheckoutService
from erp_pos.services.lock_service import LockService
from erp_pos.services.notification_service import NotificationService
from erp_pos.services.session_store import CartSessionStore

router = APIRouter(prefix="/pos/sessions", tags=["pos"])

can_sell = require_permission("sales", "create")


def get_cart_service(
    db: Session = Depends(get_db),
    store: CartSessionStore = Depends(get_session_store),
) -> CartService:
    return CartService(db=db, store=store)


def get_checkout_service(
    db: Session = Depends(get_db),
    store: CartSessionStore = Depends(get_session_store),
    lock_service: LockService = Depends(get_lock_service),
    notifier: NotificationService = Depends(get_notifier),
) -> CheckoutService:
    return CheckoutService(db=db, store=store, lock_service=lock_service, notifier=notifier)


@router.post("", response_model=SessionOut, status_code=201)
def open_session(
    user: CurrentUser = Depends(can_sell),
    svc: CartService = Depends(get_cart_service),
):
    session = svc.open_session(user.id, user.company_id)
    return {
        "session_id": session.session_id,
        "user_id": session.user_id,
        "company_id": session.company_id,
        "expires_at": session.expires_at,
    }


@router.get("/{session_id}/cart", response_model=CartOut)
def get_cart(
    session_id: str,
    user: CurrentUser = Depends(can_sell),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.get_cart(session_id, user.id)
    except PosException as e:
        raise to_http(e)


@router.post("/{session_id}/cart/items", response_model=CartOut)
def add_item(
    session_id: str,
    payload: ItemIn,
    user: CurrentUser = Depends(can_sell),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.add_product(session_id, user.id, payload.product_id)
    except PosException as e:
        raise to_http(e)


@router.post("/{session_id}/cart/scan", response_model=CartOut)
def scan_item(
    session_id: str,
    payload: ScanIn,
    user: CurrentUser = Depends(can_sell),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.add_by_barcode(session_id, user.id, payload.code)
    except PosException as e:
        raise to_http(e)


@router.put("/{session_id}/cart/items/{product_id}", response_model=CartOut)
def set_quantity(
    session_id: str,
    product_id: UUID,
    payload: QuantityIn,
    user: CurrentUser = Depends(can_sell),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.set_quantity(session_id, user.id, product_id, payload.quantity)
    except PosException as e:
        raise to_http(e)


@router.delete("/{session_id}/cart/items/{product_id}", response_model=CartOut)
def remove_item(
    session_id: str,
    product_id: UUID,
    user: CurrentUser = Depends(can_sell),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.remove_product(session_id, user.id, product_id)
    except PosException as e:
        raise to_http(e)


@router.delete("/{session_id}/cart", response_model=CartOut)
def clear_cart(
    session_id: str,
    user: CurrentUser = Depends(can_sell),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.clear_cart(session_id, user.id)
    except PosException as e:
        raise to_http(e)


@router.post("/{session_id}/checkout", response_model=CheckoutStateOut)
def open_checkout(
    session_id: str,
    user: CurrentUser = Depends(can_sell),
    svc: CheckoutService = Depends(get_checkout_service),
):
    try:
        return svc.open_checkout(session_id, user.id)
    except PosException as e:
        raise to_http(e)


@router.delete("/{session_id}/checkout", response_model=CheckoutStateOut)
def cancel_checkout(
    session_id: str,
    user: CurrentUser = Depends(can_sell),
    svc: CheckoutService = Depends(get_checkout_service),
):
    try:
        return svc.cancel_checkout(session_id, user.id)
    except PosException as e:
        raise to_http(e)


@router.post("/{session_id}/checkout/submit", response_model=SaleOut, status_code=201)
def submit_checkout(
    session_id: str,
    payload: CheckoutIn,
    user: CurrentUser = Depends(can_sell),
    svc: CheckoutService = Depends(get_checkout_service),
):
    """
    Commits the cart as a sale.
    The sale-completed notification is sent asynchronously.
    """
    try:
        return svc.submit(session_id, user, payload)
    except PosException as e:
        raise to_http(e)
