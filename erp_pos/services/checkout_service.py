# erp_pos/services/checkout_service.py
import time
from decimal import Decimal
from typing import Any, Callable, Dict, List
from uuid import UUID

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from erp_pos.data.models.sale import SaleModel
from erp_pos.data.models.sale_item import SaleItemModel
from erp_pos.domain.cart import CartLine, CartTotals, compute_totals
from erp_pos.domain.exceptions import (
    CheckoutInProgressError,
    CheckoutStateError,
    CheckoutTimeoutError,
    EmptyCartError,
    PersistenceError,
    PosException,
    StockConflictError,
)
from erp_pos.domain.schemas import CheckoutIn, CurrentUser
from erp_pos.repos.product_repo import ProductRepo
from erp_pos.repos.sale_repo import SaleRepo
from erp_pos.repos.sequence_repo import SequenceRepo
from erp_pos.services.lock_service import LockService
from erp_pos.services.notification_service import NotificationService
from erp_pos.services.session_store import CartSession, CartSessionStore, CheckoutState
from erp_pos.utils.settings import (
    CHECKOUT_TIMEOUT_SECONDS,
    CURRENCY_CODE,
    STOCK_DECREMENT_ON_SALE,
    TAX_RATE,
)
from erp_pos.utils.logging import get_logger

logger = get_logger(__name__)

#a failed submit can be retried without reopening the form
_SUBMITTABLE = (CheckoutState.COLLECTING_BUYER_INFO, CheckoutState.FAILED)


class CheckoutService:
    """
    Turns a session cart into a persisted sale.

    States: idle -> collecting_buyer_info -> submitting -> committed | failed
    failed keeps the cart and last_error; the buyer form stays open, so the
    cashier can submit again straight away or reopen the checkout.

    Submit steps:
    1. totals from a snapshot of the cart
    2. stock pre-check (no writes)
    3. sale number from the backend sequence (no writes before it succeeds)
    4. sale header
    5. sale lines + conditional stock decrement, one DB transaction
    Steps 4-5 are a saga: if 5 fails the header is deleted; if that delete
    fails too the sale is flagged for manual reconciliation.
    """

    def __init__(
        self,
        db: Session,
        store: CartSessionStore,
        lock_service: LockService,
        notifier: NotificationService | None = None,
        sale_repo: SaleRepo | None = None,
        sequence_repo: SequenceRepo | None = None,
        product_repo: ProductRepo | None = None,
        tax_rate=TAX_RATE,
        timeout: float = CHECKOUT_TIMEOUT_SECONDS,
        decrement_stock: bool = STOCK_DECREMENT_ON_SALE,
        currency_code: str = CURRENCY_CODE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.lock_service = lock_service
        self.notifier = notifier or NotificationService()
        self.sales = sale_repo or SaleRepo(db)
        self.sequences = sequence_repo or SequenceRepo(db)
        self.products = product_repo or ProductRepo(db)
        self.tax_rate = Decimal(str(tax_rate))
        self.timeout = timeout
        self.decrement_stock = decrement_stock
        self.currency_code = currency_code
        self.clock = clock

    # =====================================================
    # state transitions
    # =====================================================
    def open_checkout(self, session_id: str, user_id: UUID) -> Dict[str, Any]:
        session = self.store.get(session_id, user_id)

        with session.lock:
            if session.state == CheckoutState.SUBMITTING:
                raise CheckoutInProgressError(session_id)
            if session.cart.is_empty:
                raise EmptyCartError(session_id)
            session.state = CheckoutState.COLLECTING_BUYER_INFO
            session.last_error = None

        logger.info(f"Session {session_id}: collecting buyer info")
        return self._state(session)

    def cancel_checkout(self, session_id: str, user_id: UUID) -> Dict[str, Any]:
        """Close the checkout form; cart and backend stay untouched."""
        session = self.store.get(session_id, user_id)

        with session.lock:
            if session.state == CheckoutState.SUBMITTING:
                raise CheckoutInProgressError(session_id)
            session.state = CheckoutState.IDLE

        logger.info(f"Session {session_id}: checkout cancelled")
        return self._state(session)

    def submit(self, session_id: str, user: CurrentUser, buyer: CheckoutIn) -> SaleModel:
        """
        Use Case: checkout.

        A second submit while one is in flight is rejected, not queued:
        in-process by the session state, across workers by the Redis lock.
        """
        session = self.store.get(session_id, user.id)
        self._begin_submit(session)

        token = None
        try:
            token = self._acquire_lock(session_id)
            deadline = self.clock() + self.timeout
            sale = self._commit(session, user, buyer, deadline)
        except PosException as e:
            self._mark_failed(session, e)
            raise
        except SQLAlchemyError as e:
            error = PersistenceError("Backend error during checkout")
            self._mark_failed(session, error)
            raise error from e
        except Exception as e:
            self._mark_failed(session, e)
            raise
        finally:
            self.lock_service.safe_release(session_id, token)

        with session.lock:
            session.cart.clear()
            session.state = CheckoutState.COMMITTED
            session.last_error = None

        logger.info(f"Sale {sale.sale_number} committed, total {sale.total}, session {session_id}")

        self.notifier.send_sale_notification(sale.company_id, user.id, sale.id, sale.sale_number, sale.total)
        return sale

    # =====================================================
    # commit
    # =====================================================
    def _commit(self, session: CartSession, user: CurrentUser, buyer: CheckoutIn, deadline: float) -> SaleModel:
        lines = session.cart.snapshot()
        if not lines:
            raise EmptyCartError(session.session_id)

        totals = compute_totals(lines, self.tax_rate, buyer.discount)

        if self.decrement_stock:
            self._check_stock(session.company_id, lines)

        self._check_deadline(session.session_id, deadline)
        sale_number = self.sequences.allocate_sale_number(session.company_id)
        logger.info(f"Allocated {sale_number} for session {session.session_id}")

        self._check_deadline(session.session_id, deadline)
        sale = self.sales.insert_sale(self._build_sale(session, user, buyer, totals, sale_number))

        if self.clock() > deadline:
            compensated = self._compensate(sale, "checkout timed out")
            raise CheckoutTimeoutError(
                session.session_id,
                self.timeout,
                sale_id=sale.id,
                reconciliation_required=not compensated,
            )

        try:
            self.sales.insert_sale_items(sale, self._build_items(lines), decrement_stock=self.decrement_stock)
        except (StockConflictError, PersistenceError) as e:
            if not self._compensate(sale, str(e)):
                raise PersistenceError(
                    f"Sale {sale.sale_number} was saved without items and needs reconciliation",
                    sale_id=sale.id,
                    reconciliation_required=True,
                ) from e
            raise

        return sale

    def _check_stock(self, company_id: UUID, lines: List[CartLine]) -> None:
        levels = self.products.fetch_stock_levels(company_id, [line.product_id for line in lines])

        conflicts = [
            {
                "product_id": str(line.product_id),
                "sku": line.sku,
                "name": line.name,
                "requested": line.quantity,
                "available": levels.get(line.product_id, 0),
            }
            for line in lines
            if levels.get(line.product_id, 0) < line.quantity
        ]
        if conflicts:
            raise StockConflictError(conflicts)

    def _check_deadline(self, session_id: str, deadline: float) -> None:
        if self.clock() > deadline:
            raise CheckoutTimeoutError(session_id, self.timeout)

    def _compensate(self, sale: SaleModel, reason: str) -> bool:
        """Delete the orphaned header. False means it is still there and got flagged."""
        logger.warning(f"Rolling back sale {sale.sale_number}: {reason}")
        try:
            self.sales.delete_sale(sale.id)
            return True
        except PersistenceError as e:
            logger.error(f"Could not delete orphaned sale {sale.sale_number}: {e}")
            self.notifier.flag_reconciliation(sale.company_id, sale.id, reason)
            return False

    def _build_sale(
        self,
        session: CartSession,
        user: CurrentUser,
        buyer: CheckoutIn,
        totals: CartTotals,
        sale_number: str,
    ) -> SaleModel:
        return SaleModel(
            company_id=session.company_id,
            sale_number=sale_number,
            customer_name=buyer.customer_name,
            customer_phone=buyer.customer_phone,
            customer_email=buyer.customer_email,
            subtotal=totals.subtotal,
            tax=totals.tax,
            discount=totals.discount,
            total=totals.total,
            payment_method=buyer.payment_method,
            payment_status="pending",
            currency_code=self.currency_code,
            notes=buyer.notes,
            created_by=user.id,
        )

    @staticmethod
    def _build_items(lines: List[CartLine]) -> List[SaleItemModel]:
        return [
            SaleItemModel(
                product_id=line.product_id,
                product_name=line.name,
                product_sku=line.sku,
                quantity=line.quantity,
                unit_price=line.price,
                total=line.line_total,
            )
            for line in lines
        ]

    # =====================================================
    # helpers
    # =====================================================
    def _begin_submit(self, session: CartSession) -> None:
        with session.lock:
            if session.state == CheckoutState.SUBMITTING:
                raise CheckoutInProgressError(session.session_id)
            if session.state not in _SUBMITTABLE:
                raise CheckoutStateError(session.session_id, session.state.value, "submit")
            if session.cart.is_empty:
                raise EmptyCartError(session.session_id)
            session.state = CheckoutState.SUBMITTING

        logger.info(f"Session {session.session_id}: submitting")

    def _acquire_lock(self, session_id: str) -> str | None:
        try:
            token = self.lock_service.acquire_checkout_lock(session_id, ttl=self.timeout)
        except RedisError as e:
            #session state already guards this process; the lock only adds the cross-worker guard
            logger.warning(f"Checkout lock unavailable for session {session_id}, continuing: {e}")
            return None

        if token is None:
            raise CheckoutInProgressError(session_id)
        return token

    def _mark_failed(self, session: CartSession, error: Exception) -> None:
        with session.lock:
            session.state = CheckoutState.FAILED
            session.last_error = str(error)

        logger.warning(f"Session {session.session_id}: checkout failed: {error!r}")

    def _state(self, session: CartSession) -> Dict[str, Any]:
        return {
            "session_id": session.session_id,
            "checkout_state": session.state.value,
            "total": session.cart.compute_totals(self.tax_rate).total,
            "last_error": session.last_error,
        }
