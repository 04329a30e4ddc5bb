# erp_pos/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict
from uuid import UUID

from sqlalchemy.orm import Session

from erp_pos.domain.exceptions import CheckoutInProgressError
from erp_pos.services.catalog_service import CatalogService
from erp_pos.services.session_store import CartSession, CartSessionStore, CheckoutState
from erp_pos.utils.settings import TAX_RATE
from erp_pos.utils.logging import get_logger

logger = get_logger(__name__)

NOT_ENOUGH_STOCK = "Not enough stock"


class CartService:
    """
    Use cases of the register cart.
    commands (open session, add, scan, set quantity, remove, clear) change the session cart
    query (get) is read only
    Nothing is written to the backend here; the catalog is only read.
    """

    def __init__(
        self,
        db: Session,
        store: CartSessionStore,
        catalog: CatalogService | None = None,
        tax_rate=TAX_RATE,
    ):
        self.store = store
        self.catalog = catalog or CatalogService(db)
        self.tax_rate = Decimal(str(tax_rate))

    #query
    def get_cart(self, session_id: str, user_id: UUID, warning: str | None = None) -> Dict[str, Any]:
        session = self.store.get(session_id, user_id)
        return self.render(session, warning)

    def render(self, session: CartSession, warning: str | None = None) -> Dict[str, Any]:
        totals = session.cart.compute_totals(self.tax_rate)

        return {
            "session_id": session.session_id,
            "items": [
                {
                    "product_id": line.product_id,
                    "name": line.name,
                    "sku": line.sku,
                    "price": line.price,
                    "quantity": line.quantity,
                    "available_quantity": line.available_quantity,
                    "line_total": line.line_total,
                }
                for line in session.cart.lines
            ],
            "subtotal": totals.subtotal,
            "tax_rate": self.tax_rate,
            "tax": totals.tax,
            "discount": totals.discount,
            "total": totals.total,
            "checkout_state": session.state.value,
            "warning": warning,
            "last_error": session.last_error,
        }

    #commands
    def open_session(self, user_id: UUID, company_id: UUID) -> CartSession:
        return self.store.create(user_id, company_id)

    def add_product(self, session_id: str, user_id: UUID, product_id: UUID) -> Dict[str, Any]:
        """
        Add one unit of a sellable product.

        At the stock ceiling the cart is left as is and the response carries
        a warning instead of an error.
        """
        session = self._editable(session_id, user_id)
        item = self.catalog.get_sellable_item(session.company_id, product_id)
        return self._add(session, item)

    def add_by_barcode(self, session_id: str, user_id: UUID, code: str) -> Dict[str, Any]:
        session = self._editable(session_id, user_id)
        item = self.catalog.find_by_barcode(session.company_id, code)
        return self._add(session, item)

    def set_quantity(self, session_id: str, user_id: UUID, product_id: UUID, quantity: int) -> Dict[str, Any]:
        session = self._editable(session_id, user_id)
        line = session.cart.set_quantity(product_id, quantity)

        warning = NOT_ENOUGH_STOCK if quantity > line.quantity else None
        if line.quantity != quantity:
            logger.info(f"Quantity {quantity} for {line.sku} clamped to {line.quantity}")

        return self.render(session, warning)

    def remove_product(self, session_id: str, user_id: UUID, product_id: UUID) -> Dict[str, Any]:
        session = self._editable(session_id, user_id)
        session.cart.remove_item(product_id)
        logger.info(f"Removed product {product_id} from session {session_id}")
        return self.render(session)

    def clear_cart(self, session_id: str, user_id: UUID) -> Dict[str, Any]:
        session = self._editable(session_id, user_id)
        session.cart.clear()
        return self.render(session)

    def _add(self, session: CartSession, item) -> Dict[str, Any]:
        if not session.cart.add_item(item):
            logger.warning(f"Stock ceiling reached for {item.sku} in session {session.session_id}")
            return self.render(session, NOT_ENOUGH_STOCK)

        line = session.cart.get_line(item.id)
        logger.info(f"Product {item.sku} in session {session.session_id}, quantity {line.quantity}")
        return self.render(session)

    def _editable(self, session_id: str, user_id: UUID) -> CartSession:
        #the submitting checkout works on a snapshot and clears the cart on commit
        session = self.store.get(session_id, user_id)
        if session.state == CheckoutState.SUBMITTING:
            raise CheckoutInProgressError(session_id)
        return session
