"""
Exception taxonomy for the point-of-sale flow.

Every error raised by services derives from PosException so routers can
translate them to HTTP responses in one place per endpoint. Each exception
carries a human-readable message and a details dict with the entity ids
involved.
"""


class PosException(Exception):
    """
    Base exception for all POS errors.

    Attributes:
        message: Human-readable error message
        details: Optional dict with additional context (entity IDs, states, etc.)
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"

    def to_dict(self) -> dict:
        return {"error": self.__class__.__name__, "message": self.message, "details": self.details}


# =====================================================
# validation (recovered locally, user corrects input)
# =====================================================
class ValidationError(PosException):
    """Invalid input or state; the form stays open and the user retries."""
    pass


class EmptyCartError(ValidationError):
    """Raised when checkout is opened or submitted with an empty cart."""

    def __init__(self, session_id: str):
        super().__init__(
            "Cart is empty",
            details={"session_id": session_id},
        )
        self.session_id = session_id


class CartItemNotFoundError(ValidationError):
    """Raised when a quantity change targets a product that is not in the cart."""

    def __init__(self, product_id):
        super().__init__(
            f"Product {product_id} is not in the cart",
            details={"product_id": str(product_id)},
        )
        self.product_id = product_id


class CheckoutStateError(ValidationError):
    """Raised when a checkout operation is not allowed in the current state."""

    def __init__(self, session_id: str, state: str, operation: str):
        super().__init__(
            f"Cannot {operation} while checkout is {state}",
            details={"session_id": session_id, "state": state, "operation": operation},
        )


class SessionNotFoundError(ValidationError):
    """Raised when a POS session does not exist or has expired."""

    def __init__(self, session_id: str):
        super().__init__(
            f"POS session {session_id} not found",
            details={"session_id": session_id},
        )


# =====================================================
# catalog / stock
# =====================================================
class CatalogItemNotFoundError(PosException):
    """Raised when an item is unknown, inactive or out of stock for the tenant."""

    def __init__(self, reference, company_id=None):
        super().__init__(
            f"Item {reference} is not available for sale",
            details={"reference": str(reference), "company_id": str(company_id)},
        )


class StockConflictError(PosException):
    """
    Raised when the commit-time stock check fails.

    Attributes:
        conflicts: list of dicts (product_id, sku, name, requested, available)
                   describing every affected cart line
    """

    def __init__(self, conflicts: list[dict]):
        skus = ", ".join(c["sku"] for c in conflicts)
        super().__init__(
            f"Not enough stock for: {skus}",
            details={"conflicts": conflicts},
        )
        self.conflicts = conflicts


# =====================================================
# checkout / persistence
# =====================================================
class CheckoutInProgressError(PosException):
    """Raised when a second submit arrives while one is already in flight."""

    def __init__(self, session_id: str):
        super().__init__(
            "Checkout is already in progress",
            details={"session_id": session_id},
        )


class SequenceAllocationError(PosException):
    """Raised when a sale number cannot be allocated; nothing has been written."""

    def __init__(self, company_id, reason: str = ""):
        super().__init__(
            "Could not allocate sale number",
            details={"company_id": str(company_id), "reason": reason},
        )


class PersistenceError(PosException):
    """
    Raised when writing a sale header or its lines fails.

    Attributes:
        sale_id: id of the header that was written, if any
        reconciliation_required: True when a header could not be cleaned up
                                 and needs manual reconciliation
    """

    def __init__(self, message: str, sale_id=None, reconciliation_required: bool = False, details: dict | None = None):
        details = dict(details or {})
        details.update({
            "sale_id": str(sale_id) if sale_id else None,
            "reconciliation_required": reconciliation_required,
        })
        super().__init__(message, details=details)
        self.sale_id = sale_id
        self.reconciliation_required = reconciliation_required


class CheckoutTimeoutError(PersistenceError):
    """Raised when the checkout deadline passes before the sale is committed."""

    def __init__(self, session_id: str, timeout: float, sale_id=None, reconciliation_required: bool = False):
        super().__init__(
            f"Checkout did not complete within {timeout:g}s",
            sale_id=sale_id,
            reconciliation_required=reconciliation_required,
            details={"session_id": session_id},
        )


# =====================================================
# access
# =====================================================
class AuthenticationError(PosException):
    """Raised when the access token is missing or rejected by the auth provider."""
    pass


class PermissionDeniedError(PosException):
    """Raised when a role lacks a module capability or a session belongs to someone else."""

    def __init__(self, message: str = "Access denied", details: dict | None = None):
        super().__init__(message, details=details)


class ProfileConflictError(PosException):
    """Raised when a profile id is already taken in another company."""

    def __init__(self, user_id):
        super().__init__(
            "User already belongs to another company",
            details={"user_id": str(user_id)},
        )
