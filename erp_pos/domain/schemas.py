# erp_pos/domain/schemas.py
import re
from datetime import datetime
from decimal import Decimal
from typing import List, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

PaymentMethod = Literal["cash", "card", "mobile"]
CheckoutStateName = Literal["idle", "collecting_buyer_info", "submitting", "committed", "failed"]


class CurrentUser(BaseModel):
    """Authenticated user resolved from the access token."""

    id: UUID
    company_id: UUID
    role: str | None = None


# =====================================================
# catalog
# =====================================================
class CatalogItemOut(BaseModel):
    """Schema for a sellable catalog item (response)."""

    id: UUID
    name: str
    sku: str
    barcode: str | None = None
    price: Decimal
    quantity: int
    category: str | None = None
    image_url: str | None = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# cart
# =====================================================
class ItemIn(BaseModel):
    """Schema for adding one unit of a product to the cart."""

    product_id: UUID


class ScanIn(BaseModel):
    """Schema for adding a product by scanned barcode or SKU."""

    code: str = Field(..., min_length=1, max_length=128, description="Barcode or SKU")


class QuantityIn(BaseModel):
    """Schema for setting a cart line quantity; clamped server-side."""

    quantity: int = Field(..., description="Requested quantity, clamped to [1, available]")


class CartLineOut(BaseModel):
    product_id: UUID
    name: str
    sku: str
    price: Decimal
    quantity: int
    available_quantity: int
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class CartOut(BaseModel):
    """Schema for a session cart (response)."""

    session_id: str
    items: List[CartLineOut]
    subtotal: Decimal
    tax_rate: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    checkout_state: CheckoutStateName
    warning: str | None = None
    last_error: str | None = None


class SessionOut(BaseModel):
    """Schema for a freshly opened POS session (response)."""

    session_id: str
    user_id: UUID
    company_id: UUID
    expires_at: datetime


# =====================================================
# checkout
# =====================================================
class CheckoutIn(BaseModel):
    """Schema for buyer info and payment submitted at checkout."""

    customer_name: str | None = Field(None, max_length=200)
    customer_phone: str | None = Field(None, max_length=50)
    customer_email: str | None = Field(None, max_length=200)
    payment_method: PaymentMethod = Field(..., description="cash, card or mobile")
    notes: str | None = Field(None, max_length=2000)
    discount: Decimal = Field(Decimal("0.00"), ge=0, description="Absolute discount")

    @field_validator("customer_name", "customer_phone", "customer_email", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("customer_email")
    @classmethod
    def check_email(cls, v):
        if v is not None and not _EMAIL_RE.match(v):
            raise ValueError("Invalid email address")
        return v


class CheckoutStateOut(BaseModel):
    session_id: str
    checkout_state: CheckoutStateName
    total: Decimal
    last_error: str | None = None


# =====================================================
# sales
# =====================================================
class SaleItemOut(BaseModel):
    id: UUID
    product_id: UUID
    product_name: str
    product_sku: str
    quantity: int
    unit_price: Decimal
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


class SaleOut(BaseModel):
    """Schema for a committed sale (response)."""

    id: UUID
    company_id: UUID
    sale_number: str
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    payment_method: str
    payment_status: str
    currency_code: str | None = None
    notes: str | None = None
    created_by: UUID | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SaleDetailOut(SaleOut):
    items: List[SaleItemOut]


class SalesStatsOut(BaseModel):
    total_revenue: Decimal
    today_revenue: Decimal
    transaction_count: int


# =====================================================
# users / permissions / notifications
# =====================================================
class UserCreate(BaseModel):
    """Schema for creating a user profile."""

    id: UUID
    company_id: UUID
    full_name: str = Field(..., min_length=1, max_length=100)
    email: str | None = Field(None, max_length=200)
    role: Literal["super_admin", "company_admin", "manager", "cashier", "user"] = "user"


class UserRead(BaseModel):
    id: UUID
    company_id: UUID | None = None
    full_name: str
    email: str | None = None
    roles: List[str] = []


class PermissionOut(BaseModel):
    role: str
    module: str
    can_view: bool
    can_create: bool
    can_edit: bool
    can_delete: bool


class PermissionUpdate(BaseModel):
    action: Literal["view", "create", "edit", "delete"]
    value: bool


class NotificationOut(BaseModel):
    id: UUID
    title: str
    message: str
    type: str
    priority: str
    link: str | None = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
