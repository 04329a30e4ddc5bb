from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, Numeric, DateTime, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship

from erp_pos.data.database import Base


class SaleModel(Base):
    __tablename__ = "sales"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, nullable=False, index=True)
    sale_number = Column(String, nullable=False)

    customer_name = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)

    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)

    payment_method = Column(String, nullable=False)
    payment_status = Column(String, nullable=False, default="pending")  # pending, reconciliation_required
    currency_code = Column(String(3), nullable=True)
    notes = Column(String, nullable=True)

    created_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    items = relationship(
        "SaleItemModel",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItemModel.created_at",
    )

    __table_args__ = (UniqueConstraint("company_id", "sale_number", name="u_company_sale_number"),)
