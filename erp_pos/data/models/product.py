from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, Integer, Boolean, Numeric, DateTime, Uuid, Index

from erp_pos.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, nullable=False, index=True)

    name = Column(String, nullable=False)
    sku = Column(String, nullable=False)
    barcode = Column(String, nullable=True)
    category = Column(String, nullable=True)
    image_url = Column(String, nullable=True)

    price = Column(Numeric(12, 2), nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (Index("ix_products_company_sku", "company_id", "sku"),)
