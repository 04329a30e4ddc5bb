from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from erp_pos.data.database import Base


class SaleItemModel(Base):
    __tablename__ = "sale_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    sale_id = Column(Uuid, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False)

    #snapshot at sale time, independent of later catalog edits
    product_name = Column(String, nullable=False)
    product_sku = Column(String, nullable=False)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    sale = relationship("SaleModel", back_populates="items")
