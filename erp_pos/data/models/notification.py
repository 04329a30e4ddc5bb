from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Uuid

from erp_pos.data.database import Base


class NotificationModel(Base):
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, nullable=False, index=True)
    user_id = Column(Uuid, nullable=True)

    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    type = Column(String, nullable=False, default="info")  # sale_completed, reconciliation_required
    priority = Column(String, nullable=False, default="normal")  # normal, high
    link = Column(String, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True)
