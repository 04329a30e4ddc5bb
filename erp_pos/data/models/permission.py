from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Uuid, UniqueConstraint

from erp_pos.data.database import Base


class ModulePermissionModel(Base):
    __tablename__ = "module_permissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    role = Column(String, nullable=False)
    module = Column(String, nullable=False)

    can_view = Column(Boolean, nullable=False, default=False)
    can_create = Column(Boolean, nullable=False, default=False)
    can_edit = Column(Boolean, nullable=False, default=False)
    can_delete = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (UniqueConstraint("role", "module", name="u_role_module"),)
