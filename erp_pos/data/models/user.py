import uuid

from sqlalchemy import Column, String, ForeignKey, Uuid, UniqueConstraint

from erp_pos.data.database import Base


class ProfileModel(Base):
    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True)
    company_id = Column(Uuid, nullable=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=True)


class UserRoleModel(Base):
    __tablename__ = "user_roles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String, nullable=False)  # super_admin, company_admin, manager, cashier, user

    __table_args__ = (UniqueConstraint("user_id", "role", name="u_user_role"),)
