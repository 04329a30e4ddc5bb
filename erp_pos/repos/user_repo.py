# erp_pos/repos/user_repo.py
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from erp_pos.data.models.user import ProfileModel, UserRoleModel

#first match wins when a user holds several roles
ROLE_PRECEDENCE = ("super_admin", "company_admin", "manager", "cashier", "user")


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user_id: UUID) -> ProfileModel | None:
        return self.db.get(ProfileModel, user_id)

    def create_profile(self, profile: ProfileModel, role: str | None = None) -> ProfileModel:
        self.db.add(profile)
        if role:
            self.db.add(UserRoleModel(user_id=profile.id, role=role))
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def add_role(self, user_id: UUID, role: str) -> bool:
        if role in self.get_roles(user_id):
            return False
        self.db.add(UserRoleModel(user_id=user_id, role=role))
        self.db.commit()
        return True

    def get_roles(self, user_id: UUID) -> List[str]:
        roles = self.db.execute(
            select(UserRoleModel.role).where(UserRoleModel.user_id == user_id)
        ).scalars().all()
        return sorted(roles, key=lambda r: ROLE_PRECEDENCE.index(r) if r in ROLE_PRECEDENCE else len(ROLE_PRECEDENCE))

    def get_primary_role(self, user_id: UUID) -> str | None:
        roles = self.get_roles(user_id)
        return roles[0] if roles else None
