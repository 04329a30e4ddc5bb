# erp_pos/repos/permission_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from erp_pos.data.models.permission import ModulePermissionModel


class PermissionRepo:
    def __init__(self, db: Session):
        self.db = db

    def list_permissions(self) -> List[ModulePermissionModel]:
        stmt = select(ModulePermissionModel).order_by(ModulePermissionModel.role, ModulePermissionModel.module)
        return list(self.db.execute(stmt).scalars().all())

    def get_permission(self, role: str, module: str) -> ModulePermissionModel | None:
        stmt = select(ModulePermissionModel).where(
            ModulePermissionModel.role == role,
            ModulePermissionModel.module == module,
        )
        return self.db.execute(stmt).scalars().first()

    def save(self, permission: ModulePermissionModel) -> ModulePermissionModel:
        self.db.add(permission)
        self.db.commit()
        self.db.refresh(permission)
        return permission
