# erp_pos/services/permission_service.py
from typing import List

from sqlalchemy.orm import Session

from erp_pos.data.models.permission import ModulePermissionModel
from erp_pos.domain.exceptions import ValidationError
from erp_pos.domain.permissions import ACTIONS, DEFAULT_PERMISSIONS, MODULES, ROLES, can, merge_rows
from erp_pos.domain.schemas import PermissionOut
from erp_pos.repos.permission_repo import PermissionRepo
from erp_pos.utils.logging import get_logger

logger = get_logger(__name__)


class PermissionService:
    """Stored module_permissions rows overlaid on DEFAULT_PERMISSIONS."""

    def __init__(self, db: Session):
        self.repo = PermissionRepo(db)

    def table(self):
        return merge_rows(DEFAULT_PERMISSIONS, self.repo.list_permissions())

    def can(self, role: str | None, module: str, action: str) -> bool:
        return can(self.table(), role, module, action)

    def list_permissions(self, role: str | None = None) -> List[PermissionOut]:
        table = self.table()
        roles = [role] if role else [r for r in ROLES if r != "super_admin"]
        out = []
        for r in roles:
            for module in MODULES:
                out.append(
                    PermissionOut(
                        role=r,
                        module=module,
                        **{f"can_{a}": can(table, r, module, a) for a in ACTIONS},
                    )
                )
        return out

    def update_permission(self, role: str, module: str, action: str, value: bool) -> PermissionOut:
        """
        Upsert one flag of a (role, module) row.
        A new row starts from the current effective permissions so that
        flipping one flag does not silently revoke the others.
        """
        if role not in ROLES or role == "super_admin":
            raise ValidationError(f"Unknown or fixed role: {role}", details={"role": role})
        if module not in MODULES:
            raise ValidationError(f"Unknown module: {module}", details={"module": module})
        if action not in ACTIONS:
            raise ValidationError(f"Unknown action: {action}", details={"action": action})

        row = self.repo.get_permission(role, module)
        if row is None:
            allowed = DEFAULT_PERMISSIONS.get((role, module), frozenset())
            row = ModulePermissionModel(
                role=role,
                module=module,
                **{f"can_{a}": a in allowed for a in ACTIONS},
            )

        setattr(row, f"can_{action}", value)
        row = self.repo.save(row)

        logger.info(f"Permission {role}/{module}/{action} set to {value}")

        return PermissionOut(
            role=row.role,
            module=row.module,
            can_view=row.can_view,
            can_create=row.can_create,
            can_edit=row.can_edit,
            can_delete=row.can_delete,
        )
