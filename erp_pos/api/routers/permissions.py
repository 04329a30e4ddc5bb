# erp_pos/api/routers/permissions.py
from typing import List

from fastapi import APIRouter, Depends

from erp_pos.api.deps import get_current_user, get_permission_service, require_permission, to_http
from erp_pos.domain.exceptions import PosException
from erp_pos.domain.schemas import CurrentUser, PermissionOut, PermissionUpdate
from erp_pos.services.permission_service import PermissionService

router = APIRouter(prefix="/permissions", tags=["permissions"])


@router.get("", response_model=List[PermissionOut])
def list_permissions(
    user: CurrentUser = Depends(require_permission("settings", "view")),
    svc: PermissionService = Depends(get_permission_service),
):
    return svc.list_permissions()


@router.get("/me", response_model=List[PermissionOut])
def my_permissions(
    user: CurrentUser = Depends(get_current_user),
    svc: PermissionService = Depends(get_permission_service),
):
    if not user.role or user.role == "super_admin":
        return []
    return svc.list_permissions(role=user.role)


@router.put("/{role}/{module}", response_model=PermissionOut)
def update_permission(
    role: str,
    module: str,
    payload: PermissionUpdate,
    user: CurrentUser = Depends(require_permission("settings", "edit")),
    svc: PermissionService = Depends(get_permission_service),
):
    try:
        return svc.update_permission(role, module, payload.action, payload.value)
    except PosException as e:
        raise to_http(e)
