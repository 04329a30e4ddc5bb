# erp_pos/api/routers/users.py
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from erp_pos.api.deps import require_permission, to_http
from erp_pos.data.database import get_db
from erp_pos.domain.exceptions import PosException
from erp_pos.domain.schemas import CurrentUser, UserCreate, UserRead
from erp_pos.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserRead)
def create_user(
    payload: UserCreate,
    user: CurrentUser = Depends(require_permission("settings", "create")),
    db: Session = Depends(get_db),
):
    if payload.company_id != user.company_id and user.role != "super_admin":
        raise HTTPException(status_code=403, detail="Cannot create users in another company")
    if payload.role == "super_admin" and user.role != "super_admin":
        raise HTTPException(status_code=403, detail="Only super admins can grant super_admin")

    try:
        return UserService(db).create_user(payload)
    except PosException as e:
        raise to_http(e)


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: UUID,
    user: CurrentUser = Depends(require_permission("settings", "view")),
    db: Session = Depends(get_db),
):
    try:
        return UserService(db).get_user(user_id, user.company_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
