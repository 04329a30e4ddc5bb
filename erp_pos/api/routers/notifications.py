# erp_pos/api/routers/notifications.py
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from erp_pos.api.deps import get_current_user
from erp_pos.data.database import get_db
from erp_pos.domain.schemas import CurrentUser, NotificationOut
from erp_pos.repos.notification_repo import NotificationRepo

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationOut])
def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return NotificationRepo(db).list_for_company(user.company_id, limit=limit)


@router.post("/{notification_id}/read", status_code=204)
def mark_read(
    notification_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not NotificationRepo(db).mark_read(user.company_id, notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
