# erp_pos/repos/notification_repo.py
from typing import List
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from erp_pos.data.models.notification import NotificationModel


class NotificationRepo:
    def __init__(self, db: Session):
        self.db = db

    def create(self, notification: NotificationModel) -> NotificationModel:
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def list_for_company(self, company_id: UUID, limit: int = 20) -> List[NotificationModel]:
        stmt = (
            select(NotificationModel)
            .where(NotificationModel.company_id == company_id)
            .order_by(NotificationModel.created_at.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def mark_read(self, company_id: UUID, notification_id: UUID) -> bool:
        result = self.db.execute(
            update(NotificationModel)
            .where(NotificationModel.id == notification_id, NotificationModel.company_id == company_id)
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount > 0
