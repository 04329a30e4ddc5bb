# erp_pos/services/notification_service.py
from uuid import UUID

from sqlalchemy.orm import Session

from erp_pos.celery_worker import celery_app
from erp_pos.data.database import SessionLocal
from erp_pos.data.models.notification import NotificationModel
from erp_pos.repos.notification_repo import NotificationRepo
from erp_pos.repos.sale_repo import SaleRepo
from erp_pos.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Tenant notifications, dispatched through Celery.

    Dispatch failures are logged and never fail the caller: the sale is
    already committed, and orphaned headers are also caught by the
    periodic reconciliation sweep.
    """

    def send_sale_notification(self, company_id: UUID, user_id: UUID, sale_id: UUID, sale_number: str, total) -> None:
        try:
            send_sale_notification_task.delay(str(company_id), str(user_id), str(sale_id), sale_number, str(total))
        except Exception as e:
            logger.warning(f"Could not dispatch sale notification for {sale_number}: {e}")

    def flag_reconciliation(self, company_id: UUID, sale_id: UUID, reason: str) -> None:
        try:
            flag_reconciliation_task.delay(str(company_id), str(sale_id), reason)
        except Exception as e:
            logger.error(f"Could not dispatch reconciliation flag for sale {sale_id}: {e}")


def flag_sale_for_reconciliation(db: Session, company_id: UUID, sale_id: UUID, reason: str) -> bool:
    """Mark the sale and leave a high-priority notification for the tenant admins."""
    flagged = SaleRepo(db).mark_reconciliation_required(sale_id)
    if not flagged:
        logger.info(f"Sale {sale_id} no longer exists, nothing to reconcile")
        return False

    NotificationRepo(db).create(
        NotificationModel(
            company_id=company_id,
            title="Sale needs reconciliation",
            message=f"Sale {sale_id} was saved without its items ({reason}). Check it manually.",
            type="reconciliation_required",
            priority="high",
            link=f"/sales/{sale_id}",
        )
    )

    logger.error(f"[RECONCILIATION] company {company_id}: sale {sale_id} flagged ({reason})")
    return flagged


@celery_app.task(name="erp_pos.services.notification_service.send_sale_notification_task")
def send_sale_notification_task(company_id: str, user_id: str, sale_id: str, sale_number: str, total: str):
    db = SessionLocal()
    try:
        NotificationRepo(db).create(
            NotificationModel(
                company_id=UUID(company_id),
                user_id=UUID(user_id),
                title="Sale completed",
                message=f"Sale {sale_number} completed, total {total}",
                type="sale_completed",
                link=f"/sales/{sale_id}",
            )
        )
    finally:
        db.close()

    logger.info(f"[NOTIFICATION] company {company_id}: sale {sale_number} completed")
    return {"company_id": company_id, "sale_id": sale_id, "status": "sent"}


@celery_app.task(name="erp_pos.services.notification_service.flag_reconciliation_task")
def flag_reconciliation_task(company_id: str, sale_id: str, reason: str):
    db = SessionLocal()
    try:
        flagged = flag_sale_for_reconciliation(db, UUID(company_id), UUID(sale_id), reason)
    finally:
        db.close()

    return {"company_id": company_id, "sale_id": sale_id, "flagged": flagged}
