# erp_pos/tasks/reconcile.py
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from erp_pos.celery_worker import celery_app
from erp_pos.data.database import SessionLocal
from erp_pos.domain.exceptions import PersistenceError
from erp_pos.repos.sale_repo import SaleRepo
from erp_pos.services.notification_service import flag_sale_for_reconciliation
from erp_pos.utils.settings import RECONCILE_AFTER_SECONDS
from erp_pos.utils.logging import get_logger

logger = get_logger(__name__)


def reconcile_orphaned_sales(db: Session, older_than: int = RECONCILE_AFTER_SECONDS, now: datetime | None = None) -> int:
    """
    Flag sale headers that never got their lines.

    A checkout normally deletes such a header itself; this sweep catches the
    ones where that delete failed or the worker died mid-checkout.
    """
    now = now or datetime.now(timezone.utc)
    orphans = SaleRepo(db).find_orphaned_sales(created_before=now - timedelta(seconds=older_than))

    logger.info(f"Found {len(orphans)} orphaned sales")

    flagged = 0
    for sale in orphans:
        try:
            if flag_sale_for_reconciliation(db, sale.company_id, sale.id, "no sale items recorded"):
                flagged += 1
        except PersistenceError as e:
            logger.warning(f"Failed to flag orphaned sale {sale.sale_number}: {e}")
    return flagged


@celery_app.task(name="erp_pos.tasks.reconcile.reconcile_orphaned_sales_task")
def reconcile_orphaned_sales_task():
    logger.info("Reconcile orphaned sales task started")

    db = SessionLocal()
    try:
        return reconcile_orphaned_sales(db)
    finally:
        db.close()
