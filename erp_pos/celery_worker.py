# erp_pos/celery_worker.py
from celery import Celery

from erp_pos.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "erp_pos",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

#tasks are imported explicitly so the worker registers them
celery_app.conf.imports = (
    "erp_pos.tasks.reconcile",
    "erp_pos.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "reconcile-orphaned-sales-every-minute": {
        "task": "erp_pos.tasks.reconcile.reconcile_orphaned_sales_task",
        "schedule": 60.0,
    },
}

celery_app.conf.timezone = "UTC"
