# erp_pos/services/stats_service.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from erp_pos.domain.exceptions import ValidationError
from erp_pos.repos.sale_repo import SaleRepo
from erp_pos.utils.settings import APP_TIMEZONE


def resolve_timezone(name: str | None) -> ZoneInfo:
    try:
        return ZoneInfo(name or APP_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(f"Unknown timezone: {name}", details={"tz": name}) from e


class StatsService:
    """
    Revenue figures for the sales dashboard.

    Full scan of the tenant's sales on every call, no stored rollup.
    """

    def __init__(self, db: Session):
        self.repo = SaleRepo(db)

    def compute_stats(self, company_id: UUID, tz: str | None = None, now: datetime | None = None) -> Dict[str, Any]:
        zone = resolve_timezone(tz)
        today = (now or datetime.now(timezone.utc)).astimezone(zone).date()

        total_revenue = Decimal("0.00")
        today_revenue = Decimal("0.00")
        count = 0

        for total, created_at in self.repo.fetch_sale_totals(company_id):
            #sqlite hands back naive datetimes; stored values are UTC
            if created_at.tzinfo is None:
                created_at = created_at.replace(tzinfo=timezone.utc)

            total_revenue += total
            if created_at.astimezone(zone).date() == today:
                today_revenue += total
            count += 1

        return {
            "total_revenue": total_revenue,
            "today_revenue": today_revenue,
            "transaction_count": count,
        }
