from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from erp_pos.data.models.sale import SaleModel
from erp_pos.data.models.sale_item import SaleItemModel
from erp_pos.domain.exceptions import ValidationError
from erp_pos.repos.sale_repo import SaleRepo
from erp_pos.services.history_service import SalesHistoryService
from erp_pos.services.stats_service import StatsService, resolve_timezone
from tests.conftest import CASHIER_ID, COMPANY_ID, OTHER_COMPANY_ID

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def add_sale(db, number, total, created_at, company_id=COMPANY_ID):
    sale = SaleModel(
        company_id=company_id,
        sale_number=number,
        subtotal=Decimal(total),
        tax=Decimal("0"),
        discount=Decimal("0"),
        total=Decimal(total),
        payment_method="cash",
        created_by=CASHIER_ID,
        created_at=created_at,
    )
    db.add(sale)
    db.commit()
    return sale


@pytest.fixture
def sales(db):
    return [
        add_sale(db, "SALE-000001", "10.00", datetime(2026, 10, 18, 10, 0, tzinfo=timezone.utc)),
        #00:30 UTC is still the 18th in New York
        add_sale(db, "SALE-000002", "20.00", datetime(2026, 10, 19, 0, 30, tzinfo=timezone.utc)),
        add_sale(db, "SALE-000003", "30.00", NOW - timedelta(hours=1)),
        add_sale(db, "SALE-000001", "99.00", NOW, company_id=OTHER_COMPANY_ID),
    ]


@pytest.fixture
def flagged_orphan(db, sales):
    orphan = add_sale(db, "SALE-000004", "110.00", NOW - timedelta(minutes=10))
    SaleRepo(db).mark_reconciliation_required(orphan.id)
    db.expire_all()
    return orphan


class TestHistory:
    def test_newest_first_and_tenant_scoped(self, db, sales):
        result = SalesHistoryService(db).list_recent_transactions(COMPANY_ID)

        assert [s.sale_number for s in result] == ["SALE-000003", "SALE-000002", "SALE-000001"]

    def test_limit_and_offset(self, db, sales):
        svc = SalesHistoryService(db)

        assert [s.sale_number for s in svc.list_recent_transactions(COMPANY_ID, limit=2)] == ["SALE-000003", "SALE-000002"]
        assert [s.sale_number for s in svc.list_recent_transactions(COMPANY_ID, limit=2, offset=2)] == ["SALE-000001"]

    def test_limit_is_clamped(self, db, sales):
        svc = SalesHistoryService(db, max_limit=2)

        assert len(svc.list_recent_transactions(COMPANY_ID, limit=500)) == 2
        assert len(svc.list_recent_transactions(COMPANY_ID, limit=0)) == 1

    def test_get_transaction_with_items(self, db, sales, products):
        sale = sales[2]
        db.add(SaleItemModel(
            sale_id=sale.id,
            product_id=products["A1"].id,
            product_name="Widget",
            product_sku="A1",
            quantity=3,
            unit_price=Decimal("10.00"),
            total=Decimal("30.00"),
        ))
        db.commit()

        found = SalesHistoryService(db).get_transaction(COMPANY_ID, sale.id)

        assert [(i.product_sku, i.quantity) for i in found.items] == [("A1", 3)]

    def test_get_transaction_of_other_tenant(self, db, sales):
        with pytest.raises(ValueError):
            SalesHistoryService(db).get_transaction(COMPANY_ID, sales[3].id)

    def test_flagged_header_is_left_out_of_history(self, db, flagged_orphan):
        svc = SalesHistoryService(db)

        assert [s.sale_number for s in svc.list_recent_transactions(COMPANY_ID)] == ["SALE-000003", "SALE-000002", "SALE-000001"]
        assert svc.get_transaction(COMPANY_ID, flagged_orphan.id).payment_status == "reconciliation_required"


class TestStats:
    def test_totals_in_utc(self, db, sales):
        stats = StatsService(db).compute_stats(COMPANY_ID, tz="UTC", now=NOW)

        assert stats == {
            "total_revenue": Decimal("60.00"),
            "today_revenue": Decimal("50.00"),
            "transaction_count": 3,
        }

    def test_flagged_header_is_not_counted(self, db, flagged_orphan):
        stats = StatsService(db).compute_stats(COMPANY_ID, tz="UTC", now=NOW)

        assert stats == {
            "total_revenue": Decimal("60.00"),
            "today_revenue": Decimal("50.00"),
            "transaction_count": 3,
        }

    def test_today_follows_timezone(self, db, sales):
        stats = StatsService(db).compute_stats(COMPANY_ID, tz="America/New_York", now=NOW)

        assert stats["today_revenue"] == Decimal("30.00")
        assert stats["total_revenue"] == Decimal("60.00")

    def test_no_sales(self, db):
        stats = StatsService(db).compute_stats(COMPANY_ID, now=NOW)

        assert stats == {
            "total_revenue": Decimal("0"),
            "today_revenue": Decimal("0"),
            "transaction_count": 0,
        }

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError):
            resolve_timezone("Mars/Olympus_Mons")
