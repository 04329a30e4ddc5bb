from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select

from erp_pos.data.models.notification import NotificationModel
from erp_pos.data.models.sale import SaleModel
from erp_pos.data.models.sale_item import SaleItemModel
from erp_pos.services.notification_service import flag_sale_for_reconciliation
from erp_pos.tasks.reconcile import reconcile_orphaned_sales
from tests.conftest import COMPANY_ID

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def add_sale(db, number, created_at):
    sale = SaleModel(
        company_id=COMPANY_ID,
        sale_number=number,
        subtotal=Decimal("10.00"),
        tax=Decimal("1.00"),
        discount=Decimal("0"),
        total=Decimal("11.00"),
        payment_method="cash",
        created_at=created_at,
    )
    db.add(sale)
    db.commit()
    return sale


def status(db, sale):
    return db.execute(select(SaleModel.payment_status).where(SaleModel.id == sale.id)).scalar_one()


def test_flags_only_old_headers_without_lines(db, products):
    orphan = add_sale(db, "SALE-000001", NOW - timedelta(hours=1))
    complete = add_sale(db, "SALE-000002", NOW - timedelta(hours=1))
    db.add(SaleItemModel(
        sale_id=complete.id,
        product_id=products["A1"].id,
        product_name="Widget",
        product_sku="A1",
        quantity=1,
        unit_price=Decimal("10.00"),
        total=Decimal("10.00"),
    ))
    db.commit()
    in_flight = add_sale(db, "SALE-000003", NOW - timedelta(seconds=10))

    flagged = reconcile_orphaned_sales(db, older_than=300, now=NOW)

    assert flagged == 1
    assert status(db, orphan) == "reconciliation_required"
    assert status(db, complete) == "pending"
    assert status(db, in_flight) == "pending"

    notes = db.execute(select(NotificationModel)).scalars().all()
    assert len(notes) == 1
    assert notes[0].priority == "high"
    assert notes[0].type == "reconciliation_required"
    assert notes[0].link == f"/sales/{orphan.id}"


def test_already_flagged_is_not_flagged_again(db):
    add_sale(db, "SALE-000001", NOW - timedelta(hours=1))

    assert reconcile_orphaned_sales(db, older_than=300, now=NOW) == 1
    assert reconcile_orphaned_sales(db, older_than=300, now=NOW) == 0


def test_flag_missing_sale_creates_no_notification(db):
    sale = add_sale(db, "SALE-000001", NOW)
    db.delete(sale)
    db.commit()

    assert flag_sale_for_reconciliation(db, COMPANY_ID, sale.id, "gone") is False
    assert db.execute(select(NotificationModel)).scalars().all() == []
