# erp_pos/repos/sale_repo.py
from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import select, update, delete, exists
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from erp_pos.data.models.sale import SaleModel
from erp_pos.data.models.sale_item import SaleItemModel
from erp_pos.domain.exceptions import PersistenceError, StockConflictError
from erp_pos.repos.product_repo import ProductRepo

RECONCILIATION_REQUIRED = "reconciliation_required"


class SaleRepo:
    def __init__(self, db: Session):
        self.db = db
        self.products = ProductRepo(db)

    # =====================================================
    # writes
    # =====================================================
    def insert_sale(self, sale: SaleModel) -> SaleModel:
        try:
            self.db.add(sale)
            self.db.commit()
            self.db.refresh(sale)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(
                "Could not save sale",
                details={"sale_number": sale.sale_number},
            ) from e
        return sale

    def insert_sale_items(
        self,
        sale: SaleModel,
        items: List[SaleItemModel],
        decrement_stock: bool = True,
    ) -> List[SaleItemModel]:
        """
        Insert all lines of a sale in one transaction.

        With decrement_stock every product quantity is decremented
        conditionally in the same transaction; if any line lacks stock the
        whole transaction is rolled back and StockConflictError lists every
        affected line.
        """
        try:
            conflicts = []
            if decrement_stock:
                for item in items:
                    rowcount = self.products.decrement_stock(sale.company_id, item.product_id, item.quantity)
                    if rowcount == 0:
                        conflicts.append({
                            "product_id": str(item.product_id),
                            "sku": item.product_sku,
                            "name": item.product_name,
                            "requested": item.quantity,
                            "available": self.products.get_quantity(item.product_id),
                        })

            if conflicts:
                self.db.rollback()
                raise StockConflictError(conflicts)

            for item in items:
                item.sale_id = sale.id
            self.db.add_all(items)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Could not save sale items", sale_id=sale.id) from e

        return items

    def delete_sale(self, sale_id: UUID) -> bool:
        try:
            result = self.db.execute(delete(SaleModel).where(SaleModel.id == sale_id))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Could not delete sale", sale_id=sale_id) from e
        return result.rowcount > 0

    def mark_reconciliation_required(self, sale_id: UUID) -> bool:
        try:
            result = self.db.execute(
                update(SaleModel)
                .where(SaleModel.id == sale_id)
                .values(payment_status=RECONCILIATION_REQUIRED)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Could not flag sale", sale_id=sale_id) from e
        return result.rowcount > 0

    # =====================================================
    # reads
    # =====================================================
    def fetch_sales(self, company_id: UUID, limit: int, offset: int = 0) -> List[SaleModel]:
        """Newest first; flagged headers are left out until reconciled by hand."""
        stmt = (
            select(SaleModel)
            .where(SaleModel.company_id == company_id, SaleModel.payment_status != RECONCILIATION_REQUIRED)
            .order_by(SaleModel.created_at.desc(), SaleModel.sale_number.desc())
            .limit(limit)
            .offset(offset)
        )
        return self._all(stmt, company_id)

    def get_sale(self, company_id: UUID, sale_id: UUID) -> SaleModel | None:
        stmt = (
            select(SaleModel)
            .options(selectinload(SaleModel.items))
            .where(SaleModel.id == sale_id, SaleModel.company_id == company_id)
        )
        return self.db.execute(stmt).scalars().first()

    def fetch_sale_totals(self, company_id: UUID) -> list:
        stmt = select(SaleModel.total, SaleModel.created_at).where(
            SaleModel.company_id == company_id,
            SaleModel.payment_status != RECONCILIATION_REQUIRED,
        )
        try:
            return list(self.db.execute(stmt).all())
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Could not load sales", details={"company_id": str(company_id)}) from e

    def find_orphaned_sales(self, created_before: datetime) -> List[SaleModel]:
        """Headers without any lines, older than created_before, not flagged yet."""
        has_items = exists().where(SaleItemModel.sale_id == SaleModel.id)
        stmt = select(SaleModel).where(
            ~has_items,
            SaleModel.created_at < created_before,
            SaleModel.payment_status != RECONCILIATION_REQUIRED,
        )
        return list(self.db.execute(stmt).scalars().all())

    def _all(self, stmt, company_id) -> list:
        try:
            return list(self.db.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Could not load sales", details={"company_id": str(company_id)}) from e
