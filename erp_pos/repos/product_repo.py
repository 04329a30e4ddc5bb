# erp_pos/repos/product_repo.py
from typing import Dict, Iterable, List
from uuid import UUID

from sqlalchemy import select, update, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from erp_pos.data.models.product import ProductModel
from erp_pos.domain.exceptions import PersistenceError


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def fetch_catalog_items(
        self,
        company_id: UUID,
        active_only: bool = True,
        min_quantity: int = 1,
    ) -> List[ProductModel]:
        stmt = select(ProductModel).where(ProductModel.company_id == company_id)
        if active_only:
            stmt = stmt.where(ProductModel.is_active.is_(True))
        if min_quantity is not None:
            stmt = stmt.where(ProductModel.quantity >= min_quantity)
        stmt = stmt.order_by(ProductModel.name)

        try:
            return list(self.db.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Could not load catalog", details={"company_id": str(company_id)}) from e

    def get_product(self, company_id: UUID, product_id: UUID) -> ProductModel | None:
        product = self.db.get(ProductModel, product_id)
        if product is None or product.company_id != company_id:
            return None
        return product

    def find_by_code(self, company_id: UUID, code: str) -> ProductModel | None:
        code = code.strip().lower()
        stmt = (
            select(ProductModel)
            .where(
                ProductModel.company_id == company_id,
                or_(
                    func.lower(ProductModel.barcode) == code,
                    func.lower(ProductModel.sku) == code,
                ),
            )
            .order_by(ProductModel.name)
        )
        return self.db.execute(stmt).scalars().first()

    def fetch_stock_levels(self, company_id: UUID, product_ids: Iterable[UUID]) -> Dict[UUID, int]:
        """Current quantity per product; inactive products count as 0."""
        ids = list(product_ids)
        if not ids:
            return {}

        stmt = select(ProductModel.id, ProductModel.quantity, ProductModel.is_active).where(
            ProductModel.company_id == company_id,
            ProductModel.id.in_(ids),
        )
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Could not read stock levels", details={"company_id": str(company_id)}) from e

        return {row.id: (row.quantity if row.is_active else 0) for row in rows}

    def decrement_stock(self, company_id: UUID, product_id: UUID, quantity: int) -> int:
        """
        Conditional decrement, no commit.
        UPDATE products SET quantity = quantity - :q WHERE id = :id AND quantity >= :q
        Returns rowcount; 0 means the stock was not there anymore.
        """
        result = self.db.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.company_id == company_id,
                ProductModel.is_active.is_(True),
                ProductModel.quantity >= quantity,
            )
            .values(quantity=ProductModel.quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def get_quantity(self, product_id: UUID) -> int:
        value = self.db.execute(
            select(ProductModel.quantity).where(ProductModel.id == product_id)
        ).scalar_one_or_none()
        return value or 0
