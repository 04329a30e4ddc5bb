# erp_pos/services/catalog_service.py
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from erp_pos.data.models.product import ProductModel
from erp_pos.domain.exceptions import CatalogItemNotFoundError
from erp_pos.repos.product_repo import ProductRepo


class CatalogService:
    """Read side of the inventory: what can be sold right now."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def list_sellable_items(self, company_id: UUID, filter_text: str | None = None) -> List[ProductModel]:
        """
        Active items with quantity > 0, ordered by name.
        filter_text matches name, SKU or category, case-insensitive.
        """
        items = self.repo.fetch_catalog_items(company_id, active_only=True, min_quantity=1)

        needle = (filter_text or "").strip().lower()
        if not needle:
            return items

        return [
            p for p in items
            if needle in p.name.lower()
            or needle in p.sku.lower()
            or (p.category and needle in p.category.lower())
        ]

    def get_sellable_item(self, company_id: UUID, product_id: UUID) -> ProductModel:
        product = self.repo.get_product(company_id, product_id)
        if not self._sellable(product):
            raise CatalogItemNotFoundError(product_id, company_id)
        return product

    def find_by_barcode(self, company_id: UUID, code: str) -> ProductModel:
        product = self.repo.find_by_code(company_id, code)
        if not self._sellable(product):
            raise CatalogItemNotFoundError(code, company_id)
        return product

    @staticmethod
    def _sellable(product: ProductModel | None) -> bool:
        return product is not None and bool(product.is_active) and product.quantity > 0
