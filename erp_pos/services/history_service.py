# erp_pos/services/history_service.py
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from erp_pos.data.models.sale import SaleModel
from erp_pos.repos.sale_repo import SaleRepo
from erp_pos.utils.settings import HISTORY_DEFAULT_LIMIT, HISTORY_MAX_LIMIT


class SalesHistoryService:
    """Read-back of committed sales, newest first."""

    def __init__(self, db: Session, max_limit: int = HISTORY_MAX_LIMIT):
        self.repo = SaleRepo(db)
        self.max_limit = max_limit

    def list_recent_transactions(
        self,
        company_id: UUID,
        limit: int = HISTORY_DEFAULT_LIMIT,
        offset: int = 0,
    ) -> List[SaleModel]:
        limit = max(1, min(int(limit), self.max_limit))
        offset = max(0, int(offset))
        return self.repo.fetch_sales(company_id, limit=limit, offset=offset)

    def get_transaction(self, company_id: UUID, sale_id: UUID) -> SaleModel:
        sale = self.repo.get_sale(company_id, sale_id)
        if not sale:
            raise ValueError("Sale not found")
        return sale
