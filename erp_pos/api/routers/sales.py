# erp_pos/api/routers/sales.py
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from erp_pos.api.deps import require_permission, to_http
from erp_pos.data.database import get_db
from erp_pos.domain.exceptions import PosException
from erp_pos.domain.schemas import CurrentUser, SaleDetailOut, SaleOut, SalesStatsOut
from erp_pos.services.history_service import SalesHistoryService
from erp_pos.services.stats_service import StatsService
from erp_pos.utils.settings import HISTORY_DEFAULT_LIMIT

router = APIRouter(prefix="/sales", tags=["sales"])

can_view = require_permission("sales", "view")


@router.get("", response_model=List[SaleOut])
def list_sales(
    limit: int = Query(HISTORY_DEFAULT_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
    user: CurrentUser = Depends(can_view),
    db: Session = Depends(get_db),
):
    """Recent transactions, newest first."""
    try:
        return SalesHistoryService(db).list_recent_transactions(user.company_id, limit=limit, offset=offset)
    except PosException as e:
        raise to_http(e)


@router.get("/stats", response_model=SalesStatsOut)
def sales_stats(
    tz: str | None = Query(None, description="IANA timezone used for 'today'"),
    user: CurrentUser = Depends(can_view),
    db: Session = Depends(get_db),
):
    try:
        return StatsService(db).compute_stats(user.company_id, tz=tz)
    except PosException as e:
        raise to_http(e)


@router.get("/{sale_id}", response_model=SaleDetailOut)
def get_sale(
    sale_id: UUID,
    user: CurrentUser = Depends(can_view),
    db: Session = Depends(get_db),
):
    """Sale header with its lines (receipt data)."""
    try:
        return SalesHistoryService(db).get_transaction(user.company_id, sale_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
