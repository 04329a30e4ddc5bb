# erp_pos/api/routers/catalog.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from erp_pos.api.deps import require_permission, to_http
from erp_pos.data.database import get_db
from erp_pos.domain.exceptions import PosException
from erp_pos.domain.schemas import CatalogItemOut, CurrentUser
from erp_pos.services.catalog_service import CatalogService

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/items", response_model=List[CatalogItemOut])
def list_items(
    q: str | None = Query(None, description="Filter by name, SKU or category"),
    user: CurrentUser = Depends(require_permission("sales", "view")),
    db: Session = Depends(get_db),
):
    try:
        return CatalogService(db).list_sellable_items(user.company_id, q)
    except PosException as e:
        raise to_http(e)


@router.get("/items/lookup", response_model=CatalogItemOut)
def lookup_item(
    code: str = Query(..., min_length=1, description="Barcode or SKU"),
    user: CurrentUser = Depends(require_permission("sales", "view")),
    db: Session = Depends(get_db),
):
    try:
        return CatalogService(db).find_by_barcode(user.company_id, code)
    except PosException as e:
        raise to_http(e)
