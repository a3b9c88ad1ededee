from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
import crud.sale as crud_sale
from database import get_db
from schemas.sale import RemainingBirds, SaleCreate, SaleUpdate, Sale as SaleSchema
from utils.tenancy import get_changed_by, get_tenant_id

import logging
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/sales",
    tags=["Sales"],
)

@router.get("/{batch_id}/remaining", response_model=RemainingBirds)
def remaining_birds(batch_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_sale.get_remaining(db, batch_id, tenant_id=tenant_id)

@router.get("/{batch_id}", response_model=List[SaleSchema])
def list_sales(batch_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_sale.list_sales(db, batch_id, tenant_id=tenant_id)

@router.post("/{batch_id}", response_model=SaleSchema)
def record_sale(
    batch_id: int,
    sale: SaleCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    changed_by: Optional[str] = Depends(get_changed_by)
):
    return crud_sale.record_sale(db, batch_id, sale, tenant_id=tenant_id, changed_by=changed_by)

@router.patch("/entries/{sale_id}", response_model=SaleSchema)
def update_sale(
    sale_id: int,
    sale_data: SaleUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    changed_by: Optional[str] = Depends(get_changed_by)
):
    logger.info("Update sale called for sale_id=%d", sale_id)
    return crud_sale.update_sale(db, sale_id, sale_data, tenant_id=tenant_id, changed_by=changed_by)
