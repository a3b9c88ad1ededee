from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
import crud.batch as crud_batch
from crud.audit_log import get_audit_logs
from database import get_db
from schemas.batch import BatchClose, BatchCreate, BatchUpdate, Batch as BatchSchema
from utils import sqlalchemy_to_dict
from utils.tenancy import get_changed_by, get_tenant_id

# --- Logging Configuration (import and get logger) ---
import logging
logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/batches",
    tags=["Batches"],
)

@router.post("/", response_model=BatchSchema)
def create_batch(
    batch: BatchCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    changed_by: Optional[str] = Depends(get_changed_by)
):
    return crud_batch.create_batch(db=db, batch=batch, tenant_id=tenant_id, changed_by=changed_by)

@router.get("/", response_model=List[BatchSchema])
def read_batches(skip: int = 0, limit: int = 100, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    logger.info("Fetching batches with skip=%d, limit=%d", skip, limit)
    return crud_batch.get_all_batches(db, tenant_id=tenant_id, skip=skip, limit=limit)

@router.get("/active", response_model=Optional[BatchSchema])
def read_active_batch(db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_batch.get_active_batch(db, tenant_id=tenant_id)

@router.get("/{batch_id}", response_model=BatchSchema)
def read_batch(batch_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_batch.require_batch(db, batch_id, tenant_id)

@router.patch("/{batch_id}", response_model=BatchSchema)
def update_batch(
    batch_id: int,
    batch_data: BatchUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    changed_by: Optional[str] = Depends(get_changed_by)
):
    logger.info("Update batch called for batch_id=%d", batch_id)
    return crud_batch.update_batch(db, batch_id, batch_data, tenant_id=tenant_id, changed_by=changed_by)

@router.post("/{batch_id}/close", response_model=BatchSchema)
def close_batch(
    batch_id: int,
    close_data: Optional[BatchClose] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    changed_by: Optional[str] = Depends(get_changed_by)
):
    return crud_batch.close_batch(db, batch_id, close_data or BatchClose(), tenant_id=tenant_id, changed_by=changed_by)

@router.post("/{batch_id}/reopen", response_model=BatchSchema)
def reopen_batch(
    batch_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    changed_by: Optional[str] = Depends(get_changed_by)
):
    return crud_batch.reopen_batch(db, batch_id, tenant_id=tenant_id, changed_by=changed_by)

@router.get("/{batch_id}/history")
def read_batch_history(batch_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    crud_batch.require_batch(db, batch_id, tenant_id)
    return [sqlalchemy_to_dict(entry) for entry in get_audit_logs(db, tenant_id, 'batch', str(batch_id))]
