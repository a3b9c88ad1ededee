from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
import crud.medicine as crud_medicine
from database import get_db
from schemas.medicine import MedicineCreate, MedicineUpdate, Medicine as MedicineSchema
from utils.tenancy import get_changed_by, get_tenant_id

import logging
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/medicine",
    tags=["Medicine"],
)

@router.get("/{batch_id}", response_model=List[MedicineSchema])
def list_medicines(batch_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_medicine.list_medicines(db, batch_id, tenant_id=tenant_id)

@router.post("/{batch_id}", response_model=MedicineSchema)
def record_medicine(
    batch_id: int,
    medicine: MedicineCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    changed_by: Optional[str] = Depends(get_changed_by)
):
    return crud_medicine.record_medicine(db, batch_id, medicine, tenant_id=tenant_id, changed_by=changed_by)

@router.patch("/entries/{entry_id}", response_model=MedicineSchema)
def update_medicine(
    entry_id: int,
    medicine_data: MedicineUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    changed_by: Optional[str] = Depends(get_changed_by)
):
    logger.info("Update medicine entry called for entry_id=%d", entry_id)
    return crud_medicine.update_medicine(db, entry_id, medicine_data, tenant_id=tenant_id, changed_by=changed_by)
