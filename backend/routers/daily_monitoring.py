from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
import crud.daily_monitoring as crud_daily
from database import get_db
from schemas.daily_monitoring import (
    DailyMonitoringCreate,
    DailyMonitoringUpdate,
    DailyMonitoring as DailyMonitoringSchema,
    NextRequiredDate,
)
from utils.tenancy import get_changed_by, get_tenant_id

import logging
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/daily-monitoring",
    tags=["Daily Monitoring"],
)

@router.get("/{batch_id}/next-date", response_model=NextRequiredDate)
def next_required_date(batch_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_daily.get_next_required(db, batch_id, tenant_id=tenant_id)

@router.get("/{batch_id}", response_model=List[DailyMonitoringSchema])
def list_daily_records(batch_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_daily.list_daily_records(db, batch_id, tenant_id=tenant_id)

@router.post("/{batch_id}", response_model=DailyMonitoringSchema)
def create_daily_record(
    batch_id: int,
    record: DailyMonitoringCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    changed_by: Optional[str] = Depends(get_changed_by)
):
    return crud_daily.create_daily_record(db, batch_id, record, tenant_id=tenant_id, changed_by=changed_by)

@router.patch("/records/{record_id}", response_model=DailyMonitoringSchema)
def update_daily_record(
    record_id: int,
    record_data: DailyMonitoringUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    changed_by: Optional[str] = Depends(get_changed_by)
):
    logger.info("Update daily record called for record_id=%d", record_id)
    return crud_daily.update_daily_record(db, record_id, record_data, tenant_id=tenant_id, changed_by=changed_by)
