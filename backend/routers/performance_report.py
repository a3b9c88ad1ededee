from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from crud.performance_report import build_performance_report
from database import get_db
from reports import write_performance_report_excel
from schemas.performance_report import PerformanceReport
from utils.tenancy import get_tenant_id

import logging
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/performance-report",
    tags=["Performance Report"],
)

@router.get("/{batch_id}", response_model=PerformanceReport)
def get_performance_report(batch_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return build_performance_report(db, batch_id, tenant_id=tenant_id)

@router.get("/{batch_id}/excel")
def get_performance_report_excel(batch_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    report = build_performance_report(db, batch_id, tenant_id=tenant_id)
    excel_file = write_performance_report_excel(report)
    filename = f"performance_report_{report.batch.batch_no}.xlsx"
    logger.info("Exporting performance report for batch %s", report.batch.batch_no)
    return StreamingResponse(
        excel_file,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )
