from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from crud.overview import get_tenant_overview
from database import get_db
from schemas.overview import TenantOverview
from utils.tenancy import get_tenant_id

router = APIRouter(
    prefix="/overview",
    tags=["Overview"],
)

@router.get("/", response_model=TenantOverview)
def read_overview(db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return get_tenant_overview(db, tenant_id)
