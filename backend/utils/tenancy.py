from typing import Optional

from fastapi import Header, HTTPException

def get_tenant_id(x_tenant_id: str = Header(...)) -> str:
    if not x_tenant_id or not x_tenant_id.strip():
        raise HTTPException(status_code=400, detail="X-Tenant-ID header is missing")
    return x_tenant_id.strip()

def get_changed_by(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Identity recorded in created_by / updated_by and the audit log."""
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None
