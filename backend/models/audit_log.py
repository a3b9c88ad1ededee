from sqlalchemy import Column, Integer, String, DateTime, JSON
from database import Base
from models.audit_mixin import _now


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True)
    table_name = Column(String, nullable=False)
    record_id = Column(String, nullable=False)
    changed_at = Column(DateTime(timezone=True), default=_now)
    changed_by = Column(String, nullable=True)
    action = Column(String, nullable=False)  # e.g., 'CREATE', 'UPDATE', 'CLOSE', 'REOPEN'
    old_values = Column(JSON)
    new_values = Column(JSON)
