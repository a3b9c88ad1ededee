from sqlalchemy import Column, Integer, Numeric, String, Date, DateTime, UniqueConstraint
from sqlalchemy.ext.hybrid import hybrid_property
from database import Base
from models.audit_mixin import TimestampMixin

BATCH_ACTIVE = "active"
BATCH_CLOSED = "closed"


class Batch(Base, TimestampMixin):
    __tablename__ = "batch"
    __table_args__ = (
        UniqueConstraint("tenant_id", "batch_no", name="uq_batch_tenant_batch_no"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    batch_no = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    housed_count = Column(Integer, nullable=False)
    price_per_chick = Column(Numeric(12, 2, asdecimal=False), default=0)
    status = Column(String, nullable=False, default=BATCH_ACTIVE, index=True)
    remarks = Column(String, nullable=True)
    close_remarks = Column(String, nullable=True)
    closed_at = Column(DateTime(timezone=True), nullable=True)

    @hybrid_property
    def is_active(self):
        return self.status == BATCH_ACTIVE

    @is_active.expression
    def is_active(cls):
        return cls.status == BATCH_ACTIVE
