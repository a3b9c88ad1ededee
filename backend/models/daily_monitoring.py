from sqlalchemy import Column, Integer, Numeric, String, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base, LinkStatusMixin
from models.audit_mixin import TimestampMixin


class DailyMonitoring(Base, TimestampMixin, LinkStatusMixin):
    __tablename__ = "daily_monitoring"
    __table_args__ = (
        UniqueConstraint("batch_id", "record_date", name="uq_daily_monitoring_batch_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    batch_id = Column(Integer, ForeignKey("batch.id"), nullable=False, index=True)
    batch = relationship("Batch")
    record_date = Column(Date, nullable=False)
    age = Column(Integer, nullable=False)  # days since batch start, 0..55
    mortality = Column(Integer, default=0)
    feed_bags = Column(Numeric(12, 3, asdecimal=False), default=0)
    kg_per_bag = Column(Numeric(12, 3, asdecimal=False), default=0)
    feed_kg = Column(Numeric(14, 3, asdecimal=False), default=0)
    avg_weight = Column(Numeric(10, 3, asdecimal=False), default=0)
    remarks = Column(String, nullable=True)
