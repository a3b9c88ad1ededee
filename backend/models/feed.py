from sqlalchemy import Column, Integer, Numeric, String, Date, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.ext.hybrid import hybrid_property
from database import Base
from models.audit_mixin import TimestampMixin


class FeedTransaction(Base, TimestampMixin):
    __tablename__ = "feed_transaction"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    batch_id = Column(Integer, ForeignKey("batch.id"), nullable=False, index=True)
    batch = relationship("Batch")
    feed_type = Column(String, nullable=False)
    type_key = Column(String, index=True)
    entry_date = Column(Date, nullable=False)
    bags_in = Column(Numeric(12, 3, asdecimal=False), default=0)
    bags_out = Column(Numeric(12, 3, asdecimal=False), default=0)
    kg_per_bag = Column(Numeric(12, 3, asdecimal=False), default=0)
    kg_in = Column(Numeric(14, 3, asdecimal=False), default=0)
    kg_out = Column(Numeric(14, 3, asdecimal=False), default=0)
    unit_price = Column(Numeric(12, 2, asdecimal=False), default=0)
    total_cost = Column(Numeric(14, 2, asdecimal=False), default=0)
    # Set only on automatic withdrawals spawned by a daily monitoring record
    daily_record_id = Column(Integer, ForeignKey("daily_monitoring.id"), nullable=True, unique=True, index=True)

    @hybrid_property
    def is_daily_usage(self):
        return self.daily_record_id is not None

    @is_daily_usage.expression
    def is_daily_usage(cls):
        return cls.daily_record_id.isnot(None)

    @property
    def net_kg(self):
        return (self.kg_in or 0) - (self.kg_out or 0)
