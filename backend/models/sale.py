from sqlalchemy import Column, Integer, Numeric, String, Date, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class Sale(Base, TimestampMixin):
    __tablename__ = "sale"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    batch_id = Column(Integer, ForeignKey("batch.id"), nullable=False, index=True)
    batch = relationship("Batch")
    sale_date = Column(Date, nullable=False)
    vehicle_no = Column(String, default="")
    cages = Column(Integer, default=0)
    birds = Column(Integer, nullable=False)
    empty_weight = Column(Numeric(12, 3, asdecimal=False), default=0)
    load_weight = Column(Numeric(12, 3, asdecimal=False), nullable=False)
    total_weight = Column(Numeric(12, 3, asdecimal=False), nullable=False)  # load - empty, kg
    remarks = Column(String, nullable=True)
