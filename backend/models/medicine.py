from sqlalchemy import Column, Integer, Numeric, String, Date, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class MedicineEntry(Base, TimestampMixin):
    __tablename__ = "medicine_entry"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    batch_id = Column(Integer, ForeignKey("batch.id"), nullable=False, index=True)
    batch = relationship("Batch")
    entry_date = Column(Date, nullable=False)
    medicine_name = Column(String, nullable=False)
    dose = Column(String, nullable=True)  # free text, e.g. "1 ml / litre"
    quantity = Column(Numeric(12, 3, asdecimal=False), nullable=False)
    unit_price = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    total_cost = Column(Numeric(14, 2, asdecimal=False), nullable=False)
