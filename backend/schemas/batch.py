from typing import Optional
from pydantic import BaseModel, validator
from datetime import date, datetime


class BatchBase(BaseModel):
    start_date: date
    housed_count: int
    price_per_chick: float = 0
    remarks: Optional[str] = None

    @validator('housed_count')
    def validate_housed_count(cls, v):
        if v <= 0:
            raise ValueError('Housed count must be greater than 0')
        return v

    @validator('price_per_chick')
    def validate_price_per_chick(cls, v):
        if v < 0:
            raise ValueError('Price per chick must be greater than or equal to 0')
        return v

class BatchCreate(BatchBase):
    # Generated as BATCH-YYYYMMDD-XXXXXX when omitted
    batch_no: Optional[str] = None

class BatchUpdate(BaseModel):
    price_per_chick: Optional[float] = None
    remarks: Optional[str] = None

class BatchClose(BaseModel):
    close_remarks: Optional[str] = None

class Batch(BatchBase):
    id: int
    tenant_id: Optional[str] = None
    batch_no: str
    status: str
    close_remarks: Optional[str] = None
    closed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
