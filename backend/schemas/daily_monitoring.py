from pydantic import BaseModel
from datetime import date
from typing import Optional, Union


class DailyMonitoringCreate(BaseModel):
    record_date: Union[date, str]
    mortality: float = 0
    feed_bags: float = 0
    kg_per_bag: float = 0
    avg_weight: float = 0
    remarks: Optional[str] = None

class DailyMonitoringUpdate(BaseModel):
    mortality: Optional[float] = None
    feed_bags: Optional[float] = None
    kg_per_bag: Optional[float] = None
    avg_weight: Optional[float] = None
    remarks: Optional[str] = None

class DailyMonitoring(BaseModel):
    id: int
    batch_id: int
    record_date: date
    age: int
    mortality: int = 0
    feed_bags: float = 0
    kg_per_bag: float = 0
    feed_kg: float = 0
    avg_weight: float = 0
    remarks: Optional[str] = None

    class Config:
        from_attributes = True

class NextRequiredDate(BaseModel):
    batch_id: int
    next_required_date: date
    next_age: int
