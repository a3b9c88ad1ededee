from pydantic import BaseModel
from datetime import date
from typing import Optional, Union


class FeedEntryCreate(BaseModel):
    feed_type: str
    entry_date: Union[date, str]
    bags: float
    kg_per_bag: float
    unit_price: float

class FeedEntryUpdate(BaseModel):
    feed_type: Optional[str] = None
    entry_date: Optional[Union[date, str]] = None
    bags_in: Optional[float] = None
    bags_out: Optional[float] = None
    kg_per_bag: Optional[float] = None
    unit_price: Optional[float] = None

class FeedEntry(BaseModel):
    id: int
    batch_id: int
    feed_type: str
    entry_date: date
    bags_in: float = 0
    bags_out: float = 0
    kg_per_bag: float = 0
    kg_in: float = 0
    kg_out: float = 0
    unit_price: float = 0
    total_cost: float = 0
    daily_record_id: Optional[int] = None
    is_daily_usage: bool = False

    class Config:
        from_attributes = True

class FeedBalance(BaseModel):
    batch_id: int
    feed_type: Optional[str] = None
    available_kg: float
