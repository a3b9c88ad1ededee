from pydantic import BaseModel
from datetime import date
from typing import Optional, Union


class MedicineCreate(BaseModel):
    entry_date: Union[date, str]
    medicine_name: str
    quantity: float
    unit_price: float
    dose: Optional[str] = None

class MedicineUpdate(BaseModel):
    entry_date: Optional[Union[date, str]] = None
    medicine_name: Optional[str] = None
    quantity: Optional[float] = None
    unit_price: Optional[float] = None
    dose: Optional[str] = None

class Medicine(BaseModel):
    id: int
    batch_id: int
    entry_date: date
    medicine_name: str
    dose: Optional[str] = None
    quantity: float
    unit_price: float
    total_cost: float

    class Config:
        from_attributes = True
