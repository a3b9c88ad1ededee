from pydantic import BaseModel, computed_field
from datetime import date
from typing import Optional, Union


class SaleCreate(BaseModel):
    sale_date: Union[date, str]
    vehicle_no: str = ""
    cages: float = 0
    birds: float
    empty_weight: float = 0
    load_weight: float
    remarks: Optional[str] = None

class SaleUpdate(BaseModel):
    sale_date: Optional[Union[date, str]] = None
    vehicle_no: Optional[str] = None
    cages: Optional[float] = None
    birds: Optional[float] = None
    empty_weight: Optional[float] = None
    load_weight: Optional[float] = None
    remarks: Optional[str] = None

class Sale(BaseModel):
    id: int
    batch_id: int
    sale_date: date
    vehicle_no: Optional[str] = ""
    cages: int = 0
    birds: int
    empty_weight: float = 0
    load_weight: float
    total_weight: float
    remarks: Optional[str] = None

    class Config:
        from_attributes = True

class RemainingBirds(BaseModel):
    batch_id: int
    housed_count: int
    total_mortality: int
    total_sold: int
    remaining: int

    @computed_field
    def sellable(self) -> bool:
        return self.remaining > 0
