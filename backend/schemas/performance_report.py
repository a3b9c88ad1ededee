from pydantic import BaseModel
from datetime import date
from typing import Dict, List, Optional


class DailyRow(BaseModel):
    record_date: date
    age: int
    mortality: int
    cumulative_mortality: int
    mortality_percent: float
    birds_at_start: int
    feed_bags: float
    feed_kg: float
    feed_per_bird: float
    cumulative_feed_kg: float
    cumulative_feed_per_bird: float
    avg_weight: float
    remarks: Optional[str] = None

class FeedGrossView(BaseModel):
    """Every ledger entry, daily usage included."""
    total_in_kg: float
    total_out_kg: float
    daily_usage_kg: float
    manual_out_kg: float
    remaining_kg: float
    total_cost_in: float
    total_cost_out: float
    cost_remaining: float

class FeedProcurementView(BaseModel):
    """Manual purchases and withdrawals only."""
    in_kg: float
    out_kg: float
    in_cost: float
    out_cost: float
    net_kg: float
    net_cost: float

class MedicineLine(BaseModel):
    id: int
    medicine_name: str
    dose: Optional[str] = None
    quantity: float
    unit_price: float
    total_cost: float

class SalesRollup(BaseModel):
    sale_count: int
    total_birds_sold: int
    total_weight_sold: float
    avg_weight_per_bird: float
    mean_sale_age: Optional[float] = None

class Performance(BaseModel):
    housed_chicks: int
    total_mortality: int
    mortality_percent: float
    expected_birds_sold: int
    short_excess: int
    cumulative_feed_per_bird: Optional[float] = None
    fcr: Optional[float] = None
    chick_cost: float
    feed_cost: float
    medicine_cost: float
    overhead: float
    total_cost: float
    production_cost_per_kg: Optional[float] = None
    gc_per_kg: Optional[float] = None
    total_gc: Optional[float] = None
    tds: Optional[float] = None
    net_gc: Optional[float] = None
    final_amount: Optional[float] = None

class Validation(BaseModel):
    min_record_days: int
    record_count: int
    has_min_records: bool
    tolerance: int
    sales_delta: int
    sales_matches_inventory: bool
    performance_ready: bool
    min_closing_age: int
    latest_age: Optional[int] = None
    can_close: bool

class BatchHeader(BaseModel):
    id: int
    batch_no: str
    start_date: date
    status: str
    housed_count: int
    price_per_chick: float

class RawCounts(BaseModel):
    daily_records: int
    feed_entries: int
    medicines: int
    sales: int

class PerformanceReport(BaseModel):
    batch: BatchHeader
    remaining_chicks: int
    rows: List[DailyRow]
    feed: FeedGrossView
    procurement: FeedProcurementView
    medicine_by_date: Dict[str, List[MedicineLine]]
    sales: SalesRollup
    performance: Performance
    validation: Validation
    raw_counts: RawCounts
