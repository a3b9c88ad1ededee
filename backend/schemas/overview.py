from pydantic import BaseModel
from typing import List, Optional

from schemas.batch import Batch
from schemas.daily_monitoring import DailyMonitoring
from schemas.feed import FeedEntry
from schemas.medicine import Medicine
from schemas.sale import Sale


class BatchStats(BaseModel):
    total_feed_kg: float = 0
    total_mortality: int = 0
    total_sales_kg: float = 0
    total_sales_birds: int = 0

class BatchBucket(BaseModel):
    batch: Batch
    stats: BatchStats
    daily_entries: List[DailyMonitoring] = []
    feed_entries: List[FeedEntry] = []
    medicine_entries: List[Medicine] = []
    sales_entries: List[Sale] = []

class TenantOverview(BaseModel):
    tenant_id: str
    active_batch_no: Optional[str] = None
    batches: List[BatchBucket] = []
