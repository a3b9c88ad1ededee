from sqlalchemy.orm import Session

from models.batch import Batch
from models.daily_monitoring import DailyMonitoring
from models.feed import FeedTransaction
from models.medicine import MedicineEntry
from models.sale import Sale
from schemas.batch import Batch as BatchSchema
from schemas.daily_monitoring import DailyMonitoring as DailyMonitoringSchema
from schemas.feed import FeedEntry as FeedEntrySchema
from schemas.medicine import Medicine as MedicineSchema
from schemas.overview import BatchBucket, BatchStats, TenantOverview
from schemas.sale import Sale as SaleSchema
from utils import round_kg


def _group(rows):
    grouped = {}
    for row in rows:
        grouped.setdefault(row.batch_id, []).append(row)
    return grouped

def get_tenant_overview(db: Session, tenant_id: str) -> TenantOverview:
    """
    Every batch of one owner with its ledger entries and quick totals,
    newest batch first.
    """
    batches = db.query(Batch).filter(Batch.tenant_id == tenant_id).order_by(Batch.start_date.desc(), Batch.id.desc()).all()

    daily = _group(db.query(DailyMonitoring).filter(DailyMonitoring.tenant_id == tenant_id).order_by(DailyMonitoring.record_date).all())
    feed = _group(db.query(FeedTransaction).filter(FeedTransaction.tenant_id == tenant_id).order_by(FeedTransaction.entry_date, FeedTransaction.id).all())
    medicines = _group(db.query(MedicineEntry).filter(MedicineEntry.tenant_id == tenant_id).order_by(MedicineEntry.entry_date, MedicineEntry.id).all())
    sales = _group(db.query(Sale).filter(Sale.tenant_id == tenant_id).order_by(Sale.sale_date, Sale.id).all())

    buckets = []
    active_batch_no = None
    for db_batch in batches:
        if db_batch.is_active and active_batch_no is None:
            active_batch_no = db_batch.batch_no
        batch_daily = daily.get(db_batch.id, [])
        batch_feed = feed.get(db_batch.id, [])
        batch_sales = sales.get(db_batch.id, [])
        stats = BatchStats(
            total_feed_kg=round_kg(sum(float(r.feed_kg or 0) for r in batch_daily)),
            total_mortality=sum(int(r.mortality or 0) for r in batch_daily),
            total_sales_kg=round_kg(sum(float(s.total_weight or 0) for s in batch_sales)),
            total_sales_birds=sum(int(s.birds or 0) for s in batch_sales)
        )
        buckets.append(BatchBucket(
            batch=BatchSchema.model_validate(db_batch),
            stats=stats,
            daily_entries=[DailyMonitoringSchema.model_validate(r) for r in batch_daily],
            feed_entries=[FeedEntrySchema.model_validate(f) for f in batch_feed],
            medicine_entries=[MedicineSchema.model_validate(m) for m in medicines.get(db_batch.id, [])],
            sales_entries=[SaleSchema.model_validate(s) for s in batch_sales]
        ))

    return TenantOverview(tenant_id=tenant_id, active_batch_no=active_batch_no, batches=buckets)
