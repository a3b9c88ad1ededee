"""
Batch closing report.

Folds the daily monitoring log and the feed, medicine and sale ledgers of one
batch into the day-wise table, feed views, cost breakdown, G.C payout and the
closing-eligibility gates. Nothing here is stored; the report is rebuilt on
every request.
"""

import logging
import math
from typing import List, Optional

from sqlalchemy.orm import Session

from config import (
    MIN_CLOSING_AGE,
    MIN_RECORD_DAYS,
    OVERHEAD_PER_BIRD,
    SALES_TOLERANCE,
    TDS_RATE,
)
from crud.batch import require_batch
from crud.medicine import group_by_date
from models.daily_monitoring import DailyMonitoring
from models.feed import FeedTransaction
from models.medicine import MedicineEntry
from models.sale import Sale
from schemas.performance_report import (
    BatchHeader,
    DailyRow,
    FeedGrossView,
    FeedProcurementView,
    MedicineLine,
    Performance,
    PerformanceReport,
    RawCounts,
    SalesRollup,
    Validation,
)
from utils import round_kg, round_money
from utils.date_utils import age_in_days
from utils.gc_rates import gc_per_kg

logger = logging.getLogger(__name__)


def compute_tds(total_gc: Optional[float]) -> Optional[float]:
    if total_gc is None:
        return None
    return round_money(total_gc * TDS_RATE)

def build_daily_rows(records: List[DailyMonitoring], housed: int) -> List[DailyRow]:
    rows = []
    cumulative_mortality = 0
    cumulative_feed = 0.0
    for record in sorted(records, key=lambda r: r.record_date):
        mortality = int(record.mortality or 0)
        birds_at_start = max(0, housed - cumulative_mortality)
        cumulative_mortality += mortality
        feed_kg = float(record.feed_kg or 0)
        cumulative_feed += feed_kg
        rows.append(DailyRow(
            record_date=record.record_date,
            age=record.age,
            mortality=mortality,
            cumulative_mortality=cumulative_mortality,
            mortality_percent=round(cumulative_mortality / housed * 100, 2) if housed > 0 else 0.0,
            birds_at_start=birds_at_start,
            feed_bags=float(record.feed_bags or 0),
            feed_kg=round_kg(feed_kg),
            feed_per_bird=round(feed_kg / birds_at_start, 4) if birds_at_start > 0 else 0.0,
            cumulative_feed_kg=round_kg(cumulative_feed),
            cumulative_feed_per_bird=round(cumulative_feed / housed, 4) if housed > 0 else 0.0,
            avg_weight=float(record.avg_weight or 0),
            remarks=record.remarks
        ))
    return rows

def build_feed_views(entries: List[FeedTransaction]):
    """Return (gross view, procurement view) over the batch's feed transactions."""
    total_in = total_out = cost_in = cost_out = daily_usage_kg = 0.0
    manual_in = manual_out = manual_in_cost = manual_out_cost = 0.0
    for entry in entries:
        kg_in = float(entry.kg_in or 0)
        kg_out = float(entry.kg_out or 0)
        cost = float(entry.total_cost or 0)
        if kg_in > 0:
            total_in += kg_in
            cost_in += cost
            if not entry.is_daily_usage:
                manual_in += kg_in
                manual_in_cost += cost
        if kg_out > 0:
            total_out += kg_out
            cost_out += cost
            if entry.is_daily_usage:
                daily_usage_kg += kg_out
            else:
                manual_out += kg_out
                manual_out_cost += cost

    gross = FeedGrossView(
        total_in_kg=round_kg(total_in),
        total_out_kg=round_kg(total_out),
        daily_usage_kg=round_kg(daily_usage_kg),
        manual_out_kg=round_kg(manual_out),
        remaining_kg=round_kg(total_in - total_out),
        total_cost_in=round_money(cost_in),
        total_cost_out=round_money(cost_out),
        cost_remaining=round_money(cost_in - cost_out)
    )
    procurement = FeedProcurementView(
        in_kg=round_kg(manual_in),
        out_kg=round_kg(manual_out),
        in_cost=round_money(manual_in_cost),
        out_cost=round_money(manual_out_cost),
        net_kg=round_kg(manual_in - manual_out),
        net_cost=round_money(manual_in_cost - manual_out_cost)
    )
    return gross, procurement

def build_sales_rollup(sales: List[Sale], start_date) -> SalesRollup:
    total_birds = sum(int(sale.birds or 0) for sale in sales)
    total_weight = sum(float(sale.total_weight or 0) for sale in sales)

    # Sales on or before the start day carry no age and are left out of the weighted sum
    weighted_age = 0.0
    for sale in sales:
        if not sale.birds or sale.sale_date is None:
            continue
        age = age_in_days(start_date, sale.sale_date)
        if not math.isfinite(age) or age <= 0:
            continue
        weighted_age += sale.birds * age

    return SalesRollup(
        sale_count=len(sales),
        total_birds_sold=total_birds,
        total_weight_sold=round_kg(total_weight),
        avg_weight_per_bird=round(total_weight / total_birds, 3) if total_birds > 0 else 0.0,
        mean_sale_age=round(weighted_age / total_birds, 1) if total_birds > 0 and weighted_age > 0 else None
    )

def build_performance(housed: int, price_per_chick: float, total_mortality: int,
                      procurement: FeedProcurementView, medicine_cost: float, sales: SalesRollup) -> Performance:
    expected_birds_sold = max(0, housed - total_mortality)
    short_excess = sales.total_birds_sold - expected_birds_sold
    weight_sold = sales.total_weight_sold

    chick_cost = round_money(housed * price_per_chick)
    feed_cost = procurement.net_cost
    medicine_cost = round_money(medicine_cost)
    overhead = round_money(housed * OVERHEAD_PER_BIRD)
    total_cost = round_money(chick_cost + feed_cost + medicine_cost + overhead)

    production_cost = total_cost / weight_sold if weight_sold > 0 else None
    rate = gc_per_kg(production_cost)
    total_gc = round_money(rate * weight_sold) if rate is not None and weight_sold > 0 else None
    tds = compute_tds(total_gc)
    net_gc = round_money(total_gc - tds) if total_gc is not None else None

    return Performance(
        housed_chicks=housed,
        total_mortality=total_mortality,
        mortality_percent=round(total_mortality / housed * 100, 2) if housed > 0 else 0.0,
        expected_birds_sold=expected_birds_sold,
        short_excess=short_excess,
        cumulative_feed_per_bird=round(procurement.net_kg / expected_birds_sold, 4) if expected_birds_sold > 0 else None,
        fcr=round(procurement.net_kg / weight_sold, 3) if weight_sold > 0 else None,
        chick_cost=chick_cost,
        feed_cost=feed_cost,
        medicine_cost=medicine_cost,
        overhead=overhead,
        total_cost=total_cost,
        production_cost_per_kg=round_money(production_cost) if production_cost is not None else None,
        gc_per_kg=rate,
        total_gc=total_gc,
        tds=tds,
        net_gc=net_gc,
        final_amount=net_gc
    )

def build_validation(rows: List[DailyRow], short_excess: int, latest_age: Optional[int]) -> Validation:
    has_min_records = len(rows) >= MIN_RECORD_DAYS
    sales_matches_inventory = abs(short_excess) <= SALES_TOLERANCE
    return Validation(
        min_record_days=MIN_RECORD_DAYS,
        record_count=len(rows),
        has_min_records=has_min_records,
        tolerance=SALES_TOLERANCE,
        sales_delta=short_excess,
        sales_matches_inventory=sales_matches_inventory,
        performance_ready=has_min_records or sales_matches_inventory,
        min_closing_age=MIN_CLOSING_AGE,
        latest_age=latest_age,
        can_close=latest_age is not None and latest_age >= MIN_CLOSING_AGE
    )

def build_performance_report(db: Session, batch_id: int, tenant_id: str) -> PerformanceReport:
    db_batch = require_batch(db, batch_id, tenant_id)
    housed = int(db_batch.housed_count or 0)

    records = db.query(DailyMonitoring).filter(DailyMonitoring.batch_id == batch_id).order_by(DailyMonitoring.record_date).all()
    feed_entries = db.query(FeedTransaction).filter(FeedTransaction.batch_id == batch_id).all()
    medicines = db.query(MedicineEntry).filter(MedicineEntry.batch_id == batch_id).all()
    sales = db.query(Sale).filter(Sale.batch_id == batch_id).order_by(Sale.sale_date).all()

    rows = build_daily_rows(records, housed)
    total_mortality = rows[-1].cumulative_mortality if rows else 0
    gross, procurement = build_feed_views(feed_entries)
    sales_rollup = build_sales_rollup(sales, db_batch.start_date)
    medicine_cost = sum(float(m.total_cost or 0) for m in medicines)
    performance = build_performance(
        housed, float(db_batch.price_per_chick or 0), total_mortality, procurement, medicine_cost, sales_rollup
    )
    latest_age = max((r.age for r in records), default=None)

    medicine_by_date = {
        day: [MedicineLine.model_validate(m, from_attributes=True) for m in entries]
        for day, entries in group_by_date(medicines).items()
    }

    report = PerformanceReport(
        batch=BatchHeader.model_validate(db_batch, from_attributes=True),
        remaining_chicks=max(0, housed - total_mortality - sales_rollup.total_birds_sold),
        rows=rows,
        feed=gross,
        procurement=procurement,
        medicine_by_date=medicine_by_date,
        sales=sales_rollup,
        performance=performance,
        validation=build_validation(rows, performance.short_excess, latest_age),
        raw_counts=RawCounts(
            daily_records=len(records),
            feed_entries=len(feed_entries),
            medicines=len(medicines),
            sales=len(sales)
        )
    )
    logger.debug("Built performance report for batch %s: %d rows", db_batch.batch_no, len(rows))
    return report
