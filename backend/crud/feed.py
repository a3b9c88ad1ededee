import logging
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from config import DAILY_USAGE_FEED_TYPE, DAILY_USAGE_TYPE_KEY, FEED_EPSILON
from crud.batch import locked_batch, require_batch
from exceptions import InsufficientStock, InvalidInput, NotFound
from models.daily_monitoring import DailyMonitoring
from models.feed import FeedTransaction
from schemas.feed import FeedEntryCreate, FeedEntryUpdate
from utils import round_kg, round_money
from utils.date_utils import validate_entry_date
from utils.validation import require_positive, require_text

logger = logging.getLogger(__name__)


def _normalize_type(value) -> Tuple[str, str]:
    display = require_text(value, "feed_type")
    if display.lower() == DAILY_USAGE_TYPE_KEY:
        raise InvalidInput(f"'{DAILY_USAGE_FEED_TYPE}' is reserved for entries posted by daily monitoring")
    return display, display.lower()

def _priced_quantity(bags, kg_per_bag, unit_price, bags_label: str):
    """Validate a bag-based movement and return (bags, kg_per_bag, unit_price, kg, cost)."""
    bags = require_positive(bags, bags_label)
    kg_per_bag = require_positive(kg_per_bag, "kg_per_bag")
    unit_price = require_positive(unit_price, "unit_price")
    kg = round_kg(bags * kg_per_bag)
    if kg <= 0:
        raise InvalidInput("Computed kg must be greater than 0")
    return bags, kg_per_bag, unit_price, kg, round_money(kg * unit_price)

def get_feed_totals(db: Session, batch_id: int, feed_type: Optional[str] = None) -> Tuple[float, float]:
    query = db.query(
        func.coalesce(func.sum(FeedTransaction.kg_in), 0),
        func.coalesce(func.sum(FeedTransaction.kg_out), 0)
    ).filter(FeedTransaction.batch_id == batch_id)
    if feed_type:
        query = query.filter(FeedTransaction.type_key == feed_type.strip().lower())
    total_in, total_out = query.one()
    return float(total_in or 0), float(total_out or 0)

def get_feed_balance(db: Session, batch_id: int, feed_type: Optional[str] = None) -> float:
    """
    Available feed in kg for a batch: sum(kg_in) - sum(kg_out).

    Feed types are treated as interchangeable; the optional feed_type filter
    is for display and is never used for withdrawal checks.
    """
    total_in, total_out = get_feed_totals(db, batch_id, feed_type)
    return round_kg(total_in - total_out)

def ensure_available(db: Session, batch_id: int, required_kg: float, credit_kg: float = 0.0, label: str = "feed"):
    """
    Raise InsufficientStock unless required_kg fits in the current balance.
    credit_kg is added back first, for edits that replace an earlier withdrawal.
    """
    available = round_kg(get_feed_balance(db, batch_id) + credit_kg)
    if required_kg > available + FEED_EPSILON:
        logger.warning("Rejected %s of %.3f kg on batch %d: only %.3f kg available", label, required_kg, batch_id, available)
        raise InsufficientStock(
            f"Only {max(available, 0):.2f} kg available, {required_kg:.3f} kg requested",
            available_kg=max(available, 0.0)
        )
    return available

def get_feed_entry(db: Session, entry_id: int, tenant_id: str):
    return db.query(FeedTransaction).filter(FeedTransaction.id == entry_id, FeedTransaction.tenant_id == tenant_id).first()

def list_feed_entries(db: Session, batch_id: int, tenant_id: str):
    require_batch(db, batch_id, tenant_id)
    return db.query(FeedTransaction).filter(
        FeedTransaction.batch_id == batch_id,
        FeedTransaction.tenant_id == tenant_id
    ).order_by(FeedTransaction.entry_date.desc(), FeedTransaction.id.desc()).all()

def record_feed_in(db: Session, batch_id: int, entry: FeedEntryCreate, tenant_id: str, changed_by: str = None):
    """Record a feed purchase. Inflows need no balance check."""
    feed_type, type_key = _normalize_type(entry.feed_type)
    bags, kg_per_bag, unit_price, kg_in, total_cost = _priced_quantity(entry.bags, entry.kg_per_bag, entry.unit_price, "bags_in")

    with locked_batch(db, batch_id, tenant_id) as db_batch:
        entry_date = validate_entry_date(entry.entry_date, db_batch.start_date, "entry_date")
        db_entry = FeedTransaction(
            tenant_id=tenant_id,
            batch_id=batch_id,
            feed_type=feed_type,
            type_key=type_key,
            entry_date=entry_date,
            bags_in=bags,
            kg_per_bag=kg_per_bag,
            kg_in=kg_in,
            unit_price=unit_price,
            total_cost=total_cost,
            created_by=changed_by,
            updated_by=changed_by
        )
        db.add(db_entry)
        db.commit()
        db.refresh(db_entry)

    logger.info("Feed in: %.3f kg of %s for batch %d", kg_in, feed_type, batch_id)
    return db_entry

def record_feed_out(db: Session, batch_id: int, entry: FeedEntryCreate, tenant_id: str, changed_by: str = None):
    """Record a manual feed withdrawal; rejected when it exceeds the batch balance."""
    feed_type, type_key = _normalize_type(entry.feed_type)
    bags, kg_per_bag, unit_price, kg_out, total_cost = _priced_quantity(entry.bags, entry.kg_per_bag, entry.unit_price, "bags_out")

    with locked_batch(db, batch_id, tenant_id) as db_batch:
        entry_date = validate_entry_date(entry.entry_date, db_batch.start_date, "entry_date")
        ensure_available(db, batch_id, kg_out, label=f"feed out ({feed_type})")
        db_entry = FeedTransaction(
            tenant_id=tenant_id,
            batch_id=batch_id,
            feed_type=feed_type,
            type_key=type_key,
            entry_date=entry_date,
            bags_out=bags,
            kg_per_bag=kg_per_bag,
            kg_out=kg_out,
            unit_price=unit_price,
            total_cost=total_cost,
            created_by=changed_by,
            updated_by=changed_by
        )
        db.add(db_entry)
        db.commit()
        db.refresh(db_entry)

    logger.info("Feed out: %.3f kg of %s for batch %d", kg_out, feed_type, batch_id)
    return db_entry

def update_feed_entry(db: Session, entry_id: int, entry_data: FeedEntryUpdate, tenant_id: str, changed_by: str = None):
    """
    Edit a manual feed entry. kg and cost are recomputed from the new bag
    values, and the batch balance must stay non-negative once the old
    movement is replaced by the new one.
    """
    db_entry = get_feed_entry(db, entry_id, tenant_id)
    if db_entry is None:
        raise NotFound(f"Feed entry {entry_id} not found")
    if db_entry.is_daily_usage:
        raise InvalidInput("Daily usage entries follow their daily monitoring record; edit the record instead")

    update_data = entry_data.model_dump(exclude_unset=True)
    is_inflow = (db_entry.kg_in or 0) > 0

    with locked_batch(db, db_entry.batch_id, tenant_id) as db_batch:
        if is_inflow and update_data.get("bags_out") is not None:
            raise InvalidInput("bags_out cannot be set on a feed-in entry")
        if not is_inflow and update_data.get("bags_in") is not None:
            raise InvalidInput("bags_in cannot be set on a feed-out entry")

        bags = update_data.get("bags_in" if is_inflow else "bags_out")
        if bags is None:
            bags = db_entry.bags_in if is_inflow else db_entry.bags_out
        kg_per_bag = update_data.get("kg_per_bag")
        if kg_per_bag is None:
            kg_per_bag = db_entry.kg_per_bag
        unit_price = update_data.get("unit_price")
        if unit_price is None:
            unit_price = db_entry.unit_price
        bags, kg_per_bag, unit_price, kg, total_cost = _priced_quantity(
            bags, kg_per_bag, unit_price, "bags_in" if is_inflow else "bags_out"
        )

        entry_date = db_entry.entry_date
        if update_data.get("entry_date") is not None:
            entry_date = validate_entry_date(update_data["entry_date"], db_batch.start_date, "entry_date")
        feed_type, type_key = db_entry.feed_type, db_entry.type_key
        if update_data.get("feed_type") is not None:
            feed_type, type_key = _normalize_type(update_data["feed_type"])

        old_net = db_entry.net_kg
        new_net = kg if is_inflow else -kg
        balance_after = get_feed_balance(db, db_entry.batch_id) - old_net + new_net
        if balance_after < -FEED_EPSILON:
            available = round_kg(get_feed_balance(db, db_entry.batch_id) - old_net)
            logger.warning("Rejected edit of feed entry %d: balance would become %.3f kg", entry_id, balance_after)
            raise InsufficientStock(
                f"Edit would leave the batch {abs(round_kg(balance_after)):.2f} kg short; "
                f"{max(available, 0):.2f} kg available without this entry",
                available_kg=max(available, 0.0)
            )

        if is_inflow:
            db_entry.bags_in, db_entry.kg_in = bags, kg
        else:
            db_entry.bags_out, db_entry.kg_out = bags, kg
        db_entry.kg_per_bag = kg_per_bag
        db_entry.unit_price = unit_price
        db_entry.total_cost = total_cost
        db_entry.entry_date = entry_date
        db_entry.feed_type, db_entry.type_key = feed_type, type_key
        db_entry.updated_by = changed_by
        db.commit()
        db.refresh(db_entry)

    return db_entry

def average_purchase_price(db: Session, batch_id: int) -> float:
    """Weighted average price per kg of the batch's manual feed purchases."""
    kg_in, cost_in = db.query(
        func.coalesce(func.sum(FeedTransaction.kg_in), 0),
        func.coalesce(func.sum(FeedTransaction.total_cost), 0)
    ).filter(
        FeedTransaction.batch_id == batch_id,
        FeedTransaction.daily_record_id.is_(None),
        FeedTransaction.kg_in > 0
    ).one()
    kg_in = float(kg_in or 0)
    return round_money(float(cost_in or 0) / kg_in) if kg_in > 0 else 0.0

def get_daily_usage_entry(db: Session, record_id: int):
    return db.query(FeedTransaction).filter(FeedTransaction.daily_record_id == record_id).first()

def post_daily_usage(db: Session, record: DailyMonitoring, changed_by: str = None):
    """
    Create or update the automatic withdrawal that mirrors a monitoring
    record's feed consumption. Flushes but does not commit; the caller owns
    the transaction.
    """
    db_entry = get_daily_usage_entry(db, record.id)
    credit = float(db_entry.kg_out or 0) if db_entry else 0.0
    feed_kg = round_kg(record.feed_kg)
    ensure_available(db, record.batch_id, feed_kg, credit_kg=credit, label="daily usage")

    unit_price = average_purchase_price(db, record.batch_id)
    if db_entry is None:
        db_entry = FeedTransaction(
            tenant_id=record.tenant_id,
            batch_id=record.batch_id,
            daily_record_id=record.id,
            feed_type=DAILY_USAGE_FEED_TYPE,
            type_key=DAILY_USAGE_TYPE_KEY,
            created_by=changed_by
        )
        db.add(db_entry)
    db_entry.entry_date = record.record_date
    db_entry.bags_out = record.feed_bags
    db_entry.kg_per_bag = record.kg_per_bag
    db_entry.kg_out = feed_kg
    db_entry.unit_price = unit_price
    db_entry.total_cost = round_money(feed_kg * unit_price)
    db_entry.updated_by = changed_by
    db.flush()
    return db_entry

def remove_daily_usage(db: Session, record_id: int) -> bool:
    db_entry = get_daily_usage_entry(db, record_id)
    if db_entry is None:
        return False
    db.delete(db_entry)
    db.flush()
    return True
