import logging
from sqlalchemy.orm import Session

import crud.feed as crud_feed
from config import MAX_RECORD_AGE, MIN_RECORD_AGE
from crud.batch import get_batch_for_update, locked_batch, require_batch
from crud.sale import count_live_birds
from database import LINK_LINKED, LINK_PENDING, LINK_ROLLED_BACK
from exceptions import AgeOutOfRange, CompensationFailure, InsufficientBirds, NotFound, OutOfSequence
from models.batch import Batch
from models.daily_monitoring import DailyMonitoring
from schemas.daily_monitoring import DailyMonitoringCreate, DailyMonitoringUpdate, NextRequiredDate
from utils import round_kg
from utils.date_utils import age_in_days, compute_next_required_date, validate_entry_date
from utils.validation import require_count, require_non_negative

logger = logging.getLogger(__name__)

_SNAPSHOT_FIELDS = ("mortality", "feed_bags", "kg_per_bag", "feed_kg", "avg_weight", "remarks", "updated_by")


def get_record_dates(db: Session, batch_id: int):
    rows = db.query(DailyMonitoring.record_date).filter(DailyMonitoring.batch_id == batch_id).all()
    return [row[0] for row in rows]

def get_next_required_date(db: Session, batch: Batch):
    return compute_next_required_date(batch.start_date, get_record_dates(db, batch.id))

def get_next_required(db: Session, batch_id: int, tenant_id: str) -> NextRequiredDate:
    db_batch = require_batch(db, batch_id, tenant_id)
    next_date = get_next_required_date(db, db_batch)
    return NextRequiredDate(
        batch_id=db_batch.id,
        next_required_date=next_date,
        next_age=age_in_days(db_batch.start_date, next_date)
    )

def get_daily_record(db: Session, record_id: int, tenant_id: str):
    return db.query(DailyMonitoring).filter(DailyMonitoring.id == record_id, DailyMonitoring.tenant_id == tenant_id).first()

def list_daily_records(db: Session, batch_id: int, tenant_id: str):
    require_batch(db, batch_id, tenant_id)
    return db.query(DailyMonitoring).filter(
        DailyMonitoring.batch_id == batch_id,
        DailyMonitoring.tenant_id == tenant_id
    ).order_by(DailyMonitoring.record_date).all()

def _pick(update_data: dict, db_record, key: str):
    value = update_data.get(key)
    return getattr(db_record, key) if value is None else value

def _validate_readings(mortality, feed_bags, kg_per_bag, avg_weight):
    mortality = require_count(mortality, "mortality")
    feed_bags = require_non_negative(feed_bags, "feed_bags")
    kg_per_bag = require_non_negative(kg_per_bag, "kg_per_bag")
    avg_weight = require_non_negative(avg_weight, "avg_weight")
    return mortality, feed_bags, kg_per_bag, avg_weight

def _ensure_mortality_fits(db: Session, batch: Batch, mortality: int, previous_mortality: int = 0):
    """Mortality may only remove birds that are still alive and unsold."""
    live_birds = count_live_birds(db, batch) + previous_mortality
    if mortality > live_birds:
        logger.warning("Rejected mortality of %d on batch %s: %d live birds", mortality, batch.batch_no, live_birds)
        raise InsufficientBirds(f"Only {live_birds} live birds, mortality of {mortality} recorded", remaining=live_birds)

def _purge_stale_rows(db: Session, batch_id: int, record_date):
    """Drop hidden rows left on this date by an interrupted create."""
    stale_rows = db.query(DailyMonitoring).execution_options(include_unlinked=True).filter(
        DailyMonitoring.batch_id == batch_id,
        DailyMonitoring.record_date == record_date,
        DailyMonitoring.link_status != LINK_LINKED
    ).all()
    for stale in stale_rows:
        logger.warning("Removing %s daily record %d for batch %d on %s", stale.link_status, stale.id, batch_id, record_date)
        crud_feed.remove_daily_usage(db, stale.id)
        db.delete(stale)
    if stale_rows:
        db.flush()

def _compensate_create(db: Session, record: DailyMonitoring, cause: Exception):
    record_id, batch_id, record_date = record.id, record.batch_id, record.record_date
    db.rollback()
    try:
        record.link_status = LINK_ROLLED_BACK
        db.commit()
        db.delete(record)
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.error(
            "Could not roll back daily record %s for batch %s after feed posting failed (%s): %s",
            record_id, batch_id, cause, exc
        )
        raise CompensationFailure(
            f"Daily record {record_id} could not be rolled back after the feed withdrawal failed"
        ) from exc
    logger.warning("Rolled back daily record for batch %s on %s: %s", batch_id, record_date, cause)

def create_daily_record(db: Session, batch_id: int, record: DailyMonitoringCreate, tenant_id: str, changed_by: str = None):
    """
    Write the next day's monitoring record for a batch.

    Records must be entered one calendar day at a time starting at the batch
    start date. When the record carries feed consumption, a linked
    "daily usage" withdrawal is posted to the feed ledger; the record only
    becomes visible once that withdrawal exists.
    """
    with locked_batch(db, batch_id, tenant_id) as db_batch:
        mortality, feed_bags, kg_per_bag, avg_weight = _validate_readings(
            record.mortality, record.feed_bags, record.kg_per_bag, record.avg_weight
        )
        record_date = validate_entry_date(record.record_date, db_batch.start_date, "record_date")

        next_date = get_next_required_date(db, db_batch)
        if record_date != next_date:
            logger.warning("Out of sequence record for batch %s: got %s, expected %s", db_batch.batch_no, record_date, next_date)
            raise OutOfSequence(
                f"Next record must be for {next_date.isoformat()}, got {record_date.isoformat()}",
                next_required_date=next_date
            )

        age = age_in_days(db_batch.start_date, record_date)
        if age < MIN_RECORD_AGE or age > MAX_RECORD_AGE:
            raise AgeOutOfRange(f"Age {age} is outside the recordable range {MIN_RECORD_AGE}-{MAX_RECORD_AGE}")

        _ensure_mortality_fits(db, db_batch, mortality)

        feed_kg = round_kg(feed_bags * kg_per_bag)
        if feed_kg > 0:
            crud_feed.ensure_available(db, batch_id, feed_kg, label="daily usage")

        _purge_stale_rows(db, batch_id, record_date)

        db_record = DailyMonitoring(
            tenant_id=tenant_id,
            batch_id=batch_id,
            record_date=record_date,
            age=age,
            mortality=mortality,
            feed_bags=feed_bags,
            kg_per_bag=kg_per_bag,
            feed_kg=feed_kg,
            avg_weight=avg_weight,
            remarks=record.remarks,
            link_status=LINK_PENDING if feed_kg > 0 else LINK_LINKED,
            created_by=changed_by,
            updated_by=changed_by
        )
        db.add(db_record)
        db.commit()

        if feed_kg > 0:
            try:
                # The commit above ended the row lock; take it again for the second step
                get_batch_for_update(db, batch_id, tenant_id)
                crud_feed.post_daily_usage(db, db_record, changed_by)
                db_record.link_status = LINK_LINKED
                db.commit()
            except Exception as exc:
                _compensate_create(db, db_record, exc)
                raise

        db.refresh(db_record)

    logger.info("Daily record %s (age %d) saved for batch %s", record_date, age, db_batch.batch_no)
    return db_record

def _restore_snapshot(db: Session, db_record: DailyMonitoring, snapshot: dict, cause: Exception):
    db.rollback()
    try:
        for key, value in snapshot.items():
            setattr(db_record, key, value)
        db_record.link_status = LINK_LINKED
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.error("Could not restore daily record %s after feed posting failed (%s): %s", db_record.id, cause, exc)
        raise CompensationFailure(f"Daily record {db_record.id} could not be restored after the feed update failed") from exc
    logger.warning("Restored daily record %s after feed posting failed: %s", db_record.id, cause)

def update_daily_record(db: Session, record_id: int, record_data: DailyMonitoringUpdate, tenant_id: str, changed_by: str = None):
    """
    Edit a monitoring record. Feed consumption changes are mirrored on the
    linked daily-usage withdrawal, and the record is put back as it was if
    the ledger rejects the change.
    """
    db_record = get_daily_record(db, record_id, tenant_id)
    if db_record is None:
        raise NotFound(f"Daily record {record_id} not found")

    update_data = record_data.model_dump(exclude_unset=True)

    with locked_batch(db, db_record.batch_id, tenant_id) as db_batch:
        mortality, feed_bags, kg_per_bag, avg_weight = _validate_readings(
            *(_pick(update_data, db_record, key) for key in ("mortality", "feed_bags", "kg_per_bag", "avg_weight"))
        )
        if mortality != db_record.mortality:
            _ensure_mortality_fits(db, db_batch, mortality, previous_mortality=db_record.mortality)
        feed_kg = round_kg(feed_bags * kg_per_bag)

        usage = crud_feed.get_daily_usage_entry(db, db_record.id)
        previous_kg = float(usage.kg_out or 0) if usage else 0.0
        if feed_kg > 0:
            crud_feed.ensure_available(db, db_record.batch_id, feed_kg, credit_kg=previous_kg, label="daily usage")

        snapshot = {key: getattr(db_record, key) for key in _SNAPSHOT_FIELDS}

        db_record.mortality = mortality
        db_record.feed_bags = feed_bags
        db_record.kg_per_bag = kg_per_bag
        db_record.feed_kg = feed_kg
        db_record.avg_weight = avg_weight
        if "remarks" in update_data:
            db_record.remarks = update_data["remarks"]
        db_record.updated_by = changed_by
        db_record.link_status = LINK_PENDING
        db.commit()

        try:
            get_batch_for_update(db, db_record.batch_id, tenant_id)
            if feed_kg > 0:
                crud_feed.post_daily_usage(db, db_record, changed_by)
            else:
                crud_feed.remove_daily_usage(db, db_record.id)
            db_record.link_status = LINK_LINKED
            db.commit()
        except Exception as exc:
            _restore_snapshot(db, db_record, snapshot, exc)
            raise

        db.refresh(db_record)

    return db_record
