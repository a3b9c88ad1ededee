from datetime import date, timedelta

import pytest

import crud.feed as crud_feed
from crud.daily_monitoring import (
    create_daily_record,
    get_next_required,
    list_daily_records,
    update_daily_record,
)
from crud.feed import get_daily_usage_entry, get_feed_balance
from database import LINK_LINKED, LINK_ROLLED_BACK
from exceptions import (
    AgeOutOfRange,
    BatchInactive,
    CompensationFailure,
    InsufficientStock,
    InvalidDate,
    InvalidInput,
    NotFound,
    OutOfSequence,
)
from models.batch import BATCH_CLOSED
from models.daily_monitoring import DailyMonitoring
from models.feed import FeedTransaction
from schemas.daily_monitoring import DailyMonitoringCreate, DailyMonitoringUpdate
from utils.date_utils import compute_next_required_date

TENANT = "farm-a"
START = date(2024, 1, 1)


def day(record_date, mortality=0, feed_bags=0, kg_per_bag=0, avg_weight=0.05):
    return DailyMonitoringCreate(
        record_date=record_date, mortality=mortality, feed_bags=feed_bags, kg_per_bag=kg_per_bag, avg_weight=avg_weight
    )


def all_records(db):
    return db.query(DailyMonitoring).execution_options(include_unlinked=True).all()


def test_next_required_date_replay():
    assert compute_next_required_date(START, []) == START
    assert compute_next_required_date(START, [START, START + timedelta(days=1)]) == START + timedelta(days=2)
    assert compute_next_required_date(START, [START, START + timedelta(days=2)]) == START + timedelta(days=1)
    assert compute_next_required_date(START, [START - timedelta(days=1), START]) == START + timedelta(days=1)
    assert compute_next_required_date(START, [START + timedelta(days=1), START]) == START + timedelta(days=2)


def test_first_record_is_age_zero_and_gap_is_rejected(db, batch):
    record = create_daily_record(db, batch.id, day(START), tenant_id=TENANT)
    assert record.age == 0
    assert record.link_status == LINK_LINKED

    with pytest.raises(OutOfSequence) as exc_info:
        create_daily_record(db, batch.id, day(date(2024, 1, 3)), tenant_id=TENANT)
    assert exc_info.value.next_required_date == date(2024, 1, 2)

    with pytest.raises(OutOfSequence):
        create_daily_record(db, batch.id, day(START), tenant_id=TENANT)

    assert len(list_daily_records(db, batch.id, tenant_id=TENANT)) == 1


def test_next_required_date_counts_contiguous_records(db, batch, add_days):
    add_days(batch, 5)
    nxt = get_next_required(db, batch.id, tenant_id=TENANT)
    assert nxt.next_required_date == START + timedelta(days=5)
    assert nxt.next_age == 5
    ages = [r.age for r in list_daily_records(db, batch.id, tenant_id=TENANT)]
    assert ages == [0, 1, 2, 3, 4]


def test_validation_order(db, batch):
    # invalid input is reported before the bad date
    with pytest.raises(InvalidInput):
        create_daily_record(db, batch.id, day("garbage", mortality=-1), tenant_id=TENANT)
    with pytest.raises(InvalidInput):
        create_daily_record(db, batch.id, day(START, mortality=1.5), tenant_id=TENANT)
    with pytest.raises(InvalidDate):
        create_daily_record(db, batch.id, day("garbage"), tenant_id=TENANT)
    with pytest.raises(InvalidDate):
        create_daily_record(db, batch.id, day(START - timedelta(days=1)), tenant_id=TENANT)
    with pytest.raises(NotFound):
        create_daily_record(db, batch.id + 1, day(START), tenant_id=TENANT)
    assert all_records(db) == []


def test_age_above_limit_rejected(db, batch, add_days):
    add_days(batch, 56)
    with pytest.raises(AgeOutOfRange):
        create_daily_record(db, batch.id, day(START + timedelta(days=56)), tenant_id=TENANT)
    assert len(all_records(db)) == 56


def test_closed_batch_rejects_records(db, batch):
    batch.status = BATCH_CLOSED
    db.commit()
    with pytest.raises(BatchInactive):
        create_daily_record(db, batch.id, day(START), tenant_id=TENANT)


def test_feed_consumption_posts_linked_withdrawal(db, stocked_batch):
    record = create_daily_record(db, stocked_batch.id, day(START, feed_bags=2, kg_per_bag=50), tenant_id=TENANT)

    assert record.feed_kg == 100
    usage = get_daily_usage_entry(db, record.id)
    assert usage is not None
    assert usage.is_daily_usage
    assert usage.kg_out == 100
    assert usage.unit_price == 30
    assert usage.total_cost == 3000
    assert usage.entry_date == START
    assert get_feed_balance(db, stocked_batch.id) == 4900


def test_consumption_above_balance_rejected_without_record(db, batch):
    with pytest.raises(InsufficientStock):
        create_daily_record(db, batch.id, day(START, feed_bags=1, kg_per_bag=50), tenant_id=TENANT)
    assert all_records(db) == []
    assert db.query(FeedTransaction).count() == 0


def test_record_without_feed_skips_ledger(db, batch, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("ledger must not be touched")

    monkeypatch.setattr(crud_feed, "post_daily_usage", fail)
    record = create_daily_record(db, batch.id, day(START, mortality=3), tenant_id=TENANT)
    assert record.mortality == 3
    assert record.link_status == LINK_LINKED


def test_failed_ledger_write_rolls_back_record(db, stocked_batch, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("ledger unavailable")

    monkeypatch.setattr(crud_feed, "post_daily_usage", boom)
    with pytest.raises(RuntimeError):
        create_daily_record(db, stocked_batch.id, day(START, feed_bags=2, kg_per_bag=50), tenant_id=TENANT)

    assert all_records(db) == []
    assert get_feed_balance(db, stocked_batch.id) == 5000
    assert get_next_required(db, stocked_batch.id, tenant_id=TENANT).next_required_date == START

    monkeypatch.undo()
    record = create_daily_record(db, stocked_batch.id, day(START, feed_bags=2, kg_per_bag=50), tenant_id=TENANT)
    assert record.record_date == START


def test_failed_compensation_is_raised_and_row_stays_hidden(db, stocked_batch, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("ledger unavailable")

    def refuse_delete(instance):
        raise RuntimeError("storage unavailable")

    monkeypatch.setattr(crud_feed, "post_daily_usage", boom)
    monkeypatch.setattr(db, "delete", refuse_delete)
    with pytest.raises(CompensationFailure) as exc_info:
        create_daily_record(db, stocked_batch.id, day(START, feed_bags=2, kg_per_bag=50), tenant_id=TENANT)
    assert isinstance(exc_info.value.__cause__, RuntimeError)

    assert list_daily_records(db, stocked_batch.id, tenant_id=TENANT) == []
    leftovers = all_records(db)
    assert [r.link_status for r in leftovers] == [LINK_ROLLED_BACK]

    # a later attempt for the same day clears the hidden row
    monkeypatch.undo()
    record = create_daily_record(db, stocked_batch.id, day(START, feed_bags=2, kg_per_bag=50), tenant_id=TENANT)
    assert [r.id for r in all_records(db)] == [record.id]
    assert get_feed_balance(db, stocked_batch.id) == 4900


def test_update_adjusts_linked_withdrawal(db, stocked_batch):
    record = create_daily_record(db, stocked_batch.id, day(START, feed_bags=2, kg_per_bag=50), tenant_id=TENANT)

    updated = update_daily_record(db, record.id, DailyMonitoringUpdate(feed_bags=4), tenant_id=TENANT)
    assert updated.feed_kg == 200
    assert get_daily_usage_entry(db, record.id).kg_out == 200
    assert get_feed_balance(db, stocked_batch.id) == 4800

    updated = update_daily_record(db, record.id, DailyMonitoringUpdate(feed_bags=0), tenant_id=TENANT)
    assert updated.feed_kg == 0
    assert get_daily_usage_entry(db, record.id) is None
    assert get_feed_balance(db, stocked_batch.id) == 5000


def test_update_checks_balance_plus_previous_withdrawal(db, stocked_batch):
    record = create_daily_record(db, stocked_batch.id, day(START, feed_bags=2, kg_per_bag=50), tenant_id=TENANT)

    updated = update_daily_record(db, record.id, DailyMonitoringUpdate(feed_bags=100), tenant_id=TENANT)
    assert updated.feed_kg == 5000
    assert get_feed_balance(db, stocked_batch.id) == 0

    with pytest.raises(InsufficientStock):
        update_daily_record(db, record.id, DailyMonitoringUpdate(feed_bags=101), tenant_id=TENANT)
    db.refresh(record)
    assert record.feed_kg == 5000


def test_update_restores_snapshot_when_ledger_fails(db, stocked_batch, monkeypatch):
    record = create_daily_record(db, stocked_batch.id, day(START, mortality=2, feed_bags=2, kg_per_bag=50), tenant_id=TENANT)

    def boom(*args, **kwargs):
        raise RuntimeError("ledger unavailable")

    monkeypatch.setattr(crud_feed, "post_daily_usage", boom)
    with pytest.raises(RuntimeError):
        update_daily_record(db, record.id, DailyMonitoringUpdate(mortality=5, feed_bags=3), tenant_id=TENANT)

    [restored] = list_daily_records(db, stocked_batch.id, tenant_id=TENANT)
    assert restored.mortality == 2
    assert restored.feed_kg == 100
    assert restored.link_status == LINK_LINKED
    assert get_feed_balance(db, stocked_batch.id) == 4900


def test_update_missing_record(db, batch):
    with pytest.raises(NotFound):
        update_daily_record(db, 42, DailyMonitoringUpdate(mortality=1), tenant_id=TENANT)
