from datetime import date, timedelta

import pytest

from crud.feed import (
    average_purchase_price,
    get_feed_balance,
    list_feed_entries,
    record_feed_in,
    record_feed_out,
    update_feed_entry,
)
from exceptions import BatchInactive, InsufficientStock, InvalidDate, InvalidInput, NotFound
from models.batch import BATCH_CLOSED
from models.feed import FeedTransaction
from schemas.feed import FeedEntryCreate, FeedEntryUpdate
from utils.date_utils import today_local

TENANT = "farm-a"
START = date(2024, 1, 1)


def feed(bags, kg_per_bag=50, unit_price=30, feed_type="Starter", entry_date=START):
    return FeedEntryCreate(feed_type=feed_type, entry_date=entry_date, bags=bags, kg_per_bag=kg_per_bag, unit_price=unit_price)


def test_feed_in_computes_kg_and_cost(db, batch):
    entry = record_feed_in(db, batch.id, feed(100), tenant_id=TENANT)

    assert entry.kg_in == 5000
    assert entry.total_cost == 150000
    assert entry.kg_out == 0
    assert entry.type_key == "starter"
    assert get_feed_balance(db, batch.id) == 5000


def test_withdrawal_within_balance_then_overdraw_rejected(db, batch):
    record_feed_in(db, batch.id, feed(100), tenant_id=TENANT)

    out = record_feed_out(db, batch.id, feed(90, unit_price=32), tenant_id=TENANT)
    assert out.kg_out == 4500
    assert out.total_cost == 144000
    assert get_feed_balance(db, batch.id) == 500

    with pytest.raises(InsufficientStock) as exc_info:
        record_feed_out(db, batch.id, feed(15), tenant_id=TENANT)
    assert exc_info.value.available_kg == 500
    assert get_feed_balance(db, batch.id) == 500
    assert db.query(FeedTransaction).count() == 2


def test_withdrawal_of_exact_balance_is_allowed(db, batch):
    record_feed_in(db, batch.id, feed(3, kg_per_bag=33.333), tenant_id=TENANT)
    record_feed_out(db, batch.id, feed(3, kg_per_bag=33.333), tenant_id=TENANT)
    assert get_feed_balance(db, batch.id) == 0


def test_balance_is_shared_across_feed_types(db, batch):
    record_feed_in(db, batch.id, feed(10, feed_type="Starter"), tenant_id=TENANT)
    record_feed_out(db, batch.id, feed(4, feed_type="Finisher"), tenant_id=TENANT)

    assert get_feed_balance(db, batch.id) == 300
    assert get_feed_balance(db, batch.id, feed_type="starter") == 500
    assert get_feed_balance(db, batch.id, feed_type="Finisher") == -200


@pytest.mark.parametrize("bags, kg_per_bag, unit_price", [
    (0, 50, 30),
    (-1, 50, 30),
    (10, 0, 30),
    (10, 50, 0),
    (10, 50, float("nan")),
])
def test_invalid_quantities_rejected(db, batch, bags, kg_per_bag, unit_price):
    with pytest.raises(InvalidInput):
        record_feed_in(db, batch.id, feed(bags, kg_per_bag, unit_price), tenant_id=TENANT)
    assert db.query(FeedTransaction).count() == 0


def test_reserved_feed_type_rejected(db, batch):
    with pytest.raises(InvalidInput):
        record_feed_in(db, batch.id, feed(10, feed_type="daily usage"), tenant_id=TENANT)


def test_entry_dates_validated(db, batch):
    with pytest.raises(InvalidDate):
        record_feed_in(db, batch.id, feed(10, entry_date=START - timedelta(days=1)), tenant_id=TENANT)
    with pytest.raises(InvalidDate):
        record_feed_in(db, batch.id, feed(10, entry_date=today_local() + timedelta(days=1)), tenant_id=TENANT)
    with pytest.raises(InvalidDate):
        record_feed_in(db, batch.id, feed(10, entry_date="not-a-date"), tenant_id=TENANT)

    entry = record_feed_in(db, batch.id, feed(10, entry_date="2024-01-05"), tenant_id=TENANT)
    assert entry.entry_date == date(2024, 1, 5)


def test_unknown_or_foreign_batch_not_found(db, batch):
    with pytest.raises(NotFound):
        record_feed_in(db, batch.id + 100, feed(10), tenant_id=TENANT)
    with pytest.raises(NotFound):
        record_feed_in(db, batch.id, feed(10), tenant_id="someone-else")


def test_closed_batch_rejects_feed(db, batch):
    batch.status = BATCH_CLOSED
    db.commit()
    with pytest.raises(BatchInactive):
        record_feed_in(db, batch.id, feed(10), tenant_id=TENANT)


def test_update_recomputes_and_keeps_balance_non_negative(db, batch):
    purchase = record_feed_in(db, batch.id, feed(100), tenant_id=TENANT)
    record_feed_out(db, batch.id, feed(80), tenant_id=TENANT)

    updated = update_feed_entry(db, purchase.id, FeedEntryUpdate(bags_in=90, unit_price=31), tenant_id=TENANT)
    assert updated.kg_in == 4500
    assert updated.net_kg == 4500
    assert updated.total_cost == 139500
    assert get_feed_balance(db, batch.id) == 500

    with pytest.raises(InsufficientStock):
        update_feed_entry(db, purchase.id, FeedEntryUpdate(bags_in=70), tenant_id=TENANT)
    db.refresh(purchase)
    assert purchase.kg_in == 4500
    assert get_feed_balance(db, batch.id) == 500


def test_update_direction_must_match_entry(db, batch):
    purchase = record_feed_in(db, batch.id, feed(100), tenant_id=TENANT)
    with pytest.raises(InvalidInput):
        update_feed_entry(db, purchase.id, FeedEntryUpdate(bags_out=5), tenant_id=TENANT)


def test_update_withdrawal_checks_against_freed_amount(db, batch):
    record_feed_in(db, batch.id, feed(10), tenant_id=TENANT)
    withdrawal = record_feed_out(db, batch.id, feed(8), tenant_id=TENANT)

    updated = update_feed_entry(db, withdrawal.id, FeedEntryUpdate(bags_out=10), tenant_id=TENANT)
    assert updated.kg_out == 500
    assert updated.net_kg == -500
    assert get_feed_balance(db, batch.id) == 0

    with pytest.raises(InsufficientStock):
        update_feed_entry(db, withdrawal.id, FeedEntryUpdate(bags_out=11), tenant_id=TENANT)


def test_update_missing_entry(db, batch):
    with pytest.raises(NotFound):
        update_feed_entry(db, 999, FeedEntryUpdate(bags_in=1), tenant_id=TENANT)


def test_average_purchase_price_is_weighted(db, batch):
    assert average_purchase_price(db, batch.id) == 0
    record_feed_in(db, batch.id, feed(10, unit_price=30), tenant_id=TENANT)
    record_feed_in(db, batch.id, feed(30, unit_price=34), tenant_id=TENANT)
    assert average_purchase_price(db, batch.id) == 33.0


def test_list_entries_newest_first(db, batch):
    record_feed_in(db, batch.id, feed(1, entry_date=START), tenant_id=TENANT)
    record_feed_in(db, batch.id, feed(2, entry_date=START + timedelta(days=3)), tenant_id=TENANT)
    entries = list_feed_entries(db, batch.id, tenant_id=TENANT)
    assert [e.bags_in for e in entries] == [2, 1]
