from datetime import date

import pytest

from crud.medicine import group_by_date, list_medicines, record_medicine, update_medicine
from exceptions import InvalidDate, InvalidInput, NotFound
from schemas.medicine import MedicineCreate, MedicineUpdate

TENANT = "farm-a"


def medicine(name="Enrofloxacin", quantity=2, unit_price=150.5, entry_date=date(2024, 1, 3), dose=None):
    return MedicineCreate(entry_date=entry_date, medicine_name=name, quantity=quantity, unit_price=unit_price, dose=dose)


def test_cost_is_quantity_times_price(db, batch):
    entry = record_medicine(db, batch.id, medicine(dose=" 1 ml / litre "), tenant_id=TENANT)
    assert entry.total_cost == 301.0
    assert entry.dose == "1 ml / litre"


def test_update_recomputes_cost(db, batch):
    entry = record_medicine(db, batch.id, medicine(), tenant_id=TENANT)

    updated = update_medicine(db, entry.id, MedicineUpdate(quantity=3), tenant_id=TENANT)
    assert updated.total_cost == 451.5

    updated = update_medicine(db, entry.id, MedicineUpdate(unit_price=100), tenant_id=TENANT)
    assert updated.total_cost == 300.0


@pytest.mark.parametrize("fields", [
    {"name": "  "},
    {"quantity": 0},
    {"unit_price": -1},
])
def test_invalid_entries_rejected(db, batch, fields):
    with pytest.raises(InvalidInput):
        record_medicine(db, batch.id, medicine(**fields), tenant_id=TENANT)


def test_entry_before_start_rejected(db, batch):
    with pytest.raises(InvalidDate):
        record_medicine(db, batch.id, medicine(entry_date=date(2023, 12, 31)), tenant_id=TENANT)


def test_update_missing_entry(db, batch):
    with pytest.raises(NotFound):
        update_medicine(db, 5, MedicineUpdate(quantity=1), tenant_id=TENANT)


def test_grouped_by_date(db, batch):
    record_medicine(db, batch.id, medicine(name="Vitamin", entry_date=date(2024, 1, 5)), tenant_id=TENANT)
    record_medicine(db, batch.id, medicine(name="Enro", entry_date=date(2024, 1, 3)), tenant_id=TENANT)
    record_medicine(db, batch.id, medicine(name="Liver tonic", entry_date=date(2024, 1, 5)), tenant_id=TENANT)

    grouped = group_by_date(list_medicines(db, batch.id, tenant_id=TENANT))
    assert list(grouped.keys()) == ["2024-01-03", "2024-01-05"]
    assert [m.medicine_name for m in grouped["2024-01-05"]] == ["Vitamin", "Liver tonic"]
