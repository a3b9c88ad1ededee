import logging
from collections import OrderedDict

from sqlalchemy.orm import Session

from crud.batch import locked_batch, require_batch
from exceptions import NotFound
from models.medicine import MedicineEntry
from schemas.medicine import MedicineCreate, MedicineUpdate
from utils import round_money
from utils.date_utils import validate_entry_date
from utils.validation import require_positive, require_text

logger = logging.getLogger(__name__)


def get_medicine(db: Session, entry_id: int, tenant_id: str):
    return db.query(MedicineEntry).filter(MedicineEntry.id == entry_id, MedicineEntry.tenant_id == tenant_id).first()

def list_medicines(db: Session, batch_id: int, tenant_id: str):
    require_batch(db, batch_id, tenant_id)
    return db.query(MedicineEntry).filter(
        MedicineEntry.batch_id == batch_id,
        MedicineEntry.tenant_id == tenant_id
    ).order_by(MedicineEntry.entry_date, MedicineEntry.id).all()

def group_by_date(entries) -> "OrderedDict[str, list]":
    grouped = OrderedDict()
    for entry in sorted(entries, key=lambda e: (e.entry_date, e.id)):
        grouped.setdefault(entry.entry_date.isoformat(), []).append(entry)
    return grouped

def record_medicine(db: Session, batch_id: int, medicine: MedicineCreate, tenant_id: str, changed_by: str = None):
    medicine_name = require_text(medicine.medicine_name, "medicine_name")
    quantity = require_positive(medicine.quantity, "quantity")
    unit_price = require_positive(medicine.unit_price, "unit_price")

    with locked_batch(db, batch_id, tenant_id) as db_batch:
        entry_date = validate_entry_date(medicine.entry_date, db_batch.start_date, "entry_date")
        db_medicine = MedicineEntry(
            tenant_id=tenant_id,
            batch_id=batch_id,
            entry_date=entry_date,
            medicine_name=medicine_name,
            dose=(medicine.dose or "").strip() or None,
            quantity=quantity,
            unit_price=unit_price,
            total_cost=round_money(quantity * unit_price),
            created_by=changed_by,
            updated_by=changed_by
        )
        db.add(db_medicine)
        db.commit()
        db.refresh(db_medicine)

    logger.info("Medicine %s recorded for batch %s", medicine_name, db_batch.batch_no)
    return db_medicine

def update_medicine(db: Session, entry_id: int, medicine_data: MedicineUpdate, tenant_id: str, changed_by: str = None):
    db_medicine = get_medicine(db, entry_id, tenant_id)
    if db_medicine is None:
        raise NotFound(f"Medicine entry {entry_id} not found")

    update_data = medicine_data.model_dump(exclude_unset=True)

    with locked_batch(db, db_medicine.batch_id, tenant_id) as db_batch:
        if update_data.get("medicine_name") is not None:
            db_medicine.medicine_name = require_text(update_data["medicine_name"], "medicine_name")
        if update_data.get("entry_date") is not None:
            db_medicine.entry_date = validate_entry_date(update_data["entry_date"], db_batch.start_date, "entry_date")
        if "dose" in update_data:
            db_medicine.dose = (update_data["dose"] or "").strip() or None

        quantity = db_medicine.quantity
        if update_data.get("quantity") is not None:
            quantity = require_positive(update_data["quantity"], "quantity")
        unit_price = db_medicine.unit_price
        if update_data.get("unit_price") is not None:
            unit_price = require_positive(update_data["unit_price"], "unit_price")

        db_medicine.quantity = quantity
        db_medicine.unit_price = unit_price
        db_medicine.total_cost = round_money(quantity * unit_price)
        db_medicine.updated_by = changed_by
        db.commit()
        db.refresh(db_medicine)

    return db_medicine
