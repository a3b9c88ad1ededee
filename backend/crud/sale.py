import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from crud.batch import locked_batch, require_batch
from exceptions import InsufficientBirds, InvalidWeight, NotFound
from models.batch import Batch
from models.daily_monitoring import DailyMonitoring
from models.sale import Sale
from schemas.sale import RemainingBirds, SaleCreate, SaleUpdate
from utils import round_kg
from utils.date_utils import validate_entry_date
from utils.validation import require_count, require_non_negative, require_positive

logger = logging.getLogger(__name__)


def _bird_totals(db: Session, batch_id: int):
    total_mortality = db.query(func.coalesce(func.sum(DailyMonitoring.mortality), 0)).filter(
        DailyMonitoring.batch_id == batch_id
    ).scalar()
    total_sold = db.query(func.coalesce(func.sum(Sale.birds), 0)).filter(Sale.batch_id == batch_id).scalar()
    return int(total_mortality or 0), int(total_sold or 0)

def count_live_birds(db: Session, batch: Batch) -> int:
    """Live birds = housed - cumulative mortality - birds already sold."""
    total_mortality, total_sold = _bird_totals(db, batch.id)
    return batch.housed_count - total_mortality - total_sold

def get_remaining_birds(db: Session, batch: Batch) -> RemainingBirds:
    total_mortality, total_sold = _bird_totals(db, batch.id)
    return RemainingBirds(
        batch_id=batch.id,
        housed_count=batch.housed_count,
        total_mortality=total_mortality,
        total_sold=total_sold,
        remaining=batch.housed_count - total_mortality - total_sold
    )

def get_remaining(db: Session, batch_id: int, tenant_id: str) -> RemainingBirds:
    return get_remaining_birds(db, require_batch(db, batch_id, tenant_id))

def get_sale(db: Session, sale_id: int, tenant_id: str):
    return db.query(Sale).filter(Sale.id == sale_id, Sale.tenant_id == tenant_id).first()

def list_sales(db: Session, batch_id: int, tenant_id: str):
    require_batch(db, batch_id, tenant_id)
    return db.query(Sale).filter(Sale.batch_id == batch_id, Sale.tenant_id == tenant_id).order_by(Sale.sale_date, Sale.id).all()

def _net_weight(empty_weight: float, load_weight: float) -> float:
    total_weight = round_kg(load_weight - empty_weight)
    if total_weight <= 0:
        raise InvalidWeight(f"Load weight {load_weight} must exceed empty weight {empty_weight}")
    return total_weight

def _ensure_birds(birds: int, remaining: int, batch_no: str):
    if birds > remaining:
        logger.warning("Rejected sale of %d birds on batch %s: %d remaining", birds, batch_no, remaining)
        raise InsufficientBirds(f"Only {remaining} birds remaining, {birds} requested", remaining=remaining)

def record_sale(db: Session, batch_id: int, sale: SaleCreate, tenant_id: str, changed_by: str = None):
    """
    Record a dispatch of birds. Net weight is load minus empty vehicle weight
    and the bird count may not exceed the live birds left in the batch.
    """
    cages = require_count(sale.cages, "cages")
    birds = require_count(sale.birds, "birds", positive=True)
    empty_weight = require_non_negative(sale.empty_weight, "empty_weight")
    load_weight = require_positive(sale.load_weight, "load_weight")

    with locked_batch(db, batch_id, tenant_id) as db_batch:
        sale_date = validate_entry_date(sale.sale_date, db_batch.start_date, "sale_date")
        total_weight = _net_weight(empty_weight, load_weight)
        _ensure_birds(birds, count_live_birds(db, db_batch), db_batch.batch_no)

        db_sale = Sale(
            tenant_id=tenant_id,
            batch_id=batch_id,
            sale_date=sale_date,
            vehicle_no=(sale.vehicle_no or "").strip(),
            cages=cages,
            birds=birds,
            empty_weight=empty_weight,
            load_weight=load_weight,
            total_weight=total_weight,
            remarks=sale.remarks,
            created_by=changed_by,
            updated_by=changed_by
        )
        db.add(db_sale)
        db.commit()
        db.refresh(db_sale)

    logger.info("Sale of %d birds (%.3f kg) recorded for batch %s", birds, total_weight, db_batch.batch_no)
    return db_sale

def update_sale(db: Session, sale_id: int, sale_data: SaleUpdate, tenant_id: str, changed_by: str = None):
    db_sale = get_sale(db, sale_id, tenant_id)
    if db_sale is None:
        raise NotFound(f"Sale {sale_id} not found")

    update_data = sale_data.model_dump(exclude_unset=True)

    with locked_batch(db, db_sale.batch_id, tenant_id) as db_batch:
        cages = db_sale.cages
        if update_data.get("cages") is not None:
            cages = require_count(update_data["cages"], "cages")
        birds = db_sale.birds
        if update_data.get("birds") is not None:
            birds = require_count(update_data["birds"], "birds", positive=True)
        empty_weight = db_sale.empty_weight
        if update_data.get("empty_weight") is not None:
            empty_weight = require_non_negative(update_data["empty_weight"], "empty_weight")
        load_weight = db_sale.load_weight
        if update_data.get("load_weight") is not None:
            load_weight = require_positive(update_data["load_weight"], "load_weight")

        sale_date = db_sale.sale_date
        if update_data.get("sale_date") is not None:
            sale_date = validate_entry_date(update_data["sale_date"], db_batch.start_date, "sale_date")

        total_weight = _net_weight(empty_weight, load_weight)
        if birds != db_sale.birds:
            _ensure_birds(birds, count_live_birds(db, db_batch) + db_sale.birds, db_batch.batch_no)

        db_sale.sale_date = sale_date
        db_sale.cages = cages
        db_sale.birds = birds
        db_sale.empty_weight = empty_weight
        db_sale.load_weight = load_weight
        db_sale.total_weight = total_weight
        if update_data.get("vehicle_no") is not None:
            db_sale.vehicle_no = update_data["vehicle_no"].strip()
        if "remarks" in update_data:
            db_sale.remarks = update_data["remarks"]
        db_sale.updated_by = changed_by
        db.commit()
        db.refresh(db_sale)

    return db_sale
