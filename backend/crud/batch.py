import logging
import uuid
from contextlib import contextmanager
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from config import MIN_CLOSING_AGE
from crud.audit_log import create_audit_log
from exceptions import ActiveBatchExists, BatchInactive, ClosingNotAllowed, InvalidDate, InvalidInput, NotFound
from models.batch import Batch, BATCH_ACTIVE, BATCH_CLOSED
from models.daily_monitoring import DailyMonitoring
from schemas.audit_log import AuditLogCreate
from schemas.batch import BatchClose, BatchCreate, BatchUpdate
from utils import sqlalchemy_to_dict
from utils.date_utils import now_local, today_local
from utils.locks import batch_lock, tenant_lock

logger = logging.getLogger(__name__)


def generate_batch_no(start_date: date) -> str:
    return f"BATCH-{start_date:%Y%m%d}-{uuid.uuid4().hex[-6:].upper()}"

def get_batch(db: Session, batch_id: int, tenant_id: str):
    return db.query(Batch).filter(Batch.id == batch_id, Batch.tenant_id == tenant_id).first()

def require_batch(db: Session, batch_id: int, tenant_id: str) -> Batch:
    db_batch = get_batch(db, batch_id, tenant_id)
    if db_batch is None:
        raise NotFound(f"Batch {batch_id} not found")
    return db_batch

def get_batch_for_update(db: Session, batch_id: int, tenant_id: str) -> Batch:
    """Load the batch row with a row lock so concurrent writers on other processes queue up."""
    db_batch = db.query(Batch).filter(Batch.id == batch_id, Batch.tenant_id == tenant_id).with_for_update().first()
    if db_batch is None:
        raise NotFound(f"Batch {batch_id} not found")
    return db_batch

def require_active(db_batch: Batch) -> Batch:
    if not db_batch.is_active:
        raise BatchInactive(f"Batch {db_batch.batch_no} is {db_batch.status}; reopen it before making changes")
    return db_batch

@contextmanager
def locked_batch(db: Session, batch_id: int, tenant_id: str, active_only: bool = True):
    """
    Critical section for ledger mutations on one batch.

    Yields the row-locked batch; any error inside rolls the session back so
    a rejected operation leaves nothing behind and releases the row lock.
    """
    with batch_lock(batch_id):
        try:
            db_batch = get_batch_for_update(db, batch_id, tenant_id)
            if active_only:
                require_active(db_batch)
            yield db_batch
        except Exception:
            db.rollback()
            raise

def get_all_batches(db: Session, tenant_id: str, skip: int = 0, limit: int = 100):
    return db.query(Batch).filter(Batch.tenant_id == tenant_id).order_by(Batch.start_date.desc(), Batch.id.desc()).offset(skip).limit(limit).all()

def get_active_batch(db: Session, tenant_id: str) -> Optional[Batch]:
    return db.query(Batch).filter(Batch.tenant_id == tenant_id, Batch.is_active).order_by(Batch.start_date.desc()).first()

def ensure_no_other_active_batch(db: Session, tenant_id: str, exclude_batch_id: Optional[int] = None):
    """An owner may run at most one active batch at a time."""
    query = db.query(Batch).filter(Batch.tenant_id == tenant_id, Batch.is_active)
    if exclude_batch_id is not None:
        query = query.filter(Batch.id != exclude_batch_id)
    existing = query.first()
    if existing:
        raise ActiveBatchExists(f"Batch {existing.batch_no} is still active; close it first")

def get_latest_age(db: Session, batch_id: int) -> Optional[int]:
    return db.query(func.max(DailyMonitoring.age)).filter(DailyMonitoring.batch_id == batch_id).scalar()

def create_batch(db: Session, batch: BatchCreate, tenant_id: str, changed_by: str = None):
    if batch.start_date > today_local():
        raise InvalidDate("start_date cannot be in the future")

    with tenant_lock(tenant_id):
        ensure_no_other_active_batch(db, tenant_id)

        batch_no = (batch.batch_no or "").strip() or generate_batch_no(batch.start_date)
        duplicate = db.query(Batch).filter(Batch.tenant_id == tenant_id, Batch.batch_no == batch_no).first()
        if duplicate:
            raise InvalidInput(f"Batch number {batch_no} already exists")

        db_batch = Batch(
            **batch.model_dump(exclude={"batch_no"}),
            batch_no=batch_no,
            tenant_id=tenant_id,
            status=BATCH_ACTIVE,
            created_by=changed_by,
            updated_by=changed_by
        )
        db.add(db_batch)
        db.commit()
        db.refresh(db_batch)

    logger.info("Created batch %s (%d chicks) for tenant %s", db_batch.batch_no, db_batch.housed_count, tenant_id)
    return db_batch

def _audit(db: Session, db_batch: Batch, action: str, old_values: dict, changed_by: str = None):
    log_entry = AuditLogCreate(
        tenant_id=db_batch.tenant_id,
        table_name='batch',
        record_id=str(db_batch.id),
        changed_by=changed_by,
        action=action,
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_batch)
    )
    create_audit_log(db=db, log_entry=log_entry)

def update_batch(db: Session, batch_id: int, batch_data: BatchUpdate, tenant_id: str, changed_by: str = None):
    update_data = batch_data.model_dump(exclude_unset=True)
    if "price_per_chick" in update_data:
        price = update_data["price_per_chick"]
        if price is None or price < 0:
            raise InvalidInput("price_per_chick must be >= 0")

    with locked_batch(db, batch_id, tenant_id) as db_batch:
        old_values = sqlalchemy_to_dict(db_batch)
        for key, value in update_data.items():
            setattr(db_batch, key, value)
        db_batch.updated_by = changed_by
        db.commit()
        db.refresh(db_batch)

    _audit(db, db_batch, 'UPDATE', old_values, changed_by)
    return db_batch

def close_batch(db: Session, batch_id: int, close_data: BatchClose, tenant_id: str, changed_by: str = None):
    """
    Close an active batch. Only allowed once the latest recorded age has
    reached MIN_CLOSING_AGE, independent of the report trust gates.
    """
    with locked_batch(db, batch_id, tenant_id) as db_batch:
        latest_age = get_latest_age(db, batch_id)
        if latest_age is None or latest_age < MIN_CLOSING_AGE:
            logger.warning("Refusing to close batch %s at age %s", db_batch.batch_no, latest_age)
            raise ClosingNotAllowed(
                f"Batch can be closed from age {MIN_CLOSING_AGE}; latest recorded age is "
                f"{latest_age if latest_age is not None else 'none'}"
            )

        old_values = sqlalchemy_to_dict(db_batch)
        db_batch.status = BATCH_CLOSED
        db_batch.closed_at = now_local()
        db_batch.close_remarks = close_data.close_remarks
        db_batch.updated_by = changed_by
        db.commit()
        db.refresh(db_batch)

    _audit(db, db_batch, 'CLOSE', old_values, changed_by)
    logger.info("Closed batch %s at age %d", db_batch.batch_no, latest_age)
    return db_batch

def reopen_batch(db: Session, batch_id: int, tenant_id: str, changed_by: str = None):
    db_batch = require_batch(db, batch_id, tenant_id)
    if db_batch.is_active:
        return db_batch

    with tenant_lock(tenant_id):
        ensure_no_other_active_batch(db, tenant_id, exclude_batch_id=batch_id)
        old_values = sqlalchemy_to_dict(db_batch)
        db_batch.status = BATCH_ACTIVE
        db_batch.closed_at = None
        db_batch.updated_by = changed_by
        db.commit()
        db.refresh(db_batch)

    _audit(db, db_batch, 'REOPEN', old_values, changed_by)
    logger.info("Reopened batch %s", db_batch.batch_no)
    return db_batch
