from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
import crud.feed as crud_feed
from crud.batch import require_batch
from database import get_db
from schemas.feed import FeedBalance, FeedEntryCreate, FeedEntryUpdate, FeedEntry as FeedEntrySchema
from utils.tenancy import get_changed_by, get_tenant_id

import logging
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/feed",
    tags=["Feed"],
)

@router.post("/{batch_id}/in", response_model=FeedEntrySchema)
def feed_in(
    batch_id: int,
    entry: FeedEntryCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    changed_by: Optional[str] = Depends(get_changed_by)
):
    return crud_feed.record_feed_in(db, batch_id, entry, tenant_id=tenant_id, changed_by=changed_by)

@router.post("/{batch_id}/out", response_model=FeedEntrySchema)
def feed_out(
    batch_id: int,
    entry: FeedEntryCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    changed_by: Optional[str] = Depends(get_changed_by)
):
    return crud_feed.record_feed_out(db, batch_id, entry, tenant_id=tenant_id, changed_by=changed_by)

@router.get("/{batch_id}/balance", response_model=FeedBalance)
def feed_balance(batch_id: int, feed_type: Optional[str] = None, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    require_batch(db, batch_id, tenant_id)
    return FeedBalance(
        batch_id=batch_id,
        feed_type=feed_type,
        available_kg=crud_feed.get_feed_balance(db, batch_id, feed_type=feed_type)
    )

@router.get("/{batch_id}/entries", response_model=List[FeedEntrySchema])
def list_feed_entries(batch_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_feed.list_feed_entries(db, batch_id, tenant_id=tenant_id)

@router.patch("/entries/{entry_id}", response_model=FeedEntrySchema)
def update_feed_entry(
    entry_id: int,
    entry_data: FeedEntryUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    changed_by: Optional[str] = Depends(get_changed_by)
):
    logger.info("Update feed entry called for entry_id=%d", entry_id)
    return crud_feed.update_feed_entry(db, entry_id, entry_data, tenant_id=tenant_id, changed_by=changed_by)
