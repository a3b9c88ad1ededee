from sqlalchemy import Column, DateTime, String
from datetime import datetime
import pytz

from config import APP_TIMEZONE


def _now():
    return datetime.now(pytz.timezone(APP_TIMEZONE))


class TimestampMixin:
    """Mixin that provides created/updated timestamps and user info.

    Ledger rows are append-only apart from narrow field edits, so no soft-delete
    columns are carried; the saga compensation removes rows physically.
    """
    # DateTime(timezone=True) ensures the timezone info is persisted in the database.
    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), onupdate=_now)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)
