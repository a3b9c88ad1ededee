"""Pytest configuration and fixtures.

Every test gets a fresh in-memory SQLite database; the FastAPI client shares
the same session through a get_db override.
"""

import os
import tempfile
from datetime import date, timedelta
from typing import Generator

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "poultry-batch-test-logs"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from crud.batch import create_batch
from crud.daily_monitoring import create_daily_record, get_next_required_date
from crud.feed import record_feed_in
from database import Base, get_db
from schemas.batch import BatchCreate
from schemas.daily_monitoring import DailyMonitoringCreate
from schemas.feed import FeedEntryCreate

TENANT = "farm-a"
OTHER_TENANT = "farm-b"
START = date(2024, 1, 1)


# ── Database ─────────────────────────────────────────────────────

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine) -> Generator[Session, None, None]:
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


# ── Domain helpers ───────────────────────────────────────────────

@pytest.fixture
def batch(db):
    """An active batch of 1000 chicks at 45 each, started 2024-01-01."""
    return create_batch(
        db,
        BatchCreate(batch_no="B-001", start_date=START, housed_count=1000, price_per_chick=45),
        tenant_id=TENANT,
        changed_by="tester",
    )


@pytest.fixture
def stocked_batch(db, batch):
    """The batch with 5000 kg of feed bought at 30/kg."""
    record_feed_in(
        db,
        batch.id,
        FeedEntryCreate(feed_type="Starter", entry_date=START, bags=100, kg_per_bag=50, unit_price=30),
        tenant_id=TENANT,
    )
    return batch


@pytest.fixture
def add_days(db):
    """Append `count` consecutive feed-free monitoring records to a batch."""

    def _add(db_batch, count, mortality=0):
        records = []
        next_day = get_next_required_date(db, db_batch)
        for offset in range(count):
            records.append(create_daily_record(
                db,
                db_batch.id,
                DailyMonitoringCreate(record_date=next_day + timedelta(days=offset), mortality=mortality, avg_weight=0.05),
                tenant_id=db_batch.tenant_id,
            ))
        return records

    return _add


# ── HTTP client ──────────────────────────────────────────────────

@pytest.fixture
def client(db) -> Generator[TestClient, None, None]:
    from main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    return {"X-Tenant-ID": TENANT, "X-User-ID": "tester"}
