"""
Database Configuration Module

This module handles the database configuration and connection setup for the
batch closing backend. It uses SQLAlchemy for ORM (Object-Relational Mapping);
PostgreSQL and SQLite URLs are both supported.

The module includes:
- Database connection setup
- Session management
- Base model class definition
- Unsettled-link filter for records written through a two-step saga
"""

from sqlalchemy import Column, String, create_engine, event
from sqlalchemy.orm import sessionmaker, Session, with_loader_criteria
from sqlalchemy.ext.declarative import declarative_base

from config import DATABASE_URL

# Saga states for records that own a linked row in another ledger
LINK_PENDING = "pending-link"
LINK_LINKED = "linked"
LINK_ROLLED_BACK = "rolled-back"

# SQLite connections are used from FastAPI's threadpool
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Create SQLAlchemy engine
# The engine is the entry point to the SQLAlchemy ORM
engine = create_engine(DATABASE_URL, connect_args=connect_args)

# Create SessionLocal class
# SessionLocal is a factory for creating new Session objects
# autocommit=False means we need to explicitly commit transactions
# autoflush=False means we need to explicitly flush changes to the database
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class
# Base is the declarative base class that our ORM models will inherit from
Base = declarative_base()


class LinkStatusMixin:
    """Mixin for rows whose creation is completed by a write in another table.

    Rows start as ``pending-link`` and only become visible to ordinary queries
    once they are ``linked``.
    """
    link_status = Column(String, nullable=False, default=LINK_LINKED, index=True)


@event.listens_for(Session, "do_orm_execute")
def hide_unlinked_records(execute_state):
    """
    Event listener that automatically filters out records whose linked write
    has not settled.

    Every ORM SELECT touching a LinkStatusMixin model only sees rows with
    link_status == 'linked', so a reader can never observe the first half of
    a two-step write. Queries can opt out with
    ``execution_options(include_unlinked=True)``.

    Args:
        execute_state: The current execution state of the query
    """
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.is_relationship_load
        and not execute_state.execution_options.get("include_unlinked", False)
    ):
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                LinkStatusMixin,
                lambda cls: cls.link_status == LINK_LINKED,
                include_aliases=True
            )
        )

# Dependency to get database session
def get_db():
    """
    Dependency function that provides a database session.

    This function creates a new database session for each request and ensures
    that the session is properly closed after the request is completed.

    Yields:
        Session: A SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
