"""
Database connection and session management for Salon Tracker.

One SQLite file holds the catalog, the clients (with their groups), the visit
recipe trees and the product sales made outside visits.
Each visit tree spans five tables (visits, visit_services, bowls,
material_lines, visit_products); the visit service writes and deletes all of
them inside a single ``session_scope`` so a tree is never half-stored.

This module provides:
- The process-wide engine and session factory
- ``session_scope`` (commit on success, rollback on any exception)
- Table creation, verification and reset
"""

from typing import List, Optional
from contextlib import contextmanager
import logging

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session, close_all_sessions
from sqlalchemy.pool import StaticPool

from salon_tracker.utils.config import get_config
from salon_tracker.models.base import Base

logger = logging.getLogger(__name__)

# Tables a usable database must have, catalog first, recipe tree last
REQUIRED_TABLES = (
    "clients",
    "client_groups",
    "client_group_members",
    "materials",
    "material_ratios",
    "oxidants",
    "products",
    "service_templates",
    "visits",
    "visit_services",
    "bowls",
    "material_lines",
    "visit_products",
    "product_sales",
    "product_sale_lines",
)

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Foreign keys on (material lines and bowls reference the catalog), WAL journal."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def _is_memory_url(database_url: str) -> bool:
    return ":memory:" in database_url or "mode=memory" in database_url


def create_database_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create the SQLite engine.

    Args:
        database_url: Database URL; defaults to the configured salon database
        echo: Log every SQL statement

    Returns:
        Configured SQLAlchemy Engine
    """
    if database_url is None:
        database_url = get_config().database_url

    logger.info("Creating database engine", extra={"database_url": database_url})

    if _is_memory_url(database_url):
        # An in-memory database lives only as long as its single connection
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        database_url,
        echo=echo,
        connect_args={"check_same_thread": False, "timeout": 30},
    )


def _import_models() -> None:
    """Import every model module so Base.metadata knows all tables."""
    from salon_tracker.models import (  # noqa: F401
        client,
        client_group,
        material,
        oxidant,
        product,
        product_sale,
        service_template,
        visit,
    )


def init_database(engine: Optional[Engine] = None) -> None:
    """
    Create any missing table. Existing tables and their rows are left alone.

    Args:
        engine: Engine to use; defaults to the global engine
    """
    if engine is None:
        engine = get_engine()

    _import_models()
    Base.metadata.create_all(engine)
    logger.info("Database tables initialized", extra={"tables": len(Base.metadata.tables)})


def get_engine(force_recreate: bool = False) -> Engine:
    """Global engine, created on first use."""
    global _engine

    if _engine is None or force_recreate:
        _engine = create_database_engine()

    return _engine


def get_session_factory() -> sessionmaker:
    """
    Global session factory.

    Sessions keep their loaded attributes after commit, so records built from
    ORM rows stay readable once ``session_scope`` has closed.
    """
    global _SessionFactory

    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=get_engine(), expire_on_commit=False)

    return _SessionFactory


def get_session() -> Session:
    """New session from the global factory."""
    return get_session_factory()()


@contextmanager
def session_scope():
    """
    Provide a transactional scope for database operations.

    - Creates a new session
    - Commits on success
    - Rolls back on any exception, including service errors such as
      MaterialNotFound raised halfway through writing a visit tree
    - Always closes the session

    Yields:
        Database session

    Example:
        with session_scope() as session:
            session.add(Oxidant(owner_id="u1", name="6%"))
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def database_exists() -> bool:
    """Check if the configured database file exists."""
    return get_config().database_exists()


def missing_tables(engine: Optional[Engine] = None) -> List[str]:
    """Required tables that the database does not have, in REQUIRED_TABLES order."""
    if engine is None:
        engine = get_engine()
    present = set(inspect(engine).get_table_names())
    return [table for table in REQUIRED_TABLES if table not in present]


def verify_database(engine: Optional[Engine] = None) -> bool:
    """
    Check that the database is reachable and has every required table.

    Returns:
        True if the database is usable, False otherwise
    """
    try:
        missing = missing_tables(engine)
    except SQLAlchemyError as e:
        logger.error("Database verification failed", extra={"error": str(e)})
        return False

    if missing:
        logger.warning("Database is missing tables", extra={"missing_tables": missing})
        return False
    return True


def reset_database(confirm: bool = False, engine: Optional[Engine] = None) -> None:
    """
    Drop all tables and recreate them empty.

    WARNING: This deletes every client, catalog entry and visit.

    Args:
        confirm: Must be True to actually reset
        engine: Engine to use; defaults to the global engine

    Raises:
        ValueError: If confirm is not True
    """
    if not confirm:
        raise ValueError("Must pass confirm=True to reset database. This will delete all data!")

    if engine is None:
        engine = get_engine()

    logger.warning("Resetting database, all data will be lost")
    _import_models()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    logger.info("Tables recreated")


def close_connections() -> None:
    """Close open sessions and dispose of the global engine."""
    global _engine, _SessionFactory

    if _SessionFactory is not None:
        close_all_sessions()
        _SessionFactory = None

    if _engine is not None:
        _engine.dispose()
        _engine = None

    logger.info("Database connections closed")


def initialize_app_database() -> None:
    """
    Open the configured salon database, creating the file and tables if needed.

    Raises:
        RuntimeError: If tables are still missing after initialization
    """
    config = get_config()
    logger.info(
        "Opening database",
        extra={"database_path": str(config.database_path), "exists": config.database_exists()},
    )

    engine = get_engine()
    init_database(engine)

    missing = missing_tables(engine)
    if missing:
        raise RuntimeError(f"Database is missing tables: {', '.join(missing)}")
    logger.info("Database initialized and verified")
