import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.config import get_database_url
from ..core.db import register_query_timing
from ..core.exceptions import StoreError

logger = logging.getLogger(__name__)

# Create Base class for models
Base = declarative_base()

# Internal lazy globals
_engine = None
_SessionLocal = None
_database_url = None


def _build_engine(database_url: str):
    url = make_url(database_url)

    if url.drivername.startswith("postgres"):
        return create_engine(
            database_url,
            pool_size=20,
            max_overflow=40,
            pool_pre_ping=True,  # Detects and refreshes stale connections
            pool_recycle=3600,
            connect_args={
                "application_name": "identsoft",  # Visible in pg_stat_activity
                "connect_timeout": 10,
            },
            echo=False,
        )

    if url.drivername.startswith("sqlite"):
        if url.database in (None, "", ":memory:"):
            # One shared in-memory database for the whole process so DDL
            # survives across sessions (tests rely on this).
            return create_engine(
                database_url,
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        # Writers queue on the database lock instead of failing immediately
        return create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

    return create_engine(database_url, echo=False)


def get_engine():
    """Return a cached SQLAlchemy engine, creating it from DATABASE_URL on
    first call. This allows tests to set DATABASE_URL before the engine is
    constructed."""
    global _engine, _SessionLocal, _database_url
    database_url = get_database_url()
    if _engine is None or _database_url != database_url:
        if _engine is not None:
            _engine.dispose()
        _engine = _build_engine(database_url)
        _SessionLocal = None
        register_query_timing(_engine)
        logger.debug(
            "SQLAlchemy engine created",
            extra={
                "context": {
                    "url": _engine.url.render_as_string(hide_password=True),
                    "dialect": _engine.dialect.name,
                }
            },
        )
        _database_url = database_url
    return _engine


def get_sessionmaker():
    """Return a cached sessionmaker bound to the lazy engine."""
    global _SessionLocal
    engine = get_engine()
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
        )
    return _SessionLocal


def SessionLocal() -> Session:
    """Return a new Session bound to the current engine."""
    return get_sessionmaker()()


@contextmanager
def unit_of_work(session: Session) -> Iterator[Session]:
    """Run the enclosed writes as one transaction.

    Commits when the block exits normally. Any exception rolls everything
    back; driver errors surface as StoreError with the original chained.
    """
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(
            "Transaction rolled back after store failure",
            extra={"context": {"error": str(e)}},
            exc_info=True,
        )
        raise StoreError() from e
    except Exception:
        session.rollback()
        raise


def create_tables():
    """Create all tables in database using the lazy engine."""
    # Models must be imported so Base.metadata is populated
    from . import base  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def drop_tables():
    from . import base  # noqa: F401

    Base.metadata.drop_all(bind=get_engine())
