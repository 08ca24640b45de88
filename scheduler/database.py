import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Column, DateTime, create_engine, event, func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from scheduler.core import config
from scheduler.core.errors import (
    ConflictError,
    SchedulerError,
    StorageFatalError,
    StorageTransientError,
)

logger = logging.getLogger(__name__)

# Postgres SQLSTATEs worth retrying: serialization failure, deadlock, lock timeout.
TRANSIENT_PGCODES = {'40001', '40P01', '55P03'}


def _engine_options(url: str) -> dict:
    if url.startswith('sqlite'):
        return {'connect_args': {'check_same_thread': False}}
    return {
        'pool_size': config.DB_POOL_SIZE,
        'max_overflow': config.DB_MAX_OVERFLOW,
        'pool_timeout': config.DB_POOL_TIMEOUT,
        'pool_pre_ping': True,
    }


engine = create_engine(config.DATABASE_URL, echo=config.SQL_ECHO, **_engine_options(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


class TimestampMixin:
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


@event.listens_for(Engine, 'connect')
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE / SET NULL unless this is on.
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def is_transient_error(exc: BaseException) -> bool:
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    pgcode = getattr(getattr(exc, 'orig', None), 'pgcode', None)
    if pgcode in TRANSIENT_PGCODES:
        return True
    if isinstance(exc, OperationalError):
        return True
    message = str(exc).lower()
    return 'timeout' in message or 'connection terminated' in message


@contextmanager
def storage_errors(db: Session, action: str, conflict_message: str | None = None) -> Iterator[None]:
    """Roll back and classify any storage failure raised inside the block.

    Business errors pass through untouched. An ``IntegrityError`` becomes a
    ``ConflictError`` when ``conflict_message`` is given.
    """
    try:
        yield
    except SchedulerError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        if conflict_message is not None:
            raise ConflictError(conflict_message) from exc
        raise StorageFatalError(f'Failed to {action}: {exc.orig}', details=str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        if is_transient_error(exc):
            raise StorageTransientError(
                f'Failed to {action}: database unavailable, try again.',
                details=str(exc),
            ) from exc
        raise StorageFatalError(f'Failed to {action}: {exc}', details=str(exc)) from exc


@contextmanager
def transaction(db: Session, action: str, conflict_message: str | None = None) -> Iterator[Session]:
    """Commit everything done inside the block once, or nothing at all."""
    with storage_errors(db, action, conflict_message):
        yield db
        db.commit()
