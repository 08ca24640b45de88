"""Create the scheduling tables, indexes and default availability.

Safe to run any number of times, including against a partially provisioned
database or concurrently with another worker doing the same.

Usage:
    python -m scheduler.setup_db
"""
import logging
import sys
import time

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler.core import config
from scheduler.core.errors import SchedulerError, StorageFatalError, StorageTransientError
from scheduler.database import Base, engine, is_transient_error
from scheduler.models import Availability
from scheduler.services.availability_service import provision_default_availability

logger = logging.getLogger(__name__)

INDEX_STATEMENTS = [
    'CREATE INDEX IF NOT EXISTS idx_event_types_name ON event_types(name)',
    'CREATE INDEX IF NOT EXISTS idx_event_types_url_slug ON event_types(url_slug)',
    'CREATE INDEX IF NOT EXISTS idx_event_types_availability_id ON event_types(availability_id)',
    'CREATE INDEX IF NOT EXISTS idx_availability_interval_availability_id ON availability_interval(availability_id)',
    'CREATE INDEX IF NOT EXISTS idx_availability_interval_day ON availability_interval(availability_id, day_of_week)',
    'CREATE INDEX IF NOT EXISTS idx_bookings_event_type_id ON bookings(event_type_id)',
    'CREATE INDEX IF NOT EXISTS idx_bookings_date ON bookings(date)',
    'CREATE INDEX IF NOT EXISTS idx_bookings_status ON bookings(booking_status)',
    'CREATE INDEX IF NOT EXISTS idx_bookings_client_email ON bookings(client_email)',
]

# Standalone composite types left behind by an interrupted CREATE TABLE block
# the next CREATE TABLE with a duplicate pg_type entry.
STRAY_TYPES_QUERY = text(
    """
    SELECT t.typname
    FROM pg_type t
    JOIN pg_class c ON c.oid = t.typrelid
    WHERE t.typname = ANY(:names) AND c.relkind = 'c'
    """
)


def is_already_exists_error(exc: BaseException) -> bool:
    message = str(exc).lower()
    return 'already exists' in message or ('duplicate key' in message and 'typname' in message)


def _drop_stray_types(connection: Connection) -> None:
    if connection.dialect.name != 'postgresql':
        return
    names = list(Base.metadata.tables.keys())
    for (type_name,) in connection.execute(STRAY_TYPES_QUERY, {'names': names}):
        logger.warning('Dropping stray composite type %s', type_name)
        connection.execute(text(f'DROP TYPE IF EXISTS "{type_name}" CASCADE'))


def _create_tables(bind: Engine) -> None:
    with bind.begin() as connection:
        _drop_stray_types(connection)
        Base.metadata.create_all(bind=connection)
        for statement in INDEX_STATEMENTS:
            connection.execute(text(statement))


def _ensure_default_availability(bind: Engine) -> None:
    with Session(bind=bind) as db:
        if db.query(Availability.id).first() is not None:
            return
        try:
            provision_default_availability(db)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise


def ensure_schema(
    bind: Engine | None = None,
    max_retries: int | None = None,
    backoff_seconds: float | None = None,
) -> None:
    bind = bind if bind is not None else engine
    max_retries = max_retries if max_retries is not None else config.SCHEMA_SETUP_MAX_RETRIES
    backoff_seconds = backoff_seconds if backoff_seconds is not None else config.SCHEMA_SETUP_BACKOFF_SECONDS

    for attempt in range(max_retries):
        try:
            _create_tables(bind)
            _ensure_default_availability(bind)
            return
        except SQLAlchemyError as exc:
            already_exists = is_already_exists_error(exc)
            retryable = already_exists or is_transient_error(exc)

            if retryable and attempt < max_retries - 1:
                wait_time = backoff_seconds * (2 ** attempt)
                logger.warning(
                    'Schema setup attempt %s/%s failed: %s. Retrying in %.2fs...',
                    attempt + 1, max_retries, exc, wait_time,
                )
                time.sleep(wait_time)
                continue

            if already_exists:
                # Another worker got there first.
                logger.info('Schema objects already exist, treating setup as complete: %s', exc)
                return
            if retryable:
                raise StorageTransientError(
                    f'Schema setup failed after {max_retries} attempts: {exc}',
                    details=str(exc),
                ) from exc
            raise StorageFatalError(f'Schema setup failed: {exc}', details=str(exc)) from exc


def main() -> None:
    logging.basicConfig(level=config.LOG_LEVEL)
    try:
        ensure_schema()
    except SchedulerError as exc:
        print(f'Database setup failed: {exc.message}', file=sys.stderr)
        sys.exit(1)
    print('Database setup completed.')


if __name__ == '__main__':
    main()
