"""Availability store: weekly availability templates and their per-day intervals.

Intervals never exist without a parent availability. Every write that touches
more than one row (availability plus intervals, interval replacement) commits
once, or rolls back entirely.
"""

import logging
from datetime import time
from typing import Iterable

from sqlalchemy.orm import Session, selectinload

from scheduler.core import config
from scheduler.core.errors import InvalidArgumentError, NotFoundError
from scheduler.database import storage_errors, transaction
from scheduler.models.availability import Availability, AvailabilityInterval
from scheduler.schemas.availability import (
    AvailabilityCreate,
    AvailabilityResponse,
    AvailabilityUpdate,
    IntervalCreate,
    IntervalResponse,
    IntervalUpdate,
)

logger = logging.getLogger(__name__)

MIN_DAY_OF_WEEK = 1
MAX_DAY_OF_WEEK = 7

DEFAULT_AVAILABILITY_NAME = 'Default Availability'
DEFAULT_INTERVAL_START = time(14, 0)
DEFAULT_INTERVAL_END = time(22, 0)

DUPLICATE_INTERVAL_MESSAGE = 'An identical interval already exists for this day'
# An explicit null interval list clears the set.
NULLABLE_FIELDS = {'intervals'}


def validate_day_of_week(day_of_week: int) -> None:
    if not MIN_DAY_OF_WEEK <= day_of_week <= MAX_DAY_OF_WEEK:
        raise InvalidArgumentError(
            'Day of week must be between 1 and 7',
            details={'day_of_week': day_of_week},
        )


def validate_time_order(start_time: time, end_time: time) -> None:
    if start_time >= end_time:
        raise InvalidArgumentError(
            'Start time must be before end time',
            details={'start_time': start_time.isoformat(), 'end_time': end_time.isoformat()},
        )


def validate_intervals(intervals: Iterable[IntervalCreate]) -> None:
    for interval in intervals:
        validate_day_of_week(interval.day_of_week)
        validate_time_order(interval.start_time, interval.end_time)


def _build_intervals(intervals: Iterable[IntervalCreate]) -> list[AvailabilityInterval]:
    return [
        AvailabilityInterval(
            day_of_week=interval.day_of_week,
            start_time=interval.start_time,
            end_time=interval.end_time,
        )
        for interval in intervals
    ]


def _query_with_intervals(db: Session):
    return db.query(Availability).options(selectinload(Availability.intervals))


def find_availability(db: Session, availability_id: int) -> Availability | None:
    return _query_with_intervals(db).filter(Availability.id == availability_id).first()


def _require_availability(db: Session, availability_id: int) -> Availability:
    availability = find_availability(db, availability_id)
    if availability is None:
        raise NotFoundError(f'Availability with id {availability_id} not found')
    return availability


def create_availability(db: Session, data: AvailabilityCreate) -> Availability:
    validate_intervals(data.intervals)

    with transaction(db, 'create availability', conflict_message=DUPLICATE_INTERVAL_MESSAGE):
        availability = Availability(name=data.name, timezone=data.timezone or config.DEFAULT_TIMEZONE)
        availability.intervals = _build_intervals(data.intervals)
        db.add(availability)

    with storage_errors(db, 'fetch availability'):
        return _require_availability(db, availability.id)


def list_availabilities(db: Session) -> list[Availability]:
    with storage_errors(db, 'fetch availabilities'):
        return _query_with_intervals(db).order_by(
            Availability.created_at.desc(),
            Availability.id.desc(),
        ).all()


def get_availability(db: Session, availability_id: int) -> Availability:
    with storage_errors(db, 'fetch availability'):
        return _require_availability(db, availability_id)


def update_availability(db: Session, availability_id: int, data: AvailabilityUpdate) -> Availability:
    changes = data.model_dump(exclude_unset=True)
    if not any(value is not None or field in NULLABLE_FIELDS for field, value in changes.items()):
        raise InvalidArgumentError('At least one field must be provided for update')

    with transaction(db, 'update availability', conflict_message=DUPLICATE_INTERVAL_MESSAGE):
        availability = _require_availability(db, availability_id)

        if data.intervals is not None:
            validate_intervals(data.intervals)

        if 'name' in changes and data.name is not None:
            availability.name = data.name
        if 'timezone' in changes and data.timezone is not None:
            availability.timezone = data.timezone

        if 'intervals' in changes:
            # Replace wholesale: drop the old set first so an unchanged window
            # does not trip the uniqueness constraint.
            availability.intervals.clear()
            db.flush()
            availability.intervals.extend(_build_intervals(data.intervals or []))

    with storage_errors(db, 'fetch availability'):
        db.expire_all()
        return _require_availability(db, availability_id)


def delete_availability(db: Session, availability_id: int) -> dict:
    with transaction(db, 'delete availability'):
        availability = _require_availability(db, availability_id)
        snapshot = AvailabilityResponse.model_validate(availability).model_dump()
        db.delete(availability)

    return {
        'message': 'Availability deleted successfully',
        'deletedAvailability': snapshot,
    }


def get_default_availability(db: Session) -> Availability | None:
    """Oldest availability by id, used as the fallback for new event types."""
    with storage_errors(db, 'get default availability'):
        return _query_with_intervals(db).order_by(Availability.id.asc()).first()


def provision_default_availability(db: Session) -> Availability:
    """Stage the default 14:00-22:00 every-day availability in the current transaction.

    The caller commits, so the new rows land together with whatever else the
    caller writes.
    """
    availability = Availability(name=DEFAULT_AVAILABILITY_NAME, timezone='UTC')
    availability.intervals = [
        AvailabilityInterval(
            day_of_week=day_of_week,
            start_time=DEFAULT_INTERVAL_START,
            end_time=DEFAULT_INTERVAL_END,
        )
        for day_of_week in range(MIN_DAY_OF_WEEK, MAX_DAY_OF_WEEK + 1)
    ]
    db.add(availability)
    db.flush()
    logger.info('Provisioned default availability id=%s', availability.id)
    return availability


def add_interval(db: Session, availability_id: int, data: IntervalCreate) -> AvailabilityInterval:
    with transaction(db, 'add interval', conflict_message=DUPLICATE_INTERVAL_MESSAGE):
        _require_availability(db, availability_id)
        validate_day_of_week(data.day_of_week)
        validate_time_order(data.start_time, data.end_time)

        interval = AvailabilityInterval(
            availability_id=availability_id,
            day_of_week=data.day_of_week,
            start_time=data.start_time,
            end_time=data.end_time,
        )
        db.add(interval)

    db.refresh(interval)
    return interval


def update_interval(db: Session, interval_id: int, data: IntervalUpdate) -> AvailabilityInterval:
    changes = data.model_dump(exclude_unset=True)
    if not changes or all(value is None for value in changes.values()):
        raise InvalidArgumentError('At least one field must be provided for update')

    if data.day_of_week is not None:
        validate_day_of_week(data.day_of_week)

    with transaction(db, 'update interval', conflict_message=DUPLICATE_INTERVAL_MESSAGE):
        interval = db.query(AvailabilityInterval).filter(AvailabilityInterval.id == interval_id).first()
        if interval is None:
            raise NotFoundError(f'Interval with id {interval_id} not found')

        validate_time_order(
            data.start_time if data.start_time is not None else interval.start_time,
            data.end_time if data.end_time is not None else interval.end_time,
        )

        for field, value in changes.items():
            if value is not None:
                setattr(interval, field, value)

    db.refresh(interval)
    return interval


def delete_interval(db: Session, interval_id: int) -> dict:
    with transaction(db, 'delete interval'):
        interval = db.query(AvailabilityInterval).filter(AvailabilityInterval.id == interval_id).first()
        if interval is None:
            raise NotFoundError(f'Interval with id {interval_id} not found')
        snapshot = IntervalResponse.model_validate(interval).model_dump()
        db.delete(interval)

    return {
        'message': 'Interval deleted successfully',
        'deletedInterval': snapshot,
    }
