"""Booking store: CRUD over bookings plus the double-booking guard.

Two layers keep an event type from being booked twice for the same time:

* ``check_conflict`` runs before every insert or reschedule and reports a
  readable 409 when the requested range overlaps a live booking.
* a partial unique index on ``(event_type_id, date, start_time)`` catches the
  race where two requests pass the check at the same time.

Cancelled bookings are invisible to both, so cancelling frees the slot.
"""

import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler.core import config
from scheduler.core.errors import ConflictError, InvalidArgumentError, NotFoundError
from scheduler.database import storage_errors, transaction
from scheduler.models.availability import Availability
from scheduler.models.booking import CANCELLED_STATUS, Booking
from scheduler.models.event_type import EventType
from scheduler.schemas.booking import BookingCreate, BookingFilters, BookingResponse, BookingUpdate
from scheduler.services.event_type_service import require_event_type

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = 'Booking time conflicts with an existing booking'
UPDATE_CONFLICT_MESSAGE = 'Updated booking time conflicts with an existing booking'
RESCHEDULE_FIELDS = ('start_time', 'end_time', 'date', 'event_type_id')
NULLABLE_FIELDS = {'additional_notes', 'meeting_link'}


def validate_time_order(start_time: datetime, end_time: datetime) -> None:
    if start_time >= end_time:
        raise InvalidArgumentError(
            'Start time must be before end time',
            details={'start_time': start_time.isoformat(), 'end_time': end_time.isoformat()},
        )


def check_conflict(
    db: Session,
    event_type_id: int,
    booking_date: date,
    start_time: datetime,
    end_time: datetime,
    exclude_id: int | None = None,
) -> bool:
    """Return True if a live booking on the same event type and date overlaps the range.

    Ranges are half-open, so a booking ending at 10:30 does not clash with one
    starting at 10:30.
    """
    query = db.query(Booking.id).filter(
        Booking.event_type_id == event_type_id,
        Booking.date == booking_date,
        Booking.booking_status != CANCELLED_STATUS,
        or_(
            # starts inside an existing booking
            and_(Booking.start_time <= start_time, Booking.end_time > start_time),
            # ends inside an existing booking
            and_(Booking.start_time < end_time, Booking.end_time >= end_time),
            # swallows an existing booking
            and_(Booking.start_time >= start_time, Booking.end_time <= end_time),
        ),
    )
    if exclude_id is not None:
        query = query.filter(Booking.id != exclude_id)

    return db.query(query.exists()).scalar()


def serialize_booking(booking: Booking) -> dict[str, Any]:
    return BookingResponse.model_validate(booking).model_dump()


def _enrich(db: Session, data: dict[str, Any]) -> dict[str, Any]:
    try:
        event_type = db.get(EventType, data['event_type_id'])
        if event_type is None:
            return data

        availability = None
        if event_type.availability_id is not None:
            availability = db.get(Availability, event_type.availability_id)
    except SQLAlchemyError:
        logger.exception('Failed to enrich booking id=%s', data['id'])
        return data

    data.update(
        event_type={
            'id': event_type.id,
            'name': event_type.name,
            'description': event_type.description,
            'duration': event_type.duration,
            'url_slug': event_type.url_slug,
        },
        timezone=availability.timezone if availability is not None else config.DEFAULT_TIMEZONE,
        location=config.DEFAULT_LOCATION,
        meeting_link=data['meeting_link'] or config.DEFAULT_MEETING_LINK,
    )
    return data


def enrich_booking(db: Session, booking: Booking) -> dict[str, Any]:
    """Attach event type summary, timezone, location and meeting link.

    Best effort: a failed lookup is logged and the plain booking is returned.
    """
    return _enrich(db, serialize_booking(booking))


def enrich_bookings(db: Session, bookings: list[Booking]) -> list[dict[str, Any]]:
    # Serialize all rows before any lookup can fail.
    rows = [serialize_booking(booking) for booking in bookings]
    return [_enrich(db, row) for row in rows]


def _require_booking(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if booking is None:
        raise NotFoundError(f'Booking with id {booking_id} not found')
    return booking


def create_booking(db: Session, data: BookingCreate) -> dict[str, Any]:
    # Existence, then overlap, then ordering: an ill-ordered request that also
    # overlaps reports the conflict.
    with transaction(db, 'create booking', conflict_message=CONFLICT_MESSAGE):
        require_event_type(db, data.event_type_id)

        if check_conflict(db, data.event_type_id, data.date, data.start_time, data.end_time):
            raise ConflictError(
                CONFLICT_MESSAGE,
                details={
                    'event_type_id': data.event_type_id,
                    'date': data.date.isoformat(),
                    'start_time': data.start_time.isoformat(),
                    'end_time': data.end_time.isoformat(),
                },
            )

        validate_time_order(data.start_time, data.end_time)

        booking = Booking(**data.model_dump())
        db.add(booking)

    db.refresh(booking)
    return enrich_booking(db, booking)


def _apply_filters(query, filters: BookingFilters):
    if filters.event_type_id is not None:
        query = query.filter(Booking.event_type_id == filters.event_type_id)
    if filters.date is not None:
        query = query.filter(Booking.date == filters.date)
    if filters.booking_status is not None:
        query = query.filter(Booking.booking_status == filters.booking_status)
    if filters.client_email is not None:
        query = query.filter(Booking.client_email == filters.client_email)
    return query.order_by(Booking.date.desc(), Booking.start_time.desc())


def list_bookings(db: Session, filters: BookingFilters | None = None) -> list[dict[str, Any]]:
    with storage_errors(db, 'fetch bookings'):
        bookings = _apply_filters(db.query(Booking), filters or BookingFilters()).all()
    return enrich_bookings(db, bookings)


def get_booking(db: Session, booking_id: int) -> dict[str, Any]:
    with storage_errors(db, 'fetch booking'):
        booking = _require_booking(db, booking_id)
    return enrich_booking(db, booking)


def list_bookings_by_event_type(
    db: Session,
    event_type_id: int,
    booking_date: date | None = None,
    booking_status: str | None = None,
) -> list[dict[str, Any]]:
    with storage_errors(db, 'fetch bookings'):
        require_event_type(db, event_type_id)
        filters = BookingFilters(
            event_type_id=event_type_id,
            date=booking_date,
            booking_status=booking_status,
        )
        bookings = _apply_filters(db.query(Booking), filters).all()
    return enrich_bookings(db, bookings)


def update_booking(db: Session, booking_id: int, data: BookingUpdate) -> dict[str, Any]:
    changes = data.model_dump(exclude_unset=True)
    if not any(value is not None or field in NULLABLE_FIELDS for field, value in changes.items()):
        raise InvalidArgumentError('At least one field must be provided for update')

    with transaction(db, 'update booking', conflict_message=UPDATE_CONFLICT_MESSAGE):
        booking = _require_booking(db, booking_id)

        event_type_id = changes.get('event_type_id') or booking.event_type_id
        booking_date = changes.get('date') or booking.date
        start_time = changes.get('start_time') or booking.start_time
        end_time = changes.get('end_time') or booking.end_time

        if event_type_id != booking.event_type_id:
            require_event_type(db, event_type_id)

        rescheduled = any(changes.get(field) is not None for field in RESCHEDULE_FIELDS)
        # A cancelled booking gave up its slot; taking it back needs the same check.
        reactivated = (
            booking.booking_status == CANCELLED_STATUS
            and changes.get('booking_status') not in (None, CANCELLED_STATUS)
        )
        if rescheduled or reactivated:
            if check_conflict(db, event_type_id, booking_date, start_time, end_time, exclude_id=booking.id):
                raise ConflictError(
                    UPDATE_CONFLICT_MESSAGE,
                    details={
                        'event_type_id': event_type_id,
                        'date': booking_date.isoformat(),
                        'start_time': start_time.isoformat(),
                        'end_time': end_time.isoformat(),
                    },
                )

        if changes.get('start_time') is not None or changes.get('end_time') is not None:
            validate_time_order(start_time, end_time)

        for field, value in changes.items():
            if value is None and field not in NULLABLE_FIELDS:
                continue
            setattr(booking, field, value)

    db.refresh(booking)
    return enrich_booking(db, booking)


def delete_booking(db: Session, booking_id: int) -> dict[str, Any]:
    with transaction(db, 'delete booking'):
        booking = _require_booking(db, booking_id)
        snapshot = serialize_booking(booking)
        db.delete(booking)

    return {
        'message': 'Booking deleted successfully',
        'deletedBooking': snapshot,
    }
