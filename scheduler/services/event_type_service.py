"""Event type store.

An event type always ends up linked to an availability when created: the
caller's, the oldest existing one, or a freshly provisioned default.
"""

from sqlalchemy.orm import Session

from scheduler.core.errors import ConflictError, InvalidArgumentError, NotFoundError
from scheduler.database import storage_errors, transaction
from scheduler.models.availability import Availability
from scheduler.models.event_type import EventType
from scheduler.schemas.event_type import EventTypeCreate, EventTypeResponse, EventTypeUpdate
from scheduler.services.availability_service import (
    get_default_availability,
    provision_default_availability,
)

NULLABLE_FIELDS = {'description', 'url_slug', 'user_id', 'availability_id'}
DUPLICATE_EVENT_TYPE_MESSAGE = 'Event type with this name or URL slug already exists'


def find_by_name(db: Session, name: str) -> EventType | None:
    return db.query(EventType).filter(EventType.name == name).first()


def require_event_type(db: Session, event_type_id: int) -> EventType:
    event_type = db.query(EventType).filter(EventType.id == event_type_id).first()
    if event_type is None:
        raise NotFoundError(f'Event type with id {event_type_id} not found')
    return event_type


def _require_availability_exists(db: Session, availability_id: int) -> None:
    if db.query(Availability.id).filter(Availability.id == availability_id).first() is None:
        raise NotFoundError(f'Availability with id {availability_id} not found')


def _duplicate_name_error(name: str) -> ConflictError:
    return ConflictError(f'Event type with name "{name}" already exists', details={'name': name})


def create_event_type(db: Session, data: EventTypeCreate) -> EventType:
    with transaction(db, 'create event type', conflict_message=DUPLICATE_EVENT_TYPE_MESSAGE):
        if find_by_name(db, data.name) is not None:
            raise _duplicate_name_error(data.name)

        availability_id = data.availability_id
        if availability_id is None:
            default_availability = get_default_availability(db)
            if default_availability is None:
                default_availability = provision_default_availability(db)
            availability_id = default_availability.id
        else:
            _require_availability_exists(db, availability_id)

        event_type = EventType(
            name=data.name,
            description=data.description,
            duration=data.duration,
            url_slug=data.url_slug or data.name,
            user_id=data.user_id,
            availability_id=availability_id,
        )
        db.add(event_type)

    db.refresh(event_type)
    return event_type


def list_event_types(db: Session) -> list[EventType]:
    with storage_errors(db, 'fetch event types'):
        return db.query(EventType).order_by(EventType.created_at.desc(), EventType.id.desc()).all()


def get_event_type(db: Session, event_type_id: int) -> EventType:
    with storage_errors(db, 'fetch event type'):
        return require_event_type(db, event_type_id)


def get_event_type_by_slug(db: Session, slug: str) -> EventType:
    with storage_errors(db, 'fetch event type'):
        event_type = db.query(EventType).filter(EventType.url_slug == slug).first()
        if event_type is None:
            # Older records were addressed by name before slugs existed.
            event_type = find_by_name(db, slug)
        if event_type is None:
            raise NotFoundError(f'Event type with slug "{slug}" not found')
        return event_type


def update_event_type(db: Session, event_type_id: int, data: EventTypeUpdate) -> EventType:
    changes = data.model_dump(exclude_unset=True)
    if not any(value is not None or field in NULLABLE_FIELDS for field, value in changes.items()):
        raise InvalidArgumentError('At least one field must be provided for update')

    with transaction(db, 'update event type', conflict_message=DUPLICATE_EVENT_TYPE_MESSAGE):
        event_type = require_event_type(db, event_type_id)

        new_name = changes.get('name')
        if new_name is not None and new_name != event_type.name:
            if find_by_name(db, new_name) is not None:
                raise _duplicate_name_error(new_name)

        if changes.get('availability_id') is not None:
            _require_availability_exists(db, changes['availability_id'])

        for field, value in changes.items():
            if value is None and field not in NULLABLE_FIELDS:
                continue
            setattr(event_type, field, value)

    db.refresh(event_type)
    return event_type


def delete_event_type(db: Session, event_type_id: int) -> dict:
    with transaction(db, 'delete event type'):
        event_type = require_event_type(db, event_type_id)
        snapshot = EventTypeResponse.model_validate(event_type).model_dump()
        db.delete(event_type)

    return {
        'message': 'Event type deleted successfully',
        'deletedEventType': snapshot,
    }
