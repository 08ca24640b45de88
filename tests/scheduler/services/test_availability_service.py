from datetime import time

import pytest

from scheduler.core.errors import ConflictError, InvalidArgumentError, NotFoundError
from scheduler.models.availability import Availability, AvailabilityInterval
from scheduler.models.event_type import EventType
from scheduler.schemas.availability import (
    AvailabilityCreate,
    AvailabilityUpdate,
    IntervalCreate,
    IntervalUpdate,
)
from scheduler.services import availability_service


def _interval(day_of_week: int, start: str, end: str) -> IntervalCreate:
    return IntervalCreate(day_of_week=day_of_week, start_time=start, end_time=end)


def _create(db, name: str = 'Office hours', timezone: str = 'Europe/London', intervals=None) -> Availability:
    return availability_service.create_availability(
        db,
        AvailabilityCreate(name=name, timezone=timezone, intervals=intervals or []),
    )


def _windows(availability: Availability) -> list[tuple[int, time, time]]:
    return [(interval.day_of_week, interval.start_time, interval.end_time) for interval in availability.intervals]


def test_create_availability_returns_sorted_intervals(db) -> None:
    availability = _create(
        db,
        intervals=[
            _interval(3, '13:00:00', '17:00:00'),
            _interval(1, '13:00:00', '15:00:00'),
            _interval(1, '09:00:00', '12:00:00'),
        ],
    )

    assert availability.id is not None
    assert _windows(availability) == [
        (1, time(9, 0), time(12, 0)),
        (1, time(13, 0), time(15, 0)),
        (3, time(13, 0), time(17, 0)),
    ]


def test_get_availability_round_trips_fields_and_intervals(db) -> None:
    created = _create(
        db,
        name='Evenings',
        timezone='America/New_York',
        intervals=[_interval(5, '18:00:00', '21:00:00'), _interval(2, '18:00:00', '20:00:00')],
    )

    fetched = availability_service.get_availability(db, created.id)

    assert fetched.name == 'Evenings'
    assert fetched.timezone == 'America/New_York'
    assert _windows(fetched) == [
        (2, time(18, 0), time(20, 0)),
        (5, time(18, 0), time(21, 0)),
    ]


def test_create_availability_defaults_timezone_to_utc(db) -> None:
    availability = availability_service.create_availability(db, AvailabilityCreate(name='Plain'))

    assert availability.timezone == 'UTC'
    assert availability.intervals == []


@pytest.mark.parametrize(
    ('interval', 'error_message'),
    [
        (_interval(0, '09:00:00', '10:00:00'), 'Day of week must be between 1 and 7'),
        (_interval(8, '09:00:00', '10:00:00'), 'Day of week must be between 1 and 7'),
        (_interval(1, '10:00:00', '10:00:00'), 'Start time must be before end time'),
        (_interval(1, '11:00:00', '10:00:00'), 'Start time must be before end time'),
    ],
)
def test_create_availability_rejects_invalid_interval_without_persisting(db, interval, error_message) -> None:
    with pytest.raises(InvalidArgumentError) as exception_info:
        _create(db, intervals=[_interval(1, '09:00:00', '10:00:00'), interval])

    assert exception_info.value.message == error_message
    assert exception_info.value.status_code == 400
    assert db.query(Availability).count() == 0
    assert db.query(AvailabilityInterval).count() == 0


def test_create_availability_rolls_back_when_an_interval_insert_fails(db) -> None:
    duplicate = _interval(2, '09:00:00', '10:00:00')

    with pytest.raises(ConflictError):
        _create(db, intervals=[duplicate, duplicate])

    assert db.query(Availability).count() == 0
    assert db.query(AvailabilityInterval).count() == 0


def test_list_availabilities_returns_newest_first(db) -> None:
    first = _create(db, name='First')
    second = _create(db, name='Second', intervals=[_interval(4, '08:00:00', '09:00:00')])

    availabilities = availability_service.list_availabilities(db)

    assert [availability.id for availability in availabilities] == [second.id, first.id]
    assert len(availabilities[0].intervals) == 1


def test_get_availability_raises_not_found(db) -> None:
    with pytest.raises(NotFoundError) as exception_info:
        availability_service.get_availability(db, 404)

    assert exception_info.value.message == 'Availability with id 404 not found'


def test_update_availability_replaces_interval_set(db) -> None:
    availability = _create(
        db,
        intervals=[_interval(1, '09:00:00', '12:00:00'), _interval(2, '09:00:00', '12:00:00')],
    )

    updated = availability_service.update_availability(
        db,
        availability.id,
        AvailabilityUpdate(
            name='Renamed',
            intervals=[_interval(2, '09:00:00', '12:00:00'), _interval(6, '10:00:00', '11:00:00')],
        ),
    )

    assert updated.name == 'Renamed'
    assert updated.timezone == 'Europe/London'
    assert _windows(updated) == [
        (2, time(9, 0), time(12, 0)),
        (6, time(10, 0), time(11, 0)),
    ]
    assert db.query(AvailabilityInterval).count() == 2


def test_update_availability_with_empty_intervals_clears_them(db) -> None:
    availability = _create(db, intervals=[_interval(1, '09:00:00', '12:00:00')])

    updated = availability_service.update_availability(db, availability.id, AvailabilityUpdate(intervals=[]))

    assert updated.intervals == []
    assert db.query(AvailabilityInterval).count() == 0


def test_update_availability_without_intervals_keeps_them(db) -> None:
    availability = _create(db, intervals=[_interval(1, '09:00:00', '12:00:00')])

    updated = availability_service.update_availability(db, availability.id, AvailabilityUpdate(timezone='UTC'))

    assert updated.timezone == 'UTC'
    assert _windows(updated) == [(1, time(9, 0), time(12, 0))]


def test_update_availability_rejects_invalid_interval_and_keeps_old_state(db) -> None:
    availability = _create(db, name='Keep me', intervals=[_interval(1, '09:00:00', '12:00:00')])

    with pytest.raises(InvalidArgumentError):
        availability_service.update_availability(
            db,
            availability.id,
            AvailabilityUpdate(name='Changed', intervals=[_interval(9, '09:00:00', '12:00:00')]),
        )

    fetched = availability_service.get_availability(db, availability.id)
    assert fetched.name == 'Keep me'
    assert _windows(fetched) == [(1, time(9, 0), time(12, 0))]


def test_update_availability_rejects_empty_payload(db) -> None:
    availability = _create(db)

    with pytest.raises(InvalidArgumentError) as exception_info:
        availability_service.update_availability(db, availability.id, AvailabilityUpdate())

    assert exception_info.value.message == 'At least one field must be provided for update'


def test_update_availability_raises_not_found(db) -> None:
    with pytest.raises(NotFoundError):
        availability_service.update_availability(db, 12, AvailabilityUpdate(name='Ghost'))


def test_delete_availability_returns_snapshot_and_cascades_intervals(db) -> None:
    availability = _create(db, name='Doomed', intervals=[_interval(1, '09:00:00', '12:00:00')])

    result = availability_service.delete_availability(db, availability.id)

    assert result['message'] == 'Availability deleted successfully'
    assert result['deletedAvailability']['name'] == 'Doomed'
    assert len(result['deletedAvailability']['intervals']) == 1
    assert db.query(Availability).count() == 0
    assert db.query(AvailabilityInterval).count() == 0


def test_delete_availability_clears_event_type_reference(db) -> None:
    availability = _create(db)
    event_type = EventType(name='intro', duration=30, url_slug='intro', availability_id=availability.id)
    db.add(event_type)
    db.commit()

    availability_service.delete_availability(db, availability.id)

    db.expire_all()
    remaining = db.query(EventType).filter(EventType.id == event_type.id).first()
    assert remaining is not None
    assert remaining.availability_id is None


def test_delete_availability_raises_not_found(db) -> None:
    with pytest.raises(NotFoundError):
        availability_service.delete_availability(db, 3)


def test_get_default_availability_returns_lowest_id(db) -> None:
    assert availability_service.get_default_availability(db) is None

    first = _create(db, name='First')
    _create(db, name='Second')

    default = availability_service.get_default_availability(db)
    assert default.id == first.id


def test_provision_default_availability_stages_seven_afternoon_intervals(db) -> None:
    availability = availability_service.provision_default_availability(db)
    db.commit()

    fetched = availability_service.get_availability(db, availability.id)
    assert fetched.name == 'Default Availability'
    assert fetched.timezone == 'UTC'
    assert _windows(fetched) == [(day, time(14, 0), time(22, 0)) for day in range(1, 8)]


def test_add_interval_appends_to_existing_availability(db) -> None:
    availability = _create(db)

    interval = availability_service.add_interval(db, availability.id, _interval(7, '10:00:00', '11:30:00'))

    assert interval.availability_id == availability.id
    assert (interval.day_of_week, interval.start_time, interval.end_time) == (7, time(10, 0), time(11, 30))


def test_add_interval_rejects_duplicate_window(db) -> None:
    availability = _create(db, intervals=[_interval(7, '10:00:00', '11:00:00')])

    with pytest.raises(ConflictError):
        availability_service.add_interval(db, availability.id, _interval(7, '10:00:00', '11:00:00'))


def test_add_interval_requires_existing_availability(db) -> None:
    with pytest.raises(NotFoundError):
        availability_service.add_interval(db, 99, _interval(1, '10:00:00', '11:00:00'))


def test_update_interval_checks_order_against_unchanged_side(db) -> None:
    availability = _create(db, intervals=[_interval(1, '09:00:00', '10:00:00')])
    interval_id = availability.intervals[0].id

    with pytest.raises(InvalidArgumentError):
        availability_service.update_interval(db, interval_id, IntervalUpdate(start_time='10:30:00'))

    updated = availability_service.update_interval(db, interval_id, IntervalUpdate(end_time='12:00:00'))
    assert updated.start_time == time(9, 0)
    assert updated.end_time == time(12, 0)


def test_update_interval_rejects_empty_payload_and_missing_interval(db) -> None:
    with pytest.raises(InvalidArgumentError):
        availability_service.update_interval(db, 1, IntervalUpdate())

    with pytest.raises(NotFoundError):
        availability_service.update_interval(db, 1, IntervalUpdate(day_of_week=2))


def test_delete_interval_returns_snapshot(db) -> None:
    availability = _create(db, intervals=[_interval(3, '09:00:00', '10:00:00')])
    interval_id = availability.intervals[0].id

    result = availability_service.delete_interval(db, interval_id)

    assert result['deletedInterval']['id'] == interval_id
    assert db.query(AvailabilityInterval).count() == 0

    with pytest.raises(NotFoundError):
        availability_service.delete_interval(db, interval_id)


def test_update_availability_with_only_null_fields_is_rejected(db) -> None:
    availability = _create(db, intervals=[_interval(1, '09:00:00', '12:00:00')])

    with pytest.raises(InvalidArgumentError):
        availability_service.update_availability(db, availability.id, AvailabilityUpdate(name=None, timezone=None))

    cleared = availability_service.update_availability(db, availability.id, AvailabilityUpdate(intervals=None))
    assert cleared.intervals == []
