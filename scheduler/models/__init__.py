from scheduler.models.availability import Availability, AvailabilityInterval
from scheduler.models.booking import Booking
from scheduler.models.event_type import EventType

__all__ = ['Availability', 'AvailabilityInterval', 'Booking', 'EventType']
