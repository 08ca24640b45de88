"""Booking model definitions."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship

from scheduler.database import Base, TimestampMixin

BOOKING_STATUSES = ('confirmed', 'pending', 'cancelled', 'completed')
CANCELLED_STATUS = 'cancelled'
DEFAULT_BOOKING_STATUS = 'confirmed'


class Booking(TimestampMixin, Base):
    """A client's reservation against an event type for a date and time range."""
    __tablename__ = "bookings"
    __table_args__ = (
        # Backstop against two concurrent inserts both passing the overlap check.
        # Cancelled rows are left out so a freed slot can be booked again.
        Index(
            "uq_bookings_event_type_date_start",
            "event_type_id", "date", "start_time",
            unique=True,
            postgresql_where=text("booking_status <> 'cancelled'"),
            sqlite_where=text("booking_status <> 'cancelled'"),
        ),
        CheckConstraint("start_time < end_time", name="ck_bookings_time_order"),
        CheckConstraint(
            "booking_status IN (" + ", ".join(f"'{status}'" for status in BOOKING_STATUSES) + ")",
            name="ck_bookings_status",
        ),
    )

    id = Column(Integer, primary_key=True)
    event_type_id = Column(Integer, ForeignKey("event_types.id", ondelete="CASCADE"), nullable=False)
    client_email = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    additional_notes = Column(Text)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    date = Column(Date, nullable=False)
    meeting_link = Column(String(500))
    booking_status = Column(String(50), nullable=False, default=DEFAULT_BOOKING_STATUS, server_default="confirmed")

    event_type = relationship("EventType", back_populates="bookings")
