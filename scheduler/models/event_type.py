"""Event type model definitions."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from scheduler.database import Base, TimestampMixin


class EventType(TimestampMixin, Base):
    """A bookable meeting template with a duration in minutes."""
    __tablename__ = "event_types"
    __table_args__ = (
        CheckConstraint("duration > 0 AND duration <= 1440", name="ck_event_types_duration"),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text)
    duration = Column(Integer, nullable=False)
    url_slug = Column(String(255), unique=True)
    user_id = Column(Integer)  # reserved, single-user for now
    availability_id = Column(Integer, ForeignKey("availability.id", ondelete="SET NULL"))

    availability = relationship("Availability", back_populates="event_types")
    bookings = relationship(
        "Booking",
        back_populates="event_type",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def booking_url(self) -> str:
        return f"/book/{self.url_slug or self.name}"
