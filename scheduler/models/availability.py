"""Availability model definitions."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, Time, UniqueConstraint
from sqlalchemy.orm import relationship

from scheduler.core import config
from scheduler.database import Base, TimestampMixin


class Availability(TimestampMixin, Base):
    """A named, timezone-tagged weekly template of open windows."""
    __tablename__ = "availability"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    timezone = Column(String(50), nullable=False, default=config.DEFAULT_TIMEZONE, server_default="UTC")

    intervals = relationship(
        "AvailabilityInterval",
        back_populates="availability",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [AvailabilityInterval.day_of_week, AvailabilityInterval.start_time],
    )
    event_types = relationship("EventType", back_populates="availability", passive_deletes=True)


class AvailabilityInterval(TimestampMixin, Base):
    """One open window within an availability for a day of the week (1=Monday)."""
    __tablename__ = "availability_interval"
    __table_args__ = (
        CheckConstraint("day_of_week >= 1 AND day_of_week <= 7", name="ck_availability_interval_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_availability_interval_time_order"),
        UniqueConstraint(
            "availability_id", "day_of_week", "start_time", "end_time",
            name="uq_availability_interval_window",
        ),
    )

    id = Column(Integer, primary_key=True)
    availability_id = Column(Integer, ForeignKey("availability.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    availability = relationship("Availability", back_populates="intervals")
