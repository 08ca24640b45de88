import datetime as dt
import re
from typing import Any, Literal

from pydantic import AnyUrl, BaseModel, EmailStr, Field, TypeAdapter, field_validator

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')

BookingStatus = Literal['confirmed', 'pending', 'cancelled', 'completed']

_url_adapter = TypeAdapter(AnyUrl)


def to_naive_utc(value: dt.datetime) -> dt.datetime:
    """Timestamps are stored without a zone, as UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(dt.timezone.utc).replace(tzinfo=None)


def _check_date_format(value: Any) -> Any:
    if isinstance(value, str) and not DATE_PATTERN.match(value):
        raise ValueError('Date must be in YYYY-MM-DD format')
    return value


def _normalize_meeting_link(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    _url_adapter.validate_python(value)
    return value


class BookingCreate(BaseModel):
    event_type_id: int = Field(gt=0)
    client_email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    additional_notes: str | None = None
    start_time: dt.datetime
    end_time: dt.datetime
    date: dt.date
    meeting_link: str | None = None
    booking_status: BookingStatus = 'confirmed'

    @field_validator('start_time', 'end_time')
    @classmethod
    def normalize_timestamps(cls, value: dt.datetime) -> dt.datetime:
        return to_naive_utc(value)

    @field_validator('date', mode='before')
    @classmethod
    def validate_date_format(cls, value):
        return _check_date_format(value)

    @field_validator('meeting_link')
    @classmethod
    def validate_meeting_link(cls, value: str | None) -> str | None:
        return _normalize_meeting_link(value)


class BookingUpdate(BaseModel):
    """Partial update; ``model_dump(exclude_unset=True)`` gives the fields to apply."""

    event_type_id: int | None = Field(default=None, gt=0)
    client_email: EmailStr | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    additional_notes: str | None = None
    start_time: dt.datetime | None = None
    end_time: dt.datetime | None = None
    date: dt.date | None = None
    meeting_link: str | None = None
    booking_status: BookingStatus | None = None

    @field_validator('start_time', 'end_time')
    @classmethod
    def normalize_timestamps(cls, value: dt.datetime | None) -> dt.datetime | None:
        if value is None:
            return None
        return to_naive_utc(value)

    @field_validator('date', mode='before')
    @classmethod
    def validate_date_format(cls, value):
        return _check_date_format(value)

    @field_validator('meeting_link')
    @classmethod
    def validate_meeting_link(cls, value: str | None) -> str | None:
        return _normalize_meeting_link(value)


class BookingFilters(BaseModel):
    event_type_id: int | None = None
    date: dt.date | None = None
    booking_status: BookingStatus | None = None
    client_email: str | None = None


class BookingResponse(BaseModel):
    id: int
    event_type_id: int
    client_email: str
    name: str
    additional_notes: str | None = None
    start_time: dt.datetime
    end_time: dt.datetime
    date: dt.date
    meeting_link: str | None = None
    booking_status: str
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None

    class Config:
        from_attributes = True
