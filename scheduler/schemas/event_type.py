from datetime import datetime

from pydantic import BaseModel, Field

NAME_PATTERN = r'^[a-z0-9-]+$'
MAX_DURATION_MINUTES = 1440


class EventTypeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255, pattern=NAME_PATTERN)
    description: str | None = None
    duration: int = Field(gt=0, le=MAX_DURATION_MINUTES)
    url_slug: str | None = Field(default=None, max_length=255, pattern=NAME_PATTERN)
    user_id: int | None = None
    availability_id: int | None = Field(default=None, gt=0)


class EventTypeUpdate(BaseModel):
    """Only the fields a caller sends are applied; ``availability_id=None`` clears the link."""

    name: str | None = Field(default=None, min_length=1, max_length=255, pattern=NAME_PATTERN)
    description: str | None = None
    duration: int | None = Field(default=None, gt=0, le=MAX_DURATION_MINUTES)
    url_slug: str | None = Field(default=None, max_length=255, pattern=NAME_PATTERN)
    user_id: int | None = None
    availability_id: int | None = Field(default=None, gt=0)


class EventTypeResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    duration: int
    url_slug: str | None = None
    user_id: int | None = None
    availability_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class EventTypeDetailResponse(EventTypeResponse):
    booking_url: str = Field(serialization_alias='bookingUrl')
