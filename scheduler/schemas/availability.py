import re
from datetime import datetime, time

from pydantic import BaseModel, Field, field_validator

TIME_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]:[0-5][0-9]$')


def _check_time_format(value, field_label: str):
    if isinstance(value, str) and not TIME_PATTERN.match(value.strip()):
        raise ValueError(f'{field_label} must be in HH:MM:SS format')
    return value


class IntervalBase(BaseModel):
    # Range and ordering are business rules checked by the availability store.
    day_of_week: int
    start_time: time
    end_time: time

    @field_validator('start_time', mode='before')
    @classmethod
    def validate_start_time_format(cls, value):
        return _check_time_format(value, 'Start time')

    @field_validator('end_time', mode='before')
    @classmethod
    def validate_end_time_format(cls, value):
        return _check_time_format(value, 'End time')


class IntervalCreate(IntervalBase):
    pass


class IntervalUpdate(BaseModel):
    day_of_week: int | None = None
    start_time: time | None = None
    end_time: time | None = None

    @field_validator('start_time', mode='before')
    @classmethod
    def validate_start_time_format(cls, value):
        return _check_time_format(value, 'Start time')

    @field_validator('end_time', mode='before')
    @classmethod
    def validate_end_time_format(cls, value):
        return _check_time_format(value, 'End time')


class AvailabilityCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    timezone: str = Field(default='UTC', min_length=1, max_length=50)
    intervals: list[IntervalCreate] = Field(default_factory=list)


class AvailabilityUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    timezone: str | None = Field(default=None, min_length=1, max_length=50)
    intervals: list[IntervalCreate] | None = None


class IntervalResponse(BaseModel):
    id: int
    availability_id: int
    day_of_week: int
    start_time: time
    end_time: time
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class AvailabilityResponse(BaseModel):
    id: int
    name: str
    timezone: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    intervals: list[IntervalResponse] = []

    class Config:
        from_attributes = True
