from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from app.models.timetable_entry import DEFAULT_ENTRY_COLOR, DEFAULT_ENTRY_TYPE, Weekday


class TimetableEntryIn(BaseModel):
    """Timetable slot as submitted by a client.

    ``day``/``start_time``/``end_time`` stay plain strings here; the services
    parse them so malformed values surface as ``invalid_format`` errors.
    """

    day: str = Field(min_length=1, max_length=20)
    start_time: str = Field(min_length=1, max_length=10)
    end_time: str = Field(min_length=1, max_length=10)
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    instructor: str | None = Field(default=None, max_length=200)
    location: str | None = Field(default=None, max_length=200)
    color: str | None = Field(default=None, max_length=20)
    entry_type: str | None = Field(default=None, max_length=50)
    subject_id: str | None = Field(default=None, max_length=36)
    subject_name: str | None = Field(default=None, max_length=200)

    @field_validator("title")
    @classmethod
    def normalize_title(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Title cannot be empty")
        return trimmed


class TimetableEntryOut(BaseModel):
    id: str | None = None
    day: Weekday
    start_time: str
    end_time: str
    title: str
    description: str | None = None
    instructor: str | None = None
    location: str | None = None
    color: str = DEFAULT_ENTRY_COLOR
    entry_type: str = DEFAULT_ENTRY_TYPE
    subject_id: str | None = None
    subject_name: str | None = None
    source_class_group_id: str | None = None

    model_config = {"from_attributes": True}


class SingleEntryConflictCheck(BaseModel):
    day: str = Field(min_length=1, max_length=20)
    start_time: str = Field(min_length=1, max_length=10)
    end_time: str = Field(min_length=1, max_length=10)
