from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from app.models.reservation import ReservationStatus
from app.models.user import UserRole


class ReservationRequest(BaseModel):
    classroom_id: str = Field(min_length=1, max_length=36)
    date: str = Field(min_length=1, max_length=20)
    start_time: str = Field(min_length=1, max_length=10)
    end_time: str = Field(min_length=1, max_length=10)
    purpose: str = Field(min_length=1, max_length=500)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("purpose")
    @classmethod
    def normalize_purpose(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Purpose cannot be empty")
        return trimmed


class ReservationEditRequest(BaseModel):
    classroom_id: str | None = Field(default=None, min_length=1, max_length=36)
    date: str = Field(min_length=1, max_length=20)
    start_time: str = Field(min_length=1, max_length=10)
    end_time: str = Field(min_length=1, max_length=10)
    purpose: str = Field(min_length=1, max_length=500)
    notes: str | None = Field(default=None, max_length=2000)


class ReservationReview(BaseModel):
    comment: str | None = Field(default=None, max_length=1000)


class ReservationOut(BaseModel):
    id: str
    user_id: str
    reserved_by: str
    role: UserRole
    classroom_id: str
    classroom: str
    reservation_date: date
    start_time: str
    end_time: str
    time: str
    purpose: str
    notes: str | None = None
    status: ReservationStatus
    reviewed_by_id: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime | None = None
