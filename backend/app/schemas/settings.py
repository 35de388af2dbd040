from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from app.models.user import UserRole


class ReservationPolicy(BaseModel):
    """Read model of the institution's reservation rules. Immutable once built."""

    model_config = {"frozen": True, "from_attributes": True}

    auto_approve_admin: bool = True
    professor_require_approval: bool = False
    student_require_approval: bool = True
    email_notifications: bool = True
    notify_reservation_created: bool = True
    max_days_in_advance: int = Field(default=30, ge=0, le=365)
    min_hours_before_reservation: int = Field(default=1, ge=0, le=72)
    max_hours_per_reservation: int = Field(default=4, ge=1, le=24)
    max_reservations_per_week: int = Field(default=5, ge=1, le=100)

    def requires_approval(self, role: UserRole) -> bool:
        if role == UserRole.admin:
            return not self.auto_approve_admin
        if role == UserRole.professor:
            return self.professor_require_approval
        return self.student_require_approval

    @property
    def sends_creation_emails(self) -> bool:
        return self.email_notifications and self.notify_reservation_created


DEFAULT_RESERVATION_POLICY = ReservationPolicy()


class ReservationPolicyUpdate(BaseModel):
    auto_approve_admin: bool = True
    professor_require_approval: bool = False
    student_require_approval: bool = True
    email_notifications: bool = True
    notify_reservation_created: bool = True
    max_days_in_advance: int = Field(default=30, ge=0, le=365)
    min_hours_before_reservation: int = Field(default=1, ge=0, le=72)
    max_hours_per_reservation: int = Field(default=4, ge=1, le=24)
    max_reservations_per_week: int = Field(default=5, ge=1, le=100)

    @model_validator(mode="after")
    def validate_lead_time(self) -> "ReservationPolicyUpdate":
        if self.max_days_in_advance == 0 and self.min_hours_before_reservation >= 24:
            raise ValueError("min_hours_before_reservation leaves no bookable window when max_days_in_advance is 0")
        return self
