from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class InstitutionSettings(Base):
    __tablename__ = "institution_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    auto_approve_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    professor_require_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    student_require_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notify_reservation_created: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    max_days_in_advance: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    min_hours_before_reservation: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_hours_per_reservation: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    max_reservations_per_week: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
