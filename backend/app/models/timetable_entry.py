import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base

if TYPE_CHECKING:
    from app.models.class_group import ClassGroup
    from app.models.user import User


DEFAULT_ENTRY_COLOR = "#6366f1"
DEFAULT_ENTRY_TYPE = "Lecture"


class Weekday(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"


class TimetableEntry(Base):
    """One recurring weekly slot.

    Owned either by a class group (``class_group_id``) or by a professor's
    personal timetable (``owner_id``). Personal entries mirrored from a class
    group carry ``source_class_group_id``; direct personal entries leave it empty.
    """

    __tablename__ = "timetable_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_group_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("class_groups.id", ondelete="CASCADE"), nullable=True, index=True
    )
    owner_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    source_class_group_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)

    day: Mapped[Weekday] = mapped_column(SAEnum(Weekday, name="weekday"), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    instructor: Mapped[str | None] = mapped_column(String(200), nullable=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    color: Mapped[str] = mapped_column(String(20), nullable=False, default=DEFAULT_ENTRY_COLOR)
    entry_type: Mapped[str] = mapped_column(String(50), nullable=False, default=DEFAULT_ENTRY_TYPE)
    subject_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    subject_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    class_group: Mapped["ClassGroup | None"] = relationship(back_populates="timetable_entries")
    owner: Mapped["User | None"] = relationship(back_populates="timetable_entries", foreign_keys=[owner_id])

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_mirrored(self) -> bool:
        return self.source_class_group_id is not None
