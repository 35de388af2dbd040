import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base

if TYPE_CHECKING:
    from app.models.timetable_entry import TimetableEntry
    from app.models.user import User


class_group_students = Table(
    "class_group_students",
    Base.metadata,
    Column("class_group_id", String(36), ForeignKey("class_groups.id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class ClassGroup(Base):
    __tablename__ = "class_groups"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    course_code: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    branch_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    academic_year: Mapped[str | None] = mapped_column(String(20), nullable=True)
    semester: Mapped[str | None] = mapped_column(String(20), nullable=True)
    professor_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    professor: Mapped["User | None"] = relationship(foreign_keys=[professor_id])
    students: Mapped[list["User"]] = relationship(secondary=class_group_students, order_by="User.name")
    timetable_entries: Mapped[list["TimetableEntry"]] = relationship(
        back_populates="class_group",
        cascade="all, delete-orphan",
        order_by="TimetableEntry.position",
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    @property
    def mirror_prefix(self) -> str:
        return f"{self.course_code}: "
