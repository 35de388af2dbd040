from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.timetable import TimetableEntryIn, TimetableEntryOut
from app.schemas.user import UserSummary


class ClassGroupBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    course_code: str = Field(min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=2000)
    branch_id: str | None = Field(default=None, max_length=36)
    academic_year: str | None = Field(default=None, max_length=20)
    semester: str | None = Field(default=None, max_length=20)
    professor_id: str | None = Field(default=None, max_length=36)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be empty")
        return trimmed

    @field_validator("course_code")
    @classmethod
    def normalize_course_code(cls, value: str) -> str:
        code = value.strip().upper()
        if not code:
            raise ValueError("Course code cannot be empty")
        if ":" in code:
            raise ValueError("Course code cannot contain ':'")
        return code


class ClassGroupCreate(ClassGroupBase):
    timetable_entries: list[TimetableEntryIn] = Field(default_factory=list, max_length=100)


class ClassGroupUpdate(ClassGroupBase):
    pass


class ClassGroupOut(BaseModel):
    id: str
    name: str
    course_code: str
    description: str | None = None
    branch_id: str | None = None
    academic_year: str | None = None
    semester: str | None = None
    professor_id: str | None = None
    professor_name: str | None = None
    students: list[UserSummary] = Field(default_factory=list)
    student_count: int = 0
    timetable_entries: list[TimetableEntryOut] = Field(default_factory=list)
    updated_at: datetime | None = None
