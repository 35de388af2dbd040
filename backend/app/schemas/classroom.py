from pydantic import BaseModel, Field, field_validator

from app.models.classroom import ClassroomType


class ClassroomBase(BaseModel):
    room_number: str = Field(min_length=1, max_length=50)
    type: ClassroomType
    capacity: int = Field(ge=1, le=2000)
    features: list[str] = Field(default_factory=list, max_length=50)

    @field_validator("room_number")
    @classmethod
    def normalize_room_number(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Room number cannot be empty")
        return trimmed

    @field_validator("features")
    @classmethod
    def normalize_features(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(item.strip() for item in value if item.strip()))


class ClassroomCreate(ClassroomBase):
    pass


class ClassroomOut(ClassroomBase):
    id: str

    model_config = {"from_attributes": True}


class AvailabilityQuery(BaseModel):
    date: str
    start_time: str
    end_time: str
    type: ClassroomType | None = None
    capacity: int = Field(default=0, ge=0, le=2000)
