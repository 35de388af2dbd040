from pydantic import BaseModel

from app.models.user import UserRole


class AffectedUserOut(BaseModel):
    id: str
    name: str
    role: UserRole


class PartyRef(BaseModel):
    id: str
    name: str


class ConflictWindowOut(BaseModel):
    window: str
    professors: list[PartyRef]
    students: list[PartyRef]


class AlternativeSlotOut(BaseModel):
    day: str
    start_time: str
    end_time: str
    label: str


class ConflictCheckResult(BaseModel):
    has_conflict: bool
    message: str
    affected_users: list[AffectedUserOut]
    conflicts: list[ConflictWindowOut]
    alternatives: list[AlternativeSlotOut] | None = None
