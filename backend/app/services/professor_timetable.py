from __future__ import annotations

from sqlalchemy.orm import Session

from app.core.exceptions import (
    InvalidTransitionError,
    ResourceNotFoundError,
    RoleMismatchError,
    UnauthorizedError,
)
from app.db.queries import find_person_by_id, lock_person
from app.models.timetable_entry import TimetableEntry
from app.models.user import User, UserRole
from app.schemas.timetable import TimetableEntryIn
from app.services.audit import log_activity
from app.services.class_groups import build_entry, raise_on_conflicts
from app.services.conflict_detector import detect, professor_commitments
from app.services.time_interval import TimeInterval
from app.services.timetable_sync import resync_professor


class ProfessorTimetableService:
    """Professor personal timetable: direct entries plus class-group mirrors."""

    def __init__(self, db: Session, actor: User) -> None:
        self.db = db
        self.actor = actor

    def get_professor(self, professor_id: str) -> User:
        professor = find_person_by_id(self.db, professor_id)
        if professor is None:
            raise ResourceNotFoundError("Professor", professor_id)
        if professor.role != UserRole.professor:
            raise RoleMismatchError(professor_id, UserRole.professor.value)
        return professor

    def entries(self, professor_id: str) -> list[TimetableEntry]:
        return list(self.get_professor(professor_id).timetable_entries)

    def add_entry(self, professor_id: str, payload: TimetableEntryIn) -> TimetableEntry:
        professor = self._editable_professor(professor_id)
        candidate = TimeInterval.parse(payload.day, payload.start_time, payload.end_time)
        raise_on_conflicts(
            detect([candidate], [professor_commitments(self.db, professor, exclude_group_id=None)]),
            [candidate],
        )

        entry = build_entry(payload, candidate, len(professor.timetable_entries))
        professor.timetable_entries.append(entry)
        self.db.flush()
        log_activity(
            self.db,
            actor=self.actor,
            action="professor.timetable.add",
            entity_type="timetable_entry",
            entity_id=entry.id,
            details={"professor_id": professor.id, "window": candidate.label},
        )
        return entry

    def delete_entry(self, professor_id: str, entry_id: str) -> None:
        professor = self._editable_professor(professor_id)
        entry = next((item for item in professor.timetable_entries if item.id == entry_id), None)
        if entry is None:
            raise ResourceNotFoundError("Timetable entry", entry_id)
        if entry.is_mirrored:
            raise InvalidTransitionError(
                "Entries mirrored from a class group can only change through that class group",
                details={"entry_id": entry.id, "source_class_group_id": entry.source_class_group_id},
            )

        professor.timetable_entries.remove(entry)
        for index, item in enumerate(professor.timetable_entries):
            item.position = index
        log_activity(
            self.db,
            actor=self.actor,
            action="professor.timetable.delete",
            entity_type="timetable_entry",
            entity_id=entry_id,
            details={"professor_id": professor.id},
        )

    def resync(self, professor_id: str) -> dict:
        professor = self._editable_professor(professor_id)
        summary = resync_professor(self.db, professor)
        log_activity(
            self.db,
            actor=self.actor,
            action="professor.timetable.resync",
            entity_type="user",
            entity_id=professor.id,
            details=summary,
        )
        return summary

    def _editable_professor(self, professor_id: str) -> User:
        professor = self.get_professor(professor_id)
        if self.actor.role != UserRole.admin and self.actor.id != professor.id:
            raise UnauthorizedError("Professors can only manage their own timetable")
        lock_person(self.db, professor.id)
        return professor
