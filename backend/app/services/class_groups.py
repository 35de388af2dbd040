from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError, RoleMismatchError, SlotUnavailableError, UnauthorizedError
from app.db.queries import (
    find_class_groups_by_professor,
    find_class_groups_by_student_id,
    find_person_by_id,
    find_users_by_role,
    lock_person,
)
from app.models.class_group import ClassGroup
from app.models.timetable_entry import DEFAULT_ENTRY_COLOR, DEFAULT_ENTRY_TYPE, TimetableEntry
from app.models.user import User, UserRole
from app.schemas.class_group import ClassGroupCreate, ClassGroupUpdate
from app.schemas.timetable import SingleEntryConflictCheck, TimetableEntryIn
from app.services.audit import log_activity
from app.services.conflict_detector import ConflictMap, TimetableConflictDetector
from app.services.conflict_report import (
    conflict_report,
    format_conflict_message,
    suggest_alternatives,
    summarize_conflicts,
    unique_parties,
)
from app.services.time_interval import TimeInterval
from app.services.timetable_sync import sync_professor_timetable, unsync_professor_timetable

logger = logging.getLogger(__name__)


def parse_entries(entries: Sequence[TimetableEntryIn]) -> list[TimeInterval]:
    return [TimeInterval.parse(item.day, item.start_time, item.end_time) for item in entries]


def build_entry(payload: TimetableEntryIn, interval: TimeInterval, position: int) -> TimetableEntry:
    return TimetableEntry(
        day=interval.day,
        start_time=interval.start_time,
        end_time=interval.end_time,
        title=payload.title,
        description=payload.description,
        instructor=payload.instructor,
        location=payload.location,
        color=payload.color or DEFAULT_ENTRY_COLOR,
        entry_type=payload.entry_type or DEFAULT_ENTRY_TYPE,
        subject_id=payload.subject_id,
        subject_name=payload.subject_name,
        position=position,
    )


def raise_on_conflicts(conflicts: ConflictMap, candidates: Sequence[TimeInterval]) -> None:
    if not conflicts:
        return
    logger.info("Rejected timetable write with %d conflicting window(s)", len(conflicts))
    by_label = {item.label: item for item in candidates}
    raise SlotUnavailableError(
        "Timetable conflicts detected: " + format_conflict_message(conflicts),
        details={
            "conflicts": conflict_report(conflicts),
            "alternatives": {
                window: [slot.as_dict() for slot in suggest_alternatives(by_label[window])]
                for window in conflicts
                if window in by_label
            },
        },
    )


def prefixed_entry_view(class_group: ClassGroup, entry: TimetableEntry) -> dict:
    return {
        "id": entry.id,
        "day": entry.day,
        "start_time": entry.start_time,
        "end_time": entry.end_time,
        "title": f"{class_group.mirror_prefix}{entry.title}",
        "description": entry.description,
        "instructor": entry.instructor,
        "location": entry.location,
        "color": entry.color,
        "entry_type": entry.entry_type,
        "subject_id": entry.subject_id,
        "subject_name": entry.subject_name,
        "source_class_group_id": class_group.id,
    }


class ClassGroupService:
    def __init__(self, db: Session, actor: User | None = None) -> None:
        self.db = db
        self.actor = actor
        self.detector = TimetableConflictDetector(db)

    # reads

    def get(self, class_group_id: str) -> ClassGroup:
        class_group = self.db.get(ClassGroup, class_group_id)
        if class_group is None:
            raise ResourceNotFoundError("Class group", class_group_id)
        return class_group

    def list_all(self) -> list[ClassGroup]:
        return list(self.db.execute(select(ClassGroup).order_by(ClassGroup.course_code, ClassGroup.name)).scalars())

    def list_by_professor(self, professor_id: str) -> list[ClassGroup]:
        self._require_person(professor_id, "Professor")
        return find_class_groups_by_professor(self.db, professor_id)

    def list_by_student(self, student_id: str) -> list[ClassGroup]:
        return find_class_groups_by_student_id(self.db, student_id)

    def available_students(self, class_group_id: str) -> list[User]:
        enrolled = {student.id for student in self.get(class_group_id).students}
        return [student for student in find_users_by_role(self.db, UserRole.student) if student.id not in enrolled]

    def student_timetable(self, student_id: str) -> list[dict]:
        return [
            prefixed_entry_view(group, entry)
            for group in find_class_groups_by_student_id(self.db, student_id)
            for entry in group.timetable_entries
        ]

    def professor_taught_timetable(self, professor_id: str) -> list[dict]:
        return [
            prefixed_entry_view(group, entry)
            for group in find_class_groups_by_professor(self.db, professor_id)
            for entry in group.timetable_entries
        ]

    # writes

    def create(self, payload: ClassGroupCreate) -> ClassGroup:
        professor = self._resolve_professor(payload.professor_id)
        candidates = parse_entries(payload.timetable_entries)
        if professor is not None:
            raise_on_conflicts(
                self.detector.check_batch(candidates, class_group_id=None, professor=professor, students=[]),
                candidates,
            )

        class_group = ClassGroup(
            name=payload.name,
            course_code=payload.course_code,
            description=payload.description,
            branch_id=payload.branch_id,
            academic_year=payload.academic_year,
            semester=payload.semester,
            professor=professor,
        )
        for position, (item, interval) in enumerate(zip(payload.timetable_entries, candidates)):
            class_group.timetable_entries.append(build_entry(item, interval, position))
        self.db.add(class_group)
        self.db.flush()

        if professor is not None:
            sync_professor_timetable(professor, class_group)
        log_activity(
            self.db,
            actor=self.actor,
            action="class_group.create",
            entity_type="class_group",
            entity_id=class_group.id,
            details={"course_code": class_group.course_code, "entries": len(candidates)},
        )
        return class_group

    def update(self, class_group_id: str, payload: ClassGroupUpdate) -> ClassGroup:
        class_group = self.get(class_group_id)
        previous_professor = class_group.professor
        professor = self._resolve_professor(payload.professor_id)
        professor_changed = (previous_professor.id if previous_professor else None) != (
            professor.id if professor else None
        )

        if professor_changed and professor is not None:
            candidates = [
                TimeInterval.parse(entry.day, entry.start_time, entry.end_time)
                for entry in class_group.timetable_entries
            ]
            raise_on_conflicts(
                self.detector.check_batch(candidates, class_group_id=class_group.id, professor=professor, students=[]),
                candidates,
            )

        class_group.name = payload.name
        class_group.course_code = payload.course_code
        class_group.description = payload.description
        class_group.branch_id = payload.branch_id
        class_group.academic_year = payload.academic_year
        class_group.semester = payload.semester
        class_group.professor = professor

        if previous_professor is not None and professor_changed:
            unsync_professor_timetable(previous_professor, class_group)
        if professor is not None:
            sync_professor_timetable(professor, class_group)

        log_activity(
            self.db,
            actor=self.actor,
            action="class_group.update",
            entity_type="class_group",
            entity_id=class_group.id,
            details={
                "previous_professor_id": previous_professor.id if previous_professor else None,
                "professor_id": professor.id if professor else None,
            },
        )
        return class_group

    def delete(self, class_group_id: str) -> None:
        class_group = self.get(class_group_id)
        if class_group.professor is not None:
            unsync_professor_timetable(class_group.professor, class_group)
        log_activity(
            self.db,
            actor=self.actor,
            action="class_group.delete",
            entity_type="class_group",
            entity_id=class_group.id,
            details={"course_code": class_group.course_code},
        )
        self.db.delete(class_group)

    def add_student(self, class_group_id: str, student_id: str) -> ClassGroup:
        class_group = self.get(class_group_id)
        student = self._require_person(student_id, "Student")
        if student.role != UserRole.student:
            raise RoleMismatchError(student_id, UserRole.student.value)
        if all(item.id != student.id for item in class_group.students):
            class_group.students.append(student)
        return class_group

    def remove_student(self, class_group_id: str, student_id: str) -> ClassGroup:
        class_group = self.get(class_group_id)
        self._require_person(student_id, "Student")
        class_group.students[:] = [item for item in class_group.students if item.id != student_id]
        return class_group

    def replace_timetable(self, class_group_id: str, entries: Sequence[TimetableEntryIn]) -> ClassGroup:
        class_group = self.get(class_group_id)
        self._ensure_can_edit_timetable(class_group)
        if class_group.professor_id is not None:
            lock_person(self.db, class_group.professor_id)
        candidates = parse_entries(entries)
        raise_on_conflicts(
            self.detector.check_batch(
                candidates,
                class_group_id=class_group.id,
                professor=class_group.professor,
                students=class_group.students,
            ),
            candidates,
        )

        class_group.timetable_entries[:] = [
            build_entry(item, interval, position)
            for position, (item, interval) in enumerate(zip(entries, candidates))
        ]
        if class_group.professor is not None:
            sync_professor_timetable(class_group.professor, class_group)

        log_activity(
            self.db,
            actor=self.actor,
            action="class_group.timetable.replace",
            entity_type="class_group",
            entity_id=class_group.id,
            details={"entries": len(candidates)},
        )
        return class_group

    def check_entry(self, class_group_id: str, payload: SingleEntryConflictCheck) -> dict:
        """Advisory check of one slot; nothing is written."""
        class_group = self.get(class_group_id)
        candidate = TimeInterval.parse(payload.day, payload.start_time, payload.end_time)
        conflicts = self.detector.check_single(class_group, candidate)
        result = {
            "has_conflict": bool(conflicts),
            "message": summarize_conflicts(conflicts),
            "affected_users": [
                {"id": item.id, "name": item.name, "role": item.role} for item in unique_parties(conflicts)
            ],
            "conflicts": conflict_report(conflicts),
            "alternatives": None,
        }
        if conflicts:
            result["alternatives"] = [slot.as_dict() for slot in suggest_alternatives(candidate)]
        return result

    # helpers

    def _require_person(self, user_id: str, label: str) -> User:
        person = find_person_by_id(self.db, user_id)
        if person is None:
            raise ResourceNotFoundError(label, user_id)
        return person

    def _resolve_professor(self, professor_id: str | None) -> User | None:
        if professor_id is None:
            return None
        professor = lock_person(self.db, professor_id)
        if professor is None:
            raise ResourceNotFoundError("Professor", professor_id)
        if professor.role != UserRole.professor:
            raise RoleMismatchError(professor_id, UserRole.professor.value)
        return professor

    def _ensure_can_edit_timetable(self, class_group: ClassGroup) -> None:
        if self.actor is None or self.actor.role == UserRole.admin:
            return
        if self.actor.role == UserRole.professor and class_group.professor_id == self.actor.id:
            return
        raise UnauthorizedError("Only the assigned professor or an admin can edit this timetable")
