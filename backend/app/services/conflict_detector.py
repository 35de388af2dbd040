from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Iterable, Sequence

from sqlalchemy.orm import Session

from app.db.queries import (
    find_class_groups_by_professor,
    find_class_groups_by_student_id,
    find_reservations_by_classroom_and_date_and_status_in,
)
from app.models.class_group import ClassGroup
from app.models.reservation import ACTIVE_RESERVATION_STATUSES, Reservation
from app.models.timetable_entry import TimetableEntry
from app.models.user import User, UserRole
from app.services.time_interval import TimeInterval, minutes_overlap, overlaps, parse_time, parse_time_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AffectedParty:
    id: str
    name: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "AffectedParty":
        return cls(id=user.id, name=user.name, role=user.role)


@dataclass
class CommitmentSource:
    """Existing commitments held by one party."""

    party: AffectedParty
    intervals: list[TimeInterval] = field(default_factory=list)


# Conflict window label -> parties, in first-seen order.
ConflictMap = dict[str, list[AffectedParty]]


def detect(candidates: Sequence[TimeInterval], sources: Iterable[CommitmentSource]) -> ConflictMap:
    """Pairwise comparison of every candidate against every existing interval.

    Results are keyed by the candidate's label; each party appears at most once
    per key.
    """
    conflicts: ConflictMap = {}
    materialized = list(sources)
    for candidate in candidates:
        for source in materialized:
            if not any(overlaps(candidate, existing) for existing in source.intervals):
                continue
            parties = conflicts.setdefault(candidate.label, [])
            if all(item.id != source.party.id for item in parties):
                parties.append(source.party)
    return conflicts


def interval_of(entry: TimetableEntry) -> TimeInterval:
    return TimeInterval.parse(entry.day, entry.start_time, entry.end_time)


def _intervals_from_groups(groups: Iterable[ClassGroup], exclude_group_id: str | None) -> list[TimeInterval]:
    intervals: list[TimeInterval] = []
    for group in groups:
        if exclude_group_id is not None and group.id == exclude_group_id:
            continue
        intervals.extend(interval_of(entry) for entry in group.timetable_entries)
    return intervals


def professor_commitments(db: Session, professor: User, *, exclude_group_id: str | None) -> CommitmentSource:
    """Other taught class groups plus the professor's direct personal entries."""
    intervals = _intervals_from_groups(find_class_groups_by_professor(db, professor.id), exclude_group_id)
    intervals.extend(interval_of(entry) for entry in professor.timetable_entries if not entry.is_mirrored)
    return CommitmentSource(party=AffectedParty.from_user(professor), intervals=intervals)


def student_commitments(db: Session, student: User, *, exclude_group_id: str | None) -> CommitmentSource:
    intervals = _intervals_from_groups(find_class_groups_by_student_id(db, student.id), exclude_group_id)
    return CommitmentSource(party=AffectedParty.from_user(student), intervals=intervals)


class TimetableConflictDetector:
    """Person-centric detection for a class group's proposed timetable."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def sources_for(
        self,
        *,
        class_group_id: str | None,
        professor: User | None,
        students: Iterable[User],
    ) -> list[CommitmentSource]:
        sources: list[CommitmentSource] = []
        if professor is not None:
            sources.append(professor_commitments(self.db, professor, exclude_group_id=class_group_id))
        for student in students:
            sources.append(student_commitments(self.db, student, exclude_group_id=class_group_id))
        return sources

    def check_batch(
        self,
        candidates: Sequence[TimeInterval],
        *,
        class_group_id: str | None,
        professor: User | None,
        students: Iterable[User],
    ) -> ConflictMap:
        if not candidates:
            return {}
        sources = self.sources_for(class_group_id=class_group_id, professor=professor, students=students)
        conflicts = detect(candidates, sources)
        if conflicts:
            logger.info(
                "Detected %d conflicting window(s) for class group %s",
                len(conflicts),
                class_group_id or "<new>",
            )
        return conflicts

    def check_single(self, class_group: ClassGroup, candidate: TimeInterval) -> ConflictMap:
        return self.check_batch(
            [candidate],
            class_group_id=class_group.id,
            professor=class_group.professor,
            students=class_group.students,
        )


def find_conflicting_reservation(
    db: Session,
    *,
    classroom_id: str,
    reservation_date: date,
    start_time: str,
    end_time: str,
    exclude_reservation_id: str | None = None,
) -> Reservation | None:
    """Room-centric check against PENDING/APPROVED reservations on the same date."""
    start_minute, end_minute = parse_time_range(start_time, end_time)
    existing = find_reservations_by_classroom_and_date_and_status_in(
        db,
        classroom_id=classroom_id,
        reservation_date=reservation_date,
        statuses=ACTIVE_RESERVATION_STATUSES,
    )
    for reservation in existing:
        if exclude_reservation_id is not None and reservation.id == exclude_reservation_id:
            continue
        other_start, other_end = parse_time(reservation.start_time), parse_time(reservation.end_time)
        if minutes_overlap(start_minute, end_minute, other_start, other_end):
            logger.info(
                "Reservation conflict in classroom %s on %s: requested %s-%s overlaps %s (%s-%s)",
                classroom_id,
                reservation_date.isoformat(),
                start_time,
                end_time,
                reservation.id,
                reservation.start_time,
                reservation.end_time,
            )
            return reservation
    return None


def has_conflicting_reservation(
    db: Session,
    *,
    classroom_id: str,
    reservation_date: date,
    start_time: str,
    end_time: str,
    exclude_reservation_id: str | None = None,
) -> bool:
    return (
        find_conflicting_reservation(
            db,
            classroom_id=classroom_id,
            reservation_date=reservation_date,
            start_time=start_time,
            end_time=end_time,
            exclude_reservation_id=exclude_reservation_id,
        )
        is not None
    )
