"""Materialized projection of class-group timetables into professors' personal timetables.

Every class group a professor teaches contributes exactly one mirrored personal
entry per class-group entry. Mirrors carry ``source_class_group_id`` so removal
is exact; their title keeps the ``"<courseCode>: "`` prefix for display.
"""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.db.queries import find_class_groups_by_professor
from app.models.class_group import ClassGroup
from app.models.timetable_entry import DEFAULT_ENTRY_COLOR, DEFAULT_ENTRY_TYPE, TimetableEntry
from app.models.user import User

logger = logging.getLogger(__name__)


def mirror_entry(class_group: ClassGroup, entry: TimetableEntry) -> TimetableEntry:
    return TimetableEntry(
        source_class_group_id=class_group.id,
        day=entry.day,
        start_time=entry.start_time,
        end_time=entry.end_time,
        title=f"{class_group.mirror_prefix}{entry.title}",
        description=entry.description,
        instructor=entry.instructor,
        location=entry.location,
        color=entry.color or DEFAULT_ENTRY_COLOR,
        entry_type=entry.entry_type or DEFAULT_ENTRY_TYPE,
        subject_id=entry.subject_id,
        subject_name=entry.subject_name,
    )


def _renumber(professor: User) -> None:
    for index, entry in enumerate(professor.timetable_entries):
        entry.position = index


def unsync_professor_timetable(professor: User, class_group: ClassGroup) -> int:
    """Drop every mirror of ``class_group`` from the professor's personal timetable."""
    kept = [entry for entry in professor.timetable_entries if entry.source_class_group_id != class_group.id]
    removed = len(professor.timetable_entries) - len(kept)
    if removed:
        professor.timetable_entries[:] = kept
        _renumber(professor)
        logger.debug("Removed %d mirrored entries of %s from professor %s", removed, class_group.course_code, professor.id)
    return removed


def sync_professor_timetable(professor: User, class_group: ClassGroup) -> int:
    """Replace the professor's mirrors of ``class_group`` with its current entries. Idempotent."""
    unsync_professor_timetable(professor, class_group)
    for entry in class_group.timetable_entries:
        professor.timetable_entries.append(mirror_entry(class_group, entry))
    _renumber(professor)
    logger.debug(
        "Mirrored %d entries of %s into professor %s",
        len(class_group.timetable_entries),
        class_group.course_code,
        professor.id,
    )
    return len(class_group.timetable_entries)


def resync_professor(db: Session, professor: User) -> dict:
    """Rebuild all mirrors from the class groups the professor currently teaches.

    Used to repair drift after a failed fan-out; also drops mirrors whose source
    class group is no longer taught by this professor.
    """
    taught = find_class_groups_by_professor(db, professor.id)
    taught_ids = {group.id for group in taught}
    stale = [
        entry
        for entry in professor.timetable_entries
        if entry.is_mirrored and entry.source_class_group_id not in taught_ids
    ]
    if stale:
        professor.timetable_entries[:] = [entry for entry in professor.timetable_entries if entry not in stale]
    mirrored = 0
    for group in taught:
        mirrored += sync_professor_timetable(professor, group)
    _renumber(professor)
    logger.info(
        "Resynced professor %s: %d mirrored entries from %d class group(s), %d stale removed",
        professor.id,
        mirrored,
        len(taught),
        len(stale),
    )
    return {"class_groups": len(taught), "mirrored_entries": mirrored, "stale_removed": len(stale)}
