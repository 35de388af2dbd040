from __future__ import annotations

from dataclasses import dataclass

from app.models.user import UserRole
from app.services.conflict_detector import AffectedParty, ConflictMap
from app.services.time_interval import MINUTES_PER_DAY, TimeInterval, next_weekday

STUDENT_NAME_DISPLAY_LIMIT = 3
ALTERNATIVE_OFFSETS_MINUTES = (30, 60)


def _split_parties(parties: list[AffectedParty]) -> tuple[list[AffectedParty], list[AffectedParty]]:
    professors = [item for item in parties if item.role == UserRole.professor]
    students = [item for item in parties if item.role != UserRole.professor]
    return professors, students


def format_conflict_message(conflicts: ConflictMap) -> str:
    lines = ["The following time slots have conflicts:"]
    for window, parties in conflicts.items():
        professors, students = _split_parties(parties)
        parts: list[str] = []
        if professors:
            parts.append("Professors: " + ", ".join(f"Professor {item.name}" for item in professors))
        if students:
            if len(students) <= STUDENT_NAME_DISPLAY_LIMIT:
                parts.append("Students: " + ", ".join(item.name for item in students))
            else:
                parts.append(f"Students: {len(students)} students")
        lines.append(f"- {window}: " + "; ".join(parts))
    return "\n".join(lines)


def summarize_conflicts(conflicts: ConflictMap) -> str:
    """One-line summary used by the interactive single-entry check."""
    if not conflicts:
        return "No conflicts found."
    affected = unique_parties(conflicts)
    professors, students = _split_parties(affected)
    counts: list[str] = []
    if professors:
        counts.append(f"{len(professors)} professor(s)")
    if students:
        counts.append(f"{len(students)} student(s)")
    return f"This time slot conflicts with existing schedules for {' and '.join(counts)}."


def unique_parties(conflicts: ConflictMap) -> list[AffectedParty]:
    seen: dict[str, AffectedParty] = {}
    for parties in conflicts.values():
        for party in parties:
            seen.setdefault(party.id, party)
    return list(seen.values())


def conflict_report(conflicts: ConflictMap) -> list[dict]:
    report: list[dict] = []
    for window, parties in conflicts.items():
        professors, students = _split_parties(parties)
        report.append(
            {
                "window": window,
                "professors": [{"id": item.id, "name": item.name} for item in professors],
                "students": [{"id": item.id, "name": item.name} for item in students],
            }
        )
    return report


@dataclass(frozen=True)
class AlternativeSlot:
    day: str
    start_time: str
    end_time: str
    label: str

    def as_dict(self) -> dict:
        return {"day": self.day, "start_time": self.start_time, "end_time": self.end_time, "label": self.label}


def _slot(interval: TimeInterval) -> AlternativeSlot:
    return AlternativeSlot(
        day=interval.day.value,
        start_time=interval.start_time,
        end_time=interval.end_time,
        label=f"{interval.day.value} at {interval.start_time}",
    )


def suggest_alternatives(interval: TimeInterval) -> list[AlternativeSlot]:
    """Shifted and next-weekday candidates. They are not checked for availability.

    Shifts that would run past 23:59 are dropped.
    """
    suggestions: list[AlternativeSlot] = []
    for offset in ALTERNATIVE_OFFSETS_MINUTES:
        end_minute = interval.end_minute + offset
        if end_minute >= MINUTES_PER_DAY:
            continue
        suggestions.append(_slot(TimeInterval(interval.day, interval.start_minute + offset, end_minute)))
    suggestions.append(_slot(TimeInterval(next_weekday(interval.day), interval.start_minute, interval.end_minute)))
    return suggestions
