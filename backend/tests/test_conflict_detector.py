from datetime import date

import pytest

from app.core.exceptions import InvalidTimeRangeError
from app.models.class_group import ClassGroup
from app.models.reservation import Reservation, ReservationStatus
from app.models.timetable_entry import TimetableEntry, Weekday
from app.models.user import UserRole
from app.services.conflict_detector import (
    AffectedParty,
    CommitmentSource,
    TimetableConflictDetector,
    detect,
    find_conflicting_reservation,
    has_conflicting_reservation,
)
from app.services.time_interval import TimeInterval


def slot(day: str, start: str, end: str) -> TimeInterval:
    return TimeInterval.parse(day, start, end)


def entry(day: Weekday, start: str, end: str, title: str = "Lecture", **extra) -> TimetableEntry:
    return TimetableEntry(day=day, start_time=start, end_time=end, title=title, **extra)


def test_detect_keys_by_candidate_window_and_dedupes_parties():
    party = AffectedParty(id="p1", name="Turing", role=UserRole.professor)
    source = CommitmentSource(
        party=party,
        intervals=[slot("Monday", "09:00", "09:45"), slot("Monday", "09:30", "10:30")],
    )

    conflicts = detect([slot("Monday", "09:15", "10:00"), slot("Tuesday", "09:15", "10:00")], [source])

    assert conflicts == {"Monday (09:15 - 10:00)": [party]}


def test_detect_returns_empty_map_without_collisions():
    source = CommitmentSource(
        party=AffectedParty(id="s1", name="Ada", role=UserRole.student),
        intervals=[slot("Monday", "08:00", "09:00")],
    )

    assert detect([slot("Monday", "09:00", "10:00")], [source]) == {}


def test_group_does_not_conflict_with_itself(db, make_user):
    professor = make_user("Turing", UserRole.professor)
    group = ClassGroup(name="Algorithms", course_code="CS101", professor=professor)
    group.timetable_entries.append(entry(Weekday.monday, "09:00", "10:00"))
    db.add(group)
    db.commit()

    detector = TimetableConflictDetector(db)

    assert detector.check_single(group, slot("Monday", "09:00", "10:00")) == {}
    assert detector.check_batch(
        [slot("Monday", "09:30", "10:30")], class_group_id=None, professor=professor, students=[]
    ) == {"Monday (09:30 - 10:30)": [AffectedParty.from_user(professor)]}


def test_professor_direct_entries_count_but_mirrors_do_not(db, make_user):
    professor = make_user("Hopper", UserRole.professor)
    professor.timetable_entries.append(entry(Weekday.tuesday, "13:00", "14:00", title="Office hours"))
    professor.timetable_entries.append(
        entry(Weekday.wednesday, "13:00", "14:00", title="CS999: Ghost", source_class_group_id="gone")
    )
    db.commit()

    detector = TimetableConflictDetector(db)
    conflicts = detector.check_batch(
        [slot("Tuesday", "13:30", "14:30"), slot("Wednesday", "13:00", "14:00")],
        class_group_id=None,
        professor=professor,
        students=[],
    )

    assert list(conflicts) == ["Tuesday (13:30 - 14:30)"]


def test_student_conflicts_come_from_other_enrolled_groups(db, make_user):
    ada = make_user("Ada", UserRole.student)
    grace = make_user("Grace", UserRole.student)
    other = ClassGroup(name="Physics", course_code="PH100")
    other.students.append(ada)
    other.timetable_entries.append(entry(Weekday.thursday, "10:00", "11:00"))
    target = ClassGroup(name="Chemistry", course_code="CH100")
    target.students.extend([ada, grace])
    db.add_all([other, target])
    db.commit()

    conflicts = TimetableConflictDetector(db).check_single(target, slot("Thursday", "10:30", "11:30"))

    assert conflicts == {"Thursday (10:30 - 11:30)": [AffectedParty.from_user(ada)]}


@pytest.fixture()
def booked_room(db, make_user, make_classroom):
    owner = make_user("Owner", UserRole.professor)
    room = make_classroom("R1")
    approved = Reservation(
        user=owner,
        classroom=room,
        reservation_date=date(2025, 3, 10),
        start_time="14:00",
        end_time="15:00",
        purpose="Seminar",
        status=ReservationStatus.approved,
    )
    canceled = Reservation(
        user=owner,
        classroom=room,
        reservation_date=date(2025, 3, 10),
        start_time="09:00",
        end_time="10:00",
        purpose="Canceled",
        status=ReservationStatus.canceled,
    )
    db.add_all([approved, canceled])
    db.commit()
    return room, approved


def check(db, room, start, end, **kwargs):
    return has_conflicting_reservation(
        db,
        classroom_id=room.id,
        reservation_date=date(2025, 3, 10),
        start_time=start,
        end_time=end,
        **kwargs,
    )


def test_room_conflicts_use_half_open_intervals(db, booked_room):
    room, _ = booked_room

    assert not check(db, room, "13:00", "14:00")
    assert not check(db, room, "15:00", "16:00")
    assert check(db, room, "13:30", "14:30")


def test_room_conflicts_ignore_inactive_reservations_and_excluded_id(db, booked_room):
    room, approved = booked_room

    assert not check(db, room, "09:00", "10:00")
    assert not check(db, room, "14:00", "15:00", exclude_reservation_id=approved.id)
    assert find_conflicting_reservation(
        db, classroom_id=room.id, reservation_date=date(2025, 3, 10), start_time="14:30", end_time="16:00"
    ).id == approved.id


def test_room_check_rejects_empty_interval_before_scanning(db, booked_room):
    room, _ = booked_room

    with pytest.raises(InvalidTimeRangeError):
        check(db, room, "14:30", "14:30")
