from app.models.class_group import ClassGroup
from app.models.timetable_entry import TimetableEntry, Weekday
from app.models.user import UserRole
from app.schemas.class_group import ClassGroupUpdate
from app.services.class_groups import ClassGroupService
from app.services.timetable_sync import resync_professor, sync_professor_timetable, unsync_professor_timetable


def snapshot(user):
    return sorted(
        (entry.day.value, entry.start_time, entry.end_time, entry.title, entry.source_class_group_id)
        for entry in user.timetable_entries
    )


def make_group(db, professor, code="CS101"):
    group = ClassGroup(name="Algorithms", course_code=code, professor=professor)
    group.timetable_entries.extend(
        [
            TimetableEntry(day=Weekday.monday, start_time="09:00", end_time="10:00", title="Lecture", position=0),
            TimetableEntry(
                day=Weekday.wednesday, start_time="14:00", end_time="16:00", title="Lab", location="L2", position=1
            ),
        ]
    )
    db.add(group)
    db.flush()
    return group


def test_sync_mirrors_entries_with_course_prefix(db, make_user):
    professor = make_user("Turing", UserRole.professor)
    group = make_group(db, professor)

    assert sync_professor_timetable(professor, group) == 2

    assert snapshot(professor) == [
        ("Monday", "09:00", "10:00", "CS101: Lecture", group.id),
        ("Wednesday", "14:00", "16:00", "CS101: Lab", group.id),
    ]
    assert [entry.position for entry in professor.timetable_entries] == [0, 1]


def test_mirrors_copy_display_fields_unchanged(db, make_user):
    professor = make_user("Turing", UserRole.professor)
    group = make_group(db, professor)
    group.timetable_entries[0].instructor = "Dr. Turing"

    sync_professor_timetable(professor, group)

    by_title = {entry.title: entry for entry in professor.timetable_entries}
    assert by_title["CS101: Lecture"].instructor == "Dr. Turing"
    assert by_title["CS101: Lab"].instructor is None
    assert by_title["CS101: Lab"].location == "L2"


def test_sync_is_idempotent_and_keeps_direct_entries(db, make_user):
    professor = make_user("Turing", UserRole.professor)
    professor.timetable_entries.append(
        TimetableEntry(day=Weekday.friday, start_time="08:00", end_time="09:00", title="Office hours")
    )
    group = make_group(db, professor)

    sync_professor_timetable(professor, group)
    first = snapshot(professor)
    sync_professor_timetable(professor, group)

    assert snapshot(professor) == first
    assert len(professor.timetable_entries) == 3


def test_unsync_removes_only_that_group(db, make_user):
    professor = make_user("Turing", UserRole.professor)
    first = make_group(db, professor, "CS101")
    second = make_group(db, professor, "CS202")
    sync_professor_timetable(professor, first)
    sync_professor_timetable(professor, second)

    assert unsync_professor_timetable(professor, first) == 2

    assert {entry.source_class_group_id for entry in professor.timetable_entries} == {second.id}
    assert unsync_professor_timetable(professor, first) == 0


def test_sync_with_empty_timetable_clears_mirrors(db, make_user):
    professor = make_user("Turing", UserRole.professor)
    group = make_group(db, professor)
    sync_professor_timetable(professor, group)

    group.timetable_entries.clear()
    sync_professor_timetable(professor, group)

    assert professor.timetable_entries == []


def test_reassigning_professor_moves_mirrors(db, make_user):
    previous = make_user("Turing", UserRole.professor)
    successor = make_user("Hopper", UserRole.professor)
    group = make_group(db, previous)
    sync_professor_timetable(previous, group)
    db.commit()

    ClassGroupService(db).update(
        group.id, ClassGroupUpdate(name=group.name, course_code="CS101", professor_id=successor.id)
    )
    db.commit()

    assert previous.timetable_entries == []
    assert [entry.title for entry in successor.timetable_entries] == ["CS101: Lecture", "CS101: Lab"]


def test_resync_repairs_drift(db, make_user):
    professor = make_user("Turing", UserRole.professor)
    group = make_group(db, professor)
    professor.timetable_entries.append(
        TimetableEntry(
            day=Weekday.tuesday,
            start_time="11:00",
            end_time="12:00",
            title="OLD1: Stale",
            source_class_group_id="no-longer-taught",
        )
    )
    db.commit()

    summary = resync_professor(db, professor)

    assert summary == {"class_groups": 1, "mirrored_entries": 2, "stale_removed": 1}
    assert {entry.source_class_group_id for entry in professor.timetable_entries} == {group.id}
