from datetime import date, datetime, timedelta

import pytest

from app.core.exceptions import (
    InvalidTransitionError,
    PolicyViolationError,
    SlotUnavailableError,
    UnauthorizedError,
)
from app.models.notification import Notification
from app.models.reservation import Reservation, ReservationStatus
from app.models.user import UserRole
from app.schemas.reservation import ReservationEditRequest, ReservationRequest
from app.schemas.settings import ReservationPolicy
from app.services.reservations import ReservationService

NOW = datetime(2025, 3, 3, 8, 0)  # a Monday
DAY = "2025-03-10"


def clock():
    return NOW


def request(classroom_id, start, end, day=DAY, **extra):
    return ReservationRequest(
        classroom_id=classroom_id, date=day, start_time=start, end_time=end, purpose="Study group", **extra
    )


def edit_request(start, end, day=DAY, classroom_id=None):
    return ReservationEditRequest(
        classroom_id=classroom_id, date=day, start_time=start, end_time=end, purpose="Study group"
    )


@pytest.fixture()
def setup(db, make_user, make_classroom):
    people = {
        "admin": make_user("Admin", UserRole.admin),
        "professor": make_user("Turing", UserRole.professor),
        "student": make_user("Ada", UserRole.student),
        "other": make_user("Grace", UserRole.student),
    }
    return people, make_classroom("R1"), make_classroom("R2")


def service(db, **policy):
    return ReservationService(db, ReservationPolicy(**policy), clock=clock)


def test_touching_reservations_are_allowed_and_overlaps_rejected(db, setup):
    people, room, _ = setup
    db.add(
        Reservation(
            user=people["admin"],
            classroom=room,
            reservation_date=date(2025, 3, 10),
            start_time="14:00",
            end_time="15:00",
            purpose="Board meeting",
            status=ReservationStatus.approved,
        )
    )
    db.commit()

    touching = service(db).create(people["professor"], request(room.id, "13:00", "14:00"))
    db.commit()
    assert touching.status == ReservationStatus.approved

    with pytest.raises(SlotUnavailableError) as excinfo:
        service(db).create(people["professor"], request(room.id, "13:30", "14:30"))
    assert excinfo.value.details["alternatives"][0] == {
        "start_time": "14:00",
        "end_time": "15:00",
        "label": "14:00 - 15:00",
    }


def test_status_follows_approval_policy(db, setup):
    people, room, _ = setup

    student = service(db).create(people["student"], request(room.id, "08:00", "09:00"))
    professor = service(db, professor_require_approval=True).create(
        people["professor"], request(room.id, "09:00", "10:00")
    )
    admin = service(db).create(people["admin"], request(room.id, "10:00", "11:00"))
    admin_reviewed = service(db, auto_approve_admin=False).create(people["admin"], request(room.id, "11:00", "12:00"))

    assert student.status == ReservationStatus.pending
    assert professor.status == ReservationStatus.pending
    assert admin.status == ReservationStatus.approved
    assert admin_reviewed.status == ReservationStatus.pending


def test_pending_creation_notifies_admins(db, setup):
    people, room, _ = setup

    reservation = service(db).create(people["student"], request(room.id, "08:00", "09:00"))
    db.commit()

    notifications = db.query(Notification).filter(Notification.user_id == people["admin"].id).all()
    assert [item.event for item in notifications] == ["reservation.created"]
    assert notifications[0].entity_id == reservation.id
    assert "Student Ada requested room R1 on 10/03/2025 (08:00 - 09:00)" in notifications[0].message


def test_owner_can_edit_pending_reservation(db, setup):
    people, room, other_room = setup
    reservation = service(db).create(people["student"], request(room.id, "08:00", "09:00"))
    service(db).create(people["other"], request(other_room.id, "10:00", "11:00"))
    db.commit()

    same_slot = service(db).edit(people["student"], reservation.id, edit_request("08:00", "09:00"))
    assert same_slot.start_time == "08:00"

    moved = service(db).edit(people["student"], reservation.id, edit_request("9:00", "10:00", classroom_id=other_room.id))
    assert moved.start_time == "09:00"
    assert moved.classroom_id == other_room.id

    with pytest.raises(SlotUnavailableError):
        service(db).edit(people["student"], reservation.id, edit_request("10:30", "11:30", classroom_id=other_room.id))


def test_only_owner_edits_and_only_while_pending(db, setup):
    people, room, _ = setup
    reservation = service(db).create(people["student"], request(room.id, "08:00", "09:00"))
    db.commit()

    with pytest.raises(UnauthorizedError):
        service(db).edit(people["other"], reservation.id, edit_request("09:00", "10:00"))

    service(db).cancel(people["student"], reservation.id)
    db.commit()

    with pytest.raises(InvalidTransitionError):
        service(db).edit(people["student"], reservation.id, edit_request("09:00", "10:00"))


def test_cancel_rules(db, setup):
    people, room, _ = setup
    reservation = service(db).create(people["professor"], request(room.id, "08:00", "09:00"))
    db.commit()

    with pytest.raises(UnauthorizedError):
        service(db).cancel(people["student"], reservation.id)

    canceled = service(db).cancel(people["professor"], reservation.id)
    assert canceled.status == ReservationStatus.canceled

    with pytest.raises(InvalidTransitionError):
        service(db).cancel(people["professor"], reservation.id)

    past = Reservation(
        user=people["professor"],
        classroom=room,
        reservation_date=date(2025, 2, 24),
        start_time="08:00",
        end_time="09:00",
        purpose="Old",
        status=ReservationStatus.approved,
    )
    db.add(past)
    db.commit()
    with pytest.raises(InvalidTransitionError):
        service(db).cancel(people["professor"], past.id)


def test_canceled_slot_can_be_booked_again(db, setup):
    people, room, _ = setup
    first = service(db).create(people["professor"], request(room.id, "08:00", "09:00"))
    service(db).cancel(people["professor"], first.id)
    db.commit()

    again = service(db).create(people["student"], request(room.id, "08:30", "09:30"))

    assert again.status == ReservationStatus.pending


def test_approve_rechecks_and_reject_is_terminal(db, setup):
    people, room, _ = setup
    pending = service(db).create(people["student"], request(room.id, "08:00", "09:00"))
    db.commit()

    approved = service(db).approve(people["admin"], pending.id, comment="Enjoy")
    db.commit()
    assert approved.status == ReservationStatus.approved
    assert approved.reviewed_by_id == people["admin"].id

    with pytest.raises(InvalidTransitionError):
        service(db).reject(people["admin"], pending.id)

    # A conflicting pending row that slipped in directly must not be approved.
    sneaky = Reservation(
        user=people["other"],
        classroom=room,
        reservation_date=date(2025, 3, 10),
        start_time="08:30",
        end_time="09:30",
        purpose="Overlap",
        status=ReservationStatus.pending,
    )
    db.add(sneaky)
    db.commit()
    with pytest.raises(SlotUnavailableError):
        service(db).approve(people["admin"], sneaky.id)

    rejected = service(db).reject(people["admin"], sneaky.id)
    db.commit()
    assert rejected.status == ReservationStatus.rejected

    owner_events = [
        item.event for item in db.query(Notification).filter(Notification.user_id == people["student"].id).all()
    ]
    assert owner_events == ["reservation.approved"]


@pytest.mark.parametrize(
    ("day", "start", "end", "policy"),
    [
        ("2025-03-02", "08:00", "09:00", {}),
        ("2025-04-15", "08:00", "09:00", {}),
        ("2025-03-03", "08:30", "09:30", {}),
        ("2025-03-10", "08:00", "13:00", {}),
        ("2025-03-10", "08:00", "10:00", {"max_hours_per_reservation": 1}),
    ],
)
def test_policy_violations(db, setup, day, start, end, policy):
    people, room, _ = setup

    with pytest.raises(PolicyViolationError):
        service(db, **policy).create(people["student"], request(room.id, start, end, day=day))


def test_same_day_request_respects_lead_time(db, setup):
    people, room, _ = setup

    reservation = service(db).create(people["student"], request(room.id, "09:00", "10:00", day="2025-03-03"))

    assert reservation.reservation_date == date(2025, 3, 3)


def test_weekly_limit_counts_active_reservations_in_iso_week(db, setup):
    people, room, _ = setup
    svc = service(db, max_reservations_per_week=2)
    first = svc.create(people["student"], request(room.id, "08:00", "09:00", day="2025-03-10"))
    svc.create(people["student"], request(room.id, "09:00", "10:00", day="2025-03-14"))
    db.commit()

    with pytest.raises(PolicyViolationError):
        svc.create(people["student"], request(room.id, "10:00", "11:00", day="2025-03-12"))

    next_week = svc.create(people["student"], request(room.id, "10:00", "11:00", day="2025-03-17"))
    assert next_week.reservation_date == date(2025, 3, 17)

    svc.edit(people["student"], first.id, edit_request("11:00", "12:00", day="2025-03-10"))
    svc.cancel(people["student"], first.id)
    db.commit()
    again = svc.create(people["student"], request(room.id, "10:00", "11:00", day="2025-03-12"))
    assert again.status == ReservationStatus.pending


def test_available_classrooms(db, setup, make_classroom):
    people, room, other_room = setup
    make_classroom("Lab 1", capacity=20)
    service(db).create(people["professor"], request(room.id, "08:00", "09:00"))
    db.commit()

    available = service(db).find_available_classrooms(
        date_text=DAY, start_time="08:30", end_time="09:30", min_capacity=30
    )

    assert [item.room_number for item in available] == ["R2"]


def test_reservation_api_flow(client, make_user, make_classroom, auth_headers):
    student = make_user("Ada", UserRole.student)
    admin = make_user("Admin", UserRole.admin)
    room = make_classroom("R1")
    day = (date.today() + timedelta(days=7)).isoformat()

    created = client.post(
        "/api/reservations/",
        json={"classroom_id": room.id, "date": day, "start_time": "13:00", "end_time": "14:00", "purpose": "Review"},
        headers=auth_headers(student),
    )
    assert created.status_code == 201, created.text
    body = created.json()
    assert body["status"] == "pending"
    assert body["classroom"] == "R1"
    assert body["time"] == "13:00 - 14:00"

    clash = client.post(
        "/api/reservations/",
        json={"classroom_id": room.id, "date": day, "start_time": "13:30", "end_time": "14:30", "purpose": "Clash"},
        headers=auth_headers(admin),
    )
    assert clash.status_code == 409
    assert clash.json()["code"] == "slot_unavailable"

    bad = client.post(
        "/api/reservations/",
        json={"classroom_id": room.id, "date": day, "start_time": "25:00", "end_time": "26:00", "purpose": "Bad"},
        headers=auth_headers(student),
    )
    assert bad.status_code == 400
    assert bad.json()["code"] == "invalid_format"

    pending = client.get("/api/reservations/?status=pending", headers=auth_headers(admin)).json()
    assert [item["id"] for item in pending] == [body["id"]]
    assert client.get("/api/reservations/", headers=auth_headers(student)).status_code == 403

    approved = client.post(f"/api/reservations/{body['id']}/approve", headers=auth_headers(admin))
    assert approved.json()["status"] == "approved"

    canceled = client.post(f"/api/reservations/{body['id']}/cancel", headers=auth_headers(student))
    assert canceled.json()["status"] == "canceled"

    edit = client.put(
        f"/api/reservations/{body['id']}",
        json={"date": day, "start_time": "15:00", "end_time": "16:00", "purpose": "Review"},
        headers=auth_headers(student),
    )
    assert edit.status_code == 409
    assert edit.json()["code"] == "invalid_transition"

    mine = client.get("/api/reservations/me", headers=auth_headers(student)).json()
    assert [item["status"] for item in mine] == ["canceled"]
