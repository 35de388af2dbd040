from datetime import date, timedelta

from app.models.user import UserRole
from app.schemas.settings import DEFAULT_RESERVATION_POLICY, ReservationPolicy
from app.services.settings_provider import SettingsProvider, settings_provider


def test_defaults_are_served_before_any_update(client, make_user, auth_headers):
    student = make_user("Ada", UserRole.student)

    response = client.get("/api/settings/reservations", headers=auth_headers(student))

    assert response.status_code == 200
    assert response.json() == DEFAULT_RESERVATION_POLICY.model_dump()


def test_update_is_admin_only_and_published(client, make_user, make_classroom, auth_headers):
    admin = make_user("Admin", UserRole.admin)
    student = make_user("Ada", UserRole.student)
    room = make_classroom("R1")
    received: list[ReservationPolicy] = []
    unsubscribe = settings_provider.subscribe(received.append)
    payload = DEFAULT_RESERVATION_POLICY.model_dump() | {"student_require_approval": False, "max_days_in_advance": 60}

    try:
        forbidden = client.put("/api/settings/reservations", json=payload, headers=auth_headers(student))
        updated = client.put("/api/settings/reservations", json=payload, headers=auth_headers(admin))
    finally:
        unsubscribe()

    assert forbidden.status_code == 403
    assert updated.status_code == 200
    assert updated.json()["max_days_in_advance"] == 60
    assert [item.student_require_approval for item in received] == [False]

    day = (date.today() + timedelta(days=45)).isoformat()
    created = client.post(
        "/api/reservations/",
        json={"classroom_id": room.id, "date": day, "start_time": "10:00", "end_time": "11:00", "purpose": "Club"},
        headers=auth_headers(student),
    )
    assert created.status_code == 201, created.text
    assert created.json()["status"] == "approved"


def test_invalid_policy_is_rejected(client, make_user, auth_headers):
    admin = make_user("Admin", UserRole.admin)
    payload = DEFAULT_RESERVATION_POLICY.model_dump() | {"max_days_in_advance": 0, "min_hours_before_reservation": 24}

    response = client.put("/api/settings/reservations", json=payload, headers=auth_headers(admin))

    assert response.status_code == 422


def test_provider_isolates_failing_listeners(db):
    provider = SettingsProvider()
    seen: list[int] = []

    def broken(_policy):
        raise RuntimeError("listener down")

    provider.subscribe(broken)
    provider.subscribe(lambda policy: seen.append(policy.max_reservations_per_week))
    provider.publish(ReservationPolicy(max_reservations_per_week=9))

    assert seen == [9]
    assert provider.get(db).max_reservations_per_week == 9
    provider.clear()
    assert provider.get(db) == DEFAULT_RESERVATION_POLICY
