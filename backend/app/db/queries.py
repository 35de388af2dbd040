from __future__ import annotations

from datetime import date
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.class_group import ClassGroup, class_group_students
from app.models.classroom import Classroom
from app.models.reservation import Reservation, ReservationStatus
from app.models.user import User, UserRole


def find_person_by_id(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def find_users_by_role(db: Session, role: UserRole) -> list[User]:
    return list(
        db.execute(
            select(User).where(User.role == role, User.is_active.is_(True)).order_by(User.name)
        ).scalars()
    )


def find_class_groups_by_professor(db: Session, professor_id: str) -> list[ClassGroup]:
    return list(
        db.execute(
            select(ClassGroup).where(ClassGroup.professor_id == professor_id).order_by(ClassGroup.course_code)
        ).scalars()
    )


def find_class_groups_by_student_id(db: Session, student_id: str) -> list[ClassGroup]:
    return list(
        db.execute(
            select(ClassGroup)
            .join(class_group_students, class_group_students.c.class_group_id == ClassGroup.id)
            .where(class_group_students.c.student_id == student_id)
            .order_by(ClassGroup.course_code)
        ).scalars()
    )


def find_reservations_by_classroom_and_date_and_status_in(
    db: Session,
    *,
    classroom_id: str,
    reservation_date: date,
    statuses: Iterable[ReservationStatus],
) -> list[Reservation]:
    return list(
        db.execute(
            select(Reservation).where(
                Reservation.classroom_id == classroom_id,
                Reservation.reservation_date == reservation_date,
                Reservation.status.in_(list(statuses)),
            )
        ).scalars()
    )


def find_reservations_by_user_between(
    db: Session,
    *,
    user_id: str,
    start: date,
    end: date,
    statuses: Iterable[ReservationStatus],
) -> list[Reservation]:
    return list(
        db.execute(
            select(Reservation).where(
                Reservation.user_id == user_id,
                Reservation.reservation_date >= start,
                Reservation.reservation_date <= end,
                Reservation.status.in_(list(statuses)),
            )
        ).scalars()
    )


def lock_classroom(db: Session, classroom_id: str) -> Classroom | None:
    """Row-lock the classroom so concurrent reservation writers for it serialize.

    ``FOR UPDATE`` is ignored by SQLite and honored by PostgreSQL.
    """
    return db.execute(
        select(Classroom).where(Classroom.id == classroom_id).with_for_update()
    ).scalar_one_or_none()


def lock_person(db: Session, user_id: str) -> User | None:
    """Row-lock a person whose timetable is about to be checked and rewritten."""
    return db.execute(select(User).where(User.id == user_id).with_for_update()).scalar_one_or_none()
