from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
import logging
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import (
    InvalidTransitionError,
    PolicyViolationError,
    ResourceNotFoundError,
    SlotUnavailableError,
    UnauthorizedError,
)
from app.db.queries import find_reservations_by_user_between, lock_classroom
from app.models.classroom import Classroom, ClassroomType
from app.models.notification import NotificationEvent, NotificationType
from app.models.reservation import (
    ACTIVE_RESERVATION_STATUSES,
    RESERVATION_TRANSITIONS,
    Reservation,
    ReservationStatus,
)
from app.models.user import User, UserRole
from app.schemas.reservation import ReservationEditRequest, ReservationOut, ReservationRequest
from app.schemas.settings import ReservationPolicy
from app.services.audit import log_activity
from app.services.conflict_detector import find_conflicting_reservation
from app.services.notifications import create_notification, describe_reservation, notify_admins
from app.services.time_interval import MINUTES_PER_DAY, format_minutes, parse_date, parse_time_range

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def local_now() -> datetime:
    return datetime.now()


def to_out(reservation: Reservation) -> ReservationOut:
    return ReservationOut(
        id=reservation.id,
        user_id=reservation.user_id,
        reserved_by=reservation.user.name,
        role=reservation.user.role,
        classroom_id=reservation.classroom_id,
        classroom=reservation.classroom.room_number,
        reservation_date=reservation.reservation_date,
        start_time=reservation.start_time,
        end_time=reservation.end_time,
        time=f"{reservation.start_time} - {reservation.end_time}",
        purpose=reservation.purpose,
        notes=reservation.notes,
        status=reservation.status,
        reviewed_by_id=reservation.reviewed_by_id,
        reviewed_at=reservation.reviewed_at,
        created_at=reservation.created_at,
    )


def reservation_alternatives(start_minute: int, end_minute: int) -> list[dict]:
    """Same-day shifted slots; the caller re-submits and they are re-checked then."""
    slots = []
    for shift in (30, 60):
        start, end = start_minute + shift, end_minute + shift
        if end >= MINUTES_PER_DAY:
            continue
        slots.append(
            {
                "start_time": format_minutes(start),
                "end_time": format_minutes(end),
                "label": f"{format_minutes(start)} - {format_minutes(end)}",
            }
        )
    return slots


def ensure_transition(reservation: Reservation, target: ReservationStatus) -> None:
    if target not in RESERVATION_TRANSITIONS[reservation.status]:
        raise InvalidTransitionError(
            f"Cannot move a {reservation.status.value} reservation to {target.value}",
            details={"reservation_id": reservation.id, "status": reservation.status.value, "target": target.value},
        )


class ReservationService:
    """Classroom reservation lifecycle.

    Writes leave the session dirty; the caller commits once so the classroom
    lock, conflict re-check and write share a transaction.
    """

    def __init__(self, db: Session, policy: ReservationPolicy, *, clock: Clock = local_now) -> None:
        self.db = db
        self.policy = policy
        self.clock = clock

    # reads

    def get(self, reservation_id: str) -> Reservation:
        reservation = self.db.get(Reservation, reservation_id)
        if reservation is None:
            raise ResourceNotFoundError("Reservation", reservation_id)
        return reservation

    def list_for_user(self, user: User) -> list[Reservation]:
        return list(
            self.db.execute(
                select(Reservation)
                .where(Reservation.user_id == user.id)
                .order_by(Reservation.reservation_date.desc(), Reservation.start_time.desc())
            ).scalars()
        )

    def list_all(self, status: ReservationStatus | None = None) -> list[Reservation]:
        query = select(Reservation)
        if status is not None:
            query = query.where(Reservation.status == status)
        query = query.order_by(Reservation.reservation_date.desc(), Reservation.start_time.desc())
        return list(self.db.execute(query).scalars())

    def find_available_classrooms(
        self,
        *,
        date_text: str,
        start_time: str,
        end_time: str,
        classroom_type: ClassroomType | None = None,
        min_capacity: int = 0,
    ) -> list[Classroom]:
        reservation_date = parse_date(date_text)
        parse_time_range(start_time, end_time)
        query = select(Classroom).where(Classroom.capacity >= min_capacity).order_by(Classroom.room_number)
        if classroom_type is not None:
            query = query.where(Classroom.type == classroom_type)
        return [
            classroom
            for classroom in self.db.execute(query).scalars()
            if find_conflicting_reservation(
                self.db,
                classroom_id=classroom.id,
                reservation_date=reservation_date,
                start_time=start_time,
                end_time=end_time,
            )
            is None
        ]

    # writes

    def create(self, actor: User, request: ReservationRequest) -> Reservation:
        reservation_date = parse_date(request.date)
        start_minute, end_minute = parse_time_range(request.start_time, request.end_time)
        self._enforce_policy(actor, reservation_date, start_minute, end_minute)

        classroom = self._lock_classroom(request.classroom_id)
        self._ensure_slot_free(classroom, reservation_date, start_minute, end_minute)

        status = ReservationStatus.pending if self.policy.requires_approval(actor.role) else ReservationStatus.approved
        reservation = Reservation(
            user=actor,
            classroom=classroom,
            reservation_date=reservation_date,
            start_time=format_minutes(start_minute),
            end_time=format_minutes(end_minute),
            purpose=request.purpose,
            notes=request.notes,
            status=status,
        )
        self.db.add(reservation)
        self.db.flush()

        if status == ReservationStatus.pending:
            notify_admins(
                self.db,
                NotificationEvent.reservation_created,
                reservation,
                deliver_email=self.policy.sends_creation_emails,
            )
        log_activity(
            self.db,
            actor=actor,
            action="reservation.create",
            entity_type="reservation",
            entity_id=reservation.id,
            details={"classroom": classroom.room_number, "status": status.value},
        )
        return reservation

    def edit(self, actor: User, reservation_id: str, request: ReservationEditRequest) -> Reservation:
        reservation = self.get(reservation_id)
        self._ensure_owner(actor, reservation)
        if reservation.status != ReservationStatus.pending:
            raise InvalidTransitionError(
                "Only pending reservations can be edited",
                details={"reservation_id": reservation.id, "status": reservation.status.value},
            )

        reservation_date = parse_date(request.date)
        start_minute, end_minute = parse_time_range(request.start_time, request.end_time)
        self._enforce_policy(
            actor, reservation_date, start_minute, end_minute, exclude_reservation_id=reservation.id
        )

        classroom_id = request.classroom_id or reservation.classroom_id
        start_time, end_time = format_minutes(start_minute), format_minutes(end_minute)
        slot_changed = (
            classroom_id != reservation.classroom_id
            or reservation_date != reservation.reservation_date
            or start_time != reservation.start_time
            or end_time != reservation.end_time
        )
        classroom = self._lock_classroom(classroom_id)
        if slot_changed:
            self._ensure_slot_free(
                classroom, reservation_date, start_minute, end_minute, exclude_reservation_id=reservation.id
            )

        reservation.classroom = classroom
        reservation.reservation_date = reservation_date
        reservation.start_time = start_time
        reservation.end_time = end_time
        reservation.purpose = request.purpose
        reservation.notes = request.notes
        self.db.flush()

        notify_admins(self.db, NotificationEvent.reservation_updated, reservation)
        log_activity(
            self.db,
            actor=actor,
            action="reservation.edit",
            entity_type="reservation",
            entity_id=reservation.id,
            details={"slot_changed": slot_changed},
        )
        return reservation

    def cancel(self, actor: User, reservation_id: str) -> Reservation:
        reservation = self.get(reservation_id)
        self._ensure_owner(actor, reservation)
        ensure_transition(reservation, ReservationStatus.canceled)
        if reservation.reservation_date < self.clock().date():
            raise InvalidTransitionError(
                "Past reservations cannot be canceled",
                details={"reservation_id": reservation.id, "date": reservation.reservation_date.isoformat()},
            )

        reservation.status = ReservationStatus.canceled
        self.db.flush()
        notify_admins(self.db, NotificationEvent.reservation_canceled, reservation)
        log_activity(
            self.db,
            actor=actor,
            action="reservation.cancel",
            entity_type="reservation",
            entity_id=reservation.id,
        )
        return reservation

    def approve(self, reviewer: User, reservation_id: str, *, comment: str | None = None) -> Reservation:
        reservation = self.get(reservation_id)
        ensure_transition(reservation, ReservationStatus.approved)
        classroom = self._lock_classroom(reservation.classroom_id)
        start_minute, end_minute = parse_time_range(reservation.start_time, reservation.end_time)
        self._ensure_slot_free(
            classroom,
            reservation.reservation_date,
            start_minute,
            end_minute,
            exclude_reservation_id=reservation.id,
        )
        return self._review(reviewer, reservation, ReservationStatus.approved, comment)

    def reject(self, reviewer: User, reservation_id: str, *, comment: str | None = None) -> Reservation:
        reservation = self.get(reservation_id)
        ensure_transition(reservation, ReservationStatus.rejected)
        return self._review(reviewer, reservation, ReservationStatus.rejected, comment)

    # helpers

    def _review(
        self, reviewer: User, reservation: Reservation, status: ReservationStatus, comment: str | None
    ) -> Reservation:
        reservation.status = status
        reservation.reviewed_by_id = reviewer.id
        reservation.reviewed_at = datetime.now(timezone.utc)
        self.db.flush()

        message = f"Your reservation of {describe_reservation(reservation)} was {status.value}."
        if comment:
            message = f"{message} Comment: {comment}"
        event = (
            NotificationEvent.reservation_approved
            if status == ReservationStatus.approved
            else NotificationEvent.reservation_rejected
        )
        create_notification(
            self.db,
            user_id=reservation.user_id,
            title=f"Reservation {status.value.capitalize()}",
            message=message,
            notification_type=NotificationType.reservation,
            event=event,
            entity_id=reservation.id,
            recipient=reservation.user,
            deliver_email=self.policy.email_notifications,
        )
        log_activity(
            self.db,
            actor=reviewer,
            action=f"reservation.{status.value}",
            entity_type="reservation",
            entity_id=reservation.id,
        )
        return reservation

    def _lock_classroom(self, classroom_id: str) -> Classroom:
        classroom = lock_classroom(self.db, classroom_id)
        if classroom is None:
            raise ResourceNotFoundError("Classroom", classroom_id)
        return classroom

    def _ensure_owner(self, actor: User, reservation: Reservation) -> None:
        if reservation.user_id != actor.id:
            raise UnauthorizedError("Only the requester can modify this reservation")

    def _ensure_slot_free(
        self,
        classroom: Classroom,
        reservation_date: date,
        start_minute: int,
        end_minute: int,
        *,
        exclude_reservation_id: str | None = None,
    ) -> None:
        start_time, end_time = format_minutes(start_minute), format_minutes(end_minute)
        conflicting = find_conflicting_reservation(
            self.db,
            classroom_id=classroom.id,
            reservation_date=reservation_date,
            start_time=start_time,
            end_time=end_time,
            exclude_reservation_id=exclude_reservation_id,
        )
        if conflicting is None:
            return
        raise SlotUnavailableError(
            f"Classroom {classroom.room_number} is already reserved on "
            f"{reservation_date.isoformat()} from {conflicting.start_time} to {conflicting.end_time}",
            details={
                "conflicts": [
                    {
                        "window": f"{reservation_date.isoformat()} ({start_time} - {end_time})",
                        "reservation_id": conflicting.id,
                        "start_time": conflicting.start_time,
                        "end_time": conflicting.end_time,
                        "status": conflicting.status.value,
                    }
                ],
                "alternatives": reservation_alternatives(start_minute, end_minute),
            },
        )

    def _enforce_policy(
        self,
        actor: User,
        reservation_date: date,
        start_minute: int,
        end_minute: int,
        *,
        exclude_reservation_id: str | None = None,
    ) -> None:
        if actor.role == UserRole.admin:
            return
        policy = self.policy
        now = self.clock()
        today = now.date()

        if reservation_date < today:
            raise PolicyViolationError("Reservations cannot be made for past dates")
        if (reservation_date - today).days > policy.max_days_in_advance:
            raise PolicyViolationError(
                f"Reservations can be made at most {policy.max_days_in_advance} days in advance",
                details={"max_days_in_advance": policy.max_days_in_advance},
            )
        if reservation_date == today:
            starts_at = datetime.combine(reservation_date, datetime.min.time()) + timedelta(minutes=start_minute)
            if starts_at - now < timedelta(hours=policy.min_hours_before_reservation):
                raise PolicyViolationError(
                    f"Reservations must start at least {policy.min_hours_before_reservation} hour(s) from now",
                    details={"min_hours_before_reservation": policy.min_hours_before_reservation},
                )
        if end_minute - start_minute > policy.max_hours_per_reservation * 60:
            raise PolicyViolationError(
                f"Reservations cannot exceed {policy.max_hours_per_reservation} hour(s)",
                details={"max_hours_per_reservation": policy.max_hours_per_reservation},
            )

        week_start = reservation_date - timedelta(days=reservation_date.weekday())
        in_week = [
            item
            for item in find_reservations_by_user_between(
                self.db,
                user_id=actor.id,
                start=week_start,
                end=week_start + timedelta(days=6),
                statuses=ACTIVE_RESERVATION_STATUSES,
            )
            if item.id != exclude_reservation_id
        ]
        if len(in_week) >= policy.max_reservations_per_week:
            logger.info("User %s reached the weekly reservation limit for week of %s", actor.id, week_start)
            raise PolicyViolationError(
                f"Weekly reservation limit of {policy.max_reservations_per_week} reached",
                details={"max_reservations_per_week": policy.max_reservations_per_week},
            )
