from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.db.queries import find_users_by_role
from app.models.notification import Notification, NotificationEvent, NotificationType
from app.models.reservation import Reservation
from app.models.user import User, UserRole
from app.services.email import EmailDeliveryError, send_email

logger = logging.getLogger(__name__)

ADMIN_EVENT_TITLES: dict[NotificationEvent, str] = {
    NotificationEvent.reservation_created: "New Reservation Request",
    NotificationEvent.reservation_updated: "Reservation Request Updated",
    NotificationEvent.reservation_canceled: "Reservation Canceled",
}

ADMIN_EVENT_VERBS: dict[NotificationEvent, str] = {
    NotificationEvent.reservation_created: "requested",
    NotificationEvent.reservation_updated: "updated their request for",
    NotificationEvent.reservation_canceled: "canceled their reservation for",
}


def _send_notification_email(recipient: User, *, title: str, message: str) -> None:
    if not recipient.email:
        return
    try:
        send_email(
            to_email=recipient.email,
            subject=f"CampusRoom Notification: {title}",
            text_content=f"{title}\n\n{message}",
        )
    except EmailDeliveryError:
        logger.warning("Notification email delivery failed for %s", recipient.email, exc_info=True)


def create_notification(
    db: Session,
    *,
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.system,
    event: NotificationEvent | None = None,
    entity_id: str | None = None,
    recipient: User | None = None,
    deliver_email: bool = False,
) -> Notification:
    record = Notification(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type,
        event=event.value if event is not None else None,
        entity_id=entity_id,
    )
    db.add(record)
    db.flush()

    if deliver_email and recipient is not None:
        _send_notification_email(recipient, title=title, message=message)
    return record


def describe_reservation(reservation: Reservation) -> str:
    return (
        f"room {reservation.classroom.room_number} on {reservation.reservation_date.strftime('%d/%m/%Y')} "
        f"({reservation.start_time} - {reservation.end_time})"
    )


def notify_admins(
    db: Session,
    event: NotificationEvent,
    reservation: Reservation,
    *,
    deliver_email: bool = False,
) -> list[Notification]:
    """Fan an administrative reservation event out to every active admin.

    Email delivery is best-effort; failures are logged, never raised.
    """
    requester = reservation.user
    title = ADMIN_EVENT_TITLES[event]
    message = (
        f"{requester.role.value.capitalize()} {requester.name} {ADMIN_EVENT_VERBS[event]} "
        f"{describe_reservation(reservation)}."
    )
    results: list[Notification] = []
    for admin in find_users_by_role(db, UserRole.admin):
        if admin.id == requester.id:
            continue
        results.append(
            create_notification(
                db,
                user_id=admin.id,
                title=title,
                message=message,
                notification_type=NotificationType.reservation,
                event=event,
                entity_id=reservation.id,
                recipient=admin,
                deliver_email=deliver_email,
            )
        )
    logger.debug("Notified %d admin(s) of %s for reservation %s", len(results), event.value, reservation.id)
    return results
