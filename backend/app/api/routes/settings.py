from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, get_reservation_policy, require_roles
from app.models.user import User, UserRole
from app.schemas.settings import ReservationPolicy, ReservationPolicyUpdate
from app.services.audit import log_activity
from app.services.settings_provider import settings_provider

router = APIRouter()


@router.get("/settings/reservations", response_model=ReservationPolicy)
def get_reservation_settings(
    current_user: User = Depends(get_current_user),
    policy: ReservationPolicy = Depends(get_reservation_policy),
) -> ReservationPolicy:
    return policy


@router.put("/settings/reservations", response_model=ReservationPolicy)
def update_reservation_settings(
    payload: ReservationPolicyUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ReservationPolicy:
    policy = settings_provider.update(db, payload)
    log_activity(
        db,
        actor=current_user,
        action="settings.reservations.update",
        entity_type="institution_settings",
        entity_id="1",
        details=payload.model_dump(),
    )
    db.commit()
    settings_provider.publish(policy)
    return policy
