from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, get_reservation_policy, require_roles
from app.models.reservation import ReservationStatus
from app.models.user import User, UserRole
from app.schemas.reservation import ReservationEditRequest, ReservationOut, ReservationRequest, ReservationReview
from app.schemas.settings import ReservationPolicy
from app.services.reservations import ReservationService, to_out

router = APIRouter()


@router.get("/", response_model=list[ReservationOut])
def list_all_reservations(
    reservation_status: ReservationStatus | None = Query(default=None, alias="status"),
    current_user: User = Depends(require_roles(UserRole.admin)),
    policy: ReservationPolicy = Depends(get_reservation_policy),
    db: Session = Depends(get_db),
) -> list[ReservationOut]:
    return [to_out(item) for item in ReservationService(db, policy).list_all(reservation_status)]


@router.get("/me", response_model=list[ReservationOut])
def list_my_reservations(
    current_user: User = Depends(get_current_user),
    policy: ReservationPolicy = Depends(get_reservation_policy),
    db: Session = Depends(get_db),
) -> list[ReservationOut]:
    return [to_out(item) for item in ReservationService(db, policy).list_for_user(current_user)]


@router.post("/", response_model=ReservationOut, status_code=status.HTTP_201_CREATED)
def create_reservation(
    payload: ReservationRequest,
    current_user: User = Depends(get_current_user),
    policy: ReservationPolicy = Depends(get_reservation_policy),
    db: Session = Depends(get_db),
) -> ReservationOut:
    reservation = ReservationService(db, policy).create(current_user, payload)
    db.commit()
    db.refresh(reservation)
    return to_out(reservation)


@router.put("/{reservation_id}", response_model=ReservationOut)
def edit_reservation(
    reservation_id: str,
    payload: ReservationEditRequest,
    current_user: User = Depends(get_current_user),
    policy: ReservationPolicy = Depends(get_reservation_policy),
    db: Session = Depends(get_db),
) -> ReservationOut:
    reservation = ReservationService(db, policy).edit(current_user, reservation_id, payload)
    db.commit()
    db.refresh(reservation)
    return to_out(reservation)


@router.post("/{reservation_id}/cancel", response_model=ReservationOut)
def cancel_reservation(
    reservation_id: str,
    current_user: User = Depends(get_current_user),
    policy: ReservationPolicy = Depends(get_reservation_policy),
    db: Session = Depends(get_db),
) -> ReservationOut:
    reservation = ReservationService(db, policy).cancel(current_user, reservation_id)
    db.commit()
    db.refresh(reservation)
    return to_out(reservation)


@router.post("/{reservation_id}/approve", response_model=ReservationOut)
def approve_reservation(
    reservation_id: str,
    payload: ReservationReview | None = None,
    current_user: User = Depends(require_roles(UserRole.admin)),
    policy: ReservationPolicy = Depends(get_reservation_policy),
    db: Session = Depends(get_db),
) -> ReservationOut:
    reservation = ReservationService(db, policy).approve(
        current_user, reservation_id, comment=payload.comment if payload else None
    )
    db.commit()
    db.refresh(reservation)
    return to_out(reservation)


@router.post("/{reservation_id}/reject", response_model=ReservationOut)
def reject_reservation(
    reservation_id: str,
    payload: ReservationReview | None = None,
    current_user: User = Depends(require_roles(UserRole.admin)),
    policy: ReservationPolicy = Depends(get_reservation_policy),
    db: Session = Depends(get_db),
) -> ReservationOut:
    reservation = ReservationService(db, policy).reject(
        current_user, reservation_id, comment=payload.comment if payload else None
    )
    db.commit()
    db.refresh(reservation)
    return to_out(reservation)
