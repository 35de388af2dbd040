from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, get_reservation_policy, require_roles
from app.models.classroom import Classroom, ClassroomType
from app.models.user import User, UserRole
from app.schemas.classroom import ClassroomCreate, ClassroomOut
from app.schemas.settings import ReservationPolicy
from app.services.audit import log_activity
from app.services.reservations import ReservationService

router = APIRouter()


@router.get("/", response_model=list[ClassroomOut])
def list_classrooms(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[ClassroomOut]:
    return list(db.execute(select(Classroom).order_by(Classroom.room_number)).scalars())


@router.get("/available", response_model=list[ClassroomOut])
def list_available_classrooms(
    date: str = Query(min_length=1),
    start_time: str = Query(min_length=1),
    end_time: str = Query(min_length=1),
    classroom_type: ClassroomType | None = Query(default=None, alias="type"),
    capacity: int = Query(default=0, ge=0, le=2000),
    current_user: User = Depends(get_current_user),
    policy: ReservationPolicy = Depends(get_reservation_policy),
    db: Session = Depends(get_db),
) -> list[ClassroomOut]:
    return ReservationService(db, policy).find_available_classrooms(
        date_text=date,
        start_time=start_time,
        end_time=end_time,
        classroom_type=classroom_type,
        min_capacity=capacity,
    )


@router.post("/", response_model=ClassroomOut, status_code=status.HTTP_201_CREATED)
def create_classroom(
    payload: ClassroomCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ClassroomOut:
    existing = db.execute(
        select(Classroom).where(Classroom.room_number == payload.room_number)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Room number already exists")
    classroom = Classroom(**payload.model_dump())
    db.add(classroom)
    db.flush()
    log_activity(
        db,
        actor=current_user,
        action="classroom.create",
        entity_type="classroom",
        entity_id=classroom.id,
        details={"room_number": classroom.room_number},
    )
    db.commit()
    db.refresh(classroom)
    return classroom

