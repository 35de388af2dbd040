from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import ensure_self_or_staff, get_current_user, get_db, require_roles
from app.models.user import User, UserRole
from app.schemas.timetable import TimetableEntryIn, TimetableEntryOut
from app.services.class_groups import ClassGroupService
from app.services.professor_timetable import ProfessorTimetableService

router = APIRouter()


@router.get("/student/{student_id}", response_model=list[TimetableEntryOut])
def get_student_timetable(
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TimetableEntryOut]:
    ensure_self_or_staff(current_user, student_id)
    return ClassGroupService(db, current_user).student_timetable(student_id)


@router.get("/professor/{professor_id}/taught", response_model=list[TimetableEntryOut])
def get_professor_taught_timetable(
    professor_id: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.professor)),
    db: Session = Depends(get_db),
) -> list[TimetableEntryOut]:
    return ClassGroupService(db, current_user).professor_taught_timetable(professor_id)


@router.get("/professor/{professor_id}", response_model=list[TimetableEntryOut])
def get_professor_timetable(
    professor_id: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.professor)),
    db: Session = Depends(get_db),
) -> list[TimetableEntryOut]:
    return ProfessorTimetableService(db, current_user).entries(professor_id)


@router.post(
    "/professor/{professor_id}/entries",
    response_model=TimetableEntryOut,
    status_code=status.HTTP_201_CREATED,
)
def add_professor_entry(
    professor_id: str,
    payload: TimetableEntryIn,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.professor)),
    db: Session = Depends(get_db),
) -> TimetableEntryOut:
    entry = ProfessorTimetableService(db, current_user).add_entry(professor_id, payload)
    db.commit()
    db.refresh(entry)
    return entry


@router.delete("/professor/{professor_id}/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_professor_entry(
    professor_id: str,
    entry_id: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.professor)),
    db: Session = Depends(get_db),
) -> None:
    ProfessorTimetableService(db, current_user).delete_entry(professor_id, entry_id)
    db.commit()


@router.post("/professor/{professor_id}/resync")
def resync_professor_timetable(
    professor_id: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.professor)),
    db: Session = Depends(get_db),
) -> dict[str, int]:
    summary = ProfessorTimetableService(db, current_user).resync(professor_id)
    db.commit()
    return summary
