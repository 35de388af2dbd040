from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import ensure_self_or_staff, get_current_user, get_db, require_roles
from app.models.class_group import ClassGroup
from app.models.user import User, UserRole
from app.schemas.class_group import ClassGroupCreate, ClassGroupOut, ClassGroupUpdate
from app.schemas.conflict import ConflictCheckResult
from app.schemas.timetable import SingleEntryConflictCheck, TimetableEntryIn, TimetableEntryOut
from app.schemas.user import UserSummary
from app.services.class_groups import ClassGroupService

router = APIRouter()


def to_out(class_group: ClassGroup) -> ClassGroupOut:
    return ClassGroupOut(
        id=class_group.id,
        name=class_group.name,
        course_code=class_group.course_code,
        description=class_group.description,
        branch_id=class_group.branch_id,
        academic_year=class_group.academic_year,
        semester=class_group.semester,
        professor_id=class_group.professor_id,
        professor_name=class_group.professor.name if class_group.professor else None,
        students=[UserSummary.model_validate(item) for item in class_group.students],
        student_count=len(class_group.students),
        timetable_entries=[TimetableEntryOut.model_validate(item) for item in class_group.timetable_entries],
        updated_at=class_group.updated_at,
    )


@router.get("/", response_model=list[ClassGroupOut])
def list_class_groups(
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.professor)),
    db: Session = Depends(get_db),
) -> list[ClassGroupOut]:
    return [to_out(item) for item in ClassGroupService(db, current_user).list_all()]


@router.get("/professor/{professor_id}", response_model=list[ClassGroupOut])
def list_class_groups_by_professor(
    professor_id: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.professor)),
    db: Session = Depends(get_db),
) -> list[ClassGroupOut]:
    return [to_out(item) for item in ClassGroupService(db, current_user).list_by_professor(professor_id)]


@router.get("/student/{student_id}", response_model=list[ClassGroupOut])
def list_class_groups_by_student(
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ClassGroupOut]:
    ensure_self_or_staff(current_user, student_id)
    return [to_out(item) for item in ClassGroupService(db, current_user).list_by_student(student_id)]


@router.get("/{class_group_id}", response_model=ClassGroupOut)
def get_class_group(
    class_group_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ClassGroupOut:
    return to_out(ClassGroupService(db, current_user).get(class_group_id))


@router.get("/{class_group_id}/students", response_model=list[UserSummary])
def list_class_group_students(
    class_group_id: str,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.professor)),
    db: Session = Depends(get_db),
) -> list[UserSummary]:
    return list(ClassGroupService(db, current_user).get(class_group_id).students)


@router.get("/{class_group_id}/available-students", response_model=list[UserSummary])
def list_available_students(
    class_group_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> list[UserSummary]:
    return ClassGroupService(db, current_user).available_students(class_group_id)


@router.post("/", response_model=ClassGroupOut, status_code=status.HTTP_201_CREATED)
def create_class_group(
    payload: ClassGroupCreate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ClassGroupOut:
    class_group = ClassGroupService(db, current_user).create(payload)
    db.commit()
    db.refresh(class_group)
    return to_out(class_group)


@router.put("/{class_group_id}", response_model=ClassGroupOut)
def update_class_group(
    class_group_id: str,
    payload: ClassGroupUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ClassGroupOut:
    class_group = ClassGroupService(db, current_user).update(class_group_id, payload)
    db.commit()
    db.refresh(class_group)
    return to_out(class_group)


@router.delete("/{class_group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_class_group(
    class_group_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> None:
    ClassGroupService(db, current_user).delete(class_group_id)
    db.commit()


@router.post("/{class_group_id}/students/{student_id}", response_model=ClassGroupOut)
def add_student(
    class_group_id: str,
    student_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ClassGroupOut:
    class_group = ClassGroupService(db, current_user).add_student(class_group_id, student_id)
    db.commit()
    db.refresh(class_group)
    return to_out(class_group)


@router.delete("/{class_group_id}/students/{student_id}", response_model=ClassGroupOut)
def remove_student(
    class_group_id: str,
    student_id: str,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ClassGroupOut:
    class_group = ClassGroupService(db, current_user).remove_student(class_group_id, student_id)
    db.commit()
    db.refresh(class_group)
    return to_out(class_group)


@router.put("/{class_group_id}/timetable", response_model=ClassGroupOut)
def replace_timetable(
    class_group_id: str,
    payload: list[TimetableEntryIn],
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.professor)),
    db: Session = Depends(get_db),
) -> ClassGroupOut:
    class_group = ClassGroupService(db, current_user).replace_timetable(class_group_id, payload)
    db.commit()
    db.refresh(class_group)
    return to_out(class_group)


@router.post("/{class_group_id}/check-conflict", response_model=ConflictCheckResult)
def check_entry_conflict(
    class_group_id: str,
    payload: SingleEntryConflictCheck,
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.professor)),
    db: Session = Depends(get_db),
) -> ConflictCheckResult:
    return ConflictCheckResult.model_validate(ClassGroupService(db, current_user).check_entry(class_group_id, payload))

