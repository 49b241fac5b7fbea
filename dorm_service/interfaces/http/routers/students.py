import structlog
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from ....application.use_cases.occupancy import CheckIn, CheckOut
from ....domain.entities import Identity
from ....domain.errors import Conflict
from ....infrastructure.db import get_db
from ....infrastructure.repositories import StudentRepository
from ....infrastructure.metrics import checkin_conflicts_total
from ..authz import require_staff
from ..schemas import MAX_ID, StudentCreate, StudentOut, CheckinReq

logger = structlog.get_logger()

router = APIRouter(prefix="/students", tags=["students"], dependencies=[Depends(require_staff)])


@router.get("", response_model=list[StudentOut])
def list_students(db: Session = Depends(get_db)):
    return StudentRepository(db).list()


@router.post("", response_model=StudentOut)
def create_student(payload: StudentCreate, db: Session = Depends(get_db)):
    return StudentRepository(db).create(payload.user_id, payload.student_no)


@router.post("/{student_id}/checkin", response_model=StudentOut)
def checkin(
    payload: CheckinReq,
    student_id: int = Path(gt=0, le=MAX_ID),
    staff: Identity = Depends(require_staff),
    db: Session = Depends(get_db),
):
    repo = StudentRepository(db)
    try:
        CheckIn(repo).execute(student_id, payload.bed_id)
    except Conflict:
        checkin_conflicts_total.inc()
        logger.info("checkin_conflict", student_id=student_id, bed_id=payload.bed_id)
        raise
    logger.info("student_checked_in", student_id=student_id, bed_id=payload.bed_id, by=staff.user_id)
    return repo.get(student_id)


@router.post("/{student_id}/checkout", response_model=StudentOut)
def checkout(
    student_id: int = Path(gt=0, le=MAX_ID),
    staff: Identity = Depends(require_staff),
    db: Session = Depends(get_db),
):
    repo = StudentRepository(db)
    CheckOut(repo).execute(student_id)
    logger.info("student_checked_out", student_id=student_id, by=staff.user_id)
    return repo.get(student_id)
