from collections import OrderedDict
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.utils.auth import get_current_user, require_teacher

from app.models.class_schedule import ClassSchedule
from app.models.class_session import ClassSession
from app.models.class_cancellation import ClassCancellation
from app.models.user import User

from app.schemas.class_schedule import (
    CancelIn, ClassCreate, ClassOut, ClassUpdate,
    ConflictCheckIn, ConflictCheckOut,
    ImportResultOut, ImportRowError,
    SessionIn, SessionOut, StudentAddIn,
)
from app.utils.conflict import find_conflict, find_internal_overlap, sessions_overlap
from app.utils.session_validation import SessionValidationError, validate_session
from app.utils.excel_export import schedule_to_xlsx_bytes, make_filename
from app.utils.excel_import import ExcelFormatError, read_session_rows

import logging
logger = logging.getLogger("app.classes")


router = APIRouter(prefix="/classes", tags=["Classes"])


def _session_out(s) -> SessionOut:
    return SessionOut(day_of_week=s.day_of_week, start_time=s.start_time, end_time=s.end_time)


def _class_out(c: ClassSchedule) -> ClassOut:
    return ClassOut(
        id=c.id,
        name=c.name,
        grade=c.grade,
        sessions=[_session_out(s) for s in sorted(c.sessions, key=lambda x: x.day_of_week)],
        enrolled_students=sorted(u.id for u in c.students),
        is_active=bool(c.is_active),
        cancelled_dates=[x.cancelled_on for x in c.cancellations],
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


def _get_class_or_404(db: Session, class_id: int) -> ClassSchedule:
    c = db.query(ClassSchedule).filter(ClassSchedule.id == class_id).first()
    if not c:
        raise HTTPException(status_code=404, detail="Class not found")
    return c


def _registry(db: Session, grade: Optional[int], exclude_class_id: Optional[int] = None) -> List[ClassSchedule]:
    """
    Active classes a new session must not overlap.
    CONFLICT_SCOPE=grade limits it to the same grade.
    """
    q = db.query(ClassSchedule).filter(ClassSchedule.is_active.is_(True))
    if settings.CONFLICT_SCOPE == "grade" and grade is not None:
        q = q.filter(ClassSchedule.grade == grade)
    if exclude_class_id is not None:
        q = q.filter(ClassSchedule.id != exclude_class_id)
    return q.all()


def _conflict_message(cls, session) -> str:
    return f'Lớp học trùng giờ với lớp "{cls.name}" ({session.start_time} - {session.end_time})'


def _ensure_schedulable(db: Session, sessions: List[SessionIn], grade: int, exclude_class_id: Optional[int] = None):
    if find_internal_overlap(sessions):
        raise HTTPException(status_code=400, detail="Sessions cannot overlap on the same day")

    # All classes repeat weekly, so only dayOfWeek + time window matter
    registry = _registry(db, grade, exclude_class_id)
    for s in sessions:
        hit = find_conflict(s, registry)
        if hit:
            cls, existing = hit
            logger.info("conflict: %s %s-%s day %d vs class %s", grade, s.start_time, s.end_time, s.day_of_week, cls.name)
            raise HTTPException(status_code=400, detail=_conflict_message(cls, existing))


def _to_rows(sessions: List[SessionIn]) -> List[ClassSession]:
    return [
        ClassSession(day_of_week=s.day_of_week, start_time=s.start_time, end_time=s.end_time)
        for s in sorted(sessions, key=lambda x: x.day_of_week)
    ]


@router.get("", response_model=List[ClassOut])
def list_classes(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
    grade: Optional[int] = Query(None, ge=6, le=12, description="Khối 6..12"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
):
    q = db.query(ClassSchedule)
    if grade is not None:
        q = q.filter(ClassSchedule.grade == grade)
    if is_active is not None:
        q = q.filter(ClassSchedule.is_active.is_(is_active))
    rows = q.order_by(ClassSchedule.grade.asc(), ClassSchedule.name.asc()).all()
    return [_class_out(c) for c in rows]


@router.post("/check-conflict", response_model=ConflictCheckOut)
def check_conflict(
    body: ConflictCheckIn,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    """
    Used by the class form while the teacher picks a slot.
    Without grade, every active class is checked.
    """
    registry = _registry(db, body.grade, body.exclude_class_id)
    hit = find_conflict(body.session, registry)
    if not hit:
        return ConflictCheckOut(conflict=False)
    cls, existing = hit
    return ConflictCheckOut(
        conflict=True,
        class_id=cls.id,
        class_name=cls.name,
        session=_session_out(existing),
    )


@router.get("/export")
def export_schedule_excel(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
    grade: Optional[int] = Query(None, ge=6, le=12),
):
    """
    匯出每週課表 (.xlsx)：Sessions 明細 + Week 週視圖
    """
    q = db.query(ClassSchedule).filter(ClassSchedule.is_active.is_(True))
    if grade is not None:
        q = q.filter(ClassSchedule.grade == grade)
    classes = q.order_by(ClassSchedule.grade.asc(), ClassSchedule.name.asc()).all()

    xlsx_bytes = schedule_to_xlsx_bytes(classes)
    filename = make_filename("schedule")

    return StreamingResponse(
        iter([xlsx_bytes]),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=ImportResultOut)
def import_schedule_excel(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    teacher=Depends(require_teacher),
):
    """
    One session per row (Lớp, Khối, Thứ, Bắt đầu, Kết thúc).
    Bad or conflicting rows are reported and skipped, the rest is imported.
    """
    try:
        rows = read_session_rows(file.file)
    except ExcelFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # group rows by (class name, grade), keep file order
    grouped = OrderedDict()
    for r in rows:
        grouped.setdefault((r["name"], r["grade"]), []).append(r)

    skipped: List[ImportRowError] = []
    created = 0
    created_sessions = 0

    try:
        for (name, grade), class_rows in grouped.items():
            if grade is None or not 6 <= grade <= 12:
                skipped.extend(ImportRowError(row=r["row"], reason="Grade must be between 6 and 12") for r in class_rows)
                continue

            if db.query(ClassSchedule.id).filter(ClassSchedule.name == name, ClassSchedule.grade == grade).first():
                skipped.extend(ImportRowError(row=r["row"], reason=f"Class {name} already exists") for r in class_rows)
                continue

            registry = _registry(db, grade)
            accepted: List[SessionIn] = []
            for r in class_rows:
                try:
                    validate_session(r["day_of_week"], r["start_time"], r["end_time"])
                except SessionValidationError as e:
                    skipped.append(ImportRowError(row=r["row"], reason=str(e)))
                    continue

                candidate = SessionIn(day_of_week=r["day_of_week"], start_time=r["start_time"], end_time=r["end_time"])
                if any(sessions_overlap(candidate, a) for a in accepted):
                    skipped.append(ImportRowError(row=r["row"], reason="Sessions cannot overlap on the same day"))
                    continue
                hit = find_conflict(candidate, registry)
                if hit:
                    skipped.append(ImportRowError(row=r["row"], reason=_conflict_message(*hit)))
                    continue
                accepted.append(candidate)

            if not accepted:
                continue

            db.add(ClassSchedule(name=name, grade=grade, is_active=True, sessions=_to_rows(accepted)))
            # later classes in the same file must see this one
            db.flush()
            created += 1
            created_sessions += len(accepted)

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("import: %d classes, %d sessions, %d rows skipped", created, created_sessions, len(skipped))
    return ImportResultOut(created=created, sessions=created_sessions, skipped=skipped)


@router.get("/{class_id}", response_model=ClassOut)
def get_class(class_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    return _class_out(_get_class_or_404(db, class_id))


@router.post("", response_model=ClassOut, status_code=201)
def create_class(
    body: ClassCreate,
    db: Session = Depends(get_db),
    teacher=Depends(require_teacher),
):
    _ensure_schedulable(db, body.sessions, body.grade)

    c = ClassSchedule(
        name=body.name,
        grade=body.grade,
        is_active=True,
        sessions=_to_rows(body.sessions),
    )
    db.add(c)
    db.commit()
    db.refresh(c)
    logger.info("class created: %s (grade %d, %d sessions)", c.name, c.grade, len(c.sessions))
    return _class_out(c)


@router.put("/{class_id}", response_model=ClassOut)
def update_class(
    class_id: int,
    body: ClassUpdate,
    db: Session = Depends(get_db),
    teacher=Depends(require_teacher),
):
    c = _get_class_or_404(db, class_id)
    data = body.model_dump(exclude_unset=True)
    data.pop("sessions", None)

    grade = data.get("grade", c.grade)
    is_active = data.get("is_active", c.is_active)
    sessions = body.sessions
    if sessions is None:
        sessions = [SessionIn(day_of_week=s.day_of_week, start_time=s.start_time, end_time=s.end_time) for s in c.sessions]

    # 新時段彼此不能重疊，不論班級是否啟用
    if body.sessions is not None and find_internal_overlap(body.sessions):
        raise HTTPException(status_code=400, detail="Sessions cannot overlap on the same day")

    # 只要時段、年級或啟用狀態有變，就重新檢查衝堂
    schedule_changed = body.sessions is not None or "grade" in data or data.get("is_active") is True
    if is_active and schedule_changed:
        _ensure_schedulable(db, sessions, grade, exclude_class_id=c.id)

    for k, v in data.items():
        setattr(c, k, v)
    if body.sessions is not None:
        c.sessions = _to_rows(body.sessions)
    c.updated_at = datetime.utcnow()

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e.orig))

    db.refresh(c)
    logger.info("class updated: %s", c.name)
    return _class_out(c)


@router.delete("/{class_id}")
def delete_class(
    class_id: int,
    db: Session = Depends(get_db),
    teacher=Depends(require_teacher),
):
    c = _get_class_or_404(db, class_id)
    db.delete(c)
    db.commit()
    logger.info("class deleted: %s", class_id)
    return {"detail": "Class deleted successfully"}


@router.post("/{class_id}/cancel", response_model=ClassOut)
def cancel_class_on_date(
    class_id: int,
    body: CancelIn,
    db: Session = Depends(get_db),
    teacher=Depends(require_teacher),
):
    c = _get_class_or_404(db, class_id)
    if any(x.cancelled_on == body.cancelled_on for x in c.cancellations):
        raise HTTPException(status_code=400, detail="This date is already cancelled")

    c.cancellations.append(ClassCancellation(cancelled_on=body.cancelled_on))
    c.updated_at = datetime.utcnow()
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="This date is already cancelled")

    db.refresh(c)
    return _class_out(c)


@router.post("/{class_id}/students", response_model=ClassOut)
def add_student(
    class_id: int,
    body: StudentAddIn,
    db: Session = Depends(get_db),
    teacher=Depends(require_teacher),
):
    c = _get_class_or_404(db, class_id)
    student = db.query(User).filter(User.id == body.student_id).first()
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    if any(u.id == student.id for u in c.students):
        raise HTTPException(status_code=400, detail="Student is already enrolled in this class")

    c.students.append(student)
    c.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(c)
    return _class_out(c)


@router.delete("/{class_id}/students/{student_id}", response_model=ClassOut)
def remove_student(
    class_id: int,
    student_id: int,
    db: Session = Depends(get_db),
    teacher=Depends(require_teacher),
):
    c = _get_class_or_404(db, class_id)
    student = next((u for u in c.students if u.id == student_id), None)
    if not student:
        raise HTTPException(status_code=404, detail="Student is not enrolled in this class")

    c.students.remove(student)
    c.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(c)
    return _class_out(c)
