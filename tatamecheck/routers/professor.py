from __future__ import annotations

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlmodel import Session, select

from tatamecheck.db import get_session
from tatamecheck.dependencies import get_now, get_today, require_role, require_staff, staff_academy
from tatamecheck.models import Academy, Attendance, Role, Student, User
from tatamecheck.schemas.academy import AcademyIn, AcademyOut, BeltIn, BeltOut, DegreeOut, StaffIn
from tatamecheck.schemas.student import (
    AttendanceOut,
    EligibilityOut,
    GraduationIn,
    GraduationOut,
    ImportResultOut,
    PendingAttendanceOut,
    PendingGraduationOut,
    StudentCreate,
    StudentOut,
)
from tatamecheck.services.academies import add_staff, save_academy
from tatamecheck.services.belts import belt_configs, belt_ranks, delete_belt, save_belt
from tatamecheck.services.checkin import AlreadyValidated, validate_attendance
from tatamecheck.services.geofence import InvalidCoordinate, validate_coordinate
from tatamecheck.services.graduation import (
    GraduationError,
    confirm_graduation,
    graduation_history,
    pending_graduations,
    student_eligibility,
)
from tatamecheck.services.progression import BeltConfig, BeltConfigError, DegreeConfig
from tatamecheck.services.students import EmailTaken, RosterError, enroll_student, import_roster

log = logging.getLogger(__name__)

router = APIRouter(prefix="/professor", tags=["professor"], dependencies=[Depends(require_staff)])


def _student_in_academy(session: Session, academy: Academy, student_id: int) -> Student:
    student = session.get(Student, student_id)
    if not student or student.academy_id != academy.id:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


# ---- Students ----

@router.post("/students", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
def create_student(
    body: StudentCreate,
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    try:
        student = enroll_student(
            session, academy,
            name=body.name, email=body.email, password=body.password,
            belt=body.belt, degree=body.degree, enrolled_on=today,
        )
    except (EmailTaken, GraduationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    log.info("Student %s enrolled in academy %s", student.id, academy.id)
    return StudentOut.from_student(student, student_eligibility(session, student, today))


@router.get("/students")
def list_students(
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    config = belt_configs(session, academy.id)
    students = session.exec(
        select(Student).where(Student.academy_id == academy.id).order_by(Student.created_at.desc())
    ).all()
    return {
        "total": len(students),
        "students": [
            StudentOut.from_student(s, student_eligibility(session, s, today, config)) for s in students
        ],
    }


@router.post("/students/import", response_model=ImportResultOut)
async def import_students(
    file: UploadFile = File(...),
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    """Bulk enrollment from a CSV/XLSX roster (name, email, belt, degree, password)."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="Please upload a CSV or XLSX file.")
    contents = await file.read()
    try:
        result = import_roster(session, academy, contents, file.filename, enrolled_on=today)
    except RosterError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ImportResultOut(created=result.created, skipped=result.skipped, errors=result.errors)


@router.get("/students/{student_id}")
def student_detail(
    student_id: int,
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    student = _student_in_academy(session, academy, student_id)
    recent = session.exec(
        select(Attendance)
        .where(Attendance.student_id == student.id)
        .order_by(Attendance.checked_in_at.desc())
        .limit(30)
    ).all()
    return {
        "student": StudentOut.from_student(student, student_eligibility(session, student, today)),
        "attendance": [AttendanceOut.model_validate(a) for a in recent],
        "graduations": [GraduationOut.from_row(g, name) for g, name in graduation_history(session, student.id)],
    }


def _graduate(session: Session, academy: Academy, student_id: int, body: GraduationIn, user: User, today: date):
    student = _student_in_academy(session, academy, student_id)
    try:
        graduation = confirm_graduation(session, student, body.belt.strip(), body.degree, user, today, body.notes)
    except GraduationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "message": "Graduation recorded",
        "graduation": GraduationOut.from_row(graduation, user.name),
        "student": StudentOut.from_student(student, student_eligibility(session, student, today)),
    }


@router.post("/students/{student_id}/graduation")
def record_graduation(
    student_id: int,
    body: GraduationIn,
    academy: Academy = Depends(staff_academy),
    user: User = Depends(require_staff),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    return _graduate(session, academy, student_id, body, user, today)


# ---- Academy ----

@router.get("/academy", response_model=AcademyOut)
def get_academy(academy: Academy = Depends(staff_academy)):
    return AcademyOut.model_validate(academy, from_attributes=True)


@router.put("/academy", response_model=AcademyOut)
def put_academy(
    body: AcademyIn,
    user: User = Depends(require_staff),
    session: Session = Depends(get_session),
):
    """Set the academy location and check-in radius; the first call creates the academy."""
    try:
        location = validate_coordinate(body.latitude, body.longitude)
    except InvalidCoordinate as e:
        raise HTTPException(status_code=400, detail=str(e))
    academy = save_academy(
        session, user,
        location=location, name=body.name, address=body.address, radius_meters=body.radius_meters,
    )
    return AcademyOut.model_validate(academy, from_attributes=True)


@router.post("/academy/staff", status_code=status.HTTP_204_NO_CONTENT)
def add_professor(
    body: StaffIn,
    academy: Academy = Depends(staff_academy),
    _admin: User = Depends(require_role(Role.ADMIN)),
    session: Session = Depends(get_session),
):
    """Admins attach an already registered professor to their academy."""
    professor = session.exec(select(User).where(User.email == body.email.lower().strip())).first()
    if not professor or professor.role != Role.PROFESSOR:
        raise HTTPException(status_code=404, detail="Professor not found")
    add_staff(session, academy, professor)
    session.commit()


# ---- Belt configuration ----

def _belt_out(rank) -> BeltOut:
    return BeltOut(
        name=rank.name,
        order=rank.order,
        min_years=rank.min_years,
        min_months=rank.min_months,
        max_degrees=rank.max_degrees,
        degrees=[DegreeOut(number=d.number, min_months=d.min_months) for d in rank.degrees],
    )


@router.get("/settings/belts")
def list_belts(academy: Academy = Depends(staff_academy), session: Session = Depends(get_session)):
    return {"belts": [_belt_out(r) for r in belt_ranks(session, academy.id)]}


@router.post("/settings/belts", response_model=BeltOut)
def upsert_belt(
    body: BeltIn,
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
):
    """Create or replace a belt (matched by name) in the academy's belt table."""
    config = BeltConfig(
        belt_name=body.name.strip(),
        order=body.order,
        min_years=body.min_years,
        min_months=body.min_months,
        max_degrees=body.max_degrees,
        degrees=tuple(DegreeConfig(d.number, d.min_months) for d in body.degrees),
    )
    try:
        rank = save_belt(session, academy, config)
    except BeltConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _belt_out(rank)


@router.delete("/settings/belts/{name}", status_code=status.HTTP_204_NO_CONTENT)
def remove_belt(name: str, academy: Academy = Depends(staff_academy), session: Session = Depends(get_session)):
    if not delete_belt(session, academy, name):
        raise HTTPException(status_code=404, detail="Belt not found")


# ---- Pending approvals ----

@router.get("/pending")
def pending(
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    """Students eligible for their next degree/belt and check-ins awaiting validation."""
    graduations = [
        PendingGraduationOut(
            student_id=s.id,
            name=s.user.name,
            email=s.user.email,
            current_belt=s.current_belt,
            current_degree=s.current_degree,
            days_since_last_degree=s.days_since_last_degree,
            eligibility=EligibilityOut.from_result(result),
        )
        for s, result in pending_graduations(session, academy, today)
    ]

    rows = session.exec(
        select(Attendance, User.name, User.email)
        .join(Student, Student.id == Attendance.student_id)
        .join(User, User.id == Student.user_id)
        .where(Student.academy_id == academy.id, Attendance.validated == False)  # noqa: E712
        .order_by(Attendance.checked_in_at.desc())
    ).all()
    attendance = [
        PendingAttendanceOut(
            **AttendanceOut.model_validate(a).model_dump(),
            student_id=a.student_id,
            name=name,
            email=email,
        )
        for a, name, email in rows
    ]
    return {"graduations": graduations, "attendance": attendance}


@router.post("/pending/{student_id}/confirm-graduation")
def confirm_pending_graduation(
    student_id: int,
    body: GraduationIn,
    academy: Academy = Depends(staff_academy),
    user: User = Depends(require_staff),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    return _graduate(session, academy, student_id, body, user, today)


@router.post("/pending/attendance/{attendance_id}/validate")
def validate_pending_attendance(
    attendance_id: int,
    academy: Academy = Depends(staff_academy),
    user: User = Depends(require_staff),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    attendance = session.get(Attendance, attendance_id)
    if attendance is None:
        raise HTTPException(status_code=404, detail="Check-in not found")
    _student_in_academy(session, academy, attendance.student_id)
    try:
        attendance = validate_attendance(session, attendance, user, now)
    except AlreadyValidated as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Check-in validated", "attendance": AttendanceOut.model_validate(attendance)}
