from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from tatamecheck.db import get_session
from tatamecheck.dependencies import current_student, get_now, get_today
from tatamecheck.models import Academy, Attendance, Student
from tatamecheck.schemas.academy import AcademyOut
from tatamecheck.schemas.student import (
    AttendanceOut,
    CheckinIn,
    EligibilityOut,
    GraduationOut,
    ProgressOut,
)
from tatamecheck.services.checkin import AlreadyCheckedIn, CheckinRejected, record_checkin
from tatamecheck.services.geofence import InvalidCoordinate, validate_coordinate
from tatamecheck.services.graduation import graduation_history, student_eligibility
from tatamecheck.utils.calendar import generate_calendar_data

router = APIRouter(prefix="/student", tags=["student"])


def _academy_of(session: Session, student: Student) -> Academy:
    academy = session.get(Academy, student.academy_id)
    if academy is None:
        raise HTTPException(status_code=404, detail="Academy not found")
    return academy


@router.post("/checkin")
def checkin(
    body: CheckinIn,
    student: Student = Depends(current_student),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    """Geolocated check-in; without coordinates it is recorded for manual validation."""
    academy = _academy_of(session, student)

    point = None
    if body.latitude is not None or body.longitude is not None:
        try:
            point = validate_coordinate(body.latitude, body.longitude)
        except InvalidCoordinate as e:
            raise HTTPException(status_code=400, detail=str(e))

    try:
        attendance, check = record_checkin(session, student, academy, point, now)
    except (AlreadyCheckedIn, CheckinRejected) as e:
        raise HTTPException(status_code=400, detail=str(e))

    if attendance.validated:
        message = "Check-in successful!"
    elif check is not None:
        message = (
            f"Check-in recorded, but you are outside the allowed radius "
            f"({attendance.distance_meters}m). A professor can validate it manually."
        )
    else:
        message = "Check-in recorded without location validation. A professor can validate it manually."

    result = student_eligibility(session, student, now.date())
    return {
        "message": message,
        "attendance": AttendanceOut.model_validate(attendance),
        "progress": {
            "days_since_last_degree": student.days_since_last_degree,
            "days_since_last_belt_change": student.days_since_last_belt_change,
            "eligibility": EligibilityOut.from_result(result),
        },
    }


@router.get("/attendance")
def attendance_history(
    start: Optional[date] = None,
    end: Optional[date] = None,
    student: Student = Depends(current_student),
    session: Session = Depends(get_session),
):
    stmt = select(Attendance).where(Attendance.student_id == student.id)
    if start:
        stmt = stmt.where(Attendance.checkin_date >= start)
    if end:
        stmt = stmt.where(Attendance.checkin_date <= end)
    rows = session.exec(stmt.order_by(Attendance.checked_in_at.desc()).limit(100)).all()
    return {
        "total": len(rows),
        "attendance": [AttendanceOut.model_validate(a) for a in rows],
    }


@router.get("/attendance/calendar")
def attendance_calendar(
    year: Optional[int] = Query(default=None, ge=1900, le=9998),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    student: Student = Depends(current_student),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    """Month grid of the student's check-ins (defaults to the current month)."""
    year = year or today.year
    month = month or today.month
    first = date(year, month, 1)
    last = date(year, month, monthrange(year, month)[1])
    rows = session.exec(
        select(Attendance).where(
            Attendance.student_id == student.id,
            Attendance.checkin_date >= first,
            Attendance.checkin_date <= last,
        )
    ).all()
    marked = {a.checkin_date: AttendanceOut.model_validate(a) for a in rows}
    return {
        "year": year,
        "month": month,
        "total": len(rows),
        "weeks": generate_calendar_data(year, month, marked, today),
    }


@router.get("/progress", response_model=ProgressOut)
def progress(
    student: Student = Depends(current_student),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    result = student_eligibility(session, student, today)
    history = graduation_history(session, student.id, limit=1)
    last = GraduationOut.from_row(*history[0]) if history else None
    return ProgressOut(
        current_belt=student.current_belt,
        current_degree=student.current_degree,
        days_since_last_degree=student.days_since_last_degree,
        days_since_last_belt_change=student.days_since_last_belt_change,
        progression_since=student.progression_since,
        eligibility=EligibilityOut.from_result(result),
        last_graduation=last,
    )


@router.get("/graduations")
def graduations(student: Student = Depends(current_student), session: Session = Depends(get_session)):
    history = graduation_history(session, student.id)
    return {
        "total": len(history),
        "graduations": [GraduationOut.from_row(g, name) for g, name in history],
    }


@router.get("/academy", response_model=AcademyOut)
def academy_location(student: Student = Depends(current_student), session: Session = Depends(get_session)):
    """The fence centre and radius, for the check-in map."""
    academy = _academy_of(session, student)
    return AcademyOut.model_validate(academy, from_attributes=True)
