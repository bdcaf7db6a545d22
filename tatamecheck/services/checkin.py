from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from tatamecheck.config import settings
from tatamecheck.models import Academy, Attendance, Student, User
from .academies import fence_for
from .geofence import Coordinate, FenceCheck, is_within_fence

log = logging.getLogger(__name__)


class AlreadyCheckedIn(ValueError):
    pass


class CheckinRejected(ValueError):
    pass


class AlreadyValidated(ValueError):
    pass


def checkin_on(session: Session, student_id: int, day: date) -> Attendance | None:
    return session.exec(
        select(Attendance).where(Attendance.student_id == student_id, Attendance.checkin_date == day)
    ).first()


def credit_attendance(student: Student) -> None:
    """Count one accepted check-in towards the next degree and the next belt."""
    student.days_since_last_degree += 1
    student.days_since_last_belt_change += 1


def record_checkin(
    session: Session,
    student: Student,
    academy: Academy,
    point: Coordinate | None,
    now: datetime,
) -> tuple[Attendance, FenceCheck | None]:
    """
    Record today's check-in for `student`.

    A check-in inside the academy fence is validated on the spot and credited to
    the attendance counters. Without a position, or outside the fence, it is kept
    unvalidated for a professor to review (unless unverified check-ins are disabled).
    """
    day = now.date()
    if checkin_on(session, student.id, day):
        raise AlreadyCheckedIn("You have already checked in today")

    check = is_within_fence(point, fence_for(academy)) if point is not None else None
    within = bool(check and check.within_fence)
    if not within and not settings.ALLOW_UNVERIFIED_CHECKIN:
        if check is None:
            raise CheckinRejected("Location is required to check in")
        raise CheckinRejected(
            f"You are outside the allowed radius ({round(check.distance_meters)}m)"
        )

    attendance = Attendance(
        student_id=student.id,
        checked_in_at=now,
        checkin_date=day,
        within_fence=within,
        validated=within,
        validated_at=now if within else None,
    )
    if point is not None:
        attendance.latitude = point.latitude
        attendance.longitude = point.longitude
        attendance.radius_meters = academy.radius_meters
        attendance.distance_meters = round(check.distance_meters)
    if within:
        credit_attendance(student)

    session.add(attendance)
    session.add(student)
    try:
        session.commit()
    except IntegrityError:
        # A concurrent request won the daily uniqueness constraint
        session.rollback()
        raise AlreadyCheckedIn("You have already checked in today") from None
    session.refresh(attendance)
    session.refresh(student)

    log.info(
        "Check-in %s for student %s (distance=%s, validated=%s)",
        attendance.id, student.id, attendance.distance_meters, attendance.validated,
    )
    return attendance, check


def validate_attendance(session: Session, attendance: Attendance, validator: User, now: datetime) -> Attendance:
    """Professor approval of a check-in that could not be verified by location."""
    if attendance.validated:
        raise AlreadyValidated("Check-in already validated")
    student = session.get(Student, attendance.student_id)
    attendance.validated = True
    attendance.validated_by_id = validator.id
    attendance.validated_at = now
    credit_attendance(student)
    session.add(attendance)
    session.add(student)
    session.commit()
    session.refresh(attendance)
    log.info("Check-in %s validated by user %s", attendance.id, validator.id)
    return attendance
