from __future__ import annotations

import logging
from datetime import date

from sqlmodel import Session, select

from tatamecheck.models import Academy, Graduation, Student, User
from .belts import belt_configs
from .progression import (
    MAX_DEGREES_LIMIT,
    BeltConfig,
    EligibilityResult,
    ProgressionState,
    compute_eligibility,
    find_belt,
)

log = logging.getLogger(__name__)


class GraduationError(ValueError):
    pass


def student_state(student: Student) -> ProgressionState:
    return ProgressionState(
        current_belt=student.current_belt,
        current_degree=student.current_degree,
        last_graduation_date=student.progression_since,
    )


def student_eligibility(
    session: Session,
    student: Student,
    today: date,
    config: list[BeltConfig] | None = None,
) -> EligibilityResult:
    if config is None:
        config = belt_configs(session, student.academy_id)
    return compute_eligibility(student_state(student), config, today)


def pending_graduations(session: Session, academy: Academy, today: date) -> list[tuple[Student, EligibilityResult]]:
    """Students of the academy who already meet the time requirement of their next step."""
    config = belt_configs(session, academy.id)
    students = session.exec(
        select(Student).where(Student.academy_id == academy.id).order_by(Student.id)
    ).all()
    pending = []
    for student in students:
        result = student_eligibility(session, student, today, config)
        if result.is_eligible:
            pending.append((student, result))
    return pending


def check_rank(config: list[BeltConfig], belt: str, degree: int) -> None:
    """A belt/degree pair a student may hold: configured belts bound the degree."""
    if not belt or not belt.strip():
        raise GraduationError("Belt is required")
    configured = find_belt(config, belt)
    limit = configured.max_degrees if configured else MAX_DEGREES_LIMIT
    if not 0 <= degree <= limit:
        raise GraduationError(f"Degree for belt {belt} must be between 0 and {limit}")


def confirm_graduation(
    session: Session,
    student: Student,
    belt: str,
    degree: int,
    evaluator: User,
    today: date,
    notes: str | None = None,
) -> Graduation:
    config = belt_configs(session, student.academy_id)
    check_rank(config, belt, degree)
    if belt == student.current_belt and degree == student.current_degree:
        raise GraduationError(f"Student already holds {belt} with {degree} degree(s)")

    graduation = Graduation(
        student_id=student.id,
        belt=belt,
        degree=degree,
        awarded_on=today,
        attendance_days=student.days_since_last_degree,
        evaluated_by_id=evaluator.id,
        notes=notes or "",
    )

    if belt != student.current_belt:
        student.days_since_last_belt_change = 0
    student.current_belt = belt
    student.current_degree = degree
    student.days_since_last_degree = 0
    student.last_graduation_date = today

    session.add(graduation)
    session.add(student)
    session.commit()
    session.refresh(graduation)
    session.refresh(student)
    log.info("Student %s graduated to %s / %s by user %s", student.id, belt, degree, evaluator.id)
    return graduation


def graduation_history(session: Session, student_id: int, limit: int | None = None) -> list[tuple[Graduation, str]]:
    """Graduations of a student, newest first, with the evaluator's name."""
    stmt = (
        select(Graduation, User.name)
        .join(User, User.id == Graduation.evaluated_by_id)
        .where(Graduation.student_id == student_id)
        .order_by(Graduation.awarded_on.desc(), Graduation.id.desc())
    )
    if limit:
        stmt = stmt.limit(limit)
    return list(session.exec(stmt).all())
