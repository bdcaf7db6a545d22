from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tatamecheck.services.progression import EligibilityResult, TargetKind, progress_percent


class StudentCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    belt: str = "Branca"
    degree: int = Field(default=0, ge=0)


class EligibilityOut(BaseModel):
    next_target_kind: TargetKind
    next_target_label: Optional[str] = None
    months_elapsed: int = 0
    months_required: int = 0
    months_remaining: int = 0
    is_eligible: bool = False
    next_belt: Optional[str] = None
    next_degree: Optional[int] = None
    percent: int = 0

    @classmethod
    def from_result(cls, result: EligibilityResult) -> "EligibilityOut":
        return cls(
            next_target_kind=result.next_target_kind,
            next_target_label=result.next_target_label,
            months_elapsed=result.months_elapsed,
            months_required=result.months_required,
            months_remaining=result.months_remaining,
            is_eligible=result.is_eligible,
            next_belt=result.next_belt,
            next_degree=result.next_degree,
            percent=progress_percent(result),
        )


class StudentOut(BaseModel):
    id: int
    user_id: int
    name: str
    email: str
    current_belt: str
    current_degree: int
    days_since_last_degree: int
    days_since_last_belt_change: int
    last_graduation_date: Optional[date] = None
    eligibility: EligibilityOut

    @classmethod
    def from_student(cls, student, result: EligibilityResult) -> "StudentOut":
        return cls(
            id=student.id,
            user_id=student.user_id,
            name=student.user.name,
            email=student.user.email,
            current_belt=student.current_belt,
            current_degree=student.current_degree,
            days_since_last_degree=student.days_since_last_degree,
            days_since_last_belt_change=student.days_since_last_belt_change,
            last_graduation_date=student.last_graduation_date,
            eligibility=EligibilityOut.from_result(result),
        )


class GraduationIn(BaseModel):
    belt: str = Field(min_length=1)
    degree: int = Field(ge=0)
    notes: Optional[str] = None


class GraduationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    belt: str
    degree: int
    awarded_on: date
    attendance_days: int
    evaluated_by: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, graduation, evaluated_by: Optional[str] = None) -> "GraduationOut":
        out = cls.model_validate(graduation)
        out.evaluated_by = evaluated_by
        return out


class CheckinIn(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class AttendanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    checked_in_at: datetime
    validated: bool
    within_fence: bool
    distance_meters: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_meters: Optional[float] = None


class ProgressOut(BaseModel):
    current_belt: str
    current_degree: int
    days_since_last_degree: int
    days_since_last_belt_change: int
    progression_since: date
    eligibility: EligibilityOut
    last_graduation: Optional[GraduationOut] = None


class PendingGraduationOut(BaseModel):
    student_id: int
    name: str
    email: str
    current_belt: str
    current_degree: int
    days_since_last_degree: int
    eligibility: EligibilityOut


class PendingAttendanceOut(AttendanceOut):
    student_id: int
    name: str
    email: str


class ImportResultOut(BaseModel):
    created: int
    skipped: int
    errors: list[str]
