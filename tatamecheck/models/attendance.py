from typing import Optional
from datetime import date, datetime
from sqlmodel import Field, SQLModel
from sqlalchemy import UniqueConstraint


class Attendance(SQLModel, table=True):
    """A check-in. At most one per student per calendar day."""
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("student_id", "checkin_date", name="uq_attendance_daily"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key="students.id", index=True)
    checked_in_at: datetime = Field(default_factory=datetime.now)
    checkin_date: date = Field(index=True)

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_meters: Optional[float] = None
    distance_meters: Optional[int] = None
    within_fence: bool = False

    validated: bool = False
    validated_by_id: Optional[int] = Field(default=None, foreign_key="users.id")
    validated_at: Optional[datetime] = None
