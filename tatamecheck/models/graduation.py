from typing import Optional
from datetime import date, datetime
from sqlmodel import Field, SQLModel


class Graduation(SQLModel, table=True):
    __tablename__ = "graduations"

    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key="students.id", index=True)
    belt: str
    degree: int
    awarded_on: date = Field(index=True)
    attendance_days: int = 0  # validated check-ins since the previous graduation
    evaluated_by_id: int = Field(foreign_key="users.id")
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
