from typing import Optional, TYPE_CHECKING
from datetime import date, datetime
from sqlmodel import Field, SQLModel, Relationship

if TYPE_CHECKING:
    from .user import User


class Student(SQLModel, table=True):
    __tablename__ = "students"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True)
    academy_id: int = Field(foreign_key="academies.id", index=True)
    current_belt: str = "Branca"
    current_degree: int = 0

    # Attendance counters, zeroed on graduation
    days_since_last_degree: int = 0
    days_since_last_belt_change: int = 0
    last_graduation_date: Optional[date] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    user: "User" = Relationship()

    @property
    def progression_since(self) -> date:
        """Start of the current graduation period; the enrollment date until the first graduation."""
        return self.last_graduation_date or self.created_at.date()
