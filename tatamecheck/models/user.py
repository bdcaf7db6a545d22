from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
from sqlmodel import Field, SQLModel, Relationship

from tatamecheck.security import hash_password
from .link_models import AcademyStaff

if TYPE_CHECKING:
    from .academy import Academy


class Role:
    STUDENT = "student"
    PROFESSOR = "professor"
    ADMIN = "admin"

    STAFF = (PROFESSOR, ADMIN)


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    name: str
    role: str = Role.STUDENT  # student|professor|admin
    password_hash: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)

    academies: List["Academy"] = Relationship(back_populates="staff", link_model=AcademyStaff)

    @property
    def is_staff(self) -> bool:
        return self.role in Role.STAFF

    def set_password(self, password: str):
        self.password_hash = hash_password(password)

    def __repr__(self):
        return f"<User id={self.id} {self.email} role={self.role}>"
