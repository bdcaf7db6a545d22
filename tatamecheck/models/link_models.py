from sqlmodel import Field, SQLModel


class AcademyStaff(SQLModel, table=True):
    __tablename__ = "academy_staff"
    academy_id: int = Field(foreign_key="academies.id", primary_key=True)
    user_id: int = Field(foreign_key="users.id", primary_key=True)
