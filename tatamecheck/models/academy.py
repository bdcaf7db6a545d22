from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import UniqueConstraint

from .link_models import AcademyStaff

if TYPE_CHECKING:
    from .user import User


class Academy(SQLModel, table=True):
    __tablename__ = "academies"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    address: Optional[str] = None
    latitude: float
    longitude: float
    radius_meters: float = 100.0
    admin_id: int = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    staff: List["User"] = Relationship(back_populates="academies", link_model=AcademyStaff)
    belts: List["BeltRank"] = Relationship(
        back_populates="academy",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "BeltRank.order"},
    )


class BeltRank(SQLModel, table=True):
    """One row of an academy's belt table; `order` ranks belts from lowest to highest."""
    __tablename__ = "belt_ranks"
    __table_args__ = (
        UniqueConstraint("academy_id", "name", name="uq_belt_rank_name"),
        UniqueConstraint("academy_id", "order", name="uq_belt_rank_order"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    academy_id: int = Field(foreign_key="academies.id", index=True)
    name: str
    order: int
    min_years: int = 0
    min_months: int = 0
    max_degrees: int = 4

    academy: "Academy" = Relationship(back_populates="belts")
    degrees: List["DegreeRequirement"] = Relationship(
        back_populates="belt",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "DegreeRequirement.number"},
    )


class DegreeRequirement(SQLModel, table=True):
    __tablename__ = "degree_requirements"
    __table_args__ = (
        UniqueConstraint("belt_rank_id", "number", name="uq_degree_number"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    belt_rank_id: int = Field(foreign_key="belt_ranks.id", index=True)
    number: int
    min_months: int = 0

    belt: "BeltRank" = Relationship(back_populates="degrees")
