from typing import Optional

from pydantic import BaseModel, Field


class AcademyIn(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_meters: Optional[float] = Field(default=None, gt=0)


class AcademyOut(BaseModel):
    id: int
    name: str
    address: Optional[str] = None
    latitude: float
    longitude: float
    radius_meters: float


class DegreeIn(BaseModel):
    number: int = Field(ge=1)
    min_months: int = Field(default=0, ge=0)


class BeltIn(BaseModel):
    name: str = Field(min_length=1)
    order: int
    min_years: int = Field(default=0, ge=0)
    min_months: int = Field(default=0, ge=0)
    max_degrees: int = Field(default=4, ge=1)
    degrees: list[DegreeIn] = []


class DegreeOut(BaseModel):
    number: int
    min_months: int


class BeltOut(BaseModel):
    name: str
    order: int
    min_years: int
    min_months: int
    max_degrees: int
    degrees: list[DegreeOut]


class StaffIn(BaseModel):
    email: str
