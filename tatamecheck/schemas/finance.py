from datetime import date
from typing import ClassVar, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from tatamecheck.models import ExpenseCategory, Frequency, RevenueCategory


class _PartialUpdate(BaseModel):
    """Omitted fields stay unchanged; only the listed columns may be cleared with null."""

    NULLABLE: ClassVar[frozenset[str]] = frozenset({"next_occurrence", "notes"})

    @field_validator("*")
    @classmethod
    def reject_null(cls, value, info: ValidationInfo):
        if value is None and info.field_name not in cls.NULLABLE:
            raise ValueError("may not be null")
        return value


class _Recurrence(BaseModel):
    recurring: bool = False
    frequency: Frequency = Frequency.MENSAL
    next_occurrence: Optional[date] = None
    notes: Optional[str] = None


class ExpenseIn(_Recurrence):
    description: str = Field(min_length=1)
    amount: float = Field(gt=0)
    category: ExpenseCategory = ExpenseCategory.OUTROS
    entry_date: Optional[date] = None
    due_date: Optional[date] = None
    paid: bool = False
    paid_on: Optional[date] = None


class ExpenseUpdate(_PartialUpdate):
    NULLABLE: ClassVar[frozenset[str]] = _PartialUpdate.NULLABLE | {"due_date", "paid_on"}

    description: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[float] = Field(default=None, gt=0)
    category: Optional[ExpenseCategory] = None
    entry_date: Optional[date] = None
    due_date: Optional[date] = None
    paid: Optional[bool] = None
    paid_on: Optional[date] = None
    recurring: Optional[bool] = None
    frequency: Optional[Frequency] = None
    next_occurrence: Optional[date] = None
    notes: Optional[str] = None


class RevenueIn(_Recurrence):
    description: str = Field(min_length=1)
    amount: float = Field(gt=0)
    category: RevenueCategory = RevenueCategory.OUTROS
    entry_date: Optional[date] = None
    received: bool = False
    received_on: Optional[date] = None
    student_id: Optional[int] = None


class RevenueUpdate(_PartialUpdate):
    NULLABLE: ClassVar[frozenset[str]] = _PartialUpdate.NULLABLE | {"received_on", "student_id"}

    description: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[float] = Field(default=None, gt=0)
    category: Optional[RevenueCategory] = None
    entry_date: Optional[date] = None
    received: Optional[bool] = None
    received_on: Optional[date] = None
    student_id: Optional[int] = None
    recurring: Optional[bool] = None
    frequency: Optional[Frequency] = None
    next_occurrence: Optional[date] = None
    notes: Optional[str] = None


class ReceivableIn(_Recurrence):
    student_id: int
    description: str = Field(min_length=1)
    amount: float = Field(gt=0)
    due_date: date


class ReceivableUpdate(_PartialUpdate):
    NULLABLE: ClassVar[frozenset[str]] = _PartialUpdate.NULLABLE | {"received_on"}

    description: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[float] = Field(default=None, gt=0)
    due_date: Optional[date] = None
    received: Optional[bool] = None
    received_on: Optional[date] = None
    recurring: Optional[bool] = None
    frequency: Optional[Frequency] = None
    next_occurrence: Optional[date] = None
    notes: Optional[str] = None
