from typing import Optional
from datetime import date, datetime
from enum import Enum
from sqlmodel import Field, SQLModel


class Frequency(str, Enum):
    MENSAL = "mensal"
    TRIMESTRAL = "trimestral"
    SEMESTRAL = "semestral"
    ANUAL = "anual"


FREQUENCY_MONTHS = {
    Frequency.MENSAL: 1,
    Frequency.TRIMESTRAL: 3,
    Frequency.SEMESTRAL: 6,
    Frequency.ANUAL: 12,
}


class ExpenseCategory(str, Enum):
    FIXA = "fixa"
    PESSOAL = "pessoal"
    MATERIAL = "material"
    MANUTENCAO = "manutencao"
    MARKETING = "marketing"
    OUTROS = "outros"


class RevenueCategory(str, Enum):
    MENSALIDADE = "mensalidade"
    MATRICULA = "matricula"
    EVENTO = "evento"
    PRODUTO = "produto"
    OUTROS = "outros"


class Expense(SQLModel, table=True):
    __tablename__ = "expenses"

    id: Optional[int] = Field(default=None, primary_key=True)
    academy_id: int = Field(foreign_key="academies.id", index=True)
    description: str
    amount: float
    category: ExpenseCategory = Field(default=ExpenseCategory.OUTROS, index=True)
    entry_date: date = Field(index=True)
    due_date: Optional[date] = None
    paid: bool = Field(default=False, index=True)
    paid_on: Optional[date] = None
    recurring: bool = False
    frequency: Frequency = Frequency.MENSAL
    next_occurrence: Optional[date] = None
    notes: Optional[str] = None
    created_by_id: int = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Revenue(SQLModel, table=True):
    __tablename__ = "revenues"

    id: Optional[int] = Field(default=None, primary_key=True)
    academy_id: int = Field(foreign_key="academies.id", index=True)
    description: str
    amount: float
    category: RevenueCategory = Field(default=RevenueCategory.OUTROS, index=True)
    entry_date: date = Field(index=True)
    received: bool = Field(default=False, index=True)
    received_on: Optional[date] = None
    student_id: Optional[int] = Field(default=None, foreign_key="students.id", index=True)
    recurring: bool = False
    frequency: Frequency = Frequency.MENSAL
    next_occurrence: Optional[date] = None
    notes: Optional[str] = None
    created_by_id: int = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Receivable(SQLModel, table=True):
    """A payment owed by a student (e.g. an upcoming monthly fee)."""
    __tablename__ = "receivables"

    id: Optional[int] = Field(default=None, primary_key=True)
    academy_id: int = Field(foreign_key="academies.id", index=True)
    student_id: int = Field(foreign_key="students.id", index=True)
    description: str
    amount: float
    due_date: date = Field(index=True)
    received: bool = Field(default=False, index=True)
    received_on: Optional[date] = None
    recurring: bool = False
    frequency: Frequency = Frequency.MENSAL
    next_occurrence: Optional[date] = None
    notes: Optional[str] = None
    created_by_id: int = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
