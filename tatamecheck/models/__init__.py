from .user import User, Role
from .academy import Academy, BeltRank, DegreeRequirement
from .student import Student
from .attendance import Attendance
from .graduation import Graduation
from .finance import (
    Expense,
    ExpenseCategory,
    Frequency,
    FREQUENCY_MONTHS,
    Receivable,
    Revenue,
    RevenueCategory,
)
from .link_models import AcademyStaff

__all__ = [
    "User", "Role",
    "Academy", "BeltRank", "DegreeRequirement", "AcademyStaff",
    "Student",
    "Attendance",
    "Graduation",
    "Expense", "ExpenseCategory", "Revenue", "RevenueCategory", "Receivable",
    "Frequency", "FREQUENCY_MONTHS",
]
