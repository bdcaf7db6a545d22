from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from tatamecheck.db import get_session
from tatamecheck.dependencies import get_today, require_staff, staff_academy
from tatamecheck.models import (
    Academy,
    Expense,
    ExpenseCategory,
    Receivable,
    Revenue,
    RevenueCategory,
    Student,
    User,
)
from tatamecheck.schemas.finance import (
    ExpenseIn,
    ExpenseUpdate,
    ReceivableIn,
    ReceivableUpdate,
    RevenueIn,
    RevenueUpdate,
)
from tatamecheck.services.finance import (
    date_range,
    financial_summary,
    generate_recurring,
    init_recurrence,
    query_records,
    stamp_settlement,
)

log = logging.getLogger(__name__)

router = APIRouter(prefix="/finance", tags=["finance"], dependencies=[Depends(require_staff)])


def _owned(session: Session, model, record_id: int, academy: Academy, label: str):
    record = session.get(model, record_id)
    if record is None or record.academy_id != academy.id:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return record


def _check_student(session: Session, academy: Academy, student_id: int | None) -> None:
    if student_id is None:
        return
    student = session.get(Student, student_id)
    if student is None or student.academy_id != academy.id:
        raise HTTPException(status_code=400, detail="Student not found in this academy")


def _save(session: Session, record, today: date):
    stamp_settlement(record, today)
    init_recurrence(record)
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


def _apply(record, changes: dict) -> None:
    for field, value in changes.items():
        setattr(record, field, value)
    if "recurring" in changes or "frequency" in changes:
        # Recompute from the record's own date unless explicitly given
        if "next_occurrence" not in changes:
            record.next_occurrence = None


def _delete(session: Session, record, label: str) -> None:
    record_id, academy_id = record.id, record.academy_id
    session.delete(record)
    session.commit()
    log.info("%s %s deleted from academy %s", label, record_id, academy_id)


def _page(key: str, items: list, total: int, limit: int, skip: int) -> dict:
    return {key: items, "total": total, "limit": limit, "skip": skip}


# ---- Expenses ----

@router.get("/expenses")
def list_expenses(
    start: Optional[date] = None,
    end: Optional[date] = None,
    category: Optional[ExpenseCategory] = None,
    paid: Optional[bool] = None,
    recurring: Optional[bool] = None,
    limit: int = Query(default=50, ge=1, le=500),
    skip: int = Query(default=0, ge=0),
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
):
    conditions = [Expense.academy_id == academy.id, *date_range(Expense.entry_date, start, end)]
    if category is not None:
        conditions.append(Expense.category == category)
    if paid is not None:
        conditions.append(Expense.paid == paid)
    if recurring is not None:
        conditions.append(Expense.recurring == recurring)
    items, total = query_records(session, Expense, conditions, Expense.entry_date.desc(), limit, skip)
    return _page("expenses", items, total, limit, skip)


@router.post("/expenses", response_model=Expense, status_code=status.HTTP_201_CREATED)
def create_expense(
    body: ExpenseIn,
    academy: Academy = Depends(staff_academy),
    user: User = Depends(require_staff),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    data = body.model_dump()
    data["entry_date"] = data["entry_date"] or today
    expense = Expense(**data, academy_id=academy.id, created_by_id=user.id)
    return _save(session, expense, today)


@router.put("/expenses/{expense_id}", response_model=Expense)
def update_expense(
    expense_id: int,
    body: ExpenseUpdate,
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    expense = _owned(session, Expense, expense_id, academy, "Expense")
    _apply(expense, body.model_dump(exclude_unset=True))
    return _save(session, expense, today)


@router.delete("/expenses/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(expense_id: int, academy: Academy = Depends(staff_academy), session: Session = Depends(get_session)):
    _delete(session, _owned(session, Expense, expense_id, academy, "Expense"), "Expense")


# ---- Revenues ----

@router.get("/revenues")
def list_revenues(
    start: Optional[date] = None,
    end: Optional[date] = None,
    category: Optional[RevenueCategory] = None,
    received: Optional[bool] = None,
    recurring: Optional[bool] = None,
    student_id: Optional[int] = None,
    limit: int = Query(default=50, ge=1, le=500),
    skip: int = Query(default=0, ge=0),
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
):
    conditions = [Revenue.academy_id == academy.id, *date_range(Revenue.entry_date, start, end)]
    if category is not None:
        conditions.append(Revenue.category == category)
    if received is not None:
        conditions.append(Revenue.received == received)
    if recurring is not None:
        conditions.append(Revenue.recurring == recurring)
    if student_id is not None:
        conditions.append(Revenue.student_id == student_id)
    items, total = query_records(session, Revenue, conditions, Revenue.entry_date.desc(), limit, skip)
    return _page("revenues", items, total, limit, skip)


@router.post("/revenues", response_model=Revenue, status_code=status.HTTP_201_CREATED)
def create_revenue(
    body: RevenueIn,
    academy: Academy = Depends(staff_academy),
    user: User = Depends(require_staff),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    _check_student(session, academy, body.student_id)
    data = body.model_dump()
    data["entry_date"] = data["entry_date"] or today
    revenue = Revenue(**data, academy_id=academy.id, created_by_id=user.id)
    return _save(session, revenue, today)


@router.put("/revenues/{revenue_id}", response_model=Revenue)
def update_revenue(
    revenue_id: int,
    body: RevenueUpdate,
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    revenue = _owned(session, Revenue, revenue_id, academy, "Revenue")
    changes = body.model_dump(exclude_unset=True)
    _check_student(session, academy, changes.get("student_id"))
    _apply(revenue, changes)
    return _save(session, revenue, today)


@router.delete("/revenues/{revenue_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_revenue(revenue_id: int, academy: Academy = Depends(staff_academy), session: Session = Depends(get_session)):
    _delete(session, _owned(session, Revenue, revenue_id, academy, "Revenue"), "Revenue")


# ---- Receivables ----

@router.get("/receivables")
def list_receivables(
    start: Optional[date] = None,
    end: Optional[date] = None,
    received: Optional[bool] = None,
    recurring: Optional[bool] = None,
    student_id: Optional[int] = None,
    limit: int = Query(default=50, ge=1, le=500),
    skip: int = Query(default=0, ge=0),
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
):
    """Receivables by due date, soonest first."""
    conditions = [Receivable.academy_id == academy.id, *date_range(Receivable.due_date, start, end)]
    if received is not None:
        conditions.append(Receivable.received == received)
    if recurring is not None:
        conditions.append(Receivable.recurring == recurring)
    if student_id is not None:
        conditions.append(Receivable.student_id == student_id)
    items, total = query_records(session, Receivable, conditions, Receivable.due_date.asc(), limit, skip)
    return _page("receivables", items, total, limit, skip)


@router.post("/receivables", response_model=Receivable, status_code=status.HTTP_201_CREATED)
def create_receivable(
    body: ReceivableIn,
    academy: Academy = Depends(staff_academy),
    user: User = Depends(require_staff),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    _check_student(session, academy, body.student_id)
    receivable = Receivable(**body.model_dump(), academy_id=academy.id, created_by_id=user.id)
    return _save(session, receivable, today)


@router.put("/receivables/{receivable_id}", response_model=Receivable)
def update_receivable(
    receivable_id: int,
    body: ReceivableUpdate,
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    receivable = _owned(session, Receivable, receivable_id, academy, "Receivable")
    _apply(receivable, body.model_dump(exclude_unset=True))
    return _save(session, receivable, today)


@router.delete("/receivables/{receivable_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_receivable(
    receivable_id: int,
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
):
    _delete(session, _owned(session, Receivable, receivable_id, academy, "Receivable"), "Receivable")


# ---- Recurrence & summary ----

@router.post("/recurring/generate")
def generate_recurring_entries(
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
    today: date = Depends(get_today),
):
    created = generate_recurring(session, academy.id, today)
    return {"created": created}


@router.get("/summary")
def summary(
    start: Optional[date] = None,
    end: Optional[date] = None,
    academy: Academy = Depends(staff_academy),
    session: Session = Depends(get_session),
):
    return financial_summary(session, academy.id, start, end)
