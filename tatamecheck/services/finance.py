from __future__ import annotations

import logging
from datetime import date
from typing import Any, Sequence

from sqlalchemy import func
from sqlmodel import Session, SQLModel, select

from tatamecheck.models import FREQUENCY_MONTHS, Expense, Frequency, Receivable, Revenue
from tatamecheck.utils.calendar import add_months

log = logging.getLogger(__name__)

# (settled flag, settlement date) per record type
SETTLEMENT = {
    Expense: ("paid", "paid_on"),
    Revenue: ("received", "received_on"),
    Receivable: ("received", "received_on"),
}

# Date that a recurring record repeats on
OCCURRENCE_FIELD = {
    Expense: "entry_date",
    Revenue: "entry_date",
    Receivable: "due_date",
}

FinanceRecord = Expense | Revenue | Receivable


def stamp_settlement(record: FinanceRecord, today: date) -> None:
    """A record marked paid/received without a date is settled today; unsettling clears the date."""
    flag, stamp = SETTLEMENT[type(record)]
    if getattr(record, flag) and getattr(record, stamp) is None:
        setattr(record, stamp, today)
    elif not getattr(record, flag):
        setattr(record, stamp, None)


def next_occurrence(previous: date, frequency: Frequency | str, anchor_day: int | None = None) -> date:
    return add_months(previous, FREQUENCY_MONTHS[Frequency(frequency)], day=anchor_day)


def init_recurrence(record: FinanceRecord) -> None:
    if record.recurring and record.next_occurrence is None:
        base = getattr(record, OCCURRENCE_FIELD[type(record)])
        record.next_occurrence = next_occurrence(base, record.frequency)
    elif not record.recurring:
        record.next_occurrence = None


def _occurrence_of(template: FinanceRecord, on: date) -> FinanceRecord:
    model = type(template)
    flag, stamp = SETTLEMENT[model]
    field = OCCURRENCE_FIELD[model]
    data = template.model_dump(exclude={"id", "created_at", "recurring", "next_occurrence", flag, stamp})
    if model is Expense and template.due_date is not None:
        data["due_date"] = on + (template.due_date - template.entry_date)
    data[field] = on
    return model(**data, recurring=False)


def generate_recurring(session: Session, academy_id: int, today: date) -> int:
    """
    Materialize every recurring record whose next occurrence is due, catching up
    on missed periods, and advance each template's next occurrence.
    """
    created = 0
    for model in (Expense, Revenue, Receivable):
        templates = session.exec(
            select(model).where(
                model.academy_id == academy_id,
                model.recurring == True,  # noqa: E712
                model.next_occurrence != None,  # noqa: E711
                model.next_occurrence <= today,
            )
        ).all()
        for template in templates:
            anchor_day = getattr(template, OCCURRENCE_FIELD[model]).day
            while template.next_occurrence <= today:
                session.add(_occurrence_of(template, template.next_occurrence))
                template.next_occurrence = next_occurrence(
                    template.next_occurrence, template.frequency, anchor_day
                )
                created += 1
            session.add(template)
    session.commit()
    log.info("Generated %d recurring finance records for academy %s", created, academy_id)
    return created


def date_range(column, start: date | None, end: date | None) -> list:
    conditions = []
    if start:
        conditions.append(column >= start)
    if end:
        conditions.append(column <= end)
    return conditions


def query_records(
    session: Session,
    model: type[SQLModel],
    conditions: Sequence[Any],
    order_by: Any,
    limit: int = 50,
    skip: int = 0,
) -> tuple[list, int]:
    total = session.exec(select(func.count()).select_from(model).where(*conditions)).one()
    items = session.exec(
        select(model).where(*conditions).order_by(order_by).offset(skip).limit(limit)
    ).all()
    return list(items), int(total)


def _total(session: Session, column, conditions: Sequence[Any]) -> float:
    return float(session.exec(select(func.coalesce(func.sum(column), 0)).where(*conditions)).one())


def _by_category(session: Session, model, conditions: Sequence[Any]) -> list[dict]:
    total = func.sum(model.amount)
    rows = session.exec(
        select(model.category, total).where(*conditions).group_by(model.category).order_by(total.desc())
    ).all()
    return [{"category": getattr(category, "value", category), "total": float(amount)} for category, amount in rows]


def financial_summary(session: Session, academy_id: int, start: date | None = None, end: date | None = None) -> dict:
    """Cash in/out within the period plus what is still pending."""
    received = [Revenue.academy_id == academy_id, Revenue.received == True,  # noqa: E712
                *date_range(Revenue.received_on, start, end)]
    paid = [Expense.academy_id == academy_id, Expense.paid == True,  # noqa: E712
            *date_range(Expense.paid_on, start, end)]
    pending_receivables = [Receivable.academy_id == academy_id, Receivable.received == False,  # noqa: E712
                           *date_range(Receivable.due_date, start, end)]
    pending_expenses = [Expense.academy_id == academy_id, Expense.paid == False,  # noqa: E712
                        *date_range(Expense.due_date, start, end)]

    total_revenue = _total(session, Revenue.amount, received)
    total_expenses = _total(session, Expense.amount, paid)
    return {
        "total_revenue": total_revenue,
        "total_expenses": total_expenses,
        "balance": total_revenue - total_expenses,
        "pending_receivables": _total(session, Receivable.amount, pending_receivables),
        "pending_expenses": _total(session, Expense.amount, pending_expenses),
        "revenue_by_category": _by_category(session, Revenue, received),
        "expenses_by_category": _by_category(session, Expense, paid),
    }
