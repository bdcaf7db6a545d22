from datetime import date

import pytest
from httpx import AsyncClient
from sqlmodel import Session, select

from tatamecheck.models import Expense, Frequency, Receivable
from tatamecheck.services.finance import generate_recurring
from conftest import auth_headers


@pytest.mark.asyncio
async def test_expense_crud_and_filters(client: AsyncClient, professor, academy):
    headers = auth_headers(professor)
    rent = await client.post(
        "/api/finance/expenses",
        json={"description": "Aluguel", "amount": 2500, "category": "fixa", "entry_date": "2025-03-01"},
        headers=headers,
    )
    assert rent.status_code == 201
    assert rent.json()["paid"] is False

    kimonos = await client.post(
        "/api/finance/expenses",
        json={"description": "Kimonos", "amount": 800, "category": "material", "paid": True},
        headers=headers,
    )
    # Paid without a date: settled today
    assert kimonos.json()["paid_on"] == "2025-03-10"
    assert kimonos.json()["entry_date"] == "2025-03-10"

    listing = (await client.get("/api/finance/expenses", params={"category": "fixa"}, headers=headers)).json()
    assert listing["total"] == 1
    assert listing["expenses"][0]["description"] == "Aluguel"

    unpaid = (await client.get("/api/finance/expenses", params={"paid": False}, headers=headers)).json()
    assert [e["description"] for e in unpaid["expenses"]] == ["Aluguel"]

    updated = await client.put(f"/api/finance/expenses/{rent.json()['id']}", json={"paid": True}, headers=headers)
    assert updated.json()["paid_on"] == "2025-03-10"

    paged = (await client.get("/api/finance/expenses", params={"limit": 1}, headers=headers)).json()
    assert paged["total"] == 2
    assert len(paged["expenses"]) == 1

    deleted = await client.delete(f"/api/finance/expenses/{rent.json()['id']}", headers=headers)
    assert deleted.status_code == 204
    missing = await client.put(f"/api/finance/expenses/{rent.json()['id']}", json={"paid": False}, headers=headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_amount_must_be_positive(client: AsyncClient, professor, academy):
    response = await client.post(
        "/api/finance/expenses", json={"description": "Nada", "amount": 0}, headers=auth_headers(professor)
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_receivable_student_must_belong_to_academy(client: AsyncClient, professor, academy, student):
    headers = auth_headers(professor)
    ok = await client.post(
        "/api/finance/receivables",
        json={"student_id": student.id, "description": "Mensalidade", "amount": 150, "due_date": "2025-03-05"},
        headers=headers,
    )
    assert ok.status_code == 201

    wrong = await client.post(
        "/api/finance/receivables",
        json={"student_id": 999, "description": "Mensalidade", "amount": 150, "due_date": "2025-03-05"},
        headers=headers,
    )
    assert wrong.status_code == 400

    pending = (await client.get("/api/finance/receivables", params={"received": False}, headers=headers)).json()
    assert pending["total"] == 1


@pytest.mark.asyncio
async def test_summary(client: AsyncClient, professor, academy, student):
    headers = auth_headers(professor)
    for body in (
        {"description": "Mensalidade", "amount": 150, "category": "mensalidade", "received": True, "student_id": student.id},
        {"description": "Mensalidade", "amount": 150, "category": "mensalidade", "received": True},
        {"description": "Camisetas", "amount": 100, "category": "produto", "received": True},
        {"description": "Evento", "amount": 500, "category": "evento"},
    ):
        assert (await client.post("/api/finance/revenues", json=body, headers=headers)).status_code == 201
    await client.post(
        "/api/finance/expenses",
        json={"description": "Luz", "amount": 120, "category": "fixa", "paid": True},
        headers=headers,
    )
    await client.post(
        "/api/finance/expenses",
        json={"description": "Tatame", "amount": 900, "category": "manutencao", "due_date": "2025-03-20"},
        headers=headers,
    )
    await client.post(
        "/api/finance/receivables",
        json={"student_id": student.id, "description": "Mensalidade", "amount": 150, "due_date": "2025-03-15"},
        headers=headers,
    )

    summary = (await client.get(
        "/api/finance/summary", params={"start": "2025-03-01", "end": "2025-03-31"}, headers=headers
    )).json()
    assert summary["total_revenue"] == 400
    assert summary["total_expenses"] == 120
    assert summary["balance"] == 280
    assert summary["pending_receivables"] == 150
    assert summary["pending_expenses"] == 900
    assert summary["revenue_by_category"] == [
        {"category": "mensalidade", "total": 300},
        {"category": "produto", "total": 100},
    ]

    april = (await client.get("/api/finance/summary", params={"start": "2025-04-01"}, headers=headers)).json()
    assert april["total_revenue"] == 0
    assert april["revenue_by_category"] == []


def test_generate_recurring_catches_up_and_keeps_the_anchor_day(session: Session, professor, academy, student):
    expense = Expense(
        academy_id=academy.id,
        description="Aluguel",
        amount=2500,
        entry_date=date(2025, 1, 31),
        recurring=True,
        frequency=Frequency.MENSAL,
        next_occurrence=date(2025, 2, 28),
        created_by_id=professor.id,
    )
    receivable = Receivable(
        academy_id=academy.id,
        student_id=student.id,
        description="Anuidade",
        amount=1200,
        due_date=date(2024, 3, 1),
        recurring=True,
        frequency=Frequency.ANUAL,
        next_occurrence=date(2025, 3, 1),
        created_by_id=professor.id,
    )
    session.add(expense)
    session.add(receivable)
    session.commit()

    assert generate_recurring(session, academy.id, date(2025, 3, 31)) == 3

    copies = session.exec(
        select(Expense).where(Expense.recurring == False).order_by(Expense.entry_date)  # noqa: E712
    ).all()
    assert [e.entry_date for e in copies] == [date(2025, 2, 28), date(2025, 3, 31)]
    assert all(not e.paid for e in copies)
    session.refresh(expense)
    assert expense.next_occurrence == date(2025, 4, 30)

    session.refresh(receivable)
    assert receivable.next_occurrence == date(2026, 3, 1)

    # Nothing left to generate
    assert generate_recurring(session, academy.id, date(2025, 3, 31)) == 0


@pytest.mark.asyncio
async def test_recurring_endpoint_initializes_next_occurrence(client: AsyncClient, professor, academy):
    headers = auth_headers(professor)
    created = await client.post(
        "/api/finance/expenses",
        json={"description": "Internet", "amount": 100, "entry_date": "2025-01-10", "recurring": True},
        headers=headers,
    )
    assert created.json()["next_occurrence"] == "2025-02-10"

    response = await client.post("/api/finance/recurring/generate", headers=headers)
    assert response.json() == {"created": 2}

    recurring = (await client.get("/api/finance/expenses", params={"recurring": True}, headers=headers)).json()
    assert recurring["expenses"][0]["next_occurrence"] == "2025-04-10"


@pytest.mark.asyncio
async def test_finance_requires_staff(client: AsyncClient, student):
    response = await client.get("/api/finance/summary", headers=auth_headers(student.user))
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "changes",
    [
        {"amount": None},
        {"entry_date": None},
        {"paid": None},
        {"description": None},
        {"recurring": True, "frequency": None},
    ],
)
async def test_update_rejects_null_for_required_fields(client: AsyncClient, professor, academy, changes):
    headers = auth_headers(professor)
    created = await client.post(
        "/api/finance/expenses",
        json={"description": "Aluguel", "amount": 2500, "entry_date": "2025-03-01"},
        headers=headers,
    )
    expense_id = created.json()["id"]

    response = await client.put(f"/api/finance/expenses/{expense_id}", json=changes, headers=headers)
    assert response.status_code == 422

    unchanged = (await client.get("/api/finance/expenses", headers=headers)).json()["expenses"][0]
    assert unchanged["amount"] == 2500
    assert unchanged["recurring"] is False


@pytest.mark.asyncio
async def test_update_may_clear_optional_fields(client: AsyncClient, professor, academy, student):
    headers = auth_headers(professor)
    created = await client.post(
        "/api/finance/revenues",
        json={"description": "Mensalidade", "amount": 150, "student_id": student.id, "notes": "março"},
        headers=headers,
    )
    revenue_id = created.json()["id"]

    cleared = await client.put(
        f"/api/finance/revenues/{revenue_id}", json={"student_id": None, "notes": None}, headers=headers
    )
    assert cleared.status_code == 200
    assert cleared.json()["student_id"] is None
    assert cleared.json()["notes"] is None

    rejected = await client.put(f"/api/finance/revenues/{revenue_id}", json={"received": None}, headers=headers)
    assert rejected.status_code == 422


@pytest.mark.asyncio
async def test_receivable_due_date_cannot_be_cleared(client: AsyncClient, professor, academy, student):
    headers = auth_headers(professor)
    created = await client.post(
        "/api/finance/receivables",
        json={"student_id": student.id, "description": "Mensalidade", "amount": 150, "due_date": "2025-03-05"},
        headers=headers,
    )
    response = await client.put(
        f"/api/finance/receivables/{created.json()['id']}", json={"due_date": None}, headers=headers
    )
    assert response.status_code == 422
