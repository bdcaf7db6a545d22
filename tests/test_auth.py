from datetime import timedelta

import pytest
from httpx import AsyncClient
from jose import jwt
from sqlmodel import Session

from tatamecheck.config import settings
from tatamecheck.models import Role
from tatamecheck.security import create_access_token, user_id_from_token
from conftest import auth_headers, make_user


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/api/test")
    assert response.status_code == 200
    assert "running" in response.json()["message"]


@pytest.mark.asyncio
async def test_register_professor_and_me(client: AsyncClient):
    response = await client.post(
        "/api/auth/register",
        json={"name": "Prof", "email": "Prof@Example.com ", "password": "secret", "role": "professor"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == "prof@example.com"
    assert data["user"]["role"] == "professor"

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Prof"


@pytest.mark.asyncio
async def test_students_cannot_self_register(client: AsyncClient):
    response = await client.post(
        "/api/auth/register",
        json={"name": "Aluno", "email": "a@example.com", "password": "secret", "role": "student"},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_register_duplicate_email(session: Session, client: AsyncClient):
    make_user(session, "taken@example.com")
    response = await client.post(
        "/api/auth/register",
        json={"name": "Other", "email": "taken@example.com", "password": "secret"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


@pytest.mark.asyncio
async def test_login_sets_cookie_and_accepts_it(session: Session, client: AsyncClient):
    make_user(session, "login@example.com", Role.ADMIN, password="password")

    bad = await client.post("/api/auth/login", json={"email": "login@example.com", "password": "nope"})
    assert bad.status_code == 400

    response = await client.post("/api/auth/login", json={"email": "login@example.com", "password": "password"})
    assert response.status_code == 200
    assert "access_token" in response.cookies

    # httpx keeps the cookie for later requests
    me = await client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["role"] == "admin"


@pytest.mark.asyncio
async def test_missing_and_invalid_tokens(client: AsyncClient):
    response = await client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "No token, authorization denied"

    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Token is not valid"


@pytest.mark.asyncio
async def test_student_cannot_reach_professor_routes(client: AsyncClient, student):
    response = await client.get("/api/professor/students", headers=auth_headers(student.user))
    assert response.status_code == 403


def test_token_round_trip_and_rejections():
    token = create_access_token(7, Role.PROFESSOR)
    assert user_id_from_token(token) == 7

    expired = create_access_token(7, Role.PROFESSOR, expires_delta=timedelta(minutes=-1))
    assert user_id_from_token(expired) is None
    assert user_id_from_token("not-a-token") is None
    other_key = jwt.encode({"sub": "7"}, "another-secret", algorithm=settings.JWT_ALGORITHM)
    assert user_id_from_token(other_key) is None

    no_subject = jwt.encode({"role": "admin"}, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    assert user_id_from_token(no_subject) is None


@pytest.mark.asyncio
async def test_token_of_deactivated_user_is_rejected(session: Session, client: AsyncClient):
    user = make_user(session, "gone@example.com")
    headers = auth_headers(user)
    user.is_active = False
    session.add(user)
    session.commit()

    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
