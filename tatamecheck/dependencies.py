from datetime import date, datetime

from fastapi import Depends, HTTPException, Request, status
from sqlmodel import Session

from .config import settings
from .db import get_session
from .models import Academy, Role, Student, User
from .security import user_id_from_token
from .services.academies import find_academy
from .services.students import student_for_user


def get_now() -> datetime:
    """Clock dependency, overridden in tests."""
    return datetime.now()


def get_today(now: datetime = Depends(get_now)) -> date:
    return now.date()


def _token_from_request(request: Request) -> str | None:
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


def get_current_user(request: Request, session: Session = Depends(get_session)) -> User | None:
    """Resolves the user from a JWT in the Authorization header or the auth cookie."""
    token = _token_from_request(request)
    if not token:
        return None

    user_id = user_id_from_token(token)
    if user_id is None:
        return None

    user = session.get(User, user_id)
    if not user or not user.is_active:
        return None
    return user


def require_user(request: Request, current_user: User | None = Depends(get_current_user)) -> User:
    """Dependency that ensures a user is authenticated."""
    if current_user is None:
        detail = "Token is not valid" if _token_from_request(request) else "No token, authorization denied"
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user


def require_role(*roles: str):
    """Dependency factory that ensures a user has one of the required roles."""
    def role_checker(user: User = Depends(require_user)):
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Access denied: insufficient permissions")
        return user
    return role_checker


require_staff = require_role(*Role.STAFF)
require_student = require_role(Role.STUDENT)


def current_academy(user: User = Depends(require_user), session: Session = Depends(get_session)) -> Academy:
    academy = find_academy(session, user)
    if academy is None:
        raise HTTPException(status_code=404, detail="Academy not found")
    return academy


def staff_academy(user: User = Depends(require_staff), session: Session = Depends(get_session)) -> Academy:
    return current_academy(user, session)


def current_student(user: User = Depends(require_student), session: Session = Depends(get_session)) -> Student:
    student = student_for_user(session, user)
    if student is None:
        raise HTTPException(status_code=404, detail="Student profile not found")
    return student
