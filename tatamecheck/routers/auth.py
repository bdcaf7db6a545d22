import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlmodel import Session, select

from tatamecheck.config import settings
from tatamecheck.db import get_session
from tatamecheck.dependencies import require_user
from tatamecheck.models import Role, User
from tatamecheck.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserOut
from tatamecheck.security import create_access_token, verify_and_update_password
from tatamecheck.services.students import email_taken, normalize_email

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def user_out(user: User) -> UserOut:
    return UserOut(id=user.id, name=user.name, email=user.email, role=user.role)


def _issue_token(response: Response, user: User) -> TokenResponse:
    token = create_access_token(user.id, user.role)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite=settings.SESSION_COOKIE_SAMESITE.lower(),
        secure=settings.SESSION_COOKIE_SECURE,
    )
    return TokenResponse(token=token, user=user_out(user))


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, response: Response, session: Session = Depends(get_session)):
    """Self-registration for professors and admins; students are enrolled by staff."""
    if body.role == Role.STUDENT:
        raise HTTPException(status_code=403, detail="Students must be registered by a professor or administrator")
    if body.role not in Role.STAFF:
        raise HTTPException(status_code=400, detail="Invalid account type. Only professor or admin can register.")
    if email_taken(session, body.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(name=body.name.strip(), email=normalize_email(body.email), role=body.role)
    user.set_password(body.password)
    session.add(user)
    session.commit()
    session.refresh(user)
    log.info("Registered %s %s", user.role, user.email)
    return _issue_token(response, user)


@router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, response: Response, session: Session = Depends(get_session)):
    """Checks the credentials and issues a JWT token."""
    user = session.exec(select(User).where(User.email == normalize_email(body.email))).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=400, detail="Invalid credentials")

    verified, new_hash = verify_and_update_password(body.password, user.password_hash)
    if not verified:
        raise HTTPException(status_code=400, detail="Invalid credentials")
    if new_hash:
        user.password_hash = new_hash
        session.add(user)
        session.commit()
    return _issue_token(response, user)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(require_user)):
    return user_out(current_user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout():
    """Clears the auth cookie; bearer tokens simply expire."""
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return response
