from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from datetime import date

import pandas as pd
from sqlmodel import Session, select

from tatamecheck.config import settings
from tatamecheck.models import Academy, Role, Student, User
from .belts import belt_configs
from .graduation import check_rank

log = logging.getLogger(__name__)


class EmailTaken(ValueError):
    pass


class RosterError(ValueError):
    pass


@dataclass
class ImportResult:
    created: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def normalize_email(email: str) -> str:
    return email.lower().strip()


def email_taken(session: Session, email: str) -> bool:
    return session.exec(select(User).where(User.email == normalize_email(email))).first() is not None


def student_for_user(session: Session, user: User) -> Student | None:
    return session.exec(select(Student).where(Student.user_id == user.id)).first()


def enroll_student(
    session: Session,
    academy: Academy,
    *,
    name: str,
    email: str,
    password: str,
    belt: str = "Branca",
    degree: int = 0,
    enrolled_on: date | None = None,
    commit: bool = True,
) -> Student:
    """
    Create a student login and profile in `academy` with zeroed attendance counters.
    If commit=False the caller is responsible for committing/rolling back.
    """
    if email_taken(session, email):
        raise EmailTaken("Email already registered")
    check_rank(belt_configs(session, academy.id), belt, degree)

    user = User(name=name.strip(), email=normalize_email(email), role=Role.STUDENT)
    user.set_password(password)
    session.add(user)
    session.flush()

    student = Student(
        user_id=user.id,
        academy_id=academy.id,
        current_belt=belt.strip(),
        current_degree=degree,
        last_graduation_date=enrolled_on,
    )
    session.add(student)
    if commit:
        session.commit()
        session.refresh(student)
    else:
        session.flush()
    return student


def read_roster(contents: bytes, filename: str) -> pd.DataFrame:
    fname = filename.lower()
    try:
        if fname.endswith(".csv"):
            df = pd.read_csv(io.BytesIO(contents), dtype=str)
        elif fname.endswith((".xlsx", ".xls")):
            df = pd.read_excel(io.BytesIO(contents), dtype=str)
        else:
            raise RosterError("Unsupported file type. Please upload .csv or .xlsx")
    except RosterError:
        raise
    except Exception as e:
        log.exception("Could not read roster %s", filename)
        raise RosterError(f"Could not read file: {e}") from e

    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = {"name", "email"} - set(df.columns)
    if missing:
        raise RosterError(f"Missing required columns: {', '.join(sorted(missing))}")
    return df.fillna("")


def import_roster(
    session: Session,
    academy: Academy,
    contents: bytes,
    filename: str,
    enrolled_on: date | None = None,
) -> ImportResult:
    """
    Bulk-enroll students from a CSV/XLSX roster with columns
    name, email and optionally belt, degree, password.
    Every imported student starts its progression on `enrolled_on`.
    """
    df = read_roster(contents, filename)
    result = ImportResult()

    for index, row in df.iterrows():
        line = index + 2  # header is line 1
        name = str(row.get("name", "")).strip()
        email = normalize_email(str(row.get("email", "")))
        if not (name and email):
            result.skipped += 1
            continue
        if email_taken(session, email):
            result.skipped += 1
            result.errors.append(f"Line {line}: {email} already registered")
            continue

        belt = str(row.get("belt", "")).strip() or "Branca"
        degree_text = str(row.get("degree", "")).strip() or "0"
        password = str(row.get("password", "")).strip() or settings.DEFAULT_PASSWORD
        try:
            degree = int(float(degree_text))
            enroll_student(
                session, academy,
                name=name, email=email, password=password,
                belt=belt, degree=degree, enrolled_on=enrolled_on, commit=False,
            )
        except ValueError as e:
            result.skipped += 1
            result.errors.append(f"Line {line}: {e}")
            continue
        result.created += 1

    session.commit()
    log.info(
        "Roster %s imported into academy %s: %d created, %d skipped",
        filename, academy.id, result.created, result.skipped,
    )
    return result
