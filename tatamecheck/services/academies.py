from __future__ import annotations

import logging

from sqlmodel import Session, select

from tatamecheck.config import settings
from tatamecheck.models import Academy, AcademyStaff, Student, User
from .geofence import Coordinate, GeoFence

log = logging.getLogger(__name__)


def find_academy(session: Session, user: User) -> Academy | None:
    """The academy a user belongs to: a student's enrollment, or the one a staff member runs or teaches at."""
    if not user.is_staff:
        student = session.exec(select(Student).where(Student.user_id == user.id)).first()
        return session.get(Academy, student.academy_id) if student else None

    academy = session.exec(select(Academy).where(Academy.admin_id == user.id)).first()
    if academy:
        return academy
    return session.exec(
        select(Academy)
        .join(AcademyStaff, AcademyStaff.academy_id == Academy.id)
        .where(AcademyStaff.user_id == user.id)
    ).first()


def fence_for(academy: Academy) -> GeoFence:
    return GeoFence(
        center=Coordinate(academy.latitude, academy.longitude),
        radius_meters=academy.radius_meters,
    )


def save_academy(
    session: Session,
    user: User,
    *,
    location: Coordinate,
    name: str | None = None,
    address: str | None = None,
    radius_meters: float | None = None,
) -> Academy:
    """Update the caller's academy, creating it (owned by the caller) on first use."""
    academy = find_academy(session, user)
    if academy is None:
        academy = Academy(
            name=name or settings.APP_NAME,
            address=address or "",
            latitude=location.latitude,
            longitude=location.longitude,
            radius_meters=radius_meters or settings.DEFAULT_FENCE_RADIUS_METERS,
            admin_id=user.id,
        )
        academy.staff.append(user)
        log.info("Academy %r created by user %s", academy.name, user.id)
    else:
        academy.name = name or academy.name
        academy.address = address or academy.address
        academy.latitude = location.latitude
        academy.longitude = location.longitude
        if radius_meters is not None:
            academy.radius_meters = radius_meters
    session.add(academy)
    session.commit()
    session.refresh(academy)
    return academy


def add_staff(session: Session, academy: Academy, user: User) -> None:
    if user not in academy.staff:
        academy.staff.append(user)
        session.add(academy)
