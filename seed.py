"""
Seeds a development database: an admin, the academy, the default belt table
and one demo student.

    python seed.py
"""
from datetime import date

from sqlmodel import Session, select

from tatamecheck.db import create_db_and_tables, engine
from tatamecheck.models import Academy, Role, User
from tatamecheck.services.belts import save_belt
from tatamecheck.services.progression import BeltConfig, DegreeConfig
from tatamecheck.services.students import email_taken, enroll_student


def _degrees(*months: int) -> tuple[DegreeConfig, ...]:
    return tuple(DegreeConfig(n, m) for n, m in enumerate(months, start=1))


DEFAULT_BELTS = [
    BeltConfig("Branca", 1, degrees=_degrees(3, 6, 9, 12)),
    BeltConfig("Azul", 2, min_years=2, degrees=_degrees(6, 12, 18, 24)),
    BeltConfig("Roxa", 3, min_years=2, degrees=_degrees(6, 12, 18, 24)),
    BeltConfig("Marrom", 4, min_years=1, min_months=6, degrees=_degrees(6, 12, 18, 24)),
    BeltConfig("Preta", 5, min_years=1, max_degrees=6, degrees=_degrees(36, 72, 108, 144, 180, 216)),
]


def seed():
    create_db_and_tables()
    with Session(engine) as session:
        admin = session.exec(select(User).where(User.email == "admin@example.com")).first()
        if admin is None:
            print("Creating admin user...")
            admin = User(name="Admin", email="admin@example.com", role=Role.ADMIN)
            admin.set_password("Admin123!")
            session.add(admin)
            session.commit()
            session.refresh(admin)

        academy = session.exec(select(Academy).where(Academy.admin_id == admin.id)).first()
        if academy is None:
            print("Creating academy...")
            academy = Academy(
                name="TatameCheck Academia",
                address="R. Victor Augusto Mesquita - Massaguaçu, Caraguatatuba - SP, 11677-390",
                latitude=-23.6183,
                longitude=-45.4211,
                radius_meters=100,
                admin_id=admin.id,
            )
            academy.staff.append(admin)
            session.add(academy)
            session.commit()
            session.refresh(academy)

        for belt in DEFAULT_BELTS:
            save_belt(session, academy, belt)

        if not email_taken(session, "aluno@example.com"):
            enroll_student(
                session, academy,
                name="Aluno Demo", email="aluno@example.com", password="ChangeMe123!",
                enrolled_on=date.today(),
            )

    print("Database seeded. Admin login: admin@example.com / Admin123!")


if __name__ == "__main__":
    seed()
