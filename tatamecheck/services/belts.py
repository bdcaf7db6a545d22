from __future__ import annotations

import logging

from sqlmodel import Session, select

from tatamecheck.models import Academy, BeltRank, DegreeRequirement
from .progression import BeltConfig, DegreeConfig, validate_belt_configs

log = logging.getLogger(__name__)


def to_belt_config(rank: BeltRank) -> BeltConfig:
    return BeltConfig(
        belt_name=rank.name,
        order=rank.order,
        min_years=rank.min_years,
        min_months=rank.min_months,
        max_degrees=rank.max_degrees,
        degrees=tuple(DegreeConfig(d.number, d.min_months) for d in rank.degrees),
    )


def belt_ranks(session: Session, academy_id: int) -> list[BeltRank]:
    return list(
        session.exec(
            select(BeltRank).where(BeltRank.academy_id == academy_id).order_by(BeltRank.order)
        ).all()
    )


def belt_configs(session: Session, academy_id: int) -> list[BeltConfig]:
    """The academy's belt table, lowest belt first."""
    return [to_belt_config(rank) for rank in belt_ranks(session, academy_id)]


def save_belt(session: Session, academy: Academy, config: BeltConfig) -> BeltRank:
    """
    Create or replace the belt named `config.belt_name`.

    The whole resulting table is validated before anything is written, so the
    progression rules never see gaps in degree numbering or duplicate orders.
    """
    ranks = belt_ranks(session, academy.id)
    proposed = [to_belt_config(r) for r in ranks if r.name != config.belt_name] + [config]
    validate_belt_configs(proposed)

    rank = next((r for r in ranks if r.name == config.belt_name), None)
    if rank is None:
        rank = BeltRank(academy_id=academy.id, name=config.belt_name, order=config.order)
    else:
        rank.degrees.clear()
        # Old degree rows must be gone before the new numbers are inserted
        session.flush()

    rank.order = config.order
    rank.min_years = config.min_years
    rank.min_months = config.min_months
    rank.max_degrees = config.max_degrees
    for d in sorted(config.degrees, key=lambda d: d.degree_number):
        rank.degrees.append(DegreeRequirement(number=d.degree_number, min_months=d.min_months))

    session.add(rank)
    session.commit()
    session.refresh(rank)
    log.info("Belt %r saved for academy %s (%d degrees)", rank.name, academy.id, len(rank.degrees))
    return rank


def delete_belt(session: Session, academy: Academy, name: str) -> bool:
    rank = session.exec(
        select(BeltRank).where(BeltRank.academy_id == academy.id, BeltRank.name == name)
    ).first()
    if rank is None:
        return False
    session.delete(rank)
    session.commit()
    log.info("Belt %r removed from academy %s", name, academy.id)
    return True
