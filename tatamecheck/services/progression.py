"""
Belt/degree progression rules.

An academy configures an ordered table of belts, each with its own list of
degrees. Eligibility is time based: whole calendar months since the last
graduation compared with the requirement of the next step. A further degree in
the current belt always comes before a promotion to the next belt.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, Sequence

MAX_DEGREES_LIMIT = 10


class BeltConfigError(ValueError):
    """A belt table that would give the progression rules an ambiguous answer."""


class TargetKind(str, Enum):
    DEGREE = "degree"
    BELT = "belt"
    NONE = "none"


@dataclass(frozen=True)
class DegreeConfig:
    degree_number: int
    min_months: int


@dataclass(frozen=True)
class BeltConfig:
    belt_name: str
    order: int
    min_years: int = 0
    min_months: int = 0
    max_degrees: int = 4
    degrees: tuple[DegreeConfig, ...] = field(default_factory=tuple)

    @property
    def required_months(self) -> int:
        """Time that must pass before promotion *to* this belt."""
        return self.min_years * 12 + self.min_months

    def degree(self, number: int) -> DegreeConfig | None:
        for d in self.degrees:
            if d.degree_number == number:
                return d
        return None


@dataclass(frozen=True)
class ProgressionState:
    current_belt: str
    current_degree: int
    last_graduation_date: date


@dataclass(frozen=True)
class EligibilityResult:
    next_target_kind: TargetKind
    next_target_label: str | None = None
    months_elapsed: int = 0
    months_required: int = 0
    months_remaining: int = 0
    is_eligible: bool = False
    # Belt/degree the student would hold once promoted
    next_belt: str | None = None
    next_degree: int | None = None


NO_TARGET = EligibilityResult(next_target_kind=TargetKind.NONE)


def degree_label(number: int) -> str:
    return f"{number}º Grau"


def compute_elapsed_months(since: date, now: date) -> int:
    """
    Whole calendar months between two dates.

    A month only counts once its day-of-month has been reached again, so
    Jan 31 -> Mar 1 is one month, not two. Never negative.
    """
    months = (now.year - since.year) * 12 + (now.month - since.month)
    if now.day < since.day:
        months -= 1
    return max(0, months)


def find_belt(config: Iterable[BeltConfig], name: str) -> BeltConfig | None:
    for belt in config:
        if belt.belt_name == name:
            return belt
    return None


def next_belt_after(config: Iterable[BeltConfig], current: BeltConfig) -> BeltConfig | None:
    """The belt with the smallest order greater than the current one."""
    higher = [b for b in config if b.order > current.order]
    if not higher:
        return None
    return min(higher, key=lambda b: b.order)


def _result(kind: TargetKind, label: str, elapsed: int, required: int, **extra) -> EligibilityResult:
    return EligibilityResult(
        next_target_kind=kind,
        next_target_label=label,
        months_elapsed=elapsed,
        months_required=required,
        months_remaining=max(0, required - elapsed),
        is_eligible=elapsed >= required,
        **extra,
    )


def compute_eligibility(state: ProgressionState, config: Sequence[BeltConfig], now: date) -> EligibilityResult:
    current = find_belt(config, state.current_belt)
    if current is None:
        # Free-form or legacy belt name: nothing to compare against
        return NO_TARGET

    elapsed = compute_elapsed_months(state.last_graduation_date, now)

    next_degree_number = state.current_degree + 1
    next_degree = current.degree(next_degree_number)
    if next_degree is not None:
        return _result(
            TargetKind.DEGREE,
            degree_label(next_degree_number),
            elapsed,
            next_degree.min_months,
            next_belt=current.belt_name,
            next_degree=next_degree_number,
        )

    promotion = next_belt_after(config, current)
    if promotion is None:
        return NO_TARGET
    return _result(
        TargetKind.BELT,
        promotion.belt_name,
        elapsed,
        promotion.required_months,
        next_belt=promotion.belt_name,
        next_degree=0,
    )


def progress_percent(result: EligibilityResult) -> int:
    if result.next_target_kind is TargetKind.NONE:
        return 0
    if result.months_required <= 0:
        return 100
    return min(100, round(result.months_elapsed / result.months_required * 100))


def validate_belt_config(belt: BeltConfig) -> None:
    if not belt.belt_name or not belt.belt_name.strip():
        raise BeltConfigError("Belt name is required")
    if belt.min_years < 0 or belt.min_months < 0:
        raise BeltConfigError(f"Belt {belt.belt_name}: minimum time cannot be negative")
    if not 1 <= belt.max_degrees <= MAX_DEGREES_LIMIT:
        raise BeltConfigError(
            f"Belt {belt.belt_name}: maximum degrees must be between 1 and {MAX_DEGREES_LIMIT}"
        )
    if len(belt.degrees) > belt.max_degrees:
        raise BeltConfigError(
            f"Belt {belt.belt_name}: {len(belt.degrees)} degrees configured, maximum is {belt.max_degrees}"
        )
    numbers = sorted(d.degree_number for d in belt.degrees)
    for expected, found in enumerate(numbers, start=1):
        if found != expected:
            raise BeltConfigError(
                f"Belt {belt.belt_name}: degrees must be numbered sequentially from 1 (found {found})"
            )
    for d in belt.degrees:
        if d.min_months < 0:
            raise BeltConfigError(
                f"Belt {belt.belt_name}: degree {d.degree_number} minimum time cannot be negative"
            )


def validate_belt_configs(configs: Sequence[BeltConfig]) -> None:
    """Reject a belt table with gaps in degree numbering, duplicate names or duplicate orders."""
    names: set[str] = set()
    orders: set[int] = set()
    for belt in configs:
        validate_belt_config(belt)
        if belt.belt_name in names:
            raise BeltConfigError(f"Belt {belt.belt_name} is configured more than once")
        if belt.order in orders:
            raise BeltConfigError(f"Order {belt.order} is used by more than one belt")
        names.add(belt.belt_name)
        orders.add(belt.order)
