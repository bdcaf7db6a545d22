from datetime import date

import pytest

from tatamecheck.services.progression import (
    BeltConfig,
    BeltConfigError,
    DegreeConfig,
    ProgressionState,
    TargetKind,
    compute_elapsed_months,
    compute_eligibility,
    progress_percent,
    validate_belt_configs,
)


def degrees(*months):
    return tuple(DegreeConfig(n, m) for n, m in enumerate(months, start=1))


BRANCA = BeltConfig("Branca", 1, degrees=degrees(2, 2, 2, 2))
AZUL = BeltConfig("Azul", 2, min_years=1, degrees=degrees(6, 12, 18, 24))
PRETA = BeltConfig("Preta", 5, min_years=1, max_degrees=6)
TABLE = [BRANCA, AZUL, PRETA]


@pytest.mark.parametrize(
    "since, now, expected",
    [
        (date(2024, 1, 31), date(2024, 3, 1), 1),
        (date(2024, 1, 15), date(2024, 3, 15), 2),
        (date(2024, 1, 15), date(2024, 3, 14), 1),
        (date(2024, 1, 15), date(2024, 1, 15), 0),
        (date(2023, 11, 20), date(2024, 2, 20), 3),
        (date(2024, 5, 1), date(2024, 3, 1), 0),
    ],
)
def test_compute_elapsed_months(since, now, expected):
    assert compute_elapsed_months(since, now) == expected


def test_next_degree_is_eligible_once_time_has_passed():
    state = ProgressionState("Branca", 0, date(2024, 1, 15))
    result = compute_eligibility(state, TABLE, date(2024, 3, 15))

    assert result.next_target_kind is TargetKind.DEGREE
    assert result.next_target_label == "1º Grau"
    assert result.months_elapsed == 2
    assert result.months_required == 2
    assert result.months_remaining == 0
    assert result.is_eligible
    assert result.next_belt == "Branca"
    assert result.next_degree == 1


def test_belt_target_after_last_degree():
    state = ProgressionState("Branca", 4, date(2024, 1, 15))
    result = compute_eligibility(state, TABLE, date(2024, 9, 15))

    assert result.next_target_kind is TargetKind.BELT
    assert result.next_target_label == "Azul"
    assert result.months_elapsed == 8
    assert result.months_required == 12
    assert result.months_remaining == 4
    assert not result.is_eligible
    assert result.next_degree == 0


def test_degree_target_wins_over_an_already_met_belt_requirement():
    quick_azul = BeltConfig("Azul", 2, min_months=1)
    state = ProgressionState("Branca", 1, date(2024, 1, 1))
    result = compute_eligibility(state, [BRANCA, quick_azul], date(2024, 6, 1))

    assert result.next_target_kind is TargetKind.DEGREE
    assert result.next_target_label == "2º Grau"


def test_next_belt_skips_gaps_in_order():
    state = ProgressionState("Azul", 4, date(2024, 1, 1))
    result = compute_eligibility(state, TABLE, date(2025, 1, 1))

    assert result.next_target_kind is TargetKind.BELT
    assert result.next_target_label == "Preta"
    assert result.is_eligible


def test_highest_belt_without_more_degrees_has_no_target():
    state = ProgressionState("Preta", 0, date(2020, 1, 1))
    assert compute_eligibility(state, TABLE, date(2025, 1, 1)).next_target_kind is TargetKind.NONE


def test_unconfigured_belt_has_no_target():
    state = ProgressionState("Cinza", 0, date(2024, 1, 1))
    result = compute_eligibility(state, TABLE, date(2025, 1, 1))
    assert result.next_target_kind is TargetKind.NONE
    assert not result.is_eligible


def test_remaining_months_never_grow_as_time_passes():
    state = ProgressionState("Branca", 4, date(2024, 1, 15))
    days = [date(2024, m, 20) for m in range(1, 13)] + [date(2025, m, 20) for m in range(1, 7)]
    remaining = [compute_eligibility(state, TABLE, d).months_remaining for d in days]
    assert remaining == sorted(remaining, reverse=True)
    assert min(remaining) >= 0


def test_remaining_months_reach_zero_exactly_when_requirement_is_met():
    state = ProgressionState("Branca", 4, date(2024, 1, 15))

    day_before = compute_eligibility(state, TABLE, date(2025, 1, 14))
    assert day_before.months_elapsed == 11
    assert day_before.months_remaining == 1
    assert not day_before.is_eligible

    on_the_day = compute_eligibility(state, TABLE, date(2025, 1, 15))
    assert on_the_day.months_elapsed == 12
    assert on_the_day.months_remaining == 0
    assert on_the_day.is_eligible

    later = compute_eligibility(state, TABLE, date(2025, 6, 1))
    assert later.months_remaining == 0
    assert later.is_eligible


def test_progress_percent():
    state = ProgressionState("Branca", 4, date(2024, 1, 15))
    assert progress_percent(compute_eligibility(state, TABLE, date(2024, 7, 15))) == 50
    assert progress_percent(compute_eligibility(state, TABLE, date(2026, 1, 15))) == 100
    none = compute_eligibility(ProgressionState("Cinza", 0, date(2024, 1, 1)), TABLE, date(2025, 1, 1))
    assert progress_percent(none) == 0


def test_valid_table_passes():
    validate_belt_configs(TABLE)


@pytest.mark.parametrize(
    "table, message",
    [
        ([BRANCA, BeltConfig("Branca", 2)], "more than once"),
        ([BRANCA, BeltConfig("Azul", 1)], "Order 1"),
        ([BeltConfig("Azul", 2, degrees=(DegreeConfig(1, 6), DegreeConfig(3, 12)))], "sequentially"),
        ([BeltConfig("Azul", 2, max_degrees=2, degrees=degrees(1, 2, 3))], "maximum is 2"),
        ([BeltConfig("Azul", 2, max_degrees=11)], "between 1 and 10"),
        ([BeltConfig("Azul", 2, max_degrees=0)], "between 1 and 10"),
        ([BeltConfig("Azul", 2, min_years=-1)], "negative"),
        ([BeltConfig("Azul", 2, degrees=degrees(-1))], "negative"),
        ([BeltConfig(" ", 2)], "name is required"),
    ],
)
def test_invalid_tables_are_rejected(table, message):
    with pytest.raises(BeltConfigError, match=message):
        validate_belt_configs(table)
