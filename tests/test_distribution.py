from decimal import Decimal

import pytest

from levelup.services.distribution import distribute_values, round_one

YEARS = [2021, 2022, 2023, 2024, 2025]


def exact_sum(shares):
    return sum(Decimal(str(v)) for v in shares.values())


def test_remainder_goes_to_last_active_year():
    shares = distribute_values(10, YEARS, {2022, 2023, 2024})
    assert shares == {2021: 0.0, 2022: 3.3, 2023: 3.3, 2024: 3.4, 2025: 0.0}


@pytest.mark.parametrize("total,active", [
    (7, {2021, 2022, 2023}),
    (1, {2023, 2024, 2025}),
    (12.35, set(YEARS)),
    (0.1, {2021, 2025}),
])
def test_shares_sum_to_total_exactly(total, active):
    shares = distribute_values(total, YEARS, active)
    assert exact_sum(shares) == Decimal(str(total))


def test_single_active_year_takes_everything():
    shares = distribute_values(8.7, YEARS, {2024})
    assert shares[2024] == 8.7
    assert exact_sum(shares) == Decimal("8.7")


def test_no_active_years():
    assert distribute_values(10, YEARS, set()) == {year: 0.0 for year in YEARS}


def test_round_one_is_half_up():
    assert round_one(0.25) == Decimal("0.3")
    assert round_one(2.35) == Decimal("2.4")
    assert round_one(-1.25) == Decimal("-1.3")


def test_last_share_keeps_extra_decimals_of_total():
    shares = distribute_values(10.05, [2023, 2024, 2025], {2023, 2024, 2025})
    assert shares == {2023: 3.4, 2024: 3.4, 2025: 3.25}
    assert exact_sum(shares) == Decimal("10.05")
