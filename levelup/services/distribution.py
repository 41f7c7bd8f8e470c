from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Sequence

ONE_DECIMAL = Decimal("0.1")


def round_one(value) -> Decimal:
    return Decimal(str(value)).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


def distribute_values(total: float, years: Sequence[int], active_years: Iterable[int]) -> Dict[int, float]:
    """
    Spread ``total`` over the active ``years`` in order.

    Every active year but the last gets round(total / active, 1); the last active
    year takes the exact remainder so the shares add up to ``total``. The
    remainder is not rounded: a total with more than one decimal keeps its extra
    digits on the last share (10.05 over three years gives 3.4, 3.4, 3.25).
    Inactive years get 0.
    """
    active = set(active_years)
    active_in_order = [y for y in years if y in active]
    if not active_in_order:
        return {year: 0.0 for year in years}

    exact_total = Decimal(str(total))
    per_year = round_one(exact_total / len(active_in_order))
    last_active = active_in_order[-1]

    shares = {}
    remaining = exact_total
    for year in years:
        if year not in active:
            shares[year] = 0.0
        elif year == last_active:
            shares[year] = float(remaining)
        else:
            shares[year] = float(per_year)
            remaining -= per_year
    return shares
