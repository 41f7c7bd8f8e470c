"""
Tenure-bounded accrual window and the cosmetic display backfill.

Accrual: the most recent ``min(years_of_service, cap)`` years ending at the
last data year are summed, whatever the employee's real start year. Display:
years before the hire year inside the nominal start-to-now range show the
baseline score flagged ``auto_fill``. The two never feed each other.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from levelup.core.config import settings
from levelup.services.grading import GradeScorer


@dataclass
class WindowYear:
    year: int
    grade: Optional[str]
    score: float


@dataclass
class WindowResult:
    years: List[WindowYear] = field(default_factory=list)
    merit: float = 0.0
    penalty: float = 0.0
    # Net bonus/penalty ledger total
    adjustment: float = 0.0

    @property
    def window_sum(self) -> float:
        return sum(y.score for y in self.years)

    @property
    def cumulative(self) -> float:
        return self.window_sum + self.merit - self.penalty + self.adjustment

    @property
    def window_size(self) -> int:
        return len(self.years)


@dataclass
class DisplayYear:
    year: int
    score: Optional[float]
    auto_fill: bool = False


def window_years(
    years_of_service: Optional[int],
    max_year: Optional[int] = None,
    min_year: Optional[int] = None,
    cap: Optional[int] = None,
) -> List[int]:
    """Years inside the accrual window, most recent first."""
    max_year = settings.engine.max_data_year if max_year is None else max_year
    min_year = settings.engine.min_data_year if min_year is None else min_year
    cap = settings.engine.tenure_window_cap if cap is None else cap

    size = max(0, min(years_of_service or 0, cap))
    years = []
    for offset in range(size):
        year = max_year - offset
        if year < min_year:
            break
        years.append(year)
    return years


def aggregate_window(
    grades: Dict[int, str],
    years_of_service: Optional[int],
    scorer: GradeScorer,
    merit: float = 0.0,
    penalty: float = 0.0,
    max_year: Optional[int] = None,
    min_year: Optional[int] = None,
    adjustment: float = 0.0,
) -> WindowResult:
    result = WindowResult(merit=merit or 0.0, penalty=penalty or 0.0, adjustment=adjustment or 0.0)
    for year in window_years(years_of_service, max_year=max_year, min_year=min_year):
        grade = grades.get(year)
        # Missing grade inside the window scores the baseline
        result.years.append(WindowYear(year=year, grade=grade, score=scorer.score(grade or "", year)))
    return result


def running_cumulatives(window: WindowResult, years: List[int]) -> Dict[int, float]:
    """
    Cumulative as of each of ``years``: window scores up to that year, with the
    adjustments folded into the latest year only. The latest value always equals
    ``window.cumulative``.
    """
    if not years:
        return {}
    by_year = {w.year: w.score for w in window.years}
    latest = max(years)
    out = {}
    for year in sorted(years):
        total = sum(score for y, score in by_year.items() if y <= year)
        if year == latest:
            total = window.cumulative
        out[year] = total
    return out


def display_years(
    scores: Dict[int, float],
    years_of_service: Optional[int],
    hire_year: Optional[int],
    current_year: Optional[int] = None,
    min_year: Optional[int] = None,
    placeholder: Optional[float] = None,
) -> List[DisplayYear]:
    current_year = settings.engine.max_data_year if current_year is None else current_year
    min_year = settings.engine.min_data_year if min_year is None else min_year
    placeholder = settings.engine.default_grade_points if placeholder is None else placeholder

    years = years_of_service or 0
    start = max(current_year - years + 1 if years > 0 else current_year, min_year)

    rows = []
    for year in range(start, current_year + 1):
        score = scores.get(year)
        pre_hire = hire_year is not None and year < hire_year
        if score is None and pre_hire:
            rows.append(DisplayYear(year=year, score=placeholder, auto_fill=True))
        else:
            rows.append(DisplayYear(year=year, score=score))
    return rows
