"""
Grade -> point conversion.

Rules are (grade, year_range, points) triples where year_range is either a
single year ("2025") or an inclusive span ("2021-2024"). A rule for the exact
year beats a span rule; anything unmatched, blank, "-" or "NI" scores the
baseline default.
"""
from typing import Dict, Iterable, List, Optional, Tuple

from levelup.core.config import settings

BLANK_GRADES = frozenset({"", "-", "NI"})


def normalize_grade(grade: Optional[str]) -> str:
    return (grade or "").strip().upper()


def parse_year_range(year_range: str) -> Optional[Tuple[int, int]]:
    """'2021-2024' -> (2021, 2024); '2025' -> (2025, 2025); garbage -> None."""
    text = (year_range or "").strip()
    if text.isdigit():
        return int(text), int(text)
    parts = text.split("-")
    if len(parts) != 2:
        return None
    try:
        start, end = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if start > end:
        return None
    return start, end


class GradeScorer:
    """A rule set indexed once for repeated lookups during recalculation."""

    def __init__(self, rules: Iterable, default_points: Optional[float] = None):
        self.default_points = (
            settings.engine.default_grade_points if default_points is None else default_points
        )
        self._exact: Dict[Tuple[str, int], float] = {}
        self._spans: List[Tuple[str, int, int, float]] = []
        for rule in rules:
            grade = normalize_grade(rule.grade)
            year_range = (rule.year_range or "").strip()
            if year_range.isdigit():
                self._exact[(grade, int(year_range))] = float(rule.points)
                continue
            span = parse_year_range(year_range)
            if span:
                self._spans.append((grade, span[0], span[1], float(rule.points)))

    @property
    def has_rules(self) -> bool:
        return bool(self._exact or self._spans)

    def score(self, grade: Optional[str], year: int) -> float:
        normalized = normalize_grade(grade)
        if normalized in BLANK_GRADES:
            return self.default_points

        exact = self._exact.get((normalized, year))
        if exact is not None:
            return exact

        for rule_grade, start, end, points in self._spans:
            if rule_grade == normalized and start <= year <= end:
                return points
        return self.default_points


def grade_to_points(grade: Optional[str], year: int, rules: Iterable, default_points: Optional[float] = None) -> float:
    return GradeScorer(rules, default_points).score(grade, year)
