"""
Grade-driven recomputation of Point rows.

For every employee with at least one grade, writes one Point row per graded
year, per accrual-window year and per year that already holds a Point row,
with running cumulatives whose latest value is the windowed sum plus merit
minus penalty plus the bonus/penalty ledger total. Merit and penalty are
summed over the employee's existing rows and carried onto the latest row, so a
recalculation never loses a manual adjustment. Each employee is written in its
own transaction so a partial employee is never visible; employees are
processed in chunks to keep memory flat on large rosters.
"""
from datetime import date
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from levelup.core.config import settings
from levelup.repositories.bonus_penalty import BonusPenaltyRepository
from levelup.repositories.employees import EmployeeRepository
from levelup.repositories.grade_rules import GradeRuleRepository
from levelup.repositories.scores import ScoreRepository
from levelup.repositories.thresholds import ThresholdRepository
from levelup.services.base import BaseService
from levelup.services.eligibility import is_met
from levelup.services.grading import GradeScorer
from levelup.services.tenure_window import aggregate_window, running_cumulatives


def build_point_rows(grades: Dict[int, str], window, scorer: GradeScorer, required_points: Optional[float],
                     min_year: Optional[int] = None, max_year: Optional[int] = None,
                     existing_scores: Optional[Dict[int, float]] = None) -> List[dict]:
    """
    ``existing_scores`` are stored Point scores; years that are neither graded
    nor in the window keep them unchanged.
    """
    min_year = settings.engine.min_data_year if min_year is None else min_year
    max_year = settings.engine.max_data_year if max_year is None else max_year
    existing_scores = existing_scores or {}

    scored = {y for y in grades if min_year <= y <= max_year}
    scored.update(w.year for w in window.years)
    years = scored | set(existing_scores)
    if not years:
        return []

    cumulatives = running_cumulatives(window, sorted(years))
    latest = max(years)
    rows = []
    for year in sorted(years):
        cumulative = cumulatives[year]
        if year in scored:
            score = scorer.score(grades.get(year, ""), year)
        else:
            score = existing_scores[year]
        rows.append({
            "year": year,
            "score": score,
            "merit": window.merit if year == latest else 0.0,
            "penalty": window.penalty if year == latest else 0.0,
            "cumulative": cumulative,
            "is_met": is_met(cumulative, required_points),
        })
    return rows


class RecalculationService(BaseService):
    def __init__(self, db: Session, scores: Optional[ScoreRepository] = None,
                 grade_rules: Optional[GradeRuleRepository] = None,
                 thresholds: Optional[ThresholdRepository] = None,
                 employees: Optional[EmployeeRepository] = None,
                 ledger: Optional[BonusPenaltyRepository] = None):
        super().__init__(db)
        self.scores = scores or ScoreRepository(db)
        self.grade_rules = grade_rules or GradeRuleRepository(db)
        self.thresholds = thresholds or ThresholdRepository(db)
        self.employees = employees or EmployeeRepository(db)
        self.ledger = ledger or BonusPenaltyRepository(db)

    def recalculate(self, employee_ids: Optional[Iterable[int]] = None, year: Optional[int] = None) -> Dict[str, int]:
        """``year`` picks the thresholds used for met flags; defaults to the calendar year."""
        rules = self.grade_rules.list_all()
        if not rules:
            self.log_info("Recalculation skipped: no grade rules configured")
            return {"updated": 0, "skipped": 0}

        scorer = GradeScorer(rules)
        engine = settings.engine
        thresholds = self.thresholds.for_year(year or date.today().year)
        ids = self.scores.employee_ids_with_grades(employee_ids)

        updated = 0
        skipped = 0
        chunk_size = max(1, engine.recalc_chunk_size)
        for start in range(0, len(ids), chunk_size):
            chunk = ids[start:start + chunk_size]
            grades = self.scores.grades_for(chunk, years=range(engine.min_data_year, engine.max_data_year + 1))
            for employee in self.employees.get_many(chunk):
                if employee_ids is None and not employee.is_active:
                    skipped += 1
                    continue
                with self.transaction():
                    self._recalculate_employee(employee, grades.get(employee.id, {}), scorer,
                                               thresholds.get(employee.level) if employee.level else None)
                updated += 1

        self.log_info(f"Recalculated points for {updated} employees", updated=updated, skipped=skipped)
        return {"updated": updated, "skipped": skipped}

    def _recalculate_employee(self, employee, grades: Dict[int, str], scorer: GradeScorer, threshold) -> None:
        adjustment = self.scores.adjustment_totals(employee.id)
        existing = {p.year: p.score for p in self.scores.points_for(employee.id)}
        window = aggregate_window(grades, employee.years_of_service, scorer,
                                  merit=adjustment.merit, penalty=adjustment.penalty,
                                  adjustment=self.ledger.net_total(employee.id))
        required_points = threshold.required_points if threshold else None
        rows = build_point_rows(grades, window, scorer, required_points, existing_scores=existing)
        self.scores.upsert_points(employee.id, rows)

        latest_credit = self.scores.latest_credit(employee.id)
        if latest_credit is not None:
            required_credits = threshold.required_credits if threshold else None
            self.scores.set_credit_met(employee.id, latest_credit.year,
                                       is_met(latest_credit.cumulative, required_credits))
