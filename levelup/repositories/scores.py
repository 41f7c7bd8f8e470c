from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func

from levelup.models.performance_grade import PerformanceGrade
from levelup.models.score import Point, Credit
from levelup.repositories.base import BaseRepository


@dataclass(frozen=True)
class Adjustment:
    merit: float = 0.0
    penalty: float = 0.0


class ScoreRepository(BaseRepository):
    """Point, Credit and PerformanceGrade reads and writes, keyed on (employee, year)."""

    # --- grades ---
    def grades_for(self, employee_ids: Iterable[int], years: Optional[Iterable[int]] = None) -> Dict[int, Dict[int, str]]:
        ids = list(employee_ids)
        if not ids:
            return {}
        query = self.db.query(PerformanceGrade).filter(PerformanceGrade.employee_id.in_(ids))
        if years is not None:
            query = query.filter(PerformanceGrade.year.in_(list(years)))
        out: Dict[int, Dict[int, str]] = {i: {} for i in ids}
        for row in query.all():
            out[row.employee_id][row.year] = row.grade
        return out

    def employee_ids_with_grades(self, employee_ids: Optional[Iterable[int]] = None) -> List[int]:
        query = self.db.query(PerformanceGrade.employee_id).distinct()
        if employee_ids is not None:
            query = query.filter(PerformanceGrade.employee_id.in_(list(employee_ids)))
        return sorted(row[0] for row in query.all())

    def upsert_grades(self, employee_id: int, grades: Dict[int, str]) -> None:
        values = [
            {"employee_id": employee_id, "year": year, "grade": grade}
            for year, grade in sorted(grades.items()) if grade
        ]
        if values:
            self.upsert(PerformanceGrade, ["employee_id", "year"], values, ["grade"])

    # --- points ---
    def points_for(self, employee_id: int) -> List[Point]:
        return (
            self.db.query(Point).filter(Point.employee_id == employee_id)
            .order_by(Point.year).populate_existing().all()
        )

    def points_by_employee(self, employee_ids: Iterable[int]) -> Dict[int, List[Point]]:
        ids = list(employee_ids)
        out: Dict[int, List[Point]] = {i: [] for i in ids}
        if ids:
            query = self.db.query(Point).filter(Point.employee_id.in_(ids)).order_by(Point.year)
            for row in query.populate_existing().all():
                out[row.employee_id].append(row)
        return out

    def latest_point(self, employee_id: int) -> Optional[Point]:
        return (
            self.db.query(Point).filter(Point.employee_id == employee_id)
            .order_by(Point.year.desc()).populate_existing().first()
        )

    def adjustment_totals(self, employee_id: int) -> Adjustment:
        """Merit and penalty summed over every Point row of the employee."""
        merit, penalty = self.db.query(
            func.coalesce(func.sum(Point.merit), 0.0),
            func.coalesce(func.sum(Point.penalty), 0.0),
        ).filter(Point.employee_id == employee_id).one()
        return Adjustment(merit=float(merit or 0.0), penalty=float(penalty or 0.0))

    def clear_adjustments(self, employee_id: int, keep_year: int) -> None:
        self.db.query(Point).filter(
            Point.employee_id == employee_id, Point.year != keep_year
        ).update({Point.merit: 0.0, Point.penalty: 0.0}, synchronize_session=False)

    def upsert_points(self, employee_id: int, rows: List[dict]) -> None:
        """rows: year, score, merit, penalty, cumulative, is_met."""
        if not rows:
            return
        values = [{"employee_id": employee_id, **row} for row in rows]
        self.upsert(Point, ["employee_id", "year"], values,
                    ["score", "merit", "penalty", "cumulative", "is_met"])

    def delete_point(self, employee_id: int, year: int) -> int:
        return self.db.query(Point).filter(
            Point.employee_id == employee_id, Point.year == year
        ).delete(synchronize_session=False)

    # --- credits ---
    def credits_for(self, employee_id: int) -> List[Credit]:
        return self.db.query(Credit).filter(Credit.employee_id == employee_id).order_by(Credit.year).all()

    def credits_by_employee(self, employee_ids: Iterable[int]) -> Dict[int, List[Credit]]:
        ids = list(employee_ids)
        out: Dict[int, List[Credit]] = {i: [] for i in ids}
        if ids:
            for row in self.db.query(Credit).filter(Credit.employee_id.in_(ids)).order_by(Credit.year).all():
                out[row.employee_id].append(row)
        return out

    def latest_credit(self, employee_id: int) -> Optional[Credit]:
        return self.db.query(Credit).filter(Credit.employee_id == employee_id).order_by(Credit.year.desc()).first()

    def upsert_credits(self, employee_id: int, rows: List[dict]) -> None:
        """rows: year, score, cumulative, is_met."""
        if not rows:
            return
        values = [{"employee_id": employee_id, **row} for row in rows]
        self.upsert(Credit, ["employee_id", "year"], values, ["score", "cumulative", "is_met"])

    def set_credit_met(self, employee_id: int, year: int, met: bool) -> None:
        self.db.query(Credit).filter(
            Credit.employee_id == employee_id, Credit.year == year
        ).update({Credit.is_met: met}, synchronize_session=False)

    def delete_credit(self, employee_id: int, year: int) -> int:
        return self.db.query(Credit).filter(
            Credit.employee_id == employee_id, Credit.year == year
        ).delete(synchronize_session=False)

    # --- latest cumulatives ---
    def latest_cumulatives(self, employee_ids: Iterable[int]) -> Dict[int, Tuple[float, float]]:
        """employee_id -> (latest point cumulative, latest credit cumulative); 0 when absent."""
        ids = list(employee_ids)
        out = {i: (0.0, 0.0) for i in ids}
        if not ids:
            return out
        points = self._latest_by_employee(Point, ids)
        credits = self._latest_by_employee(Credit, ids)
        for employee_id in ids:
            out[employee_id] = (points.get(employee_id, 0.0), credits.get(employee_id, 0.0))
        return out

    def _latest_by_employee(self, model, ids: List[int]) -> Dict[int, float]:
        latest_year = (
            self.db.query(model.employee_id, func.max(model.year).label("year"))
            .filter(model.employee_id.in_(ids))
            .group_by(model.employee_id)
            .subquery()
        )
        rows = (
            self.db.query(model.employee_id, model.cumulative)
            .join(latest_year, (model.employee_id == latest_year.c.employee_id) & (model.year == latest_year.c.year))
            .all()
        )
        return {employee_id: cumulative or 0.0 for employee_id, cumulative in rows}
