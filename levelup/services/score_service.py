"""
Point and credit maintenance: display rows, manual saves, deletions and the
legacy credit seeding that spreads a known total across graded years.
"""
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from levelup.core.config import settings
from levelup.core.exceptions import NotFoundError, ValidationFailedError
from levelup.core.permissions import Capability
from levelup.models.score import Point
from levelup.repositories.bonus_penalty import BonusPenaltyRepository
from levelup.repositories.employees import EmployeeRepository
from levelup.repositories.scores import ScoreRepository
from levelup.repositories.thresholds import ThresholdRepository
from levelup.services.audit import AuditService
from levelup.services.base import BaseService
from levelup.services.candidate_service import paginate
from levelup.services.distribution import distribute_values, round_one
from levelup.services.eligibility import is_met
from levelup.services.tenure_window import display_years

POINT = "point"
CREDIT = "credit"


class ScoreService(BaseService):
    def __init__(self, db: Session, scores: Optional[ScoreRepository] = None,
                 employees: Optional[EmployeeRepository] = None,
                 thresholds: Optional[ThresholdRepository] = None,
                 ledger: Optional[BonusPenaltyRepository] = None):
        super().__init__(db)
        self.scores = scores or ScoreRepository(db)
        self.employees = employees or EmployeeRepository(db)
        self.thresholds = thresholds or ThresholdRepository(db)
        self.ledger = ledger or BonusPenaltyRepository(db)

    def _employee(self, employee_id: int):
        employee = self.employees.get(employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee

    # --- display ---
    def list_scores(
        self,
        kind: str,
        department: Optional[str] = None,
        team: Optional[str] = None,
        keyword: Optional[str] = None,
        met: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Dict[str, Any]:
        employees = self.employees.active(department, team, keyword)
        ids = [e.id for e in employees]
        if kind == POINT:
            records = self.scores.points_by_employee(ids)
            ledger_totals = self.ledger.totals_by_employee(ids)
        else:
            records = self.scores.credits_by_employee(ids)
        thresholds = self.thresholds.for_year(date.today().year)

        rows = []
        for employee in employees:
            history = records.get(employee.id, [])
            latest = history[-1] if history else None
            row_met = bool(latest and latest.is_met)
            if met == "Y" and not row_met:
                continue
            if met == "N" and row_met:
                continue

            by_year = {r.year: r.score for r in history}
            # Pre-hire placeholders are a points display concern only.
            hire_year = employee.hire_year if kind == POINT else None
            threshold = thresholds.get(employee.level) if employee.level else None
            required = None
            if threshold is not None:
                required = threshold.required_points if kind == POINT else threshold.required_credits

            row = {
                "employee_id": employee.id,
                "name": employee.name,
                "department": employee.department,
                "team": employee.team,
                "level": employee.level,
                "years_of_service": employee.years_of_service,
                "hire_date": employee.hire_date,
                "years": [
                    {"year": d.year, "score": d.score, "auto_fill": d.auto_fill}
                    for d in display_years(by_year, employee.years_of_service, hire_year)
                ],
                "cumulative": latest.cumulative if latest else 0.0,
                "required": required,
                "is_met": row_met,
            }
            if kind == POINT:
                row["merit"] = latest.merit if latest else 0.0
                row["penalty"] = latest.penalty if latest else 0.0
                row["bonus_total"], row["penalty_total"] = ledger_totals.get(employee.id, (0.0, 0.0))
            rows.append(row)

        return {
            "rows": paginate(rows, page, page_size),
            "total": len(rows),
            "meta": {
                "page": page,
                "page_size": page_size,
                "departments": self.employees.departments(),
                "teams": self.employees.teams(),
            },
        }

    # --- manual saves ---
    def adjustment_year(self, employee_id: int, years=()) -> int:
        """The row that carries merit, penalty and the ledger: the latest Point year, never before the last data year."""
        latest = self.scores.latest_point(employee_id)
        candidates = [settings.engine.max_data_year, *years]
        if latest is not None:
            candidates.append(latest.year)
        return max(candidates)

    def save_points(
        self,
        capability: Capability,
        employee_id: int,
        year_scores: List[Dict[str, Any]],
        year_grades: Optional[List[Dict[str, Any]]] = None,
        total_merit: Optional[float] = None,
        total_penalty: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Merge per-year scores into the employee's Point rows and rewrite their
        running cumulatives. Merit, penalty and the bonus/penalty ledger total
        sit on the latest row and fold into its cumulative. Omitted totals keep
        the stored ones.
        """
        employee = self._employee(employee_id)
        threshold = self.thresholds.get(employee.level, date.today().year)
        required = threshold.required_points if threshold else None

        entries = [e for e in year_scores if e.get("score") is not None]
        if not entries and total_merit is None and total_penalty is None:
            raise ValidationFailedError("Nothing to save", details={"employee_id": employee_id})

        stored = self.scores.adjustment_totals(employee_id)
        merit = stored.merit if total_merit is None else total_merit
        penalty = stored.penalty if total_penalty is None else total_penalty
        ledger_total = self.ledger.net_total(employee_id)

        scores = {p.year: p.score for p in self.scores.points_for(employee_id)}
        scores.update({e["year"]: e["score"] for e in entries})
        latest_year = self.adjustment_year(employee_id, scores)
        scores.setdefault(latest_year, 0.0)

        running = 0.0
        rows = []
        for year in sorted(scores):
            running += scores[year]
            is_latest = year == latest_year
            cumulative = running + (merit - penalty + ledger_total if is_latest else 0.0)
            rows.append({
                "year": year,
                "score": scores[year],
                "merit": merit if is_latest else 0.0,
                "penalty": penalty if is_latest else 0.0,
                "cumulative": cumulative,
                "is_met": is_met(cumulative, required),
            })

        with self.transaction():
            self.scores.upsert_points(employee_id, rows)
            if year_grades:
                self.scores.upsert_grades(employee_id, {g["year"]: g["grade"] for g in year_grades if g.get("grade")})
            AuditService(self.db).log_action(
                "points_saved", "employee", employee_id, capability,
                {"years": sorted(e["year"] for e in entries), "merit": merit, "penalty": penalty},
            )
        return {"employee_id": employee_id, "rows": rows, "cumulative": rows[-1]["cumulative"]}

    def shift_latest_point(self, employee, delta: float) -> Optional[float]:
        """
        Move the latest point cumulative by ``delta`` and re-evaluate its met
        flag, creating an empty adjustment row when the employee has none.
        Caller owns the transaction. Returns the new cumulative.
        """
        latest = self.scores.latest_point(employee.id)
        if not delta:
            return latest.cumulative if latest else None
        if latest is None:
            latest = Point(employee_id=employee.id, year=settings.engine.max_data_year,
                           score=0.0, merit=0.0, penalty=0.0, cumulative=0.0)
            self.db.add(latest)
        threshold = self.thresholds.get(employee.level, date.today().year)
        latest.cumulative = (latest.cumulative or 0.0) + delta
        latest.is_met = is_met(latest.cumulative, threshold.required_points if threshold else None)
        self.db.flush()
        return latest.cumulative

    def save_credits(self, capability: Capability, employee_id: int,
                     year_scores: List[Dict[str, Any]]) -> Dict[str, Any]:
        employee = self._employee(employee_id)
        threshold = self.thresholds.get(employee.level, date.today().year)
        required = threshold.required_credits if threshold else None

        entries = sorted(
            (e for e in year_scores if e.get("score") is not None),
            key=lambda e: e["year"],
        )
        if not entries:
            raise ValidationFailedError("Nothing to save", details={"employee_id": employee_id})

        running = round_one(0)
        rows = []
        for entry in entries:
            running = round_one(running + round_one(entry["score"]))
            rows.append({
                "year": entry["year"],
                "score": entry["score"],
                "cumulative": float(running),
                "is_met": is_met(float(running), required),
            })

        with self.transaction():
            self.scores.upsert_credits(employee_id, rows)
            AuditService(self.db).log_action(
                "credits_saved", "employee", employee_id, capability,
                {"years": [r["year"] for r in rows]},
            )
        return {"employee_id": employee_id, "rows": rows, "cumulative": rows[-1]["cumulative"]}

    def seed_legacy_credits(self, capability: Optional[Capability], employee_id: int, total: float,
                            commit: bool = True) -> Dict[str, Any]:
        """
        Spread a historical credit ``total`` over the employee's graded years.
        The latest row's cumulative equals ``total`` exactly.
        """
        employee = self._employee(employee_id)
        years = settings.grade_years
        graded = self.scores.grades_for([employee_id], years=years).get(employee_id, {})
        if not graded:
            raise ValidationFailedError("Employee has no graded years to distribute over",
                                        details={"employee_id": employee_id})

        shares = distribute_values(total, years, graded.keys())
        threshold = self.thresholds.get(employee.level, date.today().year)
        required = threshold.required_credits if threshold else None

        active_years = [y for y in years if y in graded]
        running = round_one(0)
        rows = []
        for year in active_years:
            running = round_one(running + round_one(shares[year]))
            rows.append({"year": year, "score": shares[year], "cumulative": float(running), "is_met": False})
        rows[-1]["cumulative"] = float(total)
        rows[-1]["is_met"] = is_met(float(total), required)

        self.scores.upsert_credits(employee_id, rows)
        if capability is not None:
            AuditService(self.db).log_action(
                "legacy_credits_seeded", "employee", employee_id, capability, {"total": total},
            )
        if commit:
            try:
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
        return {"employee_id": employee_id, "rows": rows, "cumulative": float(total)}

    # --- deletes ---
    def delete_score(self, capability: Capability, kind: str, employee_id: int, year: int) -> None:
        with self.transaction():
            if kind == POINT:
                deleted = self.scores.delete_point(employee_id, year)
            else:
                deleted = self.scores.delete_credit(employee_id, year)
            if not deleted:
                raise NotFoundError(kind.capitalize(), f"{employee_id}/{year}")
            AuditService(self.db).log_action(
                f"{kind}_deleted", "employee", employee_id, capability, {"year": year},
            )
