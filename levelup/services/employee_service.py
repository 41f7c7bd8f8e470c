"""
Bulk import of already-validated employee rows.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from levelup.core.config import settings
from levelup.core.permissions import Capability
from levelup.models.employee import Employee
from levelup.repositories.employees import EmployeeRepository
from levelup.repositories.scores import ScoreRepository
from levelup.services.audit import AuditService
from levelup.services.base import BaseService
from levelup.services.score_service import ScoreService

PROFILE_FIELDS = ("department", "team", "level", "years_of_service", "competency_level")


class EmployeeImportService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.employees = EmployeeRepository(db)
        self.scores = ScoreRepository(db)

    def import_rows(self, capability: Capability, rows: List[Any], duplicate_policy: str = "skip") -> Dict[str, Any]:
        """
        Upsert employees keyed on (name, hire_date) with their grades and
        seed scores. Everything is written in one transaction; recalculation is
        left to a follow-up job.
        """
        engine = settings.engine
        created = updated = skipped = 0
        touched: List[int] = []
        score_service = ScoreService(self.db, scores=self.scores, employees=self.employees)

        with self.transaction():
            for row in rows:
                employee = self.employees.find_by_name_and_hire_date(row.name, row.hire_date)
                if employee is not None and duplicate_policy == "skip":
                    skipped += 1
                    continue

                if employee is None:
                    employee = Employee(name=row.name, hire_date=row.hire_date, role=row.role)
                    self.db.add(employee)
                    created += 1
                else:
                    updated += 1
                for field in PROFILE_FIELDS:
                    setattr(employee, field, getattr(row, field))
                self.db.flush()
                touched.append(employee.id)

                grades = {
                    year: grade for year, grade in (row.performance_grades or {}).items()
                    if engine.min_data_year <= year <= engine.max_data_year and grade
                }
                self.scores.upsert_grades(employee.id, grades)

                if row.point_score is not None:
                    # Re-imports keep merit, penalty and the ledger on the seeded row.
                    adjustment = self.scores.adjustment_totals(employee.id)
                    ledger_total = score_service.ledger.net_total(employee.id)
                    self.scores.upsert_points(employee.id, [{
                        "year": engine.max_data_year,
                        "score": row.point_score,
                        "merit": adjustment.merit,
                        "penalty": adjustment.penalty,
                        "cumulative": row.point_score + adjustment.merit - adjustment.penalty + ledger_total,
                        "is_met": False,
                    }])
                    self.scores.clear_adjustments(employee.id, keep_year=engine.max_data_year)
                if row.credit_score is not None:
                    self._seed_credits(score_service, employee.id, row.credit_score, bool(grades))

            AuditService(self.db).log_action(
                "employees_imported", "employee", None, capability,
                {"created": created, "updated": updated, "skipped": skipped, "policy": duplicate_policy},
            )

        self.log_info(f"Imported employees: created={created} updated={updated} skipped={skipped}")
        return {"created": created, "updated": updated, "skipped": skipped, "employee_ids": touched}

    def _seed_credits(self, score_service: ScoreService, employee_id: int, total: float, has_grades: bool) -> None:
        if has_grades:
            score_service.seed_legacy_credits(None, employee_id, total, commit=False)
            return
        self.scores.upsert_credits(employee_id, [{
            "year": settings.engine.max_data_year,
            "score": total,
            "cumulative": total,
            "is_met": False,
        }])
