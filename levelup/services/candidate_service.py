"""
Eligibility roster and idempotent auto-selection.
"""
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from levelup.core.config import settings
from levelup.core.exceptions import NotFoundError
from levelup.core.permissions import Capability
from levelup.models.candidate import CandidateSource, PromotionType
from levelup.repositories.employees import EmployeeRepository
from levelup.repositories.roster import RosterRepository
from levelup.repositories.scores import ScoreRepository
from levelup.repositories.thresholds import ThresholdRepository
from levelup.services.audit import AuditService
from levelup.services.base import BaseService
from levelup.services.eligibility import MeetMode, evaluate, roster_includes


def promotion_type_for(employee, year: int, min_tenure_years: Optional[int]) -> str:
    """Tenure counted in whole calendar years since hire; years of service when the hire date is unknown."""
    if employee.hire_date is not None:
        tenure = year - employee.hire_date.year
    else:
        tenure = employee.years_of_service or 0
    if tenure >= (min_tenure_years or 0):
        return PromotionType.NORMAL.value
    return PromotionType.SPECIAL.value


def paginate(rows: list, page: int, page_size: int) -> list:
    start = (max(page, 1) - 1) * page_size
    return rows[start:start + page_size]


class CandidateService(BaseService):
    def __init__(self, db: Session, employees: Optional[EmployeeRepository] = None,
                 scores: Optional[ScoreRepository] = None,
                 thresholds: Optional[ThresholdRepository] = None,
                 roster: Optional[RosterRepository] = None):
        super().__init__(db)
        self.employees = employees or EmployeeRepository(db)
        self.scores = scores or ScoreRepository(db)
        self.thresholds = thresholds or ThresholdRepository(db)
        self.roster = roster or RosterRepository(db)

    def auto_select(self, year: int, policy: Optional[MeetMode] = None,
                    capability: Optional[Capability] = None) -> Dict[str, int]:
        """
        Upsert every employee meeting ``policy`` into the ``year`` roster.

        Safe to re-run: existing entries only get their met flags and promotion
        type refreshed, so manual curation survives and nothing is duplicated.
        """
        policy = MeetMode(policy or settings.engine.auto_select_policy)
        thresholds = self.thresholds.for_year(year)
        if not thresholds:
            self.log_warning(f"Auto-select for {year} skipped: no level thresholds configured")
            return {"added": 0, "total": 0}

        candidates = self.employees.selectable()
        cumulatives = self.scores.latest_cumulatives([e.id for e in candidates])

        added = 0
        total = 0
        with self.transaction():
            for employee in candidates:
                threshold = thresholds.get(employee.level)
                if threshold is None:
                    continue
                point_cumulative, credit_cumulative = cumulatives.get(employee.id, (0.0, 0.0))
                eligibility = evaluate(point_cumulative, credit_cumulative, threshold)
                if not eligibility.satisfies(policy):
                    continue

                total += 1
                promotion_type = promotion_type_for(employee, year, threshold.min_tenure_years)
                if self.roster.upsert_selected(employee.id, year, eligibility.point_met,
                                               eligibility.credit_met, promotion_type):
                    added += 1

            if capability is not None:
                AuditService(self.db).log_action(
                    "auto_select", "candidate", None, capability,
                    {"year": year, "policy": policy.value, "added": added, "total": total},
                )

        self.log_info(f"Auto-select {year}: added={added} total={total}", year=year, policy=policy.value)
        return {"added": added, "total": total}

    def list_roster(
        self,
        year: int,
        meet_type: MeetMode = MeetMode.BOTH,
        department: Optional[str] = None,
        team: Optional[str] = None,
        keyword: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Dict[str, Any]:
        engine = settings.engine
        employees = self.employees.selectable(department, team, keyword)
        ids = [e.id for e in employees]
        cumulatives = self.scores.latest_cumulatives(ids)
        grades = self.scores.grades_for(ids, years=range(engine.min_data_year, engine.max_data_year + 1))
        thresholds = self.thresholds.for_year(year)
        existing = self.roster.for_year(year, ids)

        listed = []
        missing = {}
        for employee in employees:
            point_cumulative, credit_cumulative = cumulatives.get(employee.id, (0.0, 0.0))
            threshold = thresholds.get(employee.level)
            eligibility = evaluate(point_cumulative, credit_cumulative, threshold)
            candidate = existing.get(employee.id)
            curated = candidate is not None and (
                candidate.source == CandidateSource.MANUAL.value or candidate.is_review_target
            )
            if not roster_includes(eligibility, meet_type, curated):
                continue
            if candidate is None:
                missing[employee.id] = (eligibility.point_met, eligibility.credit_met)
            listed.append((employee, eligibility, point_cumulative, credit_cumulative, threshold))

        if missing:
            with self.transaction():
                self.roster.ensure_candidates(year, missing)
            existing = self.roster.for_year(year, ids)

        rows = []
        for employee, eligibility, point_cumulative, credit_cumulative, threshold in listed:
            candidate = existing.get(employee.id)
            employee_grades = grades.get(employee.id, {})
            rows.append({
                "candidate_id": candidate.id if candidate else None,
                "employee_id": employee.id,
                "name": employee.name,
                "department": employee.department,
                "team": employee.team,
                "level": employee.level,
                "years_of_service": employee.years_of_service,
                "hire_date": employee.hire_date,
                "point_cumulative": point_cumulative,
                "credit_cumulative": credit_cumulative,
                "required_points": threshold.required_points if threshold else None,
                "required_credits": threshold.required_credits if threshold else None,
                "point_met": eligibility.point_met,
                "credit_met": eligibility.credit_met,
                "is_review_target": bool(candidate and candidate.is_review_target),
                "source": candidate.source if candidate else CandidateSource.AUTO.value,
                "promotion_type": candidate.promotion_type if candidate else None,
                "grades": {y: employee_grades.get(y) for y in settings.grade_years},
            })

        return {
            "rows": paginate(rows, page, page_size),
            "total": len(rows),
            "meta": {
                "year": year,
                "meet_type": meet_type.value,
                "page": page,
                "page_size": page_size,
                "departments": self.employees.departments(),
                "teams": self.employees.teams(),
            },
        }

    def add_manual(self, capability: Capability, employee_id: int, year: int):
        employee = self.employees.get(employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)

        point_cumulative, credit_cumulative = self.scores.latest_cumulatives([employee_id])[employee_id]
        eligibility = evaluate(point_cumulative, credit_cumulative, self.thresholds.get(employee.level, year))
        with self.transaction():
            candidate = self.roster.upsert_manual(employee_id, year, eligibility.point_met, eligibility.credit_met)
            AuditService(self.db).log_action(
                "candidate_added", "candidate", candidate.id, capability,
                {"employee_id": employee_id, "year": year},
            )
        return candidate

    def set_review_target(self, capability: Capability, candidate_id: int, is_review_target: bool):
        candidate = self.roster.get(candidate_id)
        if candidate is None:
            raise NotFoundError("Candidate", candidate_id)
        with self.transaction():
            self.roster.set_review_target(candidate, is_review_target)
            AuditService(self.db).log_action(
                "candidate_updated", "candidate", candidate_id, capability,
                {"is_review_target": is_review_target},
            )
        return candidate

    def delete(self, capability: Capability, candidate_id: int) -> None:
        candidate = self.roster.get(candidate_id)
        if candidate is None:
            raise NotFoundError("Candidate", candidate_id)
        with self.transaction():
            AuditService(self.db).log_action(
                "candidate_deleted", "candidate", candidate_id, capability,
                {"employee_id": candidate.employee_id, "year": candidate.year},
            )
            self.roster.delete(candidate)
