"""
Final decision per review-target candidate.

Status is PENDING until a row exists; CONFIRMED and DEFERRED may both be sent
back to PENDING. Changes require the candidate's department to have submitted
its review unless a final approver explicitly overrides.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from levelup.core.config import settings
from levelup.core.exceptions import AccessDeniedError, NotFoundError, SubmissionRequiredError
from levelup.core.permissions import Capability, Operation
from levelup.models.confirmation import ConfirmationStatus
from levelup.repositories.roster import RosterRepository
from levelup.repositories.scores import ScoreRepository
from levelup.repositories.submissions import SubmissionRepository
from levelup.repositories.thresholds import ThresholdRepository
from levelup.services.audit import AuditService
from levelup.services.base import BaseService


class ConfirmationService(BaseService):
    def __init__(self, db: Session, roster: Optional[RosterRepository] = None,
                 submissions: Optional[SubmissionRepository] = None):
        super().__init__(db)
        self.roster = roster or RosterRepository(db)
        self.submissions = submissions or SubmissionRepository(db)
        self.scores = ScoreRepository(db)
        self.thresholds = ThresholdRepository(db)

    def list_roster(
        self,
        capability: Capability,
        year: int,
        department: Optional[str] = None,
        team: Optional[str] = None,
        unfiltered: bool = False,
    ) -> Dict[str, Any]:
        if unfiltered and not capability.grants(Operation.VIEW_CONFIRMATION_UNFILTERED):
            raise AccessDeniedError("Unfiltered confirmation view is limited to final approvers")

        locked = self.submissions.locked_departments(year)
        departments = None if unfiltered else locked
        candidates = self.roster.review_targets(year, departments=departments, department=department, team=team)

        candidate_ids = [c.id for c in candidates]
        employee_ids = [c.employee_id for c in candidates]
        reviews = self.roster.reviews_for(candidate_ids)
        confirmations = self.roster.confirmations_for(candidate_ids)
        cumulatives = self.scores.latest_cumulatives(employee_ids)
        grades = self.scores.grades_for(employee_ids, years=settings.grade_years)
        thresholds = self.thresholds.for_year(year)

        rows = []
        for candidate in candidates:
            employee = candidate.employee
            review = reviews.get(candidate.id)
            confirmation = confirmations.get(candidate.id)
            threshold = thresholds.get(employee.level)
            point_cumulative, credit_cumulative = cumulatives.get(employee.id, (0.0, 0.0))
            employee_grades = grades.get(employee.id, {})
            rows.append({
                "candidate_id": candidate.id,
                "employee_id": employee.id,
                "name": employee.name,
                "department": employee.department,
                "team": employee.team,
                "level": employee.level,
                "competency_level": employee.competency_level,
                "years_of_service": employee.years_of_service,
                "hire_date": employee.hire_date,
                "promotion_type": candidate.promotion_type,
                "point_cumulative": point_cumulative,
                "credit_cumulative": credit_cumulative,
                "required_points": threshold.required_points if threshold else None,
                "required_credits": threshold.required_credits if threshold else None,
                "competency_score": review.competency_score if review else None,
                "competency_eval": review.competency_eval if review else None,
                "review_recommendation": review.recommendation if review else None,
                "status": confirmation.status if confirmation else ConfirmationStatus.PENDING.value,
                "confirmed_at": confirmation.confirmed_at if confirmation else None,
                "is_submitted": employee.department in locked,
                "grades": {y: employee_grades.get(y) for y in settings.grade_years},
            })

        summary = {
            "pending": sum(1 for r in rows if r["status"] == ConfirmationStatus.PENDING.value),
            "confirmed": sum(1 for r in rows if r["status"] == ConfirmationStatus.CONFIRMED.value),
            "deferred": sum(1 for r in rows if r["status"] == ConfirmationStatus.DEFERRED.value),
        }
        return {"rows": rows, "total": len(rows), "summary": summary, "unfiltered": unfiltered, "year": year}

    def transition(
        self,
        capability: Capability,
        candidate_id: int,
        status: ConfirmationStatus,
        override: bool = False,
    ) -> Dict[str, Any]:
        candidate = self.roster.get(candidate_id)
        if candidate is None:
            raise NotFoundError("Candidate", candidate_id)

        department = candidate.employee.department
        overridden = False
        if not self.submissions.is_locked(department, candidate.year):
            if not (override and capability.grants(Operation.OVERRIDE_SUBMISSION)):
                raise SubmissionRequiredError(department, candidate.year)
            overridden = True

        confirmed_at = None
        if status != ConfirmationStatus.PENDING:
            confirmed_at = datetime.now(timezone.utc)

        with self.transaction():
            previous = self.roster.confirmations_for([candidate_id]).get(candidate_id)
            previous_status = previous.status if previous else ConfirmationStatus.PENDING.value
            confirmation = self.roster.save_confirmation(candidate, status.value, capability.user_id, confirmed_at)
            AuditService(self.db).log_action(
                "confirmation_changed", "confirmation", confirmation.id, capability,
                {
                    "candidate_id": candidate_id,
                    "from": previous_status,
                    "to": status.value,
                    "override": overridden,
                },
            )
            result = {
                "candidate_id": candidate_id,
                "confirmation_id": confirmation.id,
                "status": confirmation.status,
                "confirmed_at": confirmation.confirmed_at,
            }

        self.log_info(f"Candidate {candidate_id} confirmation {previous_status} -> {status.value}",
                      candidate_id=candidate_id, override=overridden)
        return result
