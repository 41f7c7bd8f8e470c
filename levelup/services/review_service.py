from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from levelup.core.exceptions import NotFoundError
from levelup.core.permissions import Capability
from levelup.repositories.employees import EmployeeRepository
from levelup.repositories.opinions import OpinionRepository
from levelup.repositories.roster import RosterRepository
from levelup.repositories.scores import ScoreRepository
from levelup.repositories.submissions import SubmissionRepository
from levelup.repositories.thresholds import ThresholdRepository
from levelup.services.audit import AuditService
from levelup.services.base import BaseService


class ReviewService(BaseService):
    """Read side of the review stage plus HR's competency fields."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.roster = RosterRepository(db)
        self.opinions = OpinionRepository(db)
        self.scores = ScoreRepository(db)
        self.thresholds = ThresholdRepository(db)
        self.submissions = SubmissionRepository(db)
        self.employees = EmployeeRepository(db)

    def list_reviews(
        self,
        capability: Capability,
        year: int,
        department: Optional[str] = None,
        team: Optional[str] = None,
        target: str = "all",
    ) -> Dict[str, Any]:
        candidates = self.roster.review_targets(year, department=department, team=team)
        caller_department = capability.identity.department
        if target == "own":
            candidates = [c for c in candidates if c.employee.department == caller_department]
        elif target == "other":
            candidates = [c for c in candidates if c.employee.department != caller_department]

        candidate_ids = [c.id for c in candidates]
        with self.transaction():
            self.roster.ensure_reviews(candidate_ids)
        reviews = self.roster.reviews_for(candidate_ids)
        my_saved = self.opinions.saved_at_by_reviewer([r.id for r in reviews.values()], capability.user_id)
        cumulatives = self.scores.latest_cumulatives([c.employee_id for c in candidates])
        locked = self.submissions.locked_departments(year)

        rows = []
        for candidate in candidates:
            review = reviews.get(candidate.id)
            employee = candidate.employee
            point_cumulative, credit_cumulative = cumulatives.get(candidate.employee_id, (0.0, 0.0))
            rows.append({
                "review_id": review.id if review else None,
                "candidate_id": candidate.id,
                "employee_id": employee.id,
                "name": employee.name,
                "department": employee.department,
                "team": employee.team,
                "level": employee.level,
                "competency_level": employee.competency_level,
                "promotion_type": candidate.promotion_type,
                "point_cumulative": point_cumulative,
                "credit_cumulative": credit_cumulative,
                "competency_score": review.competency_score if review else None,
                "competency_eval": review.competency_eval if review else None,
                "recommendation": review.recommendation if review else None,
                "my_opinion_saved_at": my_saved.get(review.id) if review else None,
                "is_locked": employee.department in locked,
            })
        return {"rows": rows, "total": len(rows), "year": year}

    def get_with_opinions(self, review_id: int) -> Dict[str, Any]:
        review = self.roster.get_review(review_id)
        if review is None:
            raise NotFoundError("Review", review_id)
        candidate = review.candidate
        employee = candidate.employee
        point_cumulative, credit_cumulative = self.scores.latest_cumulatives([employee.id])[employee.id]
        threshold = self.thresholds.get(employee.level, candidate.year)
        return {
            "review": review,
            "candidate_id": candidate.id,
            "year": candidate.year,
            "employee": employee,
            "point_cumulative": point_cumulative,
            "credit_cumulative": credit_cumulative,
            "required_points": threshold.required_points if threshold else None,
            "required_credits": threshold.required_credits if threshold else None,
            "is_locked": self.submissions.is_locked(employee.department, candidate.year),
            "opinions": self.opinions.for_review(review_id),
        }

    def update_competency(self, capability: Capability, review_id: int, values: Dict[str, Any]):
        review = self.roster.get_review(review_id)
        if review is None:
            raise NotFoundError("Review", review_id)
        with self.transaction():
            for field in ("competency_score", "competency_eval"):
                if field in values:
                    setattr(review, field, values[field])
            AuditService(self.db).log_action("review_updated", "review", review_id, capability, values)
        return review
