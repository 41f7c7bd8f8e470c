"""
Opinion saves and the consensus update of Review.recommendation.

The whole save runs in one transaction with the review row locked: resolve the
reviewer seat, check whether the candidate's own department head has already
decided, upsert the opinion, then conditionally overwrite the review. Two
concurrent writers on the same review therefore serialize on the lock and can
never both believe they hold precedence.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from levelup.core.exceptions import AccessDeniedError, NotFoundError, SubmissionLockedError
from levelup.core.permissions import Capability, Identity, Operation
from levelup.repositories.employees import EmployeeRepository
from levelup.repositories.opinions import OpinionRepository
from levelup.repositories.submissions import SubmissionRepository
from levelup.services.audit import AuditService
from levelup.services.base import BaseService
from levelup.services.consensus import (
    ReviewerSeat,
    effective_recommendation,
    has_authority,
    resolve_reviewer_role,
    reviewer_display_name,
)


@dataclass
class OpinionSaveResult:
    opinion_id: int
    reviewer_id: int
    reviewer_role: str
    reviewer_name: str
    recommendation: Optional[bool]
    saved_at: Optional[datetime]
    review_recommendation: Optional[bool]
    review_updated: bool


class OpinionService(BaseService):
    def __init__(self, db: Session, opinions: Optional[OpinionRepository] = None,
                 submissions: Optional[SubmissionRepository] = None,
                 employees: Optional[EmployeeRepository] = None):
        super().__init__(db)
        self.opinions = opinions or OpinionRepository(db)
        self.submissions = submissions or SubmissionRepository(db)
        self.employees = employees or EmployeeRepository(db)

    def resolve_acting_as(self, capability: Capability, on_behalf_of: Optional[int]) -> Identity:
        """
        The identity whose opinion seat is written. Only callers granted
        ACT_ON_BEHALF may name someone else; the actual caller stays on the
        capability for the audit trail.
        """
        caller = capability.identity
        if on_behalf_of is None or on_behalf_of == caller.user_id:
            return caller
        if not capability.grants(Operation.ACT_ON_BEHALF):
            raise AccessDeniedError("Only administrators may save an opinion on behalf of another reviewer")
        target = self.employees.get(on_behalf_of)
        if target is None:
            raise NotFoundError("Reviewer", on_behalf_of)
        return Identity(user_id=target.id, role=target.role, department=target.department or "")

    def save_opinion(
        self,
        capability: Capability,
        review_id: int,
        opinion_text: Optional[str] = None,
        recommendation: Optional[bool] = None,
        on_behalf_of: Optional[int] = None,
    ) -> OpinionSaveResult:
        acting_as = self.resolve_acting_as(capability, on_behalf_of)
        on_behalf = acting_as.user_id != capability.user_id
        now = datetime.now(timezone.utc)

        with self.transaction():
            review = self.opinions.lock_review(review_id)
            if review is None:
                raise NotFoundError("Review", review_id)

            # Checked against the real caller: an administrator stays exempt while acting for a head.
            if (self.submissions.is_locked(review.department, review.year)
                    and not capability.grants(Operation.BYPASS_SUBMISSION_LOCK)):
                raise SubmissionLockedError(review.department, review.year)

            role = resolve_reviewer_role(acting_as.role, acting_as.department, review.department)
            seat = ReviewerSeat(
                reviewer_id=acting_as.user_id,
                role=role,
                name=reviewer_display_name(role, acting_as.department),
            )
            value = effective_recommendation(seat.role, recommendation)
            own_head_decided = self.opinions.own_head_decided(review_id)

            opinion = self.opinions.upsert(
                review_id=review_id,
                reviewer_id=seat.reviewer_id,
                reviewer_name=seat.name,
                reviewer_role=seat.role,
                opinion_text=opinion_text,
                recommendation=value,
                saved_at=now,
                modified_by=capability.user_id if on_behalf else None,
                modified_at=now if on_behalf else None,
            )

            review_recommendation = review.recommendation
            review_updated = False
            if has_authority(seat.role, own_head_decided):
                self.opinions.set_review_recommendation(review_id, value)
                review_updated = review.recommendation != value
                review_recommendation = value

            if on_behalf:
                AuditService(self.db).log_action(
                    "opinion_saved_on_behalf", "opinion", opinion.id, capability,
                    {
                        "review_id": review_id,
                        "reviewer_id": seat.reviewer_id,
                        "reviewer_role": seat.role.value,
                        "recommendation": value,
                        "review_updated": review_updated,
                    },
                )

            result = OpinionSaveResult(
                opinion_id=opinion.id,
                reviewer_id=seat.reviewer_id,
                reviewer_role=seat.role.value,
                reviewer_name=seat.name,
                recommendation=value,
                saved_at=now,
                review_recommendation=review_recommendation,
                review_updated=review_updated,
            )

        self.log_info(
            f"Opinion saved on review {review_id} as {seat.role.value}",
            review_id=review_id,
            review_updated=review_updated,
        )
        return result
