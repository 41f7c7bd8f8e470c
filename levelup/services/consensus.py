"""
Precedence rule that folds reviewer opinions into Review.recommendation.

- own-department-head always overwrites, including back to unset.
- other-department-head overwrites only while no own-department-head opinion
  carries a decision.
- hr-lead is an annotation channel: its recommendation is forced to unset and
  it never touches the review.
"""
from dataclasses import dataclass
from typing import Optional

from levelup.core.permissions import Role
from levelup.models.review import ReviewerRole


@dataclass(frozen=True)
class ReviewerSeat:
    """Whose opinion is being written, after any on-behalf substitution."""
    reviewer_id: int
    role: ReviewerRole
    name: str


def resolve_reviewer_role(reviewer_role: Role, reviewer_department: str, candidate_department: str) -> ReviewerRole:
    """``reviewer_role`` is the role of the seat being written, not of an acting administrator."""
    # HR, administrators writing as themselves and anyone else an administrator
    # stands in for only annotate.
    if reviewer_role != Role.DEPARTMENT_HEAD:
        return ReviewerRole.HR_LEAD
    if reviewer_department and reviewer_department == candidate_department:
        return ReviewerRole.OWN_DEPARTMENT_HEAD
    return ReviewerRole.OTHER_DEPARTMENT_HEAD


def reviewer_display_name(role: ReviewerRole, reviewer_department: str) -> str:
    if role == ReviewerRole.HR_LEAD:
        return "HR Lead"
    return f"{reviewer_department or 'Unknown'} Head"


def effective_recommendation(role: ReviewerRole, requested: Optional[bool]) -> Optional[bool]:
    if role == ReviewerRole.HR_LEAD:
        return None
    return requested


def has_authority(role: ReviewerRole, own_head_decided: bool) -> bool:
    if role == ReviewerRole.OWN_DEPARTMENT_HEAD:
        return True
    if role == ReviewerRole.OTHER_DEPARTMENT_HEAD:
        return not own_head_decided
    return False
