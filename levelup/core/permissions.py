"""
Permission matrix for the level-up review engine.

Every entry point resolves the caller once with ``authorize(identity, operation)``
and passes the returned ``Capability`` down into the service layer. Services ask
the capability what it grants instead of comparing role strings themselves.
"""
import enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from levelup.core.exceptions import AccessDeniedError


class Role(str, enum.Enum):
    """
    Caller roles supplied by the authentication gateway.

    Hierarchy is not implied by ordering; permissions come only from PERMISSION_MATRIX.
    """
    TEAM_MEMBER = "team-member"
    TEAM_LEAD = "team-lead"
    SECTION_CHIEF = "section-chief"
    DEPARTMENT_HEAD = "department-head"
    HR = "hr"
    CEO = "ceo"
    ADMIN = "admin"


class Operation(str, enum.Enum):
    VIEW_ROSTER = "view_roster"
    AUTO_SELECT = "auto_select"
    CURATE_ROSTER = "curate_roster"
    DELETE_CANDIDATE = "delete_candidate"
    VIEW_REVIEWS = "view_reviews"
    SAVE_OPINION = "save_opinion"
    UPDATE_REVIEW = "update_review"
    BYPASS_SUBMISSION_LOCK = "bypass_submission_lock"
    ACT_ON_BEHALF = "act_on_behalf"
    SUBMIT_REVIEW = "submit_review"
    VIEW_CONFIRMATION = "view_confirmation"
    VIEW_CONFIRMATION_UNFILTERED = "view_confirmation_unfiltered"
    CONFIRM = "confirm"
    OVERRIDE_SUBMISSION = "override_submission"
    MANAGE_SCORES = "manage_scores"
    DELETE_SCORES = "delete_scores"
    IMPORT_EMPLOYEES = "import_employees"
    VIEW_SETTINGS = "view_settings"
    MANAGE_SETTINGS = "manage_settings"
    RUN_JOBS = "run_jobs"
    VIEW_NOTIFICATIONS = "view_notifications"


_HR_ADMIN = frozenset({Role.HR, Role.ADMIN})
_FINAL_APPROVERS = frozenset({Role.CEO, Role.ADMIN})

PERMISSION_MATRIX: Dict[Operation, FrozenSet[Role]] = {
    Operation.VIEW_ROSTER: _HR_ADMIN,
    Operation.AUTO_SELECT: _HR_ADMIN,
    Operation.CURATE_ROSTER: _HR_ADMIN,
    Operation.DELETE_CANDIDATE: frozenset({Role.ADMIN}),
    Operation.VIEW_REVIEWS: frozenset({Role.DEPARTMENT_HEAD, Role.HR, Role.CEO, Role.ADMIN}),
    Operation.SAVE_OPINION: frozenset({Role.DEPARTMENT_HEAD, Role.HR, Role.ADMIN}),
    Operation.UPDATE_REVIEW: _HR_ADMIN,
    Operation.BYPASS_SUBMISSION_LOCK: _HR_ADMIN,
    Operation.ACT_ON_BEHALF: frozenset({Role.ADMIN}),
    Operation.SUBMIT_REVIEW: frozenset({Role.DEPARTMENT_HEAD, Role.ADMIN}),
    Operation.VIEW_CONFIRMATION: frozenset({Role.HR, Role.CEO, Role.ADMIN}),
    Operation.VIEW_CONFIRMATION_UNFILTERED: _FINAL_APPROVERS,
    Operation.CONFIRM: _FINAL_APPROVERS,
    Operation.OVERRIDE_SUBMISSION: _FINAL_APPROVERS,
    Operation.MANAGE_SCORES: _HR_ADMIN,
    Operation.DELETE_SCORES: frozenset({Role.ADMIN}),
    Operation.IMPORT_EMPLOYEES: _HR_ADMIN,
    Operation.VIEW_SETTINGS: frozenset({Role.DEPARTMENT_HEAD, Role.HR, Role.CEO, Role.ADMIN}),
    Operation.MANAGE_SETTINGS: _HR_ADMIN,
    Operation.RUN_JOBS: _HR_ADMIN,
    Operation.VIEW_NOTIFICATIONS: frozenset(Role),
}


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: Role
    department: str = ""


@dataclass(frozen=True)
class Capability:
    """Proof that ``identity`` passed the matrix check for ``operation``."""
    identity: Identity
    operation: Operation

    def grants(self, operation: Operation) -> bool:
        return is_allowed(self.identity.role, operation)

    @property
    def user_id(self) -> int:
        return self.identity.user_id


def is_allowed(role: Role, operation: Operation) -> bool:
    return role in PERMISSION_MATRIX.get(operation, frozenset())


def authorize(identity: Optional[Identity], operation: Operation) -> Capability:
    if identity is None or not is_allowed(identity.role, operation):
        raise AccessDeniedError(f"Operation '{operation.value}' is not permitted for this role")
    return Capability(identity=identity, operation=operation)
