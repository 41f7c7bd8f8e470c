from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from levelup.core.exceptions import ValidationFailedError
from levelup.core.permissions import Capability, Identity, Operation
from levelup.repositories.submissions import SubmissionRepository
from levelup.services.audit import AuditService
from levelup.services.base import BaseService
from levelup.services.notification import NotificationService


class SubmissionService(BaseService):
    """
    Per (department, year) review lock.

    Setting the lock does not check that the department's opinions are complete.
    Cancelling is always allowed and a missing lock cancels as a no-op.
    """

    def __init__(self, db: Session, submissions: Optional[SubmissionRepository] = None):
        super().__init__(db)
        self.submissions = submissions or SubmissionRepository(db)

    @staticmethod
    def target_department(capability: Capability, department: Optional[str]) -> str:
        # Department heads always act on their own department.
        if department and capability.grants(Operation.ACT_ON_BEHALF):
            return department
        own = capability.identity.department
        if not own:
            raise ValidationFailedError("No department to submit for", details={"department": department})
        return own

    def status(self, identity: Identity, year: int) -> Dict[str, Any]:
        submissions = self.submissions.list_for_year(year)
        departments = {s.department for s in submissions}
        return {
            "year": year,
            "is_submitted": bool(identity.department) and identity.department in departments,
            "submitted_departments": [
                {"department": s.department, "submitted_at": s.submitted_at, "submitted_by": s.submitted_by}
                for s in submissions
            ],
        }

    def submit(self, capability: Capability, year: int, department: Optional[str] = None) -> Dict[str, Any]:
        department = self.target_department(capability, department)
        with self.transaction():
            submission = self.submissions.lock(department, year, capability.user_id)
            AuditService(self.db).log_action(
                "review_submitted", "submission", submission.id, capability,
                {"department": department, "year": year},
            )
            stats = NotificationService.submission_stats(self.db, department, year)
            notifications = NotificationService.notify_submission(
                self.db, department, year, capability.user_id, stats,
            )
            result = {
                "department": department,
                "year": year,
                "submitted_at": submission.submitted_at,
                "stats": stats,
                "notified": len(notifications),
            }
        self.log_info(f"Review locked for {department} ({year})", department=department, year=year)
        return result

    def cancel(self, capability: Capability, year: int, department: Optional[str] = None) -> Dict[str, Any]:
        department = self.target_department(capability, department)
        with self.transaction():
            removed = self.submissions.unlock(department, year)
            if removed:
                AuditService(self.db).log_action(
                    "review_submission_cancelled", "submission", None, capability,
                    {"department": department, "year": year},
                )
        if removed:
            self.log_info(f"Review lock cancelled for {department} ({year})", department=department, year=year)
        return {"department": department, "year": year, "removed": removed}
