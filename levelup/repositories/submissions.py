from typing import List, Optional, Set

from sqlalchemy import func

from levelup.models.submission import Submission
from levelup.repositories.base import BaseRepository, dialect_insert


class SubmissionRepository(BaseRepository):
    def is_locked(self, department: str, year: int) -> bool:
        return self.db.query(Submission.id).filter(
            Submission.department == department,
            Submission.year == year,
        ).first() is not None

    def locked_departments(self, year: int) -> Set[str]:
        rows = self.db.query(Submission.department).filter(Submission.year == year).all()
        return {r[0] for r in rows}

    def list_for_year(self, year: int) -> List[Submission]:
        return self.db.query(Submission).filter(Submission.year == year).order_by(Submission.submitted_at.desc()).all()

    def lock(self, department: str, year: int, submitted_by: Optional[int]) -> Submission:
        """Idempotent; re-submitting refreshes submitted_by / submitted_at."""
        stmt = dialect_insert(self.db, Submission).values(
            department=department,
            year=year,
            submitted_by=submitted_by,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["department", "year"],
            set_={"submitted_by": submitted_by, "submitted_at": func.now()},
        )
        self.db.execute(stmt)
        return (
            self.db.query(Submission)
            .filter(Submission.department == department, Submission.year == year)
            .populate_existing()
            .one()
        )

    def unlock(self, department: str, year: int) -> bool:
        deleted = self.db.query(Submission).filter(
            Submission.department == department,
            Submission.year == year,
        ).delete(synchronize_session=False)
        return deleted > 0
