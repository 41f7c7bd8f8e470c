from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from levelup.models.candidate import Candidate
from levelup.models.employee import Employee
from levelup.models.review import Review, Opinion, ReviewerRole
from levelup.repositories.base import BaseRepository, dialect_insert


@dataclass(frozen=True)
class ReviewContext:
    review_id: int
    candidate_id: int
    department: str
    year: int
    recommendation: Optional[bool]


class OpinionRepository(BaseRepository):
    def lock_review(self, review_id: int) -> Optional[ReviewContext]:
        """
        Load the review with its candidate's department and year, holding a row
        lock on the review until the surrounding transaction ends.
        """
        row = (
            self.db.query(Review.id, Review.candidate_id, Review.recommendation, Candidate.year, Employee.department)
            .join(Candidate, Review.candidate_id == Candidate.id)
            .join(Employee, Candidate.employee_id == Employee.id)
            .filter(Review.id == review_id)
            .with_for_update(of=Review)
            .first()
        )
        if row is None:
            return None
        return ReviewContext(
            review_id=row.id,
            candidate_id=row.candidate_id,
            department=row.department or "",
            year=row.year,
            recommendation=row.recommendation,
        )

    def own_head_decided(self, review_id: int) -> bool:
        return self.db.query(Opinion.id).filter(
            Opinion.review_id == review_id,
            Opinion.reviewer_role == ReviewerRole.OWN_DEPARTMENT_HEAD.value,
            Opinion.recommendation.isnot(None),
        ).first() is not None

    def upsert(
        self,
        review_id: int,
        reviewer_id: int,
        reviewer_name: str,
        reviewer_role: ReviewerRole,
        opinion_text: Optional[str],
        recommendation: Optional[bool],
        saved_at: datetime,
        modified_by: Optional[int] = None,
        modified_at: Optional[datetime] = None,
    ) -> Opinion:
        values = {
            "review_id": review_id,
            "reviewer_id": reviewer_id,
            "reviewer_name": reviewer_name,
            "reviewer_role": reviewer_role.value,
            "opinion_text": opinion_text,
            "recommendation": recommendation,
            "saved_at": saved_at,
            "modified_by": modified_by,
            "modified_at": modified_at,
        }
        update = ["reviewer_name", "reviewer_role", "opinion_text", "recommendation", "saved_at"]
        # Earlier on-behalf stamps survive a reviewer's own later save.
        if modified_by is not None:
            update += ["modified_by", "modified_at"]

        stmt = dialect_insert(self.db, Opinion).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["review_id", "reviewer_id"],
            set_={col: stmt.excluded[col] for col in update},
        )
        self.db.execute(stmt)
        return (
            self.db.query(Opinion)
            .filter(Opinion.review_id == review_id, Opinion.reviewer_id == reviewer_id)
            .populate_existing()
            .one()
        )

    def set_review_recommendation(self, review_id: int, recommendation: Optional[bool]) -> None:
        self.db.query(Review).filter(Review.id == review_id).update(
            {Review.recommendation: recommendation}, synchronize_session=False
        )

    def for_review(self, review_id: int) -> List[Opinion]:
        return self.db.query(Opinion).filter(Opinion.review_id == review_id).order_by(Opinion.id).all()

    def saved_at_by_reviewer(self, review_ids: List[int], reviewer_id: int) -> dict:
        if not review_ids:
            return {}
        rows = self.db.query(Opinion.review_id, Opinion.saved_at).filter(
            Opinion.review_id.in_(review_ids),
            Opinion.reviewer_id == reviewer_id,
        ).all()
        return {review_id: saved_at for review_id, saved_at in rows}
