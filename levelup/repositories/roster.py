from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from levelup.core.permissions import Role
from levelup.models.candidate import Candidate, CandidateSource
from levelup.models.confirmation import Confirmation
from levelup.models.employee import Employee
from levelup.models.review import Review
from levelup.repositories.base import BaseRepository, dialect_insert


class RosterRepository(BaseRepository):
    """Per-year candidate roster plus the lazily created Review rows hanging off it."""

    def get(self, candidate_id: int) -> Optional[Candidate]:
        return self.db.query(Candidate).filter(Candidate.id == candidate_id).first()

    def for_year(self, year: int, employee_ids: Optional[Iterable[int]] = None) -> Dict[int, Candidate]:
        query = self.db.query(Candidate).filter(Candidate.year == year)
        if employee_ids is not None:
            ids = list(employee_ids)
            if not ids:
                return {}
            query = query.filter(Candidate.employee_id.in_(ids))
        return {c.employee_id: c for c in query.all()}

    def ensure_candidates(self, year: int, flags: Dict[int, tuple]) -> int:
        """
        Insert-if-absent an auto entry for each employee_id -> (point_met, credit_met).
        Existing rows, manual or not, are left alone.
        """
        values = [
            {
                "employee_id": employee_id,
                "year": year,
                "point_met": point_met,
                "credit_met": credit_met,
                "is_review_target": False,
                "source": CandidateSource.AUTO.value,
            }
            for employee_id, (point_met, credit_met) in flags.items()
        ]
        return self.insert_if_absent(Candidate, ["employee_id", "year"], values)

    def upsert_selected(self, employee_id: int, year: int, point_met: bool, credit_met: bool,
                        promotion_type: Optional[str]) -> bool:
        """
        Record an auto-selected employee. Returns True when a new row was created.

        An existing row only has its met flags and promotion type refreshed;
        ``source`` and ``is_review_target`` are never touched.
        """
        inserted = self.insert_if_absent(Candidate, ["employee_id", "year"], [{
            "employee_id": employee_id,
            "year": year,
            "point_met": point_met,
            "credit_met": credit_met,
            "is_review_target": False,
            "source": CandidateSource.AUTO.value,
            "promotion_type": promotion_type,
        }])
        if inserted:
            return True
        self.db.query(Candidate).filter(
            Candidate.employee_id == employee_id,
            Candidate.year == year,
        ).update({
            Candidate.point_met: point_met,
            Candidate.credit_met: credit_met,
            Candidate.promotion_type: promotion_type,
        }, synchronize_session=False)
        return False

    def upsert_manual(self, employee_id: int, year: int, point_met: bool, credit_met: bool) -> Candidate:
        now = datetime.now(timezone.utc)
        stmt = dialect_insert(self.db, Candidate).values(
            employee_id=employee_id,
            year=year,
            point_met=point_met,
            credit_met=credit_met,
            is_review_target=True,
            source=CandidateSource.MANUAL.value,
            saved_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["employee_id", "year"],
            set_={
                "is_review_target": True,
                "source": CandidateSource.MANUAL.value,
                "saved_at": now,
            },
        )
        self.db.execute(stmt)
        return (
            self.db.query(Candidate)
            .filter(Candidate.employee_id == employee_id, Candidate.year == year)
            .populate_existing()
            .one()
        )

    def set_review_target(self, candidate: Candidate, is_review_target: bool) -> Candidate:
        candidate.is_review_target = is_review_target
        candidate.saved_at = datetime.now(timezone.utc)
        self.db.flush()
        return candidate

    def delete(self, candidate: Candidate) -> None:
        self.db.delete(candidate)
        self.db.flush()

    def review_targets(self, year: int, departments: Optional[Iterable[str]] = None,
                       department: Optional[str] = None, team: Optional[str] = None) -> List[Candidate]:
        query = (
            self.db.query(Candidate)
            .join(Employee, Candidate.employee_id == Employee.id)
            .filter(
                Candidate.year == year,
                Candidate.is_review_target.is_(True),
                Employee.role != Role.DEPARTMENT_HEAD,
            )
        )
        if departments is not None:
            departments = list(departments)
            if not departments:
                return []
            query = query.filter(Employee.department.in_(departments))
        if department:
            query = query.filter(Employee.department.ilike(f"%{department}%"))
        if team:
            query = query.filter(Employee.team.ilike(f"%{team}%"))
        return query.order_by(Employee.department, Employee.team, Employee.name).all()

    # --- reviews ---
    def ensure_reviews(self, candidate_ids: Iterable[int]) -> int:
        values = [{"candidate_id": cid} for cid in candidate_ids]
        return self.insert_if_absent(Review, ["candidate_id"], values)

    def reviews_for(self, candidate_ids: Iterable[int]) -> Dict[int, Review]:
        ids = list(candidate_ids)
        if not ids:
            return {}
        rows = self.db.query(Review).filter(Review.candidate_id.in_(ids)).all()
        return {r.candidate_id: r for r in rows}

    def get_review(self, review_id: int) -> Optional[Review]:
        return self.db.query(Review).filter(Review.id == review_id).first()

    # --- confirmations ---
    def confirmations_for(self, candidate_ids: Iterable[int]) -> Dict[int, Confirmation]:
        ids = list(candidate_ids)
        if not ids:
            return {}
        rows = self.db.query(Confirmation).filter(Confirmation.candidate_id.in_(ids)).all()
        return {c.candidate_id: c for c in rows}

    def save_confirmation(self, candidate: Candidate, status: str, confirmed_by: Optional[int],
                          confirmed_at: Optional[datetime]) -> Confirmation:
        stmt = dialect_insert(self.db, Confirmation).values(
            candidate_id=candidate.id,
            year=candidate.year,
            status=status,
            confirmed_by=confirmed_by,
            confirmed_at=confirmed_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["candidate_id"],
            set_={"status": status, "confirmed_by": confirmed_by, "confirmed_at": confirmed_at},
        )
        self.db.execute(stmt)
        return (
            self.db.query(Confirmation)
            .filter(Confirmation.candidate_id == candidate.id)
            .populate_existing()
            .one()
        )
