from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import case, func

from levelup.models.bonus_penalty import BonusPenalty
from levelup.repositories.base import BaseRepository


class BonusPenaltyRepository(BaseRepository):
    def for_employee(self, employee_id: int, year: Optional[int] = None) -> List[BonusPenalty]:
        query = self.db.query(BonusPenalty).filter(BonusPenalty.employee_id == employee_id)
        if year is not None:
            query = query.filter(BonusPenalty.year == year)
        return query.order_by(BonusPenalty.created_at, BonusPenalty.id).all()

    def replace(self, employee_id: int, year: int, items: Iterable[dict], note: Optional[str],
                created_by: Optional[int]) -> List[BonusPenalty]:
        """Drop every line for (employee, year) and write ``items`` instead. Caller owns the transaction."""
        self.db.query(BonusPenalty).filter(
            BonusPenalty.employee_id == employee_id,
            BonusPenalty.year == year,
        ).delete(synchronize_session=False)
        rows = [
            BonusPenalty(
                employee_id=employee_id,
                year=year,
                type=item["type"],
                category=item["category"],
                points=item["points"],
                note=note,
                created_by=created_by,
            )
            for item in items
        ]
        self.db.add_all(rows)
        self.db.flush()
        return rows

    def net_total(self, employee_id: int) -> float:
        total = self.db.query(func.coalesce(func.sum(BonusPenalty.points), 0.0)).filter(
            BonusPenalty.employee_id == employee_id
        ).scalar()
        return float(total or 0.0)

    def totals_by_employee(self, employee_ids: Iterable[int]) -> Dict[int, Tuple[float, float]]:
        """employee_id -> (bonus_total, penalty_total), both non-negative."""
        ids = list(employee_ids)
        out = {i: (0.0, 0.0) for i in ids}
        if not ids:
            return out
        bonus = func.sum(case((BonusPenalty.points > 0, BonusPenalty.points), else_=0.0))
        penalty = func.sum(case((BonusPenalty.points < 0, -BonusPenalty.points), else_=0.0))
        rows = (
            self.db.query(BonusPenalty.employee_id, bonus, penalty)
            .filter(BonusPenalty.employee_id.in_(ids))
            .group_by(BonusPenalty.employee_id)
            .all()
        )
        for employee_id, bonus_total, penalty_total in rows:
            out[employee_id] = (float(bonus_total or 0.0), float(penalty_total or 0.0))
        return out
