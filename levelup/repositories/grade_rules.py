from typing import Iterable, List

from levelup.models.grade_rule import GradeRule
from levelup.repositories.base import BaseRepository


class GradeRuleRepository(BaseRepository):
    def list_all(self) -> List[GradeRule]:
        return self.db.query(GradeRule).order_by(GradeRule.year_range, GradeRule.grade).all()

    def exists(self) -> bool:
        return self.db.query(GradeRule.id).first() is not None

    def replace_all(self, rules: Iterable[dict]) -> int:
        """Swap the whole rule set. Caller owns the transaction."""
        self.db.query(GradeRule).delete(synchronize_session=False)
        count = 0
        for rule in rules:
            self.db.add(GradeRule(
                grade=rule["grade"].strip().upper(),
                year_range=rule["year_range"].strip(),
                points=rule["points"],
            ))
            count += 1
        self.db.flush()
        return count
