from typing import Dict, List, Optional

from levelup.models.level_threshold import LevelThreshold, LevelThresholdHistory
from levelup.repositories.base import BaseRepository

THRESHOLD_FIELDS = ("required_points", "required_credits", "min_tenure_years")


class ThresholdRepository(BaseRepository):
    def effective_year(self, year: int) -> Optional[int]:
        """``year`` if it has thresholds, else the most recent configured year."""
        if self.db.query(LevelThreshold.id).filter(LevelThreshold.year == year).first():
            return year
        latest = self.db.query(LevelThreshold.year).order_by(LevelThreshold.year.desc()).first()
        return latest[0] if latest else None

    def for_year(self, year: int) -> Dict[str, LevelThreshold]:
        effective = self.effective_year(year)
        if effective is None:
            return {}
        rows = self.db.query(LevelThreshold).filter(LevelThreshold.year == effective).all()
        return {row.level: row for row in rows}

    def get(self, level: Optional[str], year: int) -> Optional[LevelThreshold]:
        if not level:
            return None
        return self.for_year(year).get(level)

    def exact_for_year(self, year: int) -> List[LevelThreshold]:
        return self.db.query(LevelThreshold).filter(LevelThreshold.year == year).order_by(LevelThreshold.level).all()

    def save(self, level: str, year: int, values: dict, changed_by: Optional[int]) -> List[LevelThresholdHistory]:
        """
        Create or update one (level, year) row and append a history entry per
        changed field. Caller owns the transaction.
        """
        row = self.db.query(LevelThreshold).filter(
            LevelThreshold.level == level,
            LevelThreshold.year == year,
        ).with_for_update().first()
        if row is None:
            row = LevelThreshold(level=level, year=year, min_tenure_years=0)
            self.db.add(row)

        history = []
        for field in THRESHOLD_FIELDS:
            if field not in values:
                continue
            old = getattr(row, field)
            new = values[field]
            if old == new:
                continue
            setattr(row, field, new)
            entry = LevelThresholdHistory(
                level=level,
                year=year,
                field_name=field,
                old_value=old,
                new_value=new,
                changed_by=changed_by,
            )
            self.db.add(entry)
            history.append(entry)
        self.db.flush()
        return history

    def history(self, year: Optional[int] = None) -> List[LevelThresholdHistory]:
        query = self.db.query(LevelThresholdHistory)
        if year is not None:
            query = query.filter(LevelThresholdHistory.year == year)
        return query.order_by(LevelThresholdHistory.changed_at.desc(), LevelThresholdHistory.id.desc()).all()
