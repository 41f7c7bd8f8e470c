from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from levelup.core.exceptions import ValidationFailedError
from levelup.core.permissions import Capability
from levelup.repositories.grade_rules import GradeRuleRepository
from levelup.repositories.thresholds import THRESHOLD_FIELDS, ThresholdRepository
from levelup.services.audit import AuditService
from levelup.services.base import BaseService
from levelup.services.grading import parse_year_range


class SettingsService(BaseService):
    """Level thresholds (with change history) and grade rules."""

    def __init__(self, db: Session, thresholds: Optional[ThresholdRepository] = None,
                 grade_rules: Optional[GradeRuleRepository] = None):
        super().__init__(db)
        self.thresholds = thresholds or ThresholdRepository(db)
        self.grade_rules = grade_rules or GradeRuleRepository(db)

    def get_thresholds(self, year: int) -> Dict[str, Any]:
        rows = self.thresholds.exact_for_year(year)
        effective_year = year
        if not rows:
            effective_year = self.thresholds.effective_year(year)
            rows = self.thresholds.exact_for_year(effective_year) if effective_year is not None else []
        return {"year": year, "effective_year": effective_year, "thresholds": rows}

    def save_thresholds(self, capability: Capability, year: int, entries: List[Dict[str, Any]]) -> Dict[str, Any]:
        changes = []
        with self.transaction():
            for entry in entries:
                values = {f: entry[f] for f in THRESHOLD_FIELDS if f in entry}
                history = self.thresholds.save(entry["level"], year, values, capability.user_id)
                changes.extend(history)
            if changes:
                AuditService(self.db).log_action(
                    "thresholds_changed", "level_threshold", None, capability,
                    {
                        "year": year,
                        "changes": [
                            {"level": h.level, "field": h.field_name, "old": h.old_value, "new": h.new_value}
                            for h in changes
                        ],
                    },
                )
        self.log_info(f"Saved thresholds for {year}: {len(changes)} field changes", year=year)
        return {"year": year, "changed_fields": len(changes)}

    def history(self, year: Optional[int] = None):
        return self.thresholds.history(year)

    def get_grade_rules(self):
        return self.grade_rules.list_all()

    def save_grade_rules(self, capability: Capability, rules: List[Dict[str, Any]]) -> Dict[str, Any]:
        seen = set()
        for rule in rules:
            if parse_year_range(rule["year_range"]) is None:
                raise ValidationFailedError(
                    f"Invalid year range '{rule['year_range']}'",
                    details={"grade": rule["grade"], "year_range": rule["year_range"]},
                )
            key = (rule["grade"].strip().upper(), rule["year_range"].strip())
            if key in seen:
                raise ValidationFailedError(f"Duplicate rule for grade {key[0]} in {key[1]}")
            seen.add(key)

        with self.transaction():
            count = self.grade_rules.replace_all(rules)
            AuditService(self.db).log_action(
                "grade_rules_replaced", "grade_rule", None, capability, {"count": count},
            )
        return {"count": count}
