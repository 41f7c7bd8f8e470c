"""
Bonus/penalty ledger: extra points per employee and year, replaced a whole
year at a time. The ledger's net total is part of the point cumulative, so a
save moves the employee's latest Point row by the change in that total inside
the same transaction.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from levelup.core.exceptions import NotFoundError
from levelup.core.permissions import Capability
from levelup.repositories.bonus_penalty import BonusPenaltyRepository
from levelup.repositories.employees import EmployeeRepository
from levelup.services.audit import AuditService
from levelup.services.base import BaseService
from levelup.services.score_service import ScoreService


class BonusPenaltyService(BaseService):
    def __init__(self, db: Session, ledger: Optional[BonusPenaltyRepository] = None,
                 employees: Optional[EmployeeRepository] = None):
        super().__init__(db)
        self.ledger = ledger or BonusPenaltyRepository(db)
        self.employees = employees or EmployeeRepository(db)

    def _employee(self, employee_id: int):
        employee = self.employees.get(employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee

    def _listing(self, employee_id: int, year: int, items) -> Dict[str, Any]:
        return {
            "employee_id": employee_id,
            "year": year,
            "items": items,
            "bonus_total": sum(i.points for i in items if i.points > 0),
            "penalty_total": sum(-i.points for i in items if i.points < 0),
        }

    def list_items(self, employee_id: int, year: int) -> Dict[str, Any]:
        self._employee(employee_id)
        return self._listing(employee_id, year, self.ledger.for_employee(employee_id, year))

    def replace(self, capability: Capability, employee_id: int, year: int,
                items: List[Dict[str, Any]], note: Optional[str] = None) -> Dict[str, Any]:
        employee = self._employee(employee_id)
        scores = ScoreService(self.db, employees=self.employees, ledger=self.ledger)

        with self.transaction():
            before = self.ledger.net_total(employee_id)
            self.ledger.replace(employee_id, year, items, note, capability.user_id)
            after = self.ledger.net_total(employee_id)
            point_cumulative = scores.shift_latest_point(employee, after - before)
            AuditService(self.db).log_action(
                "bonus_penalty_replaced", "employee", employee_id, capability,
                {"year": year, "count": len(items), "net_total": after, "delta": after - before},
            )

        self.log_info(f"Bonus/penalty ledger saved for employee {employee_id} ({year})",
                      employee_id=employee_id, year=year)
        result = self._listing(employee_id, year, self.ledger.for_employee(employee_id, year))
        result["net_total"] = after
        result["point_cumulative"] = point_cumulative
        return result
