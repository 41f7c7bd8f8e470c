from typing import Iterable, List, Optional

from sqlalchemy import or_

from levelup.core.permissions import Role
from levelup.models.employee import Employee
from levelup.repositories.base import BaseRepository


class EmployeeRepository(BaseRepository):
    def get(self, employee_id: int) -> Optional[Employee]:
        return self.db.query(Employee).filter(Employee.id == employee_id).first()

    def get_many(self, employee_ids: Iterable[int]) -> List[Employee]:
        ids = list(employee_ids)
        if not ids:
            return []
        return self.db.query(Employee).filter(Employee.id.in_(ids)).order_by(Employee.id).all()

    def find_by_name_and_hire_date(self, name: str, hire_date) -> Optional[Employee]:
        return self.db.query(Employee).filter(
            Employee.name == name,
            Employee.hire_date == hire_date,
        ).first()

    def selectable(
        self,
        department: Optional[str] = None,
        team: Optional[str] = None,
        keyword: Optional[str] = None,
    ) -> List[Employee]:
        """Active employees with a level, excluding department heads."""
        query = self.db.query(Employee).filter(
            Employee.is_active.is_(True),
            Employee.level.isnot(None),
            Employee.role != Role.DEPARTMENT_HEAD,
        )
        query = self._apply_filters(query, department, team, keyword)
        return query.order_by(Employee.department, Employee.team, Employee.name).all()

    def active(
        self,
        department: Optional[str] = None,
        team: Optional[str] = None,
        keyword: Optional[str] = None,
    ) -> List[Employee]:
        query = self.db.query(Employee).filter(Employee.is_active.is_(True))
        query = self._apply_filters(query, department, team, keyword)
        return query.order_by(Employee.department, Employee.team, Employee.name).all()

    def with_roles(self, roles: Iterable[Role]) -> List[Employee]:
        return self.db.query(Employee).filter(
            Employee.is_active.is_(True),
            Employee.role.in_(list(roles)),
        ).order_by(Employee.id).all()

    def departments(self) -> List[str]:
        rows = self.db.query(Employee.department).distinct().order_by(Employee.department).all()
        return [r[0] for r in rows if r[0]]

    def teams(self) -> List[str]:
        rows = self.db.query(Employee.team).distinct().order_by(Employee.team).all()
        return [r[0] for r in rows if r[0]]

    @staticmethod
    def _apply_filters(query, department, team, keyword):
        if department:
            query = query.filter(Employee.department.ilike(f"%{department}%"))
        if team:
            query = query.filter(Employee.team.ilike(f"%{team}%"))
        if keyword:
            like = f"%{keyword}%"
            query = query.filter(or_(
                Employee.name.ilike(like),
                Employee.department.ilike(like),
                Employee.team.ilike(like),
            ))
        return query
