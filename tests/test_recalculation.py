import pytest

from levelup.models.performance_grade import PerformanceGrade
from levelup.models.score import Credit, Point
from levelup.repositories.scores import ScoreRepository
from levelup.services.recalculation import RecalculationService


def add_grades(db_session, employee, grades):
    db_session.add_all([PerformanceGrade(employee_id=employee.id, year=y, grade=g) for y, g in grades.items()])
    db_session.commit()


def points(db_session, employee):
    db_session.expire_all()
    return {p.year: p for p in ScoreRepository(db_session).points_for(employee.id)}


def test_windowed_cumulative_with_merit(db_session, make_employee, grade_rules, thresholds):
    employee = make_employee("Dana Kim", years_of_service=3)
    add_grades(db_session, employee, {2023: "A", 2024: "B", 2025: "S"})
    db_session.add(Point(employee_id=employee.id, year=2025, score=0, merit=1, penalty=0, cumulative=0))
    db_session.commit()

    result = RecalculationService(db_session).recalculate([employee.id])

    assert result == {"updated": 1, "skipped": 0}
    rows = points(db_session, employee)
    assert [rows[y].cumulative for y in (2023, 2024, 2025)] == [4, 7, 14]
    assert rows[2025].merit == 1
    assert rows[2024].merit == 0
    # L2 requires 12 points
    assert rows[2025].is_met
    assert not rows[2024].is_met


def test_recalculation_is_idempotent(db_session, make_employee, grade_rules, thresholds):
    employee = make_employee("Eli Park", years_of_service=2)
    add_grades(db_session, employee, {2024: "A", 2025: "B"})

    service = RecalculationService(db_session)
    service.recalculate([employee.id])
    first = {y: p.cumulative for y, p in points(db_session, employee).items()}
    service.recalculate([employee.id])
    second = {y: p.cumulative for y, p in points(db_session, employee).items()}

    assert first == second == {2024: 4, 2025: 7}


def test_no_grade_rules_is_a_no_op(db_session, make_employee):
    employee = make_employee("Fay Lim")
    add_grades(db_session, employee, {2025: "A"})

    assert RecalculationService(db_session).recalculate() == {"updated": 0, "skipped": 0}
    assert points(db_session, employee) == {}


def test_inactive_employees_skipped_on_full_run(db_session, make_employee, grade_rules):
    active = make_employee("Gus Ota")
    inactive = make_employee("Hal Ng", is_active=False)
    add_grades(db_session, active, {2025: "A"})
    add_grades(db_session, inactive, {2025: "A"})

    assert RecalculationService(db_session).recalculate() == {"updated": 1, "skipped": 1}
    assert points(db_session, inactive) == {}


def test_latest_credit_met_is_reevaluated(db_session, make_employee, grade_rules, thresholds):
    employee = make_employee("Ivy Roe")
    add_grades(db_session, employee, {2025: "A"})
    db_session.add(Credit(employee_id=employee.id, year=2025, score=11, cumulative=11, is_met=False))
    db_session.commit()

    RecalculationService(db_session).recalculate([employee.id])

    db_session.expire_all()
    credit = ScoreRepository(db_session).latest_credit(employee.id)
    assert credit.is_met


def test_manual_merit_survives_recalculation(client, headers, db_session, make_employee, grade_rules, thresholds):
    employee = make_employee("Jin Oh", years_of_service=3)
    add_grades(db_session, employee, {2023: "A", 2024: "B", 2025: "S"})
    service = RecalculationService(db_session)
    service.recalculate([employee.id])

    response = client.post("/api/points", json={
        "employee_id": employee.id,
        "year_scores": [{"year": 2024, "score": 3}],
        "total_merit": 5,
    }, headers=headers(900, "hr", "People"))
    assert response.status_code == 200
    assert response.json()["cumulative"] == 18

    service.recalculate([employee.id])

    rows = points(db_session, employee)
    assert sum(p.merit for p in rows.values()) == 5
    assert rows[2025].merit == 5
    assert rows[2024].merit == 0
    assert rows[2025].cumulative == 18


def test_adjustments_on_older_rows_move_to_the_latest(db_session, make_employee, grade_rules, thresholds):
    employee = make_employee("Kim Pae", years_of_service=2)
    add_grades(db_session, employee, {2024: "A", 2025: "B"})
    db_session.add(Point(employee_id=employee.id, year=2024, score=4, merit=2, penalty=0.5, cumulative=5.5))
    db_session.commit()

    RecalculationService(db_session).recalculate([employee.id])

    rows = points(db_session, employee)
    assert (rows[2024].merit, rows[2024].penalty) == (0, 0)
    assert (rows[2025].merit, rows[2025].penalty) == (2, 0.5)
    assert rows[2025].cumulative == 8.5
