from datetime import date
from types import SimpleNamespace

import pytest

from fakes import (
    FakeSession,
    InMemoryEmployeeRepository,
    InMemoryRosterRepository,
    InMemoryScoreRepository,
    InMemoryThresholdRepository,
)
from levelup.core.permissions import Identity, Operation, Role, authorize
from levelup.models.candidate import Candidate
from levelup.models.score import Credit, Point
from levelup.services.candidate_service import CandidateService, promotion_type_for
from levelup.services.eligibility import MeetMode

HR = Identity(user_id=900, role=Role.HR, department="People")


def give_scores(db_session, employee, point_cumulative, credit_cumulative, year=2025):
    db_session.add(Point(employee_id=employee.id, year=year, score=point_cumulative, cumulative=point_cumulative))
    db_session.add(Credit(employee_id=employee.id, year=year, score=credit_cumulative, cumulative=credit_cumulative))
    db_session.commit()


@pytest.fixture
def roster(db_session, make_employee, thresholds):
    both = make_employee("Ana Cruz", hire_date=date(2019, 1, 2))
    point_only = make_employee("Ben Diaz", hire_date=date(2023, 6, 1))
    head = make_employee("Cal Eng", role=Role.DEPARTMENT_HEAD)
    unleveled = make_employee("Dee Fox", level=None)
    give_scores(db_session, both, 13, 11)
    give_scores(db_session, point_only, 13, 5)
    give_scores(db_session, head, 30, 30)
    give_scores(db_session, unleveled, 30, 30)
    return {"both": both, "point_only": point_only, "head": head, "unleveled": unleveled}


def candidates(db_session, year=2025):
    db_session.expire_all()
    return {c.employee_id: c for c in db_session.query(Candidate).filter(Candidate.year == year).all()}


def test_auto_select_is_idempotent(db_session, roster):
    service = CandidateService(db_session)

    assert service.auto_select(2025, MeetMode.BOTH) == {"added": 1, "total": 1}
    assert service.auto_select(2025, MeetMode.BOTH) == {"added": 0, "total": 1}

    rows = candidates(db_session)
    assert list(rows) == [roster["both"].id]
    assert rows[roster["both"].id].source == "auto"
    assert not rows[roster["both"].id].is_review_target


def test_auto_select_excludes_heads_and_unleveled(db_session, roster):
    CandidateService(db_session).auto_select(2025, MeetMode.ANY)
    rows = candidates(db_session)
    assert set(rows) == {roster["both"].id, roster["point_only"].id}


def test_manual_curation_survives_auto_select(db_session, roster):
    service = CandidateService(db_session)
    capability = authorize(HR, Operation.CURATE_ROSTER)
    manual = service.add_manual(capability, roster["point_only"].id, 2025)
    assert manual.source == "manual"
    assert manual.is_review_target

    result = service.auto_select(2025, MeetMode.ANY)

    assert result == {"added": 1, "total": 2}
    row = candidates(db_session)[roster["point_only"].id]
    assert row.source == "manual"
    assert row.is_review_target
    assert row.point_met and not row.credit_met


def test_auto_select_without_thresholds(db_session, make_employee):
    employee = make_employee("Eve Gil")
    give_scores(db_session, employee, 50, 50)
    assert CandidateService(db_session).auto_select(2025) == {"added": 0, "total": 0}


def test_promotion_type_uses_hire_year(roster):
    assert promotion_type_for(roster["both"], 2025, 4) == "normal"
    assert promotion_type_for(roster["point_only"], 2025, 4) == "special"


def test_roster_listing_creates_candidates_lazily(client, headers, db_session, roster):
    response = client.get(
        "/api/candidates",
        params={"year": 2025, "meet_type": "point"},
        headers=headers(900, "hr", "People"),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert all(row["candidate_id"] is not None for row in data["rows"])
    ana = next(row for row in data["rows"] if row["name"] == "Ana Cruz")
    assert ana["point_met"] and ana["credit_met"]
    assert ana["required_points"] == 12
    assert set(candidates(db_session)) == {roster["both"].id, roster["point_only"].id}


def test_auto_select_endpoint(client, headers, roster):
    response = client.post("/api/candidates/auto-select", json={"year": 2025, "policy": "both"},
                           headers=headers(900, "hr", "People"))
    assert response.status_code == 200
    assert response.json() == {"added": 1, "total": 1}

    response = client.post("/api/candidates/auto-select", json={"year": 2025},
                           headers=headers(1, "ceo"))
    assert response.status_code == 403


def test_curation_endpoints(client, headers, roster):
    hr = headers(900, "hr", "People")
    response = client.post("/api/candidates", json={"employee_id": roster["point_only"].id, "year": 2025}, headers=hr)
    assert response.status_code == 201
    candidate_id = response.json()["id"]
    assert response.json()["source"] == "manual"

    response = client.patch(f"/api/candidates/{candidate_id}", json={"is_review_target": False}, headers=hr)
    assert response.status_code == 200
    assert response.json()["is_review_target"] is False

    assert client.delete(f"/api/candidates/{candidate_id}", headers=hr).status_code == 403
    assert client.delete(f"/api/candidates/{candidate_id}", headers=headers(1, "admin")).status_code == 204
    assert client.delete(f"/api/candidates/{candidate_id}", headers=headers(1, "admin")).status_code == 404


def test_manual_add_unknown_employee(client, headers):
    response = client.post("/api/candidates", json={"employee_id": 424242, "year": 2025},
                           headers=headers(900, "hr"))
    assert response.status_code == 404


def test_auto_select_is_idempotent_in_memory():
    employees = InMemoryEmployeeRepository([
        SimpleNamespace(id=1, level="L2", hire_date=date(2019, 1, 2), years_of_service=6, is_active=True),
        SimpleNamespace(id=2, level="L2", hire_date=None, years_of_service=2, is_active=True),
        SimpleNamespace(id=3, level="L3", hire_date=date(2015, 1, 2), years_of_service=10, is_active=True),
        SimpleNamespace(id=4, level="L9", hire_date=None, years_of_service=9, is_active=True),
    ])
    scores = InMemoryScoreRepository({1: (13, 11), 2: (12, 10), 3: (15.9, 20), 4: (99, 99)})
    thresholds = InMemoryThresholdRepository({2025: {
        "L2": SimpleNamespace(required_points=12, required_credits=10, min_tenure_years=4),
        "L3": SimpleNamespace(required_points=16, required_credits=15, min_tenure_years=4),
    }})
    roster = InMemoryRosterRepository()
    session = FakeSession()
    service = CandidateService(session, employees=employees, scores=scores, thresholds=thresholds, roster=roster)

    assert service.auto_select(2025, MeetMode.BOTH) == {"added": 2, "total": 2}
    assert service.auto_select(2025, MeetMode.BOTH) == {"added": 0, "total": 2}

    selected = roster.for_year(2025)
    assert set(selected) == {1, 2}
    assert selected[1].promotion_type == "normal"
    assert selected[2].promotion_type == "special"
    assert not selected[1].is_review_target
    assert session.commits == 2
    assert session.added == []


def test_in_memory_auto_select_keeps_manual_entries():
    employees = InMemoryEmployeeRepository([
        SimpleNamespace(id=1, level="L2", hire_date=date(2019, 1, 2), years_of_service=6, is_active=True),
    ])
    thresholds = InMemoryThresholdRepository({2025: {
        "L2": SimpleNamespace(required_points=12, required_credits=10, min_tenure_years=4),
    }})
    roster = InMemoryRosterRepository()
    roster.add_manual(1, 2025)
    service = CandidateService(FakeSession(), employees=employees, scores=InMemoryScoreRepository({1: (12, 3)}),
                               thresholds=thresholds, roster=roster)

    assert service.auto_select(2025, MeetMode.ANY) == {"added": 0, "total": 1}
    candidate = roster.for_year(2025)[1]
    assert candidate.source == "manual"
    assert candidate.is_review_target
    assert candidate.point_met and not candidate.credit_met
