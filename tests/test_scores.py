from datetime import date

import pytest

from levelup.models.performance_grade import PerformanceGrade

HR = (900, "hr", "People")


def test_save_points_folds_adjustments_into_latest_year(client, headers, make_employee, thresholds):
    employee = make_employee("Tia Uno")
    response = client.post("/api/points", json={
        "employee_id": employee.id,
        "year_scores": [{"year": 2025, "score": 5}, {"year": 2024, "score": 4}],
        "total_merit": 1,
        "total_penalty": 0.5,
    }, headers=headers(*HR))

    assert response.status_code == 200
    rows = response.json()["rows"]
    assert [(r["year"], r["cumulative"], r["merit"]) for r in rows] == [(2024, 4, 0), (2025, 9.5, 1)]
    assert response.json()["cumulative"] == 9.5
    assert rows[-1]["is_met"] is False


def test_adjustment_only_save_uses_last_data_year(client, headers, make_employee):
    employee = make_employee("Uma Vance")
    response = client.post("/api/points", json={"employee_id": employee.id, "total_merit": 2},
                           headers=headers(*HR))
    assert response.status_code == 200
    assert response.json()["rows"] == [
        {"year": 2025, "score": 0.0, "cumulative": 2.0, "is_met": False, "merit": 2.0, "penalty": 0.0},
    ]


def test_score_only_save_keeps_stored_merit(client, headers, make_employee, thresholds):
    employee = make_employee("Abe Bell")
    client.post("/api/points", json={
        "employee_id": employee.id,
        "year_scores": [{"year": 2025, "score": 4}],
        "total_merit": 2,
    }, headers=headers(*HR))

    response = client.post("/api/points", json={
        "employee_id": employee.id,
        "year_scores": [{"year": 2024, "score": 3}],
    }, headers=headers(*HR))

    assert response.status_code == 200
    rows = response.json()["rows"]
    assert [(r["year"], r["merit"], r["cumulative"]) for r in rows] == [(2024, 0, 3), (2025, 2, 9)]


def test_empty_point_save_is_rejected(client, headers, make_employee):
    employee = make_employee("Val West")
    response = client.post("/api/points", json={"employee_id": employee.id}, headers=headers(*HR))
    assert response.status_code == 400


def test_save_credits_keeps_rounded_running_total(client, headers, make_employee, thresholds):
    employee = make_employee("Wes Xu")
    response = client.post("/api/credits", json={
        "employee_id": employee.id,
        "year_scores": [{"year": 2023, "score": 3.3}, {"year": 2024, "score": 3.3}, {"year": 2025, "score": 3.4}],
    }, headers=headers(*HR))
    assert response.status_code == 200
    assert [r["cumulative"] for r in response.json()["rows"]] == [3.3, 6.6, 10.0]
    assert response.json()["rows"][-1]["is_met"] is True


def test_legacy_credit_total_is_preserved(client, headers, db_session, make_employee, thresholds):
    employee = make_employee("Xia Yates")
    db_session.add_all([PerformanceGrade(employee_id=employee.id, year=y, grade="A") for y in (2023, 2024, 2025)])
    db_session.commit()

    response = client.post("/api/credits/legacy-total", json={"employee_id": employee.id, "total": 10},
                           headers=headers(*HR))
    assert response.status_code == 200
    rows = response.json()["rows"]
    assert [(r["year"], r["score"]) for r in rows] == [(2023, 3.3), (2024, 3.3), (2025, 3.4)]
    assert rows[-1]["cumulative"] == 10
    assert rows[-1]["is_met"] is True


def test_legacy_credits_need_graded_years(client, headers, make_employee):
    employee = make_employee("Yul Zane")
    response = client.post("/api/credits/legacy-total", json={"employee_id": employee.id, "total": 10},
                           headers=headers(*HR))
    assert response.status_code == 400


def test_delete_is_admin_only(client, headers, make_employee):
    employee = make_employee("Zed Abe")
    client.post("/api/points", json={"employee_id": employee.id, "year_scores": [{"year": 2025, "score": 3}]},
                headers=headers(*HR))
    params = {"employee_id": employee.id, "year": 2025}

    assert client.delete("/api/points", params=params, headers=headers(*HR)).status_code == 403
    assert client.delete("/api/points", params=params, headers=headers(1, "admin")).status_code == 204
    assert client.delete("/api/points", params=params, headers=headers(1, "admin")).status_code == 404


def test_point_listing_flags_pre_hire_backfill(client, headers, make_employee):
    employee = make_employee("Abi Bell", years_of_service=3, hire_date=date(2024, 2, 1))
    client.post("/api/points", json={
        "employee_id": employee.id,
        "year_scores": [{"year": 2024, "score": 3}, {"year": 2025, "score": 4}],
    }, headers=headers(*HR))

    response = client.get("/api/points", params={"keyword": "Abi"}, headers=headers(*HR))
    assert response.status_code == 200
    data = response.json()
    assert data["recalculation_job_id"] is None
    years = data["rows"][0]["years"]
    assert [(y["year"], y["score"], y["auto_fill"]) for y in years] == [
        (2023, 2.0, True),
        (2024, 3.0, False),
        (2025, 4.0, False),
    ]
    assert data["rows"][0]["cumulative"] == 7


def test_point_listing_queues_recalculation_when_rules_exist(client, headers, make_employee, grade_rules):
    make_employee("Cy Dunn")
    response = client.get("/api/points", headers=headers(*HR))
    assert response.status_code == 200
    job_id = response.json()["recalculation_job_id"]
    assert job_id is not None
    assert client.get(f"/api/jobs/{job_id}", headers=headers(*HR)).json()["status"] == "done"


def test_credit_listing_met_filter(client, headers, make_employee, thresholds):
    met = make_employee("Dov Eads")
    unmet = make_employee("Eli Ford")
    client.post("/api/credits", json={"employee_id": met.id, "year_scores": [{"year": 2025, "score": 12}]},
                headers=headers(*HR))
    client.post("/api/credits", json={"employee_id": unmet.id, "year_scores": [{"year": 2025, "score": 2}]},
                headers=headers(*HR))

    data = client.get("/api/credits", params={"met": "Y"}, headers=headers(*HR)).json()
    assert [r["name"] for r in data["rows"]] == ["Dov Eads"]
    data = client.get("/api/credits", params={"met": "N"}, headers=headers(*HR)).json()
    assert [r["name"] for r in data["rows"]] == ["Eli Ford"]
