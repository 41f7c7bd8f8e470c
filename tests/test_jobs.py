import pytest

from levelup.models.performance_grade import PerformanceGrade
from levelup.models.recalculation_job import RecalculationJob
from levelup.services import task_service
from levelup.services.task_service import JobService, process_job


def test_process_job_runs_to_done(db_session, make_employee, grade_rules):
    employee = make_employee("Rae Soto")
    db_session.add(PerformanceGrade(employee_id=employee.id, year=2025, grade="A"))
    db_session.commit()

    job = JobService(db_session).enqueue("recalculate", {"employee_ids": [employee.id]})
    assert job.status == "queued"

    job = process_job(db_session, job.id)

    assert job.status == "done"
    assert job.result == {"updated": 1, "skipped": 0}
    assert job.error is None


def test_failed_job_keeps_error(db_session, monkeypatch):
    def boom(db, payload):
        raise RuntimeError("grade table unavailable")

    monkeypatch.setitem(task_service.JOB_HANDLERS, "recalculate", boom)
    job = JobService(db_session).enqueue("recalculate", {})

    job = process_job(db_session, job.id)

    assert job.status == "failed"
    assert "grade table unavailable" in job.error


def test_finished_job_is_not_rerun(db_session):
    job = RecalculationJob(job_type="recalculate", status="done", result={"updated": 3, "skipped": 0})
    db_session.add(job)
    db_session.commit()

    assert process_job(db_session, job.id).result == {"updated": 3, "skipped": 0}


def test_unknown_job_type_is_rejected(db_session):
    with pytest.raises(ValueError):
        JobService(db_session).enqueue("reindex", {})


def test_recalculate_endpoint_runs_in_background(client, headers, db_session, make_employee, grade_rules):
    employee = make_employee("Sam Tull")
    db_session.add(PerformanceGrade(employee_id=employee.id, year=2025, grade="S"))
    db_session.commit()
    hr = headers(900, "hr", "People")

    response = client.post("/api/jobs/recalculate", json={"employee_ids": [employee.id]}, headers=hr)
    assert response.status_code == 202
    job_id = response.json()["id"]

    response = client.get(f"/api/jobs/{job_id}", headers=hr)
    assert response.status_code == 200
    assert response.json()["status"] == "done"
    assert response.json()["result"]["updated"] == 1


def test_jobs_require_hr_or_admin(client, headers):
    response = client.post("/api/jobs/recalculate", json={}, headers=headers(5, "department-head", "Sales"))
    assert response.status_code == 403
    assert client.get("/api/jobs/424242", headers=headers(1, "admin")).status_code == 404
