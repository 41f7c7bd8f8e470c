import pytest

from fakes import FakeSession, InMemoryOpinionRepository, InMemorySubmissionRepository
from levelup.core.exceptions import SubmissionLockedError
from levelup.core.permissions import Identity, Operation, Role, authorize
from levelup.models.candidate import Candidate
from levelup.models.review import Opinion, Review
from levelup.services.opinion_service import OpinionService


@pytest.fixture
def review_setup(db_session, make_employee):
    candidate_employee = make_employee("Jo Lee", department="Engineering")
    own_head = make_employee("Kai Moss", department="Engineering", role=Role.DEPARTMENT_HEAD)
    other_head = make_employee("Lu Nash", department="Sales", role=Role.DEPARTMENT_HEAD)
    candidate = Candidate(employee_id=candidate_employee.id, year=2025, is_review_target=True)
    db_session.add(candidate)
    db_session.commit()
    review = Review(candidate_id=candidate.id)
    db_session.add(review)
    db_session.commit()
    return {"review": review, "own_head": own_head, "other_head": other_head}


def save(client, headers, review_id, identity, recommendation=None, text="", on_behalf_of=None):
    body = {"opinion_text": text, "recommendation": recommendation}
    if on_behalf_of is not None:
        body["on_behalf_of"] = on_behalf_of
    return client.post(f"/api/reviews/{review_id}/opinions", json=body, headers=headers(*identity))


def test_reviewer_precedence(client, headers, review_setup):
    review_id = review_setup["review"].id
    own = (review_setup["own_head"].id, "department-head", "Engineering")
    other = (review_setup["other_head"].id, "department-head", "Sales")
    hr = (900, "hr", "People")

    # Other head decides while the own head is silent
    data = save(client, headers, review_id, other, True).json()
    assert data["reviewer_role"] == "other-department-head"
    assert data["review_recommendation"] is True
    assert data["review_updated"] is True

    # Own head always wins
    data = save(client, headers, review_id, own, False).json()
    assert data["reviewer_role"] == "own-department-head"
    assert data["review_recommendation"] is False
    assert data["review_updated"] is True

    # Other head is now a no-op on the review
    data = save(client, headers, review_id, other, True).json()
    assert data["recommendation"] is True
    assert data["review_recommendation"] is False
    assert data["review_updated"] is False

    # HR annotates only
    data = save(client, headers, review_id, hr, True, text="solid year").json()
    assert data["reviewer_role"] == "hr-lead"
    assert data["reviewer_name"] == "HR Lead"
    assert data["recommendation"] is None
    assert data["review_updated"] is False

    # Own head clearing hands authority back to other heads
    data = save(client, headers, review_id, own, None).json()
    assert data["review_recommendation"] is None
    data = save(client, headers, review_id, other, True).json()
    assert data["review_recommendation"] is True
    assert data["review_updated"] is True


def test_hr_alone_never_sets_review(client, headers, db_session, review_setup):
    review_id = review_setup["review"].id
    response = save(client, headers, review_id, (900, "hr", "People"), False)
    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.get(Review, review_id).recommendation is None


def test_one_opinion_per_reviewer(client, headers, db_session, review_setup):
    review_id = review_setup["review"].id
    own = (review_setup["own_head"].id, "department-head", "Engineering")
    save(client, headers, review_id, own, True, text="first")
    save(client, headers, review_id, own, True, text="second")

    opinions = db_session.query(Opinion).filter(Opinion.review_id == review_id).all()
    assert len(opinions) == 1
    db_session.refresh(opinions[0])
    assert opinions[0].opinion_text == "second"


def test_admin_on_behalf_records_modifier(client, headers, review_setup):
    review_id = review_setup["review"].id
    own_head = review_setup["own_head"]
    admin = (1, "admin", "")

    data = save(client, headers, review_id, admin, True, on_behalf_of=own_head.id).json()
    assert data["reviewer_id"] == own_head.id
    assert data["reviewer_role"] == "own-department-head"
    assert data["reviewer_name"] == "Engineering Head"
    assert data["review_recommendation"] is True

    # The head's own later save keeps the on-behalf stamp
    save(client, headers, review_id, (own_head.id, "department-head", "Engineering"), False)

    response = client.get(f"/api/reviews/{review_id}/opinions", headers=headers(*admin))
    assert response.status_code == 200
    opinions = response.json()["opinions"]
    assert len(opinions) == 1
    assert opinions[0]["modified_by"] == 1
    assert opinions[0]["modified_at"] is not None
    assert opinions[0]["recommendation"] is False


def test_on_behalf_requires_admin(client, headers, review_setup):
    response = save(client, headers, review_setup["review"].id, (900, "hr", "People"), True,
                    on_behalf_of=review_setup["own_head"].id)
    assert response.status_code == 403


def test_on_behalf_of_unknown_reviewer(client, headers, review_setup):
    response = save(client, headers, review_setup["review"].id, (1, "admin", ""), True, on_behalf_of=424242)
    assert response.status_code == 404


def test_unknown_review(client, headers):
    response = save(client, headers, 424242, (900, "hr", "People"), True)
    assert response.status_code == 404


def test_review_listing_and_competency_update(client, headers, review_setup):
    own = headers(review_setup["own_head"].id, "department-head", "Engineering")
    response = client.get("/api/reviews", params={"year": 2025, "target": "own"}, headers=own)
    assert response.status_code == 200
    rows = response.json()["rows"]
    assert [r["review_id"] for r in rows] == [review_setup["review"].id]
    assert rows[0]["my_opinion_saved_at"] is None

    other = headers(review_setup["other_head"].id, "department-head", "Sales")
    assert client.get("/api/reviews", params={"year": 2025, "target": "own"}, headers=other).json()["rows"] == []

    response = client.patch(f"/api/reviews/{review_setup['review'].id}",
                            json={"competency_score": 4.5, "competency_eval": "Exceeds"},
                            headers=headers(900, "hr", "People"))
    assert response.status_code == 200
    assert response.json()["competency_score"] == 4.5
    assert response.json()["recommendation"] is None

    response = client.patch(f"/api/reviews/{review_setup['review'].id}", json={"competency_score": 1}, headers=own)
    assert response.status_code == 403


def in_memory_service(locked=()):
    opinions = InMemoryOpinionRepository()
    opinions.add_review(1, "Engineering")
    submissions = InMemorySubmissionRepository()
    for department in locked:
        submissions.lock(department, 2025, submitted_by=7)
    session = FakeSession()
    return OpinionService(session, opinions=opinions, submissions=submissions), opinions, session


def test_precedence_with_in_memory_repositories():
    service, opinions, session = in_memory_service()
    own = authorize(Identity(user_id=10, role=Role.DEPARTMENT_HEAD, department="Engineering"), Operation.SAVE_OPINION)
    other = authorize(Identity(user_id=20, role=Role.DEPARTMENT_HEAD, department="Sales"), Operation.SAVE_OPINION)
    hr = authorize(Identity(user_id=900, role=Role.HR, department="People"), Operation.SAVE_OPINION)

    result = service.save_opinion(other, 1, recommendation=True)
    assert result.review_updated is True
    assert opinions.reviews[1].recommendation is True

    result = service.save_opinion(own, 1, recommendation=False)
    assert result.reviewer_role == "own-department-head"
    assert opinions.reviews[1].recommendation is False

    result = service.save_opinion(other, 1, recommendation=True)
    assert result.review_updated is False
    assert result.review_recommendation is False
    assert opinions.reviews[1].recommendation is False

    result = service.save_opinion(hr, 1, opinion_text="noted", recommendation=True)
    assert result.recommendation is None
    assert result.review_updated is False
    assert opinions.reviews[1].recommendation is False

    assert len(opinions.opinions) == 3
    assert session.commits == 4
    assert session.rollbacks == 0


def test_locked_department_rejects_heads_but_not_hr():
    service, opinions, session = in_memory_service(locked=["Engineering"])
    own = authorize(Identity(user_id=10, role=Role.DEPARTMENT_HEAD, department="Engineering"), Operation.SAVE_OPINION)
    hr = authorize(Identity(user_id=900, role=Role.HR, department="People"), Operation.SAVE_OPINION)

    with pytest.raises(SubmissionLockedError):
        service.save_opinion(own, 1, recommendation=True)
    assert opinions.opinions == {}
    assert session.rollbacks == 1

    result = service.save_opinion(hr, 1, opinion_text="late note")
    assert result.reviewer_role == "hr-lead"
    assert opinions.reviews[1].recommendation is None
