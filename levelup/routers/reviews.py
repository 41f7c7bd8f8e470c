from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Literal, Optional

from levelup.core.permissions import Capability, Operation
from levelup.database import get_db
from levelup.dependencies import require_capability
from levelup.schemas.review import (
    OpinionSaveRequest,
    OpinionSaveResponse,
    ReviewDetailResponse,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
    SubmissionRequest,
    SubmissionResponse,
    SubmissionStatusResponse,
)
from levelup.services.opinion_service import OpinionService
from levelup.services.review_service import ReviewService
from levelup.services.submission_service import SubmissionService

router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.get("", response_model=ReviewListResponse)
def list_reviews(
    year: int,
    department: Optional[str] = None,
    team: Optional[str] = None,
    target: Literal["all", "own", "other"] = "all",
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.VIEW_REVIEWS)),
):
    return ReviewService(db).list_reviews(capability, year, department=department, team=team, target=target)


# /submit routes are declared ahead of /{review_id} so they are matched first.
@router.get("/submit", response_model=SubmissionStatusResponse)
def submission_status(
    year: int,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.VIEW_REVIEWS)),
):
    return SubmissionService(db).status(capability.identity, year)


@router.post("/submit", response_model=SubmissionResponse)
def submit_review(
    body: SubmissionRequest,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.SUBMIT_REVIEW)),
):
    return SubmissionService(db).submit(capability, body.year, body.department)


@router.delete("/submit", response_model=SubmissionResponse)
def cancel_submission(
    year: int,
    department: Optional[str] = Query(None, description="Administrators only"),
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.SUBMIT_REVIEW)),
):
    return SubmissionService(db).cancel(capability, year, department)


@router.get("/{review_id}/opinions", response_model=ReviewDetailResponse)
def get_review_opinions(
    review_id: int,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.VIEW_REVIEWS)),
):
    return ReviewService(db).get_with_opinions(review_id)


@router.post("/{review_id}/opinions", response_model=OpinionSaveResponse)
def save_opinion(
    review_id: int,
    body: OpinionSaveRequest,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.SAVE_OPINION)),
):
    """
    Save the caller's opinion. ``review_updated`` reports whether the
    authoritative recommendation on the review actually changed.
    """
    return OpinionService(db).save_opinion(
        capability,
        review_id,
        opinion_text=body.opinion_text,
        recommendation=body.recommendation,
        on_behalf_of=body.on_behalf_of,
    )


@router.patch("/{review_id}", response_model=ReviewResponse)
def update_review(
    review_id: int,
    body: ReviewUpdate,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.UPDATE_REVIEW)),
):
    return ReviewService(db).update_competency(capability, review_id, body.model_dump(exclude_unset=True))
