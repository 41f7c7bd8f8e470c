from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import Optional

from levelup.core.limiter import BULK_LIMIT, limiter
from levelup.core.permissions import Capability, Operation
from levelup.database import get_db
from levelup.dependencies import require_capability
from levelup.schemas.candidate import (
    AutoSelectRequest,
    AutoSelectResponse,
    CandidateCreate,
    CandidateResponse,
    CandidateUpdate,
    RosterResponse,
)
from levelup.services.candidate_service import CandidateService
from levelup.services.eligibility import MeetMode

router = APIRouter(prefix="/candidates", tags=["Candidates"])


@router.get("", response_model=RosterResponse)
def list_candidates(
    year: int,
    meet_type: MeetMode = MeetMode.BOTH,
    department: Optional[str] = None,
    team: Optional[str] = None,
    keyword: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.VIEW_ROSTER)),
):
    """Eligibility roster for ``year``. Listed employees get a candidate record on first view."""
    return CandidateService(db).list_roster(
        year, meet_type=meet_type, department=department, team=team,
        keyword=keyword, page=page, page_size=page_size,
    )


@router.post("/auto-select", response_model=AutoSelectResponse)
@limiter.limit(BULK_LIMIT)
def auto_select(
    request: Request,
    body: AutoSelectRequest,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.AUTO_SELECT)),
):
    return CandidateService(db).auto_select(body.year, policy=body.policy, capability=capability)


@router.post("", response_model=CandidateResponse, status_code=status.HTTP_201_CREATED)
def add_candidate(
    body: CandidateCreate,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.CURATE_ROSTER)),
):
    return CandidateService(db).add_manual(capability, body.employee_id, body.year)


@router.patch("/{candidate_id}", response_model=CandidateResponse)
def update_candidate(
    candidate_id: int,
    body: CandidateUpdate,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.CURATE_ROSTER)),
):
    return CandidateService(db).set_review_target(capability, candidate_id, body.is_review_target)


@router.delete("/{candidate_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_candidate(
    candidate_id: int,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.DELETE_CANDIDATE)),
):
    CandidateService(db).delete(capability, candidate_id)
