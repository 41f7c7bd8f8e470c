from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from levelup.core.permissions import Capability, Operation
from levelup.database import get_db
from levelup.dependencies import require_capability
from levelup.schemas.confirmation import (
    ConfirmationListResponse,
    ConfirmationUpdate,
    ConfirmationUpdateResponse,
)
from levelup.services.confirmation_service import ConfirmationService

router = APIRouter(prefix="/confirmation", tags=["Confirmation"])


@router.get("", response_model=ConfirmationListResponse)
def list_confirmation(
    year: int,
    department: Optional[str] = None,
    team: Optional[str] = None,
    unfiltered: bool = False,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.VIEW_CONFIRMATION)),
):
    return ConfirmationService(db).list_roster(
        capability, year, department=department, team=team, unfiltered=unfiltered,
    )


@router.patch("/{candidate_id}", response_model=ConfirmationUpdateResponse)
def update_confirmation(
    candidate_id: int,
    body: ConfirmationUpdate,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.CONFIRM)),
):
    return ConfirmationService(db).transition(capability, candidate_id, body.status, override=body.override)
