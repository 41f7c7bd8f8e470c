from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from levelup.core.permissions import Capability, Operation
from levelup.database import get_db
from levelup.dependencies import require_capability
from levelup.schemas.bonus_penalty import (
    BonusPenaltyListResponse,
    BonusPenaltySaveRequest,
    BonusPenaltySaveResponse,
)
from levelup.services.bonus_penalty_service import BonusPenaltyService

router = APIRouter(prefix="/bonus-penalty", tags=["Bonus / Penalty"])


@router.get("", response_model=BonusPenaltyListResponse)
def list_bonus_penalty(
    employee_id: int,
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.MANAGE_SCORES)),
):
    return BonusPenaltyService(db).list_items(employee_id, year or date.today().year)


@router.post("", response_model=BonusPenaltySaveResponse)
def save_bonus_penalty(
    body: BonusPenaltySaveRequest,
    db: Session = Depends(get_db),
    capability: Capability = Depends(require_capability(Operation.MANAGE_SCORES)),
):
    """Replace every ledger line of (employee, year) with ``items``."""
    return BonusPenaltyService(db).replace(
        capability, body.employee_id, body.year,
        [item.model_dump(mode="json") for item in body.items], body.note,
    )
