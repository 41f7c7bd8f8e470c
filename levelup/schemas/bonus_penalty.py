from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import datetime
from typing import List, Optional

from levelup.models.bonus_penalty import BonusPenaltyType


class BonusPenaltyItem(BaseModel):
    type: BonusPenaltyType
    category: str = Field(min_length=1)
    points: float

    @model_validator(mode="after")
    def sign_by_type(self):
        # Stored signed; the type decides the sign whatever the client sent.
        self.points = abs(self.points) if self.type == BonusPenaltyType.BONUS else -abs(self.points)
        return self


class BonusPenaltySaveRequest(BaseModel):
    employee_id: int
    year: int
    items: List[BonusPenaltyItem] = []
    note: Optional[str] = None


class BonusPenaltyResponse(BaseModel):
    id: int
    employee_id: int
    year: int
    type: str
    category: str
    points: float
    note: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BonusPenaltyListResponse(BaseModel):
    employee_id: int
    year: int
    items: List[BonusPenaltyResponse]
    bonus_total: float
    penalty_total: float


class BonusPenaltySaveResponse(BonusPenaltyListResponse):
    net_total: float
    point_cumulative: Optional[float] = None
