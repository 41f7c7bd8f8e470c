from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Any, Dict, List, Optional


class RecalculateRequest(BaseModel):
    employee_ids: Optional[List[int]] = None
    auto_select_year: Optional[int] = None


class JobResponse(BaseModel):
    id: int
    job_type: str
    status: str
    payload: Optional[Dict[str, Any]] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
