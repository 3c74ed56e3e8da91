"""
Commission schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from src.models.commission import CommissionStatus


class CommissionResponse(BaseModel):
    id: int
    deal_id: int
    person_id: int
    commission_type: str
    amount: Decimal
    status: CommissionStatus
    status_reason: Optional[str] = None
    commission_rule_id: Optional[int] = None
    pay_plan_id: Optional[int] = None
    calc_details: Optional[dict] = None
    paid_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CommissionListResponse(BaseModel):
    items: List[CommissionResponse]
    total: int
    page: int
    per_page: int
    pages: int


class CommissionStatusUpdate(BaseModel):
    """Request to move a commission through its workflow."""

    status: CommissionStatus
    reason: Optional[str] = Field(None, max_length=1000)
