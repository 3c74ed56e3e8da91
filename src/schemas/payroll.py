"""
Payroll schemas.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class PayrollSummaryResponse(BaseModel):
    """Commission totals for a period, limited to what the caller can see. Void rows are excluded."""

    start_date: date
    end_date: date
    total_amount: Decimal
    commission_count: int
    people_count: int
    pending_amount: Decimal
    approved_amount: Decimal
    paid_amount: Decimal


class MarkPaidRequest(BaseModel):
    commission_ids: List[int] = Field(..., min_length=1, max_length=500)
    reason: Optional[str] = Field(None, max_length=1000)


class MarkPaidResponse(BaseModel):
    paid_ids: List[int]
    count: int
    total_amount: Decimal
