"""
Deal request/response schemas.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from src.models.deal import DealStatus


class DealCreate(BaseModel):
    """
    New deal. is_self_gen is derived from setter/closer, deal_value from
    kW x PPW when omitted or zero.
    """

    customer_name: Optional[str] = Field(None, max_length=200)
    setter_id: Optional[int] = None
    closer_id: int
    office_id: Optional[int] = None
    deal_type: Optional[str] = Field(None, max_length=50)
    system_size_kw: Optional[Decimal] = Field(None, ge=0)
    ppw: Optional[Decimal] = Field(None, ge=0)
    deal_value: Optional[Decimal] = Field(None, ge=0)
    sale_date: Optional[date] = None
    close_date: Optional[date] = None
    status: DealStatus = DealStatus.SOLD
    notes: Optional[str] = Field(None, max_length=2000)


class DealUpdate(BaseModel):
    """Partial update; only fields that are sent are applied."""

    customer_name: Optional[str] = Field(None, max_length=200)
    setter_id: Optional[int] = None
    closer_id: Optional[int] = None
    office_id: Optional[int] = None
    deal_type: Optional[str] = Field(None, max_length=50)
    system_size_kw: Optional[Decimal] = Field(None, ge=0)
    ppw: Optional[Decimal] = Field(None, ge=0)
    deal_value: Optional[Decimal] = Field(None, ge=0)
    sale_date: Optional[date] = None
    close_date: Optional[date] = None
    status: Optional[DealStatus] = None
    notes: Optional[str] = Field(None, max_length=2000)


class DealResponse(BaseModel):
    id: int
    customer_name: Optional[str]
    setter_id: Optional[int]
    closer_id: Optional[int]
    is_self_gen: bool
    office_id: Optional[int]
    deal_type: Optional[str]
    system_size_kw: Optional[Decimal]
    ppw: Optional[Decimal]
    deal_value: Decimal
    sale_date: Optional[date]
    close_date: Optional[date]
    status: DealStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DealWriteResponse(BaseModel):
    """Deal plus the outcome of the commission run it triggered."""

    deal: DealResponse
    commissions_written: int = 0
    commissions_voided: int = 0


class DealListResponse(BaseModel):
    """Paginated deal list."""

    items: List[DealResponse]
    total: int
    page: int
    per_page: int
    pages: int


class CalculateResponse(BaseModel):
    deal_id: int
    commissions_written: int
