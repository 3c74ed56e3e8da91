"""
Person schemas.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from src.models.pay_plan import OverrideSource
from src.models.person import PersonStatus, SetterTier


class PersonResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    role_id: int
    office_id: Optional[int]
    reports_to_id: Optional[int]
    recruited_by_id: Optional[int]
    status: PersonStatus
    setter_tier: Optional[SetterTier] = None
    hire_date: Optional[date] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PersonDetailResponse(PersonResponse):
    """Person with the lookups the detail page shows."""

    role_name: Optional[str] = None
    role_level: Optional[int] = None
    office_name: Optional[str] = None
    manager_name: Optional[str] = None
    recruiter_name: Optional[str] = None
    pay_plan_id: Optional[int] = None
    pay_plan_name: Optional[str] = None


class PersonListResponse(BaseModel):
    items: List[PersonResponse]
    total: int
    page: int
    per_page: int
    pages: int


class ChainLinkResponse(BaseModel):
    level: int
    person_id: int


class ChainResponse(BaseModel):
    person_id: int
    source: OverrideSource
    chain: List[ChainLinkResponse]
    truncated: bool


class ChangeManagerRequest(BaseModel):
    new_manager_id: Optional[int] = None
    reason: Optional[str] = Field(None, max_length=500)


class ChangeRecruiterRequest(BaseModel):
    new_recruiter_id: Optional[int] = None
    reason: Optional[str] = Field(None, max_length=500)
