"""
Recruit and document schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.models.document import DocumentStatus
from src.models.recruit import RecruitStatus


class RecruitResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    recruiter_id: int
    target_office_id: Optional[int] = None
    target_reports_to_id: Optional[int] = None
    converted_person_id: Optional[int] = None
    status: RecruitStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class RecruitListResponse(BaseModel):
    items: List[RecruitResponse]
    total: int
    page: int
    per_page: int
    pages: int


class DocumentResponse(BaseModel):
    id: int
    title: str
    person_id: Optional[int] = None
    recruit_id: Optional[int] = None
    status: DocumentStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class DocumentListResponse(BaseModel):
    items: List[DocumentResponse]
    total: int
    page: int
    per_page: int
    pages: int
