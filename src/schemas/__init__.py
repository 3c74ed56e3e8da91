"""Pydantic schemas for request/response validation."""

from src.schemas.commission import (
    CommissionListResponse,
    CommissionResponse,
    CommissionStatusUpdate,
)
from src.schemas.deal import (
    CalculateResponse,
    DealCreate,
    DealListResponse,
    DealResponse,
    DealUpdate,
    DealWriteResponse,
)
from src.schemas.payroll import MarkPaidRequest, MarkPaidResponse, PayrollSummaryResponse
from src.schemas.person import (
    ChainResponse,
    ChangeManagerRequest,
    ChangeRecruiterRequest,
    PersonDetailResponse,
    PersonListResponse,
    PersonResponse,
)
from src.schemas.recruiting import (
    DocumentListResponse,
    DocumentResponse,
    RecruitListResponse,
    RecruitResponse,
)

__all__ = [
    # Deal
    "DealCreate",
    "DealUpdate",
    "DealResponse",
    "DealWriteResponse",
    "DealListResponse",
    "CalculateResponse",
    # Commission
    "CommissionResponse",
    "CommissionListResponse",
    "CommissionStatusUpdate",
    # Payroll
    "PayrollSummaryResponse",
    "MarkPaidRequest",
    "MarkPaidResponse",
    # Person
    "PersonResponse",
    "PersonDetailResponse",
    "PersonListResponse",
    "ChainResponse",
    "ChangeManagerRequest",
    "ChangeRecruiterRequest",
    # Recruiting
    "RecruitResponse",
    "RecruitListResponse",
    "DocumentResponse",
    "DocumentListResponse",
]
