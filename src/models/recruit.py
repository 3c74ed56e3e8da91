"""
Recruit model: a candidate in the hiring pipeline.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import BaseModel


class RecruitStatus(str, Enum):
    LEAD = "lead"
    CONTACTED = "contacted"
    INTERVIEWING = "interviewing"
    OFFER_SENT = "offer_sent"
    AGREEMENT_SIGNED = "agreement_signed"
    CONVERTED = "converted"
    REJECTED = "rejected"


class Recruit(BaseModel):
    """Visible to the recruiter and to the target office's scope."""

    __tablename__ = "recruits"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    recruiter_id: Mapped[int] = mapped_column(
        ForeignKey("people.id"),
        nullable=False,
        index=True,
    )
    target_office_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("offices.id"),
        nullable=True,
        index=True,
    )
    target_reports_to_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("people.id"),
        nullable=True,
    )
    converted_person_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("people.id"),
        nullable=True,
    )
    status: Mapped[RecruitStatus] = mapped_column(
        SQLAlchemyEnum(
            RecruitStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=RecruitStatus.LEAD,
        nullable=False,
        index=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
