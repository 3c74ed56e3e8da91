"""
Document model: onboarding paperwork attached to a person or a recruit.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import BaseModel


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    SIGNED = "signed"
    DECLINED = "declined"
    VOIDED = "voided"


class Document(BaseModel):
    """Either person_id or recruit_id is set (both may be, after conversion)."""

    __tablename__ = "documents"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    person_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("people.id"),
        nullable=True,
        index=True,
    )
    recruit_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("recruits.id"),
        nullable=True,
        index=True,
    )
    status: Mapped[DocumentStatus] = mapped_column(
        SQLAlchemyEnum(
            DocumentStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=DocumentStatus.DRAFT,
        nullable=False,
    )
    external_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Envelope id at the e-signature provider",
    )
