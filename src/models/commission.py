"""
Commission rows and their status history.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, BaseModel


class CommissionStatus(str, Enum):
    """
    Payout lifecycle.

    pending -> approved -> paid
    pending | approved | paid -> void
    """
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    VOID = "void"


class Commission(BaseModel):
    """
    One payout line for one person on one deal.

    commission_type is the producing rule's type, or ``override_<level>``
    for override rows. calc_details keeps the inputs used so a payout can
    be explained later.
    """

    __tablename__ = "commissions"

    deal_id: Mapped[int] = mapped_column(
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    person_id: Mapped[int] = mapped_column(
        ForeignKey("people.id"),
        nullable=False,
        index=True,
    )
    commission_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    commission_rule_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("commission_rules.id", ondelete="SET NULL"),
        nullable=True,
    )
    pay_plan_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("pay_plans.id", ondelete="SET NULL"),
        nullable=True,
    )
    calc_details: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Inputs used by the calculation",
    )
    status: Mapped[CommissionStatus] = mapped_column(
        SQLAlchemyEnum(
            CommissionStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=CommissionStatus.PENDING,
        nullable=False,
        index=True,
    )
    status_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Commission(id={self.id}, deal={self.deal_id}, person={self.person_id}, "
            f"type='{self.commission_type}', amount={self.amount}, status={self.status})>"
        )


class CommissionHistory(Base):
    """Append-only log of commission status changes."""

    __tablename__ = "commission_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    commission_id: Mapped[int] = mapped_column(
        ForeignKey("commissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    previous_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changed_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("people.id"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
