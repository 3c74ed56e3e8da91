"""
AuditLog model for tracking back-office writes.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, JSON, String, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base


class AuditAction(str, Enum):
    """Types of auditable actions."""
    CREATE_DEAL = "create_deal"
    UPDATE_DEAL = "update_deal"
    CANCEL_DEAL = "cancel_deal"
    RECALCULATE_COMMISSIONS = "recalculate_commissions"
    UPDATE_COMMISSION_STATUS = "update_commission_status"
    CHANGE_MANAGER = "change_manager"
    CHANGE_RECRUITER = "change_recruiter"
    ASSIGN_PAY_PLAN = "assign_pay_plan"


class AuditLog(Base):
    """
    Audit log for every write made through the API.

    Payroll disputes are settled from this table together with
    commission_history, so every mutating endpoint records a row here.
    """

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("people.id"),
        nullable=False,
        index=True,
    )
    action: Mapped[AuditAction] = mapped_column(
        SQLAlchemyEnum(
            AuditAction,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    target_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Type of entity affected (deal, commission, person)",
    )
    target_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="ID of the affected entity",
    )
    action_metadata: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Additional context about the action",
    )
    ip_address: Mapped[Optional[str]] = mapped_column(
        String(45),
        nullable=True,
        comment="IPv4 or IPv6 address",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, user_id={self.user_id}, action={self.action})>"
