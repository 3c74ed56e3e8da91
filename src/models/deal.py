"""
Deal model: one sold solar system.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, Numeric, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import BaseModel


class DealStatus(str, Enum):
    """Installation pipeline status."""
    SOLD = "sold"
    PENDING = "pending"
    PERMITTED = "permitted"
    SCHEDULED = "scheduled"
    INSTALLED = "installed"
    PTO = "pto"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


# Fields whose change invalidates previously calculated commissions.
PAYABLE_FIELDS = frozenset({
    "setter_id",
    "closer_id",
    "deal_type",
    "system_size_kw",
    "ppw",
    "deal_value",
    "sale_date",
    "close_date",
})


class Deal(BaseModel):
    """
    A sale with a setter (lead generator) and a closer.

    is_self_gen is true when the same person set and closed. It is derived
    on create and kept in sync whenever setter_id or closer_id changes.

    deal_value may be zero when only kW and PPW are known; the API fills it
    as system_size_kw x ppw x 1000.
    """

    __tablename__ = "deals"

    customer_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    setter_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("people.id"),
        nullable=True,
        index=True,
    )
    closer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("people.id"),
        nullable=True,
        index=True,
    )
    is_self_gen: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    office_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("offices.id"),
        nullable=True,
        index=True,
    )

    deal_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Financing product: cash, loan, lease, ppa, ...",
    )
    system_size_kw: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 3),
        nullable=True,
    )
    ppw: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 4),
        nullable=True,
        comment="Price per watt",
    )
    deal_value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        nullable=False,
    )

    sale_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    close_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    status: Mapped[DealStatus] = mapped_column(
        SQLAlchemyEnum(
            DealStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=DealStatus.SOLD,
        nullable=False,
        index=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    @property
    def effective_date(self) -> Optional[date]:
        """Date used to pick the pay plan: close date, else sale date."""
        return self.close_date or self.sale_date

    def __repr__(self) -> str:
        return (
            f"<Deal(id={self.id}, setter={self.setter_id}, "
            f"closer={self.closer_id}, status={self.status})>"
        )
