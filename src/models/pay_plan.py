"""
Pay plans, their time-ranged assignment to people, and commission rules.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import BaseModel


class PayPlan(BaseModel):
    """A named bundle of commission rules."""

    __tablename__ = "pay_plans"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<PayPlan(id={self.id}, name='{self.name}')>"


class PersonPayPlan(BaseModel):
    """
    Assignment of a pay plan to a person for a date range.

    Append-only history: a new assignment ends the open one
    (sets end_date) and inserts a new row. end_date is null for the
    current assignment.
    """

    __tablename__ = "person_pay_plans"

    person_id: Mapped[int] = mapped_column(
        ForeignKey("people.id"),
        nullable=False,
        index=True,
    )
    pay_plan_id: Mapped[int] = mapped_column(
        ForeignKey("pay_plans.id"),
        nullable=False,
    )
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class RuleType(str, Enum):
    """Who a rule pays, and in which situation."""
    SETTER_COMMISSION = "setter_commission"
    CLOSER_COMMISSION = "closer_commission"
    SELF_GEN_COMMISSION = "self_gen_commission"
    OVERRIDE = "override"
    RECRUITING_BONUS = "recruiting_bonus"
    DRAW = "draw"


class CalcMethod(str, Enum):
    """How a rule's amount turns into money."""
    FLAT_PER_KW = "flat_per_kw"                  # amount x system_size_kw
    PERCENTAGE_OF_DEAL = "percentage_of_deal"    # amount (fraction) x deal_value
    FLAT_FEE = "flat_fee"                        # amount verbatim


class OverrideSource(str, Enum):
    """Which parent pointer an override walks."""
    REPORTS_TO = "reports_to"
    RECRUITED_BY = "recruited_by"


class CommissionRule(BaseModel):
    """
    One line of a pay plan.

    Override rules must carry both override_level (>= 1) and
    override_source; every other rule type must carry neither.
    This is validated when rules are written and re-checked by
    the calculator, which skips malformed rules instead of failing.

    conditions is a JSON predicate, see src.services.rule_matcher.
    """

    __tablename__ = "commission_rules"

    pay_plan_id: Mapped[int] = mapped_column(
        ForeignKey("pay_plans.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    rule_type: Mapped[RuleType] = mapped_column(
        SQLAlchemyEnum(
            RuleType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    calc_method: Mapped[CalcMethod] = mapped_column(
        SQLAlchemyEnum(
            CalcMethod,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 4),
        nullable=False,
    )
    applies_to_role_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("roles.id"),
        nullable=True,
    )
    override_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    override_source: Mapped[Optional[OverrideSource]] = mapped_column(
        SQLAlchemyEnum(
            OverrideSource,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    deal_types: Mapped[Optional[list]] = mapped_column(
        JSON,
        nullable=True,
        comment="Allow-list of deal types; null or empty means all",
    )
    conditions: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        default=dict,
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        index=True,
    )

    @property
    def commission_type(self) -> str:
        """Commission.commission_type written for rows produced by this rule."""
        if self.rule_type == RuleType.OVERRIDE:
            return f"override_{self.override_level}"
        return self.rule_type.value

    def __repr__(self) -> str:
        return (
            f"<CommissionRule(id={self.id}, type={self.rule_type}, "
            f"method={self.calc_method}, amount={self.amount})>"
        )
