"""
Commission rule selection and rule-level predicates.

RuleMatcher is deal-scoped: it answers "which rules of this pay plan are
candidates for this deal". Earner-scoped checks (role filter, conditions
keyed on a person) happen in the calculator.

Supported ``conditions`` keys (all optional, all must pass, unknown keys
are ignored):
    setter_tier        str or list, setter's tier must be in it
    deal_types         list, lower-cased deal type must be in it
    min_kw             number, system_size_kw >= min_kw
    ppw_floor          number, ppw >= ppw_floor
    skip_non_positive  bool, drop rows whose amount is <= 0
    earner             recruiting_bonus / draw only: setter, closer,
                       setter_recruiter or closer_recruiter
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import CalcMethod, CommissionRule, Deal, OverrideSource, Person, RuleType
from src.services.errors import RuleConfigurationError

logger = logging.getLogger(__name__)

EARNER_KEYS = ("setter", "closer", "setter_recruiter", "closer_recruiter")

DEFAULT_EARNER = {
    RuleType.RECRUITING_BONUS: "closer_recruiter",
    RuleType.DRAW: "closer",
}


def validate_rule(
    rule_type: RuleType | str,
    calc_method: CalcMethod | str,
    override_level: Optional[int],
    override_source: OverrideSource | str | None,
) -> None:
    """
    Raise RuleConfigurationError unless the override fields match the rule type.

    Called when rules are written; the calculator uses rule_problem() to
    re-check at run time without raising.
    """
    try:
        rule_type = RuleType(rule_type)
    except ValueError:
        raise RuleConfigurationError(f"Unknown rule type '{rule_type}'")
    try:
        CalcMethod(calc_method)
    except ValueError:
        raise RuleConfigurationError(f"Unknown calc method '{calc_method}'")

    if rule_type == RuleType.OVERRIDE:
        if override_level is None or override_source is None:
            raise RuleConfigurationError(
                "Override rules require both override_level and override_source"
            )
        if override_level < 1:
            raise RuleConfigurationError("override_level must be >= 1")
        try:
            OverrideSource(override_source)
        except ValueError:
            raise RuleConfigurationError(f"Unknown override source '{override_source}'")
    elif override_level is not None or override_source is not None:
        raise RuleConfigurationError(
            f"{rule_type.value} rules must not set override_level or override_source"
        )


def rule_problem(rule: CommissionRule) -> Optional[str]:
    """Reason the rule is malformed, or None if it is usable."""
    try:
        validate_rule(
            rule.rule_type,
            rule.calc_method,
            rule.override_level,
            rule.override_source,
        )
    except RuleConfigurationError as e:
        return str(e)
    if rule.amount is None:
        return "amount is missing"
    return None


def _as_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def evaluate_conditions(
    conditions: Optional[dict],
    deal: Deal,
    setter: Optional[Person],
) -> bool:
    """Deal-and-setter predicate stored on a rule. Empty conditions always pass."""
    if not conditions:
        return True

    tiers = conditions.get("setter_tier")
    if tiers:
        if isinstance(tiers, str):
            tiers = [tiers]
        tier = setter.setter_tier if setter else None
        tier_value = tier.value if hasattr(tier, "value") else tier
        if tier_value not in tiers:
            return False

    allowed_types = conditions.get("deal_types")
    if allowed_types:
        deal_type = (deal.deal_type or "").lower()
        if deal_type not in [str(t).lower() for t in allowed_types]:
            return False

    min_kw = _as_decimal(conditions.get("min_kw"))
    if min_kw is not None:
        kw = _as_decimal(deal.system_size_kw)
        if kw is None or kw < min_kw:
            return False

    ppw_floor = _as_decimal(conditions.get("ppw_floor"))
    if ppw_floor is not None:
        ppw = _as_decimal(deal.ppw)
        if ppw is None or ppw < ppw_floor:
            return False

    return True


def earner_key(rule: CommissionRule) -> Optional[str]:
    """Which deal participant a recruiting_bonus / draw rule pays."""
    conditions = rule.conditions or {}
    key = conditions.get("earner") or DEFAULT_EARNER.get(RuleType(rule.rule_type))
    if key not in EARNER_KEYS:
        logger.warning(f"Rule {rule.id} has unknown earner '{key}'")
        return None
    return key


def _matches_deal_type(rule: CommissionRule, deal: Deal) -> bool:
    if not rule.deal_types:
        return True
    if deal.deal_type is None:
        return False
    return deal.deal_type.lower() in [str(t).lower() for t in rule.deal_types]


class RuleMatcher:
    """Selects the candidate rules of a pay plan for a deal."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def match(self, pay_plan_id: int, deal: Deal) -> list[CommissionRule]:
        """
        Active rules of the plan whose deal_types allow the deal's type.

        Ordered by sort_order, then created_at, then id so repeated runs
        apply rules in the same sequence.
        """
        result = await self.db.execute(
            select(CommissionRule)
            .where(
                CommissionRule.pay_plan_id == pay_plan_id,
                CommissionRule.is_active.is_(True),
            )
            .order_by(
                CommissionRule.sort_order.asc(),
                CommissionRule.created_at.asc(),
                CommissionRule.id.asc(),
            )
        )
        rules = [rule for rule in result.scalars().all() if _matches_deal_type(rule, deal)]
        logger.debug(f"Pay plan {pay_plan_id}: {len(rules)} candidate rules for deal {deal.id}")
        return rules
