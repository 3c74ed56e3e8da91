"""
Commission calculation for deals.

Flow for one deal:
1. Resolve the closer's pay plan effective on the deal date
2. RuleMatcher picks the candidate rules
3. Base rules pay the setter / closer / self-gen earner
4. Override rules pay exactly the person N levels up the chosen chain
5. Rows replace the previous pending calculation for the deal

Money is Decimal throughout and rounded to cents half-up.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, assert_never

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import (
    CalcMethod,
    Commission,
    CommissionHistory,
    CommissionRule,
    CommissionStatus,
    Deal,
    DealStatus,
    OverrideSource,
    Person,
    PersonPayPlan,
    RuleType,
)
from src.services.errors import DealNotFoundError, InvalidStatusTransition
from src.services.hierarchy import HierarchyWalker, WalkResult
from src.services.person_graph import PersonGraph
from src.services.rule_matcher import RuleMatcher, earner_key, evaluate_conditions, rule_problem

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
KW_TO_WATTS = Decimal("1000")
SUPERSEDED_REASON = "superseded by recalculation"

# Allowed commission status moves. void is terminal.
STATUS_TRANSITIONS: dict[CommissionStatus, frozenset[CommissionStatus]] = {
    CommissionStatus.PENDING: frozenset({CommissionStatus.APPROVED, CommissionStatus.VOID}),
    CommissionStatus.APPROVED: frozenset({CommissionStatus.PAID, CommissionStatus.VOID}),
    CommissionStatus.PAID: frozenset({CommissionStatus.VOID}),
    CommissionStatus.VOID: frozenset(),
}


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_amount(rule: CommissionRule, deal: Deal) -> Decimal:
    """
    Money owed by one rule on one deal.

    - flat_per_kw: amount x system_size_kw (missing kW counts as 0)
    - percentage_of_deal: amount x deal_value, amount is a fraction (0.05 = 5%)
    - flat_fee: amount
    """
    method = CalcMethod(rule.calc_method)
    rate = _to_decimal(rule.amount)

    if method is CalcMethod.FLAT_PER_KW:
        raw = rate * _to_decimal(deal.system_size_kw)
    elif method is CalcMethod.PERCENTAGE_OF_DEAL:
        raw = rate * _to_decimal(deal.deal_value)
    elif method is CalcMethod.FLAT_FEE:
        raw = rate
    else:
        assert_never(method)

    return raw.quantize(CENT, rounding=ROUND_HALF_UP)


def derive_deal_value(system_size_kw: Any, ppw: Any) -> Decimal:
    """kW x $/W x 1000, or 0 when either input is missing."""
    if system_size_kw is None or ppw is None:
        return Decimal("0")
    return (_to_decimal(system_size_kw) * _to_decimal(ppw) * KW_TO_WATTS).quantize(
        CENT, rounding=ROUND_HALF_UP
    )


def _formula(rule: CommissionRule, deal: Deal, amount: Decimal) -> str:
    method = CalcMethod(rule.calc_method)
    if method is CalcMethod.FLAT_PER_KW:
        return f"{rule.amount} x {deal.system_size_kw or 0} kW = {amount}"
    if method is CalcMethod.PERCENTAGE_OF_DEAL:
        return f"{rule.amount} x {deal.deal_value} = {amount}"
    return f"flat {amount}"


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


@dataclass
class _Participants:
    setter: Optional[Person]
    closer: Optional[Person]
    is_self_gen: bool


class CommissionCalculator:
    """
    Writes the commission rows of one deal.

    Only flushes; committing is the caller's job (see
    calculate_commissions_safely).
    """

    def __init__(self, db: AsyncSession, max_depth: Optional[int] = None):
        self.db = db
        self.graph = PersonGraph(db)
        self.walker = HierarchyWalker(self.graph, max_depth=max_depth)
        self.matcher = RuleMatcher(db)

    async def calculate_commissions_for_deal(self, deal_id: int) -> int:
        """
        (Re)calculate commissions for a deal.

        Safe to re-run: pending rows from a previous run are replaced,
        approved ones voided, paid ones kept and not paid twice.

        Returns:
            Number of commission rows written by this run
        """
        deal = await self.db.get(Deal, deal_id)
        if deal is None:
            raise DealNotFoundError(deal_id)

        if deal.status == DealStatus.CANCELLED:
            logger.info(f"Deal {deal_id} is cancelled, not calculating commissions")
            return 0

        paid_pairs = await self._supersede_existing(deal.id)

        if deal.closer_id is None:
            logger.info(f"Deal {deal_id} has no closer, no pay plan to apply")
            return 0

        as_of = deal.effective_date or date.today()
        assignment = await self.graph.get_current_assignment(deal.closer_id, as_of)
        if assignment is None:
            logger.info(
                f"Closer {deal.closer_id} has no pay plan on {as_of}, "
                f"no commissions for deal {deal_id}"
            )
            return 0

        rules = []
        for rule in await self.matcher.match(assignment.pay_plan_id, deal):
            problem = rule_problem(rule)
            if problem:
                logger.warning(f"Skipping malformed commission rule {rule.id}: {problem}")
                continue
            rules.append(rule)

        participants = _Participants(
            setter=await self.graph.get_person(deal.setter_id),
            closer=await self.graph.get_person(deal.closer_id),
            is_self_gen=deal.setter_id is not None and deal.setter_id == deal.closer_id,
        )
        chains = await self._walk_override_chains(rules, deal, participants)

        written = 0
        for rule in rules:
            commission = await self._apply_rule(
                rule, deal, participants, chains, assignment.pay_plan_id, paid_pairs
            )
            if commission is not None:
                self.db.add(commission)
                written += 1

        await self.db.flush()
        logger.info(f"Deal {deal_id}: wrote {written} commission rows")
        return written

    async def _supersede_existing(self, deal_id: int) -> set[tuple[int, str]]:
        """
        Clear the previous calculation.

        Returns (person_id, commission_type) pairs that are already paid.
        """
        result = await self.db.execute(
            select(Commission).where(Commission.deal_id == deal_id).order_by(Commission.id)
        )
        paid_pairs: set[tuple[int, str]] = set()
        for row in result.scalars().all():
            if row.status == CommissionStatus.PENDING:
                await self.db.delete(row)
            elif row.status == CommissionStatus.APPROVED:
                await transition_commission(
                    self.db, row, CommissionStatus.VOID, reason=SUPERSEDED_REASON
                )
            elif row.status == CommissionStatus.PAID:
                paid_pairs.add((row.person_id, row.commission_type))
        await self.db.flush()
        return paid_pairs

    async def _walk_override_chains(
        self,
        rules: list[CommissionRule],
        deal: Deal,
        participants: _Participants,
    ) -> dict[OverrideSource, WalkResult]:
        """One walk per source, only as deep as the deepest override rule needs."""
        depth: dict[OverrideSource, int] = {}
        for rule in rules:
            if rule.rule_type == RuleType.OVERRIDE:
                source = OverrideSource(rule.override_source)
                depth[source] = max(depth.get(source, 0), rule.override_level)

        chains: dict[OverrideSource, WalkResult] = {}
        for source, levels in depth.items():
            anchor = self._override_anchor(source, deal, participants)
            if anchor is None:
                continue
            chains[source] = await self.walker.walk(anchor, source, levels)
        return chains

    @staticmethod
    def _override_anchor(
        source: OverrideSource,
        deal: Deal,
        participants: _Participants,
    ) -> Optional[int]:
        if source == OverrideSource.REPORTS_TO:
            return deal.closer_id
        if participants.is_self_gen:
            return deal.setter_id
        return deal.closer_id

    async def _resolve_earner(
        self,
        rule: CommissionRule,
        deal: Deal,
        participants: _Participants,
        chains: dict[OverrideSource, WalkResult],
    ) -> Optional[int]:
        rule_type = RuleType(rule.rule_type)

        if rule_type is RuleType.SETTER_COMMISSION:
            return None if participants.is_self_gen else deal.setter_id
        elif rule_type is RuleType.CLOSER_COMMISSION:
            return None if participants.is_self_gen else deal.closer_id
        elif rule_type is RuleType.SELF_GEN_COMMISSION:
            return deal.closer_id if participants.is_self_gen else None
        elif rule_type is RuleType.OVERRIDE:
            chain = chains.get(OverrideSource(rule.override_source))
            return chain.at_level(rule.override_level) if chain else None
        elif rule_type is RuleType.RECRUITING_BONUS or rule_type is RuleType.DRAW:
            key = earner_key(rule)
            if key == "setter":
                return deal.setter_id
            if key == "closer":
                return deal.closer_id
            if key == "setter_recruiter":
                return participants.setter.recruited_by_id if participants.setter else None
            if key == "closer_recruiter":
                return participants.closer.recruited_by_id if participants.closer else None
            return None
        else:
            assert_never(rule_type)

    async def _apply_rule(
        self,
        rule: CommissionRule,
        deal: Deal,
        participants: _Participants,
        chains: dict[OverrideSource, WalkResult],
        pay_plan_id: int,
        paid_pairs: set[tuple[int, str]],
    ) -> Optional[Commission]:
        if not evaluate_conditions(rule.conditions, deal, participants.setter):
            logger.debug(f"Rule {rule.id} conditions not met for deal {deal.id}")
            return None

        earner_id = await self._resolve_earner(rule, deal, participants, chains)
        if earner_id is None:
            logger.debug(f"Rule {rule.id} resolved no earner on deal {deal.id}")
            return None

        if rule.applies_to_role_id is not None:
            earner = await self.graph.get_person(earner_id)
            if earner is None or earner.role_id != rule.applies_to_role_id:
                logger.debug(f"Rule {rule.id} role filter excludes person {earner_id}")
                return None

        amount = compute_amount(rule, deal)
        if amount <= 0 and (rule.conditions or {}).get("skip_non_positive"):
            logger.debug(f"Rule {rule.id} amount {amount} skipped as non-positive")
            return None

        commission_type = rule.commission_type
        if (earner_id, commission_type) in paid_pairs:
            logger.info(
                f"Deal {deal.id}: {commission_type} for person {earner_id} already paid, "
                f"not writing a new row"
            )
            return None

        return Commission(
            deal_id=deal.id,
            person_id=earner_id,
            commission_type=commission_type,
            amount=amount,
            status=CommissionStatus.PENDING,
            commission_rule_id=rule.id,
            pay_plan_id=pay_plan_id,
            calc_details=self._calc_details(rule, deal, participants, amount),
        )

    @staticmethod
    def _calc_details(
        rule: CommissionRule,
        deal: Deal,
        participants: _Participants,
        amount: Decimal,
    ) -> dict:
        setter_tier = participants.setter.setter_tier if participants.setter else None
        details = {
            "formula": _formula(rule, deal, amount),
            "rule": {
                "id": rule.id,
                "name": rule.name,
                "type": _enum_value(rule.rule_type),
                "method": _enum_value(rule.calc_method),
                "amount": str(rule.amount),
            },
            "deal": {
                "type": deal.deal_type,
                "value": str(deal.deal_value),
                "system_size_kw": str(deal.system_size_kw) if deal.system_size_kw is not None else None,
                "ppw": str(deal.ppw) if deal.ppw is not None else None,
            },
            "setter_tier": _enum_value(setter_tier),
            "is_self_gen": participants.is_self_gen,
        }
        if rule.rule_type == RuleType.OVERRIDE:
            details["override_level"] = rule.override_level
            details["override_source"] = _enum_value(rule.override_source)
        return details


async def calculate_commissions_safely(
    db: AsyncSession,
    deal_id: int,
    max_depth: Optional[int] = None,
) -> int:
    """
    Calculate and commit, never raising.

    The deal itself must already be committed. On failure the partial
    calculation is rolled back, the error logged and 0 returned, so a
    broken rule never blocks deal entry. Re-run through the calculate
    endpoint once the cause is fixed.
    """
    try:
        count = await CommissionCalculator(db, max_depth=max_depth).calculate_commissions_for_deal(
            deal_id
        )
        await db.commit()
        return count
    except Exception:
        await db.rollback()
        logger.exception(f"Commission calculation failed for deal {deal_id}")
        return 0


async def transition_commission(
    db: AsyncSession,
    commission: Commission,
    new_status: CommissionStatus,
    actor_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> Commission:
    """
    Move a commission through pending -> approved -> paid, or to void.

    Raises:
        InvalidStatusTransition: if the move is not allowed
    """
    new_status = CommissionStatus(new_status)
    current = CommissionStatus(commission.status)
    if new_status not in STATUS_TRANSITIONS[current]:
        raise InvalidStatusTransition(current.value, new_status.value)

    commission.status = new_status
    commission.status_reason = reason
    if new_status is CommissionStatus.PAID:
        commission.paid_at = datetime.now(timezone.utc)

    db.add(CommissionHistory(
        commission_id=commission.id,
        previous_status=current.value,
        new_status=new_status.value,
        reason=reason,
        changed_by_id=actor_id,
    ))
    return commission


async def void_commissions_for_deal(
    db: AsyncSession,
    deal_id: int,
    reason: str = "deal cancelled",
    actor_id: Optional[int] = None,
) -> int:
    """Void every non-void commission of a deal. Returns how many were voided."""
    result = await db.execute(
        select(Commission).where(
            Commission.deal_id == deal_id,
            Commission.status != CommissionStatus.VOID,
        )
    )
    voided = 0
    for commission in result.scalars().all():
        await transition_commission(
            db, commission, CommissionStatus.VOID, actor_id=actor_id, reason=reason
        )
        voided += 1
    await db.flush()
    logger.info(f"Deal {deal_id}: voided {voided} commissions ({reason})")
    return voided


async def assign_pay_plan(
    db: AsyncSession,
    person_id: int,
    pay_plan_id: int,
    effective_date: date,
    notes: Optional[str] = None,
) -> PersonPayPlan:
    """
    Append a pay plan assignment.

    Open assignments that started earlier are ended the day before.
    History rows are never edited otherwise.
    """
    result = await db.execute(
        select(PersonPayPlan).where(
            PersonPayPlan.person_id == person_id,
            PersonPayPlan.end_date.is_(None),
            PersonPayPlan.effective_date < effective_date,
        )
    )
    for open_assignment in result.scalars().all():
        open_assignment.end_date = effective_date - timedelta(days=1)

    assignment = PersonPayPlan(
        person_id=person_id,
        pay_plan_id=pay_plan_id,
        effective_date=effective_date,
        notes=notes,
    )
    db.add(assignment)
    await db.flush()
    return assignment
