"""
Tests for the commission status workflow and pay plan assignment.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from src.models import (
    Commission,
    CommissionHistory,
    CommissionStatus,
    PersonPayPlan,
)
from src.services.commission import (
    STATUS_TRANSITIONS,
    assign_pay_plan,
    transition_commission,
    void_commissions_for_deal,
)
from src.services.errors import InvalidStatusTransition
from src.services.person_graph import PersonGraph


async def _commission(db, factory, status=CommissionStatus.PENDING, amount="100"):
    office = await factory.office()
    closer = await factory.person("Closer", office=office)
    deal = await factory.deal(None, closer)
    commission = Commission(
        deal_id=deal.id,
        person_id=closer.id,
        commission_type="closer_commission",
        amount=Decimal(amount),
        status=status,
    )
    db.add(commission)
    await db.flush()
    return commission


# ── transitions ───────────────────────────────────────────


class TestTransitions:
    def test_void_is_terminal(self):
        assert STATUS_TRANSITIONS[CommissionStatus.VOID] == frozenset()

    def test_every_live_status_can_be_voided(self):
        for status in (CommissionStatus.PENDING, CommissionStatus.APPROVED, CommissionStatus.PAID):
            assert CommissionStatus.VOID in STATUS_TRANSITIONS[status]

    async def test_pending_to_approved_to_paid(self, db_session, factory):
        commission = await _commission(db_session, factory)

        await transition_commission(db_session, commission, CommissionStatus.APPROVED)
        await transition_commission(db_session, commission, CommissionStatus.PAID, reason="June payroll")
        await db_session.flush()

        assert commission.status == CommissionStatus.PAID
        assert commission.paid_at is not None
        assert commission.status_reason == "June payroll"

    async def test_skipping_approval_rejected(self, db_session, factory):
        commission = await _commission(db_session, factory)

        with pytest.raises(InvalidStatusTransition):
            await transition_commission(db_session, commission, CommissionStatus.PAID)
        assert commission.status == CommissionStatus.PENDING

    async def test_void_cannot_be_revived(self, db_session, factory):
        commission = await _commission(db_session, factory, status=CommissionStatus.VOID)

        with pytest.raises(InvalidStatusTransition):
            await transition_commission(db_session, commission, CommissionStatus.PENDING)

    async def test_history_row_written(self, db_session, factory):
        commission = await _commission(db_session, factory)
        actor = await factory.person("Approver", role="Admin")

        await transition_commission(
            db_session, commission, CommissionStatus.APPROVED, actor_id=actor.id, reason="ok"
        )
        await db_session.flush()

        result = await db_session.execute(
            select(CommissionHistory).where(CommissionHistory.commission_id == commission.id)
        )
        history = result.scalars().all()
        assert [(h.previous_status, h.new_status, h.changed_by_id) for h in history] == [
            ("pending", "approved", actor.id)
        ]


# ── void_commissions_for_deal ─────────────────────────────


class TestVoidForDeal:
    async def test_voids_all_live_rows(self, db_session, factory):
        commission = await _commission(db_session, factory, status=CommissionStatus.APPROVED)
        db_session.add(Commission(
            deal_id=commission.deal_id,
            person_id=commission.person_id,
            commission_type="override_1",
            amount=Decimal("50"),
            status=CommissionStatus.VOID,
        ))
        await db_session.flush()

        voided = await void_commissions_for_deal(db_session, commission.deal_id)

        assert voided == 1
        assert commission.status == CommissionStatus.VOID
        assert commission.status_reason == "deal cancelled"


# ── assign_pay_plan ───────────────────────────────────────


class TestAssignPayPlan:
    async def test_new_assignment_ends_previous(self, db_session, factory):
        person = await factory.person("P")
        old_plan = await factory.pay_plan("Old")
        new_plan = await factory.pay_plan("New")
        first = await assign_pay_plan(db_session, person.id, old_plan.id, date(2024, 1, 1))

        second = await assign_pay_plan(db_session, person.id, new_plan.id, date(2024, 7, 1))

        assert first.end_date == date(2024, 6, 30)
        assert second.end_date is None
        graph = PersonGraph(db_session)
        assert (await graph.get_current_assignment(person.id, date(2024, 3, 1))).id == first.id
        assert (await graph.get_current_assignment(person.id, date(2024, 8, 1))).id == second.id

    async def test_history_is_appended(self, db_session, factory):
        person = await factory.person("P")
        plan = await factory.pay_plan()
        await assign_pay_plan(db_session, person.id, plan.id, date(2024, 1, 1))
        await assign_pay_plan(db_session, person.id, plan.id, date(2024, 2, 1))

        result = await db_session.execute(
            select(PersonPayPlan).where(PersonPayPlan.person_id == person.id)
        )
        assert len(result.scalars().all()) == 2

    async def test_no_assignment_before_first_plan(self, db_session, factory):
        person = await factory.person("P")
        plan = await factory.pay_plan()
        await assign_pay_plan(db_session, person.id, plan.id, date(2024, 5, 1))

        graph = PersonGraph(db_session)
        assert await graph.get_current_assignment(person.id, date(2024, 4, 30)) is None
