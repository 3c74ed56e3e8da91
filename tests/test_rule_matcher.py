"""
Tests for commission rule selection and rule predicates.

Covers:
- validate_rule / rule_problem on override field consistency
- evaluate_conditions keys
- earner_key defaults
- RuleMatcher filtering and ordering
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from src.models import CalcMethod, OverrideSource, RuleType, SetterTier
from src.services.errors import RuleConfigurationError
from src.services.rule_matcher import (
    RuleMatcher,
    earner_key,
    evaluate_conditions,
    rule_problem,
    validate_rule,
)


def _make_deal(**kwargs):
    defaults = {
        "id": 1,
        "deal_type": "loan",
        "system_size_kw": Decimal("8"),
        "ppw": Decimal("3.50"),
        "deal_value": Decimal("28000"),
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def _make_rule(**kwargs):
    defaults = {
        "id": 1,
        "rule_type": RuleType.CLOSER_COMMISSION,
        "calc_method": CalcMethod.FLAT_FEE,
        "amount": Decimal("500"),
        "override_level": None,
        "override_source": None,
        "conditions": {},
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ── validate_rule ─────────────────────────────────────────


class TestValidateRule:
    def test_override_with_level_and_source_is_valid(self):
        validate_rule(RuleType.OVERRIDE, CalcMethod.FLAT_FEE, 2, OverrideSource.REPORTS_TO)

    def test_override_without_level_rejected(self):
        with pytest.raises(RuleConfigurationError):
            validate_rule(RuleType.OVERRIDE, CalcMethod.FLAT_FEE, None, OverrideSource.REPORTS_TO)

    def test_override_without_source_rejected(self):
        with pytest.raises(RuleConfigurationError):
            validate_rule(RuleType.OVERRIDE, CalcMethod.FLAT_FEE, 1, None)

    def test_override_level_zero_rejected(self):
        with pytest.raises(RuleConfigurationError):
            validate_rule(RuleType.OVERRIDE, CalcMethod.FLAT_FEE, 0, OverrideSource.REPORTS_TO)

    def test_base_rule_with_override_fields_rejected(self):
        with pytest.raises(RuleConfigurationError):
            validate_rule(RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, 1, None)

    def test_unknown_calc_method_rejected(self):
        with pytest.raises(RuleConfigurationError):
            validate_rule(RuleType.SETTER_COMMISSION, "per_panel", None, None)

    def test_string_values_accepted(self):
        validate_rule("override", "percentage_of_deal", 1, "recruited_by")


class TestRuleProblem:
    def test_valid_rule_has_no_problem(self):
        assert rule_problem(_make_rule()) is None

    def test_malformed_override_reported(self):
        rule = _make_rule(rule_type=RuleType.OVERRIDE, override_level=None)
        assert "override_level" in rule_problem(rule)

    def test_missing_amount_reported(self):
        assert rule_problem(_make_rule(amount=None)) == "amount is missing"


# ── evaluate_conditions ───────────────────────────────────


class TestEvaluateConditions:
    def test_empty_conditions_pass(self):
        assert evaluate_conditions(None, _make_deal(), None)
        assert evaluate_conditions({}, _make_deal(), None)

    def test_setter_tier_match(self):
        setter = SimpleNamespace(setter_tier=SetterTier.VETERAN)
        assert evaluate_conditions({"setter_tier": "Veteran"}, _make_deal(), setter)
        assert evaluate_conditions({"setter_tier": ["Rookie", "Veteran"]}, _make_deal(), setter)

    def test_setter_tier_mismatch(self):
        setter = SimpleNamespace(setter_tier=SetterTier.ROOKIE)
        assert not evaluate_conditions({"setter_tier": "Veteran"}, _make_deal(), setter)

    def test_setter_tier_without_setter_fails(self):
        assert not evaluate_conditions({"setter_tier": "Veteran"}, _make_deal(), None)

    def test_deal_types_case_insensitive(self):
        assert evaluate_conditions({"deal_types": ["LOAN"]}, _make_deal(deal_type="Loan"), None)
        assert not evaluate_conditions({"deal_types": ["cash"]}, _make_deal(), None)

    def test_min_kw(self):
        assert evaluate_conditions({"min_kw": 8}, _make_deal(), None)
        assert not evaluate_conditions({"min_kw": "8.5"}, _make_deal(), None)
        assert not evaluate_conditions({"min_kw": 1}, _make_deal(system_size_kw=None), None)

    def test_ppw_floor(self):
        assert evaluate_conditions({"ppw_floor": 3}, _make_deal(), None)
        assert not evaluate_conditions({"ppw_floor": 4}, _make_deal(), None)

    def test_unknown_keys_ignored(self):
        assert evaluate_conditions({"favourite_colour": "blue"}, _make_deal(), None)


# ── earner_key ────────────────────────────────────────────


class TestEarnerKey:
    def test_recruiting_bonus_defaults_to_closer_recruiter(self):
        rule = _make_rule(rule_type=RuleType.RECRUITING_BONUS)
        assert earner_key(rule) == "closer_recruiter"

    def test_draw_defaults_to_closer(self):
        rule = _make_rule(rule_type=RuleType.DRAW)
        assert earner_key(rule) == "closer"

    def test_explicit_earner(self):
        rule = _make_rule(rule_type=RuleType.RECRUITING_BONUS, conditions={"earner": "setter_recruiter"})
        assert earner_key(rule) == "setter_recruiter"

    def test_unknown_earner_is_none(self):
        rule = _make_rule(rule_type=RuleType.DRAW, conditions={"earner": "office"})
        assert earner_key(rule) is None


# ── RuleMatcher ───────────────────────────────────────────


class TestRuleMatcher:
    async def test_only_active_rules_of_plan(self, db_session, factory):
        plan = await factory.pay_plan()
        other_plan = await factory.pay_plan("Other")
        active = await factory.rule(plan, RuleType.CLOSER_COMMISSION, CalcMethod.FLAT_FEE, "500")
        await factory.rule(
            plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, "100", is_active=False
        )
        await factory.rule(other_plan, RuleType.CLOSER_COMMISSION, CalcMethod.FLAT_FEE, "900")

        rules = await RuleMatcher(db_session).match(plan.id, _make_deal())

        assert [r.id for r in rules] == [active.id]

    async def test_deal_type_allow_list(self, db_session, factory):
        plan = await factory.pay_plan()
        any_type = await factory.rule(plan, RuleType.CLOSER_COMMISSION, CalcMethod.FLAT_FEE, "500")
        loan_only = await factory.rule(
            plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, "100", deal_types=["Loan"]
        )
        await factory.rule(
            plan, RuleType.DRAW, CalcMethod.FLAT_FEE, "50", deal_types=["cash"]
        )

        rules = await RuleMatcher(db_session).match(plan.id, _make_deal(deal_type="loan"))

        assert {r.id for r in rules} == {any_type.id, loan_only.id}

    async def test_deal_without_type_skips_restricted_rules(self, db_session, factory):
        plan = await factory.pay_plan()
        any_type = await factory.rule(plan, RuleType.CLOSER_COMMISSION, CalcMethod.FLAT_FEE, "500")
        await factory.rule(
            plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, "100", deal_types=["loan"]
        )

        rules = await RuleMatcher(db_session).match(plan.id, _make_deal(deal_type=None))

        assert [r.id for r in rules] == [any_type.id]

    async def test_ordered_by_sort_order_then_id(self, db_session, factory):
        plan = await factory.pay_plan()
        second = await factory.rule(
            plan, RuleType.CLOSER_COMMISSION, CalcMethod.FLAT_FEE, "500", sort_order=2
        )
        first = await factory.rule(
            plan, RuleType.SETTER_COMMISSION, CalcMethod.FLAT_FEE, "100", sort_order=1
        )
        third = await factory.rule(
            plan, RuleType.DRAW, CalcMethod.FLAT_FEE, "50", sort_order=2
        )

        rules = await RuleMatcher(db_session).match(plan.id, _make_deal())

        assert [r.id for r in rules] == [first.id, second.id, third.id]
