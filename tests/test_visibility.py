"""
Tests for hierarchical visibility.

Covers:
- Tier precedence from permissions
- Scope building for region / office / team / self
- WHERE clauses per entity kind, including empty scopes
- Point checks via can_view
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import false, select, true

from src.auth.permissions import Actor, Permission
from src.models import Commission, Document, Recruit
from src.services.scope_filter import ENTITY_MODELS, can_view, to_query_restriction
from src.services.visibility import (
    AllScope,
    EntityKind,
    OfficeScope,
    ScopeTier,
    SelfScope,
    TeamScope,
    resolve_visibility_scope,
    scope_tier,
)


async def _visible_ids(db, actor, kind):
    scope = await resolve_visibility_scope(db, actor, kind, max_team_depth=10)
    model = ENTITY_MODELS[kind]
    result = await db.execute(
        select(model.id).where(to_query_restriction(scope, kind)).order_by(model.id)
    )
    return set(result.scalars().all())


def _actor(person, role_name):
    return Actor.for_role(person.id, role_name, office_id=person.office_id)


async def _org(factory):
    """
    West region: Phoenix and Tucson. East region: Boston.

    Phoenix: area director AD, team lead TL with direct report R1, and M
    who reports to AD but sits on TL's team. Tucson: R2. Boston: R3.
    """
    west = await factory.region("West")
    east = await factory.region("East")
    phoenix = await factory.office("Phoenix", west)
    tucson = await factory.office("Tucson", west)
    boston = await factory.office("Boston", east)

    admin = await factory.person("Admin", role="Admin", office=phoenix)
    rm = await factory.person("RM", role="Regional Manager", office=phoenix)
    ad = await factory.person("AD", role="Area Director", office=phoenix, reports_to=rm)
    tl = await factory.person("TL", role="Team Lead", office=phoenix, reports_to=ad)
    r1 = await factory.person("R1", office=phoenix, reports_to=tl)
    m = await factory.person("M", office=phoenix, reports_to=ad)
    r2 = await factory.person("R2", office=tucson)
    r3 = await factory.person("R3", office=boston)
    await factory.team(tl, [m])

    return SimpleNamespace(
        west=west, east=east, phoenix=phoenix, tucson=tucson, boston=boston,
        admin=admin, rm=rm, ad=ad, tl=tl, r1=r1, m=m, r2=r2, r3=r3,
    )


# ── tier precedence ───────────────────────────────────────


class TestScopeTier:
    @pytest.mark.parametrize(
        "role_name, expected",
        [
            ("Admin", ScopeTier.ALL),
            ("VP", ScopeTier.REGION),
            ("Regional Manager", ScopeTier.REGION),
            ("Area Director", ScopeTier.OFFICE),
            ("Team Lead", ScopeTier.TEAM),
            ("Sales Rep", ScopeTier.SELF),
            ("Unknown Role", ScopeTier.SELF),
        ],
    )
    def test_deal_tiers_by_role(self, role_name, expected):
        actor = Actor.for_role(1, role_name, office_id=1)
        assert scope_tier(actor, EntityKind.DEAL) == expected

    def test_team_lead_sees_office_people(self):
        actor = Actor.for_role(1, "Team Lead", office_id=1)
        assert scope_tier(actor, EntityKind.PERSON) == ScopeTier.OFFICE

    def test_higher_tier_wins(self):
        actor = Actor(
            id=1,
            office_id=1,
            role_name=None,
            permissions=frozenset({Permission.MANAGE_OWN_TEAM, Permission.MANAGE_OWN_OFFICE}),
        )
        assert scope_tier(actor, EntityKind.DEAL) == ScopeTier.OFFICE

    def test_view_all_people_is_all(self):
        actor = Actor(id=1, office_id=None, role_name=None,
                      permissions=frozenset({Permission.VIEW_ALL_PEOPLE}))
        assert scope_tier(actor, EntityKind.COMMISSION) == ScopeTier.ALL


# ── scope building ────────────────────────────────────────


class TestResolveScope:
    async def test_admin_is_unrestricted(self, db_session, factory):
        org = await _org(factory)
        scope = await resolve_visibility_scope(db_session, _actor(org.admin, "Admin"), EntityKind.DEAL)
        assert scope is None

    async def test_region_from_own_office(self, db_session, factory):
        org = await _org(factory)
        scope = await resolve_visibility_scope(
            db_session, _actor(org.rm, "Regional Manager"), EntityKind.DEAL
        )
        assert scope == OfficeScope(frozenset({org.phoenix.id, org.tucson.id}))

    async def test_region_from_leadership_rows(self, db_session, factory):
        org = await _org(factory)
        await factory.regional_leadership(org.rm, org.east)
        scope = await resolve_visibility_scope(
            db_session, _actor(org.rm, "Regional Manager"), EntityKind.DEAL
        )
        assert scope == OfficeScope(frozenset({org.boston.id}))

    async def test_region_actor_without_office_falls_back_to_self(self, db_session, factory):
        vp = await factory.person("VP", role="VP")
        scope = await resolve_visibility_scope(db_session, _actor(vp, "VP"), EntityKind.DEAL)
        assert scope == SelfScope(vp.id)

    async def test_region_actor_in_office_without_region_sees_nothing(self, db_session, factory):
        orphan_office = await factory.office("Nowhere")
        vp = await factory.person("VP", role="VP", office=orphan_office)
        await factory.deal(vp, vp)

        actor = _actor(vp, "VP")
        scope = await resolve_visibility_scope(db_session, actor, EntityKind.DEAL)

        assert scope == OfficeScope(frozenset())
        assert await _visible_ids(db_session, actor, EntityKind.DEAL) == set()

    async def test_office_actor(self, db_session, factory):
        org = await _org(factory)
        scope = await resolve_visibility_scope(
            db_session, _actor(org.ad, "Area Director"), EntityKind.DEAL
        )
        assert scope == OfficeScope(frozenset({org.phoenix.id}))

    async def test_office_actor_without_office_is_self(self, db_session, factory):
        ad = await factory.person("AD", role="Area Director")
        scope = await resolve_visibility_scope(db_session, _actor(ad, "Area Director"), EntityKind.DEAL)
        assert scope == SelfScope(ad.id)

    async def test_team_includes_downline_and_led_team(self, db_session, factory):
        org = await _org(factory)
        scope = await resolve_visibility_scope(
            db_session, _actor(org.tl, "Team Lead"), EntityKind.DEAL, max_team_depth=10
        )
        assert scope == TeamScope(frozenset({org.tl.id, org.r1.id, org.m.id}))

    async def test_rep_is_self(self, db_session, factory):
        org = await _org(factory)
        scope = await resolve_visibility_scope(db_session, _actor(org.r1, "Sales Rep"), EntityKind.DEAL)
        assert scope == SelfScope(org.r1.id)


# ── query restrictions ────────────────────────────────────


class TestQueryRestriction:
    def test_all_scope_is_true(self):
        clause = to_query_restriction(AllScope(), EntityKind.DEAL)
        assert clause.compare(true())

    def test_empty_team_is_false(self):
        clause = to_query_restriction(TeamScope(frozenset()), EntityKind.PERSON)
        assert clause.compare(false())

    async def test_people_by_office(self, db_session, factory):
        org = await _org(factory)
        visible = await _visible_ids(db_session, _actor(org.ad, "Area Director"), EntityKind.PERSON)
        assert visible == {org.admin.id, org.rm.id, org.ad.id, org.tl.id, org.r1.id, org.m.id}

    async def test_deal_visible_to_setter_or_closer(self, db_session, factory):
        org = await _org(factory)
        as_setter = await factory.deal(org.r1, org.r2)
        as_closer = await factory.deal(org.r3, org.r1)
        unrelated = await factory.deal(org.r2, org.r3)

        visible = await _visible_ids(db_session, _actor(org.r1, "Sales Rep"), EntityKind.DEAL)

        assert visible == {as_setter.id, as_closer.id}
        assert unrelated.id not in visible

    async def test_team_lead_sees_team_deals(self, db_session, factory):
        org = await _org(factory)
        team_deal = await factory.deal(org.m, org.r2)
        other = await factory.deal(org.r2, org.r3)

        visible = await _visible_ids(db_session, _actor(org.tl, "Team Lead"), EntityKind.DEAL)

        assert team_deal.id in visible
        assert other.id not in visible

    async def test_commission_office_follows_deal(self, db_session, factory):
        org = await _org(factory)
        phoenix_deal = await factory.deal(org.r1, org.r1, office_id=org.phoenix.id)
        boston_rep_row = Commission(
            deal_id=phoenix_deal.id, person_id=org.r3.id,
            commission_type="override_1", amount=Decimal("10"),
        )
        db_session.add(boston_rep_row)
        await db_session.flush()

        visible = await _visible_ids(db_session, _actor(org.ad, "Area Director"), EntityKind.COMMISSION)

        assert boston_rep_row.id in visible

    async def test_closer_sees_setter_commission_on_own_deal(self, db_session, factory):
        org = await _org(factory)
        deal = await factory.deal(org.r2, org.r1)
        setter_row = Commission(
            deal_id=deal.id, person_id=org.r2.id,
            commission_type="setter_commission", amount=Decimal("100"),
        )
        override_row = Commission(
            deal_id=deal.id, person_id=org.tl.id,
            commission_type="override_1", amount=Decimal("50"),
        )
        db_session.add_all([setter_row, override_row])
        await db_session.flush()

        visible = await _visible_ids(db_session, _actor(org.r1, "Sales Rep"), EntityKind.COMMISSION)

        assert setter_row.id in visible
        assert override_row.id not in visible

    async def test_recruits_by_target_office(self, db_session, factory):
        org = await _org(factory)
        local = Recruit(first_name="L", last_name="Cand", recruiter_id=org.r2.id,
                        target_office_id=org.phoenix.id)
        remote = Recruit(first_name="R", last_name="Cand", recruiter_id=org.r3.id,
                         target_office_id=org.boston.id)
        db_session.add_all([local, remote])
        await db_session.flush()

        visible = await _visible_ids(db_session, _actor(org.ad, "Area Director"), EntityKind.RECRUIT)

        assert visible == {local.id}

    async def test_documents_by_person_or_recruit_office(self, db_session, factory):
        org = await _org(factory)
        recruit = Recruit(first_name="L", last_name="Cand", recruiter_id=org.r3.id,
                          target_office_id=org.phoenix.id)
        db_session.add(recruit)
        await db_session.flush()
        person_doc = Document(title="W-9", person_id=org.r1.id)
        recruit_doc = Document(title="Offer", recruit_id=recruit.id)
        remote_doc = Document(title="W-9", person_id=org.r3.id)
        db_session.add_all([person_doc, recruit_doc, remote_doc])
        await db_session.flush()

        visible = await _visible_ids(db_session, _actor(org.ad, "Area Director"), EntityKind.DOCUMENT)

        assert visible == {person_doc.id, recruit_doc.id}


# ── can_view ──────────────────────────────────────────────


class TestCanView:
    async def test_rep_cannot_view_other_reps_deal(self, db_session, factory):
        org = await _org(factory)
        own = await factory.deal(org.r1, org.r1)
        other = await factory.deal(org.r2, org.r2)
        actor = _actor(org.r1, "Sales Rep")

        assert await can_view(db_session, actor, EntityKind.DEAL, own.id)
        assert not await can_view(db_session, actor, EntityKind.DEAL, other.id)

    async def test_regional_manager_sees_region_only(self, db_session, factory):
        org = await _org(factory)
        actor = _actor(org.rm, "Regional Manager")

        assert await can_view(db_session, actor, EntityKind.PERSON, org.r2.id)
        assert not await can_view(db_session, actor, EntityKind.PERSON, org.r3.id)

    async def test_missing_entity_is_not_viewable(self, db_session, factory):
        org = await _org(factory)
        assert not await can_view(db_session, _actor(org.admin, "Admin"), EntityKind.DEAL, 999999)
