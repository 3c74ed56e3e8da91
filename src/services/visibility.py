"""
Hierarchical visibility resolution.

An actor's permissions pick exactly one scope tier, checked in strict
precedence order:

    all > region > office > team > self

The first tier whose predicate matches builds the scope from the actor's
live org position. Tiers are never combined. Scopes are computed per
request and never cached, since org position can change between requests.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.permissions import Actor, Permission, has_any_permission
from src.models import LeadershipRole, Office, OfficeLeadership, OverrideSource
from src.services.hierarchy import HierarchyWalker
from src.services.person_graph import PersonGraph

logger = logging.getLogger(__name__)


class EntityKind(str, Enum):
    PERSON = "person"
    DEAL = "deal"
    COMMISSION = "commission"
    RECRUIT = "recruit"
    DOCUMENT = "document"


class ScopeTier(str, Enum):
    ALL = "all"
    REGION = "region"
    OFFICE = "office"
    TEAM = "team"
    SELF = "self"


@dataclass(frozen=True)
class SelfScope:
    person_id: int


@dataclass(frozen=True)
class TeamScope:
    person_ids: frozenset[int]


@dataclass(frozen=True)
class OfficeScope:
    """Also the result of the region tier: every office in the actor's regions."""
    office_ids: frozenset[int]


@dataclass(frozen=True)
class AllScope:
    pass


VisibilityScope = Union[SelfScope, TeamScope, OfficeScope, AllScope]

TierPredicate = Callable[[Actor], bool]


def _sees_all(actor: Actor) -> bool:
    return has_any_permission(actor, Permission.VIEW_ALL_PEOPLE, Permission.MANAGE_ALL_OFFICES)


def _manages_region(actor: Actor) -> bool:
    return has_any_permission(actor, Permission.MANAGE_OWN_REGION)


def _manages_office(actor: Actor) -> bool:
    return has_any_permission(actor, Permission.MANAGE_OWN_OFFICE)


def _manages_team(actor: Actor) -> bool:
    return has_any_permission(actor, Permission.MANAGE_OWN_TEAM)


def _views_office_people(actor: Actor) -> bool:
    return has_any_permission(
        actor, Permission.MANAGE_OWN_OFFICE, Permission.VIEW_OWN_OFFICE_PEOPLE
    )


def _views_team(actor: Actor) -> bool:
    return has_any_permission(actor, Permission.MANAGE_OWN_TEAM, Permission.VIEW_OWN_TEAM)


def _always(actor: Actor) -> bool:
    return True


# Ordered tier predicates. People use the VIEW_* people permissions as well,
# so a team lead browsing the roster sees their office while their deal and
# commission views stay at team tier.
DEFAULT_TIERS: list[tuple[ScopeTier, TierPredicate]] = [
    (ScopeTier.ALL, _sees_all),
    (ScopeTier.REGION, _manages_region),
    (ScopeTier.OFFICE, _manages_office),
    (ScopeTier.TEAM, _manages_team),
    (ScopeTier.SELF, _always),
]

PERSON_TIERS: list[tuple[ScopeTier, TierPredicate]] = [
    (ScopeTier.ALL, _sees_all),
    (ScopeTier.REGION, _manages_region),
    (ScopeTier.OFFICE, _views_office_people),
    (ScopeTier.TEAM, _views_team),
    (ScopeTier.SELF, _always),
]

TIERS_BY_KIND: dict[EntityKind, list[tuple[ScopeTier, TierPredicate]]] = {
    EntityKind.PERSON: PERSON_TIERS,
    EntityKind.DEAL: DEFAULT_TIERS,
    EntityKind.COMMISSION: DEFAULT_TIERS,
    EntityKind.RECRUIT: DEFAULT_TIERS,
    EntityKind.DOCUMENT: DEFAULT_TIERS,
}


def scope_tier(actor: Actor, entity_kind: EntityKind) -> ScopeTier:
    """First tier whose predicate accepts the actor."""
    for tier, predicate in TIERS_BY_KIND[EntityKind(entity_kind)]:
        if predicate(actor):
            return tier
    return ScopeTier.SELF


class VisibilityResolver:
    """Maps an actor to a scope for one entity kind."""

    def __init__(self, db: AsyncSession, max_team_depth: Optional[int] = None):
        self.db = db
        self.graph = PersonGraph(db)
        self.walker = HierarchyWalker(self.graph, max_team_depth=max_team_depth)
        self._builders: dict[ScopeTier, Callable[[Actor], Awaitable[VisibilityScope]]] = {
            ScopeTier.ALL: self._all_scope,
            ScopeTier.REGION: self._region_scope,
            ScopeTier.OFFICE: self._office_scope,
            ScopeTier.TEAM: self._team_scope,
            ScopeTier.SELF: self._self_scope,
        }

    async def resolve(self, actor: Actor, entity_kind: EntityKind) -> Optional[VisibilityScope]:
        """
        Scope for the actor, or None when unrestricted.
        """
        tier = scope_tier(actor, entity_kind)
        scope = await self._builders[tier](actor)
        logger.debug(f"Actor {actor.id} {entity_kind} scope: {tier.value} -> {scope}")
        if isinstance(scope, AllScope):
            return None
        return scope

    async def _all_scope(self, actor: Actor) -> VisibilityScope:
        return AllScope()

    async def _region_scope(self, actor: Actor) -> VisibilityScope:
        region_ids = await self._led_region_ids(actor.id)
        if not region_ids and actor.office_id is not None:
            office = await self.db.get(Office, actor.office_id)
            if office is not None and office.region_id is not None:
                region_ids = {office.region_id}

        if not region_ids:
            if actor.office_id is None:
                return SelfScope(actor.id)
            logger.warning(f"Region actor {actor.id} resolves to no regions")
            return OfficeScope(frozenset())

        result = await self.db.execute(
            select(Office.id).where(Office.region_id.in_(sorted(region_ids)))
        )
        return OfficeScope(frozenset(result.scalars().all()))

    async def _led_region_ids(self, person_id: int) -> set[int]:
        today = date.today()
        result = await self.db.execute(
            select(OfficeLeadership.region_id).where(
                OfficeLeadership.person_id == person_id,
                OfficeLeadership.role_type == LeadershipRole.REGIONAL,
                OfficeLeadership.region_id.is_not(None),
                OfficeLeadership.effective_from <= today,
                or_(
                    OfficeLeadership.effective_to.is_(None),
                    OfficeLeadership.effective_to >= today,
                ),
            )
        )
        return set(result.scalars().all())

    async def _office_scope(self, actor: Actor) -> VisibilityScope:
        if actor.office_id is None:
            return SelfScope(actor.id)
        return OfficeScope(frozenset({actor.office_id}))

    async def _team_scope(self, actor: Actor) -> VisibilityScope:
        downline = await self.walker.walk_down(actor.id, OverrideSource.REPORTS_TO)
        members = await self.graph.get_led_team_member_ids(actor.id)
        return TeamScope(frozenset({actor.id, *downline, *members}))

    async def _self_scope(self, actor: Actor) -> VisibilityScope:
        return SelfScope(actor.id)


async def resolve_visibility_scope(
    db: AsyncSession,
    actor: Actor,
    entity_kind: EntityKind,
    max_team_depth: Optional[int] = None,
) -> Optional[VisibilityScope]:
    return await VisibilityResolver(db, max_team_depth=max_team_depth).resolve(actor, entity_kind)
