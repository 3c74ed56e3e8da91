"""
Turns a visibility scope into a SQLAlchemy WHERE clause.

The clause is safe to AND with any caller filter. An empty id set
produces ``false()`` so an empty scope can never widen to "everything".
"""

from typing import Iterable, Optional

from sqlalchemy import ColumnElement, and_, false, or_, select, true
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.permissions import Actor
from src.models import Commission, Deal, Document, Person, Recruit, RuleType
from src.services.visibility import (
    AllScope,
    EntityKind,
    OfficeScope,
    SelfScope,
    TeamScope,
    VisibilityScope,
    resolve_visibility_scope,
)

ENTITY_MODELS = {
    EntityKind.PERSON: Person,
    EntityKind.DEAL: Deal,
    EntityKind.COMMISSION: Commission,
    EntityKind.RECRUIT: Recruit,
    EntityKind.DOCUMENT: Document,
}


def _person_restriction(kind: EntityKind, person_ids: Iterable[int]) -> ColumnElement[bool]:
    ids = sorted(person_ids)
    if kind is EntityKind.PERSON:
        return Person.id.in_(ids)
    if kind is EntityKind.DEAL:
        return or_(Deal.setter_id.in_(ids), Deal.closer_id.in_(ids))
    if kind is EntityKind.COMMISSION:
        # closers may see the setter's commission on their own deals
        return or_(
            Commission.person_id.in_(ids),
            and_(
                Commission.commission_type == RuleType.SETTER_COMMISSION.value,
                Commission.deal_id.in_(select(Deal.id).where(Deal.closer_id.in_(ids))),
            ),
        )
    if kind is EntityKind.RECRUIT:
        return Recruit.recruiter_id.in_(ids)
    if kind is EntityKind.DOCUMENT:
        return Document.person_id.in_(ids)
    raise ValueError(f"Unknown entity kind {kind}")


def _office_restriction(kind: EntityKind, office_ids: Iterable[int]) -> ColumnElement[bool]:
    ids = sorted(office_ids)
    if kind is EntityKind.PERSON:
        return Person.office_id.in_(ids)
    if kind is EntityKind.DEAL:
        return Deal.office_id.in_(ids)
    if kind is EntityKind.COMMISSION:
        # commissions inherit the deal's office
        return Commission.deal_id.in_(select(Deal.id).where(Deal.office_id.in_(ids)))
    if kind is EntityKind.RECRUIT:
        return Recruit.target_office_id.in_(ids)
    if kind is EntityKind.DOCUMENT:
        return or_(
            Document.person_id.in_(select(Person.id).where(Person.office_id.in_(ids))),
            Document.recruit_id.in_(select(Recruit.id).where(Recruit.target_office_id.in_(ids))),
        )
    raise ValueError(f"Unknown entity kind {kind}")


def to_query_restriction(
    scope: Optional[VisibilityScope],
    entity_kind: EntityKind,
) -> ColumnElement[bool]:
    """
    WHERE clause for an entity kind under a scope.

    None and AllScope mean unrestricted.
    """
    kind = EntityKind(entity_kind)

    if scope is None or isinstance(scope, AllScope):
        return true()

    if isinstance(scope, SelfScope):
        return _person_restriction(kind, [scope.person_id])

    if isinstance(scope, TeamScope):
        if not scope.person_ids:
            return false()
        return _person_restriction(kind, scope.person_ids)

    if isinstance(scope, OfficeScope):
        if not scope.office_ids:
            return false()
        return _office_restriction(kind, scope.office_ids)

    raise TypeError(f"Unsupported scope {scope!r}")


async def can_view(
    db: AsyncSession,
    actor: Actor,
    entity_kind: EntityKind,
    entity_id: int,
    max_team_depth: Optional[int] = None,
) -> bool:
    """Point check built from the same scope the list endpoints use."""
    kind = EntityKind(entity_kind)
    scope = await resolve_visibility_scope(db, actor, kind, max_team_depth)
    model = ENTITY_MODELS[kind]
    result = await db.execute(
        select(model.id).where(
            model.id == entity_id,
            to_query_restriction(scope, kind),
        )
    )
    return result.scalar_one_or_none() is not None
