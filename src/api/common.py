"""
Helpers shared by the API routers: settings store access, visibility
checks and pagination.
"""

from typing import Any, Optional

from fastapi import HTTPException, Request, status
from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.permissions import Actor
from src.services.scope_filter import can_view, to_query_restriction
from src.services.settings_store import SettingsStore
from src.services.visibility import EntityKind, resolve_visibility_scope


def get_settings_store(request: Request) -> SettingsStore:
    """FastAPI dependency: the process-wide SettingsStore kept on app.state."""
    store = getattr(request.app.state, "settings_store", None)
    if store is None:
        store = SettingsStore()
        request.app.state.settings_store = store
    return store


def permission_denied() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Permission denied",
    )


def not_found(entity: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{entity} not found",
    )


async def visibility_restriction(
    db: AsyncSession,
    actor: Actor,
    kind: EntityKind,
    store: SettingsStore,
) -> ColumnElement[bool]:
    """WHERE clause limiting a list query to what the actor may see."""
    team_depth = await store.max_team_depth(db)
    scope = await resolve_visibility_scope(db, actor, kind, max_team_depth=team_depth)
    return to_query_restriction(scope, kind)


async def ensure_can_view(
    db: AsyncSession,
    actor: Actor,
    kind: EntityKind,
    entity_id: int,
    store: SettingsStore,
) -> None:
    """Raise 403 unless the entity is inside the actor's scope."""
    team_depth = await store.max_team_depth(db)
    if not await can_view(db, actor, kind, entity_id, max_team_depth=team_depth):
        raise permission_denied()


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int,
    per_page: int,
    order_by: Optional[Any] = None,
) -> tuple[list, int, int]:
    """
    Run a paginated query.

    Returns:
        (rows, total, pages)
    """
    total = await db.scalar(select(func.count()).select_from(query.subquery())) or 0

    if order_by is not None:
        query = query.order_by(order_by)
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    rows = list(result.scalars().all())
    pages = (total + per_page - 1) // per_page if total else 0
    return rows, total, pages
