"""
FastAPI dependencies for authentication and permission checks.
"""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.jwt import get_token_from_request, verify_token
from src.auth.permissions import (
    Actor,
    Permission,
    has_any_permission,
    has_permission,
    permissions_for_role,
)
from src.db import get_db
from src.models import Person, PersonStatus, Role


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Actor:
    """
    Resolve the authenticated caller to an Actor.

    Raises 401 if not authenticated, 403 if the person is no longer active.
    Role and office are read fresh on every request since org position
    can change between requests.
    """
    token = get_token_from_request(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    person_id = verify_token(token)
    if person_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    person = await db.get(Person, person_id)
    if not person:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if person.status in (PersonStatus.INACTIVE, PersonStatus.TERMINATED):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    role = await db.get(Role, person.role_id)
    return Actor(
        id=person.id,
        office_id=person.office_id,
        role_name=role.name if role else None,
        role_level=role.level if role else 1,
        permissions=permissions_for_role(role.name if role else None),
    )


def require_permission(permission: Permission):
    """
    Dependency factory: the caller must hold ``permission``.

    Usage:
        actor: Actor = Depends(require_permission(Permission.EDIT_DEALS))
    """

    async def checker(current_user: Actor = Depends(get_current_user)) -> Actor:
        if not has_permission(current_user, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permission denied",
            )
        return current_user

    return checker


def require_any_permission(*permissions: Permission):
    """Dependency factory: the caller must hold at least one of ``permissions``."""

    async def checker(current_user: Actor = Depends(get_current_user)) -> Actor:
        if not has_any_permission(current_user, *permissions):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permission denied",
            )
        return current_user

    return checker
