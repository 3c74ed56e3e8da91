"""Authentication module."""

from src.auth.dependencies import (
    get_current_user,
    require_any_permission,
    require_permission,
)
from src.auth.jwt import create_access_token, verify_token
from src.auth.permissions import Actor, Permission, has_permission

__all__ = [
    "Actor",
    "Permission",
    "has_permission",
    "create_access_token",
    "verify_token",
    "get_current_user",
    "require_permission",
    "require_any_permission",
]
