"""
Static role -> permission matrix and the Actor projection.

Permission checks are plain set lookups; nothing here touches the
database.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Permission(str, Enum):
    MANAGE_SETTINGS = "manage_settings"
    MANAGE_ALL_OFFICES = "manage_all_offices"
    MANAGE_OWN_REGION = "manage_own_region"
    MANAGE_OWN_OFFICE = "manage_own_office"
    MANAGE_OWN_TEAM = "manage_own_team"
    VIEW_ALL_PEOPLE = "view_all_people"
    VIEW_OWN_OFFICE_PEOPLE = "view_own_office_people"
    VIEW_OWN_TEAM = "view_own_team"
    CREATE_RECRUITS = "create_recruits"
    CREATE_DEALS = "create_deals"
    EDIT_DEALS = "edit_deals"
    DELETE_DEALS = "delete_deals"
    APPROVE_COMMISSIONS = "approve_commissions"
    RUN_PAYROLL = "run_payroll"
    VIEW_OWN_DATA_ONLY = "view_own_data_only"


_REGION_LEADER = frozenset({
    Permission.MANAGE_OWN_REGION,
    Permission.VIEW_OWN_OFFICE_PEOPLE,
    Permission.VIEW_OWN_TEAM,
    Permission.CREATE_RECRUITS,
    Permission.CREATE_DEALS,
    Permission.EDIT_DEALS,
    Permission.APPROVE_COMMISSIONS,
})

ROLE_PERMISSIONS: dict[str, frozenset[Permission]] = {
    "Admin": frozenset(Permission) - {Permission.VIEW_OWN_DATA_ONLY},
    "VP": _REGION_LEADER,
    "Divisional": _REGION_LEADER,
    "Regional Manager": _REGION_LEADER,
    "Area Director": frozenset({
        Permission.MANAGE_OWN_OFFICE,
        Permission.VIEW_OWN_OFFICE_PEOPLE,
        Permission.VIEW_OWN_TEAM,
        Permission.CREATE_RECRUITS,
        Permission.CREATE_DEALS,
        Permission.EDIT_DEALS,
        Permission.APPROVE_COMMISSIONS,
    }),
    "Team Lead": frozenset({
        Permission.MANAGE_OWN_TEAM,
        Permission.VIEW_OWN_OFFICE_PEOPLE,
        Permission.VIEW_OWN_TEAM,
        Permission.CREATE_RECRUITS,
        Permission.CREATE_DEALS,
    }),
    "Sales Rep": frozenset({
        Permission.CREATE_RECRUITS,
        Permission.CREATE_DEALS,
        Permission.VIEW_OWN_DATA_ONLY,
    }),
}


def permissions_for_role(role_name: Optional[str]) -> frozenset[Permission]:
    """Unknown roles get nothing."""
    if role_name is None:
        return frozenset()
    return ROLE_PERMISSIONS.get(role_name, frozenset())


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as seen by the visibility resolver."""
    id: int
    office_id: Optional[int]
    role_name: Optional[str]
    role_level: int = 1
    permissions: frozenset[Permission] = field(default_factory=frozenset)

    @classmethod
    def for_role(
        cls,
        id: int,
        role_name: str,
        office_id: Optional[int] = None,
        role_level: int = 1,
    ) -> "Actor":
        return cls(
            id=id,
            office_id=office_id,
            role_name=role_name,
            role_level=role_level,
            permissions=permissions_for_role(role_name),
        )


def has_permission(actor: Actor, permission: Permission) -> bool:
    return permission in actor.permissions


def has_any_permission(actor: Actor, *permissions: Permission) -> bool:
    return any(p in actor.permissions for p in permissions)
