"""
Tests for tokens and the role permission matrix.
"""

from datetime import timedelta
from types import SimpleNamespace

from src.auth.jwt import create_access_token, get_token_from_request, verify_token
from src.auth.permissions import (
    ROLE_PERMISSIONS,
    Actor,
    Permission,
    has_any_permission,
    has_permission,
    permissions_for_role,
)


def _request(headers=None, cookies=None):
    return SimpleNamespace(headers=headers or {}, cookies=cookies or {})


class TestTokens:
    def test_round_trip(self):
        assert verify_token(create_access_token(42)) == 42

    def test_expired_token_rejected(self):
        token = create_access_token(42, expires_delta=timedelta(seconds=-1))
        assert verify_token(token) is None

    def test_garbage_rejected(self):
        assert verify_token("not-a-jwt") is None

    def test_bearer_header_preferred(self):
        request = _request({"Authorization": "Bearer abc"}, {"access_token": "cookie"})
        assert get_token_from_request(request) == "abc"

    def test_cookie_fallback(self):
        assert get_token_from_request(_request(cookies={"access_token": "cookie"})) == "cookie"

    def test_no_token(self):
        assert get_token_from_request(_request()) is None


class TestPermissions:
    def test_admin_has_everything_but_own_data_only(self):
        admin = ROLE_PERMISSIONS["Admin"]
        assert Permission.RUN_PAYROLL in admin
        assert Permission.VIEW_OWN_DATA_ONLY not in admin

    def test_regional_roles_do_not_see_all_people(self):
        for role in ("VP", "Divisional", "Regional Manager"):
            assert Permission.VIEW_ALL_PEOPLE not in ROLE_PERMISSIONS[role]
            assert Permission.MANAGE_OWN_REGION in ROLE_PERMISSIONS[role]

    def test_unknown_role_has_nothing(self):
        assert permissions_for_role("Intern") == frozenset()
        assert permissions_for_role(None) == frozenset()

    def test_actor_checks(self):
        actor = Actor.for_role(1, "Team Lead", office_id=3)
        assert has_permission(actor, Permission.MANAGE_OWN_TEAM)
        assert not has_permission(actor, Permission.EDIT_DEALS)
        assert has_any_permission(actor, Permission.EDIT_DEALS, Permission.CREATE_DEALS)
        assert not has_any_permission(actor)
