from __future__ import annotations

import pytest

from helpdesk.db.models import CategoryEnum, RoleEnum, Ticket, User


def _user(roles=None) -> User:
    u = User(email="u@example.com", password_hash="x", first_name="Jean", last_name="Dupont")
    if roles is not None:
        u.roles = roles
    return u


def test_role_set_always_contains_base_role() -> None:
    assert _user().role_set == {RoleEnum.user}
    assert _user(["technician"]).role_set == {RoleEnum.user, RoleEnum.technician}


def test_role_set_ignores_unknown_stored_values() -> None:
    assert _user(["ROLE_ADMIN", "admin"]).role_set == {RoleEnum.user, RoleEnum.admin}


def test_set_roles_stores_base_role() -> None:
    u = _user()
    u.set_roles([RoleEnum.admin])
    assert u.roles == ["admin", "user"]
    assert u.is_admin and u.is_technician


def test_full_name() -> None:
    assert _user().full_name == "Jean Dupont"


def test_creator_cannot_be_reassigned() -> None:
    t = Ticket(title="t", description="d", category=CategoryEnum.other, creator_id=1)
    t.creator_id = 1
    with pytest.raises(ValueError):
        t.creator_id = 2
    assert t.creator_id == 1
