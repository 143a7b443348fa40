"""
Tests for the identity context
"""

from datetime import date

import pytest

from edtech.core.exceptions import (
    NotAuthenticatedError,
    RemoteUnavailableError,
    ValidationError,
)
from edtech.models.user import Principal, UserRole
from edtech.services.identity import fallback_name

from conftest import ADMIN, STUDENT


@pytest.mark.asyncio
async def test_sign_in_resolves_profile_and_role(identity):
    user = await identity.sign_in(STUDENT)

    assert user.name == "Ana Souza"
    assert user.role == UserRole.STUDENT
    assert user.created_at == date(2024, 1, 1)
    assert identity.is_authenticated


@pytest.mark.asyncio
async def test_admin_role(identity):
    user = await identity.sign_in(ADMIN)
    assert user.is_admin


@pytest.mark.asyncio
async def test_missing_profile_falls_back(identity):
    user = await identity.sign_in(Principal(id="u-new", email="new.person@example.com"))

    assert user.name == "new.person"
    assert user.role == UserRole.STUDENT
    assert user.avatar is None


@pytest.mark.asyncio
async def test_remote_failure_falls_back(identity, gateway):
    gateway.fail_with = RemoteUnavailableError("offline")

    user = await identity.sign_in(STUDENT)

    assert user.name == "ana.souza"
    assert user.role == UserRole.STUDENT


@pytest.mark.asyncio
async def test_unreadable_profile_date_keeps_profile(identity, gateway):
    gateway.tables["profiles"][0]["created_at"] = "not-a-date"

    user = await identity.sign_in(STUDENT)

    assert user.name == "Ana Souza"
    assert user.created_at is None
    assert identity.user is user


def test_fallback_name():
    assert fallback_name("maria@example.com") == "maria"


def test_require_principal_without_session(identity):
    with pytest.raises(NotAuthenticatedError):
        identity.require_principal()


@pytest.mark.asyncio
async def test_listeners_are_notified_on_change(identity):
    seen = []

    async def listener(principal):
        seen.append(principal.id if principal else None)

    unsubscribe = identity.subscribe(listener)
    await identity.sign_in(STUDENT)
    await identity.sign_in(STUDENT)
    await identity.sign_out()
    unsubscribe()
    await identity.sign_in(ADMIN)

    assert seen == ["u-1", None]


@pytest.mark.asyncio
async def test_update_profile(identity, gateway):
    await identity.sign_in(STUDENT)

    user = await identity.update_profile(
        {"name": "  Ana S. Souza ", "avatar": "https://cdn.example.com/ana.png"}
    )

    assert user.name == "Ana S. Souza"
    assert user.avatar == "https://cdn.example.com/ana.png"
    assert gateway.tables["profiles"][0]["name"] == "Ana S. Souza"


@pytest.mark.asyncio
async def test_update_profile_empty_avatar_clears_it(identity, gateway):
    await identity.sign_in(STUDENT)

    user = await identity.update_profile({"name": "Ana", "avatar": ""})

    assert user.avatar is None
    assert gateway.tables["profiles"][0]["avatar"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "data, field",
    [
        ({"name": "A"}, "name"),
        ({"name": "x" * 101}, "name"),
        ({"name": "Ana", "avatar": "not a url"}, "avatar"),
    ],
)
async def test_update_profile_validation(identity, gateway, data, field):
    await identity.sign_in(STUDENT)

    with pytest.raises(ValidationError) as exc_info:
        await identity.update_profile(data)

    assert exc_info.value.field == field
    assert gateway.writes() == []


@pytest.mark.asyncio
async def test_update_profile_requires_principal(identity):
    with pytest.raises(NotAuthenticatedError):
        await identity.update_profile({"name": "Ana"})
