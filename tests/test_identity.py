"""
Tests for JWT session tokens: issue, resolve, and every rejection path.
"""
from __future__ import annotations

import asyncio
import os
import tempfile
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from teamtasks.domain.common.errors import AuthenticationError
from teamtasks.domain.common.time import to_iso
from teamtasks.domain.users.models import Role
from teamtasks.infra.auth.jwt_provider import JwtIdentityProvider
from teamtasks.infra.clock.system_clock import SystemClock
from teamtasks.infra.db.connection import Database
from teamtasks.infra.db.repo import UserSqliteRepo
from teamtasks.infra.db.schema_version import apply_migrations

SECRET = "test-secret"


async def _run_with_users(test_fn):
    with tempfile.TemporaryDirectory() as tmp:
        db = Database(os.path.join(tmp, "test.db"))
        now_iso = to_iso(datetime.now(timezone.utc))
        await apply_migrations(db, now_iso=now_iso)
        users = UserSqliteRepo(db)
        await test_fn(users, now_iso)


def _provider(users, ttl=timedelta(hours=1)) -> JwtIdentityProvider:
    return JwtIdentityProvider(secret=SECRET, users=users, clock=SystemClock(), ttl=ttl)


def test_issued_token_resolves_to_current_user():
    async def run(users: UserSqliteRepo, now_iso: str):
        user = await users.create("a1", "Ada", "ada@example.com", Role.USER, now_iso)
        provider = _provider(users)
        token = provider.issue(user)

        resolved = await provider.resolve(token)
        assert resolved.id == user.id
        assert resolved.role is Role.USER

        # role comes from the directory, not the token
        await users.set_role(user.id, Role.ADMIN, now_iso)
        assert (await provider.resolve(token)).role is Role.ADMIN

    asyncio.run(_run_with_users(run))


def test_expired_token_rejected():
    async def run(users: UserSqliteRepo, now_iso: str):
        user = await users.create("a1", "Ada", "ada@example.com", Role.USER, now_iso)
        provider = _provider(users, ttl=timedelta(seconds=-30))
        with pytest.raises(AuthenticationError, match="expired"):
            await provider.resolve(provider.issue(user))

    asyncio.run(_run_with_users(run))


def test_wrong_signature_rejected():
    async def run(users: UserSqliteRepo, now_iso: str):
        await users.create("a1", "Ada", "ada@example.com", Role.USER, now_iso)
        forged = jwt.encode({"id": "a1", "role": "admin"}, "other-secret", algorithm="HS256")
        with pytest.raises(AuthenticationError):
            await _provider(users).resolve(forged)

    asyncio.run(_run_with_users(run))


def test_garbage_and_missing_tokens_rejected():
    async def run(users: UserSqliteRepo, now_iso: str):
        provider = _provider(users)
        with pytest.raises(AuthenticationError):
            await provider.resolve("")
        with pytest.raises(AuthenticationError):
            await provider.resolve("not.a.token")

    asyncio.run(_run_with_users(run))


def test_unknown_or_inactive_user_rejected():
    async def run(users: UserSqliteRepo, now_iso: str):
        user = await users.create("a1", "Ada", "ada@example.com", Role.USER, now_iso)
        provider = _provider(users)
        token = provider.issue(user)

        await users.set_active(user.id, False, now_iso)
        with pytest.raises(AuthenticationError, match="inactive"):
            await provider.resolve(token)

        ghost = jwt.encode({"id": "nobody", "role": "user"}, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError, match="not found"):
            await provider.resolve(ghost)

    asyncio.run(_run_with_users(run))
