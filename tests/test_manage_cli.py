"""
Tests for the user administration commands, run against a temp DB.

Run with: python -m pytest tests/test_manage_cli.py -v
"""
from __future__ import annotations

import asyncio
import os
import tempfile

import pytest

from teamtasks.config import load_settings
from teamtasks.container import build_services
from teamtasks.domain.common.errors import AuthenticationError
from teamtasks.domain.users.models import Role
from teamtasks.manage import main


@pytest.fixture
def env_db(monkeypatch):
    with tempfile.TemporaryDirectory() as tmp:
        monkeypatch.setenv("JWT_SECRET", "cli-secret")
        monkeypatch.setenv("DB_PATH", os.path.join(tmp, "nested", "cli.db"))
        yield tmp


async def _resolve(token: str):
    services = await build_services(load_settings())
    return await services.identity.resolve(token)


def test_add_user_then_issue_token_resolves(env_db, capsys):
    assert main(["add-user", "--name", "Ada", "--email", "Ada@Example.com", "--role", "admin"]) == 0
    user_id, email, role = capsys.readouterr().out.strip().split("\t")
    assert email == "ada@example.com"
    assert role == "admin"

    assert main(["issue-token", "ada@example.com"]) == 0
    token = capsys.readouterr().out.strip()

    user = asyncio.run(_resolve(token))
    assert user.id == user_id
    assert user.role is Role.ADMIN


def test_issue_token_by_id(env_db, capsys):
    main(["add-user", "--name", "Bob", "--email", "bob@example.com"])
    user_id = capsys.readouterr().out.split("\t")[0]

    assert main(["issue-token", user_id]) == 0
    assert asyncio.run(_resolve(capsys.readouterr().out.strip())).id == user_id


def test_list_users_and_set_active(env_db, capsys):
    main(["add-user", "--name", "Ada", "--email", "ada@example.com"])
    main(["add-user", "--name", "Bob", "--email", "bob@example.com"])
    capsys.readouterr()

    assert main(["set-active", "bob@example.com", "--inactive"]) == 0
    assert capsys.readouterr().out.strip().endswith("\tinactive")

    assert main(["list-users"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    assert any("bob@example.com" in line and line.endswith("\tinactive") for line in lines)

    assert main(["list-users", "--active-only"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert [line.split("\t")[1] for line in lines] == ["ada@example.com"]


def test_inactive_or_unknown_user_gets_no_token(env_db, capsys):
    main(["add-user", "--name", "Bob", "--email", "bob@example.com"])
    assert main(["issue-token", "bob@example.com"]) == 0
    token = capsys.readouterr().out.strip().splitlines()[-1]

    main(["set-active", "bob@example.com", "--inactive"])
    capsys.readouterr()

    assert main(["issue-token", "bob@example.com"]) == 1
    assert "inactive" in capsys.readouterr().err

    assert main(["issue-token", "nobody@example.com"]) == 1
    assert "not found" in capsys.readouterr().err

    with pytest.raises(AuthenticationError):
        asyncio.run(_resolve(token))


def test_duplicate_email_is_reported(env_db, capsys):
    assert main(["add-user", "--name", "Ada", "--email", "ada@example.com"]) == 0
    assert main(["add-user", "--name", "Ada 2", "--email", "ADA@example.com"]) == 1
    assert "already exists" in capsys.readouterr().err
