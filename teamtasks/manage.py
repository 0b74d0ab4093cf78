"""
Administrative commands for the user directory.

  python -m teamtasks.manage add-user --name "Ada" --email ada@example.com --role admin
  python -m teamtasks.manage list-users
  python -m teamtasks.manage set-active <user-id> --inactive
  python -m teamtasks.manage issue-token ada@example.com
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from teamtasks.config import load_settings
from teamtasks.container import Services, build_services
from teamtasks.domain.common.errors import DomainError
from teamtasks.domain.common.time import to_iso
from teamtasks.domain.users.models import Role, User


async def _find_user(services: Services, ref: str) -> Optional[User]:
    if "@" in ref:
        return await services.users.get_by_email(ref)
    return await services.users.get(ref)


async def cmd_add_user(services: Services, args: argparse.Namespace) -> int:
    user = await services.users.create(
        user_id=services.ids.new_id(),
        name=args.name,
        email=args.email,
        role=Role(args.role),
        now_iso=to_iso(services.clock.now()),
    )
    print(f"{user.id}\t{user.email}\t{user.role.value}")
    return 0


async def cmd_list_users(services: Services, args: argparse.Namespace) -> int:
    for user in await services.users.list_all(active_only=args.active_only):
        state = "active" if user.is_active else "inactive"
        print(f"{user.id}\t{user.email}\t{user.name}\t{user.role.value}\t{state}")
    return 0


async def cmd_set_active(services: Services, args: argparse.Namespace) -> int:
    user = await _find_user(services, args.user)
    if user is None:
        print(f"User not found: {args.user}", file=sys.stderr)
        return 1
    await services.users.set_active(user.id, not args.inactive, to_iso(services.clock.now()))
    print(f"{user.id}\t{'inactive' if args.inactive else 'active'}")
    return 0


async def cmd_issue_token(services: Services, args: argparse.Namespace) -> int:
    user = await _find_user(services, args.user)
    if user is None:
        print(f"User not found: {args.user}", file=sys.stderr)
        return 1
    if not user.is_active:
        print(f"User is inactive: {args.user}", file=sys.stderr)
        return 1
    print(services.identity.issue(user))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="teamtasks.manage", description="teamtasks user administration")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add-user", help="create a user")
    add.add_argument("--name", required=True)
    add.add_argument("--email", required=True)
    add.add_argument("--role", choices=[r.value for r in Role], default=Role.USER.value)
    add.set_defaults(func=cmd_add_user)

    lst = sub.add_parser("list-users", help="list users")
    lst.add_argument("--active-only", action="store_true")
    lst.set_defaults(func=cmd_list_users)

    act = sub.add_parser("set-active", help="activate or deactivate a user")
    act.add_argument("user", help="user id or e-mail")
    act.add_argument("--inactive", action="store_true")
    act.set_defaults(func=cmd_set_active)

    tok = sub.add_parser("issue-token", help="print a session token for a user")
    tok.add_argument("user", help="user id or e-mail")
    tok.set_defaults(func=cmd_issue_token)

    return parser


async def _run(args: argparse.Namespace) -> int:
    settings = load_settings()
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    services = await build_services(settings)
    try:
        return await args.func(services, args)
    except DomainError as e:
        print(e.message, file=sys.stderr)
        return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
