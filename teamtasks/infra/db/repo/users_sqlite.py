# teamtasks/infra/db/repo/users_sqlite.py
from __future__ import annotations

from typing import Iterable, Optional, Sequence

import aiosqlite

from teamtasks.domain.common.errors import ConflictError
from teamtasks.domain.common.time import from_iso
from teamtasks.domain.users.models import Role, User
from teamtasks.domain.users.ports import UserDirectory
from teamtasks.infra.db.connection import Database

_USER_COLUMNS = "id, name, email, role, is_active, created_at"


def _row_to_user(row: aiosqlite.Row) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        role=Role(row["role"]),
        is_active=bool(row["is_active"]),
        created_at=from_iso(row["created_at"]),
    )


class UserSqliteRepo(UserDirectory):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def create(
        self,
        user_id: str,
        name: str,
        email: str,
        role: Role,
        now_iso: str,
        is_active: bool = True,
    ) -> User:
        email = email.strip().lower()
        if await self.get_by_email(email):
            raise ConflictError("User already exists")
        await self._db.execute(
            """
            INSERT INTO users(id, name, email, role, is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?);
            """,
            (user_id, name.strip(), email, role.value, 1 if is_active else 0, now_iso, now_iso),
        )
        return User(
            id=user_id,
            name=name.strip(),
            email=email,
            role=role,
            is_active=is_active,
            created_at=from_iso(now_iso),
        )

    async def get(self, user_id: str) -> Optional[User]:
        row = await self._db.fetchone(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?;", (user_id,))
        return _row_to_user(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        row = await self._db.fetchone(
            f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?;",
            (email.strip().lower(),),
        )
        return _row_to_user(row) if row else None

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, User]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        marks = ",".join("?" for _ in ids)
        rows = await self._db.fetchall(f"SELECT {_USER_COLUMNS} FROM users WHERE id IN ({marks});", tuple(ids))
        return {r["id"]: _row_to_user(r) for r in rows}

    async def active_ids(self, user_ids: Iterable[str]) -> set[str]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return set()
        marks = ",".join("?" for _ in ids)
        rows = await self._db.fetchall(
            f"SELECT id FROM users WHERE is_active = 1 AND id IN ({marks});",
            tuple(ids),
        )
        return {r["id"] for r in rows}

    async def list_all(self, active_only: bool = False) -> Sequence[User]:
        where = "WHERE is_active = 1" if active_only else ""
        rows = await self._db.fetchall(
            f"SELECT {_USER_COLUMNS} FROM users {where} ORDER BY created_at DESC, rowid DESC;"
        )
        return [_row_to_user(r) for r in rows]

    async def set_role(self, user_id: str, role: Role, now_iso: str) -> bool:
        count = await self._db.execute(
            "UPDATE users SET role = ?, updated_at = ? WHERE id = ?;",
            (role.value, now_iso, user_id),
        )
        return count > 0

    async def set_active(self, user_id: str, is_active: bool, now_iso: str) -> bool:
        count = await self._db.execute(
            "UPDATE users SET is_active = ?, updated_at = ? WHERE id = ?;",
            (1 if is_active else 0, now_iso, user_id),
        )
        return count > 0
