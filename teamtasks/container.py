"""Composition root: wires stores, policy engine, fan-out and identity together."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from teamtasks.config import Settings
from teamtasks.domain.common.time import to_iso
from teamtasks.domain.tasks.ports import Clock, IdGenerator
from teamtasks.domain.tasks.service import TaskService
from teamtasks.infra.auth.jwt_provider import JwtIdentityProvider
from teamtasks.infra.clock.system_clock import SystemClock
from teamtasks.infra.db.connection import Database
from teamtasks.infra.db.repo import TaskSqliteRepo, UserSqliteRepo
from teamtasks.infra.db.schema_version import apply_migrations
from teamtasks.infra.ids.uuid_gen import UuidGenerator
from teamtasks.realtime.fanout import NotificationFanout
from teamtasks.realtime.registry import ConnectionRegistry


@dataclass
class Services:
    settings: Settings
    db: Database
    clock: Clock
    ids: IdGenerator
    users: UserSqliteRepo
    tasks: TaskSqliteRepo
    registry: ConnectionRegistry
    fanout: NotificationFanout
    identity: JwtIdentityProvider
    task_service: TaskService


async def build_services(
    settings: Settings,
    clock: Optional[Clock] = None,
    ids: Optional[IdGenerator] = None,
) -> Services:
    clock = clock or SystemClock()
    ids = ids or UuidGenerator()

    db = Database(str(settings.db_path))
    await apply_migrations(db, now_iso=to_iso(clock.now()))

    users = UserSqliteRepo(db)
    tasks = TaskSqliteRepo(db)
    registry = ConnectionRegistry()
    fanout = NotificationFanout(registry)
    identity = JwtIdentityProvider(
        secret=settings.jwt_secret,
        users=users,
        clock=clock,
        ttl=timedelta(hours=settings.token_ttl_hours),
    )
    task_service = TaskService(repo=tasks, users=users, notifier=fanout, clock=clock, ids=ids)

    return Services(
        settings=settings,
        db=db,
        clock=clock,
        ids=ids,
        users=users,
        tasks=tasks,
        registry=registry,
        fanout=fanout,
        identity=identity,
        task_service=task_service,
    )
