"""SQLite-backed stores. Both take a shared infra.db.connection.Database."""

from teamtasks.infra.db.repo.tasks_sqlite import TaskSqliteRepo
from teamtasks.infra.db.repo.users_sqlite import UserSqliteRepo

__all__ = [
    "TaskSqliteRepo",
    "UserSqliteRepo",
]
