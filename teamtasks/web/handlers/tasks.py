from __future__ import annotations

from aiohttp import web

from teamtasks.domain.common.errors import ValidationError
from teamtasks.domain.tasks.rules import parse_task_patch
from teamtasks.domain.tasks.views import stats_payload, task_payload, user_summary_payload
from teamtasks.domain.users.models import summarize
from teamtasks.infra.ids.uuid_gen import is_valid_id
from teamtasks.web.handlers._common import current_user, ok, path_id, read_json_object, require_admin
from teamtasks.web.middlewares.di import TASK_SERVICE, USERS

router = web.RouteTableDef()

# fixed paths first, /api/tasks/{id} would swallow them otherwise


@router.get("/api/tasks")
async def list_tasks(request: web.Request) -> web.Response:
    service = request[TASK_SERVICE]
    items = await service.list_for(current_user(request))
    return ok(tasks=[task_payload(d) for d in items], count=len(items))


@router.get("/api/tasks/stats")
async def task_stats(request: web.Request) -> web.Response:
    service = request[TASK_SERVICE]
    stats = await service.stats(current_user(request))
    return ok(stats=stats_payload(stats))


@router.get("/api/tasks/users")
async def assignable_users(request: web.Request) -> web.Response:
    require_admin(request)
    users = await request[USERS].list_all(active_only=True)
    return ok(users=[dict(user_summary_payload(summarize(u)), role=u.role.value) for u in users])


@router.post("/api/tasks")
async def create_task(request: web.Request) -> web.Response:
    user = require_admin(request)
    service = request[TASK_SERVICE]
    patch = parse_task_patch(await read_json_object(request))
    details = await service.create(user, patch)
    return ok(201, task=task_payload(details), message="Task created successfully")


@router.put("/api/tasks/bulk")
async def bulk_update_tasks(request: web.Request) -> web.Response:
    service = request[TASK_SERVICE]
    body = await read_json_object(request)

    task_ids = body.get("taskIds")
    if not isinstance(task_ids, list) or not task_ids:
        raise ValidationError("Task IDs array is required")
    if not all(isinstance(t, str) and is_valid_id(t) for t in task_ids):
        raise ValidationError("Some task IDs are invalid")
    update_data = body.get("updateData")
    if not isinstance(update_data, dict):
        raise ValidationError("updateData must be a JSON object.")

    updated = await service.bulk_update(current_user(request), task_ids, parse_task_patch(update_data))
    return ok(
        tasks=[task_payload(d) for d in updated],
        modifiedCount=len(updated),
        message=f"{len(updated)} tasks updated successfully",
    )


@router.get("/api/tasks/{id}")
async def get_task(request: web.Request) -> web.Response:
    service = request[TASK_SERVICE]
    details = await service.get(current_user(request), path_id(request))
    return ok(task=task_payload(details))


@router.put("/api/tasks/{id}")
async def update_task(request: web.Request) -> web.Response:
    task_id = path_id(request)
    service = request[TASK_SERVICE]
    patch = parse_task_patch(await read_json_object(request))
    details = await service.update(current_user(request), task_id, patch)
    return ok(task=task_payload(details), message="Task updated successfully")


@router.delete("/api/tasks/{id}")
async def delete_task(request: web.Request) -> web.Response:
    service = request[TASK_SERVICE]
    await service.delete(current_user(request), path_id(request))
    return ok(message="Task deleted successfully")
