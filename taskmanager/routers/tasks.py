from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.deps import get_current_identity, get_db
from taskmanager.errors import ServiceError, ValidationFailedError
from taskmanager.models import ExternalOwner, LocalOwner, Task
from taskmanager.schemas import TaskCreateIn, TaskOut, TaskShareIn, TaskShareOut, TaskStatsOut, TaskUpdateIn
from taskmanager.security import Identity
from taskmanager.task_fields import TaskStatus, decode_assignees, decode_list, parse_status
from taskmanager.tasks import repository, service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _owner_type(t: Task) -> str | None:
  owner = t.owner
  if isinstance(owner, ExternalOwner):
    return "external"
  if isinstance(owner, LocalOwner):
    return "local"
  return None


def _task_out(t: Task) -> TaskOut:
  return TaskOut(
    id=t.id,
    legacyId=str(t.id),
    title=t.title,
    description=t.description,
    status=t.status,
    priority=t.priority,
    dueDate=t.due_date,
    completedAt=datetime.now(timezone.utc) if t.status == TaskStatus.DONE.value else None,
    createdAt=t.created_at,
    updatedAt=t.updated_at,
    userId=str(t.user_id) if t.user_id is not None else None,
    clerkUserId=t.creator_id,
    ownerType=_owner_type(t),
    assignedTo=decode_assignees(t.assigned_to),
    assignedUserNote=t.assigned_user_note,
    assignedUserNoteAuthor=t.assigned_user_note_author,
    tags=decode_list(t.tags),
    images=decode_list(t.images),
    sharedWith=decode_list(t.shared_with),
    shareRequests=decode_list(t.share_requests),
    isPublic=bool(t.is_public),
    isSharedWithMe=bool(t.is_shared_with_me),
  )


@router.post("", response_model=TaskOut)
async def create_task(
  payload: TaskCreateIn,
  identity: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
) -> TaskOut:
  t = await service.create_task(db, payload, caller_id=identity.subject)
  return _task_out(t)


@router.get("", response_model=list[TaskOut])
async def list_tasks(
  userEmail: str | None = None,
  identity: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
) -> list[TaskOut]:
  tasks = await service.tasks_for_caller(db, identity.subject, userEmail or identity.email)
  return [_task_out(t) for t in tasks]


@router.get("/status/{task_status}", response_model=list[TaskOut])
async def list_tasks_by_status(
  task_status: str,
  _: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
) -> list[TaskOut]:
  st = parse_status(task_status)
  if st is None:
    raise ValidationFailedError(f"Unknown status: {task_status}")
  return [_task_out(t) for t in await repository.list_by_status(db, st)]


@router.get("/stats/summary", response_model=TaskStatsOut)
async def task_stats(
  _: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
) -> TaskStatsOut:
  return TaskStatsOut.model_validate(await service.task_stats(db))


@router.get("/{task_id}", response_model=TaskOut)
async def get_task(
  task_id: int,
  _: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
) -> TaskOut:
  return _task_out(await service.get_task_or_404(db, task_id))


@router.put("/{task_id}", response_model=TaskOut)
async def update_task(
  task_id: int,
  payload: TaskUpdateIn,
  _: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
) -> TaskOut:
  t = await service.update_task(db, task_id, payload)
  return _task_out(t)


@router.delete("/{task_id}")
async def delete_task(
  task_id: int,
  _: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
) -> Response:
  await service.delete_task(db, task_id)
  return Response(status_code=status.HTTP_200_OK)


@router.post("/{task_id}/share", response_model=TaskShareOut)
async def share_task(
  task_id: int,
  payload: TaskShareIn,
  identity: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
):
  if payload.message:
    logger.info("Share note for task %s from %s: %s", task_id, identity.subject, payload.message[:200])
  try:
    t = await service.share_task(db, task_id, payload.userIds, caller_id=identity.subject)
  except ServiceError as exc:
    await db.rollback()
    return JSONResponse(
      status_code=status.HTTP_400_BAD_REQUEST,
      content={"success": False, "message": f"Error while sharing task: {exc.message}"},
    )
  return TaskShareOut(success=True, message="Task shared", task=_task_out(t))
