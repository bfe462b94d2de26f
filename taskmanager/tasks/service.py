from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.errors import NotFoundError, PermissionDeniedError
from taskmanager.models import ExternalOwner, Task
from taskmanager.schemas import TaskCreateIn, TaskUpdateIn
from taskmanager.task_fields import (
  TaskPriority,
  TaskStatus,
  decode_list,
  encode_list,
  merge_unique,
  parse_due_date,
  parse_priority,
  parse_status,
)
from taskmanager.tasks import repository

logger = logging.getLogger(__name__)


async def get_task_or_404(db: AsyncSession, task_id: int) -> Task:
  t = await repository.get_task(db, task_id)
  if t is None:
    raise NotFoundError(f"Task not found with id: {task_id}")
  return t


async def tasks_for_caller(db: AsyncSession, caller_id: str, caller_email: str | None = None) -> list[Task]:
  """
  Caller-scoped task view, concatenated in this order:

  1. tasks created by the caller
  2. tasks whose assignee column contains the caller id (created by someone else)
  3. tasks assigned exactly to ``caller_email`` (created by someone else)
  4. tasks shared with the caller (created by someone else)

  A task matching several sources is listed once per source. The four reads
  are independent statements, not one snapshot.
  """
  out: list[Task] = []
  out.extend(await repository.list_by_creator(db, caller_id))
  out.extend(await repository.list_assigned_containing(db, caller_id, exclude_creator=caller_id))
  email = (caller_email or "").strip()
  if email:
    out.extend(await repository.list_assigned_exactly(db, email, exclude_creator=caller_id))
  out.extend(await repository.list_shared_containing(db, caller_id, exclude_creator=caller_id))
  return out


async def create_task(db: AsyncSession, payload: TaskCreateIn, *, caller_id: str) -> Task:
  assignees = payload.assignee_list() or [caller_id]
  t = Task(
    title=payload.title,
    description=payload.description,
    status=(parse_status(payload.status) or TaskStatus.TODO).value,
    priority=(parse_priority(payload.priority) or TaskPriority.MEDIUM).value,
    due_date=parse_due_date(payload.dueDate),
    creator_id=caller_id,
    user_id=None,
    tags=encode_list(payload.tags),
    images=encode_list(payload.images),
    assigned_to=encode_list(assignees),
  )
  db.add(t)
  await db.commit()
  await db.refresh(t)
  logger.info("Task %s created by %s", t.id, caller_id)
  return t


def apply_update(t: Task, payload: TaskUpdateIn) -> list[str]:
  """Apply non-null request fields to ``t``; returns the changed field names."""
  changed: list[str] = []
  if payload.title is not None:
    t.title = payload.title
    changed.append("title")
  if payload.description is not None:
    t.description = payload.description
    changed.append("description")
  status = parse_status(payload.status)
  if status is not None:
    t.status = status.value
    changed.append("status")
  priority = parse_priority(payload.priority)
  if priority is not None:
    t.priority = priority.value
    changed.append("priority")

  if payload.dueDate is not None:
    if not payload.dueDate.strip():
      t.due_date = None
      changed.append("dueDate")
    else:
      due = parse_due_date(payload.dueDate)
      # Unparseable input keeps the previous due date.
      if due is not None:
        t.due_date = due
        changed.append("dueDate")

  if payload.tags is not None:
    t.tags = encode_list(payload.tags)
    changed.append("tags")
  if payload.images is not None:
    t.images = encode_list(payload.images)
    changed.append("images")

  if payload.assignedTo is not None:
    assignees = [a.strip() for a in payload.assignedTo if a and a.strip()]
    if not assignees:
      assignees = [t.creator_id] if t.creator_id else []
    t.assigned_to = encode_list(assignees)
    changed.append("assignedTo")

  if payload.assignedUserNote is not None:
    t.assigned_user_note = payload.assignedUserNote
    changed.append("assignedUserNote")
  if payload.assignedUserNoteAuthor is not None:
    t.assigned_user_note_author = payload.assignedUserNoteAuthor
    changed.append("assignedUserNoteAuthor")
  return changed


async def update_task(db: AsyncSession, task_id: int, payload: TaskUpdateIn) -> Task:
  t = await get_task_or_404(db, task_id)
  changed = apply_update(t, payload)
  await db.commit()
  await db.refresh(t)
  logger.info("Task %s updated (%s)", t.id, ",".join(changed) or "no changes")
  return t


async def delete_task(db: AsyncSession, task_id: int) -> None:
  t = await get_task_or_404(db, task_id)
  await db.delete(t)
  await db.commit()
  logger.info("Task %s deleted", task_id)


async def share_task(db: AsyncSession, task_id: int, grantee_ids: Sequence[str], *, caller_id: str) -> Task:
  t = await get_task_or_404(db, task_id)
  owner = t.owner
  if not isinstance(owner, ExternalOwner):
    raise PermissionDeniedError("Task has no creator; it cannot be shared")
  if owner.subject != caller_id:
    raise PermissionDeniedError("Only the task creator can share this task")

  grantees = [g.strip() for g in grantee_ids if g and g.strip()]
  t.shared_with = encode_list(merge_unique(decode_list(t.shared_with), grantees))
  await db.commit()
  await db.refresh(t)
  logger.info("Task %s shared by %s with %d user(s)", t.id, caller_id, len(grantees))
  return t


async def task_stats(db: AsyncSession, *, now: datetime | None = None) -> dict:
  now = now or datetime.now(timezone.utc)
  counts = await repository.count_by_status(db)
  return {
    "total": sum(counts.values()),
    "completed": counts.get(TaskStatus.DONE.value, 0),
    "overdue": await repository.count_overdue(db, now=now),
    "byStatus": [{"status": s.display_name, "count": counts.get(s.value, 0)} for s in TaskStatus],
  }
