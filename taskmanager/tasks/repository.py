from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.models import Task
from taskmanager.task_fields import TaskStatus, encode_list


async def get_task(db: AsyncSession, task_id: int) -> Task | None:
  res = await db.execute(select(Task).where(Task.id == task_id))
  return res.scalar_one_or_none()


async def list_all(db: AsyncSession) -> Sequence[Task]:
  res = await db.execute(select(Task).order_by(Task.id.asc()))
  return res.scalars().all()


async def list_by_status(db: AsyncSession, status: TaskStatus) -> Sequence[Task]:
  res = await db.execute(select(Task).where(Task.status == status.value).order_by(Task.id.asc()))
  return res.scalars().all()


async def list_by_user(db: AsyncSession, user_id: int, *, status: TaskStatus | None = None) -> Sequence[Task]:
  q = select(Task).where(Task.user_id == user_id)
  if status is not None:
    q = q.where(Task.status == status.value)
  res = await db.execute(q.order_by(Task.id.asc()))
  return res.scalars().all()


async def list_by_creator(db: AsyncSession, creator_id: str) -> Sequence[Task]:
  res = await db.execute(select(Task).where(Task.creator_id == creator_id).order_by(Task.id.asc()))
  return res.scalars().all()


async def list_assigned_containing(db: AsyncSession, assignee: str, *, exclude_creator: str) -> Sequence[Task]:
  # Substring match against the serialized column, as stored.
  res = await db.execute(
    select(Task)
    .where(Task.assigned_to.contains(assignee, autoescape=True), Task.creator_id != exclude_creator)
    .order_by(Task.id.asc())
  )
  return res.scalars().all()


async def list_assigned_exactly(db: AsyncSession, assignee: str, *, exclude_creator: str) -> Sequence[Task]:
  # Legacy rows hold the bare value, newer rows a one-element JSON array.
  res = await db.execute(
    select(Task)
    .where(
      or_(Task.assigned_to == assignee, Task.assigned_to == encode_list([assignee])),
      Task.creator_id != exclude_creator,
    )
    .order_by(Task.id.asc())
  )
  return res.scalars().all()


async def list_shared_containing(db: AsyncSession, grantee: str, *, exclude_creator: str) -> Sequence[Task]:
  res = await db.execute(
    select(Task)
    .where(Task.shared_with.contains(grantee, autoescape=True), Task.creator_id != exclude_creator)
    .order_by(Task.id.asc())
  )
  return res.scalars().all()


async def count_by_status(db: AsyncSession) -> dict[str, int]:
  res = await db.execute(select(Task.status, func.count(Task.id)).group_by(Task.status))
  return {row[0]: int(row[1]) for row in res.all()}


async def count_overdue(db: AsyncSession, *, now) -> int:
  res = await db.execute(
    select(func.count(Task.id)).where(
      Task.due_date.is_not(None),
      Task.due_date < now,
      Task.status != TaskStatus.DONE.value,
    )
  )
  return int(res.scalar_one())
