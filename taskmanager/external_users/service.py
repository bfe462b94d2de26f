from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.errors import ConflictError, NotFoundError
from taskmanager.models import ExternalUser, utcnow
from taskmanager.schemas import ExternalUserCreateIn, ExternalUserUpdateIn

logger = logging.getLogger(__name__)


async def list_users(db: AsyncSession) -> Sequence[ExternalUser]:
  res = await db.execute(select(ExternalUser).order_by(ExternalUser.created_at.asc(), ExternalUser.id.asc()))
  return res.scalars().all()


async def list_active_users(db: AsyncSession) -> Sequence[ExternalUser]:
  res = await db.execute(
    select(ExternalUser).where(ExternalUser.is_active.is_(True)).order_by(ExternalUser.created_at.asc(), ExternalUser.id.asc())
  )
  return res.scalars().all()


async def search_users(db: AsyncSession, term: str | None) -> Sequence[ExternalUser]:
  """Case-insensitive substring match on name; a blank term lists everyone."""
  needle = (term or "").strip()
  if not needle:
    return await list_users(db)
  res = await db.execute(
    select(ExternalUser)
    .where(ExternalUser.name.icontains(needle, autoescape=True))
    .order_by(ExternalUser.created_at.asc(), ExternalUser.id.asc())
  )
  return res.scalars().all()


async def get_user(db: AsyncSession, user_id: str) -> ExternalUser:
  u = await db.get(ExternalUser, user_id)
  if u is None:
    raise NotFoundError(f"External user not found with id: {user_id}")
  return u


async def create_user(db: AsyncSession, payload: ExternalUserCreateIn) -> ExternalUser:
  if await db.get(ExternalUser, payload.id) is not None:
    raise ConflictError(f"A user with this id already exists: {payload.id}")
  now = utcnow()
  u = ExternalUser(
    id=payload.id,
    name=payload.name,
    is_active=True if payload.isActive is None else payload.isActive,
    created_at=now,
    updated_at=now,
  )
  db.add(u)
  try:
    await db.commit()
  except IntegrityError as exc:
    await db.rollback()
    raise ConflictError(f"A user with this id already exists: {payload.id}") from exc
  logger.info("External user %s created", u.id)
  return u


async def update_user(db: AsyncSession, user_id: str, payload: ExternalUserUpdateIn) -> ExternalUser:
  u = await get_user(db, user_id)
  if payload.name is not None:
    u.name = payload.name
  if payload.isActive is not None:
    u.is_active = payload.isActive
  u.updated_at = utcnow()
  await db.commit()
  return u


async def delete_user(db: AsyncSession, user_id: str) -> None:
  u = await get_user(db, user_id)
  await db.delete(u)
  await db.commit()
  logger.info("External user %s deleted", user_id)
