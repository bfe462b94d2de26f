from __future__ import annotations

import asyncio
import logging
import os
import secrets

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.db import SessionLocal
from taskmanager.models import Task, User
from taskmanager.security import hash_password
from taskmanager.task_fields import TaskPriority, TaskStatus
from taskmanager.tasks import repository

logger = logging.getLogger(__name__)

DEMO_USERNAME = "demo"
DEMO_EMAIL = "demo@example.com"


def _bootstrap_password(env_key: str) -> tuple[str, bool]:
  configured = (os.getenv(env_key) or "").strip()
  if configured:
    return configured, False
  return secrets.token_urlsafe(14), True


def demo_tasks(user_id: int) -> list[Task]:
  samples = [
    ("First demo task", "A task waiting to be picked up.", TaskStatus.TODO, TaskPriority.HIGH),
    ("Second demo task", "A task someone is working on.", TaskStatus.IN_PROGRESS, TaskPriority.MEDIUM),
    ("Third demo task", "A finished task.", TaskStatus.DONE, TaskPriority.LOW),
  ]
  return [
    Task(title=title, description=desc, status=st.value, priority=prio.value, user_id=user_id)
    for title, desc, st, prio in samples
  ]


async def seed_demo(db: AsyncSession) -> str | None:
  """
  Create the demo account and its sample tasks if missing.

  Returns the generated password when one had to be made up, else ``None``.
  """
  generated: str | None = None
  res = await db.execute(select(User).where(User.username == DEMO_USERNAME))
  demo = res.scalar_one_or_none()
  if demo is None:
    password, was_generated = _bootstrap_password("SEED_DEMO_PASSWORD")
    demo = User(username=DEMO_USERNAME, email=DEMO_EMAIL, password_hash=hash_password(password))
    db.add(demo)
    await db.flush()
    if was_generated:
      generated = password
    logger.info("Created demo user %s", DEMO_USERNAME)

  if not await repository.list_by_user(db, demo.id):
    db.add_all(demo_tasks(demo.id))
    logger.info("Created demo tasks for %s", DEMO_USERNAME)

  await db.commit()
  return generated


async def seed() -> None:
  async with SessionLocal() as db:
    generated = await seed_demo(db)
  if generated:
    print(f"Demo credentials: {DEMO_USERNAME} / {generated}")


def main() -> None:
  logging.basicConfig(level=logging.INFO)
  asyncio.run(seed())


if __name__ == "__main__":
  main()
