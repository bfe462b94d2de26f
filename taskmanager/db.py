from __future__ import annotations

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from taskmanager.config import settings


def _engine_kwargs(url: str) -> dict:
  if url.startswith("sqlite"):
    return {"connect_args": {"check_same_thread": False}}
  return {"pool_pre_ping": True}


engine = create_async_engine(settings.database_url, **_engine_kwargs(settings.database_url))
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)
