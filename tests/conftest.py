from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

_TMP = Path(tempfile.gettempdir())
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TMP / 'taskmanager_test.db'}")
os.environ.setdefault("APP_SECRET", "test-secret-for-pytest")
os.environ.setdefault("AUTH_MODE", "local")
os.environ.setdefault("UPLOAD_DIR", str(_TMP / "taskmanager_test_uploads"))

from taskmanager.config import settings
from taskmanager.db import SessionLocal, engine
from taskmanager.main import app
from taskmanager.models import Base
from taskmanager.security import create_access_token


@pytest.fixture(scope="session")
def anyio_backend() -> str:
  return "asyncio"


async def _reset_db() -> None:
  async with engine.begin() as conn:
    await conn.run_sync(Base.metadata.drop_all)
    await conn.run_sync(Base.metadata.create_all)
  await engine.dispose()


@pytest.fixture
async def clean_db() -> None:
  db_name = settings.database_url.rsplit("/", 1)[-1]
  if "test" not in db_name:
    raise RuntimeError(
      "Refusing to run destructive tests against non-test DB. "
      "Set DATABASE_URL to a *_test database (e.g. taskmanager_test)."
    )
  await _reset_db()
  yield
  await engine.dispose()


@pytest.fixture
async def client(clean_db) -> AsyncClient:
  app.state.token_verifier = None
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c
  app.dependency_overrides.clear()
  app.state.token_verifier = None


@pytest.fixture
async def db(clean_db):
  async with SessionLocal() as session:
    yield session


@pytest.fixture
def upload_dir(tmp_path, monkeypatch) -> Path:
  target = tmp_path / "images"
  monkeypatch.setattr(settings, "upload_dir", str(target))
  return target


def auth_headers(subject: str, email: str | None = None) -> dict[str, str]:
  return {"Authorization": f"Bearer {create_access_token(subject=subject, email=email)}"}


async def create_task(client: AsyncClient, subject: str, **fields) -> dict:
  payload = {"title": fields.pop("title", "Task"), **fields}
  res = await client.post("/api/tasks", json=payload, headers=auth_headers(subject))
  assert res.status_code == 200, res.text
  return res.json()


async def register(client: AsyncClient, username: str, email: str, password: str = "password123") -> dict:
  res = await client.post("/api/auth/register", json={"username": username, "email": email, "password": password})
  assert res.status_code == 200, res.text
  return res.json()
