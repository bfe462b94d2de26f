from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.db import SessionLocal
from taskmanager.security import Identity, TokenVerifier, build_verifier, resolve_bearer


async def get_db() -> AsyncSession:
  async with SessionLocal() as session:
    yield session


def get_token_verifier(request: Request) -> TokenVerifier:
  verifier = getattr(request.app.state, "token_verifier", None)
  if verifier is None:
    verifier = build_verifier()
    request.app.state.token_verifier = verifier
  return verifier


async def get_optional_identity(
  authorization: str | None = Header(default=None),
  verifier: TokenVerifier = Depends(get_token_verifier),
) -> Identity | None:
  return resolve_bearer(authorization, verifier)


async def get_current_identity(identity: Identity | None = Depends(get_optional_identity)) -> Identity:
  if identity is None:
    raise HTTPException(
      status_code=status.HTTP_401_UNAUTHORIZED,
      detail="Not authenticated",
      headers={"WWW-Authenticate": "Bearer"},
    )
  return identity
