from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.deps import get_db
from taskmanager.models import User
from taskmanager.schemas import AuthOut, LoginIn, RegisterIn, UserOut
from taskmanager.security import create_access_token, hash_password, local_subject, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_out(u: User) -> UserOut:
  return UserOut(
    id=u.id,
    legacyId=str(u.id),
    username=u.username,
    name=u.username,
    email=u.email,
    createdAt=u.created_at,
  )


def _auth_out(u: User, message: str) -> AuthOut:
  token = create_access_token(subject=local_subject(u.id), email=u.email)
  return AuthOut(token=token, user=_user_out(u), message=message)


@router.post("/login", response_model=AuthOut)
async def login(payload: LoginIn, db: AsyncSession = Depends(get_db)) -> AuthOut:
  username = payload.username.strip()
  res = await db.execute(select(User).where(User.username == username))
  u = res.scalar_one_or_none()
  if not u or not verify_password(payload.password, u.password_hash):
    logger.info("Failed login for %r", username)
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
  return _auth_out(u, "Login successful")


@router.post("/register", response_model=AuthOut)
async def register(payload: RegisterIn, db: AsyncSession = Depends(get_db)) -> AuthOut:
  username = payload.username.strip()
  if not username:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="username is required")
  res = await db.execute(select(User.id).where(or_(User.username == username, User.email == payload.email)))
  if res.first() is not None:
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username or email already registered")

  u = User(username=username, email=payload.email, password_hash=hash_password(payload.password))
  db.add(u)
  try:
    await db.commit()
  except IntegrityError as exc:
    await db.rollback()
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username or email already registered") from exc
  await db.refresh(u)
  logger.info("Registered local user %s", u.id)
  return _auth_out(u, "Registration successful")
