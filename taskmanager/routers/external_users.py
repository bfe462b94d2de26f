from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.deps import get_current_identity, get_db
from taskmanager.errors import ServiceError
from taskmanager.external_users import service
from taskmanager.models import ExternalUser
from taskmanager.schemas import ExternalUserCreateIn, ExternalUserMutationOut, ExternalUserOut, ExternalUserUpdateIn
from taskmanager.security import Identity

router = APIRouter(prefix="/api/external-users", tags=["external-users"])


def _external_user_out(u: ExternalUser) -> ExternalUserOut:
  return ExternalUserOut(
    id=u.id,
    name=u.name,
    isActive=bool(u.is_active),
    createdAt=u.created_at,
    updatedAt=u.updated_at,
  )


def _failure(context: str, exc: ServiceError) -> JSONResponse:
  return JSONResponse(
    status_code=status.HTTP_400_BAD_REQUEST,
    content={"success": False, "message": f"{context}: {exc.message}"},
  )


@router.get("", response_model=list[ExternalUserOut])
async def list_external_users(
  search: str | None = None,
  _: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
) -> list[ExternalUserOut]:
  return [_external_user_out(u) for u in await service.search_users(db, search)]


@router.get("/active", response_model=list[ExternalUserOut])
async def list_active_external_users(
  _: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
) -> list[ExternalUserOut]:
  return [_external_user_out(u) for u in await service.list_active_users(db)]


@router.get("/{user_id}", response_model=ExternalUserOut)
async def get_external_user(
  user_id: str,
  _: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
) -> ExternalUserOut:
  return _external_user_out(await service.get_user(db, user_id))


@router.post("", response_model=ExternalUserMutationOut)
async def create_external_user(
  payload: ExternalUserCreateIn,
  _: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
):
  try:
    u = await service.create_user(db, payload)
  except ServiceError as exc:
    return _failure("Error while adding user", exc)
  return ExternalUserMutationOut(success=True, message="User added", user=_external_user_out(u))


@router.put("/{user_id}", response_model=ExternalUserMutationOut)
async def update_external_user(
  user_id: str,
  payload: ExternalUserUpdateIn,
  _: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
):
  try:
    u = await service.update_user(db, user_id, payload)
  except ServiceError as exc:
    return _failure("Error while updating user", exc)
  return ExternalUserMutationOut(success=True, message="User updated", user=_external_user_out(u))


@router.delete("/{user_id}", response_model=ExternalUserMutationOut)
async def delete_external_user(
  user_id: str,
  _: Identity = Depends(get_current_identity),
  db: AsyncSession = Depends(get_db),
):
  try:
    await service.delete_user(db, user_id)
  except ServiceError as exc:
    return _failure("Error while deleting user", exc)
  return ExternalUserMutationOut(success=True, message="User deleted")
