from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse, JSONResponse

from taskmanager.deps import get_current_identity
from taskmanager.errors import ServiceError
from taskmanager.files import service
from taskmanager.schemas import UploadOut
from taskmanager.security import Identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["files"])


@router.post("/upload", response_model=UploadOut)
async def upload_files(
  files: list[UploadFile] = File(...),
  _: Identity = Depends(get_current_identity),
):
  try:
    urls = await service.store_images(files)
  except ServiceError as exc:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
  except OSError as exc:
    logger.exception("Image upload failed")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": f"Error while uploading files: {exc}"})
  return UploadOut(files=urls)


@router.get("/images/{filename}")
async def get_image(filename: str):
  path = service.resolve_image(filename)
  if path is None:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Image not found"})
  return FileResponse(
    path=path,
    media_type=service.media_type_for(path),
    headers={"Content-Disposition": f'inline; filename="{path.name}"'},
  )


@router.delete("/images/{filename}")
async def delete_image(filename: str, _: Identity = Depends(get_current_identity)):
  try:
    deleted = service.delete_image(filename)
  except OSError as exc:
    logger.exception("Image delete failed for %s", filename)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": f"Error while deleting file: {exc}"})
  if not deleted:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Image not found"})
  return {"message": "File deleted"}
