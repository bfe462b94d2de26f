from __future__ import annotations

import logging
import mimetypes
import os
import uuid
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from taskmanager.config import settings
from taskmanager.errors import PayloadTooLargeError, UnsupportedMediaTypeError

logger = logging.getLogger(__name__)

IMAGE_URL_PREFIX = "/api/files/images/"


@dataclass
class _PendingImage:
  name: str
  data: bytes


def upload_root() -> Path:
  return Path(settings.upload_dir)


def _extension_for(file: UploadFile, content_type: str) -> str:
  ext = os.path.splitext(file.filename or "")[1].lower()
  if ext:
    return ext
  return mimetypes.guess_extension(content_type) or ""


async def _read_checked(file: UploadFile) -> bytes | None:
  content_type = (file.content_type or "").lower()
  data = await file.read(int(settings.max_image_bytes) + 1)
  if not data:
    return None
  if content_type not in settings.allowed_image_type_set():
    raise UnsupportedMediaTypeError(f"Invalid file type: {file.content_type}")
  if len(data) > int(settings.max_image_bytes):
    limit_mb = int(settings.max_image_bytes) // (1024 * 1024)
    raise PayloadTooLargeError(f"File is too large. Maximum size is {limit_mb}MB")
  return data


async def store_images(files: list[UploadFile]) -> list[str]:
  """
  Validate every part first, then write them all under fresh random names.

  Empty parts are skipped. Returns the served URL of each stored image.
  """
  pending: list[_PendingImage] = []
  for f in files:
    data = await _read_checked(f)
    if data is None:
      continue
    ext = _extension_for(f, (f.content_type or "").lower())
    pending.append(_PendingImage(name=f"{uuid.uuid4()}{ext}", data=data))

  root = upload_root()
  root.mkdir(parents=True, exist_ok=True)
  urls: list[str] = []
  for p in pending:
    (root / p.name).write_bytes(p.data)
    logger.info("Stored image %s (%d bytes)", p.name, len(p.data))
    urls.append(f"{IMAGE_URL_PREFIX}{p.name}")
  return urls


def resolve_image(filename: str) -> Path | None:
  """Path of an existing image, or ``None`` (including names escaping the upload dir)."""
  if not filename or filename in (".", "..") or "/" in filename or "\\" in filename:
    return None
  root = upload_root().resolve()
  path = (root / filename).resolve()
  if path.parent != root or not path.is_file():
    return None
  return path


def media_type_for(path: Path) -> str:
  return mimetypes.guess_type(path.name)[0] or "application/octet-stream"


def delete_image(filename: str) -> bool:
  path = resolve_image(filename)
  if path is None:
    return False
  path.unlink()
  logger.info("Deleted image %s", filename)
  return True
