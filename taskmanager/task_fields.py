from __future__ import annotations

import json
from datetime import date, datetime, timezone
from enum import Enum
from typing import Iterable


class TaskStatus(str, Enum):
  TODO = "todo"
  IN_PROGRESS = "in-progress"
  DONE = "done"
  CANCELLED = "cancelled"

  @property
  def display_name(self) -> str:
    return _STATUS_DISPLAY[self]


class TaskPriority(str, Enum):
  LOW = "low"
  MEDIUM = "medium"
  HIGH = "high"
  CRITICAL = "critical"


_STATUS_DISPLAY = {
  TaskStatus.TODO: "to do",
  TaskStatus.IN_PROGRESS: "in progress",
  TaskStatus.DONE: "done",
  TaskStatus.CANCELLED: "cancelled",
}


def _enum_key(value: str) -> str:
  return value.strip().lower().replace("_", "-").replace(" ", "-")


def parse_status(value: str | None) -> TaskStatus | None:
  """Case-insensitive lookup; ``None`` when absent or unrecognised."""
  if value is None:
    return None
  try:
    return TaskStatus(_enum_key(value))
  except ValueError:
    return None


def parse_priority(value: str | None) -> TaskPriority | None:
  if value is None:
    return None
  try:
    return TaskPriority(_enum_key(value))
  except ValueError:
    return None


def parse_due_date(value: str | None) -> datetime | None:
  """Parse ``YYYY-MM-DD`` into start-of-day UTC; ``None`` if absent or unparseable."""
  if value is None:
    return None
  s = value.strip()
  if not s:
    return None
  try:
    d = date.fromisoformat(s)
  except ValueError:
    return None
  return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


# Tags, images, assignees and share lists live as a JSON array in one text
# column. Decoding never raises: malformed input degrades to a default.


class MalformedBlob(ValueError):
  pass


def _parse_array(blob: str) -> list[str]:
  try:
    data = json.loads(blob)
  except ValueError as exc:
    raise MalformedBlob(str(exc)) from exc
  if not isinstance(data, list):
    raise MalformedBlob("not a JSON array")
  out: list[str] = []
  for item in data:
    if item is None:
      continue
    if isinstance(item, (list, dict)):
      raise MalformedBlob("nested value in array")
    if isinstance(item, bool):
      out.append("true" if item else "false")
    else:
      out.append(item if isinstance(item, str) else str(item))
  return out


def decode_list(blob: str | None) -> list[str]:
  """Decode tags/images/sharedWith/shareRequests. Malformed blobs decode to ``[]``."""
  if blob is None or not blob.strip():
    return []
  try:
    return _parse_array(blob)
  except MalformedBlob:
    return []


def decode_assignees(blob: str | None) -> list[str]:
  """
  Decode the assignee column.

  Unlike the other list columns, anything that is not a parseable JSON array is
  a legacy single assignee id and comes back as a one-element list.
  """
  if blob is None or not blob.strip():
    return []
  trimmed = blob.strip()
  if not (trimmed.startswith("[") and trimmed.endswith("]")):
    return [trimmed]
  try:
    return _parse_array(trimmed)
  except MalformedBlob:
    return [trimmed]


def encode_list(values: Iterable[str] | None) -> str | None:
  """Serialize to a JSON array; empty or ``None`` clears the column."""
  if values is None:
    return None
  items = [str(v) for v in values]
  if not items:
    return None
  return json.dumps(items, ensure_ascii=False)


def merge_unique(existing: Iterable[str], added: Iterable[str]) -> list[str]:
  """Order-preserving union: existing ids first, then new ids in input order."""
  out: list[str] = []
  seen: set[str] = set()
  for v in list(existing) + list(added):
    if v in seen:
      continue
    seen.add(v)
    out.append(v)
  return out
