from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskCreateIn(BaseModel):
  title: str = Field(min_length=1, max_length=500)
  description: str | None = Field(default=None, max_length=3000)
  status: str | None = None
  priority: str | None = None
  dueDate: str | None = None
  tags: list[str] | None = None
  images: list[str] | None = None
  assignedTo: str | list[str] | None = None

  @field_validator("title")
  @classmethod
  def _title_not_blank(cls, v: str) -> str:
    if not v.strip():
      raise ValueError("title is required")
    return v

  def assignee_list(self) -> list[str]:
    raw = self.assignedTo
    if raw is None:
      return []
    if isinstance(raw, str):
      return [raw.strip()] if raw.strip() else []
    return [a.strip() for a in raw if a and a.strip()]


class TaskUpdateIn(BaseModel):
  title: str | None = Field(default=None, min_length=1, max_length=500)
  description: str | None = Field(default=None, max_length=3000)
  status: str | None = None
  priority: str | None = None
  dueDate: str | None = None
  tags: list[str] | None = None
  images: list[str] | None = None
  assignedTo: list[str] | None = None
  assignedUserNote: str | None = Field(default=None, max_length=1000)
  assignedUserNoteAuthor: str | None = None

  @field_validator("assignedTo", mode="before")
  @classmethod
  def _wrap_single_assignee(cls, v: object) -> object:
    if isinstance(v, str):
      return [v] if v.strip() else []
    return v


class TaskOut(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  id: int
  legacyId: str = Field(alias="_id")
  title: str
  description: str | None = None
  status: str
  priority: str
  dueDate: datetime | None = None
  completedAt: datetime | None = None
  createdAt: datetime
  updatedAt: datetime
  userId: str | None = None
  clerkUserId: str | None = None
  ownerType: Literal["local", "external"] | None = None
  assignedTo: list[str] = Field(default_factory=list)
  assignedUserNote: str | None = None
  assignedUserNoteAuthor: str | None = None
  tags: list[str] = Field(default_factory=list)
  images: list[str] = Field(default_factory=list)
  sharedWith: list[str] = Field(default_factory=list)
  shareRequests: list[str] = Field(default_factory=list)
  isPublic: bool = False
  isSharedWithMe: bool = False


class TaskShareIn(BaseModel):
  userIds: list[str] = Field(default_factory=list)
  message: str | None = None


class TaskShareOut(BaseModel):
  success: bool
  message: str
  task: TaskOut | None = None


class StatusCountOut(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  status: str = Field(alias="_id")
  count: int


class TaskStatsOut(BaseModel):
  total: int
  completed: int
  overdue: int
  byStatus: list[StatusCountOut]


class LoginIn(BaseModel):
  username: str = Field(min_length=1, max_length=150)
  password: str = Field(min_length=1, max_length=256)


class RegisterIn(BaseModel):
  username: str = Field(min_length=1, max_length=150)
  email: str = Field(min_length=3, max_length=320)
  password: str = Field(min_length=6, max_length=256)

  @field_validator("email")
  @classmethod
  def _email_shape(cls, v: str) -> str:
    s = v.strip().lower()
    if "@" not in s or s.startswith("@") or s.endswith("@"):
      raise ValueError("Invalid email")
    return s


class UserOut(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  id: int
  legacyId: str = Field(alias="_id")
  username: str
  name: str
  email: str
  createdAt: datetime


class AuthOut(BaseModel):
  token: str
  user: UserOut
  message: str


class ExternalUserCreateIn(BaseModel):
  id: str = Field(min_length=1, max_length=255)
  name: str = Field(min_length=1, max_length=255)
  isActive: bool | None = None

  @field_validator("id", "name")
  @classmethod
  def _not_blank(cls, v: str) -> str:
    if not v.strip():
      raise ValueError("must not be blank")
    return v.strip()


class ExternalUserUpdateIn(BaseModel):
  id: str | None = None
  name: str | None = Field(default=None, min_length=1, max_length=255)
  isActive: bool | None = None


class ExternalUserOut(BaseModel):
  id: str
  name: str
  isActive: bool
  createdAt: datetime
  updatedAt: datetime


class ExternalUserMutationOut(BaseModel):
  success: bool
  message: str
  user: ExternalUserOut | None = None


class UploadOut(BaseModel):
  files: list[str]
