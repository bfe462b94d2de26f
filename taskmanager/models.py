from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
  return datetime.now(timezone.utc)


class Base(DeclarativeBase):
  pass


@dataclass(frozen=True)
class LocalOwner:
  """Task owned through the legacy relational ``users`` row."""

  user_id: int


@dataclass(frozen=True)
class ExternalOwner:
  """Task owned by an identity-provider subject (the creator id)."""

  subject: str


Owner = LocalOwner | ExternalOwner


class User(Base):
  __tablename__ = "users"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  username: Mapped[str] = mapped_column(String(150), nullable=False, unique=True, index=True)
  email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
  password_hash: Mapped[str] = mapped_column(String, nullable=False)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

  tasks: Mapped[list[Task]] = relationship(back_populates="user", cascade="all, delete-orphan")


class Task(Base):
  __tablename__ = "tasks"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  title: Mapped[str] = mapped_column(String(500), nullable=False)
  description: Mapped[str | None] = mapped_column("description_text", Text, nullable=True)
  status: Mapped[str] = mapped_column(String(32), nullable=False, default="todo")
  priority: Mapped[str] = mapped_column(String(32), nullable=False, default="medium")
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
  due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  user_id: Mapped[int | None] = mapped_column(
    Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
  )
  creator_id: Mapped[str | None] = mapped_column("clerk_user_id", String, nullable=True, index=True)
  # JSON arrays serialized into text columns (see taskmanager.task_fields)
  assigned_to: Mapped[str | None] = mapped_column(Text, nullable=True)
  tags: Mapped[str | None] = mapped_column(Text, nullable=True)
  images: Mapped[str | None] = mapped_column(Text, nullable=True)
  shared_with: Mapped[str | None] = mapped_column(Text, nullable=True)
  share_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
  assigned_user_note: Mapped[str | None] = mapped_column(Text, nullable=True)
  assigned_user_note_author: Mapped[str | None] = mapped_column(String, nullable=True)
  is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
  is_shared_with_me: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

  user: Mapped[User | None] = relationship(back_populates="tasks")

  @property
  def owner(self) -> Owner | None:
    if self.creator_id:
      return ExternalOwner(subject=self.creator_id)
    if self.user_id is not None:
      return LocalOwner(user_id=self.user_id)
    return None


class ExternalUser(Base):
  __tablename__ = "external_users"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  name: Mapped[str] = mapped_column(String, nullable=False)
  is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
