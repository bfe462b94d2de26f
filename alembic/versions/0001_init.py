"""init

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  op.create_table(
    "users",
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("username", sa.String(length=150), nullable=False),
    sa.Column("email", sa.String(length=320), nullable=False),
    sa.Column("password_hash", sa.String(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
  )
  op.create_index("ix_users_username", "users", ["username"], unique=True)
  op.create_index("ix_users_email", "users", ["email"], unique=True)

  op.create_table(
    "tasks",
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("title", sa.String(length=500), nullable=False),
    sa.Column("description_text", sa.Text(), nullable=True),
    sa.Column("status", sa.String(length=32), nullable=False, server_default="todo"),
    sa.Column("priority", sa.String(length=32), nullable=False, server_default="medium"),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
    sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=True),
    sa.Column("clerk_user_id", sa.String(), nullable=True),
    sa.Column("assigned_to", sa.Text(), nullable=True),
    sa.Column("tags", sa.Text(), nullable=True),
    sa.Column("images", sa.Text(), nullable=True),
    sa.Column("shared_with", sa.Text(), nullable=True),
    sa.Column("share_requests", sa.Text(), nullable=True),
    sa.Column("assigned_user_note", sa.Text(), nullable=True),
    sa.Column("assigned_user_note_author", sa.String(), nullable=True),
    sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
    sa.Column("is_shared_with_me", sa.Boolean(), nullable=False, server_default=sa.false()),
  )
  op.create_index("ix_tasks_user_id", "tasks", ["user_id"], unique=False)
  op.create_index("ix_tasks_clerk_user_id", "tasks", ["clerk_user_id"], unique=False)

  op.create_table(
    "external_users",
    sa.Column("id", sa.String(), primary_key=True),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
  )


def downgrade() -> None:
  op.drop_table("external_users")
  op.drop_index("ix_tasks_clerk_user_id", table_name="tasks")
  op.drop_index("ix_tasks_user_id", table_name="tasks")
  op.drop_table("tasks")
  op.drop_index("ix_users_email", table_name="users")
  op.drop_index("ix_users_username", table_name="users")
  op.drop_table("users")
