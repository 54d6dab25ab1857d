"""
Initial schema: users, video_metadata, upload_history.

- `video_metadata.uploader_id` has no FK to `users` (users can be deleted
  while their videos keep the uploader name snapshot).
- `upload_history` is the append-only quota ledger.
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers, used by Alembic.
revision = "20260101_01_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "video_metadata",
        sa.Column("video_key", sa.String(length=1024), nullable=False),
        sa.Column("uploader_id", sa.String(length=36), nullable=True),
        sa.Column("uploader_name", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("video_key", name="pk_video_metadata"),
    )
    op.create_index("ix_video_metadata_uploader_id", "video_metadata", ["uploader_id"])

    op.create_table(
        "upload_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("size >= 0", name="ck_upload_history_size_nonneg"),
        sa.PrimaryKeyConstraint("id", name="pk_upload_history"),
    )
    op.create_index("ix_upload_history_timestamp", "upload_history", ["timestamp"])


def downgrade() -> None:
    op.drop_index("ix_upload_history_timestamp", table_name="upload_history")
    op.drop_table("upload_history")
    op.drop_index("ix_video_metadata_uploader_id", table_name="video_metadata")
    op.drop_table("video_metadata")
    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_table("users")
