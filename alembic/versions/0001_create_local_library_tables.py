"""create local library tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00.000000

Hey future me - the whole local library lives in TWO tables:
- local_folders: watched roots, unique by normalized path
- local_tracks: one row per audio file, uuid is path-derived (uuid5)

There is NO foreign key between them! Folder membership is the path prefix
(local_tracks.path LIKE '<folder>/%'), which is why path is indexed.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create local_folders and local_tracks (idempotent - skips existing tables)."""
    conn = op.get_bind()
    existing = set(sa.inspect(conn).get_table_names())

    if "local_folders" not in existing:
        op.create_table(
            "local_folders",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("path", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.UniqueConstraint("path", name="uq_local_folders_path"),
        )

    if "local_tracks" not in existing:
        op.create_table(
            "local_tracks",
            sa.Column("uuid", sa.String(36), primary_key=True),
            sa.Column("path", sa.Text(), nullable=False),
            sa.Column("tags", sa.JSON(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
        )
        op.create_index(
            "ix_local_tracks_path", "local_tracks", ["path"], unique=True
        )


def downgrade() -> None:
    """Drop both tables."""
    op.drop_index("ix_local_tracks_path", table_name="local_tracks")
    op.drop_table("local_tracks")
    op.drop_table("local_folders")
