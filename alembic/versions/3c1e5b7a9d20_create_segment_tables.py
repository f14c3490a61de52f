"""create segments, segments_users and report tables

Revision ID: 3c1e5b7a9d20
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3c1e5b7a9d20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "segments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_segments_name", "segments", ["name"], unique=True)

    op.create_table(
        "segments_users",
        sa.Column("segments_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["segments_id"], ["segments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("segments_id", "user_id"),
    )
    op.create_index("ix_segments_users_user_id", "segments_users", ["user_id"], unique=False)

    # No foreign key to segments: history must survive segment deletion
    op.create_table(
        "report",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("segment_slug", sa.String(), nullable=False),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_report_created_at", "report", ["created_at"], unique=False)
    op.create_index("idx_report_user_created_at", "report", ["user_id", "created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("idx_report_user_created_at", table_name="report")
    op.drop_index("idx_report_created_at", table_name="report")
    op.drop_table("report")
    op.drop_index("ix_segments_users_user_id", table_name="segments_users")
    op.drop_table("segments_users")
    op.drop_index("ix_segments_name", table_name="segments")
    op.drop_table("segments")
