"""create block_patterns table

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""
import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "block_patterns",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("created", sa.DateTime(), nullable=True),
        sa.Column("last_updated", sa.DateTime(), nullable=True),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="publish"),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("categories", sa.JSON(), nullable=False),
        sa.Column("keywords", sa.JSON(), nullable=False),
        sa.Column("viewport_width", sa.Integer(), nullable=False, server_default="1280"),
        sa.Column("block_types", sa.JSON(), nullable=False),
        sa.Column("post_types", sa.JSON(), nullable=False),
        sa.Column("template_types", sa.JSON(), nullable=False),
        sa.Column("inserter", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_block_patterns_id"), "block_patterns", ["id"], unique=False)
    op.create_index(op.f("ix_block_patterns_created"), "block_patterns", ["created"], unique=False)
    op.create_index(op.f("ix_block_patterns_slug"), "block_patterns", ["slug"], unique=True)
    op.create_index(op.f("ix_block_patterns_title"), "block_patterns", ["title"], unique=False)
    op.create_index(op.f("ix_block_patterns_status"), "block_patterns", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_block_patterns_status"), table_name="block_patterns")
    op.drop_index(op.f("ix_block_patterns_title"), table_name="block_patterns")
    op.drop_index(op.f("ix_block_patterns_slug"), table_name="block_patterns")
    op.drop_index(op.f("ix_block_patterns_created"), table_name="block_patterns")
    op.drop_index(op.f("ix_block_patterns_id"), table_name="block_patterns")
    op.drop_table("block_patterns")
