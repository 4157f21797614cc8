"""Create contributions, curated_lists and curated_list_items tables

Revision ID: 002_contributions_and_lists
Revises: 001_initial
Create Date: 2026-10-18

A work appears at most once per curated list.
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers
revision = "002_contributions_and_lists"
down_revision = "001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    role_enum = sa.Enum(
        "VOCAL", "BEAT", "LYRIC", "SOUND", "CURATION", "AI_ASSIST", name="contribution_role"
    )

    op.create_table(
        "contributions",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("work_id", sa.String(128), sa.ForeignKey("works.id"), nullable=False),
        sa.Column("display_name", sa.String(256), nullable=False),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("user_id", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_contributions_work_id", "contributions", ["work_id"])

    op.create_table(
        "curated_lists",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("curator_id", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_curated_lists_curator_id", "curated_lists", ["curator_id"])

    op.create_table(
        "curated_list_items",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("list_id", sa.String(128), sa.ForeignKey("curated_lists.id"), nullable=False),
        sa.Column("work_id", sa.String(128), sa.ForeignKey("works.id"), nullable=False),
        sa.Column("order_index", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("list_id", "work_id", name="uq_curated_list_items_list_work"),
    )
    op.create_index("ix_curated_list_items_list_id", "curated_list_items", ["list_id"])
    op.create_index("ix_curated_list_items_work_id", "curated_list_items", ["work_id"])


def downgrade() -> None:
    op.drop_table("curated_list_items")
    op.drop_table("curated_lists")
    op.drop_table("contributions")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS contribution_role")
