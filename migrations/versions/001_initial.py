"""Create works, work_edges and promotion_events tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

Edges and promotion events are append-only; the (source, target) pair is
unique so concurrent identical edge requests leave exactly one row.
"""
import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    tier_enum = sa.Enum("JAM", "PLATE", "CANON", name="work_tier")
    edge_type_enum = sa.Enum("FORK", "MERGE", "DERIVED", name="work_edge_type")
    # Second reference to work_tier; the type is created with the works table
    tier_ref = postgresql.ENUM("JAM", "PLATE", "CANON", name="work_tier", create_type=False)

    op.create_table(
        "works",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("slug", sa.String(128), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("tier", tier_enum, nullable=False, server_default="JAM"),
        sa.Column("canon_locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("canon_locked_by_id", sa.String(128), nullable=True),
        sa.Column("created_by_id", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "(tier = 'CANON' AND canon_locked_at IS NOT NULL "
            "AND canon_locked_by_id IS NOT NULL) OR "
            "(tier <> 'CANON' AND canon_locked_at IS NULL "
            "AND canon_locked_by_id IS NULL)",
            name="ck_works_canon_lock",
        ),
    )
    op.create_index("ix_works_slug", "works", ["slug"], unique=True)
    op.create_index("ix_works_tier", "works", ["tier"])
    op.create_index("ix_works_created_at", "works", ["created_at"])

    op.create_table(
        "work_edges",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("source_id", sa.String(128), sa.ForeignKey("works.id"), nullable=False),
        sa.Column("target_id", sa.String(128), sa.ForeignKey("works.id"), nullable=False),
        sa.Column("type", edge_type_enum, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("source_id", "target_id", name="uq_work_edges_source_target"),
    )
    op.create_index("ix_work_edges_source_id", "work_edges", ["source_id"])
    op.create_index("ix_work_edges_target_id", "work_edges", ["target_id"])

    op.create_table(
        "promotion_events",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("work_id", sa.String(128), sa.ForeignKey("works.id"), nullable=False),
        sa.Column("from_tier", tier_ref, nullable=False),
        sa.Column("to_tier", tier_ref, nullable=False),
        sa.Column("justification", sa.Text, nullable=False),
        sa.Column("signed_by_id", sa.String(128), nullable=False),
        sa.Column("signed_by_display_name", sa.String(256), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_promotion_events_signed_by_id", "promotion_events", ["signed_by_id"])
    op.create_index(
        "ix_promotion_events_work_created", "promotion_events", ["work_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_table("promotion_events")
    op.drop_table("work_edges")
    op.drop_table("works")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS work_edge_type")
        op.execute("DROP TYPE IF EXISTS work_tier")
