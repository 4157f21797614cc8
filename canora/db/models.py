"""
SQLAlchemy models for works, lineage edges, promotion events, contributions
and curated lists.

Edges and promotion events are append-only: nothing in the service layer
updates or deletes them, and neither cascades from the work they reference.
"""

from typing import Any, Dict

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from ..curation.tiers import TierState, state_from_columns
from .base import Base

tier_enum = Enum("JAM", "PLATE", "CANON", name="work_tier")

edge_type_enum = Enum("FORK", "MERGE", "DERIVED", name="work_edge_type")


def _iso(value):
    return value.isoformat() if value else None


class WorkModel(Base):
    """A creative work and its current tier."""

    __tablename__ = "works"

    id = Column(String(128), primary_key=True)
    slug = Column(String(128), nullable=False, unique=True, index=True)
    title = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)

    tier = Column(tier_enum, nullable=False, default="JAM", index=True)

    # Canon lock: set together, exactly when tier is CANON
    canon_locked_at = Column(DateTime(timezone=True), nullable=True)
    canon_locked_by_id = Column(String(128), nullable=True)

    created_by_id = Column(String(128), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        CheckConstraint(
            "(tier = 'CANON' AND canon_locked_at IS NOT NULL "
            "AND canon_locked_by_id IS NOT NULL) OR "
            "(tier <> 'CANON' AND canon_locked_at IS NULL "
            "AND canon_locked_by_id IS NULL)",
            name="ck_works_canon_lock",
        ),
        Index("ix_works_created_at", "created_at"),
    )

    @property
    def state(self) -> TierState:
        """Tagged tier state (``Jam``, ``Plate`` or ``Canon``)."""
        return state_from_columns(
            self.tier, self.canon_locked_at, self.canon_locked_by_id
        )

    @property
    def is_locked(self) -> bool:
        """CANON works accept no edits, incoming edges or contributions."""
        return self.tier == "CANON"

    def to_summary(self) -> Dict[str, Any]:
        """Compact form used inside edges and lineage nodes."""
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "tier": self.tier,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "description": self.description,
            "tier": self.tier,
            "canon_locked_at": _iso(self.canon_locked_at),
            "canon_locked_by_id": self.canon_locked_by_id,
            "created_by_id": self.created_by_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class WorkEdgeModel(Base):
    """Directed, typed derivation from ``source`` to ``target``."""

    __tablename__ = "work_edges"

    id = Column(String(128), primary_key=True)
    source_id = Column(
        String(128), ForeignKey("works.id"), nullable=False, index=True
    )
    target_id = Column(
        String(128), ForeignKey("works.id"), nullable=False, index=True
    )
    type = Column(edge_type_enum, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = (
        UniqueConstraint("source_id", "target_id", name="uq_work_edges_source_target"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source_id": self.source_id,
            "target_id": self.target_id,
            "type": self.type,
            "created_at": _iso(self.created_at),
        }


class PromotionEventModel(Base):
    """Immutable record of one tier transition."""

    __tablename__ = "promotion_events"

    id = Column(String(128), primary_key=True)
    work_id = Column(String(128), ForeignKey("works.id"), nullable=False)
    from_tier = Column(tier_enum, nullable=False)
    to_tier = Column(tier_enum, nullable=False)
    justification = Column(Text, nullable=False)

    # Curator identity; the display name is copied so it survives renames
    signed_by_id = Column(String(128), nullable=False, index=True)
    signed_by_display_name = Column(String(256), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = (
        Index("ix_promotion_events_work_created", "work_id", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "work_id": self.work_id,
            "from_tier": self.from_tier,
            "to_tier": self.to_tier,
            "justification": self.justification,
            "signed_by_id": self.signed_by_id,
            "signed_by_display_name": self.signed_by_display_name,
            "created_at": _iso(self.created_at),
        }


contribution_role_enum = Enum(
    "VOCAL", "BEAT", "LYRIC", "SOUND", "CURATION", "AI_ASSIST", name="contribution_role"
)


class ContributionModel(Base):
    """Credit for one person's part in a work."""

    __tablename__ = "contributions"

    id = Column(String(128), primary_key=True)
    work_id = Column(String(128), ForeignKey("works.id"), nullable=False, index=True)
    display_name = Column(String(256), nullable=False)
    role = Column(contribution_role_enum, nullable=False)
    notes = Column(Text, nullable=True)
    user_id = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "work_id": self.work_id,
            "display_name": self.display_name,
            "role": self.role,
            "notes": self.notes,
            "user_id": self.user_id,
            "created_at": _iso(self.created_at),
        }


class CuratedListModel(Base):
    """A curator-owned, ordered selection of works."""

    __tablename__ = "curated_lists"

    id = Column(String(128), primary_key=True)
    title = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    curator_id = Column(String(128), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=func.now(),
        onupdate=func.now(),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "curator_id": self.curator_id,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class CuratedListItemModel(Base):
    """Position of a work inside a curated list."""

    __tablename__ = "curated_list_items"

    id = Column(String(128), primary_key=True)
    list_id = Column(
        String(128), ForeignKey("curated_lists.id"), nullable=False, index=True
    )
    work_id = Column(String(128), ForeignKey("works.id"), nullable=False, index=True)
    order_index = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = (
        UniqueConstraint("list_id", "work_id", name="uq_curated_list_items_list_work"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "list_id": self.list_id,
            "work_id": self.work_id,
            "order_index": self.order_index,
            "created_at": _iso(self.created_at),
        }
