"""
Curation domain: tiers, lineage edges and promotion.

Services live in their own modules (``edges``, ``lineage``, ``promotion``,
``works``, ``contributions``, ``lists``, ``metrics``) and are imported from there; this package only
re-exports the dependency-free building blocks.
"""

from .enums import ContributionRole, Direction, EdgeType, EventType, Tier
from .primitives import generate_id, generate_slug, slugify, utc_now
from .schemas import Curator, EdgeCreate, PromotionRequest, WorkCreate, WorkUpdate
from .tiers import NEXT_TIER, Canon, Jam, Plate, TierState, advance, next_tier, tier_rank

__all__ = [
    "Canon",
    "ContributionRole",
    "Curator",
    "Direction",
    "EdgeCreate",
    "EdgeType",
    "EventType",
    "Jam",
    "NEXT_TIER",
    "Plate",
    "PromotionRequest",
    "Tier",
    "TierState",
    "WorkCreate",
    "WorkUpdate",
    "advance",
    "generate_id",
    "generate_slug",
    "next_tier",
    "slugify",
    "tier_rank",
    "utc_now",
]
