"""
Canonical enums for curated works.
"""

from enum import Enum


class Tier(str, Enum):
    """Significance tiers, in promotion order."""

    JAM = "JAM"
    PLATE = "PLATE"
    CANON = "CANON"


class EdgeType(str, Enum):
    """Kinds of derivation between two works."""

    FORK = "FORK"  # direct derivative
    MERGE = "MERGE"  # combination of sources
    DERIVED = "DERIVED"  # looser influence


class ContributionRole(str, Enum):
    """What a contributor did on a work."""

    VOCAL = "VOCAL"
    BEAT = "BEAT"
    LYRIC = "LYRIC"
    SOUND = "SOUND"
    CURATION = "CURATION"
    AI_ASSIST = "AI_ASSIST"


class Direction(str, Enum):
    """Traversal direction through the lineage graph."""

    UP = "up"
    DOWN = "down"


class EventType(str, Enum):
    """Event names published to the notifier."""

    WORK_CREATED = "work.created"
    WORK_PROMOTED = "work.promoted"
    WORK_CANONIZED = "work.canonized"
    SIGNAL_RECEIVED = "signal.received"
