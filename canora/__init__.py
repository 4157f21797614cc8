"""
CANORA

Lineage and promotion core for curated creative works.
"""

import importlib.metadata

__version__ = importlib.metadata.version("canora")

from .curation import Canon, Curator, EdgeType, Jam, Plate, Tier
from .errors import (
    AlreadyInList,
    CurationError,
    DuplicateEdge,
    Forbidden,
    HasHistory,
    ImmutableTarget,
    NotFound,
    TerminalState,
    ValidationError,
)
from .events import Event, Notifier

__all__ = [
    "AlreadyInList",
    "Canon",
    "CurationError",
    "Curator",
    "DuplicateEdge",
    "EdgeType",
    "Event",
    "Forbidden",
    "HasHistory",
    "ImmutableTarget",
    "Jam",
    "Notifier",
    "NotFound",
    "Plate",
    "TerminalState",
    "Tier",
    "ValidationError",
]
