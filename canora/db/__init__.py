"""
Database package for CANORA.
"""

from .base import Base, get_db, get_engine, get_session_local, init_database
from .models import PromotionEventModel, WorkEdgeModel, WorkModel
from .store import WorkStore

__all__ = [
    "Base",
    "get_db",
    "get_engine",
    "get_session_local",
    "init_database",
    "PromotionEventModel",
    "WorkEdgeModel",
    "WorkModel",
    "WorkStore",
]
