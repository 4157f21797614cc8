"""
Curation error taxonomy.

Every failure of a curation operation maps to one stable, distinguishable
condition so clients can render the precise reason. None of these are
transient; callers must not retry them. Storage faults (SQLAlchemy
``OperationalError`` and friends) are not part of this taxonomy and propagate
unchanged.
"""

from typing import Any, Dict, Optional


class CurationError(Exception):
    """Base class for curation failures.

    Attributes:
        code: Stable error code for programmatic handling
        message: Human-readable error description
        details: Optional structured context (ids, tiers)
        status_code: HTTP status the API surfaces for this failure
    """

    code = "CURATION_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(f"{self.code}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFound(CurationError):
    """A referenced work does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class ValidationError(CurationError):
    """Malformed input, surfaced verbatim."""

    code = "VALIDATION_ERROR"
    status_code = 400


class ImmutableTarget(CurationError):
    """Attempted to mutate or link into a canon-locked work."""

    code = "IMMUTABLE_TARGET"
    status_code = 403


class TerminalState(CurationError):
    """No promotion exists from the work's current tier."""

    code = "TERMINAL_STATE"
    status_code = 409


class DuplicateEdge(CurationError):
    """An edge already exists for the ordered (source, target) pair."""

    code = "DUPLICATE_EDGE"
    status_code = 409


class Forbidden(CurationError):
    """The caller does not own the resource it tried to change."""

    code = "FORBIDDEN"
    status_code = 403


class AlreadyInList(CurationError):
    """The work is already an item of the curated list."""

    code = "ALREADY_IN_LIST"
    status_code = 409


class HasHistory(CurationError):
    """A work with lineage, promotions, credits or list entries cannot be deleted."""

    code = "HAS_HISTORY"
    status_code = 409
