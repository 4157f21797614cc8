"""
Contribution credits.

Who did what on a work: vocals, beat, lyrics and so on. Credits can be added
while a work is JAM or PLATE; once a work is CANON its credit list is frozen
along with the rest of it.
"""

from typing import Any, List, Optional

import structlog

from ..db.models import ContributionModel
from ..db.store import WorkStore
from ..errors import ImmutableTarget, NotFound, ValidationError
from .enums import ContributionRole
from .primitives import generate_id, utc_now

logger = structlog.get_logger(__name__)


class ContributionService:
    """Service for crediting contributors on works."""

    def __init__(self, store: WorkStore):
        self.store = store

    def _work(self, id_or_slug: str):
        work = self.store.resolve_work(id_or_slug)
        if work is None:
            raise NotFound("Work not found", details={"work_id": id_or_slug})
        return work

    def list_contributions(self, id_or_slug: str) -> List[ContributionModel]:
        """Credits of a work, oldest first."""
        return self.store.list_contributions(self._work(id_or_slug).id)

    def add_contribution(
        self,
        id_or_slug: str,
        display_name: Any,
        role: Any,
        notes: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ContributionModel:
        """Credit ``display_name`` with ``role`` on a work.

        Raises:
            NotFound: no such work
            ImmutableTarget: the work is canon-locked
            ValidationError: blank display name or unknown role
        """
        work = self._work(id_or_slug)
        if work.is_locked:
            raise ImmutableTarget(
                "Cannot modify canonized works", details={"work_id": work.id}
            )

        if not isinstance(display_name, str) or not display_name.strip():
            raise ValidationError("Display name is required")
        try:
            role = ContributionRole(role)
        except ValueError:
            raise ValidationError(
                "Valid contribution role is required", details={"role": role}
            ) from None

        contribution = ContributionModel(
            id=generate_id(),
            work_id=work.id,
            display_name=display_name.strip(),
            role=role.value,
            notes=(notes or "").strip() or None,
            user_id=user_id,
            created_at=utc_now(),
        )
        self.store.add_contribution(contribution)
        logger.info(
            "Added contribution",
            work_id=work.id,
            contribution_id=contribution.id,
            role=contribution.role,
        )
        return contribution
