"""
Promotion Engine.

Moves a work one step along JAM -> PLATE -> CANON. Each promotion needs a
curator-signed justification that is stored permanently alongside the
transition. Reaching CANON locks the work for good.

The engine takes no locks of its own. The event insert and the tier
compare-and-set commit in one store transaction; the event is published only
after that commit, and a notifier failure never rolls the promotion back.
Client-side confirmation before CANON is a UI convention, so every call is
re-validated here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog

from ..config import get_settings
from ..db.models import PromotionEventModel, WorkModel
from ..db.store import WorkStore
from ..errors import NotFound, TerminalState, ValidationError
from ..events import Notifier, publish_safely
from .enums import EventType, Tier
from .primitives import generate_id, utc_now
from .schemas import Curator
from .tiers import Canon, advance

logger = structlog.get_logger(__name__)


@dataclass
class PromotionResult:
    work: WorkModel
    promotion_event: PromotionEventModel

    def to_dict(self) -> Dict[str, Any]:
        return {
            "work": self.work.to_dict(),
            "promotion_event": self.promotion_event.to_dict(),
        }


def normalize_justification(justification: Any, min_length: int) -> str:
    if not isinstance(justification, str) or len(justification.strip()) < min_length:
        raise ValidationError(
            f"Justification is required (minimum {min_length} characters)"
        )
    return justification.strip()


class PromotionEngine:
    """Tier state machine for curated works."""

    def __init__(
        self,
        store: WorkStore,
        notifier: Optional[Notifier] = None,
        min_justification_length: Optional[int] = None,
        anonymous_curator_name: Optional[str] = None,
    ):
        settings = get_settings()
        self.store = store
        self.notifier = notifier
        self.min_justification_length = (
            min_justification_length
            if min_justification_length is not None
            else settings.min_justification_length
        )
        self.anonymous_curator_name = (
            anonymous_curator_name or settings.anonymous_curator_name
        )

    def promote(self, work_id: str, justification: str, curator: Curator) -> PromotionResult:
        """Promote a work to its next tier.

        Raises:
            NotFound: no work with that id or slug
            TerminalState: the work is already CANON (checked before the
                justification), or a concurrent promotion moved it first
            ValidationError: trimmed justification shorter than the minimum
        """
        work = self.store.resolve_work(work_id)
        if work is None:
            raise NotFound("Work not found", details={"work_id": work_id})

        # CANON is terminal whatever the justification says
        from_tier = Tier(work.tier)
        now = utc_now()
        new_state = advance(work.state, locked_at=now, locked_by=curator.id)
        to_tier = new_state.tier

        text = normalize_justification(justification, self.min_justification_length)

        event = PromotionEventModel(
            id=generate_id(),
            work_id=work.id,
            from_tier=from_tier.value,
            to_tier=to_tier.value,
            justification=text,
            signed_by_id=curator.id,
            signed_by_display_name=curator.display_name or self.anonymous_curator_name,
            created_at=now,
        )

        locked_at = new_state.locked_at if isinstance(new_state, Canon) else None
        locked_by = new_state.locked_by if isinstance(new_state, Canon) else None
        if not self.store.commit_promotion(event, locked_at=locked_at, locked_by_id=locked_by):
            raise TerminalState(
                "Work tier changed concurrently; promotion not applied",
                details={"work_id": work.id, "expected_tier": from_tier.value},
            )

        logger.info(
            "Promoted work",
            work_id=work.id,
            from_tier=from_tier.value,
            to_tier=to_tier.value,
            curator_id=curator.id,
        )

        event_type = EventType.WORK_CANONIZED if to_tier is Tier.CANON else EventType.WORK_PROMOTED
        publish_safely(
            self.notifier,
            event_type,
            {
                "work": {
                    "id": work.id,
                    "slug": work.slug,
                    "title": work.title,
                    "tier": work.tier,
                },
                "from_tier": from_tier.value,
                "to_tier": to_tier.value,
                "curator_justification": text,
                "promotion_event": {
                    "id": event.id,
                    "signed_by_id": event.signed_by_id,
                    "signed_by_display_name": event.signed_by_display_name,
                    "created_at": event.created_at.isoformat(),
                },
            },
        )

        return PromotionResult(work=work, promotion_event=event)
