"""
Work Service.

Contributor-facing operations on works: creation (always in JAM, optionally
forked from parents), lookup by id or slug, listing, editing while the work
is still mutable, and guarded deletion. Tier changes are not made here; they
belong to the Promotion Engine.
"""

from math import ceil
from typing import Any, Dict, Iterable, List, Optional

import structlog

from ..db.models import PromotionEventModel, WorkEdgeModel, WorkModel
from ..db.store import WorkStore
from ..errors import HasHistory, ImmutableTarget, NotFound, ValidationError
from ..events import Notifier, publish_safely
from .enums import EdgeType, EventType, Tier
from .primitives import generate_id, generate_slug, utc_now

logger = structlog.get_logger(__name__)

# Attempts at a unique random slug suffix before giving up
SLUG_ATTEMPTS = 5


def _clean_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Title is required")
    return title.strip()


def _clean_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    return description.strip() or None


class WorkService:
    """Service for creating and maintaining works."""

    def __init__(self, store: WorkStore, notifier: Optional[Notifier] = None):
        self.store = store
        self.notifier = notifier

    def create_work(
        self,
        title: str,
        description: Optional[str] = None,
        created_by_id: Optional[str] = None,
        parent_ids: Iterable[str] = (),
    ) -> WorkModel:
        """Create a JAM work, with a FORK edge from each parent.

        The work and its parent edges are written in one transaction.

        Raises:
            ValidationError: empty title
            NotFound: a parent does not exist
        """
        title = _clean_title(title)
        parent_ids = list(dict.fromkeys(parent_ids))

        missing = [pid for pid in parent_ids if self.store.get_work(pid) is None]
        if missing:
            raise NotFound("Parent work not found", details={"missing": missing})

        now = utc_now()
        work = WorkModel(
            id=generate_id(),
            slug=self._unique_slug(title),
            title=title,
            description=_clean_description(description),
            tier=Tier.JAM.value,
            created_by_id=created_by_id,
            created_at=now,
            updated_at=now,
        )
        edges = [
            WorkEdgeModel(
                id=generate_id(),
                source_id=parent_id,
                target_id=work.id,
                type=EdgeType.FORK.value,
                created_at=now,
            )
            for parent_id in parent_ids
        ]
        self.store.add_work(work, edges)

        logger.info("Created work", work_id=work.id, slug=work.slug, parents=len(edges))
        publish_safely(
            self.notifier,
            EventType.WORK_CREATED,
            {"work": work.to_summary(), "parent_ids": parent_ids},
        )
        return work

    def _unique_slug(self, title: str) -> str:
        for _ in range(SLUG_ATTEMPTS):
            slug = generate_slug(title)
            if self.store.get_work_by_slug(slug) is None:
                return slug
        raise ValidationError(
            "Could not allocate a unique slug for this title", details={"title": title}
        )

    def get_work(self, id_or_slug: str) -> WorkModel:
        work = self.store.resolve_work(id_or_slug)
        if work is None:
            raise NotFound("Work not found", details={"work_id": id_or_slug})
        return work

    def list_works(
        self,
        tier: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        """Newest-first page of works, optionally filtered by tier."""
        if tier is not None:
            try:
                tier = Tier(tier).value
            except ValueError:
                raise ValidationError(
                    "Unknown tier", details={"tier": tier}
                ) from None
        if page < 1 or page_size < 1:
            raise ValidationError("page and page_size must be positive")

        total = self.store.count_works(tier)
        works = self.store.list_works(
            tier=tier, limit=page_size, offset=(page - 1) * page_size
        )
        return {
            "data": [w.to_dict() for w in works],
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": ceil(total / page_size),
        }

    def update_work(
        self,
        id_or_slug: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WorkModel:
        """Edit title and/or description of a work that is not CANON.

        Raises:
            NotFound: no such work
            ImmutableTarget: the work is canon-locked
            ValidationError: a blank title
        """
        work = self.get_work(id_or_slug)
        if work.is_locked:
            raise ImmutableTarget(
                "Cannot modify canonized works", details={"work_id": work.id}
            )

        values: Dict[str, Any] = {}
        if title is not None:
            values["title"] = _clean_title(title)
        if description is not None:
            values["description"] = _clean_description(description)
        if not values:
            return work

        values["updated_at"] = utc_now()
        updated = self.store.update_unlocked_work(work.id, values)
        if updated is None:
            raise ImmutableTarget(
                "Cannot modify canonized works", details={"work_id": work.id}
            )
        logger.info("Updated work", work_id=work.id, fields=sorted(values))
        return updated

    def delete_work(self, id_or_slug: str) -> None:
        """Delete a work nothing else refers to.

        Edges, promotion events, credits and list entries all pin a work.
        """
        work = self.get_work(id_or_slug)
        history = {
            "edges": self.store.count_edges(work.id),
            "promotions": self.store.count_promotions(work.id),
            "contributions": self.store.count_contributions(work.id),
            "list_items": self.store.count_list_items(work_id=work.id),
        }
        if any(history.values()):
            raise HasHistory(
                "Works with lineage or promotion history cannot be deleted",
                details={"work_id": work.id, **history},
            )
        self.store.delete_work(work)
        logger.info("Deleted work", work_id=work.id)

    def promotion_history(self, id_or_slug: str) -> List[PromotionEventModel]:
        work = self.get_work(id_or_slug)
        return self.store.list_promotions(work.id)

    def parents(self, id_or_slug: str) -> List[Dict[str, Any]]:
        """Direct incoming edges, each with its source work summary."""
        work = self.get_work(id_or_slug)
        return [
            {**edge.to_dict(), "source": source.to_summary()}
            for edge, source in self.store.edges_into(work.id)
        ]

    def children(self, id_or_slug: str) -> List[Dict[str, Any]]:
        """Direct outgoing edges, each with its target work summary."""
        work = self.get_work(id_or_slug)
        return [
            {**edge.to_dict(), "target": target.to_summary()}
            for edge, target in self.store.edges_out_of(work.id)
        ]
