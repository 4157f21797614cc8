"""
Work Store.

The single persistence collaborator for the curation components. Each
component receives a ``WorkStore`` explicitly; there is no process-wide
client. The store supplies point lookups by id or slug, edge lookups by
source or target, and the transactional writes the components rely on:

- ``add_edge`` is backed by the ``uq_work_edges_source_target`` constraint,
  so concurrent identical inserts produce exactly one row.
- ``add_list_item`` is backed by ``uq_curated_list_items_list_work`` the same
  way, so a work appears at most once per curated list.
- ``commit_promotion`` inserts the promotion event and compare-and-sets the
  tier in one transaction, so two promotions racing from the same tier
  cannot both succeed.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

import structlog
from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session

from .models import (
    ContributionModel,
    CuratedListItemModel,
    CuratedListModel,
    PromotionEventModel,
    WorkEdgeModel,
    WorkModel,
)

logger = structlog.get_logger(__name__)


class WorkStore:
    """SQLAlchemy-backed store for works, edges, promotions, credits and lists.

    Usage:
        store = WorkStore(db_session)
        work = store.resolve_work("midnight-echoes-a3b2")
    """

    def __init__(self, db: Session):
        self.db = db

    # Works

    def get_work(self, work_id: str) -> Optional[WorkModel]:
        return self.db.query(WorkModel).filter(WorkModel.id == work_id).first()

    def get_work_by_slug(self, slug: str) -> Optional[WorkModel]:
        return self.db.query(WorkModel).filter(WorkModel.slug == slug).first()

    def resolve_work(self, id_or_slug: str) -> Optional[WorkModel]:
        """Look a work up by id, falling back to slug."""
        return self.get_work(id_or_slug) or self.get_work_by_slug(id_or_slug)

    def add_work(
        self, work: WorkModel, edges: Iterable[WorkEdgeModel] = ()
    ) -> WorkModel:
        """Insert a work together with its initial edges in one transaction."""
        try:
            self.db.add(work)
            self.db.flush()
            for edge in edges:
                self.db.add(edge)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(work)
        return work

    def update_unlocked_work(
        self, work_id: str, values: Dict[str, object]
    ) -> Optional[WorkModel]:
        """Update scalar fields of a work that is not CANON.

        Returns None when no non-CANON work with that id exists. The tier
        guard sits in the UPDATE itself so a concurrent canonization wins.
        """
        result = self.db.execute(
            update(WorkModel)
            .where(WorkModel.id == work_id, WorkModel.tier != "CANON")
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            return None
        self.db.commit()
        work = self.get_work(work_id)
        self.db.refresh(work)
        return work

    def delete_work(self, work: WorkModel) -> None:
        self.db.delete(work)
        self.db.commit()

    def list_works(
        self, tier: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> List[WorkModel]:
        query = self.db.query(WorkModel)
        if tier:
            query = query.filter(WorkModel.tier == tier)
        return (
            query.order_by(WorkModel.created_at.desc(), WorkModel.id)
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_works(self, tier: Optional[str] = None) -> int:
        query = self.db.query(func.count(WorkModel.id))
        if tier:
            query = query.filter(WorkModel.tier == tier)
        return query.scalar() or 0

    def count_works_by_tier(self) -> Dict[str, int]:
        rows = (
            self.db.query(WorkModel.tier, func.count(WorkModel.id))
            .group_by(WorkModel.tier)
            .all()
        )
        return {tier: count for tier, count in rows}

    # Edges

    def find_edge(self, source_id: str, target_id: str) -> Optional[WorkEdgeModel]:
        return (
            self.db.query(WorkEdgeModel)
            .filter(
                WorkEdgeModel.source_id == source_id,
                WorkEdgeModel.target_id == target_id,
            )
            .first()
        )

    def add_edge(self, edge: WorkEdgeModel) -> WorkEdgeModel:
        """Insert one edge.

        Raises ``sqlalchemy.exc.IntegrityError`` when the (source, target)
        pair already exists; the session is rolled back first.
        """
        try:
            self.db.add(edge)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(edge)
        return edge

    def edges_into(self, work_id: str) -> List[Tuple[WorkEdgeModel, WorkModel]]:
        """Edges targeting ``work_id``, each paired with its source work."""
        return (
            self.db.query(WorkEdgeModel, WorkModel)
            .join(WorkModel, WorkModel.id == WorkEdgeModel.source_id)
            .filter(WorkEdgeModel.target_id == work_id)
            .order_by(WorkEdgeModel.created_at, WorkEdgeModel.id)
            .all()
        )

    def edges_out_of(self, work_id: str) -> List[Tuple[WorkEdgeModel, WorkModel]]:
        """Edges sourced at ``work_id``, each paired with its target work."""
        return (
            self.db.query(WorkEdgeModel, WorkModel)
            .join(WorkModel, WorkModel.id == WorkEdgeModel.target_id)
            .filter(WorkEdgeModel.source_id == work_id)
            .order_by(WorkEdgeModel.created_at, WorkEdgeModel.id)
            .all()
        )

    def count_edges(self, work_id: Optional[str] = None) -> int:
        query = self.db.query(func.count(WorkEdgeModel.id))
        if work_id:
            query = query.filter(
                or_(
                    WorkEdgeModel.source_id == work_id,
                    WorkEdgeModel.target_id == work_id,
                )
            )
        return query.scalar() or 0

    # Promotions

    def commit_promotion(
        self,
        event: PromotionEventModel,
        locked_at: Optional[datetime] = None,
        locked_by_id: Optional[str] = None,
    ) -> bool:
        """Record ``event`` and move its work from ``from_tier`` to ``to_tier``.

        Both writes commit together. Returns False, writing nothing, when the
        work is no longer at ``event.from_tier``.
        """
        values: Dict[str, object] = {"tier": event.to_tier, "updated_at": event.created_at}
        if event.to_tier == "CANON":
            values["canon_locked_at"] = locked_at
            values["canon_locked_by_id"] = locked_by_id

        try:
            result = self.db.execute(
                update(WorkModel)
                .where(
                    WorkModel.id == event.work_id,
                    WorkModel.tier == event.from_tier,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                logger.warning(
                    "Promotion lost tier compare-and-set",
                    work_id=event.work_id,
                    from_tier=event.from_tier,
                )
                return False
            self.db.add(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(event)
        work = self.db.get(WorkModel, event.work_id)
        if work is not None:
            self.db.refresh(work)
        return True

    def list_promotions(self, work_id: str) -> List[PromotionEventModel]:
        """Promotion events for a work in the order they happened."""
        rank = {"JAM": 0, "PLATE": 1, "CANON": 2}
        events = (
            self.db.query(PromotionEventModel)
            .filter(PromotionEventModel.work_id == work_id)
            .all()
        )
        return sorted(events, key=lambda e: (rank[e.from_tier], e.created_at))

    def count_promotions(self, work_id: str) -> int:
        return (
            self.db.query(func.count(PromotionEventModel.id))
            .filter(PromotionEventModel.work_id == work_id)
            .scalar()
            or 0
        )

    def promotions_with_work_created_at(
        self,
    ) -> List[Tuple[PromotionEventModel, datetime]]:
        """Every promotion event paired with its work's creation time."""
        return (
            self.db.query(PromotionEventModel, WorkModel.created_at)
            .join(WorkModel, WorkModel.id == PromotionEventModel.work_id)
            .order_by(PromotionEventModel.created_at)
            .all()
        )

    # Contributions

    def add_contribution(self, contribution: ContributionModel) -> ContributionModel:
        try:
            self.db.add(contribution)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(contribution)
        return contribution

    def list_contributions(self, work_id: str) -> List[ContributionModel]:
        return (
            self.db.query(ContributionModel)
            .filter(ContributionModel.work_id == work_id)
            .order_by(ContributionModel.created_at, ContributionModel.id)
            .all()
        )

    def count_contributions(self, work_id: str) -> int:
        return (
            self.db.query(func.count(ContributionModel.id))
            .filter(ContributionModel.work_id == work_id)
            .scalar()
            or 0
        )

    # Curated lists

    def get_list(self, list_id: str) -> Optional[CuratedListModel]:
        return (
            self.db.query(CuratedListModel)
            .filter(CuratedListModel.id == list_id)
            .first()
        )

    def add_list(self, curated_list: CuratedListModel) -> CuratedListModel:
        try:
            self.db.add(curated_list)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(curated_list)
        return curated_list

    def update_list(
        self, curated_list: CuratedListModel, values: Dict[str, object]
    ) -> CuratedListModel:
        try:
            for key, value in values.items():
                setattr(curated_list, key, value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(curated_list)
        return curated_list

    def delete_list(self, curated_list: CuratedListModel) -> None:
        """Delete a list and every item in it in one transaction."""
        try:
            self.db.query(CuratedListItemModel).filter(
                CuratedListItemModel.list_id == curated_list.id
            ).delete(synchronize_session=False)
            self.db.delete(curated_list)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def list_lists(self, limit: int = 20, offset: int = 0) -> List[CuratedListModel]:
        return (
            self.db.query(CuratedListModel)
            .order_by(CuratedListModel.created_at.desc(), CuratedListModel.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_lists(self) -> int:
        return self.db.query(func.count(CuratedListModel.id)).scalar() or 0

    def list_items(
        self, list_id: str, limit: Optional[int] = None
    ) -> List[Tuple[CuratedListItemModel, WorkModel]]:
        """Items of a list by position, each paired with its work."""
        query = (
            self.db.query(CuratedListItemModel, WorkModel)
            .join(WorkModel, WorkModel.id == CuratedListItemModel.work_id)
            .filter(CuratedListItemModel.list_id == list_id)
            .order_by(CuratedListItemModel.order_index, CuratedListItemModel.created_at)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count_list_items(
        self, list_id: Optional[str] = None, work_id: Optional[str] = None
    ) -> int:
        query = self.db.query(func.count(CuratedListItemModel.id))
        if list_id:
            query = query.filter(CuratedListItemModel.list_id == list_id)
        if work_id:
            query = query.filter(CuratedListItemModel.work_id == work_id)
        return query.scalar() or 0

    def find_list_item(
        self, list_id: str, work_id: str
    ) -> Optional[CuratedListItemModel]:
        return (
            self.db.query(CuratedListItemModel)
            .filter(
                CuratedListItemModel.list_id == list_id,
                CuratedListItemModel.work_id == work_id,
            )
            .first()
        )

    def max_order_index(self, list_id: str) -> Optional[int]:
        return (
            self.db.query(func.max(CuratedListItemModel.order_index))
            .filter(CuratedListItemModel.list_id == list_id)
            .scalar()
        )

    def add_list_item(self, item: CuratedListItemModel) -> CuratedListItemModel:
        """Insert one list item.

        Raises ``sqlalchemy.exc.IntegrityError`` when the work is already in
        the list; the session is rolled back first.
        """
        try:
            self.db.add(item)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(item)
        return item

    def delete_list_item(self, item: CuratedListItemModel) -> None:
        try:
            self.db.delete(item)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
