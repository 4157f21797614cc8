"""
Edge Registry.

Validates and records typed derivation edges. Lineage is append-only: edges
are never updated or deleted, and no edge may target a CANON work. Cycles are
allowed (remix lineage need not be a tree), so no acyclicity check is made.
"""

from typing import Union

import structlog
from sqlalchemy.exc import IntegrityError

from ..db.models import WorkEdgeModel
from ..db.store import WorkStore
from ..errors import DuplicateEdge, ImmutableTarget, NotFound, ValidationError
from .enums import EdgeType
from .primitives import generate_id, utc_now

logger = structlog.get_logger(__name__)


def parse_edge_type(value: Union[EdgeType, str]) -> EdgeType:
    try:
        return EdgeType(value)
    except ValueError:
        raise ValidationError(
            "Valid edge type is required (FORK, MERGE, DERIVED)",
            details={"type": str(value)},
        ) from None


class EdgeRegistry:
    """Creates lineage edges between existing works."""

    def __init__(self, store: WorkStore):
        self.store = store

    def create_edge(
        self,
        source_id: str,
        target_id: str,
        edge_type: Union[EdgeType, str],
    ) -> WorkEdgeModel:
        """Record a ``edge_type`` edge from ``source_id`` to ``target_id``.

        Raises:
            ValidationError: unknown edge type or missing id
            NotFound: either work does not exist
            ImmutableTarget: the target work is CANON
            DuplicateEdge: an edge for the pair already exists
        """
        if not source_id or not target_id:
            raise ValidationError("Both source_id and target_id are required")
        edge_type = parse_edge_type(edge_type)

        source = self.store.get_work(source_id)
        target = self.store.get_work(target_id)
        if source is None or target is None:
            raise NotFound(
                "One or both works not found",
                details={
                    "missing": [
                        wid
                        for wid, work in ((source_id, source), (target_id, target))
                        if work is None
                    ]
                },
            )

        if target.is_locked:
            raise ImmutableTarget(
                "Cannot create edges to canonized works",
                details={"target_id": target_id},
            )

        pair = {"source_id": source_id, "target_id": target_id}
        if self.store.find_edge(source_id, target_id) is not None:
            raise DuplicateEdge("Edge already exists between these works", details=pair)

        edge = WorkEdgeModel(
            id=generate_id(),
            source_id=source_id,
            target_id=target_id,
            type=edge_type.value,
            created_at=utc_now(),
        )
        try:
            self.store.add_edge(edge)
        except IntegrityError:
            # Lost a race to an identical request
            if self.store.find_edge(source_id, target_id) is not None:
                raise DuplicateEdge(
                    "Edge already exists between these works", details=pair
                ) from None
            raise

        logger.info(
            "Created edge",
            edge_id=edge.id,
            source_id=source_id,
            target_id=target_id,
            edge_type=edge_type.value,
        )
        return edge
