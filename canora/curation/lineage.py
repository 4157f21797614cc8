"""
Lineage Graph Builder.

Reconstructs ancestry and descendancy of a work by breadth-first traversal
in both directions at once. One FIFO queue carries tagged items
``(work_id, direction, depth)`` and feeds a shared node map, edge list and
visited set keyed by ``(work_id, direction)``.

Depth semantics:
    negative  ancestors (reached going UP through edges that target a work)
    zero      the root
    positive  descendants (reached going DOWN through edges a work sources)

A node's depth is fixed when it is first discovered and never revised, so a
node reachable along several paths keeps the depth of whichever path the
queue reached first, which is not necessarily the shortest.

The graph is an unlocked point-in-time read assembled from several queries;
a work promoted mid-traversal may show its old tier.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Set, Tuple

import structlog

from ..db.store import WorkStore
from ..errors import NotFound, ValidationError
from .enums import Direction

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DEPTH = 3


@dataclass
class LineageNode:
    id: str
    slug: str
    title: str
    tier: str
    depth: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "tier": self.tier,
            "depth": self.depth,
        }


@dataclass
class LineageEdge:
    id: str
    source: str
    target: str
    type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type,
        }


@dataclass
class LineageGraph:
    nodes: List[LineageNode] = field(default_factory=list)
    edges: List[LineageEdge] = field(default_factory=list)

    def node(self, work_id: str) -> LineageNode:
        for node in self.nodes:
            if node.id == work_id:
                return node
        raise KeyError(work_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


class LineageGraphBuilder:
    """Builds depth-bounded lineage graphs from a Work Store."""

    def __init__(self, store: WorkStore):
        self.store = store

    def build_graph(self, root_id: str, max_depth: int = DEFAULT_MAX_DEPTH) -> LineageGraph:
        """Collect every work within ``max_depth`` hops above or below the root.

        ``root_id`` may be a work id or slug.

        Raises:
            ValidationError: ``max_depth`` is negative or not an int
            NotFound: the root work does not exist
        """
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
            raise ValidationError(
                "max_depth must be a non-negative integer",
                details={"max_depth": max_depth},
            )

        root = self.store.resolve_work(root_id)
        if root is None:
            raise NotFound("Work not found", details={"work_id": root_id})

        nodes: Dict[str, LineageNode] = {
            root.id: LineageNode(root.id, root.slug, root.title, root.tier, 0)
        }
        edges: List[LineageEdge] = []
        recorded_pairs: Set[Tuple[str, str]] = set()
        visited: Set[Tuple[str, Direction]] = set()
        queue: Deque[Tuple[str, Direction, int]] = deque(
            [(root.id, Direction.UP, 0), (root.id, Direction.DOWN, 0)]
        )

        while queue:
            work_id, direction, depth = queue.popleft()

            if depth >= max_depth:
                continue
            if (work_id, direction) in visited:
                continue
            visited.add((work_id, direction))

            if direction is Direction.UP:
                for edge, parent in self.store.edges_into(work_id):
                    if parent.id not in nodes:
                        nodes[parent.id] = LineageNode(
                            parent.id, parent.slug, parent.title, parent.tier, -(depth + 1)
                        )
                    edges.append(LineageEdge(edge.id, edge.source_id, edge.target_id, edge.type))
                    recorded_pairs.add((edge.source_id, edge.target_id))
                    queue.append((parent.id, Direction.UP, depth + 1))
            else:
                for edge, child in self.store.edges_out_of(work_id):
                    if child.id not in nodes:
                        nodes[child.id] = LineageNode(
                            child.id, child.slug, child.title, child.tier, depth + 1
                        )
                    pair = (edge.source_id, edge.target_id)
                    if pair not in recorded_pairs:
                        edges.append(LineageEdge(edge.id, edge.source_id, edge.target_id, edge.type))
                        recorded_pairs.add(pair)
                    queue.append((child.id, Direction.DOWN, depth + 1))

        logger.debug(
            "Built lineage graph",
            root_id=root.id,
            max_depth=max_depth,
            nodes=len(nodes),
            edges=len(edges),
        )
        return LineageGraph(nodes=list(nodes.values()), edges=edges)
