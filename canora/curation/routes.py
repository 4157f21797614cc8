"""
Curation API Routes.

REST endpoints for works, lineage edges, promotion, credits and curated
lists. Domain failures are raised as ``CurationError`` subclasses and
translated to responses by the application's exception handler.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..config import get_settings
from ..db.base import get_db
from ..db.store import WorkStore
from ..events import Notifier, get_notifier
from .contributions import ContributionService
from .edges import EdgeRegistry
from .lineage import LineageGraphBuilder
from .lists import CuratedListService
from .metrics import compute_metrics
from .promotion import PromotionEngine
from .schemas import (
    ContributionCreate,
    Curator,
    CuratedListCreate,
    CuratedListUpdate,
    EdgeCreate,
    ListItemCreate,
    PromotionRequest,
    WorkCreate,
    WorkUpdate,
)
from .works import WorkService

router = APIRouter(tags=["curation"])

settings = get_settings()


def get_store(db: Session = Depends(get_db)) -> WorkStore:
    return WorkStore(db)


# =============================================================================
# Work Endpoints
# =============================================================================


@router.post("/works", status_code=201)
async def create_work(
    work: WorkCreate,
    store: WorkStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
) -> Dict[str, Any]:
    """Create a new Work in JAM, forking any listed parents."""
    service = WorkService(store, notifier)
    db_work = service.create_work(
        title=work.title,
        description=work.description,
        created_by_id=work.created_by_id,
        parent_ids=work.parent_work_ids,
    )
    return {"data": {**db_work.to_dict(), "parents": service.parents(db_work.id)}}


@router.get("/works")
async def list_works(
    tier: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    store: WorkStore = Depends(get_store),
) -> Dict[str, Any]:
    """List Works, newest first."""
    return WorkService(store).list_works(tier=tier, page=page, page_size=page_size)


@router.get("/works/{work_id}")
async def get_work(
    work_id: str,
    store: WorkStore = Depends(get_store),
) -> Dict[str, Any]:
    """Get a Work by id or slug with its direct lineage and promotion record."""
    service = WorkService(store)
    work = service.get_work(work_id)
    return {
        "data": {
            **work.to_dict(),
            "parents": service.parents(work.id),
            "children": service.children(work.id),
            "promotion_events": [
                e.to_dict() for e in service.promotion_history(work.id)
            ],
        }
    }


@router.patch("/works/{work_id}")
async def update_work(
    work_id: str,
    changes: WorkUpdate,
    store: WorkStore = Depends(get_store),
) -> Dict[str, Any]:
    """Edit a Work that is not CANON."""
    work = WorkService(store).update_work(
        work_id, title=changes.title, description=changes.description
    )
    return {"data": work.to_dict()}


@router.delete("/works/{work_id}", status_code=204)
async def delete_work(
    work_id: str,
    store: WorkStore = Depends(get_store),
) -> Response:
    """Delete a Work that has no edges and no promotion history."""
    WorkService(store).delete_work(work_id)
    return Response(status_code=204)


@router.get("/works/{work_id}/lineage")
async def get_lineage(
    work_id: str,
    depth: int = Query(settings.lineage_default_depth, ge=0, le=settings.lineage_max_depth),
    store: WorkStore = Depends(get_store),
) -> Dict[str, Any]:
    """Ancestors and descendants of a Work up to ``depth`` hops away."""
    graph = LineageGraphBuilder(store).build_graph(work_id, max_depth=depth)
    return {"data": graph.to_dict()}


@router.post("/works/{work_id}/promote")
async def promote_work(
    work_id: str,
    request: PromotionRequest,
    store: WorkStore = Depends(get_store),
    notifier: Notifier = Depends(get_notifier),
) -> Dict[str, Any]:
    """Promote a Work to its next tier. CANON is permanent."""
    result = PromotionEngine(store, notifier).promote(
        work_id, request.justification, request.curator
    )
    return {"data": result.to_dict()}


@router.get("/works/{work_id}/promotions")
async def list_promotions(
    work_id: str,
    store: WorkStore = Depends(get_store),
) -> Dict[str, Any]:
    """Promotion events of a Work, oldest first."""
    return {
        "data": [e.to_dict() for e in WorkService(store).promotion_history(work_id)]
    }


# =============================================================================
# Contribution Endpoints
# =============================================================================


@router.get("/works/{work_id}/contributions")
async def list_contributions(
    work_id: str,
    store: WorkStore = Depends(get_store),
) -> Dict[str, Any]:
    """Credits of a Work, oldest first."""
    contributions = ContributionService(store).list_contributions(work_id)
    return {"data": [c.to_dict() for c in contributions]}


@router.post("/works/{work_id}/contributions", status_code=201)
async def add_contribution(
    work_id: str,
    contribution: ContributionCreate,
    store: WorkStore = Depends(get_store),
) -> Dict[str, Any]:
    """Credit a contributor on a Work that is not CANON."""
    db_contribution = ContributionService(store).add_contribution(
        work_id,
        display_name=contribution.display_name,
        role=contribution.role,
        notes=contribution.notes,
        user_id=contribution.user_id,
    )
    return {"data": db_contribution.to_dict()}


# =============================================================================
# Edge Endpoints
# =============================================================================


@router.post("/edges", status_code=201)
async def create_edge(
    edge: EdgeCreate,
    store: WorkStore = Depends(get_store),
) -> Dict[str, Any]:
    """Declare a FORK, MERGE or DERIVED edge between two Works."""
    db_edge = EdgeRegistry(store).create_edge(edge.source_id, edge.target_id, edge.type)
    return {"data": db_edge.to_dict()}


# =============================================================================
# Curated List Endpoints
# =============================================================================


@router.get("/lists")
async def list_lists(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    store: WorkStore = Depends(get_store),
) -> Dict[str, Any]:
    """List curated lists, newest first, with a preview of each."""
    return CuratedListService(store).list_lists(page=page, page_size=page_size)


@router.post("/lists", status_code=201)
async def create_list(
    request: CuratedListCreate,
    store: WorkStore = Depends(get_store),
) -> Dict[str, Any]:
    """Create a curated list owned by the given curator."""
    curated_list = CuratedListService(store).create_list(
        request.title, request.description, request.curator
    )
    return {"data": curated_list.to_dict()}


@router.get("/lists/{list_id}")
async def get_list(
    list_id: str,
    store: WorkStore = Depends(get_store),
) -> Dict[str, Any]:
    """Get a curated list with all of its items in order."""
    return {"data": CuratedListService(store).get_list(list_id)}


@router.patch("/lists/{list_id}")
async def update_list(
    list_id: str,
    changes: CuratedListUpdate,
    store: WorkStore = Depends(get_store),
) -> Dict[str, Any]:
    """Rename or redescribe a list. Owner only."""
    curated_list = CuratedListService(store).update_list(
        list_id, changes.curator, title=changes.title, description=changes.description
    )
    return {"data": curated_list.to_dict()}


@router.delete("/lists/{list_id}", status_code=204)
async def delete_list(
    list_id: str,
    curator_id: str = Query(..., min_length=1),
    store: WorkStore = Depends(get_store),
) -> Response:
    """Delete a list and its items. Owner only."""
    CuratedListService(store).delete_list(list_id, Curator(id=curator_id))
    return Response(status_code=204)


@router.post("/lists/{list_id}/items", status_code=201)
async def add_list_item(
    list_id: str,
    request: ListItemCreate,
    store: WorkStore = Depends(get_store),
) -> Dict[str, Any]:
    """Append a Work to the end of a list. Owner only."""
    item = CuratedListService(store).add_item(list_id, request.work_id, request.curator)
    return {"data": item.to_dict()}


@router.delete("/lists/{list_id}/items", status_code=204)
async def remove_list_item(
    list_id: str,
    work_id: str = Query(..., min_length=1),
    curator_id: str = Query(..., min_length=1),
    store: WorkStore = Depends(get_store),
) -> Response:
    """Remove a Work from a list. Owner only."""
    CuratedListService(store).remove_item(list_id, work_id, Curator(id=curator_id))
    return Response(status_code=204)


# =============================================================================
# Metrics Endpoints
# =============================================================================


@router.get("/metrics")
async def get_metrics(store: WorkStore = Depends(get_store)) -> Dict[str, Any]:
    """Tier distribution and promotion latency."""
    return {"data": compute_metrics(store).to_dict()}
