"""
Curated lists.

A curator gathers works into a titled, ordered list. Anyone can read a list;
only the curator who created it may rename it, delete it or change its
items. Items keep the position they were added at; a work appears at most
once per list.
"""

from math import ceil
from typing import Any, Dict, Optional

import structlog
from sqlalchemy.exc import IntegrityError

from ..db.models import CuratedListItemModel, CuratedListModel
from ..db.store import WorkStore
from ..errors import AlreadyInList, Forbidden, NotFound, ValidationError
from .primitives import generate_id, utc_now
from .schemas import Curator

logger = structlog.get_logger(__name__)

# Items shown with each list on the index page
PREVIEW_SIZE = 5


def _clean_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Title is required")
    return title.strip()


def _clean_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    return description.strip() or None


def _item_dict(item: CuratedListItemModel, work) -> Dict[str, Any]:
    return {
        **item.to_dict(),
        "work": {
            **work.to_summary(),
            "description": work.description,
            "created_at": work.to_dict()["created_at"],
        },
    }


class CuratedListService:
    """Service for curator-owned lists of works."""

    def __init__(self, store: WorkStore):
        self.store = store

    def _list(self, list_id: str) -> CuratedListModel:
        curated_list = self.store.get_list(list_id)
        if curated_list is None:
            raise NotFound("List not found", details={"list_id": list_id})
        return curated_list

    def _owned(self, list_id: str, curator: Curator, action: str) -> CuratedListModel:
        curated_list = self._list(list_id)
        if curated_list.curator_id != curator.id:
            raise Forbidden(
                f"Not authorized to {action} this list",
                details={"list_id": list_id, "curator_id": curator.id},
            )
        return curated_list

    def create_list(
        self, title: Any, description: Optional[str], curator: Curator
    ) -> CuratedListModel:
        now = utc_now()
        curated_list = CuratedListModel(
            id=generate_id(),
            title=_clean_title(title),
            description=_clean_description(description),
            curator_id=curator.id,
            created_at=now,
            updated_at=now,
        )
        self.store.add_list(curated_list)
        logger.info("Created curated list", list_id=curated_list.id, curator_id=curator.id)
        return curated_list

    def list_lists(self, page: int = 1, page_size: int = 20) -> Dict[str, Any]:
        """Newest-first page of lists, each with a short preview of its items."""
        if page < 1 or page_size < 1:
            raise ValidationError("page and page_size must be positive")

        total = self.store.count_lists()
        lists = self.store.list_lists(limit=page_size, offset=(page - 1) * page_size)
        return {
            "data": [
                {
                    **curated_list.to_dict(),
                    "items": [
                        _item_dict(item, work)
                        for item, work in self.store.list_items(
                            curated_list.id, limit=PREVIEW_SIZE
                        )
                    ],
                    "item_count": self.store.count_list_items(list_id=curated_list.id),
                }
                for curated_list in lists
            ],
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": ceil(total / page_size),
        }

    def get_list(self, list_id: str) -> Dict[str, Any]:
        """A list with every item in order."""
        curated_list = self._list(list_id)
        return {
            **curated_list.to_dict(),
            "items": [
                _item_dict(item, work)
                for item, work in self.store.list_items(curated_list.id)
            ],
        }

    def update_list(
        self,
        list_id: str,
        curator: Curator,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> CuratedListModel:
        curated_list = self._owned(list_id, curator, "modify")

        values: Dict[str, Any] = {}
        if title is not None:
            values["title"] = _clean_title(title)
        if description is not None:
            values["description"] = _clean_description(description)
        if not values:
            return curated_list

        values["updated_at"] = utc_now()
        return self.store.update_list(curated_list, values)

    def delete_list(self, list_id: str, curator: Curator) -> None:
        curated_list = self._owned(list_id, curator, "delete")
        self.store.delete_list(curated_list)
        logger.info("Deleted curated list", list_id=list_id)

    def add_item(
        self, list_id: str, work_id: Any, curator: Curator
    ) -> CuratedListItemModel:
        """Append a work to the end of a list.

        Raises:
            ValidationError: no work id given
            NotFound: no such list or work
            Forbidden: the curator does not own the list
            AlreadyInList: the work is already an item
        """
        if not isinstance(work_id, str) or not work_id.strip():
            raise ValidationError("Work ID is required")
        curated_list = self._owned(list_id, curator, "modify")

        work = self.store.get_work(work_id)
        if work is None:
            raise NotFound("Work not found", details={"work_id": work_id})

        details = {"list_id": list_id, "work_id": work.id}
        if self.store.find_list_item(list_id, work.id) is not None:
            raise AlreadyInList("Work is already in this list", details=details)

        last = self.store.max_order_index(list_id)
        item = CuratedListItemModel(
            id=generate_id(),
            list_id=curated_list.id,
            work_id=work.id,
            order_index=0 if last is None else last + 1,
            created_at=utc_now(),
        )
        try:
            self.store.add_list_item(item)
        except IntegrityError:
            # A concurrent request added the same work
            raise AlreadyInList("Work is already in this list", details=details) from None

        logger.info(
            "Added list item", list_id=list_id, work_id=work.id, order_index=item.order_index
        )
        return item

    def remove_item(self, list_id: str, work_id: Any, curator: Curator) -> None:
        if not isinstance(work_id, str) or not work_id.strip():
            raise ValidationError("Work ID is required")
        self._owned(list_id, curator, "modify")

        item = self.store.find_list_item(list_id, work_id)
        if item is None:
            raise NotFound(
                "Work is not in this list",
                details={"list_id": list_id, "work_id": work_id},
            )
        self.store.delete_list_item(item)
        logger.info("Removed list item", list_id=list_id, work_id=work_id)
