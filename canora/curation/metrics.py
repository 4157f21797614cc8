"""
Curation metrics: how works are distributed over tiers and how long
promotions take.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from ..db.store import WorkStore
from .enums import Tier
from .primitives import as_utc

SECONDS_PER_DAY = 60 * 60 * 24


@dataclass
class CurationMetrics:
    total_works: int
    jam_count: int
    plate_count: int
    canon_count: int
    canon_percentage: float
    edge_count: int
    median_jam_to_plate_days: Optional[int]
    median_plate_to_canon_days: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _median(values: List[int]) -> Optional[int]:
    """Upper median; None for an empty list."""
    if not values:
        return None
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


def _whole_days(start, end) -> int:
    return int((as_utc(end) - as_utc(start)).total_seconds() // SECONDS_PER_DAY)


def compute_metrics(store: WorkStore) -> CurationMetrics:
    counts = store.count_works_by_tier()
    jam = counts.get(Tier.JAM.value, 0)
    plate = counts.get(Tier.PLATE.value, 0)
    canon = counts.get(Tier.CANON.value, 0)
    total = jam + plate + canon

    plated_at = {}
    jam_to_plate: List[int] = []
    plate_to_canon: List[int] = []
    for event, work_created_at in store.promotions_with_work_created_at():
        if event.to_tier == Tier.PLATE.value:
            plated_at[event.work_id] = event.created_at
            jam_to_plate.append(_whole_days(work_created_at, event.created_at))
        elif event.to_tier == Tier.CANON.value and event.work_id in plated_at:
            plate_to_canon.append(_whole_days(plated_at[event.work_id], event.created_at))

    return CurationMetrics(
        total_works=total,
        jam_count=jam,
        plate_count=plate,
        canon_count=canon,
        canon_percentage=round(canon / total * 100, 2) if total else 0.0,
        edge_count=store.count_edges(),
        median_jam_to_plate_days=_median(jam_to_plate),
        median_plate_to_canon_days=_median(plate_to_canon),
    )
