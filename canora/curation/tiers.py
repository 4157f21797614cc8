"""
Tier state machine.

A work's tier is a tagged variant: ``Jam``, ``Plate`` or ``Canon``. Only
``Canon`` carries lock metadata, so a lock can never exist without the
CANON tag, and ``advance`` has no path out of ``Canon``.

    JAM --promote--> PLATE --promote--> CANON (terminal, locked)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Union

from ..errors import TerminalState
from .enums import Tier

# Fixed promotion table; CANON has no successor.
NEXT_TIER: Dict[Tier, Optional[Tier]] = {
    Tier.JAM: Tier.PLATE,
    Tier.PLATE: Tier.CANON,
    Tier.CANON: None,
}

_ORDER = {Tier.JAM: 0, Tier.PLATE: 1, Tier.CANON: 2}


@dataclass(frozen=True)
class Jam:
    tier = Tier.JAM


@dataclass(frozen=True)
class Plate:
    tier = Tier.PLATE


@dataclass(frozen=True)
class Canon:
    """Permanent tier. Lock metadata is set once and never cleared."""

    locked_at: datetime
    locked_by: str
    tier = Tier.CANON


TierState = Union[Jam, Plate, Canon]


def tier_rank(tier: Tier) -> int:
    """Position of ``tier`` in promotion order (JAM is 0)."""
    return _ORDER[Tier(tier)]


def next_tier(tier: Tier) -> Tier:
    """Return the tier a promotion from ``tier`` lands on.

    Raises:
        TerminalState: ``tier`` is CANON.
    """
    target = NEXT_TIER[Tier(tier)]
    if target is None:
        raise TerminalState(
            "Work cannot be promoted further (already CANON)",
            details={"tier": Tier(tier).value},
        )
    return target


def advance(state: TierState, locked_at: datetime, locked_by: str) -> TierState:
    """Return the state after one promotion.

    ``locked_at`` and ``locked_by`` are only used when the promotion lands on
    CANON.
    """
    target = next_tier(state.tier)
    if target is Tier.PLATE:
        return Plate()
    return Canon(locked_at=locked_at, locked_by=locked_by)


def state_from_columns(
    tier: Union[Tier, str],
    locked_at: Optional[datetime],
    locked_by: Optional[str],
) -> TierState:
    """Rebuild the tagged state from stored columns.

    Raises ``ValueError`` if the row breaks the lock invariant.
    """
    tier = Tier(tier)
    if tier is Tier.CANON:
        if locked_at is None or locked_by is None:
            raise ValueError("CANON work is missing its lock metadata")
        return Canon(locked_at=locked_at, locked_by=locked_by)
    if locked_at is not None or locked_by is not None:
        raise ValueError(f"{tier.value} work carries canon lock metadata")
    return Jam() if tier is Tier.JAM else Plate()
