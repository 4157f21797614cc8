"""
Request schemas for the curation API.

Only the shape of requests is checked here. Business rules (justification
length, tier eligibility, edge constraints) are enforced by the services so
that every caller, not only HTTP clients, goes through them.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, constr

from .enums import ContributionRole, EdgeType


class Curator(BaseModel):
    """The signing curator. Role checks happen before the engine is called."""

    model_config = ConfigDict(extra="forbid")

    id: constr(min_length=1, max_length=128) = Field(
        ..., description="Durable identifier of the curator"
    )
    display_name: Optional[constr(max_length=256)] = Field(
        None, description="Name recorded on the promotion event"
    )


class WorkCreate(BaseModel):
    """Schema for creating a new Work."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., description="Display title; slug is derived from it")
    description: Optional[str] = None
    created_by_id: Optional[constr(max_length=128)] = None
    parent_work_ids: List[str] = Field(
        default_factory=list,
        description="Works this one forks; each becomes a FORK edge",
    )


class WorkUpdate(BaseModel):
    """Schema for editing a Work that is not CANON."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None


class EdgeCreate(BaseModel):
    """Schema for declaring a derivation edge."""

    model_config = ConfigDict(extra="forbid")

    source_id: constr(min_length=1, max_length=128)
    target_id: constr(min_length=1, max_length=128)
    type: EdgeType


class PromotionRequest(BaseModel):
    """Schema for promoting a Work to its next tier."""

    model_config = ConfigDict(extra="forbid")

    justification: str = Field(..., description="Curator rationale, stored permanently")
    curator: Curator


class ContributionCreate(BaseModel):
    """Schema for crediting a contributor on a Work."""

    model_config = ConfigDict(extra="forbid")

    display_name: str = Field(..., description="Name shown in the credits")
    role: ContributionRole
    notes: Optional[str] = None
    user_id: Optional[constr(max_length=128)] = None


class CuratedListCreate(BaseModel):
    """Schema for creating a curated list."""

    model_config = ConfigDict(extra="forbid")

    title: str
    description: Optional[str] = None
    curator: Curator


class CuratedListUpdate(BaseModel):
    """Schema for renaming or redescribing a curated list."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    curator: Curator


class ListItemCreate(BaseModel):
    """Schema for appending a Work to a curated list."""

    model_config = ConfigDict(extra="forbid")

    work_id: str
    curator: Curator
