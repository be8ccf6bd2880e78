"""Schemas for pages of ranked leaderboard entries."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EntryRecord(BaseModel):
    """One ranked participant."""

    model_config = ConfigDict(frozen=True)

    identity: int = Field(..., ge=0, description="Steam id of the participant.")
    score: int
    rank: int
    supplementary_id: int = Field(0, ge=0, description="UGC id attached to the entry.")


class EntryPage(BaseModel):
    """A slice of a leaderboard plus its pagination metadata."""

    model_config = ConfigDict(frozen=True)

    total_entries: int = Field(..., ge=0)
    entry_start: int = Field(..., ge=0)
    entry_end: int = Field(..., ge=0)
    next_cursor: Optional[str] = None
    entries: List[EntryRecord] = Field(default_factory=list)
