"""Persisted histogram aggregation state."""

from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .leaderboard import DisplayType, LeaderboardDescriptor


class BucketParameters(NamedTuple):
    interval_size: int
    min_score: int
    max_score: int


# Times are reported in hundredths of a second; the time range covers ten minutes.
BUCKET_PARAMETERS: Dict[DisplayType, BucketParameters] = {
    DisplayType.SCORE: BucketParameters(interval_size=1, min_score=0, max_score=100),
    DisplayType.TIME: BucketParameters(interval_size=50, min_score=0, max_score=10 * 60 * 100),
}


def bucket_count(min_score: int, max_score: int, interval_size: int) -> int:
    """Number of buckets needed to cover ``[min_score, max_score)``."""

    return (max_score - min_score + interval_size - 1) // interval_size


class HistogramState(BaseModel):
    """Resumable histogram of one leaderboard.

    Serialized with the camelCase keys used by existing checkpoint files.
    Bucket geometry (``interval_size``, ``min_score``, ``max_score`` and the
    number of buckets) never changes after creation.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    interval_size: int = Field(..., gt=0, alias="intervalSize")
    min_score: int = Field(..., alias="minScore")
    max_score: int = Field(..., alias="maxScore")
    total_entries: int = Field(..., ge=0, alias="totalEntries")
    requested_entries: int = Field(0, ge=0, alias="requestedEntries")
    next_cursor: Optional[str] = Field(None, alias="nextRequestUrl")
    buckets: List[int] = Field(..., alias="values")

    @model_validator(mode="after")
    def _check_geometry(self) -> "HistogramState":
        if self.max_score <= self.min_score:
            raise ValueError("maxScore must be greater than minScore")
        expected = bucket_count(self.min_score, self.max_score, self.interval_size)
        if len(self.buckets) != expected:
            raise ValueError(f"expected {expected} buckets, found {len(self.buckets)}")
        if any(count < 0 for count in self.buckets):
            raise ValueError("bucket counts must be non-negative")
        return self

    @classmethod
    def for_leaderboard(cls, leaderboard: LeaderboardDescriptor) -> "HistogramState":
        """Create an empty histogram sized for the leaderboard's display type."""

        params = BUCKET_PARAMETERS[leaderboard.display_type]
        return cls(
            name=leaderboard.name,
            interval_size=params.interval_size,
            min_score=params.min_score,
            max_score=params.max_score,
            total_entries=leaderboard.total_entries,
            requested_entries=0,
            next_cursor=leaderboard.url,
            buckets=[0] * bucket_count(params.min_score, params.max_score, params.interval_size),
        )

    @property
    def is_complete(self) -> bool:
        return self.requested_entries >= self.total_entries

    def bucket_index(self, score: int) -> Optional[int]:
        """Return the bucket counting ``score``, or None when it is out of range."""

        if score < self.min_score or score >= self.max_score:
            return None
        return (score - self.min_score) // self.interval_size

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class AggregationStatus(BaseModel):
    """Snapshot of the background aggregation runner."""

    running: bool
    current: Optional[str] = None
    last_outcome: Optional[str] = None
    last_error: Optional[str] = None
