"""Public schema exports."""

from .browse import BrowseNode
from .entries import EntryPage, EntryRecord
from .histogram import (
	BUCKET_PARAMETERS,
	AggregationStatus,
	BucketParameters,
	HistogramState,
	bucket_count,
)
from .leaderboard import DisplayType, LeaderboardDescriptor, LeaderboardDirectory, SortMethod

__all__ = [
	"AggregationStatus",
	"BUCKET_PARAMETERS",
	"BrowseNode",
	"BucketParameters",
	"DisplayType",
	"EntryPage",
	"EntryRecord",
	"HistogramState",
	"LeaderboardDescriptor",
	"LeaderboardDirectory",
	"SortMethod",
	"bucket_count",
]
