"""Leaderboard directory schemas."""

from __future__ import annotations

import enum
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field


class SortMethod(int, enum.Enum):
    """Ranking order reported by the directory. Informational only."""

    DESCENDING = 0
    ASCENDING = 1


class DisplayType(int, enum.Enum):
    """How a leaderboard's scores are meant to be read."""

    SCORE = 1
    TIME = 3


class LeaderboardDescriptor(BaseModel):
    """Metadata describing one leaderboard as listed by the directory."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Locator of the first page of entries.")
    identity: int
    name: str
    display_name: str
    total_entries: int = Field(..., ge=0)
    sort_method: SortMethod = SortMethod.DESCENDING
    display_type: DisplayType = DisplayType.SCORE

    @property
    def name_parts(self) -> List[str]:
        return self.name.split("_")

    def is_in_path(self, path: Sequence[str]) -> bool:
        """Return True when the leading name segments equal ``path``."""

        parts = self.name_parts
        if len(path) > len(parts):
            return False
        return all(parts[i] == segment for i, segment in enumerate(path))


class LeaderboardDirectory(BaseModel):
    """Every leaderboard published for one game."""

    app_id: int
    app_friendly_name: str = ""
    leaderboard_count: int = Field(..., ge=0)
    leaderboards: List[LeaderboardDescriptor] = Field(default_factory=list)

    def find(self, name: str) -> LeaderboardDescriptor | None:
        for leaderboard in self.leaderboards:
            if leaderboard.name == name:
                return leaderboard
        return None
