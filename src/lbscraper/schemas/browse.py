"""Browse view schemas."""

from typing import Optional

from pydantic import BaseModel, Field

from .leaderboard import LeaderboardDescriptor


class BrowseNode(BaseModel):
    """One line of a browse listing: a folder of leaderboards or a single one."""

    segment: str
    label: str
    is_folder: bool
    count: int = Field(..., ge=1)
    leaderboard: Optional[LeaderboardDescriptor] = None
