"""Hierarchical browsing of leaderboards by name segment."""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from ..schemas import BrowseNode, LeaderboardDescriptor


def browse(leaderboards: Iterable[LeaderboardDescriptor], path: Sequence[str] = ()) -> List[BrowseNode]:
    """Group the leaderboards below ``path`` by their next name segment.

    Segments shared by several leaderboards become folders; a segment owned by
    a single leaderboard is returned as that leaderboard. Folders come first,
    otherwise the directory order is kept.
    """

    depth = len(path)
    groups: Dict[str, List[LeaderboardDescriptor]] = {}
    for leaderboard in leaderboards:
        if not leaderboard.is_in_path(path) or len(leaderboard.name_parts) <= depth:
            continue
        groups.setdefault(leaderboard.name_parts[depth], []).append(leaderboard)

    folders: List[BrowseNode] = []
    leaves: List[BrowseNode] = []
    for segment, members in groups.items():
        if len(members) == 1:
            only = members[0]
            leaves.append(
                BrowseNode(segment=segment, label=only.display_name, is_folder=False, count=1, leaderboard=only)
            )
        else:
            folders.append(BrowseNode(segment=segment, label=f"{segment}/", is_folder=True, count=len(members)))
    return folders + leaves


def split_path(raw: str | None) -> List[str]:
    """Turn ``"a/b"`` into ``["a", "b"]``, ignoring empty segments."""

    if not raw:
        return []
    return [segment for segment in raw.split("/") if segment]
