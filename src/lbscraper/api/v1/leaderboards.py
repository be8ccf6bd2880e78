"""Leaderboard directory endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...core.errors import DirectoryFetchError
from ...jobs import AggregationRunner
from ...schemas import BrowseNode
from ...services import browse_service
from ..deps import get_runner

router = APIRouter(prefix="/leaderboards", tags=["leaderboards"])


@router.get(
    "",
    response_model=List[BrowseNode],
    summary="Browse leaderboards by name segment",
    responses={
        200: {
            "description": "Folders and leaderboards directly below the requested path",
            "content": {
                "application/json": {
                    "example": [
                        {
                            "segment": "challenge",
                            "label": "challenge/",
                            "is_folder": True,
                            "count": 2,
                            "leaderboard": None
                        }
                    ]
                }
            },
        },
        502: {"description": "Leaderboard directory unavailable"},
    },
)
async def browse_leaderboards(
    path: Optional[str] = Query(None, description="Slash separated name segments, e.g. challenge/besttime"),
    refresh: bool = Query(False, description="Re-fetch the directory instead of using the cached copy"),
    runner: AggregationRunner = Depends(get_runner),
) -> List[BrowseNode]:
    """Return the browse listing at ``path``."""

    try:
        directory = await runner.fetch_directory(refresh=refresh)
    except DirectoryFetchError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return browse_service.browse(directory.leaderboards, browse_service.split_path(path))
