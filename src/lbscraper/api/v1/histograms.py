"""Endpoints for persisted histograms and background aggregation."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ...core.errors import LeaderboardNotFoundError, ScraperError
from ...jobs import AggregationRunner
from ...schemas import AggregationStatus, HistogramState
from ..deps import get_runner

router = APIRouter(prefix="/histograms", tags=["histograms"])


@router.get("", response_model=List[str], summary="Names of stored histograms")
def list_histograms(runner: AggregationRunner = Depends(get_runner)) -> List[str]:
    return runner.store.names()


@router.get(
    "/current/status",
    response_model=AggregationStatus,
    summary="Background aggregation status",
)
async def aggregation_status(runner: AggregationRunner = Depends(get_runner)) -> AggregationStatus:
    return runner.status()


@router.post(
    "/current/cancel",
    response_model=AggregationStatus,
    summary="Cancel the running aggregation",
)
async def cancel_aggregation(runner: AggregationRunner = Depends(get_runner)) -> AggregationStatus:
    """Signal the running aggregation to stop at its next page boundary."""

    if not runner.cancel():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No aggregation is running")
    return runner.status()


@router.post(
    "/batch",
    response_model=AggregationStatus,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Aggregate every leaderboard",
    responses={409: {"description": "Another aggregation is running"}},
)
async def start_batch(runner: AggregationRunner = Depends(get_runner)) -> AggregationStatus:
    try:
        runner.start_batch()
    except ScraperError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return runner.status()


@router.get(
    "/{name}",
    response_model=HistogramState,
    summary="Persisted histogram of one leaderboard",
    responses={
        200: {
            "description": "Checkpoint as stored on disk",
            "content": {
                "application/json": {
                    "example": {
                        "name": "challenge_besttime_sp_a1_intro1",
                        "intervalSize": 50,
                        "minScore": 0,
                        "maxScore": 60000,
                        "totalEntries": 52000,
                        "requestedEntries": 5000,
                        "nextRequestUrl": "https://steamcommunity.com/stats/Portal2/leaderboards/47458/?xml=1&start=5001&end=6000",
                        "values": [0, 0, 3, 17]
                    }
                }
            },
        },
        404: {"description": "No histogram stored for this leaderboard"},
        422: {"description": "Stored histogram is corrupt"},
    },
)
def get_histogram(name: str, runner: AggregationRunner = Depends(get_runner)) -> HistogramState:
    try:
        state = runner.store.load(name)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ScraperError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No histogram stored for {name!r}")
    return state


@router.post(
    "/{name}/run",
    response_model=AggregationStatus,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start or resume aggregation of one leaderboard",
    responses={
        404: {"description": "Unknown leaderboard"},
        409: {"description": "Another aggregation is running"},
        502: {"description": "Leaderboard directory unavailable"},
    },
)
async def run_histogram(name: str, runner: AggregationRunner = Depends(get_runner)) -> AggregationStatus:
    """Kick off aggregation in the background and return immediately."""

    try:
        directory = await runner.fetch_directory()
        leaderboard = directory.find(name)
        if leaderboard is None:
            raise LeaderboardNotFoundError(name)
        runner.start(leaderboard)
    except ScraperError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return runner.status()
