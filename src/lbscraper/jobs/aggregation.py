"""Background aggregation runs and the scheduled batch job."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from ..core.config import Settings
from ..core.errors import ScraperError
from ..schemas import AggregationStatus, LeaderboardDescriptor, LeaderboardDirectory
from ..services.aggregation_service import (
    AggregationOutcome,
    BatchItem,
    generate_all,
    generate_histogram,
)
from ..services.histogram_store import HistogramStore
from ..services.steam_client import SteamStatsClient

logger = logging.getLogger(__name__)

_scheduler = AsyncIOScheduler(timezone="UTC")


class AggregationBusy(ScraperError):
    """Raised when an aggregation is requested while another one is running."""

    def __init__(self, current: Optional[str]) -> None:
        super().__init__(f"Aggregation of {current or 'the batch'} is already running", status_code=409)


class AggregationRunner:
    """Runs at most one aggregation at a time in the background.

    A single cancel signal is shared by the single-leaderboard runs and the
    batch; cancelling only ever aborts the leaderboard currently in progress.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.store = HistogramStore(settings.output_dir)
        self.current: Optional[str] = None
        self.last_outcome: Optional[AggregationOutcome] = None
        self.last_error: Optional[str] = None
        self._cancel = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._directory: Optional[LeaderboardDirectory] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def status(self) -> AggregationStatus:
        return AggregationStatus(
            running=self.running,
            current=self.current,
            last_outcome=self.last_outcome.value if self.last_outcome else None,
            last_error=self.last_error,
        )

    def client(self) -> SteamStatsClient:
        return SteamStatsClient(self.settings.steam_base_url, timeout=self.settings.request_timeout)

    async def fetch_directory(self, refresh: bool = False) -> LeaderboardDirectory:
        """Return the game's leaderboard directory, fetching it on first use."""

        if self._directory is None or refresh:
            async with self.client() as client:
                self._directory = await client.get_leaderboards(self.settings.game)
        return self._directory

    def start(self, leaderboard: LeaderboardDescriptor) -> asyncio.Task:
        """Schedule aggregation of one leaderboard on the running loop."""

        if self.running:
            raise AggregationBusy(self.current)
        self._cancel.clear()
        self.current = leaderboard.name
        self._task = asyncio.create_task(self._run_one(leaderboard))
        return self._task

    def cancel(self) -> bool:
        """Ask the running aggregation to stop at its next checkpoint."""

        if not self.running:
            return False
        self._cancel.set()
        logger.info("cancellation requested for %s", self.current)
        return True

    async def shutdown(self) -> None:
        if self.running:
            self._cancel.set()
            await asyncio.gather(self._task, return_exceptions=True)

    async def _run_one(self, leaderboard: LeaderboardDescriptor) -> None:
        self.last_error = None
        try:
            async with self.client() as client:
                result = await generate_histogram(leaderboard, client, self.store, self._cancel)
            self.last_outcome = result.outcome
            if result.error is not None:
                self.last_error = result.error.detail
            logger.info("aggregation of %s finished: %s", leaderboard.name, result.outcome.value)
        except ScraperError as exc:
            self.last_outcome = None
            self.last_error = exc.detail
            logger.error("aggregation of %s could not run: %s", leaderboard.name, exc.detail)
        except Exception:  # pragma: no cover - safeguard for background task
            self.last_outcome = None
            self.last_error = "unexpected error"
            logger.exception("aggregation of %s failed", leaderboard.name)
            raise
        finally:
            self.current = None

    def start_batch(self) -> asyncio.Task:
        """Schedule a batch over every leaderboard of the configured game."""

        if self.running:
            raise AggregationBusy(self.current)
        self._cancel.clear()
        self.current = None
        self._task = asyncio.create_task(self._run_batch())
        return self._task

    def _batch_started(self, leaderboard: LeaderboardDescriptor) -> None:
        self.current = leaderboard.name

    def _batch_finished(self, item: BatchItem) -> None:
        self.last_outcome = item.outcome
        self.last_error = item.error.detail if item.error is not None else None
        self.current = None

    async def _run_batch(self) -> List[BatchItem]:
        self.last_error = None
        try:
            async with self.client() as client:
                directory = await client.get_leaderboards(self.settings.game)
                items = await generate_all(
                    directory.leaderboards,
                    client,
                    self.store,
                    self._cancel,
                    continue_after_cancel=True,
                    on_start=self._batch_started,
                    on_finish=self._batch_finished,
                )
        except ScraperError as exc:
            self.last_error = exc.detail
            logger.error("histogram batch could not run: %s", exc.detail)
            return []
        except Exception:  # pragma: no cover - safeguard for background task
            self.last_error = "unexpected error"
            logger.exception("histogram batch failed")
            raise
        finally:
            self.current = None
        completed = sum(1 for item in items if item.outcome is AggregationOutcome.COMPLETED)
        logger.info("histogram batch finished: %d of %d leaderboards complete", completed, len(items))
        return items


async def _execute_batch(runner: AggregationRunner) -> None:
    try:
        await runner.start_batch()
    except AggregationBusy as exc:
        logger.info("scheduled batch skipped: %s", exc.detail)
    except Exception:  # pragma: no cover - safeguard for background job
        logger.exception("scheduled histogram batch failed")
        raise


def register_scheduler(app: FastAPI, runner: AggregationRunner) -> None:
    """Attach runner and APScheduler lifecycle hooks to the FastAPI app."""

    settings = runner.settings

    @app.on_event("startup")
    async def start_scheduler() -> None:
        if not settings.schedule_enabled or _scheduler.running:
            return
        _scheduler.add_job(
            _execute_batch,
            "cron",
            args=[runner],
            hour=settings.schedule_hour,
            minute=settings.schedule_minute,
            id="histogram_batch",
            misfire_grace_time=3600,
            replace_existing=True,
        )
        _scheduler.start()
        logger.info("histogram batch scheduler started")

    @app.on_event("shutdown")
    async def shutdown_scheduler() -> None:
        if _scheduler.running:
            _scheduler.shutdown(wait=False)
            logger.info("histogram batch scheduler stopped")
        await runner.shutdown()
