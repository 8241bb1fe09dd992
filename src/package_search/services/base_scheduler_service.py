"""Cron-driven scheduler base shared by index refresh jobs."""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from contextlib import suppress
from datetime import datetime, timezone
import logging
from typing import Any

from cron_converter import Cron

from .scheduler_protocol import RefreshSchedulerProtocol


logger = logging.getLogger(__name__)

BASE_RETRY_DELAY_SECONDS = 60
MAX_RETRY_DELAY_SECONDS = 3600
MAX_IDLE_WAIT_SECONDS = 60.0


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class BaseSchedulerService(RefreshSchedulerProtocol, ABC):
    """Run one refresh job on a cron schedule and on demand.

    Subclasses implement ``_initialize_impl``, ``_stop_impl`` and
    ``_execute_refresh_impl``; the latter returns a dict with at least
    ``success`` and ``message``. Consecutive scheduled failures back off
    exponentially from one minute up to an hour.
    """

    def __init__(
        self,
        *,
        name: str,
        refresh_schedule: str | None = None,
        enabled: bool = True,
        run_triggers_in_background: bool = True,
        manage_cron_loop: bool = True,
    ) -> None:
        self.name = name
        self.refresh_schedule = refresh_schedule
        self.enabled = enabled
        self._run_triggers_in_background = run_triggers_in_background
        self._cron = Cron(refresh_schedule) if manage_cron_loop and refresh_schedule else None

        self._initialized = False
        self._loop_task: asyncio.Task | None = None
        self._trigger_task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

        self._total_runs = 0
        self._errors = 0
        self._last_run_at: datetime | None = None
        self._next_run_at: datetime | None = None
        self._last_result: dict[str, Any] | None = None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def stats(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "refresh_schedule": self.refresh_schedule,
            "total_runs": self._total_runs,
            "last_run_at": _iso(self._last_run_at),
            "next_run_at": _iso(self._next_run_at),
            "errors": self._errors,
            "last_result": self._last_result,
            **self._extra_stats(),
        }

    async def initialize(self) -> bool:
        if self._initialized:
            return True
        if not self.enabled:
            logger.debug("Scheduler %s disabled; skipping initialization", self.name)
            return False
        if not await self._initialize_impl():
            return False

        self._initialized = True
        if self._cron is not None:
            self._stop_event.clear()
            self._loop_task = asyncio.create_task(self._run_loop(), name=f"{self.name}-cron")
        return True

    async def stop(self) -> None:
        self._stop_event.set()
        if self._loop_task is not None:
            self._loop_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._loop_task
            self._loop_task = None

        # a triggered rebuild runs in a worker thread and cannot be interrupted
        if self._trigger_task is not None:
            with suppress(asyncio.CancelledError):
                await self._trigger_task
            self._trigger_task = None

        await self._stop_impl()
        self._initialized = False

    async def trigger_refresh(self) -> dict:
        if not self._initialized:
            return {"success": False, "message": "Scheduler not initialized"}
        if not self._run_triggers_in_background:
            return await self._run_once()
        if self._trigger_task is not None and not self._trigger_task.done():
            return {"success": False, "message": "Refresh already running"}

        self._trigger_task = asyncio.create_task(self._run_once(), name=f"{self.name}-trigger")
        return {"success": True, "message": "Refresh trigger accepted (running asynchronously)"}

    async def get_status_snapshot(self) -> dict:
        return {
            "scheduler_running": self.running,
            "scheduler_initialized": self._initialized,
            "stats": self.stats,
        }

    async def _run_loop(self) -> None:
        assert self._cron is not None
        failures = 0
        while not self._stop_event.is_set():
            now = datetime.now(timezone.utc)
            self._next_run_at = self._cron.schedule(start_date=self._last_run_at or now).next()
            wait = (self._next_run_at - now).total_seconds()
            if wait > 0:
                # re-evaluate the schedule at least once a minute
                if await self._sleep_or_stop(min(wait, MAX_IDLE_WAIT_SECONDS)):
                    return
                if wait > MAX_IDLE_WAIT_SECONDS:
                    continue

            result = await self._run_once()
            if result.get("success"):
                failures = 0
                continue

            failures += 1
            delay = min(BASE_RETRY_DELAY_SECONDS * 2 ** (failures - 1), MAX_RETRY_DELAY_SECONDS)
            logger.warning("Refresh %s failed %d time(s); retrying in %ds", self.name, failures, delay)
            if await self._sleep_or_stop(delay):
                return

    async def _sleep_or_stop(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; True when stop was requested meanwhile."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def _run_once(self) -> dict:
        try:
            result = await self._execute_refresh_impl()
        except Exception as exc:
            logger.error("Refresh %s failed: %s", self.name, exc, exc_info=True)
            result = {"success": False, "message": f"Refresh error: {exc}"}

        if result.get("success"):
            self._total_runs += 1
            self._last_run_at = datetime.now(timezone.utc)
            self._last_result = result
        else:
            self._errors += 1
        return result

    def _extra_stats(self) -> dict[str, Any]:
        return {}

    @abstractmethod
    async def _initialize_impl(self) -> bool:
        """Prepare resources; return False to abort initialization."""

    @abstractmethod
    async def _stop_impl(self) -> None:
        """Release resources."""

    @abstractmethod
    async def _execute_refresh_impl(self) -> dict:
        """Run a single refresh."""
