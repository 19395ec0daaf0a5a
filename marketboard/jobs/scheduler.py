# marketboard/jobs/scheduler.py
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from marketboard.utils.time import iso_z_from_epoch

logger = logging.getLogger("marketboard.scheduler")


def _now_epoch() -> float:
    return time.time()


@dataclass(frozen=True)
class Job:
    job_id: str
    run: Callable[[], Awaitable[Any]]
    interval_s: float
    run_immediately: bool = True


# ----------------------------
# scheduler state + handle
# ----------------------------
@dataclass
class SchedulerState:
    started: bool = False
    stop_event: Optional[asyncio.Event] = None
    tasks: Dict[str, asyncio.Task] = field(default_factory=dict)      # job_id -> task
    cancelled: List[asyncio.Task] = field(default_factory=list)        # from cancel_job, awaited on stop
    meta: Dict[str, Any] = field(default_factory=dict)
    job_stats: Dict[str, Dict[str, Any]] = field(default_factory=dict)  # job_id -> stats


@dataclass(frozen=True)
class SchedulerHandle:
    """
    Read-only view used by /ready and /market/status.
    """
    _state: SchedulerState

    @property
    def running(self) -> bool:
        return bool(self._state.started and self._state.stop_event and not self._state.stop_event.is_set())

    @property
    def jobs(self) -> int:
        return sum(1 for t in self._state.tasks.values() if not t.done())

    def info(self) -> Dict[str, Any]:
        meta = dict(self._state.meta)
        started_at = meta.get("started_at")

        info: Dict[str, Any] = {
            "ok": self.running,
            "running": self.running,
            "jobs": self.jobs,
            "uptime_s": int(_now_epoch() - started_at) if started_at else None,
            "meta": {**meta, "started_at_iso": iso_z_from_epoch(started_at)},
            "per_job": {},
        }

        for job_id, s in self._state.job_stats.items():
            task = self._state.tasks.get(job_id)
            info["per_job"][job_id] = {
                **s,
                "active": bool(task and not task.done()),
                "last_run_iso": iso_z_from_epoch(s.get("last_run_ts")),
                "last_success_iso": iso_z_from_epoch(s.get("last_success_ts")),
                "last_error_iso": iso_z_from_epoch(s.get("last_error_ts")),
            }

        return info


class RefreshScheduler:
    """Independent periodic loops sharing one stop signal."""

    def __init__(self) -> None:
        self._state = SchedulerState()
        self._jobs: Dict[str, Job] = {}

    @property
    def handle(self) -> SchedulerHandle:
        return SchedulerHandle(self._state)

    def add_job(
        self,
        job_id: str,
        run: Callable[[], Awaitable[Any]],
        interval_s: float,
        *,
        run_immediately: bool = True,
    ) -> None:
        if interval_s <= 0:
            raise ValueError(f"interval for {job_id} must be positive, got {interval_s}")
        self._jobs[job_id] = Job(job_id, run, float(interval_s), run_immediately)

    # ----------------------------
    # job loop
    # ----------------------------
    async def _job_loop(self, job: Job, stop_event: asyncio.Event) -> None:
        next_tick = time.monotonic()
        if not job.run_immediately:
            next_tick += job.interval_s

        while not stop_event.is_set():
            now = time.monotonic()
            if now < next_tick:
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=(next_tick - now))
                except asyncio.TimeoutError:
                    pass
                continue

            js = self._state.job_stats[job.job_id]
            js["last_run_ts"] = _now_epoch()
            t0 = time.perf_counter()

            try:
                logger.debug("🔄 job running | %s", job.job_id)
                result = await job.run()
                dt_ms = int((time.perf_counter() - t0) * 1000)

                if result is False:
                    js["last_error_ts"] = _now_epoch()
                    js["last_error"] = "job reported failure"
                    js["consecutive_failures"] = int(js.get("consecutive_failures", 0)) + 1
                    logger.warning("⚠️ job degraded | %s | %dms", job.job_id, dt_ms)
                else:
                    js["last_success_ts"] = _now_epoch()
                    js["last_success_ms"] = dt_ms
                    js["consecutive_failures"] = 0
                    logger.info("✅ job done | %s | %dms", job.job_id, dt_ms)

            except asyncio.CancelledError:
                raise
            except Exception as e:
                dt_ms = int((time.perf_counter() - t0) * 1000)
                js["last_error_ts"] = _now_epoch()
                js["last_error"] = repr(e)[:300]
                js["consecutive_failures"] = int(js.get("consecutive_failures", 0)) + 1
                logger.exception("❌ job error | %s | %dms", job.job_id, dt_ms)

            next_tick += job.interval_s
            if next_tick < time.monotonic() - job.interval_s:
                next_tick = time.monotonic() + job.interval_s

    # ----------------------------
    # lifecycle
    # ----------------------------
    def start(self) -> SchedulerHandle:
        """Spawn one task per job. Must be called from inside the event loop."""
        if self._state.started and self._state.stop_event and not self._state.stop_event.is_set():
            logger.warning("⚠️ scheduler already started")
            return self.handle

        self._state.stop_event = asyncio.Event()
        self._state.started = True
        self._state.meta = {"started_at": _now_epoch(), "jobs": sorted(self._jobs)}
        self._state.job_stats.clear()

        for job in self._jobs.values():
            self._state.job_stats[job.job_id] = {
                "schedule_s": job.interval_s,
                "last_run_ts": None,
                "last_success_ts": None,
                "last_success_ms": None,
                "last_error_ts": None,
                "last_error": None,
                "consecutive_failures": 0,
            }
            self._state.tasks[job.job_id] = asyncio.create_task(
                self._job_loop(job, self._state.stop_event),
                name=job.job_id,
            )

        logger.info("✅ refresh scheduler started | jobs=%s", len(self._state.tasks))
        return self.handle

    def cancel_job(self, job_id: str) -> bool:
        """Cancel one loop (and its in-flight run) without touching the others."""
        task = self._state.tasks.pop(job_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        self._state.cancelled.append(task)
        logger.info("🛑 job cancelled | %s", job_id)
        return True

    async def stop(self, timeout_s: float = 6.0) -> None:
        if not self._state.started:
            return

        if self._state.stop_event:
            self._state.stop_event.set()

        tasks = list(self._state.tasks.values()) + self._state.cancelled

        try:
            if tasks:
                await asyncio.wait_for(asyncio.gather(*tasks, return_exceptions=True), timeout=timeout_s)
        except asyncio.TimeoutError:
            for t in tasks:
                if not t.done():
                    t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            self._state.tasks.clear()
            self._state.cancelled.clear()
            self._state.started = False
            self._state.stop_event = None

        logger.info("🛑 refresh scheduler stopped")
