# marketboard/api/health.py
from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter, Request, Response

from marketboard.utils.readiness import annotate_scheduler_jobs
from marketboard.utils.time import iso_z_from_epoch

router = APIRouter(tags=["health"])

APP_STARTED_AT = time.time()


def _now_meta() -> Dict[str, Any]:
    now_ts = time.time()
    return {
        "now_ts": now_ts,
        "now_iso": iso_z_from_epoch(now_ts),
        "uptime_s": int(now_ts - APP_STARTED_AT),
    }


@router.get("/live")
async def live():
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request, response: Response):
    payload: Dict[str, Any] = {"meta": _now_meta(), "checks": {}}
    degraded_reasons = []

    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        degraded_reasons.append("engine_missing")
    else:
        status = engine.status()
        scheduler = status.pop("scheduler")
        payload["checks"]["engine"] = status

        if status["coin_error"]:
            degraded_reasons.append("coin_fetch_failed")
        if status["global_error"]:
            degraded_reasons.append("global_fetch_failed")

        if scheduler.get("running"):
            scheduler, stale = annotate_scheduler_jobs(scheduler)
            if stale:
                degraded_reasons.append("scheduler_stalled_jobs")
                scheduler["ok"] = False
        payload["checks"]["scheduler"] = scheduler

    payload["status"] = "degraded" if degraded_reasons else "ok"
    payload["degraded"] = bool(degraded_reasons)
    payload["degraded_reasons"] = degraded_reasons
    if degraded_reasons:
        response.status_code = 503
    return payload
