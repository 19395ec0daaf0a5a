# marketboard/utils/readiness.py
from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Tuple

# a job is stalled if (now - last_success) > STALL_MULTIPLIER * schedule_s
STALL_MULTIPLIER_DEFAULT = 2.5


def _coerce_float(value: Any, default: float = 0.0) -> float:
    try:
        if value is None:
            return default
        return float(value)
    except (TypeError, ValueError):
        return default


def _opt_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def annotate_scheduler_jobs(
    scheduler_info: Dict[str, Any],
    now_ts: float | None = None,
    stall_multiplier: float = STALL_MULTIPLIER_DEFAULT,
) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    """
    Add stall detection to a SchedulerHandle.info() payload.

    Each job gets age_s / allowed_age_s / stalled / never_succeeded. The age
    is measured from last_success_ts, falling back to last_run_ts and then the
    scheduler start time. Returns (scheduler_info, stale_jobs).
    """
    now = float(now_ts) if now_ts is not None else time.time()
    per_job: Dict[str, Dict[str, Any]] = scheduler_info.get("per_job") or {}
    started_at = _opt_float((scheduler_info.get("meta") or {}).get("started_at"))

    stale: List[Dict[str, Any]] = []

    for job_id, j in per_job.items():
        schedule_s = _coerce_float(j.get("schedule_s"))
        allowed_age_s = schedule_s * stall_multiplier if schedule_s > 0 else None

        last_success = _opt_float(j.get("last_success_ts"))
        ref_ts = last_success
        if ref_ts is None:
            ref_ts = _opt_float(j.get("last_run_ts"))
        if ref_ts is None:
            ref_ts = started_at

        age_s = max(0.0, now - ref_ts) if ref_ts is not None else None
        stalled = bool(allowed_age_s is not None and age_s is not None and age_s > allowed_age_s)

        j["age_s"] = age_s
        j["allowed_age_s"] = allowed_age_s
        j["stalled"] = stalled
        j["stalled_by_s"] = (age_s - allowed_age_s) if stalled else 0.0
        j["never_succeeded"] = last_success is None

        if stalled:
            stale.append(
                {
                    "job_id": job_id,
                    "schedule_s": schedule_s,
                    "age_s": age_s,
                    "stalled_by_s": j["stalled_by_s"],
                    "last_error": j.get("last_error"),
                    "consecutive_failures": j.get("consecutive_failures"),
                }
            )

    stale.sort(key=lambda x: (-(x.get("stalled_by_s") or 0.0), str(x.get("job_id"))))

    scheduler_info["stale_jobs"] = stale
    scheduler_info["stale_count"] = len(stale)
    scheduler_info["computed_at_ts"] = now
    return scheduler_info, stale
