"""
Observability Metrics
---------------------
Lightweight Redis counters/timers for workflow transitions and verification
calls, plus a snapshot consumed by /admin/metrics.

Writers are best-effort: a missing or unreachable Redis never breaks a
submission. Readers return zeroed defaults on first boot.
"""
from __future__ import annotations
import logging
import time
from typing import Iterable, List, Tuple
from cardflow.store.redis_conn import get_redis
from cardflow.settings import settings

logger = logging.getLogger("cardflow_metrics")

# Keys (best-effort, stable across restarts)
K_WORKFLOW = "metrics:workflow:{name}:{event}"       # INCR
K_VER_CALLS = "metrics:verification:{service}:calls"   # INCR
K_VER_FALLBACK = "metrics:verification:{service}:fallbacks"  # INCR
K_VER_LAT = "metrics:verification:latencies"          # LPUSH ms

WORKFLOW_EVENTS = ("started", "advanced", "advance_blocked", "back", "succeeded", "failed")

_MAX_SAMPLES = 500  # cap to bound percentile computation cost


def _percentile(data: List[float], p: float) -> float:
    """Deterministic percentile (nearest-rank on sorted data)."""
    if not data:
        return 0.0
    d = sorted(data)
    k = max(1, int(round(p * len(d))))
    return float(d[k - 1])


def _incr(key: str) -> None:
    if not settings.METRICS_ENABLED:
        return
    try:
        get_redis().incr(key, 1)
    except Exception as e:
        logger.debug("metrics_write_skipped key=%s err=%s", key, type(e).__name__)


def record_workflow_event(workflow: str, event: str) -> None:
    _incr(K_WORKFLOW.format(name=workflow, event=event))


def record_verification(service: str, latency_ms: int, fallback_used: bool) -> None:
    _incr(K_VER_CALLS.format(service=service))
    if fallback_used:
        _incr(K_VER_FALLBACK.format(service=service))
    if not settings.METRICS_ENABLED:
        return
    try:
        r = get_redis()
        r.lpush(K_VER_LAT, int(latency_ms))
        r.ltrim(K_VER_LAT, 0, _MAX_SAMPLES - 1)
    except Exception as e:
        logger.debug("metrics_latency_skipped err=%s", type(e).__name__)


def _read_latencies(r) -> List[float]:
    out: List[float] = []
    for x in r.lrange(K_VER_LAT, 0, _MAX_SAMPLES - 1) or []:
        try:
            out.append(float(x) / 1000.0)  # seconds
        except (TypeError, ValueError):
            continue
    return out


def _p50_p95(latencies_s: List[float]) -> Tuple[float, float]:
    if not latencies_s:
        return 0.0, 0.0
    return _percentile(latencies_s, 0.50), _percentile(latencies_s, 0.95)


def get_metrics_snapshot(workflows: Iterable[str], services: Iterable[str]) -> dict:
    """
    Dict shaped for /admin/metrics:
      - workflows: {name: {event: count}}
      - verification: {service: {calls, fallbacks, fallback_rate}}
      - p50/p95 verification latency (seconds)
    """
    r = get_redis()

    wf = {}
    for name in workflows:
        wf[name] = {ev: int(r.get(K_WORKFLOW.format(name=name, event=ev)) or 0) for ev in WORKFLOW_EVENTS}

    ver = {}
    for service in services:
        calls = int(r.get(K_VER_CALLS.format(service=service)) or 0)
        fallbacks = int(r.get(K_VER_FALLBACK.format(service=service)) or 0)
        ver[service] = {
            "calls": calls,
            "fallbacks": fallbacks,
            "fallback_rate": round((fallbacks / calls) * 100.0, 3) if calls else 0.0,
        }

    p50, p95 = _p50_p95(_read_latencies(r))
    return {
        "workflows": wf,
        "verification": ver,
        "p50_verification_latency": round(p50, 3),
        "p95_verification_latency": round(p95, 3),
        "snapshot_at": int(time.time()),
    }
