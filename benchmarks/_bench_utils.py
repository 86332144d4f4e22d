"""Shared benchmark runtime helpers."""

from __future__ import annotations

import math
import os
import platform
import time
from typing import Any

import jax

import geomvec

THREAD_ENV_VARS = (
    "OMP_NUM_THREADS",
    "XLA_FLAGS",
    "JAX_ENABLE_X64",
    "GEOMVEC_DISABLE_EXPRESSION_ARITHMETIC",
    "GEOMVEC_DISABLE_JITTED_LOWERING",
    "GEOMVEC_LOWERING_CACHE_MAX",
    "GEOMVEC_SPECIALIZATION_CACHE_MAX",
)


def configure_cpu_affinity_from_env() -> dict[str, Any]:
    requested = os.environ.get("GEOMVEC_BENCH_CPU_AFFINITY", "").strip()
    info: dict[str, Any] = {"requested": requested or None, "applied": False, "active": None}
    if not requested or not hasattr(os, "sched_setaffinity"):
        return info

    cpus: set[int] = set()
    for token in (part.strip() for part in requested.split(",")):
        if not token:
            continue
        lo_raw, _, hi_raw = token.partition("-")
        lo = int(lo_raw)
        hi = int(hi_raw) if hi_raw else lo
        cpus.update(range(min(lo, hi), max(lo, hi) + 1))
    if not cpus:
        return info
    try:
        os.sched_setaffinity(0, cpus)
    except OSError:
        return info
    info["applied"] = True
    info["active"] = sorted(int(cpu) for cpu in os.sched_getaffinity(0))
    return info


def host_metadata() -> dict[str, Any]:
    return {
        "platform": platform.platform(),
        "python": platform.python_version(),
        "jax": getattr(jax, "__version__", "unknown"),
        "backend": jax.default_backend(),
        "cpu_count": os.cpu_count(),
        "env": {name: os.environ[name] for name in THREAD_ENV_VARS if name in os.environ},
        "specialization_cache": geomvec.specialization_cache_stats(),
        "compile_cache": geomvec.compile_cache_stats(),
    }


def block_until_ready(value: object) -> None:
    if hasattr(value, "block_until_ready"):
        value.block_until_ready()
        return
    if isinstance(value, (tuple, list)):
        for item in value:
            block_until_ready(item)


def percentile(values: list[float], q: float) -> float:
    ordered = sorted(values)
    if len(ordered) == 1:
        return ordered[0]
    pos = (len(ordered) - 1) * q
    lo = int(math.floor(pos))
    hi = int(math.ceil(pos))
    if lo == hi:
        return ordered[lo]
    alpha = pos - lo
    return ordered[lo] * (1.0 - alpha) + ordered[hi] * alpha


def mean(values: list[float]) -> float:
    return sum(values) / len(values)


def stddev(values: list[float]) -> float:
    if len(values) < 2:
        return 0.0
    m = mean(values)
    return math.sqrt(sum((v - m) ** 2 for v in values) / (len(values) - 1))


def calibrate_repeats(fn, *, target_sample_ms: float, min_repeats: int, max_repeats: int = 200_000) -> int:
    """Repeat count that makes one timing sample last about ``target_sample_ms``."""
    trial = max(4, min_repeats // 4)
    start_ns = time.perf_counter_ns()
    for _ in range(trial):
        block_until_ready(fn())
    per_call_ns = max((time.perf_counter_ns() - start_ns) / trial, 1_000.0)
    dynamic = int(math.ceil(max(target_sample_ms, 1.0) * 1e6 / per_call_ns))
    return int(max(min_repeats, min(dynamic, max_repeats)))


def sample_adaptive_ms(
    fn,
    *,
    repeats: int,
    samples: int,
    cv_target_pct: float,
    max_samples: int,
) -> list[float]:
    """Per-call milliseconds, sampling until the coefficient of variation settles."""
    rows: list[float] = []

    def _once() -> None:
        start_ns = time.perf_counter_ns()
        for _ in range(repeats):
            block_until_ready(fn())
        rows.append(((time.perf_counter_ns() - start_ns) / repeats) / 1e6)

    for _ in range(samples):
        _once()
    while len(rows) < max_samples:
        m = mean(rows)
        if m <= 0:
            break
        s = stddev(rows)
        if (s / m) * 100.0 <= cv_target_pct:
            break
        _once()
    return rows
