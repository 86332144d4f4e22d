"""Benchmark per-index vector arithmetic against lowered whole-array kernels.

The arithmetic path used by ``Vector`` operators is fixed at import time; run
once with ``GEOMVEC_DISABLE_EXPRESSION_ARITHMETIC=1`` to time the direct path.
"""

from __future__ import annotations

import argparse
import json
import random
import time
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable

import jax
import jax.numpy as jnp

import geomvec
from geomvec import (
    Vector,
    chebyshev_distance,
    distance,
    extents,
    lower_expression,
    make_difference_expression,
    make_product_expression,
    manhattan_distance,
    materialize,
)
from geomvec import vector as vector_module
from _bench_utils import (
    calibrate_repeats,
    configure_cpu_affinity_from_env,
    host_metadata,
    mean as _mean,
    percentile as _percentile,
    sample_adaptive_ms,
    stddev as _stddev,
)


DIMENSIONS_DEFAULT = "2,3,16,128"
PROFILE_CONFIG: dict[str, dict[str, float | int]] = {
    "quick": {"samples": 3, "target_sample_ms": 10.0, "min_repeats": 8, "cv_target_pct": 25.0, "max_samples": 7},
    "full": {"samples": 7, "target_sample_ms": 20.0, "min_repeats": 12, "cv_target_pct": 18.0, "max_samples": 11},
}
EXTENT_ROWS = 64


@dataclass(frozen=True)
class BenchCase:
    section: str
    name: str
    build: Callable[[int], Callable[[], object]]


@dataclass(frozen=True)
class BenchRow:
    section: str
    name: str
    dimension: int
    status: str
    first_call_ms: float | None
    mean_ms: float | None
    stdev_ms: float | None
    cv_pct: float | None
    p50_ms: float | None
    p95_ms: float | None
    repeats: int
    samples: int
    error: str | None


def _dimensions_from_arg(raw: str) -> tuple[int, ...]:
    out = tuple(int(part) for part in raw.split(",") if part.strip())
    if not out:
        raise ValueError("at least one dimension must be provided")
    return out


def _operands(n: int) -> tuple[Vector, Vector]:
    rng = random.Random(n)
    cls = Vector[float, n]
    a = cls(*(rng.uniform(-100.0, 100.0) for _ in range(n)))
    b = cls(*(rng.uniform(-100.0, 100.0) for _ in range(n)))
    return a, b


def _vector_add(n: int) -> Callable[[], object]:
    a, b = _operands(n)
    return lambda: a + b


def _vector_scale(n: int) -> Callable[[], object]:
    a, _ = _operands(n)
    return lambda: (a * 3.0) / 2.0


def _distance_per_index(n: int) -> Callable[[], object]:
    a, b = _operands(n)
    return lambda: distance(a, b)


def _chebyshev_per_index(n: int) -> Callable[[], object]:
    a, b = _operands(n)
    return lambda: chebyshev_distance(a, b)


def _manhattan_per_index(n: int) -> Callable[[], object]:
    a, b = _operands(n)
    return lambda: manhattan_distance(a, b)


def _squared_difference_materialize(n: int) -> Callable[[], object]:
    a, b = _operands(n)
    delta = make_difference_expression(a, b)
    expr = make_product_expression(delta, delta)
    return lambda: materialize(expr)


def _squared_difference_lowered(n: int) -> Callable[[], object]:
    a, b = _operands(n)
    delta = make_difference_expression(a, b)
    lowered = lower_expression(make_product_expression(delta, delta))
    return lowered


def _extents_scan(n: int) -> Callable[[], object]:
    rng = random.Random(n + 1)
    cls = Vector[float, n]
    rows = [cls(*(rng.uniform(-1.0, 1.0) for _ in range(n))) for _ in range(EXTENT_ROWS)]
    return lambda: extents(rows)


def _extents_array_reference(n: int) -> Callable[[], object]:
    points = jax.random.uniform(jax.random.PRNGKey(n), (EXTENT_ROWS, n))
    return lambda: (jnp.min(points, axis=0), jnp.max(points, axis=0))


def _all_cases() -> list[BenchCase]:
    return [
        BenchCase("arithmetic", "vector_add", _vector_add),
        BenchCase("arithmetic", "vector_scale", _vector_scale),
        BenchCase("reduction", "distance", _distance_per_index),
        BenchCase("reduction", "chebyshev", _chebyshev_per_index),
        BenchCase("reduction", "manhattan", _manhattan_per_index),
        BenchCase("lowering", "materialize", _squared_difference_materialize),
        BenchCase("lowering", "lowered_call", _squared_difference_lowered),
        BenchCase("extents", "extents_scan", _extents_scan),
        BenchCase("extents", "array_reference", _extents_array_reference),
    ]


def _run_case(
    case: BenchCase,
    n: int,
    *,
    samples: int,
    target_sample_ms: float,
    min_repeats: int,
    cv_target_pct: float,
    max_samples: int,
) -> BenchRow:
    try:
        fn = case.build(n)
        t0 = time.perf_counter()
        fn()
        first_ms = (time.perf_counter() - t0) * 1e3
        repeats = calibrate_repeats(fn, target_sample_ms=target_sample_ms, min_repeats=min_repeats)
        per_call_ms = sample_adaptive_ms(
            fn,
            repeats=repeats,
            samples=samples,
            cv_target_pct=cv_target_pct,
            max_samples=max_samples,
        )
    except (geomvec.GeomError, ArithmeticError, TypeError, ValueError) as err:
        return BenchRow(
            section=case.section,
            name=case.name,
            dimension=n,
            status="error",
            first_call_ms=None,
            mean_ms=None,
            stdev_ms=None,
            cv_pct=None,
            p50_ms=None,
            p95_ms=None,
            repeats=0,
            samples=0,
            error=str(err),
        )

    mean_ms = _mean(per_call_ms)
    stdev_ms = _stddev(per_call_ms)
    return BenchRow(
        section=case.section,
        name=case.name,
        dimension=n,
        status="ok",
        first_call_ms=first_ms,
        mean_ms=mean_ms,
        stdev_ms=stdev_ms,
        cv_pct=(stdev_ms / mean_ms) * 100.0 if mean_ms > 0 else 0.0,
        p50_ms=_percentile(per_call_ms, 0.50),
        p95_ms=_percentile(per_call_ms, 0.95),
        repeats=repeats,
        samples=len(per_call_ms),
        error=None,
    )


def _print_summary(rows: list[BenchRow]) -> None:
    print("arithmetic path benchmark summary")
    print("section      case               dim     mean(ms)   p95(ms)   cv(%)   status")
    print("----------   ----------------  ------  ---------  --------  ------  ------")
    for row in rows:
        mean_text = "-" if row.mean_ms is None else f"{row.mean_ms:9.4f}"
        p95_text = "-" if row.p95_ms is None else f"{row.p95_ms:8.4f}"
        cv_text = "-" if row.cv_pct is None else f"{row.cv_pct:6.2f}"
        print(
            f"{row.section:12} {row.name:16} {row.dimension:6d}  "
            f"{mean_text:>9}  {p95_text:>8}  {cv_text:>6}  {row.status}"
        )
    print()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--profile", choices=sorted(PROFILE_CONFIG), default="quick", help="benchmark profile preset")
    parser.add_argument("--dims", default=DIMENSIONS_DEFAULT, help="comma-separated vector dimensions")
    parser.add_argument(
        "--sections",
        default="arithmetic,reduction,lowering,extents",
        help="comma-separated subset of sections",
    )
    parser.add_argument("--json-out", default="", help="optional path for machine-readable output")
    args = parser.parse_args()
    affinity_info = configure_cpu_affinity_from_env()

    profile = PROFILE_CONFIG[args.profile]
    dims = _dimensions_from_arg(args.dims)
    wanted_sections = {part.strip() for part in args.sections.split(",") if part.strip()}
    unknown = wanted_sections - {case.section for case in _all_cases()}
    if unknown:
        raise SystemExit(f"Unknown sections: {sorted(unknown)}")

    arithmetic_path = "expression" if vector_module._USE_EXPRESSION_ARITHMETIC else "direct"
    print(f"dimensions: {dims}")
    print(f"profile: {args.profile} {profile}")
    print(f"arithmetic path: {arithmetic_path}")
    print(f"host: backend={jax.default_backend()}, affinity={affinity_info.get('active')}")
    print()

    rows: list[BenchRow] = []
    cases = [case for case in _all_cases() if case.section in wanted_sections]
    for n in dims:
        for case in cases:
            rows.append(
                _run_case(
                    case,
                    n,
                    samples=int(profile["samples"]),
                    target_sample_ms=float(profile["target_sample_ms"]),
                    min_repeats=int(profile["min_repeats"]),
                    cv_target_pct=float(profile["cv_target_pct"]),
                    max_samples=int(profile["max_samples"]),
                )
            )
        print(f"completed dim={n} ({len(cases)} cases)")

    print()
    _print_summary(rows)

    if args.json_out:
        outpath = Path(args.json_out)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "timestamp_utc": datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ"),
            "dimensions": list(dims),
            "profile": args.profile,
            "sections": sorted(wanted_sections),
            "arithmetic_path": arithmetic_path,
            "affinity": affinity_info,
            "host": host_metadata(),
            "rows": [asdict(row) for row in rows],
        }
        outpath.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Wrote JSON: {outpath}")


if __name__ == "__main__":
    main()
