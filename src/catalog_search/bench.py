# bench.py
from __future__ import annotations

import json
import math
import time
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Tuple

from tqdm import tqdm

from .errors import DataSourceError, SearchError

logger = logging.getLogger(__name__)


def iter_keywords(path: str, key: str = "query") -> Iterable[str]:
    """
    Keywords to replay.
    - *.jsonl: {"query": "..."} per line (field name = key)
    - anything else: one keyword per line
    Blank entries are skipped.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                if not path.endswith(".jsonl"):
                    yield line
                    continue
                try:
                    item = json.loads(line)
                except json.JSONDecodeError as e:
                    raise DataSourceError(f"[{path}] line {line_no}: invalid json: {e}") from e
                q = item.get(key) if isinstance(item, dict) else None
                if isinstance(q, str) and q.strip():
                    yield q.strip()
    except OSError as e:
        raise DataSourceError(f"Cannot read keyword file {path}: {e}") from e


REPORTED_PERCENTILES = (50, 90, 95)


def percentile(values: Iterable[float], p: float) -> float:
    """Linear-interpolated p-th percentile; values need not be sorted, p is clamped to [0, 100]."""
    ordered = sorted(values)
    if not ordered:
        return 0.0
    rank = min(max(p, 0.0), 100.0) / 100.0 * (len(ordered) - 1)
    below, above = math.floor(rank), math.ceil(rank)
    return ordered[below] + (ordered[above] - ordered[below]) * (rank - below)


@dataclass
class LatStats:
    lat_ms: List[float] = field(default_factory=list)
    errors: int = 0
    empty: int = 0

    def add(self, ms: float, n_results: int) -> None:
        self.lat_ms.append(ms)
        if n_results == 0:
            self.empty += 1

    def summarize(self) -> Dict[str, Any]:
        s: Dict[str, Any] = {"n": len(self.lat_ms), "errors": self.errors, "empty": self.empty}
        for p in REPORTED_PERCENTILES:
            s[f"p{p}"] = percentile(self.lat_ms, p)
        s["mean"] = sum(self.lat_ms) / len(self.lat_ms) if self.lat_ms else 0.0
        return s


def _timed(search_fn: Callable[[str], List[Any]], q: str) -> Tuple[float, int]:
    t0 = time.perf_counter()
    hits = search_fn(q)
    return (time.perf_counter() - t0) * 1000.0, len(hits)


def measure_latency(
    search_fn: Callable[[str], List[Any]],
    keywords: List[str],
    *,
    warmup: int = 0,
    repeat: int = 1,
    workers: int = 1,
    quiet: bool = False,
) -> LatStats:
    """
    Replay keywords through search_fn and record per-call latency.

    workers > 1 runs the calls on a thread pool sharing the same client.
    A failed search (SearchError) is counted, logged and does not stop the run.
    """
    lat = LatStats()

    for q in keywords[:max(warmup, 0)]:
        try:
            search_fn(q)
        except SearchError as e:
            logger.warning("Warmup search %r failed: %s", q, e)

    work = [q for _ in range(max(repeat, 1)) for q in keywords]

    with tqdm(total=len(work), desc="Searching", unit="q", disable=quiet) as pbar:
        if workers <= 1:
            for q in work:
                try:
                    ms, n = _timed(search_fn, q)
                    lat.add(ms, n)
                except SearchError as e:
                    lat.errors += 1
                    logger.warning("Search %r failed: %s", q, e)
                pbar.update(1)
        else:
            with ThreadPoolExecutor(max_workers=workers) as ex:
                futures = {ex.submit(_timed, search_fn, q): q for q in work}
                for fut in as_completed(futures):
                    try:
                        ms, n = fut.result()
                        lat.add(ms, n)
                    except SearchError as e:
                        lat.errors += 1
                        logger.warning("Search %r failed: %s", futures[fut], e)
                    pbar.update(1)

    return lat
