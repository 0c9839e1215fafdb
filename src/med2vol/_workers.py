"""Thread pool helper for per-file work (probing, extraction, pixel decode)."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")

MAX_DEFAULT_WORKERS = 8


def resolve_workers(workers: int | None) -> int:
    """Number of threads to use; ``None`` picks a default from the CPU count."""
    if workers is None:
        return max(1, min(MAX_DEFAULT_WORKERS, os.cpu_count() or 1))
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")
    return workers


def map_ordered(
    fn: Callable[[T], R],
    items: Iterable[T],
    workers: int | None = None,
) -> list[R]:
    """Apply *fn* to every item and return results in input order.

    Runs inline when a single worker is requested. Exceptions raised by
    *fn* propagate to the caller.
    """
    items = list(items)
    n_workers = min(resolve_workers(workers), max(1, len(items)))
    if n_workers == 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix="med2vol") as pool:
        return list(pool.map(fn, items))
