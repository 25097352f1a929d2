"""Employer round-robin over a recency-ordered window.

Ingestion writes jobs in employer batches, so a pure recency sort produces long
single-employer runs. Fairness only holds inside the fetched window and is
recomputed per request; two requests for the same page may interleave
differently when new jobs arrive in between.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Hashable, Sequence
from typing import Any, TypeVar

T = TypeVar("T")

DEFAULT_INTERLEAVE_WINDOW = 600


def _employer_key(job: Any) -> Hashable:
    if isinstance(job, dict):
        return job.get("employer_id")
    return getattr(job, "employer_id", None)


def interleave_by_employer(
    jobs: Sequence[T],
    desired: int,
    *,
    key: Callable[[T], Hashable] = _employer_key,
) -> list[T]:
    if desired <= 0 or not jobs:
        return []

    queues: dict[Hashable, deque[T]] = {}
    for job in jobs:
        queues.setdefault(key(job), deque()).append(job)

    output: list[T] = []
    active = list(queues.values())
    while active and len(output) < desired:
        remaining: list[deque[T]] = []
        for queue in active:
            output.append(queue.popleft())
            if len(output) >= desired:
                break
            if queue:
                remaining.append(queue)
        active = remaining
    return output[:desired]
