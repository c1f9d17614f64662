"""
Task Sampler
============

Bounds the number of per‑task detail fetches for a job.  Fetching the
counters and timing of a task costs two round trips, so a job with tens
of thousands of tasks would otherwise hammer the history server.  When
sampling is enabled and a task list is larger than ``MAX_SAMPLE_SIZE``,
a random subset of that size is kept.

Aggregates computed from a sampled list are approximations.
"""

from __future__ import annotations

import logging
import random
from typing import List, Mapping, Optional, TypeVar

from .config import SAMPLING_ENABLED

LOGGER = logging.getLogger(__name__)

MAX_SAMPLE_SIZE = 200

T = TypeVar("T")


def is_sampling_enabled(params: Mapping[str, str]) -> bool:
    """Return ``True`` only if ``params['sampling_enabled']`` is ``"true"`` (any case)."""
    return str(params.get(SAMPLING_ENABLED, "")).lower() == "true"


def sample_tasks(
    tasks: List[T],
    sampling_enabled: bool,
    rng: Optional[random.Random] = None,
    job_id: str = "",
) -> List[T]:
    """Select the tasks whose details will be fetched.

    :param tasks: Successful tasks of one kind (mappers or reducers).
        Shuffled in place when sampling triggers.
    :param sampling_enabled: Whether the size ceiling applies at all.
    :param rng: Random source for the shuffle.
    :param job_id: Only used for logging.
    :returns: ``tasks`` itself when no sampling happens, otherwise the
        first ``MAX_SAMPLE_SIZE`` entries after shuffling.
    """
    if not sampling_enabled or len(tasks) <= MAX_SAMPLE_SIZE:
        return tasks
    LOGGER.info("%s needs sampling: %d tasks, keeping %d", job_id, len(tasks), MAX_SAMPLE_SIZE)
    (rng or random).shuffle(tasks)
    return tasks[:MAX_SAMPLE_SIZE]
