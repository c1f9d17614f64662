"""
Failure Diagnostics
===================

Recovers the stack trace behind a failed job.  The job resource of a
failed job carries a free‑text diagnostic such as::

    Task failed task_1443068695259_9143_m_000475
    Job failed as tasks failed. failedMaps:1 failedReduces:0
    ...
    Task task_1443068695259_9143_m_000475 failed 1 times

``DIAGNOSTIC_PATTERN`` locates the failing task, its attempts are
fetched, and the diagnostics of the failed attempt are returned when
they look like a Java stack trace (start with ``Error:``).

Every way this can go wrong yields ``None``: the record of a failed job
is still useful without a stack trace.
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple, Optional

from .decoder import decode_failed_attempt_diagnostics
from .errors import FetcherError
from .session import WorkerSession
from .urls import JobHistoryUrls

LOGGER = logging.getLogger(__name__)

# Group ``task_id`` is the failing task, group ``count`` how often it failed.
# Separators may be ordinary or non-breaking spaces.
DIAGNOSTIC_PATTERN = re.compile(
    r"Task[\s\u00A0]+(?P<task_id>\S+)[\s\u00A0]+failed[\s\u00A0]+(?P<count>[0-9]+)[\s\u00A0]+times"
)

STACK_TRACE_PREFIX = "Error:"


class FailedTask(NamedTuple):
    task_id: str
    failure_count: int


def parse_failed_task(message: Optional[str]) -> Optional[FailedTask]:
    """Return the failing task named in ``message``, or ``None`` if it names none."""
    if not message:
        return None
    match = DIAGNOSTIC_PATTERN.search(message)
    if not match:
        return None
    return FailedTask(match.group("task_id"), int(match.group("count")))


class DiagnosticExtractor:
    """Fetch the stack trace of the task that made a job fail."""

    def __init__(self, session: WorkerSession, urls: JobHistoryUrls) -> None:
        self.session = session
        self.urls = urls

    def extract(self, job_id: str, message: Optional[str]) -> Optional[str]:
        """Return the failing attempt's stack trace, or ``None`` if unavailable.

        Request and decode errors raised while fetching the task's
        attempts are logged and also yield ``None``.
        """
        failed = parse_failed_task(message)
        if failed is None:
            # Usually an exception during AM setup, before any task ran
            LOGGER.info("%s: no diagnostic info available", job_id)
            return None
        if failed.failure_count == 0:
            LOGGER.warning(
                "%s: inconsistent diagnostic, task %s reported as failed 0 times", job_id, failed.task_id
            )
            return None
        LOGGER.debug("%s: task %s failed %d times", job_id, failed.task_id, failed.failure_count)

        try:
            doc = self.session.read_json(self.urls.task_attempts(job_id, failed.task_id))
            stack_trace = decode_failed_attempt_diagnostics(doc)
        except FetcherError as exc:
            LOGGER.warning("%s: cannot fetch attempts of task %s: %s", job_id, failed.task_id, exc)
            return None
        if stack_trace is None:
            LOGGER.warning("%s: task %s has no failed attempt", job_id, failed.task_id)
            return None
        if not stack_trace.startswith(STACK_TRACE_PREFIX):
            LOGGER.warning("%s: failed attempt of task %s has no valid stack trace", job_id, failed.task_id)
            return None
        return stack_trace
