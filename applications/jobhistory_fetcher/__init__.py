"""
Job History Fetcher Package
===========================

This package retrieves completed MapReduce jobs from the Hadoop job
history server REST API (``/ws/v1/history/mapreduce/jobs``) and
normalises each one into an ``ApplicationRecord``: submit, start and
finish times, job counters, per‑task counters and timings for succeeded
jobs, and the failing task's stack trace for failed jobs.

Each worker of the caller's pool owns one ``MapReduceFetcher`` (and
with it one authenticated ``WorkerSession``); nothing is shared between
workers except the read‑only ``FetcherConfig``.  Typical usage::

    cfg = FetcherConfig.from_env()
    with MapReduceFetcher(cfg, worker_id=0) as fetcher:
        record = fetcher.fetch_data("application_1443068695259_9143")

Nothing happens on import.
"""

from .config import FetcherConfig
from .errors import (
    AuthenticationError,
    DecodeError,
    FetcherError,
    RemoteServiceError,
    ServiceUnavailableError,
    UnsupportedJobStateError,
)
from .fetcher import MapReduceFetcher
from .models import AnalyticJob, ApplicationRecord, CounterTable, TaskRecord, TaskTimes
from .session import WorkerSession
from .urls import JobHistoryUrls

__all__ = [
    "FetcherConfig",
    "MapReduceFetcher",
    "WorkerSession",
    "JobHistoryUrls",
    "AnalyticJob",
    "ApplicationRecord",
    "CounterTable",
    "TaskRecord",
    "TaskTimes",
    "FetcherError",
    "ServiceUnavailableError",
    "RemoteServiceError",
    "AuthenticationError",
    "DecodeError",
    "UnsupportedJobStateError",
]
