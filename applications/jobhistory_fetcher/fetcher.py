"""
MapReduce Job Fetcher
=====================

This module provides ``MapReduceFetcher``, which retrieves a completed
MapReduce job from the job history server REST API and normalises it
into an ``ApplicationRecord`` for the analysis layer.

For a job that SUCCEEDED the fetcher collects the job counters and, for
every (sampled) successful mapper and reducer task, its counters and the
timing of its winning attempt.  For a job that FAILED it tries to
recover the stack trace of the failing task.  Jobs in any other state
are rejected.

A fetcher instance belongs to one worker and must not be shared between
threads; create one per worker with that worker's pool index as
``worker_id``.  Remote calls within a fetch are issued sequentially.

The fetcher does not cache results; every call to ``fetch_data`` hits
the history server again.
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Tuple, Union

from .config import FetcherConfig
from .decoder import (
    FAILED,
    SUCCEEDED,
    TaskEntry,
    decode_finish_time,
    decode_job_conf,
    decode_job_counters,
    decode_job_diagnostics,
    decode_job_state,
    decode_start_time,
    decode_submit_time,
    decode_task_counters,
    decode_task_list,
    decode_task_times,
)
from .diagnostics import DiagnosticExtractor
from .errors import UnsupportedJobStateError
from .models import AnalyticJob, ApplicationRecord, TaskRecord, job_id_from_app_id
from .sampler import is_sampling_enabled, sample_tasks
from .session import SessionFactory, WorkerSession, default_session_factory, verify_service
from .urls import JobHistoryUrls

LOGGER = logging.getLogger(__name__)


class MapReduceFetcher:
    """Fetch MapReduce job data from the job history server.

    :param config: Fetcher configuration; ``history_address`` is required.
    :param worker_id: Index of the owning worker in the caller's pool.
    :param session: Pre‑built worker session.  By default one is created
        from ``session_factory``.
    :param session_factory: Builds ``requests.Session`` objects; defaults to
        ``default_session_factory(config)``.
    :param verify: Probe the history server on construction.
    :param rng: Random source for task sampling.
    :raises ValueError: If ``history_address`` is malformed.
    :raises ServiceUnavailableError: If ``verify`` is set and the server is
        unreachable.
    """

    def __init__(
        self,
        config: FetcherConfig,
        worker_id: int = 0,
        session: Optional[WorkerSession] = None,
        session_factory: Optional[SessionFactory] = None,
        verify: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.urls = JobHistoryUrls(config.history_address)
        factory = session_factory or default_session_factory(config)
        if verify:
            verify_service(self.urls.rest_root, factory, config.timeout)
        self.session = session or WorkerSession(worker_id, factory, timeout=config.timeout)
        self.sampling_enabled = is_sampling_enabled(config.params)
        self._rng = rng or random.Random()
        self._diagnostics = DiagnosticExtractor(self.session, self.urls)

    def fetch_data(self, job: Union[AnalyticJob, str]) -> ApplicationRecord:
        """Fetch and normalise one job.

        :param job: The job to fetch, or its YARN application id.  An
            ``AnalyticJob`` gets its ``tracking_url`` pointed at the job
            history page.
        :returns: The complete ``ApplicationRecord``.
        :raises FetcherError: If a request fails, a required field cannot be
            decoded or the job ended in an unsupported state.
        :raises ValueError: If the application id is malformed.
        """
        try:
            app_id = job.app_id if isinstance(job, AnalyticJob) else job
            job_id = job_id_from_app_id(app_id)
            tracking_url = self.urls.history_page(job_id)
            if isinstance(job, AnalyticJob):
                job.tracking_url = tracking_url
            LOGGER.info("Fetching %s (%s)", app_id, job_id)
            record = self._fetch(app_id, job_id, tracking_url)
        finally:
            self.session.maybe_rotate()
        LOGGER.info(
            "Fetched %s: succeeded=%s mappers=%d reducers=%d",
            job_id,
            record.succeeded,
            len(record.mappers),
            len(record.reducers),
        )
        return record

    def _fetch(self, app_id: str, job_id: str, tracking_url: str) -> ApplicationRecord:
        job_conf = decode_job_conf(self.session.read_json(self.urls.job_conf(job_id)))
        job_doc = self.session.read_json(self.urls.job(job_id))
        state = decode_job_state(job_doc)
        submit_time = decode_submit_time(job_doc)
        start_time = decode_start_time(job_doc)
        finish_time = decode_finish_time(job_doc)

        if state == SUCCEEDED:
            counters = decode_job_counters(self.session.read_json(self.urls.job_counters(job_id))).freeze()
            entries = decode_task_list(self.session.read_json(self.urls.task_list(job_id)))
            mappers, mappers_sampled = self._fetch_tasks(job_id, [e for e in entries if e.is_mapper])
            reducers, reducers_sampled = self._fetch_tasks(job_id, [e for e in entries if not e.is_mapper])
            return ApplicationRecord(
                app_id=app_id,
                job_id=job_id,
                submit_time=submit_time,
                start_time=start_time,
                finish_time=finish_time,
                succeeded=True,
                counters=counters,
                mappers=mappers,
                reducers=reducers,
                job_conf=job_conf,
                tracking_url=tracking_url,
                sampled=mappers_sampled or reducers_sampled,
            )
        if state == FAILED:
            diagnostic_info = self._diagnostics.extract(job_id, decode_job_diagnostics(job_doc))
            return ApplicationRecord(
                app_id=app_id,
                job_id=job_id,
                submit_time=submit_time,
                start_time=start_time,
                finish_time=finish_time,
                succeeded=False,
                diagnostic_info=diagnostic_info,
                job_conf=job_conf,
                tracking_url=tracking_url,
            )
        raise UnsupportedJobStateError(job_id, state)

    def _fetch_tasks(self, job_id: str, entries: List[TaskEntry]) -> Tuple[Tuple[TaskRecord, ...], bool]:
        total = len(entries)
        selected = sample_tasks(entries, self.sampling_enabled, rng=self._rng, job_id=job_id)
        records = tuple(self._fetch_task(job_id, entry) for entry in selected)
        return records, len(selected) < total

    def _fetch_task(self, job_id: str, entry: TaskEntry) -> TaskRecord:
        counters = decode_task_counters(
            self.session.read_json(self.urls.task_counters(job_id, entry.task_id))
        ).freeze()
        times = decode_task_times(
            self.session.read_json(self.urls.task_attempt(job_id, entry.task_id, entry.attempt_id))
        )
        return TaskRecord(
            task_id=entry.task_id,
            attempt_id=entry.attempt_id,
            is_mapper=entry.is_mapper,
            counters=counters,
            times=times,
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "MapReduceFetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
