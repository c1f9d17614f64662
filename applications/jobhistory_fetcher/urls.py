"""
Job History URLs
================

Builds resource addresses for the MapReduce job history server REST API.
All resources hang off ``/ws/v1/history/mapreduce/jobs``:

* ``{job}`` – job summary (state, times, diagnostics)
* ``{job}/conf`` – job configuration properties
* ``{job}/counters`` – job counters
* ``{job}/tasks`` – task list
* ``{job}/tasks/{task}/counters`` – per‑task counters
* ``{job}/tasks/{task}/attempts`` – all attempts of a task
* ``{job}/tasks/{task}/attempts/{attempt}`` – a single attempt

The builder performs no I/O.
"""

from __future__ import annotations

from urllib.parse import quote, urlsplit

REST_PATH = "/ws/v1/history/mapreduce/jobs"
HISTORY_PAGE_PATH = "/jobhistory/job"


def _segment(value: str) -> str:
    if not value:
        raise ValueError("URL path segment must not be empty")
    return quote(value, safe="")


class JobHistoryUrls:
    """Resource addresses for one job history server.

    :param history_address: ``host:port`` of the history server web app
        (the value of ``mapreduce.jobhistory.webapp.address``).  An address
        that already carries an ``http://`` or ``https://`` scheme is used
        as is.
    :raises ValueError: If the address has no host.
    """

    def __init__(self, history_address: str) -> None:
        address = (history_address or "").strip().rstrip("/")
        if address and "://" not in address:
            address = f"http://{address}"
        parts = urlsplit(address)
        if parts.scheme not in {"http", "https"} or not parts.hostname:
            raise ValueError(f"Malformed job history address: {history_address!r}")
        self.base_url = address
        self.rest_root = f"{address}{REST_PATH}"

    def job(self, job_id: str) -> str:
        return f"{self.rest_root}/{_segment(job_id)}"

    def job_conf(self, job_id: str) -> str:
        return f"{self.job(job_id)}/conf"

    def job_counters(self, job_id: str) -> str:
        return f"{self.job(job_id)}/counters"

    def task_list(self, job_id: str) -> str:
        return f"{self.job(job_id)}/tasks"

    def task(self, job_id: str, task_id: str) -> str:
        return f"{self.task_list(job_id)}/{_segment(task_id)}"

    def task_counters(self, job_id: str, task_id: str) -> str:
        return f"{self.task(job_id, task_id)}/counters"

    def task_attempts(self, job_id: str, task_id: str) -> str:
        return f"{self.task(job_id, task_id)}/attempts"

    def task_attempt(self, job_id: str, task_id: str, attempt_id: str) -> str:
        return f"{self.task_attempts(job_id, task_id)}/{_segment(attempt_id)}"

    def history_page(self, job_id: str) -> str:
        """Return the human‑facing job history page for ``job_id``."""
        return f"{self.base_url}{HISTORY_PAGE_PATH}/{_segment(job_id)}"
