from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
import requests

from jobhistory_fetcher.config import FetcherConfig
from jobhistory_fetcher.session import WorkerSession
from jobhistory_fetcher.urls import JobHistoryUrls

ADDRESS = "jhs.example.com:19888"
APP_ID = "application_1443068695259_9143"
JOB_ID = "job_1443068695259_9143"


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class FakeHttpSession:
    """Stands in for ``requests.Session``; serves canned payloads by URL."""

    def __init__(self, routes: Dict[str, Any]) -> None:
        self.routes = routes
        self.calls: List[str] = []
        self.closed = False

    def get(self, url: str, timeout: Optional[float] = None) -> FakeResponse:
        self.calls.append(url)
        if url not in self.routes:
            return FakeResponse({"RemoteException": {"message": "not found"}}, status_code=404)
        value = self.routes[url]
        if isinstance(value, Exception):
            raise value
        if isinstance(value, FakeResponse):
            return value
        return FakeResponse(value)

    def head(self, url: str, timeout: Optional[float] = None) -> FakeResponse:
        return FakeResponse(None)

    def close(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSessionFactory:
    """Hands out a new ``FakeHttpSession`` over shared routes on every call."""

    def __init__(self, routes: Dict[str, Any]) -> None:
        self.routes = routes
        self.created: List[FakeHttpSession] = []

    def __call__(self) -> FakeHttpSession:
        session = FakeHttpSession(self.routes)
        self.created.append(session)
        return session

    @property
    def calls(self) -> List[str]:
        return [url for session in self.created for url in session.calls]


def job_doc(state: str, diagnostics: Optional[str] = None) -> Dict[str, Any]:
    return {
        "job": {
            "id": JOB_ID,
            "state": state,
            "submitTime": 1443070000000,
            "startTime": 1443070005000,
            "finishTime": 1443070600000,
            "diagnostics": diagnostics,
        }
    }


def conf_doc(**props: str) -> Dict[str, Any]:
    return {"conf": {"path": "hdfs://x/job.xml", "property": [{"name": k, "value": v} for k, v in props.items()]}}


def job_counters_doc(groups: Dict[str, Dict[str, int]]) -> Dict[str, Any]:
    return {
        "jobCounters": {
            "id": JOB_ID,
            "counterGroup": [
                {
                    "counterGroupName": group,
                    "counter": [
                        {"name": name, "totalCounterValue": value, "mapCounterValue": 0, "reduceCounterValue": 0}
                        for name, value in counters.items()
                    ],
                }
                for group, counters in groups.items()
            ],
        }
    }


def task_counters_doc(groups: Dict[str, Dict[str, int]]) -> Dict[str, Any]:
    return {
        "jobTaskCounters": {
            "taskCounterGroup": [
                {
                    "counterGroupName": group,
                    "counter": [{"name": name, "value": value} for name, value in counters.items()],
                }
                for group, counters in groups.items()
            ]
        }
    }


def task_id(kind: str, index: int) -> str:
    return f"task_1443068695259_9143_{kind}_{index:06d}"


def attempt_id(kind: str, index: int) -> str:
    return f"attempt_1443068695259_9143_{kind}_{index:06d}_0"


def task_entry(kind: str, index: int, state: str = "SUCCEEDED") -> Dict[str, Any]:
    return {
        "id": task_id(kind, index),
        "state": state,
        "type": "MAP" if kind == "m" else "REDUCE",
        "successfulAttempt": attempt_id(kind, index) if state == "SUCCEEDED" else "",
    }


def map_attempt_doc(start: int, finish: int) -> Dict[str, Any]:
    return {"taskAttempt": {"type": "MAP", "state": "SUCCEEDED", "startTime": start, "finishTime": finish}}


def reduce_attempt_doc(start: int, finish: int, shuffle: int, merge: int) -> Dict[str, Any]:
    return {
        "taskAttempt": {
            "type": "REDUCE",
            "state": "SUCCEEDED",
            "startTime": start,
            "finishTime": finish,
            "elapsedShuffleTime": shuffle,
            "elapsedMergeTime": merge,
            "elapsedReduceTime": finish - start - shuffle - merge,
        }
    }


def add_successful_job(
    routes: Dict[str, Any],
    urls: JobHistoryUrls,
    mappers: int,
    reducers: int,
    failed_mappers: int = 0,
) -> None:
    """Register every resource of a SUCCEEDED job with the given task counts."""
    routes[urls.job_conf(JOB_ID)] = conf_doc(**{"mapreduce.job.name": "wordcount", "mapreduce.job.queuename": "default"})
    routes[urls.job(JOB_ID)] = job_doc("SUCCEEDED")
    routes[urls.job_counters(JOB_ID)] = job_counters_doc(
        {
            "org.apache.hadoop.mapreduce.FileSystemCounter": {"HDFS_BYTES_READ": 1048576},
            "org.apache.hadoop.mapreduce.TaskCounter": {"MAP_INPUT_RECORDS": 4000, "SPILLED_RECORDS": 0},
        }
    )
    tasks = [task_entry("m", i) for i in range(mappers)]
    tasks += [task_entry("m", mappers + i, state="FAILED") for i in range(failed_mappers)]
    tasks += [task_entry("r", i) for i in range(reducers)]
    routes[urls.task_list(JOB_ID)] = {"tasks": {"task": tasks}}
    for i in range(mappers):
        tid = task_id("m", i)
        routes[urls.task_counters(JOB_ID, tid)] = task_counters_doc(
            {"org.apache.hadoop.mapreduce.TaskCounter": {"MAP_INPUT_RECORDS": 10 + i}}
        )
        routes[urls.task_attempt(JOB_ID, tid, attempt_id("m", i))] = map_attempt_doc(1000, 3000 + i)
    for i in range(reducers):
        tid = task_id("r", i)
        routes[urls.task_counters(JOB_ID, tid)] = task_counters_doc(
            {"org.apache.hadoop.mapreduce.TaskCounter": {"REDUCE_INPUT_RECORDS": 100 + i}}
        )
        routes[urls.task_attempt(JOB_ID, tid, attempt_id("r", i))] = reduce_attempt_doc(4000, 9000, 1500, 500)


@pytest.fixture
def urls() -> JobHistoryUrls:
    return JobHistoryUrls(ADDRESS)


@pytest.fixture
def routes() -> Dict[str, Any]:
    return {}


@pytest.fixture
def factory(routes: Dict[str, Any]) -> FakeSessionFactory:
    return FakeSessionFactory(routes)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(1000.0)


@pytest.fixture
def worker_session(factory: FakeSessionFactory, clock: FakeClock) -> WorkerSession:
    return WorkerSession(0, session_factory=factory, clock=clock)


@pytest.fixture
def config() -> FetcherConfig:
    return FetcherConfig(history_address=ADDRESS, params={"sampling_enabled": "false"})
