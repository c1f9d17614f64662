"""
Application Data Model
======================

Plain data containers produced by the fetcher.  An ``ApplicationRecord``
is assembled by ``MapReduceFetcher`` and handed to the analysis layer
once complete; partially built records are never returned.

Counters from the history server are grouped (for example
``org.apache.hadoop.mapreduce.TaskCounter``) and named (for example
``MAP_INPUT_RECORDS``).  ``CounterTable`` stores them keyed by the
``(group, name)`` pair.  All timestamps and durations are in
milliseconds since the epoch, exactly as reported by the server.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional, Tuple

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1

_APP_ID_RE = re.compile(r"^application_(\d+_\d+)$")


def job_id_from_app_id(app_id: str) -> str:
    """Convert a YARN application id into the matching MapReduce job id.

    ``application_1443068695259_9143`` becomes ``job_1443068695259_9143``.

    :raises ValueError: If ``app_id`` is not a YARN application id.
    """
    match = _APP_ID_RE.match(app_id or "")
    if not match:
        raise ValueError(f"Not a YARN application id: {app_id!r}")
    return f"job_{match.group(1)}"


class CounterTable:
    """Mapping of ``(group, name)`` to a signed 64‑bit counter value.

    Writes are last‑write‑wins.  After ``freeze()`` the table is read‑only.
    """

    def __init__(self) -> None:
        self._values: Dict[str, Dict[str, int]] = {}
        self._frozen = False

    def set(self, group: str, name: str, value: int) -> None:
        if self._frozen:
            raise RuntimeError("CounterTable is frozen")
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Counter {group}/{name} must be an integer, got {value!r}")
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise ValueError(f"Counter {group}/{name} does not fit in 64 bits: {value}")
        self._values.setdefault(group, {})[name] = value

    def get(self, group: str, name: str) -> int:
        """Return the counter value, or 0 if it was never reported."""
        return self._values.get(group, {}).get(name, 0)

    def groups(self) -> List[str]:
        return list(self._values)

    def group(self, group: str) -> Dict[str, int]:
        return dict(self._values.get(group, {}))

    def items(self) -> Iterator[Tuple[Tuple[str, str], int]]:
        for group, counters in self._values.items():
            for name, value in counters.items():
                yield (group, name), value

    def to_dict(self) -> Dict[Tuple[str, str], int]:
        return dict(self.items())

    def freeze(self) -> "CounterTable":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        group, name = key
        return name in self._values.get(group, {})

    def __len__(self) -> int:
        return sum(len(counters) for counters in self._values.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CounterTable):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"CounterTable({self.to_dict()!r})"


class TaskTimes(NamedTuple):
    """Execution times of a task's winning attempt.

    Map attempts report no shuffle or sort phase; both are 0 for them.
    """

    total: int
    shuffle: int
    sort: int
    start: int
    finish: int


@dataclass(frozen=True)
class TaskRecord:
    task_id: str
    attempt_id: str
    is_mapper: bool
    counters: CounterTable
    times: TaskTimes


@dataclass
class AnalyticJob:
    """A single fetch request.

    ``tracking_url`` is rewritten by the fetcher to point at the job
    history page once the job has been located.
    """

    app_id: str
    tracking_url: Optional[str] = None


@dataclass(frozen=True)
class ApplicationRecord:
    """Normalised view of one completed MapReduce job.

    A succeeded record carries job counters and the (possibly sampled)
    mapper and reducer task records and never a diagnostic.  A failed
    record carries no task records; ``diagnostic_info`` holds the failing
    task's stack trace when one could be recovered, otherwise ``None``.
    """

    app_id: str
    job_id: str
    submit_time: int
    start_time: int
    finish_time: int
    succeeded: bool
    diagnostic_info: Optional[str] = None
    counters: CounterTable = field(default_factory=CounterTable)
    mappers: Tuple[TaskRecord, ...] = ()
    reducers: Tuple[TaskRecord, ...] = ()
    job_conf: Mapping[str, str] = field(default_factory=dict)
    tracking_url: Optional[str] = None
    sampled: bool = False

    def __post_init__(self) -> None:
        if self.succeeded and self.diagnostic_info is not None:
            raise ValueError("A succeeded job cannot carry diagnostic info")
        if not self.succeeded and (self.mappers or self.reducers):
            raise ValueError("A failed job cannot carry task records")
        if any(not task.is_mapper for task in self.mappers):
            raise ValueError("Reducer task found among mappers")
        if any(task.is_mapper for task in self.reducers):
            raise ValueError("Mapper task found among reducers")
        # Read-only view over a private copy
        object.__setattr__(self, "job_conf", MappingProxyType(dict(self.job_conf)))
        self.counters.freeze()

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the record into plain Python types."""

        def _task(task: TaskRecord) -> Dict[str, Any]:
            return {
                "task_id": task.task_id,
                "attempt_id": task.attempt_id,
                "counters": {f"{g}:{n}": v for (g, n), v in task.counters.items()},
                "times": task.times._asdict(),
            }

        return {
            "app_id": self.app_id,
            "job_id": self.job_id,
            "submit_time": self.submit_time,
            "start_time": self.start_time,
            "finish_time": self.finish_time,
            "succeeded": self.succeeded,
            "diagnostic_info": self.diagnostic_info,
            "counters": {f"{g}:{n}": v for (g, n), v in self.counters.items()},
            "mappers": [_task(t) for t in self.mappers],
            "reducers": [_task(t) for t in self.reducers],
            "job_conf": dict(self.job_conf),
            "tracking_url": self.tracking_url,
            "sampled": self.sampled,
        }
