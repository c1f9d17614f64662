"""
Response Decoder
================

Turns JSON documents returned by the job history server into typed
values.  This is the only module that knows the wire schema; each
function reads exactly one resource shape:

* job – ``{"job": {"state", "submitTime", "startTime", "finishTime", "diagnostics"}}``
* job conf – ``{"conf": {"property": [{"name", "value"}]}}``
* job counters – ``{"jobCounters": {"counterGroup": [{"counterGroupName",
  "counter": [{"name", "totalCounterValue"}]}]}}``
* task counters – ``{"jobTaskCounters": {"taskCounterGroup": [{"counterGroupName",
  "counter": [{"name", "value"}]}]}}``
* task list – ``{"tasks": {"task": [{"id", "state", "type", "successfulAttempt"}]}}``
* task attempt – ``{"taskAttempt": {"type", "startTime", "finishTime",
  "elapsedShuffleTime", "elapsedMergeTime"}}``
* task attempts – ``{"taskAttempts": {"taskAttempt": [{"state", "diagnostics"}]}}``

A missing required field raises ``DecodeError``.  The server renders an
empty list as ``null`` or omits it, so a list container that is ``null``
or lacks its repeated element decodes as empty; the container key itself
must be present.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, NamedTuple, Optional

from .errors import DecodeError
from .models import CounterTable, TaskTimes

SUCCEEDED = "SUCCEEDED"
FAILED = "FAILED"
MAP = "MAP"


class TaskEntry(NamedTuple):
    """A successful task from the task list, before its details are fetched."""

    task_id: str
    attempt_id: str
    is_mapper: bool


def _require(node: Any, *path: str) -> Any:
    current = node
    for i, key in enumerate(path):
        if not isinstance(current, Mapping) or current.get(key) is None:
            raise DecodeError(f"Missing required field {'.'.join(path[: i + 1])}")
        current = current[key]
    return current


def _require_str(node: Any, *path: str) -> str:
    value = _require(node, *path)
    if not isinstance(value, str):
        raise DecodeError(f"Field {'.'.join(path)} must be a string, got {value!r}")
    return value


def _require_int(node: Any, *path: str) -> int:
    value = _require(node, *path)
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"Field {'.'.join(path)} must be an integer, got {value!r}")
    return value


def _container(doc: Any, key: str) -> Mapping:
    # "key": null is how the server renders a container with nothing in it
    if not isinstance(doc, Mapping) or key not in doc:
        raise DecodeError(f"Missing required field {key}")
    value = doc[key]
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise DecodeError(f"Field {key} must be an object")
    return value


def _repeated(container: Any, key: str, path: str) -> List[Any]:
    if not isinstance(container, Mapping):
        raise DecodeError(f"Field {path} must be an object")
    items = container.get(key)
    if items is None:
        return []
    # A single element is sometimes rendered without the enclosing list
    if isinstance(items, Mapping):
        return [items]
    if not isinstance(items, list):
        raise DecodeError(f"Field {path}.{key} must be a list")
    return items


def decode_job_state(doc: Dict[str, Any]) -> str:
    return _require_str(doc, "job", "state")


def decode_submit_time(doc: Dict[str, Any]) -> int:
    return _require_int(doc, "job", "submitTime")


def decode_start_time(doc: Dict[str, Any]) -> int:
    return _require_int(doc, "job", "startTime")


def decode_finish_time(doc: Dict[str, Any]) -> int:
    return _require_int(doc, "job", "finishTime")


def decode_job_diagnostics(doc: Dict[str, Any]) -> str:
    """Return the job's diagnostic message, or ``""`` when none was reported."""
    job = _container(doc, "job")
    diagnostics = job.get("diagnostics")
    return diagnostics if isinstance(diagnostics, str) else ""


def decode_job_conf(doc: Dict[str, Any]) -> Dict[str, str]:
    conf = _container(doc, "conf")
    properties: Dict[str, str] = {}
    for prop in _repeated(conf, "property", "conf"):
        name = _require_str(prop, "name")
        value = prop.get("value")
        properties[name] = "" if value is None else str(value)
    return properties


def _decode_counters(doc: Dict[str, Any], root: str, groups_key: str, value_key: str) -> CounterTable:
    table = CounterTable()
    container = _container(doc, root)
    for group in _repeated(container, groups_key, root):
        group_name = _require_str(group, "counterGroupName")
        for counter in _repeated(group, "counter", f"{root}.{groups_key}"):
            table.set(group_name, _require_str(counter, "name"), _require_int(counter, value_key))
    return table


def decode_job_counters(doc: Dict[str, Any]) -> CounterTable:
    return _decode_counters(doc, "jobCounters", "counterGroup", "totalCounterValue")


def decode_task_counters(doc: Dict[str, Any]) -> CounterTable:
    return _decode_counters(doc, "jobTaskCounters", "taskCounterGroup", "value")


def decode_task_list(doc: Dict[str, Any]) -> List[TaskEntry]:
    """Return the successful tasks of a job in payload order.

    Tasks in any other state are dropped entirely.
    """
    entries: List[TaskEntry] = []
    for task in _repeated(_container(doc, "tasks"), "task", "tasks"):
        if _require_str(task, "state") != SUCCEEDED:
            continue
        entries.append(
            TaskEntry(
                task_id=_require_str(task, "id"),
                attempt_id=_require_str(task, "successfulAttempt"),
                is_mapper=_require_str(task, "type") == MAP,
            )
        )
    return entries


def decode_task_times(doc: Dict[str, Any]) -> TaskTimes:
    attempt = _require(doc, "taskAttempt")
    start = _require_int(attempt, "startTime")
    finish = _require_int(attempt, "finishTime")
    if _require_str(attempt, "type") == MAP:
        return TaskTimes(finish - start, 0, 0, start, finish)
    shuffle = _require_int(attempt, "elapsedShuffleTime")
    sort = _require_int(attempt, "elapsedMergeTime")
    return TaskTimes(finish - start, shuffle, sort, start, finish)


def decode_failed_attempt_diagnostics(doc: Dict[str, Any]) -> Optional[str]:
    """Return the diagnostics of the first FAILED attempt, or ``None`` if there is none."""
    for attempt in _repeated(_container(doc, "taskAttempts"), "taskAttempt", "taskAttempts"):
        if _require_str(attempt, "state") != FAILED:
            continue
        diagnostics = attempt.get("diagnostics")
        return diagnostics if isinstance(diagnostics, str) else ""
    return None
