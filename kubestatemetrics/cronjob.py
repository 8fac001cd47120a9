"""Metric families for cron jobs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from kubestatemetrics.cron import CronParseError, parse_standard
from kubestatemetrics.metric import (
    Family,
    FamilyGenerator,
    Metric,
    bool_float,
    kube_labels_to_prometheus_labels,
    unix_time,
    with_object_labels,
)

LABELS_HELP = "Kubernetes labels converted to Prometheus labels."

# Unix seconds of the zero time value, reported when no next run exists.
_ZERO_TIME_UNIX = -62135596800


def _as_local_datetime(value: Any) -> datetime | None:
    seconds = unix_time(value)
    if seconds is None:
        return None
    return datetime.fromtimestamp(seconds, timezone.utc).astimezone()


def get_next_scheduled_time(
    schedule: str, last_schedule_time: Any, created_time: Any
) -> datetime | None:
    """Next run after the last scheduled time, or after creation if never scheduled.

    Returns None when the schedule never fires again.
    """
    try:
        parsed = parse_standard(schedule)
    except CronParseError as err:
        raise CronParseError(f"Failed to parse cron job schedule '{schedule}': {err}") from err

    last = _as_local_datetime(last_schedule_time)
    if last is not None:
        return parsed.next(last)
    created = _as_local_datetime(created_time)
    if created is not None:
        return parsed.next(created)
    raise ValueError("createdTime and lastScheduleTime are both zero")


def _wrap(func: Callable[[Mapping[str, Any]], Family]) -> Callable[[Any], Family]:
    return with_object_labels(["namespace", "cronjob"], ["namespace", "name"], func)


def _meta(cj: Mapping[str, Any]) -> Mapping[str, Any]:
    return cj.get("metadata") or {}


def _spec(cj: Mapping[str, Any]) -> Mapping[str, Any]:
    return cj.get("spec") or {}


def _status(cj: Mapping[str, Any]) -> Mapping[str, Any]:
    return cj.get("status") or {}


def _labels(cj: Mapping[str, Any]) -> Family:
    keys, values = kube_labels_to_prometheus_labels(_meta(cj).get("labels"))
    return Family([Metric(keys, values, 1)])


def _info(cj: Mapping[str, Any]) -> Family:
    spec = _spec(cj)
    return Family(
        [
            Metric(
                ["schedule", "concurrency_policy"],
                [str(spec.get("schedule") or ""), str(spec.get("concurrencyPolicy") or "")],
                1,
            )
        ]
    )


def _created(cj: Mapping[str, Any]) -> Family:
    created = unix_time(_meta(cj).get("creationTimestamp"))
    return Family([] if created is None else [Metric(value=float(created))])


def _status_active(cj: Mapping[str, Any]) -> Family:
    return Family([Metric(value=float(len(_status(cj).get("active") or [])))])


def _last_schedule_time(cj: Mapping[str, Any]) -> Family:
    last = unix_time(_status(cj).get("lastScheduleTime"))
    return Family([] if last is None else [Metric(value=float(last))])


def _suspend(cj: Mapping[str, Any]) -> Family:
    suspend = _spec(cj).get("suspend")
    return Family([] if suspend is None else [Metric(value=bool_float(suspend))])


def _starting_deadline(cj: Mapping[str, Any]) -> Family:
    deadline = _spec(cj).get("startingDeadlineSeconds")
    return Family([] if deadline is None else [Metric(value=float(deadline))])


def _next_schedule_time(cj: Mapping[str, Any]) -> Family:
    spec = _spec(cj)
    upcoming = get_next_scheduled_time(
        str(spec.get("schedule") or ""),
        _status(cj).get("lastScheduleTime"),
        _meta(cj).get("creationTimestamp"),
    )
    if spec.get("suspend"):
        return Family()
    seconds = _ZERO_TIME_UNIX if upcoming is None else unix_time(upcoming)
    return Family([Metric(value=float(seconds))])


METRIC_FAMILIES = [
    FamilyGenerator(
        name="kube_cronjob_labels",
        help=LABELS_HELP,
        generate_func=_wrap(_labels),
    ),
    FamilyGenerator(
        name="kube_cronjob_info",
        help="Info about cronjob.",
        generate_func=_wrap(_info),
    ),
    FamilyGenerator(
        name="kube_cronjob_created",
        help="Unix creation timestamp",
        generate_func=_wrap(_created),
    ),
    FamilyGenerator(
        name="kube_cronjob_status_active",
        help="Active holds pointers to currently running jobs.",
        generate_func=_wrap(_status_active),
    ),
    FamilyGenerator(
        name="kube_cronjob_status_last_schedule_time",
        help="LastScheduleTime keeps information of when was the last time the job was "
        "successfully scheduled.",
        generate_func=_wrap(_last_schedule_time),
    ),
    FamilyGenerator(
        name="kube_cronjob_spec_suspend",
        help="Suspend flag tells the controller to suspend subsequent executions.",
        generate_func=_wrap(_suspend),
    ),
    FamilyGenerator(
        name="kube_cronjob_spec_starting_deadline_seconds",
        help="Deadline in seconds for starting the job if it misses scheduled time for any reason.",
        generate_func=_wrap(_starting_deadline),
    ),
    FamilyGenerator(
        name="kube_cronjob_next_schedule_time",
        help="Next time the cronjob should be scheduled. The time after lastScheduleTime, or "
        "after the cron job's creation time if it's never been scheduled. Use this to "
        "determine if the job is delayed.",
        generate_func=_wrap(_next_schedule_time),
    ),
]