"""Metric families for jobs."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from kubestatemetrics.metric import (
    Family,
    FamilyGenerator,
    Metric,
    add_condition_metrics,
    kube_labels_to_prometheus_labels,
    unix_time,
    with_object_labels,
)

LABELS_HELP = "Kubernetes labels converted to Prometheus labels."

_OWNER_LABEL_KEYS = ["owner_kind", "owner_name", "owner_is_controller"]
_NONE = "<none>"


def _wrap(func: Callable[[Mapping[str, Any]], Family]) -> Callable[[Any], Family]:
    return with_object_labels(["namespace", "job_name"], ["namespace", "name"], func)


def _meta(j: Mapping[str, Any]) -> Mapping[str, Any]:
    return j.get("metadata") or {}


def _spec(j: Mapping[str, Any]) -> Mapping[str, Any]:
    return j.get("spec") or {}


def _status(j: Mapping[str, Any]) -> Mapping[str, Any]:
    return j.get("status") or {}


def _labels(j: Mapping[str, Any]) -> Family:
    keys, values = kube_labels_to_prometheus_labels(_meta(j).get("labels"))
    return Family([Metric(keys, values, 1)])


def _info(j: Mapping[str, Any]) -> Family:
    return Family([Metric(value=1)])


def _optional_time(
    section: Callable[[Mapping[str, Any]], Mapping[str, Any]], key: str
) -> Callable[[Mapping[str, Any]], Family]:
    def generate(j: Mapping[str, Any]) -> Family:
        seconds = unix_time(section(j).get(key))
        return Family([] if seconds is None else [Metric(value=float(seconds))])

    return generate


def _optional_spec_value(key: str) -> Callable[[Mapping[str, Any]], Family]:
    def generate(j: Mapping[str, Any]) -> Family:
        value = _spec(j).get(key)
        return Family([] if value is None else [Metric(value=float(value))])

    return generate


def _status_value(key: str) -> Callable[[Mapping[str, Any]], Family]:
    def generate(j: Mapping[str, Any]) -> Family:
        return Family([Metric(value=float(_status(j).get(key) or 0))])

    return generate


def _condition(condition_type: str) -> Callable[[Mapping[str, Any]], Family]:
    def generate(j: Mapping[str, Any]) -> Family:
        metrics = [
            Metric(["condition"], list(m.label_values), m.value)
            for condition in _status(j).get("conditions") or []
            if condition.get("type") == condition_type
            for m in add_condition_metrics(condition.get("status"))
        ]
        return Family(metrics)

    return generate


def _owner(j: Mapping[str, Any]) -> Family:
    owners = _meta(j).get("ownerReferences") or []
    if not owners:
        return Family([Metric(list(_OWNER_LABEL_KEYS), [_NONE, _NONE, _NONE], 1)])
    metrics = []
    for owner in owners:
        controller = owner.get("controller")
        is_controller = "false" if controller is None else str(bool(controller)).lower()
        metrics.append(
            Metric(
                list(_OWNER_LABEL_KEYS),
                [str(owner.get("kind") or ""), str(owner.get("name") or ""), is_controller],
                1,
            )
        )
    return Family(metrics)


METRIC_FAMILIES = [
    FamilyGenerator(
        name="kube_job_labels",
        help=LABELS_HELP,
        generate_func=_wrap(_labels),
    ),
    FamilyGenerator(
        name="kube_job_info",
        help="Information about job.",
        generate_func=_wrap(_info),
    ),
    FamilyGenerator(
        name="kube_job_created",
        help="Unix creation timestamp",
        generate_func=_wrap(_optional_time(_meta, "creationTimestamp")),
    ),
    FamilyGenerator(
        name="kube_job_spec_parallelism",
        help="The maximum desired number of pods the job should run at any given time.",
        generate_func=_wrap(_optional_spec_value("parallelism")),
    ),
    FamilyGenerator(
        name="kube_job_spec_completions",
        help="The desired number of successfully finished pods the job should be run with.",
        generate_func=_wrap(_optional_spec_value("completions")),
    ),
    FamilyGenerator(
        name="kube_job_spec_active_deadline_seconds",
        help="The duration in seconds relative to the startTime that the job may be active "
        "before the system tries to terminate it.",
        generate_func=_wrap(_optional_spec_value("activeDeadlineSeconds")),
    ),
    FamilyGenerator(
        name="kube_job_status_succeeded",
        help="The number of pods which reached Phase Succeeded.",
        generate_func=_wrap(_status_value("succeeded")),
    ),
    FamilyGenerator(
        name="kube_job_status_failed",
        help="The number of pods which reached Phase Failed.",
        generate_func=_wrap(_status_value("failed")),
    ),
    FamilyGenerator(
        name="kube_job_status_active",
        help="The number of actively running pods.",
        generate_func=_wrap(_status_value("active")),
    ),
    FamilyGenerator(
        name="kube_job_complete",
        help="The job has completed its execution.",
        generate_func=_wrap(_condition("Complete")),
    ),
    FamilyGenerator(
        name="kube_job_failed",
        help="The job has failed its execution.",
        generate_func=_wrap(_condition("Failed")),
    ),
    FamilyGenerator(
        name="kube_job_status_start_time",
        help="StartTime represents time when the job was acknowledged by the Job Manager.",
        generate_func=_wrap(_optional_time(_status, "startTime")),
    ),
    FamilyGenerator(
        name="kube_job_status_completion_time",
        help="CompletionTime represents time when the job was completed.",
        generate_func=_wrap(_optional_time(_status, "completionTime")),
    ),
    FamilyGenerator(
        name="kube_job_owner",
        help="Information about the Job's owner.",
        generate_func=_wrap(_owner),
    ),
]