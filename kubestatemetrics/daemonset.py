"""Metric families for daemon sets."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from kubestatemetrics.metric import (
    Family,
    FamilyGenerator,
    Metric,
    kube_labels_to_prometheus_labels,
    unix_time,
    with_object_labels,
)

LABELS_HELP = "Kubernetes labels converted to Prometheus labels."


def _wrap(func: Callable[[Mapping[str, Any]], Family]) -> Callable[[Any], Family]:
    return with_object_labels(["namespace", "daemonset"], ["namespace", "name"], func)


def _status_value(key: str) -> Callable[[Mapping[str, Any]], Family]:
    def generate(ds: Mapping[str, Any]) -> Family:
        return Family([Metric(value=float((ds.get("status") or {}).get(key) or 0))])

    return generate


def _created(ds: Mapping[str, Any]) -> Family:
    created = unix_time((ds.get("metadata") or {}).get("creationTimestamp"))
    return Family([] if created is None else [Metric(value=float(created))])


def _generation(ds: Mapping[str, Any]) -> Family:
    return Family([Metric(value=float((ds.get("metadata") or {}).get("generation") or 0))])


def _labels(ds: Mapping[str, Any]) -> Family:
    keys, values = kube_labels_to_prometheus_labels((ds.get("metadata") or {}).get("labels"))
    return Family([Metric(keys, values, 1)])


METRIC_FAMILIES = [
    FamilyGenerator(
        name="kube_daemonset_created",
        help="Unix creation timestamp",
        generate_func=_wrap(_created),
    ),
    FamilyGenerator(
        name="kube_daemonset_status_current_number_scheduled",
        help="The number of nodes running at least one daemon pod and are supposed to.",
        generate_func=_wrap(_status_value("currentNumberScheduled")),
    ),
    FamilyGenerator(
        name="kube_daemonset_status_desired_number_scheduled",
        help="The number of nodes that should be running the daemon pod.",
        generate_func=_wrap(_status_value("desiredNumberScheduled")),
    ),
    FamilyGenerator(
        name="kube_daemonset_status_number_available",
        help="The number of nodes that should be running the daemon pod and have one or more "
        "of the daemon pod running and available",
        generate_func=_wrap(_status_value("numberAvailable")),
    ),
    FamilyGenerator(
        name="kube_daemonset_status_number_misscheduled",
        help="The number of nodes running a daemon pod but are not supposed to.",
        generate_func=_wrap(_status_value("numberMisscheduled")),
    ),
    FamilyGenerator(
        name="kube_daemonset_status_number_ready",
        help="The number of nodes that should be running the daemon pod and have one or more "
        "of the daemon pod running and ready.",
        generate_func=_wrap(_status_value("numberReady")),
    ),
    FamilyGenerator(
        name="kube_daemonset_status_number_unavailable",
        help="The number of nodes that should be running the daemon pod and have none of the "
        "daemon pod running and available",
        generate_func=_wrap(_status_value("numberUnavailable")),
    ),
    FamilyGenerator(
        name="kube_daemonset_updated_number_scheduled",
        help="The total number of nodes that are running updated daemon pod",
        generate_func=_wrap(_status_value("updatedNumberScheduled")),
    ),
    FamilyGenerator(
        name="kube_daemonset_metadata_generation",
        help="Sequence number representing a specific generation of the desired state.",
        generate_func=_wrap(_generation),
    ),
    FamilyGenerator(
        name="kube_daemonset_labels",
        help=LABELS_HELP,
        generate_func=_wrap(_labels),
    ),
]