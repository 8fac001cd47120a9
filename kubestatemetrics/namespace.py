"""Metric families for namespaces."""

from __future__ import annotations

from typing import Any, Callable, Mapping

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
NAMESPACE_PHASES = ("Active", "Terminating")


def _wrap(func: Callable[[Mapping[str, Any]], Family]) -> Callable[[Any], Family]:
    return with_object_labels(["namespace"], ["name"], func)


def _created(ns: Mapping[str, Any]) -> Family:
    created = unix_time((ns.get("metadata") or {}).get("creationTimestamp"))
    return Family([] if created is None else [Metric(value=float(created))])


def _labels(ns: Mapping[str, Any]) -> Family:
    keys, values = kube_labels_to_prometheus_labels((ns.get("metadata") or {}).get("labels"))
    return Family([Metric(keys, values, 1)])


def _phase(ns: Mapping[str, Any]) -> Family:
    phase = (ns.get("status") or {}).get("phase")
    return Family([Metric(["phase"], [p], bool_float(phase == p)) for p in NAMESPACE_PHASES])


METRIC_FAMILIES = [
    FamilyGenerator(
        name="kube_namespace_created",
        help="Unix creation timestamp",
        generate_func=_wrap(_created),
    ),
    FamilyGenerator(
        name="kube_namespace_labels",
        help=LABELS_HELP,
        generate_func=_wrap(_labels),
    ),
    FamilyGenerator(
        name="kube_namespace_status_phase",
        help="kubernetes namespace status phase.",
        generate_func=_wrap(_phase),
    ),
]