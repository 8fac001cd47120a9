"""Metric families for horizontal pod autoscalers."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from kubestatemetrics.metric import (
    Family,
    FamilyGenerator,
    Metric,
    add_condition_metrics,
    kube_labels_to_prometheus_labels,
    with_object_labels,
)

LABELS_HELP = "Kubernetes labels converted to Prometheus labels."


def _wrap(func: Callable[[Mapping[str, Any]], Family]) -> Callable[[Any], Family]:
    return with_object_labels(["namespace", "hpa"], ["namespace", "name"], func)


def _meta(a: Mapping[str, Any]) -> Mapping[str, Any]:
    return a.get("metadata") or {}


def _spec(a: Mapping[str, Any]) -> Mapping[str, Any]:
    return a.get("spec") or {}


def _status(a: Mapping[str, Any]) -> Mapping[str, Any]:
    return a.get("status") or {}


def _generation(a: Mapping[str, Any]) -> Family:
    return Family([Metric(value=float(_meta(a).get("generation") or 0))])


def _max_replicas(a: Mapping[str, Any]) -> Family:
    return Family([Metric(value=float(_spec(a).get("maxReplicas") or 0))])


def _min_replicas(a: Mapping[str, Any]) -> Family:
    minimum = _spec(a).get("minReplicas")
    if minimum is None:
        raise ValueError(f"autoscaler {_meta(a).get('name')!r} has no spec.minReplicas")
    return Family([Metric(value=float(minimum))])


def _status_value(key: str) -> Callable[[Mapping[str, Any]], Family]:
    def generate(a: Mapping[str, Any]) -> Family:
        return Family([Metric(value=float(_status(a).get(key) or 0))])

    return generate


def _labels(a: Mapping[str, Any]) -> Family:
    keys, values = kube_labels_to_prometheus_labels(_meta(a).get("labels"))
    return Family([Metric(keys, values, 1)])


def _conditions(a: Mapping[str, Any]) -> Family:
    metrics = [
        Metric(
            ["condition", "status"],
            [str(condition.get("type") or "")] + list(m.label_values),
            m.value,
        )
        for condition in _status(a).get("conditions") or []
        for m in add_condition_metrics(condition.get("status"))
    ]
    return Family(metrics)


METRIC_FAMILIES = [
    FamilyGenerator(
        name="kube_hpa_metadata_generation",
        help="The generation observed by the HorizontalPodAutoscaler controller.",
        generate_func=_wrap(_generation),
    ),
    FamilyGenerator(
        name="kube_hpa_spec_max_replicas",
        help="Upper limit for the number of pods that can be set by the autoscaler; cannot be "
        "smaller than MinReplicas.",
        generate_func=_wrap(_max_replicas),
    ),
    FamilyGenerator(
        name="kube_hpa_spec_min_replicas",
        help="Lower limit for the number of pods that can be set by the autoscaler, default 1.",
        generate_func=_wrap(_min_replicas),
    ),
    FamilyGenerator(
        name="kube_hpa_status_current_replicas",
        help="Current number of replicas of pods managed by this autoscaler.",
        generate_func=_wrap(_status_value("currentReplicas")),
    ),
    FamilyGenerator(
        name="kube_hpa_status_desired_replicas",
        help="Desired number of replicas of pods managed by this autoscaler.",
        generate_func=_wrap(_status_value("desiredReplicas")),
    ),
    FamilyGenerator(
        name="kube_hpa_labels",
        help=LABELS_HELP,
        generate_func=_wrap(_labels),
    ),
    FamilyGenerator(
        name="kube_hpa_status_condition",
        help="The condition of this autoscaler.",
        generate_func=_wrap(_conditions),
    ),
]