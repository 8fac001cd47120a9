"""Metric families for deployments."""

from __future__ import annotations

import re
from typing import Any, Callable, Mapping

from kubestatemetrics.metric import (
    Family,
    FamilyGenerator,
    Metric,
    add_condition_metrics,
    bool_float,
    kube_labels_to_prometheus_labels,
    unix_time,
    with_object_labels,
)

LABELS_HELP = "Kubernetes labels converted to Prometheus labels."

_ATOI = re.compile(r"[+-]?\d+")


def get_value_from_int_or_percent(value: int | str | None, total: int, round_up: bool) -> int:
    """Resolve an integer or a percentage of ``total``.

    Strings are read as percentages (any ``%`` is dropped) and scaled by
    ``total``, rounded up or down as asked.
    """
    if value is None:
        raise ValueError("nil value for IntOrString")
    if isinstance(value, bool):
        raise ValueError("invalid value for IntOrString: invalid type: neither int nor percentage")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        digits = value.replace("%", "")
        if not _ATOI.fullmatch(digits):
            raise ValueError(f"invalid value for IntOrString: invalid value {value!r}")
        scaled = int(digits) * total
        return -(-scaled // 100) if round_up else scaled // 100
    raise ValueError("invalid value for IntOrString: invalid type: neither int nor percentage")


def _wrap(func: Callable[[Mapping[str, Any]], Family]) -> Callable[[Any], Family]:
    return with_object_labels(["namespace", "deployment"], ["namespace", "name"], func)


def _meta(d: Mapping[str, Any]) -> Mapping[str, Any]:
    return d.get("metadata") or {}


def _spec(d: Mapping[str, Any]) -> Mapping[str, Any]:
    return d.get("spec") or {}


def _status(d: Mapping[str, Any]) -> Mapping[str, Any]:
    return d.get("status") or {}


def _spec_replicas(d: Mapping[str, Any]) -> int:
    replicas = _spec(d).get("replicas")
    if replicas is None:
        raise ValueError(f"deployment {_meta(d).get('name')!r} has no spec.replicas")
    return int(replicas)


def _status_value(key: str) -> Callable[[Mapping[str, Any]], Family]:
    def generate(d: Mapping[str, Any]) -> Family:
        return Family([Metric(value=float(_status(d).get(key) or 0))])

    return generate


def _created(d: Mapping[str, Any]) -> Family:
    created = unix_time(_meta(d).get("creationTimestamp"))
    return Family([] if created is None else [Metric(value=float(created))])


def _conditions(d: Mapping[str, Any]) -> Family:
    metrics = [
        Metric(
            ["condition", "status"],
            [str(condition.get("type") or "")] + list(m.label_values),
            m.value,
        )
        for condition in _status(d).get("conditions") or []
        for m in add_condition_metrics(condition.get("status"))
    ]
    return Family(metrics)


def _replicas(d: Mapping[str, Any]) -> Family:
    return Family([Metric(value=float(_spec_replicas(d)))])


def _paused(d: Mapping[str, Any]) -> Family:
    return Family([Metric(value=bool_float(bool(_spec(d).get("paused"))))])


def _rolling_update(key: str) -> Callable[[Mapping[str, Any]], Family]:
    def generate(d: Mapping[str, Any]) -> Family:
        rolling = (_spec(d).get("strategy") or {}).get("rollingUpdate")
        if rolling is None:
            return Family()
        resolved = get_value_from_int_or_percent(rolling.get(key), _spec_replicas(d), True)
        return Family([Metric(value=float(resolved))])

    return generate


def _generation(d: Mapping[str, Any]) -> Family:
    return Family([Metric(value=float(_meta(d).get("generation") or 0))])


def _labels(d: Mapping[str, Any]) -> Family:
    keys, values = kube_labels_to_prometheus_labels(_meta(d).get("labels"))
    return Family([Metric(keys, values, 1)])


METRIC_FAMILIES = [
    FamilyGenerator(
        name="kube_deployment_created",
        help="Unix creation timestamp",
        generate_func=_wrap(_created),
    ),
    FamilyGenerator(
        name="kube_deployment_status_replicas",
        help="The number of replicas per deployment.",
        generate_func=_wrap(_status_value("replicas")),
    ),
    FamilyGenerator(
        name="kube_deployment_status_replicas_available",
        help="The number of available replicas per deployment.",
        generate_func=_wrap(_status_value("availableReplicas")),
    ),
    FamilyGenerator(
        name="kube_deployment_status_replicas_unavailable",
        help="The number of unavailable replicas per deployment.",
        generate_func=_wrap(_status_value("unavailableReplicas")),
    ),
    FamilyGenerator(
        name="kube_deployment_status_replicas_updated",
        help="The number of updated replicas per deployment.",
        generate_func=_wrap(_status_value("updatedReplicas")),
    ),
    FamilyGenerator(
        name="kube_deployment_status_observed_generation",
        help="The generation observed by the deployment controller.",
        generate_func=_wrap(_status_value("observedGeneration")),
    ),
    FamilyGenerator(
        name="kube_deployment_status_condition",
        help="The current status conditions of a deployment.",
        generate_func=_wrap(_conditions),
    ),
    FamilyGenerator(
        name="kube_deployment_spec_replicas",
        help="Number of desired pods for a deployment.",
        generate_func=_wrap(_replicas),
    ),
    FamilyGenerator(
        name="kube_deployment_spec_paused",
        help="Whether the deployment is paused and will not be processed by the deployment "
        "controller.",
        generate_func=_wrap(_paused),
    ),
    FamilyGenerator(
        name="kube_deployment_spec_strategy_rollingupdate_max_unavailable",
        help="Maximum number of unavailable replicas during a rolling update of a deployment.",
        generate_func=_wrap(_rolling_update("maxUnavailable")),
    ),
    FamilyGenerator(
        name="kube_deployment_spec_strategy_rollingupdate_max_surge",
        help="Maximum number of replicas that can be scheduled above the desired number of "
        "replicas during a rolling update of a deployment.",
        generate_func=_wrap(_rolling_update("maxSurge")),
    ),
    FamilyGenerator(
        name="kube_deployment_metadata_generation",
        help="Sequence number representing a specific generation of the desired state.",
        generate_func=_wrap(_generation),
    ),
    FamilyGenerator(
        name="kube_deployment_labels",
        help=LABELS_HELP,
        generate_func=_wrap(_labels),
    ),
]