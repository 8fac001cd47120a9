"""Metric families for endpoints."""

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
    return with_object_labels(["namespace", "endpoint"], ["namespace", "name"], func)


def _info(e: Mapping[str, Any]) -> Family:
    return Family([Metric(value=1)])


def _created(e: Mapping[str, Any]) -> Family:
    created = unix_time((e.get("metadata") or {}).get("creationTimestamp"))
    return Family([] if created is None else [Metric(value=float(created))])


def _labels(e: Mapping[str, Any]) -> Family:
    keys, values = kube_labels_to_prometheus_labels((e.get("metadata") or {}).get("labels"))
    return Family([Metric(keys, values, 1)])


def _address_count(key: str) -> Callable[[Mapping[str, Any]], Family]:
    def generate(e: Mapping[str, Any]) -> Family:
        total = sum(
            len(subset.get(key) or []) * len(subset.get("ports") or [])
            for subset in e.get("subsets") or []
        )
        return Family([Metric(value=float(total))])

    return generate


METRIC_FAMILIES = [
    FamilyGenerator(
        name="kube_endpoint_info",
        help="Information about endpoint.",
        generate_func=_wrap(_info),
    ),
    FamilyGenerator(
        name="kube_endpoint_created",
        help="Unix creation timestamp",
        generate_func=_wrap(_created),
    ),
    FamilyGenerator(
        name="kube_endpoint_labels",
        help=LABELS_HELP,
        generate_func=_wrap(_labels),
    ),
    FamilyGenerator(
        name="kube_endpoint_address_available",
        help="Number of addresses available in endpoint.",
        generate_func=_wrap(_address_count("addresses")),
    ),
    FamilyGenerator(
        name="kube_endpoint_address_not_ready",
        help="Number of addresses not ready in endpoint",
        generate_func=_wrap(_address_count("notReadyAddresses")),
    ),
]