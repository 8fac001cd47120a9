"""Metric families for config maps."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from kubestatemetrics.metric import (
    Family,
    FamilyGenerator,
    Metric,
    unix_time,
    with_object_labels,
)


def _wrap(func: Callable[[Mapping[str, Any]], Family]) -> Callable[[Any], Family]:
    return with_object_labels(["namespace", "configmap"], ["namespace", "name"], func)


def _info(cm: Mapping[str, Any]) -> Family:
    return Family([Metric(value=1)])


def _created(cm: Mapping[str, Any]) -> Family:
    created = unix_time((cm.get("metadata") or {}).get("creationTimestamp"))
    return Family([] if created is None else [Metric(value=float(created))])


def _resource_version(cm: Mapping[str, Any]) -> Family:
    version = str((cm.get("metadata") or {}).get("resourceVersion") or "")
    return Family([Metric(["resource_version"], [version], 1)])


METRIC_FAMILIES = [
    FamilyGenerator(
        name="kube_configmap_info",
        help="Information about configmap.",
        generate_func=_wrap(_info),
    ),
    FamilyGenerator(
        name="kube_configmap_created",
        help="Unix creation timestamp",
        generate_func=_wrap(_created),
    ),
    FamilyGenerator(
        name="kube_configmap_metadata_resource_version",
        help="Resource version representing a specific version of the configmap.",
        generate_func=_wrap(_resource_version),
    ),
]