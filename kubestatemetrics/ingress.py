"""Metric families for ingresses."""

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
    return with_object_labels(["namespace", "ingress"], ["namespace", "name"], func)


def _meta(i: Mapping[str, Any]) -> Mapping[str, Any]:
    return i.get("metadata") or {}


def _spec(i: Mapping[str, Any]) -> Mapping[str, Any]:
    return i.get("spec") or {}


def _int_or_string(value: Any) -> str:
    if value is None:
        return "0"
    return str(value)


def _info(i: Mapping[str, Any]) -> Family:
    return Family([Metric(value=1)])


def _labels(i: Mapping[str, Any]) -> Family:
    keys, values = kube_labels_to_prometheus_labels(_meta(i).get("labels"))
    return Family([Metric(keys, values, 1)])


def _created(i: Mapping[str, Any]) -> Family:
    created = unix_time(_meta(i).get("creationTimestamp"))
    return Family([] if created is None else [Metric(value=float(created))])


def _resource_version(i: Mapping[str, Any]) -> Family:
    version = str(_meta(i).get("resourceVersion") or "")
    return Family([Metric(["resource_version"], [version], 1)])


def _paths(i: Mapping[str, Any]) -> Family:
    metrics = []
    for rule in _spec(i).get("rules") or []:
        http = rule.get("http")
        if http is None:
            continue
        for path in http.get("paths") or []:
            backend = path.get("backend") or {}
            metrics.append(
                Metric(
                    ["host", "path", "service_name", "service_port"],
                    [
                        str(rule.get("host") or ""),
                        str(path.get("path") or ""),
                        str(backend.get("serviceName") or ""),
                        _int_or_string(backend.get("servicePort")),
                    ],
                    1,
                )
            )
    return Family(metrics)


def _tls(i: Mapping[str, Any]) -> Family:
    metrics = [
        Metric(["tls_host", "secret"], [str(host), str(tls.get("secretName") or "")], 1)
        for tls in _spec(i).get("tls") or []
        for host in tls.get("hosts") or []
    ]
    return Family(metrics)


METRIC_FAMILIES = [
    FamilyGenerator(
        name="kube_ingress_info",
        help="Information about ingress.",
        generate_func=_wrap(_info),
    ),
    FamilyGenerator(
        name="kube_ingress_labels",
        help=LABELS_HELP,
        generate_func=_wrap(_labels),
    ),
    FamilyGenerator(
        name="kube_ingress_created",
        help="Unix creation timestamp",
        generate_func=_wrap(_created),
    ),
    FamilyGenerator(
        name="kube_ingress_metadata_resource_version",
        help="Resource version representing a specific version of ingress.",
        generate_func=_wrap(_resource_version),
    ),
    FamilyGenerator(
        name="kube_ingress_path",
        help="Ingress host, paths and backend service information.",
        generate_func=_wrap(_paths),
    ),
    FamilyGenerator(
        name="kube_ingress_tls",
        help="Ingress TLS host and secret information.",
        generate_func=_wrap(_tls),
    ),
]