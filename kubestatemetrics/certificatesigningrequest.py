"""Metric families for certificate signing requests."""

from __future__ import annotations

import base64
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
    return with_object_labels(["certificatesigningrequest"], ["name"], func)


def add_csr_condition_metrics(status: Mapping[str, Any] | None) -> list[Metric]:
    """Count the approved and denied conditions of a request's status."""
    conditions = (status or {}).get("conditions") or []
    approved = sum(1 for c in conditions if c.get("type") == "Approved")
    denied = sum(1 for c in conditions if c.get("type") == "Denied")
    return [
        Metric(label_keys=["condition"], label_values=["approved"], value=float(approved)),
        Metric(label_keys=["condition"], label_values=["denied"], value=float(denied)),
    ]


def _certificate_length(status: Mapping[str, Any]) -> int:
    cert = status.get("certificate") or b""
    if isinstance(cert, str):
        cert = base64.b64decode(cert)
    return len(cert)


def _labels(csr: Mapping[str, Any]) -> Family:
    keys, values = kube_labels_to_prometheus_labels((csr.get("metadata") or {}).get("labels"))
    return Family([Metric(keys, values, 1)])


def _created(csr: Mapping[str, Any]) -> Family:
    created = unix_time((csr.get("metadata") or {}).get("creationTimestamp"))
    return Family([] if created is None else [Metric(value=float(created))])


def _condition(csr: Mapping[str, Any]) -> Family:
    return Family(add_csr_condition_metrics(csr.get("status")))


def _cert_length(csr: Mapping[str, Any]) -> Family:
    return Family([Metric(value=float(_certificate_length(csr.get("status") or {})))])


METRIC_FAMILIES = [
    FamilyGenerator(
        name="kube_certificatesigningrequest_labels",
        help=LABELS_HELP,
        generate_func=_wrap(_labels),
    ),
    FamilyGenerator(
        name="kube_certificatesigningrequest_created",
        help="Unix creation timestamp",
        generate_func=_wrap(_created),
    ),
    FamilyGenerator(
        name="kube_certificatesigningrequest_condition",
        help="The number of each certificatesigningrequest condition",
        generate_func=_wrap(_condition),
    ),
    FamilyGenerator(
        name="kube_certificatesigningrequest_cert_length",
        help="Length of the issued cert",
        generate_func=_wrap(_cert_length),
    ),
]