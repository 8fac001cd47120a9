"""Assembles metric stores for the enabled collectors."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, Mapping, Sequence, TextIO

from kubestatemetrics import (
    certificatesigningrequest,
    configmap,
    cronjob,
    daemonset,
    deployment,
    endpoint,
    hpa,
    ingress,
    job,
    limitrange,
    namespace,
)
from kubestatemetrics.metric import (
    AllowDenyList,
    FamilyGenerator,
    compose_metric_gen_funcs,
    extract_metric_family_headers,
    filter_metric_families,
)

log = logging.getLogger(__name__)

_AVAILABLE_STORES: dict[str, list[FamilyGenerator]] = {
    "certificatesigningrequests": certificatesigningrequest.METRIC_FAMILIES,
    "configmaps": configmap.METRIC_FAMILIES,
    "cronjobs": cronjob.METRIC_FAMILIES,
    "daemonsets": daemonset.METRIC_FAMILIES,
    "deployments": deployment.METRIC_FAMILIES,
    "endpoints": endpoint.METRIC_FAMILIES,
    "horizontalpodautoscalers": hpa.METRIC_FAMILIES,
    "ingresses": ingress.METRIC_FAMILIES,
    "jobs": job.METRIC_FAMILIES,
    "limitranges": limitrange.METRIC_FAMILIES,
    "namespaces": namespace.METRIC_FAMILIES,
}

_CLUSTER_SCOPED = frozenset({"certificatesigningrequests", "namespaces"})


class UnknownCollectorError(ValueError):
    """Raised when an enabled resource names no known collector."""


def available_collectors() -> list[str]:
    """Names of every collector a builder can build."""
    return sorted(_AVAILABLE_STORES)


def collector_exists(name: str) -> bool:
    """Whether a collector of this name exists."""
    return name in _AVAILABLE_STORES


class MetricsStore:
    """Keeps the rendered metrics of every object it is given.

    ``namespaces`` limits the objects kept to those namespaces; None, an
    empty collection or one holding ``""`` keeps objects of any namespace.
    """

    def __init__(
        self,
        headers: Sequence[str],
        generate: Callable[[Any], list[str]],
        namespaces: Iterable[str] | None = None,
        name: str = "",
    ) -> None:
        self.name = name
        self.headers = list(headers)
        self._generate = generate
        wanted = set(namespaces or ())
        self._namespaces = None if not wanted or "" in wanted else frozenset(wanted)
        self._metrics: dict[str, list[str]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(obj: Mapping[str, Any]) -> str:
        meta = obj.get("metadata") or {}
        uid = meta.get("uid")
        if uid:
            return str(uid)
        return f"{meta.get('namespace') or ''}/{meta.get('name') or ''}"

    def _accepts(self, obj: Mapping[str, Any]) -> bool:
        if self._namespaces is None:
            return True
        return (obj.get("metadata") or {}).get("namespace") in self._namespaces

    def add(self, obj: Mapping[str, Any]) -> None:
        """Render and keep the metrics of an object."""
        if not self._accepts(obj):
            return
        rendered = self._generate(obj)
        with self._lock:
            self._metrics[self._key(obj)] = rendered

    def update(self, obj: Mapping[str, Any]) -> None:
        """Replace the metrics kept for an object."""
        self.add(obj)

    def delete(self, obj: Mapping[str, Any]) -> None:
        """Forget the metrics of an object."""
        with self._lock:
            self._metrics.pop(self._key(obj), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)

    def write_all(self, stream: TextIO) -> None:
        """Write every family's header followed by its samples for all objects."""
        with self._lock:
            rendered = list(self._metrics.values())
        for index, header in enumerate(self.headers):
            stream.write(header + "\n")
            for metrics in rendered:
                stream.write(metrics[index])


class Builder:
    """Configures and builds one metrics store per enabled collector."""

    def __init__(self) -> None:
        self.enabled_resources: list[str] = []
        self.namespaces: list[str] = []
        self.allow_deny_list: AllowDenyList | None = None

    def with_enabled_resources(self, resources: Iterable[str]) -> None:
        """Enable the given collectors, which must all exist."""
        resources = list(resources)
        for name in resources:
            if not collector_exists(name):
                raise UnknownCollectorError(
                    f"collector {name} does not exist. Available collectors: "
                    f"{','.join(available_collectors())}"
                )
        self.enabled_resources = sorted(resources)

    def with_namespaces(self, namespaces: Iterable[str]) -> None:
        """Set the namespaces whose objects are kept."""
        self.namespaces = list(namespaces)

    def with_allow_deny_list(self, allow_deny_list: AllowDenyList) -> None:
        """Set which metric families the built stores expose."""
        self.allow_deny_list = allow_deny_list

    def build(self) -> list[MetricsStore]:
        """Build a store for every enabled collector."""
        if self.allow_deny_list is None:
            raise RuntimeError("allow_deny_list should not be None")
        stores = []
        active = []
        for name in self.enabled_resources:
            families = _AVAILABLE_STORES.get(name)
            if families is None:
                continue
            filtered = filter_metric_families(self.allow_deny_list, families)
            namespaces = None if name in _CLUSTER_SCOPED else self.namespaces
            stores.append(
                MetricsStore(
                    extract_metric_family_headers(filtered),
                    compose_metric_gen_funcs(filtered),
                    namespaces=namespaces,
                    name=name,
                )
            )
            active.append(name)
        log.info("Active collectors: %s", ",".join(active))
        return stores