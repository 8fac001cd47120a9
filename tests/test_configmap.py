import re

import pytest

from kubestatemetrics.configmap import METRIC_FAMILIES
from kubestatemetrics.metric import compose_metric_gen_funcs, extract_metric_family_headers

_LABEL = re.compile(r'(\w+)="((?:[^"\\]|\\.)*)"')


def _samples(text):
    out = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        name, _, rest = line.partition("{")
        labels, _, value = rest.rpartition("} ")
        out.append((name, frozenset(_LABEL.findall(labels)), value))
    return sorted(out, key=repr)


def _headers(text):
    return sorted(line.strip() for line in text.splitlines() if line.strip().startswith("#"))


def _generated(obj):
    return _samples("".join(compose_metric_gen_funcs(METRIC_FAMILIES)(obj)))


CASES = [
    (
        {"metadata": {"name": "configmap1", "namespace": "ns1", "resourceVersion": "123456"}},
        """
        # HELP kube_configmap_info Information about configmap.
        # HELP kube_configmap_metadata_resource_version Resource version representing a specific version of the configmap.
        # TYPE kube_configmap_info gauge
        # TYPE kube_configmap_metadata_resource_version gauge
        kube_configmap_info{configmap="configmap1",namespace="ns1"} 1
        kube_configmap_metadata_resource_version{configmap="configmap1",namespace="ns1",resource_version="123456"} 1
""",
    ),
    (
        {
            "metadata": {
                "name": "configmap2",
                "namespace": "ns2",
                "creationTimestamp": 1501569018,
                "resourceVersion": "abcdef",
            }
        },
        """
        # HELP kube_configmap_created Unix creation timestamp
        # HELP kube_configmap_info Information about configmap.
        # HELP kube_configmap_metadata_resource_version Resource version representing a specific version of the configmap.
        # TYPE kube_configmap_created gauge
        # TYPE kube_configmap_info gauge
        # TYPE kube_configmap_metadata_resource_version gauge
        kube_configmap_info{configmap="configmap2",namespace="ns2"} 1
        kube_configmap_created{configmap="configmap2",namespace="ns2"} 1.501569018e+09
        kube_configmap_metadata_resource_version{configmap="configmap2",namespace="ns2",resource_version="abcdef"} 1
""",
    ),
]


@pytest.mark.parametrize("obj, want", CASES)
def test_configmap_store(obj, want):
    assert _generated(obj) == _samples(want)


def test_headers_cover_expected_families():
    all_headers = sorted("\n".join(extract_metric_family_headers(METRIC_FAMILIES)).splitlines())
    assert all_headers == _headers(CASES[1][1])


def test_no_created_sample_without_timestamp():
    names = {name for name, _, _ in _generated(CASES[0][0])}
    assert "kube_configmap_created" not in names