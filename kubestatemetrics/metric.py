"""Metric families, their rendering in the Prometheus text format, and shared helpers."""

from __future__ import annotations

import enum
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping, Protocol, Sequence

_INVALID_LABEL_CHAR = re.compile(r"[^a-zA-Z0-9_]")

CONDITION_STATUSES = ("True", "False", "Unknown")


class MetricType(str, enum.Enum):
    """Prometheus metric types exposed by the stores."""

    GAUGE = "gauge"


class AllowDenyList(Protocol):
    """Anything that decides which metric families are exposed."""

    def is_included(self, name: str) -> bool: ...

    def is_excluded(self, name: str) -> bool: ...


def _format_value(value: float) -> str:
    """Format a float the way the shortest-form 'g' verb does."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"

    sign = "-" if value < 0 else ""
    dec = Decimal(repr(abs(value))).normalize()
    _, digit_tuple, exponent = dec.as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    count = len(digits)
    point = count + exponent
    exp = point - 1

    if exp < -4 or exp >= 6:
        mantissa = digits[0] + ("." + digits[1:] if count > 1 else "")
        exp_sign = "-" if exp < 0 else "+"
        return f"{sign}{mantissa}e{exp_sign}{abs(exp):02d}"
    if point <= 0:
        return f"{sign}0.{'0' * -point}{digits}"
    if point >= count:
        return f"{sign}{digits}{'0' * (point - count)}"
    return f"{sign}{digits[:point]}.{digits[point:]}"


def _escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


@dataclass
class Metric:
    """A single sample: label keys, their values and a number."""

    label_keys: list[str] = field(default_factory=list)
    label_values: list[str] = field(default_factory=list)
    value: float = 0.0

    def render(self, name: str) -> str:
        """Render this sample as one line of the text exposition format."""
        if len(self.label_keys) != len(self.label_values):
            raise ValueError(
                f"expected label keys {self.label_keys} to be of same length "
                f"as label values {self.label_values}"
            )
        labels = ""
        if self.label_keys:
            pairs = ",".join(
                f'{key}="{_escape_label_value(str(val))}"'
                for key, val in zip(self.label_keys, self.label_values)
            )
            labels = "{" + pairs + "}"
        return f"{name}{labels} {_format_value(self.value)}\n"


@dataclass
class Family:
    """The samples one family produces for one object."""

    metrics: list[Metric] = field(default_factory=list)

    def render(self, name: str) -> str:
        """Render every sample of the family under the given metric name."""
        return "".join(m.render(name) for m in self.metrics)


@dataclass
class FamilyGenerator:
    """Describes a metric family and how to produce it from an object."""

    name: str
    help: str
    generate_func: Callable[[Any], Family]
    type: MetricType = MetricType.GAUGE

    def generate(self, obj: Any) -> Family:
        """Produce the family's samples for an object."""
        return self.generate_func(obj)

    def header(self) -> str:
        """Return the HELP and TYPE lines of this family."""
        return f"# HELP {self.name} {self.help}\n# TYPE {self.name} {self.type.value}"


def compose_metric_gen_funcs(
    families: Sequence[FamilyGenerator],
) -> Callable[[Any], list[str]]:
    """Combine generators into one function returning rendered text per family."""
    generators = list(families)

    def generate(obj: Any) -> list[str]:
        return [g.generate(obj).render(g.name) for g in generators]

    return generate


def extract_metric_family_headers(families: Iterable[FamilyGenerator]) -> list[str]:
    """Return the header of each family in order."""
    return [f.header() for f in families]


def filter_metric_families(
    allow_deny_list: AllowDenyList, families: Iterable[FamilyGenerator]
) -> list[FamilyGenerator]:
    """Keep only the families the list includes."""
    return [f for f in families if allow_deny_list.is_included(f.name)]


def sanitize_label_name(name: str) -> str:
    """Replace every character not allowed in a label name with an underscore."""
    return _INVALID_LABEL_CHAR.sub("_", name)


def kube_labels_to_prometheus_labels(
    labels: Mapping[str, str] | None,
) -> tuple[list[str], list[str]]:
    """Turn object labels into sorted ``label_*`` keys and their values."""
    labels = labels or {}
    ordered = sorted(labels)
    keys = [f"label_{sanitize_label_name(k)}" for k in ordered]
    values = [labels[k] for k in ordered]
    return keys, values


def bool_float(value: bool) -> float:
    """Return 1.0 for a truthy value and 0.0 otherwise."""
    return float(bool(value))


def add_condition_metrics(status: str) -> list[Metric]:
    """One metric per possible condition status, set to 1 for the given one."""
    return [
        Metric(label_keys=["status"], label_values=[s.lower()], value=bool_float(status == s))
        for s in CONDITION_STATUSES
    ]


def unix_time(value: Any) -> int | None:
    """Seconds since the epoch for a timestamp, or None when it is unset.

    Accepts a datetime (naive ones are taken as UTC), an RFC 3339 string,
    or a number of seconds.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return math.floor(value.timestamp())
    if isinstance(value, str):
        text = value.strip()
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        return unix_time(datetime.fromisoformat(text))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return math.floor(value)
    raise TypeError(f"unsupported timestamp value: {value!r}")


def with_object_labels(
    label_keys: Sequence[str],
    label_values: Sequence[str],
    func: Callable[[Any], Family],
) -> Callable[[Any], Family]:
    """Wrap a generator so every sample starts with the object's identifying labels.

    ``label_values`` names the metadata fields (such as ``namespace`` and
    ``name``) whose values go with ``label_keys``.
    """
    keys = list(label_keys)
    fields = list(label_values)
    if len(keys) != len(fields):
        raise ValueError("label keys and metadata fields must have the same length")

    def generate(obj: Mapping[str, Any]) -> Family:
        meta = obj.get("metadata") or {}
        values = [str(meta.get(f) or "") for f in fields]
        family = func(obj)
        return Family(
            metrics=[
                Metric(
                    label_keys=keys + list(m.label_keys),
                    label_values=values + list(m.label_values),
                    value=m.value,
                )
                for m in family.metrics
            ]
        )

    return generate