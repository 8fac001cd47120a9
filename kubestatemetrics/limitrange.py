"""Metric families for limit ranges."""

from __future__ import annotations

from decimal import ROUND_UP, Decimal
from typing import Any, Callable, Mapping

from kubestatemetrics.metric import (
    Family,
    FamilyGenerator,
    Metric,
    unix_time,
    with_object_labels,
)
from kubestatemetrics.quantity import parse_quantity

_CONSTRAINTS = ("min", "max", "default", "defaultRequest", "maxLimitRequestRatio")


def _wrap(func: Callable[[Mapping[str, Any]], Family]) -> Callable[[Any], Family]:
    return with_object_labels(["namespace", "limitrange"], ["namespace", "name"], func)


def _quantity_value(quantity: Any) -> float:
    """Value of a quantity at milli precision, rounded away from zero."""
    if isinstance(quantity, str):
        amount = parse_quantity(quantity)
    elif isinstance(quantity, (int, float)) and not isinstance(quantity, bool):
        amount = Decimal(str(quantity))
    else:
        raise TypeError(f"unsupported quantity: {quantity!r}")
    milli = (amount * 1000).to_integral_value(rounding=ROUND_UP)
    return float(milli) / 1000


def _limits(r: Mapping[str, Any]) -> Family:
    metrics = [
        Metric(
            ["resource", "type", "constraint"],
            [str(resource), str(item.get("type") or ""), constraint],
            _quantity_value(quantity),
        )
        for item in (r.get("spec") or {}).get("limits") or []
        for constraint in _CONSTRAINTS
        for resource, quantity in (item.get(constraint) or {}).items()
    ]
    return Family(metrics)


def _created(r: Mapping[str, Any]) -> Family:
    created = unix_time((r.get("metadata") or {}).get("creationTimestamp"))
    return Family([] if created is None else [Metric(value=float(created))])


METRIC_FAMILIES = [
    FamilyGenerator(
        name="kube_limitrange",
        help="Information about limit range.",
        generate_func=_wrap(_limits),
    ),
    FamilyGenerator(
        name="kube_limitrange_created",
        help="Unix creation timestamp",
        generate_func=_wrap(_created),
    ),
]