"""Parsing of resource quantities such as ``500m``, ``2Gi`` or ``2.1G``."""

from __future__ import annotations

import re
from decimal import Decimal

_QUANTITY = re.compile(r"([+-]?)(\d+(?:\.\d*)?|\.\d+)(.*)", re.DOTALL)
_EXPONENT = re.compile(r"[eE]([+-]?\d+)")

_BINARY_SUFFIXES = {"Ki": 1, "Mi": 2, "Gi": 3, "Ti": 4, "Pi": 5, "Ei": 6}
_DECIMAL_SUFFIXES = {
    "n": -9,
    "u": -6,
    "m": -3,
    "": 0,
    "k": 3,
    "M": 6,
    "G": 9,
    "T": 12,
    "P": 15,
    "E": 18,
}


def parse_quantity(text: str) -> Decimal:
    """Return the exact value of a quantity string.

    Accepts binary suffixes (Ki, Mi, ...), decimal SI suffixes (n, u, m,
    k, M, G, ...) and decimal exponents (``1e3``).
    """
    if not isinstance(text, str):
        raise TypeError(f"quantity must be a string, not {type(text).__name__}")
    match = _QUANTITY.fullmatch(text)
    if match is None:
        raise ValueError(f"quantities must be a number with an optional suffix: {text!r}")
    sign, number, suffix = match.groups()
    amount = Decimal(number)
    if sign == "-":
        amount = -amount

    if suffix in _BINARY_SUFFIXES:
        return amount * (1024 ** _BINARY_SUFFIXES[suffix])
    if suffix in _DECIMAL_SUFFIXES:
        return amount.scaleb(_DECIMAL_SUFFIXES[suffix])
    exponent = _EXPONENT.fullmatch(suffix)
    if exponent is not None:
        return amount.scaleb(int(exponent.group(1)))
    raise ValueError(f"unable to parse quantity's suffix: {text!r}")