"""Parsing and evaluation of standard five-field cron schedules."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class CronParseError(ValueError):
    """Raised when a cron specification cannot be parsed."""


@dataclass(frozen=True)
class _Bounds:
    min: int
    max: int
    names: Mapping[str, int] = field(default_factory=dict)


_MONTH_NAMES = {
    name: number
    for number, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}
_DOW_NAMES = {
    name: number
    for number, name in enumerate(("sun", "mon", "tue", "wed", "thu", "fri", "sat"))
}

_SECONDS = _Bounds(0, 59)
_MINUTES = _Bounds(0, 59)
_HOURS = _Bounds(0, 23)
_DOM = _Bounds(1, 31)
_MONTHS = _Bounds(1, 12, _MONTH_NAMES)
_DOW = _Bounds(0, 6, _DOW_NAMES)

_INT = re.compile(r"[+-]?\d+")
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_DURATION_MICROS = {
    "ns": 0.001,
    "us": 1,
    "µs": 1,
    "μs": 1,
    "ms": 1_000,
    "s": 1_000_000,
    "m": 60_000_000,
    "h": 3_600_000_000,
}


@dataclass(frozen=True)
class _Field:
    values: frozenset[int]
    star: bool = False


def _single(value: int) -> _Field:
    return _Field(frozenset({value}))


def _every(bounds: _Bounds) -> _Field:
    return _Field(frozenset(range(bounds.min, bounds.max + 1)), True)


def _add_month(t: datetime) -> datetime:
    year, month0 = divmod(t.year * 12 + t.month, 12)
    first = t.replace(year=year, month=month0 + 1, day=1)
    return first + timedelta(days=t.day - 1)


@dataclass(frozen=True)
class CronSchedule:
    """A schedule given by the set of matching values of each time field."""

    second: _Field
    minute: _Field
    hour: _Field
    dom: _Field
    month: _Field
    dow: _Field
    location: tzinfo | None = None

    def next(self, after: datetime) -> datetime | None:
        """Return the first matching time strictly after ``after``.

        Naive datetimes are taken as local time. The result carries the
        time zone of ``after``; None means nothing matches within five years.
        """
        if after.tzinfo is None:
            after = after.astimezone()
        zone = self.location or after.tzinfo
        start = after.astimezone(zone)
        wall = start.replace(tzinfo=None, microsecond=0) + timedelta(seconds=1)
        found = self._search(wall)
        if found is None:
            return None
        return found.replace(tzinfo=zone).astimezone(after.tzinfo)

    def _day_matches(self, t: datetime) -> bool:
        dom_ok = t.day in self.dom.values
        dow_ok = (t.weekday() + 1) % 7 in self.dow.values
        if self.dom.star or self.dow.star:
            return dom_ok and dow_ok
        return dom_ok or dow_ok

    def _search(self, t: datetime) -> datetime | None:
        added = False
        year_limit = t.year + 5
        while True:
            if t.year > year_limit:
                return None
            if t.month not in self.month.values:
                if not added:
                    added = True
                    t = t.replace(day=1, hour=0, minute=0, second=0)
                t = _add_month(t)
                continue
            if not self._day_matches(t):
                if not added:
                    added = True
                    t = t.replace(hour=0, minute=0, second=0)
                t += timedelta(days=1)
                continue
            if t.hour not in self.hour.values:
                if not added:
                    added = True
                    t = t.replace(minute=0, second=0)
                t += timedelta(hours=1)
                continue
            if t.minute not in self.minute.values:
                if not added:
                    added = True
                    t = t.replace(second=0)
                t += timedelta(minutes=1)
                continue
            if t.second not in self.second.values:
                added = True
                t += timedelta(seconds=1)
                continue
            return t


@dataclass(frozen=True)
class _ConstantDelaySchedule:
    """Runs at a fixed interval, rounded to whole seconds."""

    delay: timedelta

    def next(self, after: datetime) -> datetime:
        return after + self.delay - timedelta(microseconds=after.microsecond)


def _parse_int(expr: str) -> int:
    if not _INT.fullmatch(expr):
        raise CronParseError(f"failed to parse int from {expr}")
    number = int(expr)
    if number < 0:
        raise CronParseError(f"negative number ({number}) not allowed: {expr}")
    return number


def _parse_int_or_name(expr: str, names: Mapping[str, int]) -> int:
    named = names.get(expr.lower())
    if named is not None:
        return named
    return _parse_int(expr)


def _parse_range(expr: str, bounds: _Bounds) -> tuple[set[int], bool]:
    range_and_step = expr.split("/")
    low_and_high = range_and_step[0].split("-")
    single = len(low_and_high) == 1
    star = False

    if low_and_high[0] in ("*", "?"):
        start, end = bounds.min, bounds.max
        star = True
    else:
        start = _parse_int_or_name(low_and_high[0], bounds.names)
        if len(low_and_high) == 1:
            end = start
        elif len(low_and_high) == 2:
            end = _parse_int_or_name(low_and_high[1], bounds.names)
        else:
            raise CronParseError(f"too many hyphens: {expr}")

    if len(range_and_step) == 1:
        step = 1
    elif len(range_and_step) == 2:
        step = _parse_int(range_and_step[1])
        if single:
            end = bounds.max
        if step > 1:
            star = False
    else:
        raise CronParseError(f"too many slashes: {expr}")

    if start < bounds.min:
        raise CronParseError(f"beginning of range ({start}) below minimum ({bounds.min}): {expr}")
    if end > bounds.max:
        raise CronParseError(f"end of range ({end}) above maximum ({bounds.max}): {expr}")
    if start > end:
        raise CronParseError(f"beginning of range ({start}) beyond end of range ({end}): {expr}")
    if step == 0:
        raise CronParseError(f"step of range should be a positive number: {expr}")

    return set(range(start, end + 1, step)), star


def _parse_field(expr: str, bounds: _Bounds) -> _Field:
    values: set[int] = set()
    star = False
    for part in expr.split(","):
        part_values, part_star = _parse_range(part, bounds)
        values |= part_values
        star = star or part_star
    return _Field(frozenset(values), star)


def _parse_duration(text: str) -> timedelta:
    if text == "0":
        return timedelta(0)
    sign = 1
    body = text
    if body[:1] in ("+", "-"):
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if not body:
        raise CronParseError(f"failed to parse duration {text}")
    micros = 0.0
    position = 0
    while position < len(body):
        match = _DURATION_PART.match(body, position)
        if match is None:
            raise CronParseError(f"failed to parse duration {text}")
        micros += float(match.group(1)) * _DURATION_MICROS[match.group(2)]
        position = match.end()
    return timedelta(microseconds=sign * micros)


def _load_location(name: str) -> tzinfo | None:
    if name in ("", "UTC"):
        return timezone.utc
    if name == "Local":
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as err:
        raise CronParseError(f"provided bad location {name}: {err}") from err


def _parse_descriptor(spec: str, location: tzinfo | None) -> CronSchedule | _ConstantDelaySchedule:
    zero = _single(0)
    if spec in ("@yearly", "@annually"):
        return CronSchedule(zero, zero, zero, _single(1), _single(1), _every(_DOW), location)
    if spec == "@monthly":
        return CronSchedule(zero, zero, zero, _single(1), _every(_MONTHS), _every(_DOW), location)
    if spec == "@weekly":
        return CronSchedule(zero, zero, zero, _every(_DOM), _every(_MONTHS), _single(0), location)
    if spec in ("@daily", "@midnight"):
        return CronSchedule(zero, zero, zero, _every(_DOM), _every(_MONTHS), _every(_DOW), location)
    if spec == "@hourly":
        return CronSchedule(
            zero, zero, _every(_HOURS), _every(_DOM), _every(_MONTHS), _every(_DOW), location
        )
    every = "@every "
    if spec.startswith(every):
        delay = _parse_duration(spec[len(every):].strip())
        second = timedelta(seconds=1)
        if delay < second:
            delay = second
        else:
            delay -= delay % second
        return _ConstantDelaySchedule(delay)
    raise CronParseError(f"unrecognized descriptor: {spec}")


def parse_standard(spec: str) -> CronSchedule | _ConstantDelaySchedule:
    """Parse a five-field cron specification or an ``@`` descriptor."""
    if not spec:
        raise CronParseError("empty spec string")

    location: tzinfo | None = None
    if spec.startswith("TZ=") or spec.startswith("CRON_TZ="):
        space = spec.find(" ")
        if space < 0:
            raise CronParseError(f"missing schedule after location: {spec}")
        location = _load_location(spec[spec.index("=") + 1 : space])
        spec = spec[space:].strip()

    if spec.startswith("@"):
        return _parse_descriptor(spec, location)

    fields = spec.split()
    if len(fields) != 5:
        raise CronParseError(f"expected exactly 5 fields, found {len(fields)}: {spec}")

    minute, hour, dom, month, dow = fields
    return CronSchedule(
        second=_single(0),
        minute=_parse_field(minute, _MINUTES),
        hour=_parse_field(hour, _HOURS),
        dom=_parse_field(dom, _DOM),
        month=_parse_field(month, _MONTHS),
        dow=_parse_field(dow, _DOW),
        location=location,
    )