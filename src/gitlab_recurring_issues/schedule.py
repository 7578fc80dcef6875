"""Crontab evaluation and duration parsing."""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta

from croniter import CroniterError, croniter

from gitlab_recurring_issues.errors import DurationError, ScheduleError

# Reference time used when the marker job has never finished successfully.
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# Canonical patterns as 7-field expressions: second minute hour dom month dow year.
_ALIASES: dict[str, str] = {
    "@annually": "0 0 0 1 1 * *",
    "@yearly": "0 0 0 1 1 * *",
    "@monthly": "0 0 0 1 * * *",
    "@weekly": "0 0 0 * * 0 *",
    "@daily": "0 0 0 * * * *",
    "@hourly": "0 0 * * * * *",
}

# Unit sizes in microseconds, the resolution of timedelta.
_DURATION_UNITS_US: dict[str, float] = {
    "ns": 1e-3,
    "us": 1.0,
    "µs": 1.0,  # micro sign
    "μs": 1.0,  # greek mu
    "ms": 1e3,
    "s": 1e6,
    "m": 60e6,
    "h": 3600e6,
}

_DURATION_PART = r"(?:\d+(?:\.\d*)?|\.\d+)(?:ns|us|µs|μs|ms|s|m|h)"
_DURATION_RE = re.compile(rf"([+-]?)((?:{_DURATION_PART})+)")
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def _to_croniter_expression(expression: str) -> str:
    """Normalise an expression to the field order croniter expects.

    Accepts five fields (minute hour dom month dow), six fields (the five plus
    a trailing year), seven fields (a leading second, the five, and a year) or
    one of the `@` aliases.
    """

    expr = expression.strip()
    if expr.startswith("@"):
        try:
            expr = _ALIASES[expr.lower()]
        except KeyError:
            raise ScheduleError(f"Unknown crontab alias: {expression!r}") from None

    fields = expr.split()
    if len(fields) == 5:
        return " ".join(fields)
    if len(fields) == 6:
        minute_to_dow, year = fields[:5], fields[5]
        return " ".join([*minute_to_dow, "0", year])
    if len(fields) == 7:
        second, minute_to_dow, year = fields[0], fields[1:6], fields[6]
        return " ".join([*minute_to_dow, second, year])

    raise ScheduleError(
        f"Crontab {expression!r} has {len(fields)} fields; expected 5, 6 or 7"
    )


def next_occurrence(expression: str, after: datetime) -> datetime:
    """Return the first time `expression` fires strictly after `after`.

    Naive datetimes are taken to be UTC. The result is timezone-aware UTC.

    Raises:
        ScheduleError: If the expression is empty or cannot be parsed.
    """

    if not expression or not expression.strip():
        raise ScheduleError("Crontab expression is required")

    if after.tzinfo is None:
        after = after.replace(tzinfo=UTC)
    else:
        after = after.astimezone(UTC)

    normalised = _to_croniter_expression(expression)
    try:
        occurrence: datetime = croniter(normalised, after).get_next(datetime)
    except (CroniterError, ValueError, KeyError) as e:
        raise ScheduleError(f"Invalid crontab {expression!r}: {e}") from e

    return occurrence.astimezone(UTC)


def is_due(occurrence: datetime, now: datetime) -> bool:
    """An occurrence at or before `now` is due."""

    return occurrence <= now


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as `24h`, `1h30m` or `1.5h`.

    Each number needs a unit (`ns`, `us`, `µs`, `ms`, `s`, `m`, `h`) and the
    whole value may carry a leading sign. A bare `0` is accepted.

    Raises:
        DurationError: If the value is not a valid duration.
    """

    text = value.strip()
    if text in {"0", "+0", "-0"}:
        return timedelta(0)

    match = _DURATION_RE.fullmatch(text)
    if match is None:
        raise DurationError(f"Invalid duration: {value!r}")

    sign, parts = match.groups()
    micros = sum(
        float(number) * _DURATION_UNITS_US[unit]
        for number, unit in _DURATION_PART_RE.findall(parts)
    )
    total = timedelta(microseconds=micros)

    return -total if sign == "-" else total
