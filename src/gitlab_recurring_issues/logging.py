"""Structured logging for scheduled pipeline runs.

Every line is one JSON object on stdout. Each record carries the project and
job it was logged for under ``run``, so lines from several projects' jobs can
be told apart once collected.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

RUN_CONTEXT_ATTR = "run_context"

# Everything a bare LogRecord carries; whatever else is on a record came in via `extra`.
_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "taskName", RUN_CONTEXT_ATTR}


def rfc3339(moment: datetime) -> str:
    """Format `moment` as an RFC 3339 UTC timestamp, e.g. ``2024-01-01T09:00:00Z``.

    Naive datetimes are taken to be UTC.
    """

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def _json_default(value: Any) -> str:
    if isinstance(value, datetime):
        return rfc3339(value)
    return str(value)


class RunContextFilter(logging.Filter):
    """Stamp every record with the GitLab project and CI job of this run."""

    def __init__(self, *, project_id: str | None = None, job_name: str | None = None) -> None:
        super().__init__()
        self.context = {
            key: value
            for key, value in (("project_id", project_id), ("job_name", job_name))
            if value
        }

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003 (record)
        setattr(record, RUN_CONTEXT_ATTR, dict(self.context))
        return True


class JsonFormatter(logging.Formatter):
    """Render a log record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": rfc3339(datetime.fromtimestamp(record.created, tz=UTC)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_context = getattr(record, RUN_CONTEXT_ATTR, None)
        if run_context:
            payload["run"] = run_context

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=_json_default)


def configure_logging(
    level: str, *, project_id: str | None = None, job_name: str | None = None
) -> None:
    """Send JSON lines for `project_id`/`job_name` to stdout at `level`."""

    root = logging.getLogger()

    # Re-configuring replaces the handler rather than stacking another one.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.addFilter(RunContextFilter(project_id=project_id, job_name=job_name))
    handler.setFormatter(JsonFormatter())

    root.addHandler(handler)
    root.setLevel(level.upper())

    # urllib3 logs every connection at DEBUG; keep it quiet unless asked for.
    logging.getLogger("urllib3").setLevel(max(root.level, logging.INFO))
