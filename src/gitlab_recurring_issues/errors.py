"""Exceptions raised while evaluating recurring issue templates."""

from __future__ import annotations


class RecurringIssuesError(Exception):
    """Base class for errors that abort a run."""


class TemplateError(RecurringIssuesError, ValueError):
    """A template file could not be read or interpreted."""


class ScheduleError(RecurringIssuesError, ValueError):
    """A crontab expression could not be parsed."""


class DurationError(RecurringIssuesError, ValueError):
    """A `duein` value is not a valid duration."""
