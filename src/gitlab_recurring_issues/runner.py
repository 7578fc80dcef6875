"""One pass over the templates directory.

Every error aborts the run: issues created for earlier templates stay, and
no later template is evaluated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from gitlab_recurring_issues.gitlab.client import GitLabClient
from gitlab_recurring_issues.gitlab.pipelines import resolve_last_run
from gitlab_recurring_issues.issues import IssueCreator, build_issue_request
from gitlab_recurring_issues.logging import rfc3339
from gitlab_recurring_issues.schedule import is_due, next_occurrence
from gitlab_recurring_issues.templates import discover_templates, load_template

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunSummary:
    """What a run did.

    In a dry run due templates land in `would_create` and `created` stays empty.
    """

    last_run: datetime
    created: list[Path] = field(default_factory=list)
    would_create: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)


class RecurringIssueRunner:
    """Create an issue for every template whose schedule elapsed since the last run."""

    def __init__(
        self,
        *,
        gitlab: GitLabClient,
        templates_dir: Path,
        job_name: str,
        dry_run: bool = False,
    ) -> None:
        self._gitlab = gitlab
        self._templates_dir = templates_dir
        self._job_name = job_name
        self._dry_run = dry_run
        self._creator = IssueCreator(gitlab)

    def run(self, now: datetime | None = None) -> RunSummary:
        last_run = resolve_last_run(self._gitlab, self._job_name)
        logger.info(f"Last run: {rfc3339(last_run)}", extra={"last_run": last_run})

        summary = RunSummary(last_run=last_run)
        for path in discover_templates(self._templates_dir):
            # Wall-clock time is sampled per template.
            current = now or datetime.now(UTC)
            self._process(path, summary, now=current)

        logger.info(
            "Run complete",
            extra={
                "created_count": len(summary.created),
                "would_create_count": len(summary.would_create),
                "skipped_count": len(summary.skipped),
                "dry_run": self._dry_run,
            },
        )
        return summary

    def _process(self, path: Path, summary: RunSummary, *, now: datetime) -> None:
        template = load_template(path)
        occurrence = next_occurrence(template.crontab, summary.last_run)

        if not is_due(occurrence, now):
            logger.info(f"{path} is due {rfc3339(occurrence)}", extra={"path": str(path)})
            summary.skipped.append(path)
            return

        if self._dry_run:
            # Building the request still validates the title and `duein`.
            request = build_issue_request(template, occurrence)
            logger.info(
                f"{path} was due {rfc3339(occurrence)} - dry run, not creating issue",
                extra={"path": str(path), "payload": request.to_payload()},
            )
            summary.would_create.append(path)
            return

        logger.info(
            f"{path} was due {rfc3339(occurrence)} - creating new issue",
            extra={"path": str(path)},
        )
        self._creator.create(template, occurrence)
        summary.created.append(path)
