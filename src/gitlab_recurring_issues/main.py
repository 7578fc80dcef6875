"""CLI entrypoint, run once per scheduled pipeline."""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from gitlab_recurring_issues import __version__
from gitlab_recurring_issues.config import RecurringIssuesSettings
from gitlab_recurring_issues.gitlab.client import GitLabClient
from gitlab_recurring_issues.logging import configure_logging
from gitlab_recurring_issues.runner import RecurringIssueRunner

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitlab-recurring-issues",
        description=(
            "Create GitLab issues from the templates in .gitlab/recurring_issue_templates "
            "whose crontab schedule elapsed since the last successful run"
        ),
    )
    parser.add_argument(
        "--version", action="version", version=f"gitlab-recurring-issues {__version__}"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Evaluate every template and log which issues would be created",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = RecurringIssuesSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error:", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(
        settings.log_level, project_id=settings.project_id, job_name=settings.job_name
    )

    try:
        gitlab = GitLabClient(
            token=settings.api_token,
            api_url=settings.api_url,
            project_id=settings.project_id,
            verify=settings.ssl_verify,
            timeout=settings.http_timeout,
        )
        try:
            runner = RecurringIssueRunner(
                gitlab=gitlab,
                templates_dir=settings.templates_dir,
                job_name=settings.job_name,
                dry_run=args.dry_run,
            )
            runner.run()
        finally:
            gitlab.close()

    except Exception:
        logger.exception("Run failed")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
