"""Turn due templates into GitLab issues."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime

from gitlab_recurring_issues.errors import TemplateError
from gitlab_recurring_issues.gitlab.client import CreatedIssue, GitLabClient, IssueRequest
from gitlab_recurring_issues.schedule import parse_duration
from gitlab_recurring_issues.templates import IssueTemplate

logger = logging.getLogger(__name__)


def build_issue_request(
    template: IssueTemplate,
    occurrence: datetime,
    assignee_ids: list[int] | None = None,
) -> IssueRequest:
    """Build the creation request for `template` firing at `occurrence`.

    The issue is back-dated to the occurrence. With `duein` set, the due date
    is the calendar date of `occurrence + duein`.

    Raises:
        TemplateError: If the template has no title.
        DurationError: If `duein` is not a valid duration.
    """

    if not template.title.strip():
        raise TemplateError("Template has no title")

    due_date = None
    if template.due_in:
        due_date = (occurrence + parse_duration(template.due_in)).date()

    return IssueRequest(
        title=template.title,
        description=template.description,
        confidential=template.confidential,
        created_at=occurrence,
        due_date=due_date,
        labels=list(template.labels),
        assignee_ids=list(assignee_ids or []),
    )


class IssueCreator:
    """Create issues for due templates, resolving assignee usernames once."""

    def __init__(self, gitlab: GitLabClient) -> None:
        self._gitlab = gitlab
        self._user_ids: dict[str, int] = {}

    def _resolve_assignees(self, usernames: list[str]) -> list[int]:
        ids: list[int] = []
        for username in usernames:
            name = username.strip().lstrip("@")
            if name not in self._user_ids:
                user_id = self._gitlab.find_user_id(username=name)
                if user_id is None:
                    raise TemplateError(f"Unknown assignee: {username!r}")
                self._user_ids[name] = user_id
            ids.append(self._user_ids[name])
        return ids

    def create(self, template: IssueTemplate, occurrence: datetime) -> CreatedIssue:
        # Build first so a bad duration fails before any user lookups.
        request = build_issue_request(template, occurrence)
        if template.assignees:
            assignee_ids = self._resolve_assignees(template.assignees)
            request = replace(request, assignee_ids=assignee_ids)

        issue = self._gitlab.create_issue(request)
        logger.info(
            "Issue created",
            extra={
                "project_id": issue.project_id,
                "iid": issue.iid,
                "title": issue.title,
                "web_url": issue.web_url,
            },
        )
        return issue
