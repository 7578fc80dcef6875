"""GitLab API access."""

from gitlab_recurring_issues.gitlab.client import (
    CreatedIssue,
    GitLabClient,
    IssueRequest,
    PipelineInfo,
    PipelineJob,
)
from gitlab_recurring_issues.gitlab.pipelines import resolve_last_run

__all__ = [
    "CreatedIssue",
    "GitLabClient",
    "IssueRequest",
    "PipelineInfo",
    "PipelineJob",
    "resolve_last_run",
]
