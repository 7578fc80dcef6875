"""GitLab recurring issues.

Creates GitLab issues from markdown templates on a crontab schedule:
- configuration loaded from the GitLab CI environment
- structured logging
- issues back-dated to the scheduled occurrence
"""

__version__ = "0.1.0"

from gitlab_recurring_issues.config import RecurringIssuesSettings

__all__ = ["__version__", "RecurringIssuesSettings"]
