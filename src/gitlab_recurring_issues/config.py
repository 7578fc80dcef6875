"""Runtime settings for a recurring-issues run.

Configuration is loaded from:
- environment variables (GitLab CI predefines most of them)
- and a local `.env` file (if present)

All required values are checked up front so a misconfigured pipeline fails
before any API call is made.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TEMPLATES_RELATIVE_PATH = Path(".gitlab") / "recurring_issue_templates"

_PIPELINE_HINT = "This tool must be run as part of a GitLab pipeline."

# field name -> (environment variable, hint appended to the error)
_REQUIRED: dict[str, tuple[str, str]] = {
    "api_token": (
        "GITLAB_API_TOKEN",
        "Ensure this is set under the project CI/CD settings.",
    ),
    "api_url": ("CI_API_V4_URL", _PIPELINE_HINT),
    "project_id": ("CI_PROJECT_ID", _PIPELINE_HINT),
    "project_dir": ("CI_PROJECT_DIR", _PIPELINE_HINT),
    "job_name": ("CI_JOB_NAME", _PIPELINE_HINT),
}


class RecurringIssuesSettings(BaseSettings):
    """Settings for one run of the recurring issue creator.

    Environment variables:
    - GITLAB_API_TOKEN
    - CI_API_V4_URL
    - CI_PROJECT_ID
    - CI_PROJECT_DIR
    - CI_JOB_NAME
    - LOG_LEVEL           (optional)
    - GITLAB_SSL_VERIFY   (optional)
    - GITLAB_HTTP_TIMEOUT (optional)

    Notes:
        Tests can bypass the `.env` file via
        `RecurringIssuesSettings(_env_file=None)`.
    """

    # Defaults are empty so a missing variable is reported by name from the
    # validator below instead of as a generic "field required".
    api_token: str = Field(
        default="",
        validation_alias="GITLAB_API_TOKEN",
        description="Token used for GitLab API authentication",
    )
    api_url: str = Field(
        default="",
        validation_alias="CI_API_V4_URL",
        description="Base URL of the GitLab REST v4 API",
    )
    project_id: str = Field(
        default="",
        validation_alias="CI_PROJECT_ID",
        description="Project that owns the pipelines and receives the issues",
    )
    project_dir: str = Field(
        default="",
        validation_alias="CI_PROJECT_DIR",
        description="Checkout root containing the templates directory",
    )
    job_name: str = Field(
        default="",
        validation_alias="CI_JOB_NAME",
        description="Job whose last successful finish marks the previous run",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )
    ssl_verify: bool = Field(
        default=True,
        validation_alias="GITLAB_SSL_VERIFY",
        description="Verify TLS certificates of the GitLab API",
    )
    http_timeout: float = Field(
        default=30.0,
        gt=0,
        validation_alias="GITLAB_HTTP_TIMEOUT",
        description="Timeout in seconds for each GitLab API request",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"LOG_LEVEL '{value}' is not a logging level name")
        return level

    @model_validator(mode="after")
    def _require_pipeline_variables(self) -> RecurringIssuesSettings:
        for field_name, (env_name, hint) in _REQUIRED.items():
            if not str(getattr(self, field_name)).strip():
                raise ValueError(f"Environment variable '{env_name}' not found. {hint}")
        return self

    @property
    def templates_dir(self) -> Path:
        """Directory scanned recursively for issue templates."""

        return Path(self.project_dir) / TEMPLATES_RELATIVE_PATH
