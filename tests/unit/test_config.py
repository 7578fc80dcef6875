"""Unit tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from gitlab_recurring_issues.config import RecurringIssuesSettings


def test_settings_load_from_pipeline_environment(
    settings: RecurringIssuesSettings, project_dir: Path
) -> None:
    assert settings.api_token == "test-token"
    assert settings.api_url == "https://gitlab.example.com/api/v4"
    assert settings.project_id == "42"
    assert settings.job_name == "recurring-issues"
    assert settings.templates_dir == project_dir / ".gitlab" / "recurring_issue_templates"


def test_settings_optional_defaults(settings: RecurringIssuesSettings) -> None:
    assert settings.log_level == "INFO"
    assert settings.ssl_verify is True
    assert settings.http_timeout == 30.0


def test_settings_optional_overrides(
    pipeline_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("GITLAB_SSL_VERIFY", "false")
    monkeypatch.setenv("GITLAB_HTTP_TIMEOUT", "5")

    settings = RecurringIssuesSettings()

    assert settings.log_level == "DEBUG"
    assert settings.ssl_verify is False
    assert settings.http_timeout == 5.0


@pytest.mark.parametrize(
    "missing",
    ["GITLAB_API_TOKEN", "CI_API_V4_URL", "CI_PROJECT_ID", "CI_PROJECT_DIR", "CI_JOB_NAME"],
)
def test_settings_missing_variable_is_named(
    pipeline_env: dict[str, str], monkeypatch: pytest.MonkeyPatch, missing: str
) -> None:
    monkeypatch.delenv(missing)

    with pytest.raises(ValidationError) as excinfo:
        RecurringIssuesSettings()

    assert f"Environment variable '{missing}' not found" in str(excinfo.value)


def test_settings_blank_variable_is_rejected(
    pipeline_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("CI_JOB_NAME", "   ")

    with pytest.raises(ValidationError, match="CI_JOB_NAME"):
        RecurringIssuesSettings()


def test_settings_load_from_dotenv(
    pipeline_env: dict[str, str], tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("GITLAB_API_TOKEN")
    (tmp_path / ".env").write_text("GITLAB_API_TOKEN=from-dotenv\n", encoding="utf-8")

    settings = RecurringIssuesSettings()

    assert settings.api_token == "from-dotenv"


def test_settings_are_immutable(settings: RecurringIssuesSettings) -> None:
    with pytest.raises(ValidationError):
        settings.job_name = "other"  # type: ignore[misc]


def test_settings_log_level_is_normalised(
    pipeline_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("LOG_LEVEL", " warning ")

    assert RecurringIssuesSettings().log_level == "WARNING"


def test_settings_unknown_log_level_is_rejected(
    pipeline_env: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

    with pytest.raises(ValidationError, match="VERBOSE"):
        RecurringIssuesSettings()
