"""Test configuration and fixtures."""

from pathlib import Path

import pytest

from gitlab_recurring_issues.config import TEMPLATES_RELATIVE_PATH, RecurringIssuesSettings

PIPELINE_ENV = {
    "GITLAB_API_TOKEN": "test-token",
    "CI_API_V4_URL": "https://gitlab.example.com/api/v4",
    "CI_PROJECT_ID": "42",
    "CI_JOB_NAME": "recurring-issues",
}

OPTIONAL_ENV = ("LOG_LEVEL", "GITLAB_SSL_VERIFY", "GITLAB_HTTP_TIMEOUT")


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Provide an empty checkout directory."""
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def templates_dir(project_dir: Path) -> Path:
    """Provide the templates directory inside the checkout."""
    templates = project_dir / TEMPLATES_RELATIVE_PATH
    templates.mkdir(parents=True)
    return templates


@pytest.fixture
def pipeline_env(
    tmp_path: Path, project_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> dict[str, str]:
    """Provide a complete GitLab CI environment, isolated from any `.env` file."""
    monkeypatch.chdir(tmp_path)
    for name in OPTIONAL_ENV:
        monkeypatch.delenv(name, raising=False)

    env = {**PIPELINE_ENV, "CI_PROJECT_DIR": str(project_dir)}
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    return env


@pytest.fixture
def settings(pipeline_env: dict[str, str]) -> RecurringIssuesSettings:
    """Provide settings loaded from the test pipeline environment."""
    return RecurringIssuesSettings()
