"""Unit tests for last-run resolution (client mocked)."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import Mock

import pytest

from gitlab_recurring_issues.gitlab.client import GitLabClient, PipelineInfo, PipelineJob
from gitlab_recurring_issues.gitlab.pipelines import resolve_last_run
from gitlab_recurring_issues.schedule import EPOCH


def _pipeline(pipeline_id: int, updated_at: datetime | None = None) -> PipelineInfo:
    return PipelineInfo(id=pipeline_id, updated_at=updated_at)


def _job(
    job_id: int, name: str, finished_at: datetime | None, status: str = "success"
) -> PipelineJob:
    return PipelineJob(id=job_id, name=name, status=status, finished_at=finished_at)


def test_returns_epoch_when_no_pipelines() -> None:
    client = Mock(spec=GitLabClient)
    client.list_pipelines.return_value = []

    assert resolve_last_run(client, "recurring-issues") == EPOCH
    assert EPOCH == datetime(1970, 1, 1, tzinfo=UTC)
    client.list_pipelines.assert_called_once_with(
        scope="finished", status="success", order_by="updated_at", sort="desc"
    )


def test_returns_epoch_when_job_never_ran() -> None:
    client = Mock(spec=GitLabClient)
    client.list_pipelines.return_value = [_pipeline(2), _pipeline(1)]
    client.list_pipeline_jobs.return_value = [_job(10, "build", datetime(2024, 1, 1, tzinfo=UTC))]

    assert resolve_last_run(client, "recurring-issues") == EPOCH
    assert client.list_pipeline_jobs.call_count == 2


def test_returns_first_matching_job_in_newest_pipeline() -> None:
    client = Mock(spec=GitLabClient)
    client.list_pipelines.return_value = [_pipeline(3), _pipeline(2), _pipeline(1)]
    newest_finish = datetime(2024, 5, 2, 6, 0, tzinfo=UTC)
    client.list_pipeline_jobs.side_effect = [
        [_job(30, "build", datetime(2024, 5, 3, tzinfo=UTC))],
        [_job(20, "recurring-issues", newest_finish)],
        [_job(10, "recurring-issues", datetime(2024, 5, 1, tzinfo=UTC))],
    ]

    assert resolve_last_run(client, "recurring-issues") == newest_finish
    assert [c.kwargs["pipeline_id"] for c in client.list_pipeline_jobs.call_args_list] == [3, 2]


def test_ignores_job_status_inside_successful_pipeline() -> None:
    client = Mock(spec=GitLabClient)
    client.list_pipelines.return_value = [_pipeline(1)]
    finished = datetime(2024, 5, 2, 6, 0, tzinfo=UTC)
    client.list_pipeline_jobs.return_value = [
        _job(10, "recurring-issues", finished, status="failed")
    ]

    assert resolve_last_run(client, "recurring-issues") == finished


def test_skips_matching_job_without_finish_time() -> None:
    client = Mock(spec=GitLabClient)
    client.list_pipelines.return_value = [_pipeline(2), _pipeline(1)]
    finished = datetime(2024, 4, 1, tzinfo=UTC)
    client.list_pipeline_jobs.side_effect = [
        [_job(20, "recurring-issues", None, status="manual")],
        [_job(10, "recurring-issues", finished)],
    ]

    assert resolve_last_run(client, "recurring-issues") == finished


def test_logs_pipeline_update_time_of_last_run(caplog: pytest.LogCaptureFixture) -> None:
    client = Mock(spec=GitLabClient)
    updated = datetime(2024, 5, 2, 6, 5, tzinfo=UTC)
    client.list_pipelines.return_value = [_pipeline(4, updated_at=updated)]
    client.list_pipeline_jobs.return_value = [
        _job(40, "recurring-issues", datetime(2024, 5, 2, 6, 0, tzinfo=UTC))
    ]

    with caplog.at_level("INFO", logger="gitlab_recurring_issues.gitlab.pipelines"):
        resolve_last_run(client, "recurring-issues")

    (record,) = [r for r in caplog.records if r.getMessage() == "Found last successful run"]
    assert record.pipeline_id == 4
    assert record.pipeline_updated_at == updated
    assert record.job_status == "success"
