"""Resolve when the recurring-issues job last finished successfully."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from gitlab_recurring_issues.gitlab.client import GitLabClient
from gitlab_recurring_issues.schedule import EPOCH

logger = logging.getLogger(__name__)


def resolve_last_run(client: GitLabClient, job_name: str) -> datetime:
    """Return the finish time of `job_name` in the latest successful pipeline.

    Pipelines are scanned newest first. The job's own status is not checked:
    a successful pipeline is enough. When no pipeline contains the job, the
    Unix epoch is returned so every template is evaluated as due.
    """

    pipelines = client.list_pipelines(
        scope="finished",
        status="success",
        order_by="updated_at",
        sort="desc",
    )

    for pipeline in pipelines:
        for job in client.list_pipeline_jobs(pipeline_id=pipeline.id):
            if job.name != job_name:
                continue
            if job.finished_at is None:
                logger.debug(
                    "Marker job has no finish time; continuing",
                    extra={"pipeline_id": pipeline.id, "job_id": job.id},
                )
                continue

            logger.info(
                "Found last successful run",
                extra={
                    "pipeline_id": pipeline.id,
                    "pipeline_updated_at": pipeline.updated_at,
                    "job_id": job.id,
                    "job_status": job.status,
                },
            )
            return job.finished_at.astimezone(UTC)

    logger.info("No previous successful run found", extra={"job_name": job_name})
    return EPOCH
