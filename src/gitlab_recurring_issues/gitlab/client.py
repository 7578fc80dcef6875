"""GitLab REST v4 client.

This intentionally wraps a `requests.Session` to keep HTTP calls out of the run
logic and make tests easy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any
from urllib.parse import quote

import requests

from gitlab_recurring_issues import __version__

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PipelineInfo:
    """Minimal pipeline metadata from the pipelines list."""

    id: int
    updated_at: datetime | None


@dataclass(frozen=True, slots=True)
class PipelineJob:
    """Minimal job metadata from a pipeline's jobs list."""

    id: int
    name: str
    status: str
    finished_at: datetime | None


@dataclass(frozen=True, slots=True)
class IssueRequest:
    """Parameters for `POST /projects/:id/issues`."""

    title: str
    description: str
    confidential: bool
    created_at: datetime
    due_date: date | None = None
    labels: list[str] = field(default_factory=list)
    assignee_ids: list[int] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "confidential": self.confidential,
            "created_at": self.created_at.isoformat(),
        }
        if self.due_date is not None:
            payload["due_date"] = self.due_date.isoformat()
        if self.labels:
            payload["labels"] = ",".join(self.labels)
        if self.assignee_ids:
            payload["assignee_ids"] = list(self.assignee_ids)
        return payload


@dataclass(frozen=True, slots=True)
class CreatedIssue:
    """Minimal issue metadata returned from GitLab."""

    project_id: str
    iid: int
    title: str
    web_url: str
    created_at: datetime | None


class GitLabClient:
    """Small wrapper around the GitLab REST API for the calls a run needs."""

    def __init__(
        self,
        *,
        token: str,
        api_url: str,
        project_id: str,
        verify: bool = True,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitLab token is required")
        if not api_url:
            raise ValueError("GitLab API URL is required")
        if not str(project_id).strip():
            raise ValueError("GitLab project id is required")

        self._api_url = api_url.rstrip("/")
        self._project_id = str(project_id).strip()
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.verify = verify
        self._session.headers.update(
            {
                "PRIVATE-TOKEN": token,
                "Accept": "application/json",
                "User-Agent": f"gitlab-recurring-issues/{__version__}",
            }
        )

        if not verify:
            logger.warning("TLS certificate verification is disabled")

    @property
    def project_id(self) -> str:
        """Return the configured project id (numeric id or full path)."""

        return self._project_id

    def _project_url(self, path: str = "") -> str:
        encoded = quote(self._project_id, safe="")
        path = path.strip("/")
        base = f"{self._api_url}/projects/{encoded}"
        return f"{base}/{path}" if path else base

    @staticmethod
    def _parse_datetime(value: object) -> datetime | None:
        if not isinstance(value, str) or not value.strip():
            return None
        # GitLab returns timestamps like "2025-01-01T00:00:00.000Z".
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    def _get_json_list(
        self, url: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        resp = self._session.get(url, params=params, timeout=self._timeout)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, list):
            raise ValueError(f"Expected a JSON list from {url}")
        return [item for item in data if isinstance(item, dict)]

    def _get_paginated_json_list(
        self, url: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Fetch a list endpoint following GitLab's `X-Next-Page` header.

        Notes:
            Pagination is capped at 10 pages of 100 items each.
        """

        items: list[dict[str, Any]] = []
        page = "1"
        for _ in range(10):
            query = {**(params or {}), "per_page": 100, "page": page}
            resp = self._session.get(url, params=query, timeout=self._timeout)
            resp.raise_for_status()
            data = resp.json()
            if not isinstance(data, list):
                raise ValueError(f"Expected a JSON list from {url}")
            items.extend(item for item in data if isinstance(item, dict))

            page = resp.headers.get("X-Next-Page", "").strip()
            if not page:
                break
        return items

    def list_pipelines(
        self,
        *,
        scope: str = "finished",
        status: str = "success",
        order_by: str = "updated_at",
        sort: str = "desc",
    ) -> list[PipelineInfo]:
        """List project pipelines (first page, GitLab's default page size)."""

        params = {"scope": scope, "status": status, "order_by": order_by, "sort": sort}
        logger.debug("Listing pipelines", extra=params)

        pipelines: list[PipelineInfo] = []
        for item in self._get_json_list(self._project_url("pipelines"), params=params):
            pipeline_id = item.get("id")
            if not isinstance(pipeline_id, int):
                continue
            pipelines.append(
                PipelineInfo(
                    id=pipeline_id,
                    updated_at=self._parse_datetime(item.get("updated_at")),
                )
            )
        return pipelines

    def list_pipeline_jobs(self, *, pipeline_id: int) -> list[PipelineJob]:
        """List all jobs of a pipeline."""

        if pipeline_id <= 0:
            raise ValueError("pipeline_id must be a positive integer")

        url = self._project_url(f"pipelines/{pipeline_id}/jobs")
        logger.debug("Listing pipeline jobs", extra={"pipeline_id": pipeline_id})

        jobs: list[PipelineJob] = []
        for item in self._get_paginated_json_list(url):
            job_id = item.get("id")
            if not isinstance(job_id, int):
                continue
            jobs.append(
                PipelineJob(
                    id=job_id,
                    name=str(item.get("name") or ""),
                    status=str(item.get("status") or ""),
                    finished_at=self._parse_datetime(item.get("finished_at")),
                )
            )
        return jobs

    def find_user_id(self, *, username: str) -> int | None:
        """Return the id of the user with `username`, or None if there is none."""

        if not username.strip():
            raise ValueError("username must be non-empty")

        users = self._get_json_list(f"{self._api_url}/users", params={"username": username})
        for user in users:
            user_id = user.get("id")
            matches = str(user.get("username", "")).lower() == username.lower()
            if isinstance(user_id, int) and matches:
                return user_id
        return None

    def create_issue(self, request: IssueRequest) -> CreatedIssue:
        """Create an issue in the configured project."""

        if not request.title.strip():
            raise ValueError("Issue title is required")

        resp = self._session.post(
            self._project_url("issues"),
            json=request.to_payload(),
            timeout=self._timeout,
        )
        resp.raise_for_status()
        data: dict[str, Any] = resp.json()

        iid = data.get("iid")
        if not isinstance(iid, int):
            raise ValueError("Invalid issue response: missing iid")

        return CreatedIssue(
            project_id=self._project_id,
            iid=iid,
            title=str(data.get("title") or request.title),
            web_url=str(data.get("web_url") or ""),
            created_at=self._parse_datetime(data.get("created_at")),
        )

    def close(self) -> None:
        self._session.close()
