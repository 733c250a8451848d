"""Async Jira REST API v3 client using httpx."""

from __future__ import annotations

import logging
from typing import Any

from atlassian_cli.http.client import BaseClient
from atlassian_cli.jira.models import TaskResult

logger = logging.getLogger("atlassian_cli")

DEFAULT_SEARCH_FIELDS = [
    "summary",
    "status",
    "priority",
    "issuetype",
    "project",
    "assignee",
    "reporter",
    "labels",
    "created",
    "updated",
]


def site_url(domain: str) -> str:
    """Turn a site name ("acme") or full URL into the Atlassian site URL."""
    domain = domain.strip().rstrip("/")
    if domain.startswith(("http://", "https://")):
        return domain
    if "." in domain:
        return f"https://{domain}"
    return f"https://{domain}.atlassian.net"


def task_id_from_location(value: Any) -> str:
    """Jira answers async submissions with a task URL or a bare id."""
    if isinstance(value, dict):
        value = value.get("taskId") or value.get("id") or ""
    text = str(value).strip().strip('"').rstrip("/")
    return text.rsplit("/task/", 1)[-1] if "/task/" in text else text


class JiraClient(BaseClient):
    """Async wrapper around Jira REST API v3."""

    service = "Jira"

    def __init__(self, domain: str, email: str, api_token: str, **kwargs: Any):
        super().__init__(f"{site_url(domain)}/rest/api/3", auth=(email, api_token), **kwargs)

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    async def get_issue(self, issue_key: str, expand: list[str] | None = None) -> dict[str, Any]:
        return await self._get(
            f"/issue/{issue_key}", expand=",".join(expand) if expand else None
        )

    async def create_issue(self, fields: dict[str, Any]) -> dict[str, Any]:
        return await self._post("/issue", json={"fields": fields})

    async def update_issue(self, issue_key: str, fields: dict[str, Any]) -> None:
        await self._put(f"/issue/{issue_key}", json={"fields": fields})

    async def delete_issue(self, issue_key: str, delete_subtasks: bool = False) -> None:
        await self._delete(
            f"/issue/{issue_key}", deleteSubtasks="true" if delete_subtasks else "false"
        )

    async def assign_issue(self, issue_key: str, account_id: str | None) -> None:
        await self._put(f"/issue/{issue_key}/assignee", json={"accountId": account_id})

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_issues(
        self,
        jql: str,
        max_results: int = 50,
        fields: list[str] | None = None,
        next_page_token: str | None = None,
        expand: list[str] | None = None,
    ) -> dict[str, Any]:
        """Run a JQL search. Pages are chained with ``nextPageToken``, not offsets."""
        payload: dict[str, Any] = {
            "jql": jql,
            "maxResults": max_results,
            "fields": fields or DEFAULT_SEARCH_FIELDS,
        }
        if next_page_token:
            payload["nextPageToken"] = next_page_token
        if expand:
            payload["expand"] = ",".join(expand)
        return await self._post("/search/jql", json=payload)

    async def count_issues(self, jql: str) -> dict[str, Any]:
        return await self._post("/search/approximate-count", json={"jql": jql})

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def get_comments(
        self, issue_key: str, max_results: int = 50, start_at: int = 0
    ) -> dict[str, Any]:
        return await self._get(
            f"/issue/{issue_key}/comment", maxResults=max_results, startAt=start_at
        )

    async def add_comment(self, issue_key: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._post(f"/issue/{issue_key}/comment", json={"body": body})

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def get_transitions(self, issue_key: str) -> dict[str, Any]:
        return await self._get(f"/issue/{issue_key}/transitions")

    async def transition_issue(
        self, issue_key: str, transition_id: str, fields: dict[str, Any] | None = None
    ) -> None:
        payload: dict[str, Any] = {"transition": {"id": transition_id}}
        if fields:
            payload["fields"] = fields
        await self._post(f"/issue/{issue_key}/transitions", json=payload)

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    async def get_link_types(self) -> list[dict[str, Any]]:
        result = await self._get("/issueLinkType")
        return result.get("issueLinkTypes", [])

    async def create_link(self, link_type: str, outward_key: str, inward_key: str) -> None:
        await self._post(
            "/issueLink",
            json={
                "type": {"name": link_type},
                "outwardIssue": {"key": outward_key},
                "inwardIssue": {"key": inward_key},
            },
        )

    async def delete_link(self, link_id: str) -> None:
        await self._delete(f"/issueLink/{link_id}")

    # ------------------------------------------------------------------
    # Worklogs
    # ------------------------------------------------------------------

    async def get_worklogs(
        self, issue_key: str, max_results: int = 50, start_at: int = 0
    ) -> dict[str, Any]:
        return await self._get(
            f"/issue/{issue_key}/worklog", maxResults=max_results, startAt=start_at
        )

    async def add_worklog(
        self,
        issue_key: str,
        time_spent: str,
        comment: dict[str, Any] | None = None,
        started: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"timeSpent": time_spent}
        if comment:
            payload["comment"] = comment
        if started:
            payload["started"] = started
        return await self._post(f"/issue/{issue_key}/worklog", json=payload)

    async def update_worklog(
        self, issue_key: str, worklog_id: str, changes: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._put(f"/issue/{issue_key}/worklog/{worklog_id}", json=changes)

    async def delete_worklog(self, issue_key: str, worklog_id: str) -> None:
        await self._delete(f"/issue/{issue_key}/worklog/{worklog_id}")

    # ------------------------------------------------------------------
    # Watchers
    # ------------------------------------------------------------------

    async def get_watchers(self, issue_key: str) -> dict[str, Any]:
        return await self._get(f"/issue/{issue_key}/watchers")

    async def add_watcher(self, issue_key: str, account_id: str) -> None:
        # Jira expects the bare account id as a JSON string.
        await self._post(f"/issue/{issue_key}/watchers", json=account_id)

    async def remove_watcher(self, issue_key: str, account_id: str) -> None:
        await self._delete(f"/issue/{issue_key}/watchers", accountId=account_id)

    # ------------------------------------------------------------------
    # Projects and users
    # ------------------------------------------------------------------

    async def list_projects(self) -> list[dict[str, Any]]:
        return await self._get("/project")

    async def get_project(self, project_key: str, expand: list[str] | None = None) -> dict[str, Any]:
        return await self._get(
            f"/project/{project_key}", expand=",".join(expand) if expand else None
        )

    async def get_project_statuses(self, project_key: str) -> list[dict[str, Any]]:
        return await self._get(f"/project/{project_key}/statuses")

    async def get_project_components(self, project_key: str) -> list[dict[str, Any]]:
        return await self._get(f"/project/{project_key}/components")

    async def get_project_versions(
        self,
        project_key: str,
        max_results: int = 50,
        start_at: int = 0,
        status: str | None = None,
        order_by: str | None = None,
    ) -> dict[str, Any]:
        return await self._get(
            f"/project/{project_key}/version",
            maxResults=max_results,
            startAt=start_at,
            status=status,
            orderBy=order_by,
        )

    async def get_current_user(self) -> dict[str, Any]:
        return await self._get("/myself")

    async def list_labels(self, max_results: int = 1000, start_at: int = 0) -> dict[str, Any]:
        return await self._get("/label", maxResults=max_results, startAt=start_at)

    async def list_fields(self) -> list[dict[str, Any]]:
        return await self._get("/field")

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    async def search_filters(
        self,
        name: str | None = None,
        owner: str | None = None,
        project_id: int | None = None,
        order_by: str | None = None,
        max_results: int = 50,
        start_at: int = 0,
    ) -> dict[str, Any]:
        return await self._get(
            "/filter/search",
            filterName=name,
            accountId=owner,
            projectId=project_id,
            orderBy=order_by,
            maxResults=max_results,
            startAt=start_at,
        )

    async def get_favourite_filters(self) -> list[dict[str, Any]]:
        return await self._get("/filter/favourite")

    async def get_filter(self, filter_id: str, expand: list[str] | None = None) -> dict[str, Any]:
        return await self._get(f"/filter/{filter_id}", expand=",".join(expand) if expand else None)

    async def create_filter(self, definition: dict[str, Any]) -> dict[str, Any]:
        return await self._post("/filter", json=definition)

    async def update_filter(self, filter_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        return await self._put(f"/filter/{filter_id}", json=changes)

    async def delete_filter(self, filter_id: str) -> None:
        await self._delete(f"/filter/{filter_id}")

    # ------------------------------------------------------------------
    # Async tasks
    # ------------------------------------------------------------------

    async def get_task(self, task_id: str) -> TaskResult:
        return TaskResult.model_validate(await self._get(f"/task/{task_id}"))

    async def cancel_task(self, task_id: str) -> None:
        await self._post(f"/task/{task_id}/cancel")

    async def archive_issues(self, issue_keys: list[str]) -> dict[str, Any]:
        """Archive issues by key. Jira may answer inline or with a task id."""
        return await self._put("/issue/archive", json={"issueIdsOrKeys": issue_keys})

    async def archive_issues_by_jql(self, jql: str) -> str:
        """Submit an async archive of every issue matching ``jql``; returns the task id."""
        location = await self._post("/issue/archive", json={"jql": jql})
        task_id = task_id_from_location(location)
        logger.info("Submitted archive task %s for JQL: %s", task_id, jql)
        return task_id
