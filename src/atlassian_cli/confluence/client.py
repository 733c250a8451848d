"""Async Confluence Cloud REST API v2 client."""

from __future__ import annotations

from typing import Any

from atlassian_cli.errors import NotFoundError
from atlassian_cli.http.client import BaseClient
from atlassian_cli.jira.client import site_url


class ConfluenceClient(BaseClient):
    """Async wrapper around Confluence REST API v2 (same credentials as Jira)."""

    service = "Confluence"

    def __init__(self, domain: str, email: str, api_token: str, **kwargs: Any):
        super().__init__(f"{site_url(domain)}/wiki/api/v2", auth=(email, api_token), **kwargs)

    # ------------------------------------------------------------------
    # Spaces
    # ------------------------------------------------------------------

    async def list_spaces(
        self,
        limit: int | None = None,
        cursor: str | None = None,
        space_type: str | None = None,
        status: str | None = None,
        keys: list[str] | None = None,
    ) -> dict[str, Any]:
        return await self._get(
            "/spaces",
            limit=limit,
            cursor=cursor,
            type=space_type,
            status=status,
            keys=",".join(keys) if keys else None,
        )

    async def get_space(self, space_id: str) -> dict[str, Any]:
        return await self._get(f"/spaces/{space_id}")

    async def get_space_by_key(self, key: str) -> dict[str, Any]:
        result = await self.list_spaces(limit=100, keys=[key])
        for space in result.get("results", []):
            if space.get("key") == key:
                return space
        raise NotFoundError(f"Space with key '{key}' not found", service=self.service)

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def list_pages(
        self,
        space_id: str | None = None,
        limit: int | None = None,
        cursor: str | None = None,
        status: str | None = None,
        sort: str | None = None,
        body_format: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "space-id": space_id,
            "limit": limit,
            "cursor": cursor,
            "status": status,
            "sort": sort,
            "body-format": body_format,
        }
        return await self._get("/pages", **params)

    async def get_page(self, page_id: str, body_format: str | None = None) -> dict[str, Any]:
        return await self._get(f"/pages/{page_id}", **{"body-format": body_format})

    async def create_page(
        self,
        space_id: str,
        title: str,
        body: str | None = None,
        parent_id: str | None = None,
        status: str = "current",
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"spaceId": space_id, "title": title, "status": status}
        if parent_id:
            payload["parentId"] = parent_id
        if body:
            payload["body"] = {"representation": "storage", "value": body}
        return await self._post("/pages", json=payload)

    async def update_page(
        self,
        page_id: str,
        title: str,
        body: str | None = None,
        message: str | None = None,
        status: str = "current",
    ) -> dict[str, Any]:
        """Replace a page, bumping its version number past the current one."""
        current = await self.get_page(page_id)
        version = ((current.get("version") or {}).get("number") or 0) + 1
        payload: dict[str, Any] = {
            "id": page_id,
            "title": title,
            "status": status,
            "version": {"number": version},
        }
        if message:
            payload["version"]["message"] = message
        if body:
            payload["body"] = {"representation": "storage", "value": body}
        return await self._put(f"/pages/{page_id}", json=payload)

    async def delete_page(self, page_id: str) -> None:
        await self._delete(f"/pages/{page_id}")

    async def get_page_children(
        self, page_id: str, limit: int | None = None, cursor: str | None = None
    ) -> dict[str, Any]:
        return await self._get(f"/pages/{page_id}/children", limit=limit, cursor=cursor)

    # ------------------------------------------------------------------
    # Comments and labels
    # ------------------------------------------------------------------

    async def get_page_comments(
        self,
        page_id: str,
        limit: int | None = None,
        cursor: str | None = None,
        body_format: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"limit": limit, "cursor": cursor, "body-format": body_format}
        return await self._get(f"/pages/{page_id}/footer-comments", **params)

    async def add_page_comment(self, page_id: str, body: str) -> dict[str, Any]:
        return await self._post(
            "/footer-comments",
            json={"pageId": page_id, "body": {"representation": "storage", "value": body}},
        )

    async def get_page_labels(
        self, page_id: str, limit: int | None = None, cursor: str | None = None
    ) -> dict[str, Any]:
        return await self._get(f"/pages/{page_id}/labels", limit=limit, cursor=cursor)

    async def add_page_label(self, page_id: str, label: str) -> dict[str, Any]:
        return await self._post(
            f"/pages/{page_id}/labels", json={"name": label, "prefix": "global"}
        )
