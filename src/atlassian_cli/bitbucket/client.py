"""Async Bitbucket Cloud REST API 2.0 client."""

from __future__ import annotations

import re
from typing import Any

from atlassian_cli.errors import ConfigError
from atlassian_cli.http.client import BaseClient

DEFAULT_API_URL = "https://api.bitbucket.org/2.0"
DEFAULT_PAGELEN = 10
MAX_PAGELEN = 100

_WEB_URL = re.compile(r"^https?://bitbucket\.org/([^/]+)/?$")


def normalize_url(url: str) -> tuple[str, str | None]:
    """Return ``(api_base_url, workspace)`` for a web or API URL.

    ``https://bitbucket.org/acme`` maps to the public API with workspace
    ``acme``. An ``api.bitbucket.org`` URL without a version gets ``/2.0``.
    """
    match = _WEB_URL.match(url)
    if match:
        return DEFAULT_API_URL, match.group(1)
    url = url.rstrip("/")
    if "api.bitbucket.org" in url and "/2.0" not in url:
        return f"{url}/2.0", None
    return url, None


def _pagelen(value: int | None) -> int:
    return min(value or DEFAULT_PAGELEN, MAX_PAGELEN)


class BitbucketClient(BaseClient):
    """Async wrapper around Bitbucket REST API 2.0.

    Authenticates with a bearer token when one is given, otherwise with
    username and app password.
    """

    service = "Bitbucket"

    def __init__(
        self,
        url: str = DEFAULT_API_URL,
        token: str | None = None,
        username: str | None = None,
        app_password: str | None = None,
        workspace: str | None = None,
        **kwargs: Any,
    ):
        base_url, url_workspace = normalize_url(url)
        self.workspace = workspace or url_workspace
        headers = {"Authorization": f"Bearer {token}"} if token else None
        auth = (username, app_password) if username and app_password and not token else None
        super().__init__(base_url, auth=auth, headers=headers, **kwargs)

    def _workspace(self, workspace: str | None) -> str:
        resolved = workspace or self.workspace
        if not resolved:
            raise ConfigError(
                "No Bitbucket workspace given. Pass --workspace or set BITBUCKET_WORKSPACE."
            )
        return resolved

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    async def list_repositories(
        self,
        workspace: str | None = None,
        pagelen: int | None = None,
        page: int | None = None,
        name: str | None = None,
    ) -> dict[str, Any]:
        return await self._get(
            f"/repositories/{self._workspace(workspace)}",
            pagelen=_pagelen(pagelen),
            page=page,
            q=f'name~"{name}"' if name else None,
        )

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    async def list_pull_requests(
        self,
        repo_slug: str,
        workspace: str | None = None,
        state: str | None = None,
        pagelen: int | None = None,
        page: int | None = None,
    ) -> dict[str, Any]:
        return await self._get(
            f"/repositories/{self._workspace(workspace)}/{repo_slug}/pullrequests",
            state=state,
            pagelen=_pagelen(pagelen),
            page=page,
        )

    def _pr_path(self, repo_slug: str, pr_id: int, workspace: str | None) -> str:
        return f"/repositories/{self._workspace(workspace)}/{repo_slug}/pullrequests/{pr_id}"

    async def get_pull_request(
        self, repo_slug: str, pr_id: int, workspace: str | None = None
    ) -> dict[str, Any]:
        return await self._get(self._pr_path(repo_slug, pr_id, workspace))

    async def get_pull_request_diff(
        self, repo_slug: str, pr_id: int, workspace: str | None = None
    ) -> str:
        """Unified diff of the pull request as plain text."""
        diff = await self._request(
            "GET",
            f"{self._pr_path(repo_slug, pr_id, workspace)}/diff",
            headers={"Accept": "text/plain"},
        )
        return diff or ""

    async def get_pull_request_diffstat(
        self, repo_slug: str, pr_id: int, workspace: str | None = None, pagelen: int | None = None
    ) -> dict[str, Any]:
        return await self._get(
            f"{self._pr_path(repo_slug, pr_id, workspace)}/diffstat", pagelen=_pagelen(pagelen)
        )

    async def get_pull_request_activity(
        self,
        repo_slug: str,
        pr_id: int,
        workspace: str | None = None,
        pagelen: int | None = None,
        page: int | None = None,
    ) -> dict[str, Any]:
        return await self._get(
            f"{self._pr_path(repo_slug, pr_id, workspace)}/activity",
            pagelen=_pagelen(pagelen),
            page=page,
        )

    async def get_pull_request_commits(
        self, repo_slug: str, pr_id: int, workspace: str | None = None, pagelen: int | None = None
    ) -> dict[str, Any]:
        return await self._get(
            f"{self._pr_path(repo_slug, pr_id, workspace)}/commits", pagelen=_pagelen(pagelen)
        )

    # ------------------------------------------------------------------
    # Pull request comments
    # ------------------------------------------------------------------

    async def get_pull_request_comments(
        self,
        repo_slug: str,
        pr_id: int,
        workspace: str | None = None,
        pagelen: int | None = None,
        page: int | None = None,
    ) -> dict[str, Any]:
        return await self._get(
            f"{self._pr_path(repo_slug, pr_id, workspace)}/comments",
            pagelen=_pagelen(pagelen),
            page=page,
        )

    async def add_pull_request_comment(
        self,
        repo_slug: str,
        pr_id: int,
        content: str,
        workspace: str | None = None,
        path: str | None = None,
        line: int | None = None,
    ) -> dict[str, Any]:
        """Comment on a pull request; ``path`` and ``line`` make it an inline comment."""
        payload: dict[str, Any] = {"content": {"raw": content}}
        if path and line is not None:
            payload["inline"] = {"path": path, "to": line}
        return await self._post(
            f"{self._pr_path(repo_slug, pr_id, workspace)}/comments", json=payload
        )

    async def update_pull_request_comment(
        self, repo_slug: str, pr_id: int, comment_id: int, content: str, workspace: str | None = None
    ) -> dict[str, Any]:
        return await self._put(
            f"{self._pr_path(repo_slug, pr_id, workspace)}/comments/{comment_id}",
            json={"content": {"raw": content}},
        )

    async def delete_pull_request_comment(
        self, repo_slug: str, pr_id: int, comment_id: int, workspace: str | None = None
    ) -> None:
        await self._delete(f"{self._pr_path(repo_slug, pr_id, workspace)}/comments/{comment_id}")

    async def resolve_pull_request_comment(
        self,
        repo_slug: str,
        pr_id: int,
        comment_id: int,
        resolved: bool = True,
        workspace: str | None = None,
    ) -> dict[str, Any]:
        """Resolve a comment thread, or reopen it with ``resolved=False``."""
        return await self._put(
            f"{self._pr_path(repo_slug, pr_id, workspace)}/comments/{comment_id}",
            json={"resolved": resolved},
        )
