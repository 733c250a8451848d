"""Shared async REST client plumbing for the Atlassian services."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from atlassian_cli.errors import (
    AtlassianAPIError,
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    ValidationError,
)
from atlassian_cli.http.retry import RetryPolicy, RetryTransport

logger = logging.getLogger("atlassian_cli")

_ERROR_MAP: dict[int, type[AtlassianAPIError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    429: RateLimitError,
}


def extract_error_message(response: httpx.Response) -> str:
    """Pull a readable message out of a Jira, Confluence or Bitbucket error body."""
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase

    if not isinstance(data, dict):
        return response.text

    # Jira: {"errorMessages": [...], "errors": {"field": "message"}}
    messages = list(data.get("errorMessages") or [])
    errors = data.get("errors")
    if isinstance(errors, dict):
        messages.extend(f"{field}: {msg}" for field, msg in errors.items())
    # Confluence v2: {"errors": [{"title": ..., "message"?: ...}]}
    elif isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict):
            messages.append(first.get("message") or first.get("title") or str(first))
    if messages:
        return ", ".join(messages)

    # Bitbucket: {"type": "error", "error": {"message": ...}}
    error = data.get("error")
    if isinstance(error, dict) and error.get("message"):
        return error["message"]

    return data.get("message") or response.text


async def _log_request(request: httpx.Request) -> None:
    logger.debug("--> %s %s", request.method, request.url)


async def _log_response(response: httpx.Response) -> None:
    request = response.request
    logger.debug("<-- %s %s %d", request.method, request.url, response.status_code)


class BaseClient:
    """Async wrapper around one Atlassian REST API base URL."""

    service = "Atlassian"

    def __init__(
        self,
        base_url: str,
        *,
        auth: httpx.Auth | tuple[str, str] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = 30,
        ssl_verify: bool | str = True,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        inner = transport or httpx.AsyncHTTPTransport(verify=ssl_verify)
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            auth=auth,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                **(headers or {}),
            },
            timeout=timeout,
            follow_redirects=True,
            transport=RetryTransport(inner, retry_policy),
            event_hooks={"request": [_log_request], "response": [_log_response]},
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._client.request(method, path, **kwargs)
        if response.status_code >= 400:
            detail = extract_error_message(response)
            message = (
                f"{self.service} API {method} {path} failed ({response.status_code}): {detail}"
            )
            error_cls = _ERROR_MAP.get(response.status_code)
            if error_cls is None:
                raise AtlassianAPIError(
                    message, status_code=response.status_code, service=self.service
                )
            raise error_cls(message, service=self.service)
        if response.status_code == 204 or not response.content:
            return None
        if "json" in response.headers.get("Content-Type", ""):
            return response.json()
        return response.text

    async def _get(self, path: str, **params: Any) -> Any:
        params = {k: v for k, v in params.items() if v is not None}
        return await self._request("GET", path, params=params)

    async def _post(self, path: str, json: Any = None) -> Any:
        return await self._request("POST", path, json=json)

    async def _put(self, path: str, json: Any = None) -> Any:
        return await self._request("PUT", path, json=json)

    async def _delete(self, path: str, **params: Any) -> Any:
        params = {k: v for k, v in params.items() if v is not None}
        return await self._request("DELETE", path, params=params)
