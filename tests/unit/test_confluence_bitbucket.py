"""Tests for the Confluence and Bitbucket clients."""

import json

import pytest
import respx
from httpx import Response

from atlassian_cli.bitbucket.client import BitbucketClient, normalize_url
from atlassian_cli.confluence.client import ConfluenceClient
from atlassian_cli.errors import ConfigError, NotFoundError, PermissionDeniedError
from atlassian_cli.http.retry import RetryPolicy

WIKI = "https://acme.atlassian.net/wiki/api/v2"
BB = "https://api.bitbucket.org/2.0"
NO_RETRY = RetryPolicy(max_retries=0)


@pytest.fixture
async def confluence():
    c = ConfluenceClient("acme", "test@example.com", "tok", retry_policy=NO_RETRY)
    yield c
    await c.close()


@pytest.fixture
async def bitbucket():
    c = BitbucketClient(token="bb-token", workspace="acme", retry_policy=NO_RETRY)
    yield c
    await c.close()


class TestConfluenceClient:
    @respx.mock
    @pytest.mark.asyncio
    async def test_list_spaces_skips_unset_params(self, confluence):
        route = respx.get(f"{WIKI}/spaces").mock(return_value=Response(200, json={"results": []}))
        await confluence.list_spaces(limit=5, status="current")
        params = route.calls.last.request.url.params
        assert dict(params) == {"limit": "5", "status": "current"}

    @respx.mock
    @pytest.mark.asyncio
    async def test_get_space_by_key(self, confluence):
        respx.get(f"{WIKI}/spaces").mock(
            return_value=Response(200, json={"results": [{"id": "42", "key": "ENG"}]})
        )
        space = await confluence.get_space_by_key("ENG")
        assert space["id"] == "42"

    @respx.mock
    @pytest.mark.asyncio
    async def test_get_space_by_key_missing(self, confluence):
        respx.get(f"{WIKI}/spaces").mock(return_value=Response(200, json={"results": []}))
        with pytest.raises(NotFoundError, match="ENG"):
            await confluence.get_space_by_key("ENG")

    @respx.mock
    @pytest.mark.asyncio
    async def test_list_pages_uses_hyphenated_params(self, confluence):
        route = respx.get(f"{WIKI}/pages").mock(return_value=Response(200, json={"results": []}))
        await confluence.list_pages(space_id="42", body_format="storage")
        params = route.calls.last.request.url.params
        assert params["space-id"] == "42"
        assert params["body-format"] == "storage"

    @respx.mock
    @pytest.mark.asyncio
    async def test_error_message(self, confluence):
        respx.get(f"{WIKI}/pages/1").mock(
            return_value=Response(403, json={"errors": [{"status": 403, "title": "Not allowed"}]})
        )
        match = "Confluence API GET /pages/1 failed \\(403\\): Not allowed"
        with pytest.raises(PermissionDeniedError, match=match):
            await confluence.get_page("1")

    @respx.mock
    @pytest.mark.asyncio
    async def test_create_page_storage_body(self, confluence):
        route = respx.post(f"{WIKI}/pages").mock(return_value=Response(200, json={"id": "9"}))
        await confluence.create_page("42", "Notes", body="<p>hi</p>", parent_id="7")
        assert json.loads(route.calls.last.request.content) == {
            "spaceId": "42",
            "title": "Notes",
            "status": "current",
            "parentId": "7",
            "body": {"representation": "storage", "value": "<p>hi</p>"},
        }

    @respx.mock
    @pytest.mark.asyncio
    async def test_update_page_bumps_version(self, confluence):
        respx.get(f"{WIKI}/pages/9").mock(
            return_value=Response(200, json={"id": "9", "version": {"number": 3}})
        )
        route = respx.put(f"{WIKI}/pages/9").mock(return_value=Response(200, json={"id": "9"}))
        await confluence.update_page("9", "Notes", message="typo")
        sent = json.loads(route.calls.last.request.content)
        assert sent["version"] == {"number": 4, "message": "typo"}
        assert "body" not in sent

    @respx.mock
    @pytest.mark.asyncio
    async def test_add_page_comment(self, confluence):
        route = respx.post(f"{WIKI}/footer-comments").mock(
            return_value=Response(200, json={"id": "c1"})
        )
        await confluence.add_page_comment("9", "<p>ok</p>")
        assert json.loads(route.calls.last.request.content) == {
            "pageId": "9",
            "body": {"representation": "storage", "value": "<p>ok</p>"},
        }


class TestBitbucketClient:
    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://bitbucket.org/acme", (BB, "acme")),
            ("https://bitbucket.org/acme/", (BB, "acme")),
            ("https://api.bitbucket.org", (BB, None)),
            ("https://api.bitbucket.org/2.0/", (BB, None)),
            ("https://bitbucket.internal/rest/", ("https://bitbucket.internal/rest", None)),
        ],
    )
    def test_normalize_url(self, url, expected):
        assert normalize_url(url) == expected

    @respx.mock
    @pytest.mark.asyncio
    async def test_list_pull_requests_clamps_pagelen(self, bitbucket):
        route = respx.get(f"{BB}/repositories/acme/api/pullrequests").mock(
            return_value=Response(200, json={"values": []})
        )
        await bitbucket.list_pull_requests("api", state="OPEN", pagelen=500)
        request = route.calls.last.request
        assert request.url.params["pagelen"] == "100"
        assert request.url.params["state"] == "OPEN"
        assert request.headers["Authorization"] == "Bearer bb-token"

    @respx.mock
    @pytest.mark.asyncio
    async def test_list_repositories_name_filter(self, bitbucket):
        route = respx.get(f"{BB}/repositories/other").mock(
            return_value=Response(200, json={"values": []})
        )
        await bitbucket.list_repositories(workspace="other", name="api")
        params = route.calls.last.request.url.params
        assert params["q"] == 'name~"api"'
        assert params["pagelen"] == "10"

    @respx.mock
    @pytest.mark.asyncio
    async def test_error_message(self, bitbucket):
        respx.get(f"{BB}/repositories/acme/api/pullrequests/7").mock(
            return_value=Response(404, json={"type": "error", "error": {"message": "Repository not found"}})
        )
        with pytest.raises(NotFoundError, match="Repository not found"):
            await bitbucket.get_pull_request("api", 7)

    @pytest.mark.asyncio
    async def test_requires_workspace(self):
        client = BitbucketClient(username="me", app_password="pw", retry_policy=NO_RETRY)
        try:
            with pytest.raises(ConfigError, match="workspace"):
                await client.list_repositories()
        finally:
            await client.close()

    def test_workspace_from_web_url(self):
        client = BitbucketClient(url="https://bitbucket.org/acme", token="t")
        assert client.workspace == "acme"
        assert client.base_url == BB

    @respx.mock
    @pytest.mark.asyncio
    async def test_inline_comment(self, bitbucket):
        route = respx.post(f"{BB}/repositories/acme/api/pullrequests/7/comments").mock(
            return_value=Response(201, json={"id": 1})
        )
        await bitbucket.add_pull_request_comment("api", 7, "nit", path="src/app.py", line=12)
        assert json.loads(route.calls.last.request.content) == {
            "content": {"raw": "nit"},
            "inline": {"path": "src/app.py", "to": 12},
        }

    @respx.mock
    @pytest.mark.asyncio
    async def test_reopen_comment(self, bitbucket):
        route = respx.put(f"{BB}/repositories/acme/api/pullrequests/7/comments/3").mock(
            return_value=Response(200, json={"id": 3})
        )
        await bitbucket.resolve_pull_request_comment("api", 7, 3, resolved=False)
        assert json.loads(route.calls.last.request.content) == {"resolved": False}

    @respx.mock
    @pytest.mark.asyncio
    async def test_diff_is_plain_text(self, bitbucket):
        route = respx.get(f"{BB}/repositories/acme/api/pullrequests/7/diff").mock(
            return_value=Response(200, text="diff --git a/x b/x\n", headers={"Content-Type": "text/plain"})
        )
        assert await bitbucket.get_pull_request_diff("api", 7) == "diff --git a/x b/x\n"
        assert route.calls.last.request.headers["Accept"] == "text/plain"
