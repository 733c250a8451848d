"""Shared state handed to every command: output options, settings and client factories."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Coroutine, TypeVar

import click
import httpx

from atlassian_cli.bitbucket.client import BitbucketClient
from atlassian_cli.config import get_default_format, resolve_jira_credentials
from atlassian_cli.confluence.client import ConfluenceClient
from atlassian_cli.errors import AtlassianCLIError
from atlassian_cli.jira.client import JiraClient
from atlassian_cli.jira.models import TaskResult
from atlassian_cli.output import emit
from atlassian_cli.settings import BitbucketSettings, CLISettings, load_cli_settings

T = TypeVar("T")


@dataclass
class AppContext:
    format: str | None = None
    output: str | None = None
    profile: str | None = None
    domain: str | None = None
    debug: bool = False
    _settings: CLISettings | None = field(default=None, repr=False)

    @property
    def settings(self) -> CLISettings:
        if self._settings is None:
            try:
                self._settings = load_cli_settings()
            except AtlassianCLIError as e:
                raise click.ClickException(str(e)) from e
        return self._settings

    @property
    def fmt(self) -> str:
        if self.format is None:
            try:
                self.format = get_default_format()
            except AtlassianCLIError as e:
                raise click.ClickException(str(e)) from e
        return self.format

    def _client_options(self) -> dict[str, Any]:
        return {
            "timeout": self.settings.timeout,
            "ssl_verify": self.settings.ssl_verify,
            "retry_policy": self.settings.retry_policy(),
        }

    def jira(self) -> JiraClient:
        creds = resolve_jira_credentials(domain=self.domain, profile=self.profile)
        return JiraClient(creds.domain, creds.email, creds.api_token, **self._client_options())

    def confluence(self) -> ConfluenceClient:
        creds = resolve_jira_credentials(domain=self.domain, profile=self.profile)
        return ConfluenceClient(
            creds.domain, creds.email, creds.api_token, **self._client_options()
        )

    def bitbucket(self, workspace: str | None = None) -> BitbucketClient:
        bb = BitbucketSettings()
        return BitbucketClient(
            url=bb.url,
            token=bb.token,
            username=bb.username,
            app_password=bb.app_password,
            workspace=workspace or bb.workspace,
            **self._client_options(),
        )

    def emit(self, data: Any) -> None:
        emit(data, self.fmt, self.output)

    def progress(self, task: TaskResult) -> None:
        """Write a one-line progress indicator to stderr (skipped for json output)."""
        if self.fmt == "json" or task.progress is None:
            return
        p = task.progress
        counts = f" ({p.succeeded}/{p.total})" if p.total is not None else ""
        click.echo(f"\rProgress: {p.percent:g}%{counts}", err=True, nl=False)


pass_context = click.make_pass_decorator(AppContext, ensure=True)


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a command coroutine, turning API and connection errors into CLI errors."""
    try:
        return asyncio.run(coro)
    except AtlassianCLIError as e:
        raise click.ClickException(str(e)) from e
    except httpx.HTTPError as e:
        raise click.ClickException(f"Request failed: {e!r}") from e
