"""JQL search commands."""

from __future__ import annotations

from typing import Any

import click

from atlassian_cli.cli.context import AppContext, pass_context, run


class DefaultGroup(click.Group):
    """Group that runs ``default_command`` when the first argument is not a subcommand.

    Keeps ``jc search "<jql>"`` working next to ``jc search count "<jql>"``.
    """

    def __init__(self, *args: Any, default_command: str, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.default_command = default_command

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if args and args[0] not in self.commands and args[0] not in ctx.help_option_names:
            args = [self.default_command, *args]
        return super().parse_args(ctx, args)


@click.group(cls=DefaultGroup, default_command="query")
def search() -> None:
    """Search issues with JQL. ``jc search "<jql>"`` is short for ``jc search query``."""


@search.command("query")
@click.argument("jql")
@click.option("-l", "--limit", default=50, show_default=True, help="Maximum results.")
@click.option("--page-token", help="nextPageToken from a previous page.")
@click.option("--fields", help="Comma-separated fields to return.")
@pass_context
def query(
    ctx: AppContext, jql: str, limit: int, page_token: str | None, fields: str | None
) -> None:
    """Run a JQL search."""

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.search_issues(
                jql,
                max_results=limit,
                fields=fields.split(",") if fields else None,
                next_page_token=page_token,
            )

    ctx.emit(run(_run()))


@search.command("count")
@click.argument("jql")
@pass_context
def count(ctx: AppContext, jql: str) -> None:
    """Approximate number of issues matching a JQL query."""

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.count_issues(jql)

    result = run(_run())
    ctx.emit({"jql": jql, "count": result.get("count")})
