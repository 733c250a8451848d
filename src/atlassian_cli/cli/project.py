"""Project commands."""

from __future__ import annotations

from typing import Any

import click

from atlassian_cli.cli.context import AppContext, pass_context, run


@click.group()
def project() -> None:
    """Jira project operations."""


@project.command("list")
@pass_context
def list_projects(ctx: AppContext) -> None:
    """List projects visible to the current user."""

    async def _run() -> list[dict[str, Any]]:
        async with ctx.jira() as client:
            return await client.list_projects()

    ctx.emit(run(_run()))


@project.command("get")
@click.argument("key")
@click.option("--expand", help="Comma-separated expansions (e.g. description,lead).")
@pass_context
def get_project(ctx: AppContext, key: str, expand: str | None) -> None:
    """Get a project by key or id."""

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.get_project(key, expand.split(",") if expand else None)

    ctx.emit(run(_run()))


@project.command("statuses")
@click.argument("key")
@pass_context
def project_statuses(ctx: AppContext, key: str) -> None:
    """List the statuses of each issue type in a project."""

    async def _run() -> list[dict[str, Any]]:
        async with ctx.jira() as client:
            return await client.get_project_statuses(key)

    ctx.emit(run(_run()))


@project.command("components")
@click.argument("key")
@pass_context
def project_components(ctx: AppContext, key: str) -> None:
    """List the components of a project."""

    async def _run() -> list[dict[str, Any]]:
        async with ctx.jira() as client:
            return await client.get_project_components(key)

    ctx.emit(run(_run()))


@project.command("versions")
@click.argument("key")
@click.option(
    "--status",
    type=click.Choice(["released", "unreleased", "archived"]),
    help="Only versions in this state.",
)
@click.option("--order-by", help="Sort field, e.g. -releaseDate.")
@click.option("-l", "--limit", default=50, show_default=True, help="Maximum versions.")
@click.option("--start", default=0, help="Pagination offset.")
@pass_context
def project_versions(
    ctx: AppContext, key: str, status: str | None, order_by: str | None, limit: int, start: int
) -> None:
    """List the versions of a project."""

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.get_project_versions(
                key, max_results=limit, start_at=start, status=status, order_by=order_by
            )

    ctx.emit(run(_run()))
