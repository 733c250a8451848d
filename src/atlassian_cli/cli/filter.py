"""Saved filter, field and label commands."""

from __future__ import annotations

from typing import Any

import click

from atlassian_cli.cli.context import AppContext, pass_context, run


@click.group("filter")
def filter_group() -> None:
    """Jira saved filter operations."""


@filter_group.command("list")
@click.option("--name", help="Filter name contains this text.")
@click.option("--owner", help="Owner account id.")
@click.option("--project", "project_id", type=int, help="Project id.")
@click.option("--favourites", is_flag=True, help="Only your favourite filters.")
@click.option("--order-by", help="Sort field, e.g. name or -favourite_count.")
@click.option("-l", "--limit", default=50, show_default=True, help="Maximum filters.")
@click.option("--start", default=0, help="Pagination offset.")
@pass_context
def list_filters(
    ctx: AppContext,
    name: str | None,
    owner: str | None,
    project_id: int | None,
    favourites: bool,
    order_by: str | None,
    limit: int,
    start: int,
) -> None:
    """Search saved filters."""

    async def _run() -> Any:
        async with ctx.jira() as client:
            if favourites:
                return await client.get_favourite_filters()
            return await client.search_filters(
                name=name,
                owner=owner,
                project_id=project_id,
                order_by=order_by,
                max_results=limit,
                start_at=start,
            )

    ctx.emit(run(_run()))


@filter_group.command("get")
@click.argument("filter_id")
@click.option("--expand", help="Comma-separated expansions.")
@pass_context
def get_filter(ctx: AppContext, filter_id: str, expand: str | None) -> None:
    """Get a saved filter by id."""

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.get_filter(filter_id, expand.split(",") if expand else None)

    ctx.emit(run(_run()))


@filter_group.command("create")
@click.option("-n", "--name", required=True, help="Filter name.")
@click.option("-j", "--jql", required=True, help="JQL query.")
@click.option("-d", "--description", help="Filter description.")
@click.option("--favourite", is_flag=True, help="Add to your favourites.")
@pass_context
def create_filter(
    ctx: AppContext, name: str, jql: str, description: str | None, favourite: bool
) -> None:
    """Create a saved filter."""
    definition: dict[str, Any] = {"name": name, "jql": jql}
    if description:
        definition["description"] = description
    if favourite:
        definition["favourite"] = True

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.create_filter(definition)

    ctx.emit(run(_run()))


@filter_group.command("update")
@click.argument("filter_id")
@click.option("-n", "--name", help="New name.")
@click.option("-j", "--jql", help="New JQL query.")
@click.option("-d", "--description", help="New description.")
@pass_context
def update_filter(
    ctx: AppContext,
    filter_id: str,
    name: str | None,
    jql: str | None,
    description: str | None,
) -> None:
    """Update a saved filter. Jira requires the name, so the current one is kept if omitted."""
    if not (name or jql or description):
        raise click.UsageError("No fields to update. Use --name, --jql or --description.")

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            changes: dict[str, Any] = {"name": name}
            if not name:
                changes["name"] = (await client.get_filter(filter_id))["name"]
            if jql:
                changes["jql"] = jql
            if description:
                changes["description"] = description
            return await client.update_filter(filter_id, changes)

    ctx.emit(run(_run()))


@filter_group.command("delete")
@click.argument("filter_id")
@pass_context
def delete_filter(ctx: AppContext, filter_id: str) -> None:
    """Delete a saved filter."""

    async def _run() -> None:
        async with ctx.jira() as client:
            await client.delete_filter(filter_id)

    run(_run())
    ctx.emit({"success": True, "filterId": filter_id, "message": "Filter deleted"})


@click.group("field")
def field() -> None:
    """Jira field operations."""


@field.command("list")
@click.option("--custom", "kind", flag_value="custom", help="Only custom fields.")
@click.option("--system", "kind", flag_value="system", help="Only system fields.")
@click.option("--searchable", is_flag=True, help="Only fields usable in JQL.")
@pass_context
def list_fields(ctx: AppContext, kind: str | None, searchable: bool) -> None:
    """List issue fields, including custom field ids."""

    async def _run() -> list[dict[str, Any]]:
        async with ctx.jira() as client:
            return await client.list_fields()

    fields = run(_run())
    if kind:
        fields = [f for f in fields if bool(f.get("custom")) == (kind == "custom")]
    if searchable:
        fields = [f for f in fields if f.get("searchable")]
    ctx.emit(fields)


@click.group("label")
def label() -> None:
    """Jira label operations."""


@label.command("list")
@click.option("-l", "--limit", default=1000, show_default=True, help="Maximum labels.")
@click.option("--start", default=0, help="Pagination offset.")
@pass_context
def list_labels(ctx: AppContext, limit: int, start: int) -> None:
    """List the labels in use on the site."""

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.list_labels(max_results=limit, start_at=start)

    ctx.emit(run(_run()))
