"""Confluence commands: spaces, pages, page comments and labels."""

from __future__ import annotations

import html
from typing import Any

import click

from atlassian_cli.cli.context import AppContext, pass_context, run
from atlassian_cli.config import get_default_space
from atlassian_cli.confluence.client import ConfluenceClient

BODY_FORMATS = click.Choice(["storage", "atlas_doc_format", "view"])


async def resolve_space_id(
    client: ConfluenceClient, space_id: str | None, space_key: str | None
) -> str:
    """Space id from the flags, falling back to JIRA_SPACE or the config default.

    A default made only of digits is taken as an id, anything else as a space key.
    """
    if space_id:
        return space_id
    if not space_key:
        default = get_default_space()
        if not default:
            raise click.UsageError("No space given. Pass --space-id or --space, or set JIRA_SPACE.")
        if default.isdigit():
            return default
        space_key = default
    return (await client.get_space_by_key(space_key))["id"]


@click.group()
def space() -> None:
    """Confluence space operations."""


@space.command("list")
@click.option("-l", "--limit", type=int, help="Maximum spaces per page.")
@click.option("--cursor", help="Pagination cursor from a previous response.")
@click.option("--type", "space_type", type=click.Choice(["global", "personal"]))
@click.option("--status", type=click.Choice(["current", "archived"]))
@pass_context
def list_spaces(
    ctx: AppContext,
    limit: int | None,
    cursor: str | None,
    space_type: str | None,
    status: str | None,
) -> None:
    """List spaces."""

    async def _run() -> dict[str, Any]:
        async with ctx.confluence() as client:
            return await client.list_spaces(
                limit=limit, cursor=cursor, space_type=space_type, status=status
            )

    ctx.emit(run(_run()))


@space.command("get")
@click.argument("space")
@pass_context
def get_space(ctx: AppContext, space: str) -> None:
    """Get a space by numeric id or by key."""

    async def _run() -> dict[str, Any]:
        async with ctx.confluence() as client:
            if space.isdigit():
                return await client.get_space(space)
            return await client.get_space_by_key(space)

    ctx.emit(run(_run()))


@click.group()
def page() -> None:
    """Confluence page operations."""


@page.command("list")
@click.option("--space-id", help="Space id.")
@click.option("--space", "space_key", help="Space key, resolved to its id.")
@click.option("-l", "--limit", type=int, help="Maximum pages per page.")
@click.option("--cursor", help="Pagination cursor from a previous response.")
@click.option("--status", type=click.Choice(["current", "draft", "trashed", "archived"]))
@click.option("--sort", help="Sort order (e.g. -modified-date).")
@click.option("--body-format", type=BODY_FORMATS)
@pass_context
def list_pages(
    ctx: AppContext,
    space_id: str | None,
    space_key: str | None,
    limit: int | None,
    cursor: str | None,
    status: str | None,
    sort: str | None,
    body_format: str | None,
) -> None:
    """List pages in a space. Defaults to JIRA_SPACE or the config default space."""

    async def _run() -> dict[str, Any]:
        async with ctx.confluence() as client:
            return await client.list_pages(
                space_id=await resolve_space_id(client, space_id, space_key),
                limit=limit,
                cursor=cursor,
                status=status,
                sort=sort,
                body_format=body_format,
            )

    ctx.emit(run(_run()))


@page.command("get")
@click.argument("page_id")
@click.option("--body-format", type=BODY_FORMATS, default="storage", show_default=True)
@pass_context
def get_page(ctx: AppContext, page_id: str, body_format: str) -> None:
    """Get a page by id."""

    async def _run() -> dict[str, Any]:
        async with ctx.confluence() as client:
            return await client.get_page(page_id, body_format=body_format)

    ctx.emit(run(_run()))


def _read_body(body: str | None, body_file: str | None) -> str | None:
    if body_file:
        with open(body_file, encoding="utf-8") as f:
            return f.read()
    return body


@page.command("create")
@click.option("--space-id", help="Space id. Defaults to JIRA_SPACE or the config default.")
@click.option("--space", "space_key", help="Space key, resolved to its id.")
@click.option("--title", required=True, help="Page title.")
@click.option("--parent", "parent_id", help="Parent page id.")
@click.option("--body", help="Page body in storage format (XHTML).")
@click.option("--body-file", type=click.Path(exists=True, dir_okay=False), help="Read the body from a file.")
@click.option("--status", type=click.Choice(["current", "draft"]), default="current", show_default=True)
@pass_context
def create_page(
    ctx: AppContext,
    space_id: str | None,
    space_key: str | None,
    title: str,
    parent_id: str | None,
    body: str | None,
    body_file: str | None,
    status: str,
) -> None:
    """Create a page."""
    content = _read_body(body, body_file)

    async def _run() -> dict[str, Any]:
        async with ctx.confluence() as client:
            return await client.create_page(
                await resolve_space_id(client, space_id, space_key),
                title,
                body=content,
                parent_id=parent_id,
                status=status,
            )

    ctx.emit(run(_run()))


@page.command("update")
@click.argument("page_id")
@click.option("--title", required=True, help="Page title.")
@click.option("--body", help="Page body in storage format (XHTML).")
@click.option("--body-file", type=click.Path(exists=True, dir_okay=False), help="Read the body from a file.")
@click.option("--message", help="Version message.")
@click.option("--status", type=click.Choice(["current", "draft"]), default="current", show_default=True)
@pass_context
def update_page(
    ctx: AppContext,
    page_id: str,
    title: str,
    body: str | None,
    body_file: str | None,
    message: str | None,
    status: str,
) -> None:
    """Update a page as a new version."""
    content = _read_body(body, body_file)

    async def _run() -> dict[str, Any]:
        async with ctx.confluence() as client:
            return await client.update_page(
                page_id, title, body=content, message=message, status=status
            )

    ctx.emit(run(_run()))


@page.command("delete")
@click.argument("page_id")
@pass_context
def delete_page(ctx: AppContext, page_id: str) -> None:
    """Delete a page."""

    async def _run() -> None:
        async with ctx.confluence() as client:
            await client.delete_page(page_id)

    run(_run())
    ctx.emit({"success": True, "deleted": page_id})


@page.command("children")
@click.argument("page_id")
@click.option("-l", "--limit", default=25, show_default=True, help="Maximum results.")
@click.option("--cursor", help="Pagination cursor from a previous response.")
@pass_context
def page_children(ctx: AppContext, page_id: str, limit: int, cursor: str | None) -> None:
    """List the child pages of a page."""

    async def _run() -> dict[str, Any]:
        async with ctx.confluence() as client:
            return await client.get_page_children(page_id, limit=limit, cursor=cursor)

    ctx.emit(run(_run()))


@page.command("comments")
@click.argument("page_id")
@click.option("-l", "--limit", default=25, show_default=True, help="Maximum results.")
@click.option("--cursor", help="Pagination cursor from a previous response.")
@click.option("--body-format", type=BODY_FORMATS, default="storage", show_default=True)
@pass_context
def page_comments(
    ctx: AppContext, page_id: str, limit: int, cursor: str | None, body_format: str
) -> None:
    """List the footer comments of a page."""

    async def _run() -> dict[str, Any]:
        async with ctx.confluence() as client:
            return await client.get_page_comments(
                page_id, limit=limit, cursor=cursor, body_format=body_format
            )

    ctx.emit(run(_run()))


@page.command("comment")
@click.argument("page_id")
@click.argument("text")
@pass_context
def add_page_comment(ctx: AppContext, page_id: str, text: str) -> None:
    """Add a plain text footer comment to a page."""

    async def _run() -> dict[str, Any]:
        async with ctx.confluence() as client:
            return await client.add_page_comment(page_id, f"<p>{html.escape(text)}</p>")

    ctx.emit(run(_run()))


@page.command("labels")
@click.argument("page_id")
@click.option("-l", "--limit", default=25, show_default=True, help="Maximum results.")
@pass_context
def page_labels(ctx: AppContext, page_id: str, limit: int) -> None:
    """List the labels of a page."""

    async def _run() -> dict[str, Any]:
        async with ctx.confluence() as client:
            return await client.get_page_labels(page_id, limit=limit)

    ctx.emit(run(_run()))


@page.command("add-label")
@click.argument("page_id")
@click.argument("label")
@pass_context
def add_page_label(ctx: AppContext, page_id: str, label: str) -> None:
    """Add a label to a page."""

    async def _run() -> dict[str, Any]:
        async with ctx.confluence() as client:
            return await client.add_page_label(page_id, label)

    ctx.emit(run(_run()))
