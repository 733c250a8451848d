"""Bitbucket commands: repositories and pull requests."""

from __future__ import annotations

from typing import Any

import click

from atlassian_cli.cli.context import AppContext, pass_context, run
from atlassian_cli.output import emit_text, filter_diff_by_file, limit_lines

workspace_option = click.option(
    "-w", "--workspace", help="Workspace slug. Defaults to BITBUCKET_WORKSPACE."
)


@click.group()
def repo() -> None:
    """Bitbucket repository operations."""


@repo.command("list")
@workspace_option
@click.option("--name", help="Filter repositories whose name contains this text.")
@click.option("--pagelen", type=int, help="Results per page (max 100).")
@click.option("--page", "page_number", type=int, help="Page number.")
@pass_context
def list_repositories(
    ctx: AppContext,
    workspace: str | None,
    name: str | None,
    pagelen: int | None,
    page_number: int | None,
) -> None:
    """List repositories in a workspace."""

    async def _run() -> dict[str, Any]:
        async with ctx.bitbucket(workspace) as client:
            return await client.list_repositories(pagelen=pagelen, page=page_number, name=name)

    ctx.emit(run(_run()))


@click.group()
def pr() -> None:
    """Bitbucket pull request operations."""


@pr.command("list")
@click.argument("repo_slug")
@workspace_option
@click.option("--state", type=click.Choice(["OPEN", "MERGED", "DECLINED", "SUPERSEDED"]))
@click.option("--pagelen", type=int, help="Results per page (max 100).")
@click.option("--page", "page_number", type=int, help="Page number.")
@pass_context
def list_pull_requests(
    ctx: AppContext,
    repo_slug: str,
    workspace: str | None,
    state: str | None,
    pagelen: int | None,
    page_number: int | None,
) -> None:
    """List pull requests of a repository."""

    async def _run() -> dict[str, Any]:
        async with ctx.bitbucket(workspace) as client:
            return await client.list_pull_requests(
                repo_slug, state=state, pagelen=pagelen, page=page_number
            )

    ctx.emit(run(_run()))


@pr.command("get")
@click.argument("repo_slug")
@click.argument("pr_id", type=int)
@workspace_option
@pass_context
def get_pull_request(ctx: AppContext, repo_slug: str, pr_id: int, workspace: str | None) -> None:
    """Get a pull request."""

    async def _run() -> dict[str, Any]:
        async with ctx.bitbucket(workspace) as client:
            return await client.get_pull_request(repo_slug, pr_id)

    ctx.emit(run(_run()))


@pr.command("diffstat")
@click.argument("repo_slug")
@click.argument("pr_id", type=int)
@workspace_option
@pass_context
def pull_request_diffstat(
    ctx: AppContext, repo_slug: str, pr_id: int, workspace: str | None
) -> None:
    """Show changed files of a pull request."""

    async def _run() -> dict[str, Any]:
        async with ctx.bitbucket(workspace) as client:
            return await client.get_pull_request_diffstat(repo_slug, pr_id)

    ctx.emit(run(_run()))


@pr.command("diff")
@click.argument("repo_slug")
@click.argument("pr_id", type=int)
@workspace_option
@click.option("-f", "--file", "file_path", help="Only the diff of files matching this path.")
@click.option("--lines", type=int, help="Truncate the diff to this many lines.")
@click.option("--stat-only", is_flag=True, help="Show per-file statistics instead of the diff.")
@pass_context
def pull_request_diff(
    ctx: AppContext,
    repo_slug: str,
    pr_id: int,
    workspace: str | None,
    file_path: str | None,
    lines: int | None,
    stat_only: bool,
) -> None:
    """Show the unified diff of a pull request."""

    async def _run() -> Any:
        async with ctx.bitbucket(workspace) as client:
            if stat_only:
                result = await client.get_pull_request_diffstat(repo_slug, pr_id, pagelen=100)
                return result.get("values", [])
            return await client.get_pull_request_diff(repo_slug, pr_id)

    result = run(_run())
    if stat_only:
        ctx.emit(result)
        return
    if file_path:
        result = filter_diff_by_file(result, file_path)
    if lines:
        result = limit_lines(result, lines)
    emit_text(result, ctx.output)


@pr.command("activity")
@click.argument("repo_slug")
@click.argument("pr_id", type=int)
@workspace_option
@click.option("-l", "--limit", default=20, show_default=True, help="Results per page.")
@click.option("--page", "page_number", type=int, help="Page number.")
@click.option(
    "-t", "--type", "activity_type", type=click.Choice(["approval", "comment", "update"])
)
@pass_context
def pull_request_activity(
    ctx: AppContext,
    repo_slug: str,
    pr_id: int,
    workspace: str | None,
    limit: int,
    page_number: int | None,
    activity_type: str | None,
) -> None:
    """Show approvals, comments and updates on a pull request."""

    async def _run() -> dict[str, Any]:
        async with ctx.bitbucket(workspace) as client:
            return await client.get_pull_request_activity(
                repo_slug, pr_id, pagelen=limit, page=page_number
            )

    activities = run(_run()).get("values", [])
    if activity_type:
        activities = [a for a in activities if a.get(activity_type)]
    ctx.emit(activities)


@pr.command("commits")
@click.argument("repo_slug")
@click.argument("pr_id", type=int)
@workspace_option
@click.option("-l", "--limit", default=20, show_default=True, help="Results per page.")
@pass_context
def pull_request_commits(
    ctx: AppContext, repo_slug: str, pr_id: int, workspace: str | None, limit: int
) -> None:
    """List the commits of a pull request."""

    async def _run() -> dict[str, Any]:
        async with ctx.bitbucket(workspace) as client:
            return await client.get_pull_request_commits(repo_slug, pr_id, pagelen=limit)

    ctx.emit(run(_run()).get("values", []))


@pr.command("comments")
@click.argument("repo_slug")
@click.argument("pr_id", type=int)
@workspace_option
@click.option("-l", "--limit", default=20, show_default=True, help="Results per page.")
@click.option("--page", "page_number", type=int, help="Page number.")
@click.option("--inline-only", is_flag=True, help="Only comments attached to a file line.")
@pass_context
def list_pull_request_comments(
    ctx: AppContext,
    repo_slug: str,
    pr_id: int,
    workspace: str | None,
    limit: int,
    page_number: int | None,
    inline_only: bool,
) -> None:
    """List comments on a pull request."""

    async def _run() -> dict[str, Any]:
        async with ctx.bitbucket(workspace) as client:
            return await client.get_pull_request_comments(
                repo_slug, pr_id, pagelen=limit, page=page_number
            )

    comments = run(_run()).get("values", [])
    if inline_only:
        comments = [c for c in comments if c.get("inline")]
    ctx.emit(comments)


@pr.command("comment")
@click.argument("repo_slug")
@click.argument("pr_id", type=int)
@click.argument("text")
@workspace_option
@click.option("-f", "--file", "file_path", help="File path for an inline comment.")
@click.option("--line", type=int, help="Line number for an inline comment.")
@pass_context
def add_pull_request_comment(
    ctx: AppContext,
    repo_slug: str,
    pr_id: int,
    text: str,
    workspace: str | None,
    file_path: str | None,
    line: int | None,
) -> None:
    """Add a comment to a pull request, inline when --file and --line are given."""

    async def _run() -> dict[str, Any]:
        async with ctx.bitbucket(workspace) as client:
            return await client.add_pull_request_comment(
                repo_slug, pr_id, text, path=file_path, line=line
            )

    ctx.emit(run(_run()))


@pr.command("update-comment")
@click.argument("repo_slug")
@click.argument("pr_id", type=int)
@click.argument("comment_id", type=int)
@click.argument("text")
@workspace_option
@pass_context
def update_pull_request_comment(
    ctx: AppContext,
    repo_slug: str,
    pr_id: int,
    comment_id: int,
    text: str,
    workspace: str | None,
) -> None:
    """Replace the text of a comment."""

    async def _run() -> dict[str, Any]:
        async with ctx.bitbucket(workspace) as client:
            return await client.update_pull_request_comment(repo_slug, pr_id, comment_id, text)

    ctx.emit(run(_run()))


@pr.command("delete-comment")
@click.argument("repo_slug")
@click.argument("pr_id", type=int)
@click.argument("comment_id", type=int)
@workspace_option
@pass_context
def delete_pull_request_comment(
    ctx: AppContext, repo_slug: str, pr_id: int, comment_id: int, workspace: str | None
) -> None:
    """Delete a comment."""

    async def _run() -> None:
        async with ctx.bitbucket(workspace) as client:
            await client.delete_pull_request_comment(repo_slug, pr_id, comment_id)

    run(_run())
    ctx.emit({"success": True, "message": f"Comment {comment_id} deleted"})


def _set_resolved(
    ctx: AppContext,
    repo_slug: str,
    pr_id: int,
    comment_id: int,
    workspace: str | None,
    resolved: bool,
) -> None:
    async def _run() -> dict[str, Any]:
        async with ctx.bitbucket(workspace) as client:
            return await client.resolve_pull_request_comment(
                repo_slug, pr_id, comment_id, resolved=resolved
            )

    ctx.emit(run(_run()))


@pr.command("resolve-comment")
@click.argument("repo_slug")
@click.argument("pr_id", type=int)
@click.argument("comment_id", type=int)
@workspace_option
@pass_context
def resolve_pull_request_comment(
    ctx: AppContext, repo_slug: str, pr_id: int, comment_id: int, workspace: str | None
) -> None:
    """Resolve a comment thread."""
    _set_resolved(ctx, repo_slug, pr_id, comment_id, workspace, resolved=True)


@pr.command("reopen-comment")
@click.argument("repo_slug")
@click.argument("pr_id", type=int)
@click.argument("comment_id", type=int)
@workspace_option
@pass_context
def reopen_pull_request_comment(
    ctx: AppContext, repo_slug: str, pr_id: int, comment_id: int, workspace: str | None
) -> None:
    """Reopen a resolved comment thread."""
    _set_resolved(ctx, repo_slug, pr_id, comment_id, workspace, resolved=False)
