"""Issue commands: CRUD, workflow, comments, links, labels, worklogs, watchers and archive."""

from __future__ import annotations

from typing import Any

import click

from atlassian_cli.cli.context import AppContext, pass_context, run
from atlassian_cli.config import get_default_project
from atlassian_cli.jira.adf import text_to_adf
from atlassian_cli.jira.client import task_id_from_location
from atlassian_cli.tasks.poller import poll_task


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@click.group()
def issue() -> None:
    """Jira issue operations."""


@issue.command("get")
@click.argument("key")
@click.option("--expand", help="Comma-separated expansions (e.g. changelog,renderedFields).")
@pass_context
def get_issue(ctx: AppContext, key: str, expand: str | None) -> None:
    """Get an issue by key."""

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.get_issue(key, expand.split(",") if expand else None)

    ctx.emit(run(_run()))


@issue.command("create")
@click.option("-p", "--project", help="Project key. Defaults to JIRA_PROJECT or the config default.")
@click.option("-s", "--summary", required=True, help="Issue summary.")
@click.option("-t", "--type", "issue_type", default="Task", show_default=True, help="Issue type.")
@click.option("-d", "--description", default="", help="Plain text description.")
@click.option("--priority", help="Priority name (e.g. High).")
@click.option("--labels", help="Comma-separated labels.")
@click.option("--assignee", help="Assignee account ID.")
@pass_context
def create_issue(
    ctx: AppContext,
    project: str | None,
    summary: str,
    issue_type: str,
    description: str,
    priority: str | None,
    labels: str | None,
    assignee: str | None,
) -> None:
    """Create an issue."""
    project = project or get_default_project()
    if not project:
        raise click.UsageError("No project given. Pass --project or set JIRA_PROJECT.")

    fields: dict[str, Any] = {
        "project": {"key": project},
        "summary": summary,
        "issuetype": {"name": issue_type},
    }
    if description:
        fields["description"] = text_to_adf(description)
    if priority:
        fields["priority"] = {"name": priority}
    if labels:
        fields["labels"] = _split_csv(labels)
    if assignee:
        fields["assignee"] = {"accountId": assignee}

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.create_issue(fields)

    ctx.emit(run(_run()))


@issue.command("delete")
@click.argument("key")
@click.option("--subtasks", is_flag=True, help="Also delete subtasks.")
@pass_context
def delete_issue(ctx: AppContext, key: str, subtasks: bool) -> None:
    """Delete an issue. This cannot be undone."""

    async def _run() -> None:
        async with ctx.jira() as client:
            await client.delete_issue(key, delete_subtasks=subtasks)

    run(_run())
    ctx.emit({"success": True, "key": key, "message": "Issue deleted"})


@issue.command("assign")
@click.argument("key")
@click.argument("account_id", required=False)
@click.option("--me", is_flag=True, help="Assign to the authenticated user.")
@pass_context
def assign_issue(ctx: AppContext, key: str, account_id: str | None, me: bool) -> None:
    """Assign an issue. Omit ACCOUNT_ID to unassign."""

    async def _run() -> str | None:
        async with ctx.jira() as client:
            target = account_id
            if me:
                target = (await client.get_current_user())["accountId"]
            await client.assign_issue(key, target)
            return target

    assigned = run(_run())
    message = f"Assigned to {assigned}" if assigned else "Unassigned"
    ctx.emit({"success": True, "key": key, "message": message})


@issue.command("transitions")
@click.argument("key")
@pass_context
def list_transitions(ctx: AppContext, key: str) -> None:
    """List the workflow transitions available for an issue."""

    async def _run() -> list[dict[str, Any]]:
        async with ctx.jira() as client:
            result = await client.get_transitions(key)
            return result.get("transitions", [])

    ctx.emit(run(_run()))


def find_transition(transitions: list[dict[str, Any]], wanted: str) -> dict[str, Any] | None:
    """Match a transition by id, by its name, or by the name of its target status."""
    lowered = wanted.lower()
    for transition in transitions:
        if transition.get("id") == wanted:
            return transition
    for transition in transitions:
        target = (transition.get("to") or {}).get("name", "")
        if transition.get("name", "").lower() == lowered or target.lower() == lowered:
            return transition
    return None


@issue.command("transition")
@click.argument("key")
@click.argument("transition")
@pass_context
def transition_issue(ctx: AppContext, key: str, transition: str) -> None:
    """Move an issue through a workflow transition, given by id or by name."""

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            available = (await client.get_transitions(key)).get("transitions", [])
            match = find_transition(available, transition)
            if match is None:
                names = ", ".join(t.get("name", "") for t in available)
                raise click.ClickException(
                    f"Transition not found: {transition}. Available: {names}"
                )
            await client.transition_issue(key, match["id"])
            return match

    match = run(_run())
    target = (match.get("to") or {}).get("name") or match.get("name")
    ctx.emit({"success": True, "key": key, "message": f"Transitioned to {target}"})


@issue.command("comments")
@click.argument("key")
@click.option("-l", "--limit", default=50, show_default=True, help="Maximum comments.")
@click.option("--start", default=0, help="Pagination offset.")
@pass_context
def list_comments(ctx: AppContext, key: str, limit: int, start: int) -> None:
    """List comments on an issue."""

    async def _run() -> list[dict[str, Any]]:
        async with ctx.jira() as client:
            result = await client.get_comments(key, max_results=limit, start_at=start)
            return result.get("comments", [])

    ctx.emit(run(_run()))


@issue.command("comment")
@click.argument("key")
@click.argument("text")
@pass_context
def add_comment(ctx: AppContext, key: str, text: str) -> None:
    """Add a plain text comment to an issue."""

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.add_comment(key, text_to_adf(text))

    ctx.emit(run(_run()))


@issue.command("archive")
@click.option("-j", "--jql", help="JQL query selecting the issues to archive.")
@click.option("--issues", help="Comma-separated issue keys to archive.")
@click.option("--wait", is_flag=True, help="Poll the archive task until it finishes.")
@pass_context
def archive_issues(ctx: AppContext, jql: str | None, issues: str | None, wait: bool) -> None:
    """Archive issues (runs as an async Jira task)."""
    if not jql and not issues:
        raise click.UsageError("Either --jql or --issues is required.")

    async def _run() -> Any:
        async with ctx.jira() as client:
            if jql:
                task_id = await client.archive_issues_by_jql(jql)
            else:
                keys = _split_csv(issues)
                response = await client.archive_issues(keys)
                if not (isinstance(response, dict) and "taskId" in response):
                    # Archived synchronously; nothing to poll.
                    return response
                task_id = task_id_from_location(response)

            if not wait:
                return {
                    "taskId": task_id,
                    "status": "ENQUEUED",
                    "message": "Use 'jc task get' to check status",
                }
            return await poll_task(
                client,
                task_id,
                interval=ctx.settings.poll_interval,
                max_wait=ctx.settings.poll_max_wait,
                on_progress=ctx.progress,
            )

    result = run(_run())
    if wait and ctx.fmt != "json":
        click.echo(err=True)
    ctx.emit(result)


def scoped_jql(jql: str | None, project: str | None) -> str:
    """Restrict ``jql`` to ``project`` unless the query already names a project."""
    jql = jql or ""
    if project and "project" not in jql.lower():
        jql = f"project = {project} AND ({jql})" if jql else f"project = {project}"
    return jql or "ORDER BY updated DESC"


@issue.command("list")
@click.option("-j", "--jql", help="JQL query string.")
@click.option("-p", "--project", help="Project key. Defaults to JIRA_PROJECT or the config default.")
@click.option("-l", "--limit", default=50, show_default=True, help="Maximum results.")
@click.option("--page-token", help="nextPageToken from a previous page.")
@pass_context
def list_issues(
    ctx: AppContext, jql: str | None, project: str | None, limit: int, page_token: str | None
) -> None:
    """List issues, scoped to the default project unless the JQL names one."""
    query = scoped_jql(jql, project or get_default_project())

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.search_issues(
                query, max_results=limit, next_page_token=page_token
            )

    ctx.emit(run(_run()))


@issue.command("edit")
@click.argument("key")
@click.option("-s", "--summary", help="New summary.")
@click.option("-d", "--description", help="New plain text description.")
@click.option("--priority", help="New priority name.")
@click.option("--labels", help="Replacement comma-separated labels.")
@pass_context
def edit_issue(
    ctx: AppContext,
    key: str,
    summary: str | None,
    description: str | None,
    priority: str | None,
    labels: str | None,
) -> None:
    """Update fields of an existing issue."""
    fields: dict[str, Any] = {}
    if summary:
        fields["summary"] = summary
    if description:
        fields["description"] = text_to_adf(description)
    if priority:
        fields["priority"] = {"name": priority}
    if labels:
        fields["labels"] = _split_csv(labels)
    if not fields:
        raise click.UsageError(
            "No fields to update. Use --summary, --description, --priority or --labels."
        )

    async def _run() -> None:
        async with ctx.jira() as client:
            await client.update_issue(key, fields)

    run(_run())
    ctx.emit({"success": True, "key": key, "message": "Issue updated"})


# ----------------------------------------------------------------------
# Links
# ----------------------------------------------------------------------


@issue.command("link-types")
@pass_context
def list_link_types(ctx: AppContext) -> None:
    """List the issue link types of the site."""

    async def _run() -> list[dict[str, Any]]:
        async with ctx.jira() as client:
            return await client.get_link_types()

    ctx.emit(run(_run()))


@issue.command("links")
@click.argument("key")
@pass_context
def list_links(ctx: AppContext, key: str) -> None:
    """List the links of an issue."""

    async def _run() -> list[dict[str, Any]]:
        async with ctx.jira() as client:
            data = await client.get_issue(key)
            return (data.get("fields") or {}).get("issuelinks") or []

    ctx.emit(run(_run()))


@issue.command("link")
@click.argument("outward_key")
@click.argument("inward_key")
@click.argument("link_type")
@pass_context
def link_issues(ctx: AppContext, outward_key: str, inward_key: str, link_type: str) -> None:
    """Link two issues, e.g. ``jc issue link PROJ-1 PROJ-2 Blocks``."""

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            types = await client.get_link_types()
            match = next((t for t in types if t["name"].lower() == link_type.lower()), None)
            if match is None:
                names = ", ".join(t["name"] for t in types)
                raise click.ClickException(
                    f"Link type not found: {link_type}. Available: {names}"
                )
            await client.create_link(match["name"], outward_key, inward_key)
            return match

    match = run(_run())
    ctx.emit(
        {
            "success": True,
            "message": f"Linked {outward_key} {match.get('outward', match['name'])} {inward_key}",
            "outwardIssue": outward_key,
            "inwardIssue": inward_key,
            "linkType": match["name"],
        }
    )


@issue.command("unlink")
@click.argument("link_id")
@pass_context
def unlink_issues(ctx: AppContext, link_id: str) -> None:
    """Delete an issue link by id."""

    async def _run() -> None:
        async with ctx.jira() as client:
            await client.delete_link(link_id)

    run(_run())
    ctx.emit({"success": True, "message": f"Link {link_id} deleted"})


# ----------------------------------------------------------------------
# Labels
# ----------------------------------------------------------------------


async def _change_labels(ctx: AppContext, key: str, label: str, add: bool) -> str:
    async with ctx.jira() as client:
        data = await client.get_issue(key)
        current = list((data.get("fields") or {}).get("labels") or [])
        if add and label in current:
            return f'Label "{label}" already exists'
        if not add and label not in current:
            return f'Label "{label}" not found on issue'
        updated = current + [label] if add else [x for x in current if x != label]
        await client.update_issue(key, {"labels": updated})
        return f'{"Added" if add else "Removed"} label "{label}"'


@issue.command("add-label")
@click.argument("key")
@click.argument("label")
@pass_context
def add_label(ctx: AppContext, key: str, label: str) -> None:
    """Add a label to an issue, keeping its other labels."""
    message = run(_change_labels(ctx, key, label, add=True))
    ctx.emit({"success": True, "key": key, "message": message})


@issue.command("remove-label")
@click.argument("key")
@click.argument("label")
@pass_context
def remove_label(ctx: AppContext, key: str, label: str) -> None:
    """Remove a label from an issue."""
    message = run(_change_labels(ctx, key, label, add=False))
    ctx.emit({"success": True, "key": key, "message": message})


# ----------------------------------------------------------------------
# Worklogs
# ----------------------------------------------------------------------


@issue.command("worklogs")
@click.argument("key")
@click.option("-l", "--limit", default=50, show_default=True, help="Maximum worklogs.")
@pass_context
def list_worklogs(ctx: AppContext, key: str, limit: int) -> None:
    """List worklogs on an issue."""

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.get_worklogs(key, max_results=limit)

    ctx.emit(run(_run()))


@issue.command("worklog")
@click.argument("key")
@click.option("-t", "--time", "time_spent", required=True, help="Time spent (e.g. 1h 30m, 2d).")
@click.option("-c", "--comment", help="Worklog comment.")
@click.option("-s", "--started", help="Start time, e.g. 2024-05-01T09:00:00.000+0000.")
@pass_context
def add_worklog(
    ctx: AppContext, key: str, time_spent: str, comment: str | None, started: str | None
) -> None:
    """Log work on an issue."""

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.add_worklog(
                key,
                time_spent,
                comment=text_to_adf(comment) if comment else None,
                started=started,
            )

    ctx.emit(run(_run()))


@issue.command("worklog-edit")
@click.argument("key")
@click.argument("worklog_id")
@click.option("-t", "--time", "time_spent", help="New time spent.")
@click.option("-c", "--comment", help="New worklog comment.")
@click.option("-s", "--started", help="New start time.")
@pass_context
def edit_worklog(
    ctx: AppContext,
    key: str,
    worklog_id: str,
    time_spent: str | None,
    comment: str | None,
    started: str | None,
) -> None:
    """Update a worklog."""
    changes: dict[str, Any] = {}
    if time_spent:
        changes["timeSpent"] = time_spent
    if comment:
        changes["comment"] = text_to_adf(comment)
    if started:
        changes["started"] = started
    if not changes:
        raise click.UsageError("No fields to update. Use --time, --comment or --started.")

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.update_worklog(key, worklog_id, changes)

    ctx.emit(run(_run()))


@issue.command("worklog-delete")
@click.argument("key")
@click.argument("worklog_id")
@pass_context
def delete_worklog(ctx: AppContext, key: str, worklog_id: str) -> None:
    """Delete a worklog."""

    async def _run() -> None:
        async with ctx.jira() as client:
            await client.delete_worklog(key, worklog_id)

    run(_run())
    ctx.emit({"success": True, "key": key, "worklogId": worklog_id, "message": "Worklog deleted"})


# ----------------------------------------------------------------------
# Watchers
# ----------------------------------------------------------------------


@issue.command("watchers")
@click.argument("key")
@pass_context
def list_watchers(ctx: AppContext, key: str) -> None:
    """List the watchers of an issue."""

    async def _run() -> dict[str, Any]:
        async with ctx.jira() as client:
            return await client.get_watchers(key)

    ctx.emit(run(_run()))


async def _change_watch(ctx: AppContext, key: str, account_id: str | None, watch: bool) -> None:
    async with ctx.jira() as client:
        if not account_id:
            account_id = (await client.get_current_user())["accountId"]
        if watch:
            await client.add_watcher(key, account_id)
        else:
            await client.remove_watcher(key, account_id)


@issue.command("watch")
@click.argument("key")
@click.option("--user", "account_id", help="Account id to add. Defaults to yourself.")
@pass_context
def watch_issue(ctx: AppContext, key: str, account_id: str | None) -> None:
    """Start watching an issue."""
    run(_change_watch(ctx, key, account_id, watch=True))
    ctx.emit({"success": True, "key": key, "message": "Now watching issue"})


@issue.command("unwatch")
@click.argument("key")
@click.option("--user", "account_id", help="Account id to remove. Defaults to yourself.")
@pass_context
def unwatch_issue(ctx: AppContext, key: str, account_id: str | None) -> None:
    """Stop watching an issue."""
    run(_change_watch(ctx, key, account_id, watch=False))
    ctx.emit({"success": True, "key": key, "message": "Stopped watching issue"})
