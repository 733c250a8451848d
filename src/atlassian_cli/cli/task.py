"""Async task commands: get, cancel, wait."""

from __future__ import annotations

import click

from atlassian_cli.cli.context import AppContext, pass_context, run
from atlassian_cli.jira.models import TaskResult
from atlassian_cli.tasks.poller import poll_task


@click.group()
def task() -> None:
    """Jira async task operations."""


@task.command("get")
@click.argument("task_id")
@pass_context
def get_task(ctx: AppContext, task_id: str) -> None:
    """Get the current status of an async task."""

    async def _run() -> TaskResult:
        async with ctx.jira() as client:
            return await client.get_task(task_id)

    ctx.emit(run(_run()))


@task.command("cancel")
@click.argument("task_id")
@pass_context
def cancel_task(ctx: AppContext, task_id: str) -> None:
    """Request cancellation of a running async task."""

    async def _run() -> None:
        async with ctx.jira() as client:
            await client.cancel_task(task_id)

    run(_run())
    ctx.emit({"success": True, "taskId": task_id, "message": "Cancel requested"})


@task.command("wait")
@click.argument("task_id")
@click.option("--interval", type=float, help="Seconds between polls.")
@click.option("--timeout", "max_wait", type=float, help="Give up after this many seconds.")
@pass_context
def wait_task(ctx: AppContext, task_id: str, interval: float | None, max_wait: float | None) -> None:
    """Poll an async task until it completes, fails or is cancelled."""

    async def _run() -> TaskResult:
        async with ctx.jira() as client:
            return await poll_task(
                client,
                task_id,
                interval=ctx.settings.poll_interval if interval is None else interval,
                max_wait=ctx.settings.poll_max_wait if max_wait is None else max_wait,
                on_progress=ctx.progress,
            )

    result = run(_run())
    if ctx.fmt != "json":
        click.echo(err=True)
    ctx.emit(result)
