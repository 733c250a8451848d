"""Render command results as JSON, compact JSON or human-readable text."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
from pydantic import BaseModel

from atlassian_cli.jira.adf import adf_to_text

FORMATS = ("json", "plain", "minimal")


def _jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(data, list):
        return [_jsonable(item) for item in data]
    return data


def render(data: Any, fmt: str = "json") -> str:
    data = _jsonable(data)
    if fmt == "json":
        return json.dumps(data, indent=2, ensure_ascii=False)
    if fmt == "minimal":
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    if fmt == "plain":
        if isinstance(data, list):
            return "\n---\n".join(format_item(item) for item in data)
        return format_item(data)
    raise click.BadParameter(f"Unknown format '{fmt}'. Use one of: {', '.join(FORMATS)}")


def emit(data: Any, fmt: str = "json", path: str | None = None) -> None:
    """Write rendered output to ``path``, or to stdout."""
    emit_text(render(data, fmt), path)


def emit_text(text: str, path: str | None = None) -> None:
    if path:
        Path(path).write_text(text, encoding="utf-8")
    else:
        click.echo(text)


def filter_diff_by_file(diff: str, file_path: str) -> str:
    """Keep only the sections of a unified diff whose header mentions ``file_path``."""
    kept: list[str] = []
    keep = False
    for line in diff.split("\n"):
        if line.startswith("diff --git"):
            keep = file_path in line
        if keep:
            kept.append(line)
    return "\n".join(kept)


def limit_lines(text: str, max_lines: int) -> str:
    lines = text.split("\n")
    if len(lines) <= max_lines:
        return text
    return "\n".join(lines[:max_lines]) + f"\n... ({len(lines) - max_lines} more lines)"


def format_item(item: Any) -> str:
    if isinstance(item, str):
        return item
    if not isinstance(item, dict):
        return "" if item is None else str(item)

    if "key" in item and "fields" in item:
        return _format_issue(item)
    if "author" in item and "body" in item and "created" in item:
        return _format_comment(item)
    if isinstance(item.get("issues"), list):
        issues = item["issues"]
        header = f"Showing {len(issues)} issues"
        if item.get("total") is not None:
            header = f"Showing {len(issues)} of {item['total']} issues"
        elif item.get("nextPageToken"):
            header += f" (next page: {item['nextPageToken']})"
        return "\n\n".join([header, "\n---\n".join(_format_issue(i) for i in issues)])

    return "\n".join(
        f"{k}: {json.dumps(v, ensure_ascii=False) if isinstance(v, (dict, list)) else v}"
        for k, v in item.items()
        if v is not None
    )


def _name(value: Any, key: str = "name", default: str = "None") -> str:
    if isinstance(value, dict):
        return value.get(key) or default
    return default


def _format_issue(issue: dict[str, Any]) -> str:
    f = issue.get("fields") or {}
    lines = [
        f"{issue.get('key')} {f.get('summary', '')}",
        f"Status: {_name(f.get('status'))} | Priority: {_name(f.get('priority'))}"
        f" | Type: {_name(f.get('issuetype'))}",
        f"Project: {_name(f.get('project'), 'key')}",
        f"Assignee: {_name(f.get('assignee'), 'displayName', 'Unassigned')}",
        f"Reporter: {_name(f.get('reporter'), 'displayName', 'Unknown')}",
    ]
    if f.get("labels"):
        lines.append(f"Labels: {', '.join(f['labels'])}")
    lines.append(f"Created: {f.get('created')} | Updated: {f.get('updated')}")
    if f.get("description"):
        lines.extend(["", adf_to_text(f["description"])])
    return "\n".join(lines)


def _format_comment(comment: dict[str, Any]) -> str:
    author = _name(comment.get("author"), "displayName", "Unknown")
    return f"{author} ({comment.get('created')}):\n{adf_to_text(comment.get('body'))}"
