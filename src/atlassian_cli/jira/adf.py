"""Atlassian Document Format (ADF) helpers.

Jira REST API v3 takes descriptions and comment bodies as ADF documents.
Commands accept plain text and plain output flattens ADF back to text.
"""

from __future__ import annotations

import re
from typing import Any

_BLOCKS = {"paragraph", "heading", "codeBlock", "listItem", "tableRow"}


def text_to_adf(text: str) -> dict[str, Any]:
    """Wrap plain text in an ADF document, one paragraph per blank-line block."""
    blocks = re.split(r"\n\s*\n", text.strip()) if text.strip() else [""]
    content = []
    for block in blocks:
        inline: list[dict[str, Any]] = []
        for i, line in enumerate(block.split("\n")):
            if i:
                inline.append({"type": "hardBreak"})
            if line:
                inline.append({"type": "text", "text": line})
        content.append({"type": "paragraph", "content": inline})
    return {"type": "doc", "version": 1, "content": content}


def adf_to_text(adf: Any) -> str:
    """Flatten an ADF document (or a plain string) into text."""
    if not adf:
        return ""
    if isinstance(adf, str):
        return adf
    if not isinstance(adf, dict):
        return ""
    return _flatten(adf).strip()


def _flatten(node: dict[str, Any]) -> str:
    node_type = node.get("type")
    if node_type == "text":
        return node.get("text", "")
    if node_type == "hardBreak":
        return "\n"
    if node_type == "mention":
        return node.get("attrs", {}).get("text", "")

    children = [_flatten(child) for child in node.get("content", []) if isinstance(child, dict)]
    text = ("\n" if node_type == "doc" else "").join(children)
    if node_type == "listItem":
        text = f"- {text}"
    if node_type in _BLOCKS:
        text = text.rstrip("\n") + "\n"
    return text
