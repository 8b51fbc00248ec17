"""Cheap syntax check run before a buffer is sent to the renderer."""
from __future__ import annotations

import re

from modelflow.editor.directives import find_config_blocks, is_config_start
from modelflow.renderers.errors import RenderError


MERMAID_DIAGRAM_RE = re.compile(
    r"^\s*(graph|flowchart|sequenceDiagram|classDiagram|stateDiagram|erDiagram|journey|gantt|pie|mindmap|timeline)",
    re.IGNORECASE,
)


def strip_leading_directives(markup: str) -> str:
    """Drop leading ``%% ... %%`` directives and ``%%`` comment lines.

    Raises RenderError when a multi-line ``%%{`` directive never closes.
    """
    lines = (markup or "").strip().split("\n")
    i = 0
    while i < len(lines):
        stripped = lines[i].strip()
        if not stripped:
            i += 1
            continue
        if not stripped.startswith("%%"):
            break
        if stripped.startswith("%%{") and "}%%" not in stripped:
            # multi-line init directive
            while i < len(lines) and "}%%" not in lines[i]:
                i += 1
            if i == len(lines):
                raise RenderError("Unterminated init directive")
        elif is_config_start(stripped):
            _, end = find_config_blocks(lines[i:])[0]
            i += end
        i += 1
    return "\n".join(lines[i:]).strip()


def preflight_check(markup: str) -> str:
    """Return the markup unchanged, or raise RenderError when it cannot render."""
    if not (markup or "").strip():
        raise RenderError("Diagram markup is empty")
    body = strip_leading_directives(markup)
    if body and not MERMAID_DIAGRAM_RE.match(body):
        preview = body[:100]
        raise RenderError(
            "Content does not appear to be valid Mermaid syntax after initial directives. "
            f"Ensure it includes a valid diagram type (e.g. 'graph TD', 'erDiagram'). Got: {preview}"
        )
    return markup
