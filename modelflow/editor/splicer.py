"""Splice toolbar snippets into a Mermaid buffer.

Theme, config and layout directives are singletons: inserting one replaces
any existing instance and the buffer header is rebuilt as

    theme directive
    %% @config block
    layout line (erDiagram / graph TD)
    ...everything else, in buffer order

Comments and diagram content are appended at the end of the buffer.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from modelflow.editor.directives import (
    SINGLETON_KINDS,
    DiagramKind,
    KindProfile,
    SnippetKind,
    classify_snippet,
    find_config_blocks,
    has_header,
    is_layout_line,
    is_theme_line,
    profile_for,
    theme_name,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpliceResult:
    content: str
    snippet_kind: SnippetKind
    title: str
    message: str


@dataclass
class _Partition:
    themes: List[str]
    config_blocks: List[List[str]]
    layouts: List[str]
    others: List[str]


def _snippet_lines(snippet: str) -> List[str]:
    lines = [line.rstrip() for line in snippet.replace("\r", "").split("\n")]
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


def _partition(lines: Sequence[str], profile: KindProfile) -> _Partition:
    config_starts = {start: end for start, end in find_config_blocks(lines)}
    part = _Partition(themes=[], config_blocks=[], layouts=[], others=[])
    i = 0
    while i < len(lines):
        line = lines[i]
        if i in config_starts:
            end = config_starts[i]
            part.config_blocks.append(list(lines[i : end + 1]))
            i = end + 1
            continue
        if is_theme_line(line):
            part.themes.append(line.strip())
        elif is_layout_line(line, profile):
            part.layouts.append(line.strip())
        else:
            part.others.append(line)
        i += 1
    return part


def _rebuild_header(
    lines: Sequence[str], directive: str, snippet_kind: SnippetKind, profile: KindProfile
) -> List[str]:
    part = _partition(lines, profile)
    header: List[str] = []

    if snippet_kind is SnippetKind.THEME:
        header.append(directive)
    elif part.themes:
        header.append(part.themes[0])

    if snippet_kind is SnippetKind.CONFIG:
        header.extend(_snippet_lines(directive))
    elif part.config_blocks:
        header.extend(part.config_blocks[0])

    if snippet_kind is SnippetKind.LAYOUT:
        header.append(directive)
    elif part.layouts:
        header.append(part.layouts[0])
    elif not has_header(part.others, profile):
        header.append(profile.default_header)

    dropped = max(len(part.themes) - 1, 0) + max(len(part.config_blocks) - 1, 0) + max(len(part.layouts) - 1, 0)
    if dropped:
        logger.debug("Dropped %d duplicate directive(s) while splicing %s", dropped, snippet_kind.value)
    return header + part.others


def _insert_default_header(lines: List[str], profile: KindProfile) -> List[str]:
    insert_at = 0
    for idx, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith("%%") or not stripped:
            insert_at = idx + 1
            continue
        break
    return lines[:insert_at] + [profile.default_header] + lines[insert_at:]


def _append_content(
    lines: Sequence[str], snippet: str, snippet_kind: SnippetKind, profile: KindProfile
) -> List[str]:
    body = list(lines)
    while body and not body[-1].strip():
        body.pop()
    if snippet_kind is SnippetKind.CONTENT and not has_header(body, profile):
        body = _insert_default_header(body, profile)

    if body and snippet_kind is not SnippetKind.COMMENT and not body[-1].rstrip().endswith("{"):
        body.append("")
    body.extend(_snippet_lines(snippet))
    return body


def normalize_buffer(lines: Sequence[str], profile: KindProfile) -> str:
    """Strip trailing whitespace, collapse blank runs, fall back to minimal content."""
    out: List[str] = []
    for line in lines:
        line = line.rstrip()
        if not line.strip():
            if out and out[-1] != "":
                out.append("")
            continue
        out.append(line)
    while out and out[-1] == "":
        out.pop()
    text = "\n".join(out)
    return text if text else profile.minimal_content


def _notice(snippet_kind: SnippetKind, directive: str) -> tuple[str, str]:
    if snippet_kind is SnippetKind.THEME:
        return "Theme Applied", f"Set theme to: {theme_name(directive) or 'selected'}"
    if snippet_kind is SnippetKind.CONFIG:
        return "Config Applied", "Configuration block updated/added."
    if snippet_kind is SnippetKind.LAYOUT:
        return "Layout Applied", f"Diagram layout set to: {directive}"
    if snippet_kind is SnippetKind.COMMENT:
        return "Comment Added", "Comment appended to the diagram."
    return "Snippet Added", "Mermaid code updated."


def splice_snippet(content: Optional[str], snippet: str, kind: DiagramKind | str) -> SpliceResult:
    """Insert ``snippet`` into ``content`` and return the rewritten buffer.

    ``content`` may be empty or None; the kind's minimal content is used in
    that case. Raises ValueError for an empty snippet or an unsupported kind.
    """
    profile = profile_for(kind)
    directive = (snippet or "").strip()
    if not directive:
        raise ValueError("Snippet is empty")

    snippet_kind = classify_snippet(directive, profile)
    source = content if content else profile.minimal_content
    lines = [line.rstrip() for line in source.replace("\r", "").split("\n")]

    if snippet_kind in SINGLETON_KINDS:
        lines = _rebuild_header(lines, directive, snippet_kind, profile)
    else:
        lines = _append_content(lines, snippet, snippet_kind, profile)

    title, message = _notice(snippet_kind, directive)
    return SpliceResult(
        content=normalize_buffer(lines, profile),
        snippet_kind=snippet_kind,
        title=title,
        message=message,
    )
