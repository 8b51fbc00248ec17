"""Recognisers for Mermaid directive lines.

A directive controls how a diagram is rendered (theme, config block, layout
header) rather than what it contains. The splicer relies on these helpers to
find and deduplicate them inside a buffer.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple


class DiagramKind(str, Enum):
    ER = "ER"
    DFD = "DFD"
    UNTITLED = "Untitled"


class SnippetKind(str, Enum):
    THEME = "theme"
    CONFIG = "config"
    LAYOUT = "layout"
    COMMENT = "comment"
    CONTENT = "content"


SINGLETON_KINDS = (SnippetKind.THEME, SnippetKind.CONFIG, SnippetKind.LAYOUT)

_THEME_RE = re.compile(r"""^%%\{\s*init\s*:\s*\{\s*['"]theme['"]\s*:""", re.IGNORECASE)
_THEME_NAME_RE = re.compile(r"""['"]theme['"]\s*:\s*['"]([^'"]*)['"]""", re.IGNORECASE)
_CONFIG_START = "%% @config"
_DIRECTIONS = "TD|TB|LR|RL|BT"


@dataclass(frozen=True)
class KindProfile:
    """Per-kind header keyword and fallback buffers."""

    kind: DiagramKind
    keyword: str
    default_header: str
    minimal_content: str
    layout_re: re.Pattern[str]
    header_re: re.Pattern[str]


PROFILES = {
    DiagramKind.ER: KindProfile(
        kind=DiagramKind.ER,
        keyword="erDiagram",
        default_header="erDiagram",
        minimal_content="erDiagram\n",
        layout_re=re.compile(rf"^erDiagram(\s+({_DIRECTIONS}))?\s*;?$", re.IGNORECASE),
        header_re=re.compile(r"^erDiagram\b", re.IGNORECASE),
    ),
    DiagramKind.DFD: KindProfile(
        kind=DiagramKind.DFD,
        keyword="graph",
        default_header="graph TD",
        minimal_content="graph TD\n",
        layout_re=re.compile(rf"^(graph|flowchart)(\s+({_DIRECTIONS}))?\s*;?$", re.IGNORECASE),
        header_re=re.compile(r"^(graph|flowchart)\b", re.IGNORECASE),
    ),
}


def profile_for(kind: DiagramKind | str) -> KindProfile:
    try:
        return PROFILES[DiagramKind(kind)]
    except (KeyError, ValueError):
        raise ValueError(f"No markup profile for diagram kind: {kind}") from None


def is_theme_line(line: str) -> bool:
    return bool(_THEME_RE.match(line.strip()))


def is_config_start(line: str) -> bool:
    return line.strip().startswith(_CONFIG_START)


def is_layout_line(line: str, profile: KindProfile) -> bool:
    return bool(profile.layout_re.match(line.strip()))


def has_header(lines: Sequence[str], profile: KindProfile) -> bool:
    return any(profile.header_re.match(line.strip()) for line in lines)


def theme_name(directive: str) -> Optional[str]:
    match = _THEME_NAME_RE.search(directive)
    return match.group(1) if match else None


def classify_snippet(snippet: str, profile: KindProfile) -> SnippetKind:
    """Classify a toolbar snippet; theme and config win over plain comments."""
    text = snippet.strip()
    if is_theme_line(text):
        return SnippetKind.THEME
    if is_config_start(text):
        return SnippetKind.CONFIG
    if is_layout_line(text, profile):
        return SnippetKind.LAYOUT
    if text.startswith("%%"):
        return SnippetKind.COMMENT
    return SnippetKind.CONTENT


def find_config_blocks(lines: Sequence[str]) -> List[Tuple[int, int]]:
    """Return inclusive (start, end) line ranges of ``%% @config`` blocks.

    A block ends at the first later line whose stripped text ends with ``%%``.
    An unterminated block covers only its start line.
    """
    blocks: List[Tuple[int, int]] = []
    i = 0
    while i < len(lines):
        if not is_config_start(lines[i]):
            i += 1
            continue
        end = i
        start_text = lines[i].strip()
        # "%% @config {...} %%" on one line closes itself
        if start_text == _CONFIG_START or not start_text.endswith("%%"):
            for j in range(i + 1, len(lines)):
                if lines[j].strip().endswith("%%"):
                    end = j
                    break
        blocks.append((i, end))
        i = end + 1
    return blocks
