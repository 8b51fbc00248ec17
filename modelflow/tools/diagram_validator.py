"""Validation helpers for AI-supplied Mermaid diagrams."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List

from modelflow.editor.directives import DiagramKind


_MERMAID_BLOCK_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"<\s*script", re.IGNORECASE), "<script>"),
    (re.compile(r"<\s*iframe", re.IGNORECASE), "<iframe>"),
    (re.compile(r"<\s*img", re.IGNORECASE), "<img>"),
    (re.compile(r"javascript:\s*", re.IGNORECASE), "javascript URI"),
    (re.compile(r"\bclick\s+\S+\s+(call|href)\b", re.IGNORECASE), "click handler"),
)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*$")


@dataclass
class DiagramValidationResult:
    kind: str
    sanitized_text: str
    warnings: List[str]
    blocked_tokens: List[str]


class DiagramValidationError(ValueError):
    """Raised when a diagram is empty or contains blocked tokens."""

    def __init__(self, message: str, result: DiagramValidationResult):
        super().__init__(message)
        self.result = result


def _scan_patterns(text: str, patterns: Iterable[tuple[re.Pattern[str], str]]) -> List[str]:
    blocked: List[str] = []
    for pattern, label in patterns:
        if pattern.search(text):
            blocked.append(label)
    return blocked


# Per-shape regexes for simple flowchart node labels.
# Compound shapes ([(, ([, ((, {{, [[, etc.) are excluded via negative lookahead
# so we only match plain [label], {label}, and (label) delimiters.
_RECT_LABEL_RE = re.compile(
    r'(?P<id>[A-Za-z_][A-Za-z0-9_]*)'
    r'\[(?![(\[/{\\>])'
    r'(?P<label>[^\]]+?)'
    r'\]'
)
_DIAMOND_LABEL_RE = re.compile(
    r'(?P<id>[A-Za-z_][A-Za-z0-9_]*)'
    r'\{(?!\{)'
    r'(?P<label>[^\}]+?)'
    r'\}'
)
_ROUNDED_LABEL_RE = re.compile(
    r'(?P<id>[A-Za-z_][A-Za-z0-9_]*)'
    r'\((?![\[(])'
    r'(?P<label>[^\)]+?)'
    r'\)'
)

_MERMAID_SPECIAL_CHARS = re.compile(r'[(){}]')


def _quote_label_if_needed(m: re.Match, open_br: str, close_br: str) -> str:
    label = m.group('label')
    if label.startswith('"') and label.endswith('"'):
        return m.group(0)
    if _MERMAID_SPECIAL_CHARS.search(label):
        safe = label.replace('"', '#quot;')
        return f'{m.group("id")}{open_br}"{safe}"{close_br}'
    return m.group(0)


def _quote_flowchart_labels(line: str) -> str:
    """Wrap node labels containing ``(){}`` in double quotes."""
    line = _RECT_LABEL_RE.sub(lambda m: _quote_label_if_needed(m, '[', ']'), line)
    line = _DIAMOND_LABEL_RE.sub(lambda m: _quote_label_if_needed(m, '{', '}'), line)
    line = _ROUNDED_LABEL_RE.sub(lambda m: _quote_label_if_needed(m, '(', ')'), line)
    return line


def strip_code_fences(text: str, warnings: List[str] | None = None) -> str:
    lines = text.replace("\r", "").split("\n")
    kept = [line for line in lines if not _FENCE_RE.match(line.strip())]
    if len(kept) != len(lines) and warnings is not None:
        warnings.append("Removed markdown code fences")
    return "\n".join(kept)


def _sanitize_mermaid(text: str, kind: DiagramKind, warnings: List[str]) -> str:
    text = strip_code_fences(text, warnings)
    lines = text.split("\n")
    if kind is DiagramKind.DFD:
        # bare "title ..." lines are invalid inside graph/flowchart blocks
        cleaned = [line for line in lines if not re.match(r"^\s*title\s+", line, re.IGNORECASE)]
        if len(cleaned) != len(lines):
            warnings.append("Removed title line")
        lines = [_quote_flowchart_labels(line) for line in cleaned]
    return "\n".join(line.rstrip() for line in lines).strip()


def validate_and_sanitize(diagram_text: str, kind: DiagramKind | str) -> DiagramValidationResult:
    """Validate a model-provided diagram and normalize its contents."""
    diagram_kind = DiagramKind(kind)
    warnings: List[str] = []
    payload = (diagram_text or "").strip()

    if not payload:
        result = DiagramValidationResult(diagram_kind.value, "", warnings, [])
        raise DiagramValidationError("Diagram text is empty", result)

    sanitized = _sanitize_mermaid(payload, diagram_kind, warnings)
    blocked = _scan_patterns(sanitized, _MERMAID_BLOCK_PATTERNS)
    result = DiagramValidationResult(diagram_kind.value, sanitized, warnings, blocked)
    if not sanitized:
        raise DiagramValidationError("Diagram text is empty", result)
    if blocked:
        raise DiagramValidationError("Diagram contains blocked directives", result)
    return result
