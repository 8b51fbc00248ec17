"""File utilities."""
from __future__ import annotations

import re
from pathlib import Path


_WHITESPACE_RUN = re.compile(r"\s+")


def ensure_dir(path: str) -> Path:
    """Ensure directory exists and return Path."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def export_filename(display_name: str | None, extension: str) -> str:
    """Build a download name from a tab name: whitespace runs become ``_``."""
    stem = _WHITESPACE_RUN.sub("_", display_name or "")
    if not stem:
        stem = "diagram"
    return f"{stem}.{extension.lstrip('.')}"


def read_markup_file(path: str) -> str:
    """Read a Mermaid source file as UTF-8.

    Raises FileNotFoundError for missing files and ValueError for content that
    is not text (NUL bytes or undecodable data).
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing file: {path}")
    raw = p.read_bytes()
    if b"\x00" in raw[:512]:
        raise ValueError(f"Binary file: {p.name}")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValueError(f"Unable to read text file: {p.name}") from exc


def write_markup_file(path: str, content: str) -> Path:
    p = Path(path)
    if p.parent and str(p.parent) not in ("", "."):
        p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
    return p
