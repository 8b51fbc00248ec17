"""Export a diagram buffer as .mmd source, SVG or PNG."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from modelflow.renderers.mermaid_renderer import render_mermaid_png, render_mermaid_svg
from modelflow.utils.config import settings
from modelflow.utils.file_utils import ensure_dir, export_filename


EXPORT_FORMATS = {
    "mmd": "text/plain; charset=utf-8",
    "svg": "image/svg+xml; charset=utf-8",
    "png": "image/png",
}


class ExportError(ValueError):
    """Raised when there is nothing to export or the format is unknown."""


@dataclass(frozen=True)
class ExportedFile:
    filename: str
    media_type: str
    data: bytes


def export_diagram(name: Optional[str], content: Optional[str], fmt: str) -> ExportedFile:
    fmt = (fmt or "").lower().lstrip(".")
    if fmt not in EXPORT_FORMATS:
        raise ExportError(f"Unsupported export format: {fmt}")
    if not content or not content.strip():
        raise ExportError("No diagram content to export.")

    if fmt == "mmd":
        data = content.encode("utf-8")
    elif fmt == "svg":
        data = render_mermaid_svg(content).encode("utf-8")
    else:
        data = render_mermaid_png(content)
    return ExportedFile(filename=export_filename(name, fmt), media_type=EXPORT_FORMATS[fmt], data=data)


def save_export(exported: ExportedFile, output_dir: Optional[str] = None) -> Path:
    """Write an export under the output directory and return its path."""
    target_dir = ensure_dir(output_dir or settings.output_dir)
    path = target_dir / exported.filename
    path.write_bytes(exported.data)
    return path
