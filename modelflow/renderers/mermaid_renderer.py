"""Mermaid renderer front door: preflight, then the configured backend."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from modelflow.renderers.docker_client import render_mermaid_cli
from modelflow.renderers.errors import RenderError
from modelflow.renderers.kroki_client import render_kroki
from modelflow.renderers.preflight import preflight_check
from modelflow.utils.config import settings

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("svg", "png")


def _backend(name: str) -> Optional[Callable[[str, str], bytes]]:
    if name == "kroki":
        return render_kroki
    if name == "docker":
        return render_mermaid_cli
    return None


def _render(mermaid_text: str, output_format: str) -> bytes:
    if output_format not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported render format: {output_format}")
    preflight_check(mermaid_text)
    backend = _backend(settings.renderer_backend)
    if backend is None:
        raise RenderError(f"Unknown renderer backend: {settings.renderer_backend}")
    logger.debug("Rendering %d chars of Mermaid to %s via %s", len(mermaid_text), output_format, settings.renderer_backend)
    return backend(mermaid_text, output_format)


def render_mermaid_svg(mermaid_text: str) -> str:
    data = _render(mermaid_text, "svg")
    svg_text = data.decode("utf-8", errors="replace")
    if "<svg" not in svg_text:
        raise RenderError("Renderer did not return an SVG document")
    return svg_text


def render_mermaid_png(mermaid_text: str) -> bytes:
    data = _render(mermaid_text, "png")
    if not data.startswith(b"\x89PNG"):
        raise RenderError("Renderer did not return a PNG image")
    return data
