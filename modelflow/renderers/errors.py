"""Renderer exceptions."""
from __future__ import annotations


class RenderError(RuntimeError):
    """Raised when markup cannot be turned into an image."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.detail = detail
