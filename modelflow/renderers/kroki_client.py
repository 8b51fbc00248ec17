"""Render Mermaid text through a Kroki server."""
from __future__ import annotations

import base64
import zlib

import requests

from modelflow.renderers.errors import RenderError
from modelflow.utils.config import settings


_MAX_GET_URL_LEN = 2000


def kroki_encode(text: str) -> str:
    """Deflate and base64url-encode diagram text for a Kroki GET URL."""
    compressed = zlib.compress(text.encode("utf-8"), 9)
    return base64.urlsafe_b64encode(compressed).decode("ascii")


def _endpoint(output_format: str) -> str:
    return f"{settings.kroki_url.rstrip('/')}/mermaid/{output_format}"


def _post(url: str, mermaid_text: str) -> requests.Response:
    headers = {"Content-Type": "text/plain; charset=utf-8"}
    return requests.post(url, data=mermaid_text.encode("utf-8"), headers=headers, timeout=settings.render_timeout)


def _raise_for_status(response: requests.Response, context: str) -> None:
    if response.status_code >= 400:
        snippet = (response.text or "").strip()
        if len(snippet) > 300:
            snippet = snippet[:300] + "..."
        raise RenderError(f"{context} failed ({response.status_code})", detail=snippet)


def render_kroki(mermaid_text: str, output_format: str) -> bytes:
    """Fetch ``svg`` or ``png`` bytes; short markup uses GET, long markup POST."""
    base = _endpoint(output_format)
    url = f"{base}/{kroki_encode(mermaid_text)}"
    try:
        if len(url) > _MAX_GET_URL_LEN:
            response = _post(base, mermaid_text)
            _raise_for_status(response, "Kroki POST")
        else:
            response = requests.get(url, timeout=settings.render_timeout)
            if response.status_code == 414:
                response = _post(base, mermaid_text)
                _raise_for_status(response, "Kroki POST")
            else:
                _raise_for_status(response, "Kroki GET")
    except requests.RequestException as exc:
        raise RenderError(f"Renderer unavailable: {exc}") from exc
    return response.content
