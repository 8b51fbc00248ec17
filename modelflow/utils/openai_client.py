"""Shared OpenAI client for the diagram assistant."""
from __future__ import annotations

import atexit
from functools import lru_cache

import httpx
from openai import OpenAI

from modelflow.utils.config import settings


def _build_http_client() -> httpx.Client:
    client = httpx.Client(
        timeout=httpx.Timeout(settings.ai_timeout, connect=10.0),
        limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
        follow_redirects=True,
    )
    atexit.register(client.close)
    return client


@lru_cache(maxsize=1)
def get_openai_client() -> OpenAI:
    """Return the process-wide client; raises when no API key is configured."""
    if not settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY is not set")
    kwargs = {"api_key": settings.openai_api_key, "http_client": _build_http_client()}
    if settings.openai_base_url:
        kwargs["base_url"] = settings.openai_base_url
    client = OpenAI(**kwargs)
    atexit.register(client.close)
    return client


def reset_openai_client() -> None:
    """Drop the cached client so the next call picks up new settings."""
    get_openai_client.cache_clear()
