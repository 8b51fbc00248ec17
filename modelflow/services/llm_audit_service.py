"""LLM audit logging service."""
from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession

from modelflow.db import SessionLocal
from modelflow.db_models import LlmAudit

logger = logging.getLogger(__name__)

# image payloads are replaced by this marker before they reach the audit table
_IMAGE_PLACEHOLDER = "<image omitted>"


def _coerce_uuid(value: str | UUID | None) -> UUID | None:
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _normalize_content(content: Any) -> Any:
    if not isinstance(content, list):
        return content
    parts = []
    for part in content:
        if isinstance(part, dict) and part.get("type") == "image_url":
            parts.append({"type": "image_url", "image_url": _IMAGE_PLACEHOLDER})
        else:
            parts.append(part)
    return parts


def _normalize_messages(messages: list[dict] | None) -> list[dict] | None:
    if not messages:
        return None
    normalized: list[dict] = []
    for msg in messages:
        if not isinstance(msg, dict):
            continue
        normalized.append({"role": msg.get("role"), "content": _normalize_content(msg.get("content"))})
    return normalized or None


def _extract_response_fields(response: Any) -> tuple[str | None, dict | None]:
    if response is None:
        return None, None
    text = None
    choices = getattr(response, "choices", None) or []
    if choices:
        message = getattr(choices[0], "message", None)
        text = getattr(message, "content", None)
    usage = None
    usage_obj = getattr(response, "usage", None)
    if usage_obj is not None:
        usage = usage_obj.model_dump() if hasattr(usage_obj, "model_dump") else dict(usage_obj)
    return text, usage


def record_llm_audit(
    db: DbSession | None,
    *,
    workspace_id: str | UUID | None = None,
    tab_id: str | UUID | None = None,
    tool_name: str,
    model: str | None = None,
    messages: list[dict] | None = None,
    response: Any | None = None,
    error: str | None = None,
) -> None:
    """Store one model call. Audit failures are logged and never raised."""
    text, usage = _extract_response_fields(response)
    audit = LlmAudit(
        workspace_id=_coerce_uuid(workspace_id),
        tab_id=_coerce_uuid(tab_id),
        tool_name=tool_name,
        model=model,
        messages=_normalize_messages(messages),
        response_text=text,
        usage=usage,
        error=error,
    )

    owns_session = db is None
    db_session = SessionLocal() if owns_session else db
    try:
        db_session.add(audit)
        db_session.commit()
    except SQLAlchemyError:
        db_session.rollback()
        logger.warning("Failed to record LLM audit for %s", tool_name, exc_info=True)
    finally:
        if owns_session:
            db_session.close()
