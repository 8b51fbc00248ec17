"""AI orchestration: text-to-diagram, ERD-to-SQL and diagram explanations.

Each operation validates its input, sends one chat completion with a fixed
prompt, and maps the JSON reply back into a small state object. Validation
problems become field errors and model or transport failures become
messages, so callers never have to catch anything to show a result.
"""
from __future__ import annotations

import base64
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, TypeVar
from uuid import UUID

from openai import OpenAIError
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session as DbSession

from modelflow.editor.directives import DiagramKind
from modelflow.renderers.errors import RenderError
from modelflow.renderers.mermaid_renderer import render_mermaid_png
from modelflow.services.llm_audit_service import record_llm_audit
from modelflow.tools.diagram_validator import DiagramValidationError, validate_and_sanitize
from modelflow.utils.config import settings
from modelflow.utils.openai_client import get_openai_client

logger = logging.getLogger(__name__)

GENERATE_DIAGRAM_PROMPT = """You are an expert diagram generator. You will take a text description of a system and generate a diagram of the specified type.

The diagram must be valid Mermaid:
- For ER diagrams start with "erDiagram" and use entity blocks and crow's-foot relationships.
- For DFD diagrams start with "graph TD" and use nodes, labelled arrows and subgraphs.
- Do not wrap the diagram in markdown fences and do not add click handlers or HTML.

Return ONLY JSON matching this schema:
{{"diagramContent": "<mermaid source>"}}

Description: {description}
Diagram Type: {diagram_type}
"""

SQL_CONVERSION_PROMPT = """You are an expert database architect specializing in converting diagrammatic representations to SQL Data Definition Language (DDL).
You will be given Mermaid ERD code. Convert it into SQL DDL statements for PostgreSQL.

Pay close attention to:
- Entities and their attributes.
- Data types: map Mermaid types like string, int, datetime, text, boolean to PostgreSQL types such as VARCHAR(255), INTEGER, TIMESTAMP, TEXT, BOOLEAN.
- Conceptual types like varchar_N or decimal_P_S map to VARCHAR(N) or DECIMAL(P,S).
- Primary keys (PK).
- Foreign keys (FK) and their relationships, as foreign key constraints with ON DELETE/ON UPDATE clauses (pick a sensible default such as ON DELETE CASCADE or ON DELETE SET NULL).
- Comments indicating constraints like UNIQUE (UQ) or NOT NULL (NN).
- Relationship labels, when they help name constraints.

If the Mermaid code cannot be converted, put a helpful message in "error" and leave "sqlCode" empty.

Return ONLY JSON matching this schema:
{{"sqlCode": "<DDL statements>", "error": "<optional error>"}}

Mermaid ERD Code:
{mermaid_code}
"""

EXPLAIN_DIAGRAM_PROMPT = """You are an expert in creating documentation for software diagrams.

You will receive a diagram image; write a textual summary of it.
If the diagram is an ER diagram, the summary should include entity roles, relationships, and constraints.
If the diagram is a DFD, the summary should include process descriptions and data transformations.

Diagram Type: {diagram_type}

Return ONLY JSON matching this schema:
{{"summary": "<text>"}}
"""

_JSON_RE = re.compile(r"\{[\s\S]*\}")
_GENERATABLE_KINDS = (DiagramKind.ER, DiagramKind.DFD)

T = TypeVar("T", bound=BaseModel)


class AIServiceError(RuntimeError):
    """Raised when the model cannot be reached or returns an unusable reply."""


class GeneratedDiagram(BaseModel):
    diagramContent: str = ""


class SqlConversion(BaseModel):
    sqlCode: str = ""
    error: Optional[str] = None


class DiagramExplanation(BaseModel):
    summary: str = ""


@dataclass
class GenerateDiagramState:
    message: Optional[str] = None
    diagram_content: Optional[str] = None
    field_errors: Dict[str, List[str]] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.diagram_content is not None


@dataclass
class ConvertToSqlState:
    sql_code: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None


@dataclass
class ExplainState:
    summary: Optional[str] = None
    error: Optional[str] = None


def _generatable_kind(kind: DiagramKind | str) -> DiagramKind:
    diagram_kind = DiagramKind(kind)
    if diagram_kind not in _GENERATABLE_KINDS:
        raise ValueError(f"Diagram type must be ER or DFD, got {diagram_kind.value}")
    return diagram_kind


def generate_structured(
    messages: List[Dict[str, Any]],
    output_model: Type[T],
    *,
    tool_name: str,
    db: DbSession | None = None,
    workspace_id: str | UUID | None = None,
    tab_id: str | UUID | None = None,
) -> T:
    """Send one chat completion and parse its JSON reply into ``output_model``."""
    try:
        client = get_openai_client()
    except ValueError as exc:
        raise AIServiceError(str(exc)) from exc

    audit = {"workspace_id": workspace_id, "tab_id": tab_id, "tool_name": tool_name, "model": settings.openai_model}
    try:
        response = client.chat.completions.create(
            model=settings.openai_model,
            messages=messages,
            temperature=settings.ai_temperature,
        )
    except OpenAIError as exc:
        logger.warning("%s request failed: %s", tool_name, exc)
        record_llm_audit(db, messages=messages, error=str(exc), **audit)
        raise AIServiceError(f"AI request failed: {exc}") from exc

    record_llm_audit(db, messages=messages, response=response, **audit)
    raw = response.choices[0].message.content or ""
    match = _JSON_RE.search(raw)
    if not match:
        raise AIServiceError("AI response did not contain a JSON object")
    try:
        return output_model.model_validate(json.loads(match.group(0)))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise AIServiceError("AI response did not match the expected format") from exc


def generate_diagram_from_text(
    description: str,
    kind: DiagramKind | str,
    *,
    db: DbSession | None = None,
    workspace_id: str | UUID | None = None,
) -> GenerateDiagramState:
    diagram_kind = _generatable_kind(kind)
    description = (description or "").strip()
    if len(description) < settings.min_description_length:
        return GenerateDiagramState(
            message="Validation failed. Please check the description.",
            field_errors={
                "textDescription": [
                    f"Description must be at least {settings.min_description_length} characters long."
                ]
            },
        )

    prompt = GENERATE_DIAGRAM_PROMPT.format(description=description, diagram_type=diagram_kind.value)
    messages = [
        {"role": "system", "content": "Return ONLY valid JSON."},
        {"role": "user", "content": prompt},
    ]
    try:
        output = generate_structured(
            messages, GeneratedDiagram, tool_name="generate_diagram", db=db, workspace_id=workspace_id
        )
    except AIServiceError as exc:
        return GenerateDiagramState(message=f"Error: {exc}")

    if not output.diagramContent.strip():
        return GenerateDiagramState(message="AI generated an empty diagram. Try refining your description.")

    try:
        result = validate_and_sanitize(output.diagramContent, diagram_kind)
    except DiagramValidationError as exc:
        if exc.result.blocked_tokens:
            blocked = ", ".join(exc.result.blocked_tokens)
            logger.warning("Rejected generated %s diagram with blocked tokens: %s", diagram_kind.value, blocked)
            return GenerateDiagramState(message=f"Error: generated diagram contains blocked content ({blocked}).")
        return GenerateDiagramState(message="AI generated an empty diagram. Try refining your description.")

    logger.info("Generated %s diagram (%d chars)", diagram_kind.value, len(result.sanitized_text))
    return GenerateDiagramState(
        message="Diagram generated successfully!",
        diagram_content=result.sanitized_text,
        warnings=result.warnings,
    )


def convert_mermaid_to_sql(
    mermaid_code: str,
    *,
    db: DbSession | None = None,
    workspace_id: str | UUID | None = None,
) -> ConvertToSqlState:
    code = (mermaid_code or "").strip()
    if len(code) < settings.min_sql_source_length:
        return ConvertToSqlState(
            error=f"Mermaid code must be at least {settings.min_sql_source_length} characters to convert."
        )

    messages = [
        {"role": "system", "content": "Return ONLY valid JSON."},
        {"role": "user", "content": SQL_CONVERSION_PROMPT.format(mermaid_code=code)},
    ]
    try:
        output = generate_structured(
            messages, SqlConversion, tool_name="convert_to_sql", db=db, workspace_id=workspace_id
        )
    except AIServiceError as exc:
        return ConvertToSqlState(error=str(exc))

    if output.error:
        return ConvertToSqlState(error=output.error)
    if output.sqlCode.strip():
        return ConvertToSqlState(sql_code=output.sqlCode.strip(), message="SQL generated successfully!")
    return ConvertToSqlState(error="SQL generation failed to produce code.")


def diagram_data_uri(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


def explain_diagram(
    content: str,
    kind: DiagramKind | str,
    *,
    db: DbSession | None = None,
    workspace_id: str | UUID | None = None,
    tab_id: str | UUID | None = None,
) -> ExplainState:
    diagram_kind = _generatable_kind(kind)
    if not (content or "").strip():
        return ExplainState(error="There is no diagram to explain.")

    try:
        png_bytes = render_mermaid_png(content)
    except RenderError as exc:
        logger.warning("Could not render diagram for explanation: %s", exc)
        return ExplainState(error=f"Could not render diagram: {exc}")

    messages = [
        {"role": "system", "content": "Return ONLY valid JSON."},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": EXPLAIN_DIAGRAM_PROMPT.format(diagram_type=diagram_kind.value)},
                {"type": "image_url", "image_url": {"url": diagram_data_uri(png_bytes)}},
            ],
        },
    ]
    try:
        output = generate_structured(
            messages,
            DiagramExplanation,
            tool_name="explain_diagram",
            db=db,
            workspace_id=workspace_id,
            tab_id=tab_id,
        )
    except AIServiceError as exc:
        return ExplainState(error=str(exc))

    if not output.summary.strip():
        return ExplainState(error="AI returned an empty summary.")
    return ExplainState(summary=output.summary.strip())
