"""Pydantic schemas for API."""
from __future__ import annotations

from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ToolItemResponse(BaseModel):
    label: str
    mermaid: str
    description: str


class ToolCategoryResponse(BaseModel):
    label: str
    items: List[ToolItemResponse]


class ExampleResponse(BaseModel):
    label: str
    content: str


class CatalogResponse(BaseModel):
    kind: str
    default_content: Optional[str]
    categories: List[ToolCategoryResponse]
    examples: List[ExampleResponse]


class TabResponse(BaseModel):
    id: UUID
    name: str
    kind: str
    content: Optional[str]
    position: int


class WorkspaceCreate(BaseModel):
    mode: Literal["er", "dfd", "ai"]
    title: Optional[str] = None


class WorkspaceResponse(BaseModel):
    id: UUID
    mode: str
    title: str
    active_tab_id: Optional[UUID]
    renaming_tab_id: Optional[UUID] = None
    rename_text: str = ""
    tabs: List[TabResponse]


class ActiveTabRequest(BaseModel):
    tab_id: UUID


class RenameRequest(BaseModel):
    action: Literal["begin", "update", "commit", "cancel"]
    tab_id: Optional[UUID] = None
    text: Optional[str] = None


class NoticeResponse(BaseModel):
    title: str
    message: str
    level: str = "info"


class RenameResponse(BaseModel):
    workspace: WorkspaceResponse
    notice: Optional[NoticeResponse] = None


class ContentUpdate(BaseModel):
    content: Optional[str] = None


class SnippetRequest(BaseModel):
    snippet: Optional[str] = None
    tool_label: Optional[str] = None


class SnippetResponse(BaseModel):
    tab: TabResponse
    snippet_kind: str
    notice: NoticeResponse


class ExampleRequest(BaseModel):
    label: str


class RenderRequest(BaseModel):
    markup: str


class RenderResponse(BaseModel):
    svg: str


class GenerateRequest(BaseModel):
    description: str
    kind: Literal["ER", "DFD"]
    workspace_id: Optional[UUID] = None


class GenerateResponse(BaseModel):
    message: Optional[str]
    diagram_content: Optional[str]
    field_errors: Dict[str, List[str]] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    tab: Optional[TabResponse] = None


class SqlRequest(BaseModel):
    mermaid_code: str
    workspace_id: Optional[UUID] = None


class SqlResponse(BaseModel):
    sql_code: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None


class ExplainRequest(BaseModel):
    content: Optional[str] = None
    kind: Optional[Literal["ER", "DFD"]] = None
    workspace_id: Optional[UUID] = None
    tab_id: Optional[UUID] = None


class ExplainResponse(BaseModel):
    summary: Optional[str] = None
    error: Optional[str] = None
