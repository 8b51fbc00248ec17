"""REST API server."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session as DbSession

from modelflow.db import get_db, init_db
from modelflow.db_models import DiagramTab, Workspace
from modelflow.editor import catalog
from modelflow.editor.directives import DiagramKind
from modelflow.renderers.errors import RenderError
from modelflow.renderers.mermaid_renderer import render_mermaid_svg
from modelflow.schemas import (
    ActiveTabRequest,
    CatalogResponse,
    ContentUpdate,
    ExampleRequest,
    ExampleResponse,
    ExplainRequest,
    ExplainResponse,
    GenerateRequest,
    GenerateResponse,
    NoticeResponse,
    RenameRequest,
    RenameResponse,
    RenderRequest,
    RenderResponse,
    SnippetRequest,
    SnippetResponse,
    SqlRequest,
    SqlResponse,
    TabResponse,
    ToolCategoryResponse,
    ToolItemResponse,
    WorkspaceCreate,
    WorkspaceResponse,
)
from modelflow.services import ai_service, workspace_service
from modelflow.tools.export import export_diagram
from modelflow.utils.log_setup import configure_logging

logger = logging.getLogger(__name__)

app = FastAPI(title="ModelFlow Diagram API")


@app.on_event("startup")
def on_startup() -> None:
    configure_logging()
    init_db()


@app.get("/health")
async def health():
    return {"status": "ok"}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _domain_error(exc: Exception) -> JSONResponse:
    if isinstance(exc, LookupError):
        return _error(404, str(exc))
    if isinstance(exc, RenderError):
        logger.warning("Render failed: %s", exc)
        return _error(502, str(exc))
    return _error(400, str(exc))


def _serialize_tab(tab: DiagramTab) -> TabResponse:
    return TabResponse(id=tab.id, name=tab.name, kind=tab.kind, content=tab.content, position=tab.position)


def _serialize_workspace(workspace: Workspace) -> WorkspaceResponse:
    return WorkspaceResponse(
        id=workspace.id,
        mode=workspace.mode,
        title=workspace.title,
        active_tab_id=workspace.active_tab_id,
        renaming_tab_id=workspace.renaming_tab_id,
        rename_text=workspace.rename_text or "",
        tabs=[_serialize_tab(tab) for tab in workspace.tabs],
    )


def _notice(notice: Optional[workspace_service.Notice]) -> Optional[NoticeResponse]:
    if notice is None:
        return None
    return NoticeResponse(title=notice.title, message=notice.message, level=notice.level)


@app.get("/api/catalog/{kind}", response_model=CatalogResponse)
def catalog_endpoint(kind: str):
    try:
        diagram_kind = DiagramKind(kind.upper() if kind.lower() in ("er", "dfd") else kind)
        categories = catalog.tool_categories(diagram_kind)
        examples = catalog.examples(diagram_kind)
    except ValueError:
        return _error(404, f"Unknown diagram kind: {kind}")
    return CatalogResponse(
        kind=diagram_kind.value,
        default_content=catalog.default_content(diagram_kind),
        categories=[
            ToolCategoryResponse(
                label=category.label,
                items=[
                    ToolItemResponse(label=item.label, mermaid=item.mermaid, description=item.description)
                    for item in category.items
                ],
            )
            for category in categories
        ],
        examples=[ExampleResponse(label=example.label, content=example.content) for example in examples],
    )


@app.post("/api/workspaces", response_model=WorkspaceResponse)
def create_workspace_api(payload: WorkspaceCreate, db: DbSession = Depends(get_db)):
    workspace = workspace_service.create_workspace(db, payload.mode, payload.title)
    return _serialize_workspace(workspace)


def _load_workspace(db: DbSession, workspace_id: str) -> Workspace:
    workspace = workspace_service.get_workspace(db, workspace_id)
    if workspace is None:
        raise HTTPException(status_code=404, detail="Workspace not found")
    return workspace


@app.get("/api/workspaces/{workspace_id}", response_model=WorkspaceResponse)
def get_workspace_api(workspace_id: str, db: DbSession = Depends(get_db)):
    return _serialize_workspace(_load_workspace(db, workspace_id))


@app.post("/api/workspaces/{workspace_id}/tabs", response_model=TabResponse)
def add_tab_api(workspace_id: str, db: DbSession = Depends(get_db)):
    workspace = _load_workspace(db, workspace_id)
    return _serialize_tab(workspace_service.add_tab(db, workspace))


@app.delete("/api/workspaces/{workspace_id}/tabs/{tab_id}", response_model=WorkspaceResponse)
def close_tab_api(workspace_id: str, tab_id: str, db: DbSession = Depends(get_db)):
    workspace = _load_workspace(db, workspace_id)
    try:
        workspace = workspace_service.close_tab(db, workspace, tab_id)
    except LookupError as exc:
        return _domain_error(exc)
    return _serialize_workspace(workspace)


@app.post("/api/workspaces/{workspace_id}/active", response_model=WorkspaceResponse)
def set_active_api(workspace_id: str, payload: ActiveTabRequest, db: DbSession = Depends(get_db)):
    workspace = _load_workspace(db, workspace_id)
    try:
        workspace_service.set_active(db, workspace, payload.tab_id)
    except LookupError as exc:
        return _domain_error(exc)
    return _serialize_workspace(workspace)


@app.post("/api/workspaces/{workspace_id}/rename", response_model=RenameResponse)
def rename_api(workspace_id: str, payload: RenameRequest, db: DbSession = Depends(get_db)):
    workspace = _load_workspace(db, workspace_id)
    notice = None
    try:
        if payload.action == "begin":
            if payload.tab_id is None:
                return _error(400, "tab_id is required to begin a rename")
            workspace_service.begin_rename(db, workspace, payload.tab_id)
            if payload.text is not None:
                workspace_service.update_rename_text(db, workspace, payload.text)
        elif payload.action == "update":
            workspace_service.update_rename_text(db, workspace, payload.text or "")
        elif payload.action == "commit":
            if payload.text is not None and workspace.renaming_tab_id is not None:
                workspace_service.update_rename_text(db, workspace, payload.text)
            notice = workspace_service.commit_rename(db, workspace)
        else:
            workspace_service.cancel_rename(db, workspace)
    except (LookupError, ValueError) as exc:
        return _domain_error(exc)
    return RenameResponse(workspace=_serialize_workspace(workspace), notice=_notice(notice))


@app.put("/api/workspaces/{workspace_id}/tabs/{tab_id}/content", response_model=TabResponse)
def update_content_api(workspace_id: str, tab_id: str, payload: ContentUpdate, db: DbSession = Depends(get_db)):
    workspace = _load_workspace(db, workspace_id)
    try:
        tab = workspace_service.update_buffer(db, workspace, tab_id, payload.content)
    except LookupError as exc:
        return _domain_error(exc)
    return _serialize_tab(tab)


@app.post("/api/workspaces/{workspace_id}/tabs/{tab_id}/snippets", response_model=SnippetResponse)
def insert_snippet_api(workspace_id: str, tab_id: str, payload: SnippetRequest, db: DbSession = Depends(get_db)):
    workspace = _load_workspace(db, workspace_id)
    try:
        snippet = payload.snippet
        if payload.tool_label:
            tab = workspace_service.get_tab(workspace, tab_id)
            snippet = catalog.find_tool(tab.kind, payload.tool_label).mermaid
        if not snippet:
            return _error(400, "Provide a snippet or a tool_label")
        result = workspace_service.insert_snippet(db, workspace, tab_id, snippet)
        tab = workspace_service.get_tab(workspace, tab_id)
    except (LookupError, ValueError) as exc:
        return _domain_error(exc)
    return SnippetResponse(
        tab=_serialize_tab(tab),
        snippet_kind=result.snippet_kind.value,
        notice=NoticeResponse(title=result.title, message=result.message),
    )


@app.post("/api/workspaces/{workspace_id}/tabs/{tab_id}/clear", response_model=TabResponse)
def clear_tab_api(workspace_id: str, tab_id: str, db: DbSession = Depends(get_db)):
    workspace = _load_workspace(db, workspace_id)
    try:
        tab = workspace_service.clear_buffer(db, workspace, tab_id)
    except LookupError as exc:
        return _domain_error(exc)
    return _serialize_tab(tab)


@app.post("/api/workspaces/{workspace_id}/tabs/{tab_id}/example", response_model=TabResponse)
def load_example_api(workspace_id: str, tab_id: str, payload: ExampleRequest, db: DbSession = Depends(get_db)):
    workspace = _load_workspace(db, workspace_id)
    try:
        tab = workspace_service.load_example(db, workspace, tab_id, payload.label)
    except (LookupError, ValueError) as exc:
        return _domain_error(exc)
    return _serialize_tab(tab)


@app.get("/api/workspaces/{workspace_id}/tabs/{tab_id}/export/{fmt}")
def export_tab_api(workspace_id: str, tab_id: str, fmt: str, db: DbSession = Depends(get_db)):
    workspace = _load_workspace(db, workspace_id)
    try:
        tab = workspace_service.get_tab(workspace, tab_id)
        exported = export_diagram(tab.name, tab.content, fmt)
    except (LookupError, ValueError, RenderError) as exc:
        return _domain_error(exc)
    return Response(
        content=exported.data,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )


@app.post("/api/render", response_model=RenderResponse)
def render_api(payload: RenderRequest):
    try:
        svg = render_mermaid_svg(payload.markup)
    except RenderError as exc:
        return _domain_error(exc)
    return RenderResponse(svg=svg)


@app.post("/api/ai/generate", response_model=GenerateResponse)
def generate_api(payload: GenerateRequest, db: DbSession = Depends(get_db)):
    workspace = _load_workspace(db, str(payload.workspace_id)) if payload.workspace_id else None
    state = ai_service.generate_diagram_from_text(
        payload.description, payload.kind, db=db, workspace_id=payload.workspace_id
    )
    tab = None
    if state.ok and workspace is not None:
        tab = _serialize_tab(workspace_service.apply_generated_diagram(db, workspace, state.diagram_content, payload.kind))
    return GenerateResponse(
        message=state.message,
        diagram_content=state.diagram_content,
        field_errors=state.field_errors,
        warnings=state.warnings,
        tab=tab,
    )


@app.post("/api/ai/sql", response_model=SqlResponse)
def sql_api(payload: SqlRequest, db: DbSession = Depends(get_db)):
    state = ai_service.convert_mermaid_to_sql(payload.mermaid_code, db=db, workspace_id=payload.workspace_id)
    return SqlResponse(sql_code=state.sql_code, error=state.error, message=state.message)


@app.post("/api/ai/explain", response_model=ExplainResponse)
def explain_api(payload: ExplainRequest, db: DbSession = Depends(get_db)):
    content, kind = payload.content, payload.kind
    if payload.tab_id is not None:
        if payload.workspace_id is None:
            return _error(400, "workspace_id is required with tab_id")
        workspace = _load_workspace(db, str(payload.workspace_id))
        try:
            tab = workspace_service.get_tab(workspace, payload.tab_id)
        except LookupError as exc:
            return _domain_error(exc)
        content, kind = tab.content, tab.kind
    if kind is None:
        return _error(400, "kind is required")
    try:
        state = ai_service.explain_diagram(
            content or "", kind, db=db, workspace_id=payload.workspace_id, tab_id=payload.tab_id
        )
    except ValueError as exc:
        return _domain_error(exc)
    return ExplainResponse(summary=state.summary, error=state.error)
