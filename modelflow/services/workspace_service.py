"""Workspaces of open diagram tabs: naming, selection, rename and buffer edits."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy.orm import Session as DbSession

from modelflow.db_models import DiagramTab, Workspace
from modelflow.editor.buffer import MarkupBuffer
from modelflow.editor.directives import DiagramKind
from modelflow.editor.splicer import SpliceResult

logger = logging.getLogger(__name__)


class WorkspaceMode(str, Enum):
    ER = "er"
    DFD = "dfd"
    AI = "ai"


MODE_KINDS = {
    WorkspaceMode.ER: DiagramKind.ER,
    WorkspaceMode.DFD: DiagramKind.DFD,
    WorkspaceMode.AI: DiagramKind.UNTITLED,
}

MODE_TITLES = {
    WorkspaceMode.ER: "ER Diagram Editor",
    WorkspaceMode.DFD: "DFD Editor",
    WorkspaceMode.AI: "AI Diagram Generator",
}

_ERD_NAME_RE = re.compile(r"^ERD (\d+)$")
_TRAILING_NUMBER_RE = re.compile(r"(\d+)$")


@dataclass(frozen=True)
class Notice:
    title: str
    message: str
    level: str = "info"


def _parse_uuid(value: str | UUID, what: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as exc:
        raise LookupError(f"Unknown {what}: {value}") from exc


def next_erd_number(names: Iterable[str]) -> int:
    """Smallest positive N not already used by an ``ERD N`` name."""
    used = set()
    for name in names:
        match = _ERD_NAME_RE.match(name)
        if match:
            used.add(int(match.group(1)))
    number = 1
    while number in used:
        number += 1
    return number


def workspace_mode(workspace: Workspace) -> WorkspaceMode:
    return WorkspaceMode(workspace.mode)


def _take_counter(workspace: Workspace) -> int:
    number = workspace.tab_counter
    workspace.tab_counter = number + 1
    return number


def _next_tab_name(workspace: Workspace) -> str:
    mode = workspace_mode(workspace)
    if mode is WorkspaceMode.ER:
        return f"ERD {next_erd_number(tab.name for tab in workspace.tabs)}"
    if mode is WorkspaceMode.DFD:
        return f"DFD {_take_counter(workspace)}"
    return f"Diagram {_take_counter(workspace)}"


def _append_tab(workspace: Workspace, name: Optional[str] = None) -> DiagramTab:
    buffer = MarkupBuffer.new(MODE_KINDS[workspace_mode(workspace)])
    position = max((tab.position for tab in workspace.tabs), default=-1) + 1
    tab = DiagramTab(
        name=name or _next_tab_name(workspace),
        kind=buffer.kind.value,
        content=buffer.content,
        position=position,
    )
    workspace.tabs.append(tab)
    return tab


def _save(db: DbSession, workspace: Workspace) -> Workspace:
    db.commit()
    db.refresh(workspace)
    return workspace


def create_workspace(db: DbSession, mode: WorkspaceMode | str, title: Optional[str] = None) -> Workspace:
    """Create a workspace holding one active tab."""
    try:
        mode = WorkspaceMode(mode)
    except ValueError as exc:
        raise ValueError(f"Unknown workspace mode: {mode}") from exc
    workspace = Workspace(mode=mode.value, title=(title or "").strip() or MODE_TITLES[mode], tab_counter=1)
    db.add(workspace)
    tab = _append_tab(workspace)
    db.flush()
    workspace.active_tab_id = tab.id
    _save(db, workspace)
    logger.info("Created %s workspace %s", mode.value, workspace.id)
    return workspace


def get_workspace(db: DbSession, workspace_id: str | UUID) -> Workspace | None:
    try:
        workspace_uuid = _parse_uuid(workspace_id, "workspace")
    except LookupError:
        return None
    return db.get(Workspace, workspace_uuid)


def require_workspace(db: DbSession, workspace_id: str | UUID) -> Workspace:
    workspace = get_workspace(db, workspace_id)
    if workspace is None:
        raise LookupError(f"Unknown workspace: {workspace_id}")
    return workspace


def get_tab(workspace: Workspace, tab_id: str | UUID) -> DiagramTab:
    tab_uuid = _parse_uuid(tab_id, "tab")
    for tab in workspace.tabs:
        if tab.id == tab_uuid:
            return tab
    raise LookupError(f"Unknown tab: {tab_id}")


def active_tab(workspace: Workspace) -> DiagramTab | None:
    for tab in workspace.tabs:
        if tab.id == workspace.active_tab_id:
            return tab
    return None


def buffer_for(tab: DiagramTab) -> MarkupBuffer:
    return MarkupBuffer(kind=DiagramKind(tab.kind), content=tab.content)


def add_tab(db: DbSession, workspace: Workspace) -> DiagramTab:
    tab = _append_tab(workspace)
    db.flush()
    workspace.active_tab_id = tab.id
    _save(db, workspace)
    logger.info("Opened tab %r in workspace %s", tab.name, workspace.id)
    return tab


def close_tab(db: DbSession, workspace: Workspace, tab_id: str | UUID) -> Workspace:
    """Close a tab. The last tab is always replaced by a fresh one."""
    tab = get_tab(workspace, tab_id)
    workspace.tabs.remove(tab)
    if workspace.renaming_tab_id == tab.id:
        workspace.renaming_tab_id = None
        workspace.rename_text = ""
    if not workspace.tabs:
        _append_tab(workspace)
        db.flush()
    if active_tab(workspace) is None:
        workspace.active_tab_id = workspace.tabs[0].id
    logger.info("Closed tab %r in workspace %s", tab.name, workspace.id)
    return _save(db, workspace)


def set_active(db: DbSession, workspace: Workspace, tab_id: str | UUID) -> DiagramTab:
    tab = get_tab(workspace, tab_id)
    workspace.active_tab_id = tab.id
    _save(db, workspace)
    return tab


def begin_rename(db: DbSession, workspace: Workspace, tab_id: str | UUID) -> DiagramTab:
    tab = get_tab(workspace, tab_id)
    workspace.renaming_tab_id = tab.id
    workspace.rename_text = tab.name
    _save(db, workspace)
    return tab


def update_rename_text(db: DbSession, workspace: Workspace, text: str) -> None:
    if workspace.renaming_tab_id is None:
        raise ValueError("No tab is being renamed")
    workspace.rename_text = text or ""
    _save(db, workspace)


def _clear_rename(workspace: Workspace) -> None:
    workspace.renaming_tab_id = None
    workspace.rename_text = ""


def commit_rename(db: DbSession, workspace: Workspace) -> Notice | None:
    """Apply the pending rename; returns a notice when something changed or was rejected."""
    if workspace.renaming_tab_id is None:
        return None
    tab = next((t for t in workspace.tabs if t.id == workspace.renaming_tab_id), None)
    new_name = (workspace.rename_text or "").strip()
    notice = None
    if tab is not None:
        if not new_name:
            notice = Notice("Rename Cancelled", "Diagram name cannot be empty.", level="error")
        elif new_name != tab.name:
            logger.info("Renamed tab %r to %r", tab.name, new_name)
            tab.name = new_name
            notice = Notice("Diagram Renamed", f'Renamed to "{new_name}".')
    _clear_rename(workspace)
    _save(db, workspace)
    return notice


def cancel_rename(db: DbSession, workspace: Workspace) -> None:
    _clear_rename(workspace)
    _save(db, workspace)


def update_buffer(db: DbSession, workspace: Workspace, tab_id: str | UUID, content: Optional[str]) -> DiagramTab:
    tab = get_tab(workspace, tab_id)
    tab.content = content
    _save(db, workspace)
    return tab


def insert_snippet(db: DbSession, workspace: Workspace, tab_id: str | UUID, snippet: str) -> SpliceResult:
    tab = get_tab(workspace, tab_id)
    buffer = buffer_for(tab)
    result = buffer.insert_snippet(snippet)
    tab.content = buffer.content
    _save(db, workspace)
    logger.debug("%s on tab %r", result.title, tab.name)
    return result


def clear_buffer(db: DbSession, workspace: Workspace, tab_id: str | UUID) -> DiagramTab:
    tab = get_tab(workspace, tab_id)
    buffer = buffer_for(tab)
    buffer.clear()
    tab.content = buffer.content
    _save(db, workspace)
    return tab


def load_example(db: DbSession, workspace: Workspace, tab_id: str | UUID, label: str) -> DiagramTab:
    tab = get_tab(workspace, tab_id)
    buffer = buffer_for(tab)
    buffer.load_example(label)
    tab.content = buffer.content
    _save(db, workspace)
    return tab


def apply_generated_diagram(
    db: DbSession, workspace: Workspace, content: str, kind: DiagramKind | str
) -> DiagramTab:
    """Write generated markup into the active tab and rename it after its kind."""
    diagram_kind = DiagramKind(kind)
    if diagram_kind is DiagramKind.UNTITLED:
        raise ValueError("Generated diagrams must be ER or DFD")
    tab = active_tab(workspace)
    if tab is None:
        tab = _append_tab(workspace)
        db.flush()
        workspace.active_tab_id = tab.id
    match = _TRAILING_NUMBER_RE.search(tab.name)
    number = match.group(1) if match else str(_take_counter(workspace))
    tab.name = f"{diagram_kind.value} Diagram {number}"
    tab.kind = diagram_kind.value
    tab.content = content
    _save(db, workspace)
    logger.info("Applied generated %s diagram to tab %r", diagram_kind.value, tab.name)
    return tab
