"""Editable Mermaid buffer for one open diagram."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from modelflow.editor import catalog
from modelflow.editor.directives import DiagramKind
from modelflow.editor.splicer import SpliceResult, splice_snippet


@dataclass
class MarkupBuffer:
    kind: DiagramKind
    content: Optional[str] = None

    @classmethod
    def new(cls, kind: DiagramKind | str) -> "MarkupBuffer":
        kind = DiagramKind(kind)
        return cls(kind=kind, content=catalog.default_content(kind))

    @property
    def is_empty(self) -> bool:
        return not (self.content or "").strip()

    def set_content(self, text: Optional[str]) -> None:
        self.content = text

    def insert_snippet(self, snippet: str) -> SpliceResult:
        if self.kind is DiagramKind.UNTITLED:
            raise ValueError("Cannot insert snippets into an untitled diagram; generate or pick a diagram type first")
        result = splice_snippet(self.content, snippet, self.kind)
        self.content = result.content
        return result

    def insert_tool(self, label: str) -> SpliceResult:
        """Insert a catalog toolbar item by its label."""
        return self.insert_snippet(catalog.find_tool(self.kind, label).mermaid)

    def clear(self) -> str:
        if self.kind is DiagramKind.UNTITLED:
            self.content = None
            return ""
        self.content = catalog.minimal_content(self.kind)
        return self.content

    def load_example(self, label: str) -> str:
        self.content = catalog.find_example(self.kind, label).content
        return self.content
