"""Mermaid buffer editing and directive splicing."""
from modelflow.editor.buffer import MarkupBuffer
from modelflow.editor.directives import DiagramKind, SnippetKind
from modelflow.editor.splicer import SpliceResult, splice_snippet

__all__ = ["DiagramKind", "MarkupBuffer", "SnippetKind", "SpliceResult", "splice_snippet"]
