"""CLI interface."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from modelflow.db import init_db
from modelflow.editor.buffer import MarkupBuffer
from modelflow.editor.directives import DiagramKind
from modelflow.renderers.errors import RenderError
from modelflow.services import ai_service
from modelflow.tools.export import ExportError, export_diagram, save_export
from modelflow.utils.file_utils import read_markup_file, write_markup_file
from modelflow.utils.log_setup import configure_logging

app = typer.Typer(add_completion=False, help="Edit, render and generate Mermaid ER diagrams and DFDs.")


@app.callback()
def main(log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL.")):
    configure_logging(log_level)


def _read(path: Path) -> str:
    try:
        return read_markup_file(str(path))
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc


def _emit(content: str, target: Optional[Path]) -> None:
    if target is None:
        typer.echo(content, nl=not content.endswith("\n"))
    else:
        write_markup_file(str(target), content)
        typer.echo(f"Wrote {target}", err=True)


def _fail(message: str) -> None:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


@app.command()
def insert(
    file: Path = typer.Argument(..., help="Mermaid source file."),
    snippet: Optional[str] = typer.Option(None, "--snippet", "-s", help="Markup to splice in."),
    tool: Optional[str] = typer.Option(None, "--tool", help="Toolbar item label, e.g. 'Theme: Dark'."),
    kind: DiagramKind = typer.Option(DiagramKind.ER, "--kind", "-k", case_sensitive=False),
    in_place: bool = typer.Option(False, "--in-place", "-i", help="Rewrite FILE instead of printing."),
):
    """Splice a snippet or directive into a diagram."""
    if not snippet and not tool:
        raise typer.BadParameter("Provide --snippet or --tool")
    buffer = MarkupBuffer(kind=kind, content=_read(file))
    try:
        result = buffer.insert_tool(tool) if tool else buffer.insert_snippet(snippet)
    except (LookupError, ValueError) as exc:
        _fail(str(exc))
    typer.echo(f"{result.title}: {result.message}", err=True)
    _emit(result.content, file if in_place else None)


@app.command()
def clear(
    file: Path = typer.Argument(..., help="Mermaid source file to reset."),
    kind: DiagramKind = typer.Option(DiagramKind.ER, "--kind", "-k", case_sensitive=False),
):
    """Reset a diagram file to the minimal buffer for its kind."""
    buffer = MarkupBuffer(kind=kind)
    _emit(buffer.clear(), file)


@app.command()
def render(
    file: Path = typer.Argument(..., help="Mermaid source file."),
    fmt: str = typer.Option("svg", "--format", "-f", help="svg, png or mmd."),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o"),
):
    """Render a diagram and save it under the output directory."""
    try:
        exported = export_diagram(file.stem, _read(file), fmt)
    except (ExportError, RenderError) as exc:
        _fail(f"Error: {exc}")
    path = save_export(exported, output_dir)
    typer.echo(str(path))


@app.command()
def generate(
    text: str = typer.Option(..., "--text", "-t", help="Natural language description of the system."),
    kind: DiagramKind = typer.Option(DiagramKind.ER, "--kind", "-k", case_sensitive=False),
    output: Optional[Path] = typer.Option(None, "--output", help="Write the diagram here instead of stdout."),
):
    """Generate a Mermaid diagram from a description."""
    if kind is DiagramKind.UNTITLED:
        raise typer.BadParameter("Pick ER or DFD")
    init_db()
    state = ai_service.generate_diagram_from_text(text, kind)
    for errors in state.field_errors.values():
        for error in errors:
            typer.echo(error, err=True)
    if not state.ok:
        _fail(state.message or "Generation failed")
    _emit(state.diagram_content + "\n", output)


@app.command("to-sql")
def to_sql(file: Path = typer.Argument(..., help="Mermaid ERD source file.")):
    """Convert a Mermaid ERD into PostgreSQL DDL."""
    init_db()
    state = ai_service.convert_mermaid_to_sql(_read(file))
    if state.error:
        _fail(f"Error: {state.error}")
    typer.echo(state.sql_code)


@app.command()
def explain(
    file: Path = typer.Argument(..., help="Mermaid source file."),
    kind: DiagramKind = typer.Option(DiagramKind.ER, "--kind", "-k", case_sensitive=False),
):
    """Summarise a rendered diagram in prose."""
    init_db()
    try:
        state = ai_service.explain_diagram(_read(file), kind)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if state.error:
        _fail(f"Error: {state.error}")
    typer.echo(state.summary)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("modelflow.server:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
