"""Terminal renderer for livecanvas."""

from __future__ import annotations

import threading

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from livecanvas.core.demux import ParsedResponse
from livecanvas.core.state import ControllerSnapshot

CODE_PREVIEW_LINES = 40


class Renderer:
    """Render transcripts and artifact versions with Rich."""

    def __init__(self, console: Console | None = None) -> None:
        self.console: Console = console or Console()
        self._print_lock = threading.Lock()

    def info(self, message: str) -> None:
        self._print(message)

    def error(self, message: str) -> None:
        self._print(f"[bold red]Error:[/bold red] {escape(message)}")

    def parsed(self, result: ParsedResponse) -> None:
        if result.spoken_text:
            self._print(f"[bold yellow]Spoken:[/bold yellow] {escape(result.spoken_text)}")
        else:
            self._print("[dim](no spoken text)[/dim]")
        for index, code in enumerate(result.codes, start=1):
            self._print(f"[bold green]Code block {index}[/bold green]")
            self.code(code, max_lines=CODE_PREVIEW_LINES)

    def snapshot(self, snapshot: ControllerSnapshot, *, show_code: bool = False) -> None:
        for entry in snapshot.transcript:
            label = "[bold cyan]You:[/bold cyan]" if entry.role == "user" else "[bold yellow]Agent:[/bold yellow]"
            self._print(f"{label} {escape(entry.text)}")
        if not snapshot.transcript:
            self._print("[dim](empty transcript)[/dim]")

        if snapshot.artifacts:
            self._print_table(self._artifact_table(snapshot))
        else:
            self._print("[dim]No artifacts generated[/dim]")
        if snapshot.is_generating:
            self._print("[magenta]Generating code...[/magenta]")

        selected = snapshot.selected_artifact
        if show_code and selected is not None:
            self.code(selected.content)

    def code(self, source: str, *, max_lines: int | None = None) -> None:
        """Print artifact source, optionally as a preview of its first ``max_lines`` lines."""
        total = len(source.splitlines())
        hidden = total - max_lines if max_lines is not None else 0
        line_range = (1, max_lines) if hidden > 0 else None
        syntax = Syntax(source, "html", line_numbers=False, word_wrap=True, line_range=line_range)
        with self._print_lock:
            self.console.print(syntax)
        if hidden > 0:
            self._print(f"[dim]... preview truncated, {hidden} more lines[/dim]")

    @staticmethod
    def _artifact_table(snapshot: ControllerSnapshot) -> Table:
        table = Table(title="Artifacts")
        table.add_column("Version")
        table.add_column("Id")
        table.add_column("Created")
        table.add_column("Size", justify="right")
        for index, artifact in enumerate(snapshot.artifacts, start=1):
            marker = " *" if artifact.id == snapshot.selected_artifact_id else ""
            table.add_row(
                f"v{index}{marker}",
                artifact.id,
                artifact.created_at.strftime("%H:%M:%S"),
                str(len(artifact.content)),
            )
        return table

    def _print_table(self, table: Table) -> None:
        with self._print_lock:
            self.console.print(table)

    def _print(self, message: str) -> None:
        with self._print_lock:
            self.console.print(message)
