"""Command line interface for livecanvas."""

from __future__ import annotations

import asyncio
import json
import uuid
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any, Optional

import typer
from loguru import logger
from rich.markup import escape

from livecanvas.channels import TranscriptBus, TranscriptionEvent
from livecanvas.config import Settings, load_settings
from livecanvas.core import MarkerPair, TranscriptController, parse
from livecanvas.core.state import ControllerSnapshot
from livecanvas.errors import LiveCanvasError
from livecanvas.export import PasteClient, write_archive
from livecanvas.logging_utils import configure_logging
from livecanvas.render import Renderer

EVENT_ROLES = {"user", "agent"}

app = typer.Typer(
    name="livecanvas",
    help="Split voice-agent transcripts into spoken text and renderable HTML.",
    add_completion=False,
    rich_markup_mode="rich",
)


def _bootstrap() -> tuple[Settings, Renderer]:
    settings = load_settings()
    configure_logging(profile="console", level=settings.log_level)
    return settings, Renderer()


@app.command("parse")
def parse_command(text: str) -> None:
    """Show the spoken text and code blocks found in one agent response."""
    settings, renderer = _bootstrap()
    renderer.parsed(parse(text, MarkerPair(settings.open_marker, settings.close_marker)))


@app.command()
def replay(
    transcript: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    channel: Optional[str] = typer.Option(None, help="Channel id to replay under"),
    export: Optional[Path] = typer.Option(None, "--export", file_okay=False, help="Write the selected artifact here"),
    keep_session: bool = typer.Option(False, "--keep-session", help="Do not end the session after replaying"),
    show_code: bool = typer.Option(False, "--show-code", help="Print the selected artifact source"),
) -> None:
    """Replay a JSON-lines transcription log through a live session."""
    settings, renderer = _bootstrap()
    channel_id = channel or f"livecanvas-{uuid.uuid4().hex[:12]}"
    lines = transcript.read_text(encoding="utf-8").splitlines()
    try:
        snapshot, archive = asyncio.run(
            _replay(_payloads(lines, renderer), settings, channel_id, export_dir=export, keep_session=keep_session)
        )
    except LiveCanvasError as exc:
        renderer.error(str(exc))
        raise typer.Exit(1) from exc

    renderer.snapshot(snapshot, show_code=show_code)
    if archive is not None:
        renderer.info(f"[bold]Exported:[/bold] [cyan]{escape(str(archive))}[/cyan]")


@app.command()
def share(source: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True)) -> None:
    """Upload an HTML file to the paste service."""
    settings, renderer = _bootstrap()
    client = PasteClient(settings)
    try:
        paste_id = client.share(source.read_text(encoding="utf-8"))
    except LiveCanvasError as exc:
        renderer.error(str(exc))
        raise typer.Exit(1) from exc
    renderer.info(f"[bold]Paste:[/bold] {paste_id}")
    renderer.info(f"[bold]URL:[/bold] [cyan]{client.paste_url(paste_id)}[/cyan]")


@app.command()
def fetch(
    paste_id: str,
    output: Optional[Path] = typer.Option(None, "--output", "-o", dir_okay=False, help="Write the paste here"),
) -> None:
    """Download a shared artifact from the paste service."""
    settings, renderer = _bootstrap()
    try:
        content = PasteClient(settings).fetch(paste_id)
    except LiveCanvasError as exc:
        renderer.error(str(exc))
        raise typer.Exit(1) from exc
    if output is None:
        renderer.code(content)
        return
    output.write_text(content, encoding="utf-8")
    renderer.info(f"[bold]Saved:[/bold] [cyan]{escape(str(output))}[/cyan]")


async def _replay(
    payloads: Iterable[Any],
    settings: Settings,
    channel_id: str,
    *,
    export_dir: Path | None,
    keep_session: bool,
) -> tuple[ControllerSnapshot, Path | None]:
    bus = TranscriptBus()
    controller = TranscriptController(bus, settings)
    await controller.start_session(channel_id)
    for payload in payloads:
        event = _event_from_record(channel_id, payload)
        if event is None:
            await controller.feed(payload)
        else:
            await bus.publish(event)
    await controller.drain()

    snapshot = controller.snapshot()
    archive = None
    if export_dir is not None and controller.selected_artifact is not None:
        archive = write_archive(controller.export_selected(), export_dir)
    if not keep_session:
        await controller.end_session()
    return snapshot, archive


def _payloads(lines: Iterable[str], renderer: Renderer) -> Iterator[Any]:
    for number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped:
            continue
        try:
            yield json.loads(stripped)
        except json.JSONDecodeError:
            logger.warning("replay.skip line={} reason=invalid-json", number)
            renderer.error(f"line {number}: not valid JSON, skipped")


def _event_from_record(channel_id: str, record: Any) -> TranscriptionEvent | None:
    if not isinstance(record, dict) or record.get("role") not in EVENT_ROLES:
        return None
    is_final = record.get("is_final", record.get("isFinal", False))
    return TranscriptionEvent(
        channel_id=channel_id,
        role=record["role"],
        text=str(record.get("text") or ""),
        is_final=bool(is_final),
    )
