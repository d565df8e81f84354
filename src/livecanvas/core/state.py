"""Accumulated session state and read-only views of it."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from livecanvas.channels.events import Role


class GenerationState(StrEnum):
    IDLE = "idle"
    GENERATING = "generating"


@dataclass(frozen=True)
class TranscriptEntry:
    id: str
    role: Role
    text: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class CodeArtifact:
    """One validated, renderable document. Never mutated after creation."""

    id: str
    content: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class ControllerSnapshot:
    """What a renderer needs to draw the page."""

    transcript: tuple[TranscriptEntry, ...]
    artifacts: tuple[CodeArtifact, ...]
    selected_artifact_id: str | None
    is_generating: bool
    channel_id: str | None = None

    @property
    def selected_artifact(self) -> CodeArtifact | None:
        for artifact in self.artifacts:
            if artifact.id == self.selected_artifact_id:
                return artifact
        return None


@dataclass(frozen=True)
class ArtifactExport:
    artifact_id: str
    filename: str
    content: str

    @property
    def html_name(self) -> str:
        return f"{self.filename}.html"

    @property
    def archive_name(self) -> str:
        return f"{self.filename}.zip"
