"""Transcript demultiplexing and session state."""

from livecanvas.core.controller import TranscriptController
from livecanvas.core.demux import MarkerPair, ParsedResponse, parse
from livecanvas.core.resources import SessionResources
from livecanvas.core.state import (
    ArtifactExport,
    CodeArtifact,
    ControllerSnapshot,
    GenerationState,
    TranscriptEntry,
)

__all__ = [
    "ArtifactExport",
    "CodeArtifact",
    "ControllerSnapshot",
    "GenerationState",
    "MarkerPair",
    "ParsedResponse",
    "SessionResources",
    "TranscriptController",
    "TranscriptEntry",
    "parse",
]
