"""livecanvas - watch a voice agent's code take shape."""

from .channels import TranscriptBus, TranscriptionEvent
from .core import TranscriptController, parse

__version__ = "0.1.0"

__all__ = ["TranscriptBus", "TranscriptController", "TranscriptionEvent", "parse"]
