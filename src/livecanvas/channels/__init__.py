"""Transcription channel bus and event exports."""

from livecanvas.channels.bus import TranscriptBus
from livecanvas.channels.events import TranscriptionEvent, TranscriptionPayload, decode_payload
from livecanvas.channels.subscription import ChannelSubscription

__all__ = [
    "ChannelSubscription",
    "TranscriptBus",
    "TranscriptionEvent",
    "TranscriptionPayload",
    "decode_payload",
]
