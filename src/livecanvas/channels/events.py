"""Transcription event models."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError

Role = Literal["user", "agent"]

AGENT_TRANSCRIPTION = "assistant.transcription"
USER_TRANSCRIPTION = "user.transcription"
FINAL_TURN_STATUS = 1


@dataclass(frozen=True)
class TranscriptionEvent:
    """One speech transcription hypothesis received on a channel."""

    channel_id: str
    role: Role
    text: str
    is_final: bool
    received_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_payload(cls, channel_id: str, payload: Any) -> TranscriptionEvent | None:
        """Decode one realtime-messaging payload, or ``None`` when it is not a transcription."""
        return decode_payload(channel_id, payload)


class TranscriptionPayload(BaseModel):
    """Shape of the transcription messages emitted by the voice agent."""

    model_config = ConfigDict(extra="allow")

    object: str | None = None
    text: str | None = None
    words: str | None = None
    transcription: str | None = None
    turn_status: int | None = None
    final: bool | None = None

    @property
    def is_transcription(self) -> bool:
        if self.object in {AGENT_TRANSCRIPTION, USER_TRANSCRIPTION}:
            return True
        return bool(self.words or self.text)

    @property
    def role(self) -> Role:
        return "agent" if self.object == AGENT_TRANSCRIPTION else "user"

    @property
    def content(self) -> str:
        return self.text or self.words or self.transcription or ""

    @property
    def is_final(self) -> bool:
        return self.turn_status == FINAL_TURN_STATUS or self.final is True


def decode_payload(channel_id: str, payload: Any) -> TranscriptionEvent | None:
    envelope_channel = _field(payload, "channelName")
    if envelope_channel and envelope_channel != channel_id:
        logger.debug("payload.skip foreign_channel={}", envelope_channel)
        return None
    message = payload
    if isinstance(payload, Mapping) and ("channelName" in payload or "message" in payload):
        message = payload.get("message")

    data = _unwrap(message)
    if data is None:
        return None
    try:
        decoded = TranscriptionPayload.model_validate(dict(data))
    except ValidationError as exc:
        logger.warning("payload.invalid errors={}", exc.error_count())
        return None
    if not decoded.is_transcription or not decoded.content:
        return None
    return TranscriptionEvent(
        channel_id=channel_id,
        role=decoded.role,
        text=decoded.content,
        is_final=decoded.is_final,
    )


def _unwrap(message: Any) -> Mapping[str, Any] | None:
    if isinstance(message, (str, bytes)):
        return _loads(message)
    if isinstance(message, Mapping):
        if message.get("customType") == "text":
            string_data = message.get("stringData") or "{}"
            if not isinstance(string_data, (str, bytes)):
                logger.warning("payload.undecodable type={}", type(string_data).__name__)
                return None
            return _loads(string_data)
        return message
    return None


def _loads(raw: str | bytes) -> Mapping[str, Any] | None:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("payload.undecodable type={}", type(raw).__name__)
        return None
    if not isinstance(data, Mapping):
        return None
    return data


def _field(payload: Any, key: str) -> Any:
    if isinstance(payload, Mapping):
        return payload.get(key)
    return None
