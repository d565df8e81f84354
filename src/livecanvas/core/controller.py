"""Session transcript controller."""

from __future__ import annotations

import asyncio
import itertools
import time
from asyncio import AbstractEventLoop
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from blinker import Signal
from loguru import logger

from livecanvas.channels.bus import TranscriptBus
from livecanvas.channels.events import TranscriptionEvent
from livecanvas.config import Settings
from livecanvas.core.demux import MarkerPair, contains_open_marker, parse
from livecanvas.core.resources import SessionResources
from livecanvas.core.state import (
    ArtifactExport,
    CodeArtifact,
    ControllerSnapshot,
    GenerationState,
    TranscriptEntry,
)
from livecanvas.errors import ArtifactNotFoundError, NoArtifactSelectedError, SessionNotActiveError
from livecanvas.logging_utils import bind_channel

ChangeHandler = Callable[[ControllerSnapshot], None]


def _running_loop() -> AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class TranscriptController:
    """Turn one channel's transcription stream into transcript turns and artifacts.

    The controller is the only writer of its transcript, artifact list, selection
    and generation state. Events are applied one at a time in arrival order by a
    single consumer task per session; events that do not belong to the active
    session are dropped.
    """

    def __init__(self, bus: TranscriptBus, settings: Settings | None = None) -> None:
        self.bus = bus
        self.settings = settings or Settings()
        self.markers = MarkerPair(self.settings.open_marker, self.settings.close_marker)
        self._greeting_phrases = tuple(
            phrase.strip().casefold() for phrase in self.settings.greeting_phrases if phrase.strip()
        )
        self._transcript: list[TranscriptEntry] = []
        self._artifacts: list[CodeArtifact] = []
        self._selected_id: str | None = None
        self._generation = GenerationState.IDLE
        self._resources: SessionResources | None = None
        self._lifecycle = asyncio.Lock()
        self._ids = itertools.count(1)
        self._changed = Signal("livecanvas.controller.changed")

    # Session lifecycle

    async def start_session(self, channel_id: str) -> None:
        """Reset all state, then begin consuming events for ``channel_id``."""
        async with self._lifecycle:
            await self._release_resources()
            self._transcript.clear()
            self._artifacts.clear()
            self._selected_id = None
            self._generation = GenerationState.IDLE

            bind_channel(channel_id)
            resources = SessionResources.acquire(self.bus, channel_id)
            self._resources = resources
            resources.consumer = asyncio.create_task(self._consume(resources), name=f"livecanvas:{channel_id}")
            logger.info("session.start channel={}", channel_id)
        self._notify()

    async def end_session(self) -> None:
        """Stop consuming events; keep artifacts and selection for export."""
        async with self._lifecycle:
            channel_id = self.channel_id
            await self._release_resources()
            self._transcript.clear()
            self._generation = GenerationState.IDLE
            bind_channel(None)
            logger.info("session.end channel={} artifacts={}", channel_id, len(self._artifacts))
        self._notify()

    @asynccontextmanager
    async def session(self, channel_id: str) -> AsyncIterator[TranscriptController]:
        await self.start_session(channel_id)
        try:
            yield self
        finally:
            await self.end_session()

    async def _release_resources(self) -> None:
        resources = self._resources
        self._resources = None
        if resources is not None:
            await resources.release()

    async def _consume(self, resources: SessionResources) -> None:
        async for event in resources.subscription:
            if resources is not self._resources:
                return
            try:
                self.apply(event)
            except Exception:
                logger.exception("event.apply.error channel={}", resources.channel_id)

    async def feed(self, payload: Any) -> TranscriptionEvent | None:
        """Decode a raw platform payload for the active channel and publish it."""
        channel_id = self.channel_id
        if channel_id is None:
            raise SessionNotActiveError("no active session to feed")
        event = TranscriptionEvent.from_payload(channel_id, payload)
        if event is not None:
            await self.bus.publish(event)
        return event

    async def drain(self) -> None:
        """Wait until every event already delivered to the session is applied."""
        resources = self._resources
        if resources is not None:
            await resources.subscription.join()

    # Event application

    def apply(self, event: TranscriptionEvent) -> bool:
        """Apply one event; returns ``False`` when the event was dropped as stale."""
        resources = self._resources
        if resources is None or resources.released or event.channel_id != resources.channel_id:
            logger.debug("event.drop stale channel={} final={}", event.channel_id, event.is_final)
            return False

        self._advance_generation(event, resources)
        if event.is_final:
            self._record_final(event)
        self._notify()
        return True

    def _advance_generation(self, event: TranscriptionEvent, resources: SessionResources) -> None:
        if event.role != "agent":
            return
        if event.is_final:
            resources.cancel_timer()
            if self._generation is GenerationState.GENERATING:
                logger.info("generation.finish channel={}", resources.channel_id)
            self._generation = GenerationState.IDLE
            return
        if not contains_open_marker(event.text, self.markers) or self._is_greeting(event.text):
            return
        if self._generation is GenerationState.IDLE:
            logger.info("generation.start channel={}", resources.channel_id)
        self._generation = GenerationState.GENERATING
        self._arm_generation_timer(resources)

    def _is_greeting(self, text: str) -> bool:
        if not self._greeting_phrases:
            return False
        lowered = text.casefold()
        return all(phrase in lowered for phrase in self._greeting_phrases)

    def _arm_generation_timer(self, resources: SessionResources) -> None:
        timeout = self.settings.generation_timeout_seconds
        loop = _running_loop()
        if timeout <= 0 or loop is None:
            return
        resources.cancel_timer()
        resources.generation_timer = loop.call_later(timeout, self._expire_generation, resources)

    def _expire_generation(self, resources: SessionResources) -> None:
        resources.generation_timer = None
        if resources is not self._resources or self._generation is GenerationState.IDLE:
            return
        logger.warning("generation.timeout channel={}", resources.channel_id)
        self._generation = GenerationState.IDLE
        self._notify()

    def _record_final(self, event: TranscriptionEvent) -> None:
        parsed = parse(event.text, self.markers)
        if parsed.spoken_text:
            self._transcript.append(TranscriptEntry(id=self._next_id("turn"), role=event.role, text=parsed.spoken_text))
        for code in parsed.codes:
            artifact = CodeArtifact(id=self._next_id("artifact"), content=code)
            self._artifacts.append(artifact)
            self._selected_id = artifact.id
            logger.info("artifact.new id={} size={}", artifact.id, len(code))

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    # Read side

    @property
    def channel_id(self) -> str | None:
        return None if self._resources is None else self._resources.channel_id

    @property
    def active(self) -> bool:
        return self._resources is not None

    @property
    def generation_state(self) -> GenerationState:
        return self._generation

    @property
    def is_generating(self) -> bool:
        return self._generation is GenerationState.GENERATING

    @property
    def transcript(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._transcript)

    @property
    def artifacts(self) -> tuple[CodeArtifact, ...]:
        return tuple(self._artifacts)

    @property
    def selected_artifact_id(self) -> str | None:
        return self._selected_id

    @property
    def selected_artifact(self) -> CodeArtifact | None:
        return next((artifact for artifact in self._artifacts if artifact.id == self._selected_id), None)

    def snapshot(self) -> ControllerSnapshot:
        return ControllerSnapshot(
            transcript=tuple(self._transcript),
            artifacts=tuple(self._artifacts),
            selected_artifact_id=self._selected_id,
            is_generating=self.is_generating,
            channel_id=self.channel_id,
        )

    def select_artifact(self, artifact_id: str) -> CodeArtifact:
        for artifact in self._artifacts:
            if artifact.id == artifact_id:
                self._selected_id = artifact.id
                self._notify()
                return artifact
        raise ArtifactNotFoundError(artifact_id)

    def export_selected(self) -> ArtifactExport:
        artifact = self.selected_artifact
        if artifact is None:
            raise NoArtifactSelectedError("no artifact selected")
        stamp = int(time.time() * 1000)
        return ArtifactExport(artifact_id=artifact.id, filename=f"code-{stamp}", content=artifact.content)

    def on_change(self, handler: ChangeHandler) -> Callable[[], None]:
        def _receiver(sender: Any, *, snapshot: ControllerSnapshot) -> None:
            handler(snapshot)

        self._changed.connect(_receiver, weak=False)
        return lambda: self._changed.disconnect(_receiver)

    def _notify(self) -> None:
        if self._changed.receivers:
            self._changed.send(self, snapshot=self.snapshot())
