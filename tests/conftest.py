from __future__ import annotations

import pytest

from livecanvas.channels import TranscriptBus
from livecanvas.config import Settings
from livecanvas.core import TranscriptController


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    for key in ("LIVECANVAS_OPEN_MARKER", "LIVECANVAS_CLOSE_MARKER", "LIVECANVAS_GENERATION_TIMEOUT_SECONDS"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings() -> Settings:
    return Settings(generation_timeout_seconds=0)


@pytest.fixture
def bus() -> TranscriptBus:
    return TranscriptBus()


@pytest.fixture
def controller(bus: TranscriptBus, settings: Settings) -> TranscriptController:
    return TranscriptController(bus, settings)
