"""Split one transcription string into spoken text and code payloads."""

from __future__ import annotations

from dataclasses import dataclass

from livecanvas.config import DEFAULT_CLOSE_MARKER, DEFAULT_OPEN_MARKER
from livecanvas.errors import InvalidMarkerError

FENCE = "```"
DOCUMENT_ROOT_MARKERS = ("<html", "<!doctype")


@dataclass(frozen=True)
class MarkerPair:
    """Reserved delimiters that wrap a renderable payload."""

    open: str = DEFAULT_OPEN_MARKER
    close: str = DEFAULT_CLOSE_MARKER

    def __post_init__(self) -> None:
        if not self.open or not self.close:
            raise InvalidMarkerError("code markers must be non-empty")
        if self.open == self.close:
            raise InvalidMarkerError("open and close markers must differ")


DEFAULT_MARKERS = MarkerPair()


@dataclass(frozen=True)
class ParsedResponse:
    spoken_text: str
    codes: tuple[str, ...] = ()


def parse(raw: object, markers: MarkerPair = DEFAULT_MARKERS) -> ParsedResponse:
    """Demultiplex ``raw`` into spoken text and extracted documents.

    Spans run from an open marker to the first close marker after it, so nested
    markers are not supported. A span is extracted only when its cleaned payload
    looks like an HTML document; other spans stay in the spoken text verbatim.
    An open marker with no close marker after it is left as literal text.
    """

    text = _as_text(raw)
    codes: list[str] = []
    kept: list[str] = []
    cursor = 0

    while True:
        start = text.find(markers.open, cursor)
        if start == -1:
            break
        body_start = start + len(markers.open)
        end = text.find(markers.close, body_start)
        if end == -1:
            break
        span_end = end + len(markers.close)

        payload = strip_fences(text[body_start:end])
        if looks_like_document(payload):
            codes.append(payload)
            kept.append(text[cursor:start])
        else:
            kept.append(text[cursor:span_end])
        cursor = span_end

    kept.append(text[cursor:])
    return ParsedResponse(spoken_text="".join(kept).strip(), codes=tuple(codes))


def strip_fences(payload: str) -> str:
    """Remove a markdown fence the model wrapped around a payload."""

    text = payload.strip()
    if text.startswith(FENCE):
        index = len(FENCE)
        while index < len(text) and (text[index].isalnum() or text[index] == "_"):
            index += 1
        if text.startswith("\r\n", index):
            index += 2
        elif text.startswith("\n", index):
            index += 1
        text = text[index:]
    if text.endswith(FENCE):
        text = text[: -len(FENCE)]
    return text.strip()


def looks_like_document(payload: str) -> bool:
    lowered = payload.lower()
    return any(marker in lowered for marker in DOCUMENT_ROOT_MARKERS)


def contains_open_marker(raw: object, markers: MarkerPair = DEFAULT_MARKERS) -> bool:
    return markers.open in _as_text(raw)


def _as_text(raw: object) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return str(raw)
