"""Application-level exception types for livecanvas."""

from __future__ import annotations


class LiveCanvasError(Exception):
    """Base exception for livecanvas."""


class ConfigurationError(LiveCanvasError):
    """Base exception for configuration and startup validation errors."""


class InvalidMarkerError(ConfigurationError):
    """Raised when the code marker pair is empty or ambiguous."""


class SessionError(LiveCanvasError):
    """Base exception for session lifecycle errors."""


class SessionNotActiveError(SessionError):
    """Raised when an operation needs a live session and there is none."""


class ArtifactError(LiveCanvasError):
    """Base exception for artifact selection and export."""


class ArtifactNotFoundError(ArtifactError):
    """Raised when selecting an artifact id that does not exist."""


class NoArtifactSelectedError(ArtifactError):
    """Raised when exporting while no artifact is selected."""


class ShareError(LiveCanvasError):
    """Raised when the paste service rejects or fails a request."""


class PasteNotFoundError(ShareError):
    """Raised when a shared paste is missing, expired or empty."""
