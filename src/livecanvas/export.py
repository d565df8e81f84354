"""Packaging and sharing of exported artifacts."""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import cast
from urllib import error as urllib_error
from urllib import parse as urllib_parse
from urllib import request as urllib_request

from loguru import logger

from livecanvas.config import Settings
from livecanvas.core.state import ArtifactExport
from livecanvas.errors import PasteNotFoundError, ShareError

USER_AGENT = "livecanvas/0.1"
MAX_PASTE_BYTES = 2_000_000


def write_archive(export: ArtifactExport, directory: Path) -> Path:
    """Write ``<name>.zip`` holding the artifact as ``<name>.html``."""
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / export.archive_name
    with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(export.html_name, export.content)
    logger.info("export.archive path={} artifact={}", target, export.artifact_id)
    return target


def paste_id_from_url(raw: str) -> str:
    cleaned = raw.strip().replace('"', "").replace("'", "")
    return cleaned.rstrip("/").rsplit("/", 1)[-1]


class PasteClient:
    """Share artifact source through a dpaste-compatible paste service."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()

    def share(self, content: str) -> str:
        """Create a paste and return its id."""
        if not content.strip():
            raise ShareError("content is required")
        form = urllib_parse.urlencode({
            "content": content,
            "syntax": "html",
            "expiry_days": str(self.settings.paste_expiry_days),
        }).encode("utf-8")
        request = urllib_request.Request(  # noqa: S310 - endpoint comes from settings.
            self.settings.paste_api_url,
            data=form,
            method="POST",
            headers={"User-Agent": USER_AGENT, "Content-Type": "application/x-www-form-urlencoded"},
        )
        body = self._open(request)
        paste_id = paste_id_from_url(body)
        if not paste_id:
            raise ShareError("paste service returned no id")
        logger.info("share.created id={}", paste_id)
        return paste_id

    def paste_url(self, paste_id: str) -> str:
        return f"{self.settings.paste_base_url.rstrip('/')}/{paste_id}"

    def fetch(self, paste_id: str) -> str:
        if not paste_id:
            raise PasteNotFoundError("paste id is required")
        raw_url = f"{self.paste_url(urllib_parse.quote(paste_id, safe=''))}/raw/"
        request = urllib_request.Request(raw_url, headers={"User-Agent": USER_AGENT})  # noqa: S310
        content = self._open(request)
        if not content.strip():
            raise PasteNotFoundError(f"paste {paste_id} is empty")
        return content

    def _open(self, request: urllib_request.Request) -> str:
        try:
            with urllib_request.urlopen(request, timeout=self.settings.request_timeout_seconds) as response:  # noqa: S310
                body_bytes = response.read(MAX_PASTE_BYTES + 1)
                charset = response.headers.get_content_charset() or "utf-8"
        except urllib_error.HTTPError as exc:
            logger.warning("share.http_error url={} status={}", request.full_url, exc.code)
            if exc.code == 404:
                raise PasteNotFoundError("paste not found or expired") from exc
            raise ShareError(f"paste service responded with HTTP {exc.code}") from exc
        except (urllib_error.URLError, OSError) as exc:
            raise ShareError(f"paste service unreachable: {exc!s}") from exc
        if len(body_bytes) > MAX_PASTE_BYTES:
            raise ShareError(f"paste exceeds {MAX_PASTE_BYTES} bytes")
        return cast(str, body_bytes.decode(charset, errors="replace"))
