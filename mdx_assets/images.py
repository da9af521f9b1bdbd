"""Image downloading, type sniffing and asset writing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests
from filetype import guess

from .config import DEFAULT_FETCH_TIMEOUT
from .errors import FetchError, WriteError
from .models import DetectedType

logger = logging.getLogger("mdx_assets")


@dataclass
class FetchedImage:
    """Body of a successful image download."""

    url: str
    data: bytes
    content_type: str = ""
    detected_type: Optional[DetectedType] = None


def detect_image_format(data: bytes) -> Optional[DetectedType]:
    """Detect image type using filetype; extension is lowercase."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            ext = "jpg"
        return DetectedType(extension=ext, mime=kind.mime)
    return None


def infer_image_type(content_type: Optional[str], data: bytes) -> Optional[DetectedType]:
    """Guess the image type from the file signature, then from HTTP metadata."""
    detected = detect_image_format(data)
    if detected:
        return detected
    if not content_type:
        return None
    mime = content_type.split(";")[0].strip().lower()
    parts = mime.split("/")
    if len(parts) == 2 and parts[0] == "image":
        ext = parts[1]
        if ext == "jpeg":
            ext = "jpg"
        elif ext == "svg+xml":
            ext = "svg"
        return DetectedType(extension=ext, mime=mime)
    return None


class ImageFetcher:
    """Retrieves image bytes over HTTP with a shared session."""

    def __init__(
        self,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, url: str) -> FetchedImage:
        logger.debug("Fetching %s", url)
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.Timeout as exc:
            raise FetchError(url, f"timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise FetchError(url, str(exc)) from exc

        content_type = resp.headers.get("Content-Type", "")
        data = resp.content
        return FetchedImage(
            url=url,
            data=data,
            content_type=content_type,
            detected_type=infer_image_type(content_type, data),
        )

    def close(self) -> None:
        self.session.close()


def write_asset(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path``, creating parent directories as needed."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as exc:
        raise WriteError(path, str(exc)) from exc
