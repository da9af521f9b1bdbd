"""Shared fixtures for the image pipeline tests."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from mdx_assets.config import ImageConfig
from mdx_assets.errors import FetchError
from mdx_assets.images import FetchedImage, detect_image_format
from mdx_assets.models import PageContext

PNG_HEADER = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
JPEG_HEADER = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00"


def png_bytes(payload: bytes = b"primary") -> bytes:
    return PNG_HEADER + payload


def jpeg_bytes(payload: bytes = b"photo") -> bytes:
    return JPEG_HEADER + payload


class FakeFetcher:
    """Serves canned bodies and records every url requested."""

    def __init__(self, bodies: Optional[Dict[str, bytes]] = None) -> None:
        self.bodies: Dict[str, bytes] = dict(bodies or {})
        self.calls: List[str] = []
        self.closed = False

    def fetch(self, url: str) -> FetchedImage:
        self.calls.append(url)
        if url not in self.bodies:
            raise FetchError(url, "404 Client Error: Not Found")
        data = self.bodies[url]
        return FetchedImage(url=url, data=data, detected_type=detect_image_format(data))

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def page(tmp_path: Path) -> PageContext:
    directory = tmp_path / "docs" / "guide"
    directory.mkdir(parents=True)
    return PageContext(
        slug="/getting-started",
        directory_containing_markdown=directory,
        relative_file_path_to_folder_containing_page="guide",
    )


@pytest.fixture
def make_config(tmp_path: Path):
    """Build an ImageConfig rooted inside ``tmp_path``."""

    def _make(**overrides) -> ImageConfig:
        values = dict(
            output_root=tmp_path / "static" / "img",
            markdown_prefix="/img/",
            locales=("fr",),
            i18n_root=tmp_path / "i18n",
        )
        values.update(overrides)
        return ImageConfig(**values)

    return _make


def image_block(
    block_id: str = "b1",
    url: str = "https://files.example.com/secure/diagram.png?X-Amz-Signature=abc",
    caption: str = "",
    kind: str = "file",
) -> dict:
    """Raw image block as exported from the source document tree."""
    runs = [{"type": "text", "plain_text": caption}] if caption else []
    return {
        "id": block_id,
        "type": "image",
        "image": {"type": kind, kind: {"url": url}, "caption": runs},
    }


# Block ids as the source service hands them out.
BLOCK_A = "0c1e7a52-8a4b-4f53-9d77-2f1c5e4a9b01"
BLOCK_B = "0c1e7a52-8a4b-4f53-9d77-2f1c5e4a9b02"
