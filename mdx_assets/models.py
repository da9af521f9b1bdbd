"""Data models used throughout the image pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import InvalidBlockError


@dataclass
class RichText:
    """One run of caption text."""

    plain_text: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RichText":
        return cls(plain_text=data.get("plain_text") or "")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "text",
            "text": {"content": self.plain_text, "link": None},
            "plain_text": self.plain_text,
        }


@dataclass
class HostedFile:
    """Image uploaded to the source service (``{"file": {"url": ...}}``)."""

    url: str
    kind = "file"


@dataclass
class ExternalReference:
    """Image that still points at a third-party host (``{"external": {"url": ...}}``)."""

    url: str
    kind = "external"


ImageSource = Union[HostedFile, ExternalReference]


@dataclass
class ImageBlock:
    """An image block as delivered by the source document tree."""

    id: str
    source: ImageSource
    caption: List[RichText] = field(default_factory=list)

    @classmethod
    def from_dict(cls, block: Dict[str, Any]) -> "ImageBlock":
        image = block.get("image", block)
        if "file" in image:
            source: ImageSource = HostedFile(url=image["file"].get("url") or "")
        elif "external" in image:
            source = ExternalReference(url=image["external"].get("url") or "")
        else:
            raise InvalidBlockError(f"Image block {block.get('id')!r} has no file or external source")
        if not source.url:
            raise InvalidBlockError(f"Image block {block.get('id')!r} has an empty {source.kind} url")
        caption = [RichText.from_dict(item) for item in image.get("caption") or []]
        return cls(id=block.get("id", ""), source=source, caption=caption)

    @property
    def caption_text(self) -> str:
        return "".join(item.plain_text for item in self.caption)

    def apply_to(self, block: Dict[str, Any]) -> None:
        """Write the (rewritten) url and caption back into the raw block."""
        image = block.get("image", block)
        image[self.source.kind]["url"] = self.source.url
        image["caption"] = [item.to_dict() for item in self.caption]


@dataclass
class PageContext:
    """Where the page that owns an image block is being written."""

    slug: str
    directory_containing_markdown: Path
    relative_file_path_to_folder_containing_page: str = ""


@dataclass
class LocalizedUrl:
    """Per-locale image url; an empty url means "use the primary image"."""

    locale: str
    url: str = ""


@dataclass
class DetectedType:
    """File type recovered by sniffing downloaded bytes."""

    extension: str
    mime: str


@dataclass
class ImageDescriptor:
    """Everything known about one image block as it moves through the pipeline."""

    primary_url: str
    caption: Optional[str] = None
    localized_urls: List[LocalizedUrl] = field(default_factory=list)
    page: Optional[PageContext] = None
    primary_bytes: Optional[bytes] = None
    detected_type: Optional[DetectedType] = None
    output_file_name: Optional[str] = None
    primary_output_path: Optional[Path] = None
    markdown_reference_path: Optional[str] = None
