"""Caption parsing: split a raw caption into text and per-locale image urls."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

from .config import ImageConfig
from .models import ImageBlock, ImageDescriptor, LocalizedUrl

# e.g. "fr https://i.imgur.com/pYmE7OJ.png" or "ES  https://i.imgur.com/8paSZ0i.png"
LOCALE_OVERRIDE_PATTERN = re.compile(r"^\s*([A-Za-z]{2})\s+(https://\S+)\s*$")


@dataclass
class OverrideLine:
    locale: str
    url: str


@dataclass
class CaptionFragment:
    text: str


CaptionLine = Union[OverrideLine, CaptionFragment]


def classify_caption_lines(caption: str) -> List[CaptionLine]:
    """Classify every line of a caption as a locale override or plain text."""
    lines: List[CaptionLine] = []
    for line in caption.split("\n"):
        match = LOCALE_OVERRIDE_PATTERN.match(line)
        if match:
            lines.append(OverrideLine(locale=match.group(1).lower(), url=match.group(2)))
        else:
            lines.append(CaptionFragment(text=line))
    return lines


def fold_caption(lines: Sequence[CaptionLine]) -> str:
    """Join the text fragments into a single line; newlines break the markdown."""
    text = "".join(f"{line.text} " for line in lines if isinstance(line, CaptionFragment))
    return text.strip()


def parse_image_block(block: ImageBlock, config: ImageConfig) -> ImageDescriptor:
    """Build the descriptor for one image block.

    ``localized_urls`` starts with an empty placeholder for every configured
    locale, followed by any overrides found in the caption. Placeholders and
    overrides for the same locale coexist here; :func:`resolve_localized_urls`
    decides between them.
    """
    locales = config.require_locales()
    lines = classify_caption_lines(block.caption_text)
    localized = [LocalizedUrl(locale=code) for code in locales]
    localized.extend(
        LocalizedUrl(locale=line.locale, url=line.url)
        for line in lines
        if isinstance(line, OverrideLine)
    )
    return ImageDescriptor(
        primary_url=block.source.url,
        caption=fold_caption(lines),
        localized_urls=localized,
    )


def resolve_localized_urls(descriptor: ImageDescriptor) -> List[LocalizedUrl]:
    """Collapse placeholders and overrides to one entry per locale code.

    Configured locales keep their position; a non-empty override wins over the
    empty placeholder. Codes that only appear as overrides follow in caption order.
    """
    resolved: Dict[str, LocalizedUrl] = {}
    for entry in descriptor.localized_urls:
        current: Optional[LocalizedUrl] = resolved.get(entry.locale)
        if current is None or (entry.url and not current.url):
            resolved[entry.locale] = entry
    return list(resolved.values())
