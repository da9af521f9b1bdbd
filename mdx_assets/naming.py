"""Output filename and path planning for persisted images."""

from __future__ import annotations

import hashlib
import logging
import posixpath
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Pattern

from .config import ImageConfig, NamingMode
from .models import DetectedType, ImageDescriptor, PageContext
from .utils import (
    DEFAULT_IMAGE_EXTENSION,
    collapse_separators,
    decode_file_name,
    normalize_slug,
    url_before_query,
    url_extension,
)

logger = logging.getLogger("mdx_assets")

UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)
CONTENT_HASH_CHARS = 16

# Names this module can produce, used to tell persisted images from
# files someone else put in the same directories.
_UUID_OR_HEX = r"(?:[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}|[0-9a-f]{32})"
_EXTENSION = r"\.[^./\\]+"
PERSISTED_NAME_PATTERNS = {
    NamingMode.DEFAULT: re.compile(rf"^(?:.+\.)?{_UUID_OR_HEX}{_EXTENSION}$", re.IGNORECASE),
    NamingMode.LEGACY: re.compile(rf"^[0-9a-f]{{8}}{_EXTENSION}$"),
    NamingMode.CONTENT_HASH: re.compile(rf"^[0-9a-f]{{{CONTENT_HASH_CHARS}}}{_EXTENSION}$"),
}


@dataclass
class PlannedPaths:
    """Where an image is written and how markdown should refer to it."""

    output_file_name: str
    primary_output_path: Path
    markdown_reference_path: str


def hash_of_string(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:8]


def hash_of_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:CONTENT_HASH_CHARS]


def find_last_uuid(value: str) -> Optional[str]:
    matches = UUID_PATTERN.findall(value)
    return matches[-1] if matches else None


def default_file_name(url: str, block_id: str, slug: str) -> str:
    """``<slug>.<block id>.<ext>``; the slug part is dropped when empty."""
    slug_part = normalize_slug(slug)
    prefix = f"{slug_part}." if slug_part else ""
    return f"{prefix}{block_id}.{url_extension(url)}"


def legacy_file_name(url: str) -> str:
    """Hash of the last UUID in the url (or of the whole url) plus extension."""
    bare_url = url_before_query(url)
    thing_to_hash = find_last_uuid(bare_url) or bare_url
    return f"{hash_of_string(thing_to_hash)}.{url_extension(url)}"


def content_hash_file_name(
    data: bytes, url: str, detected: Optional[DetectedType] = None
) -> str:
    """Hash of the bytes themselves; identical images share one file."""
    if detected:
        extension = detected.extension
    else:
        extension = url_extension(url, default=DEFAULT_IMAGE_EXTENSION)
    return f"{hash_of_bytes(data)}.{extension}"


def file_name_without_bytes(
    mode: NamingMode, url: str, block_id: str, slug: str
) -> Optional[str]:
    """Name an image from identifiers alone.

    Returns ``None`` when ``mode`` needs the downloaded bytes first; the caller
    must then fetch and use :func:`file_name_from_bytes`.
    """
    if mode is NamingMode.LEGACY:
        return legacy_file_name(url)
    if mode is NamingMode.DEFAULT:
        return default_file_name(url, block_id, slug)
    return None


def file_name_from_bytes(
    mode: NamingMode,
    url: str,
    block_id: str,
    slug: str,
    data: bytes,
    detected: Optional[DetectedType] = None,
) -> str:
    if mode is NamingMode.CONTENT_HASH:
        return content_hash_file_name(data, url, detected)
    if mode is NamingMode.LEGACY:
        return legacy_file_name(url)
    return default_file_name(url, block_id, slug)


def plan_paths(file_name: str, config: ImageConfig, page: PageContext) -> PlannedPaths:
    """Combine a filename with the output root and markdown prefix."""
    root = config.output_root if config.output_root is not None else page.directory_containing_markdown
    prefix = config.markdown_prefix or "."
    return PlannedPaths(
        output_file_name=file_name,
        primary_output_path=Path(root) / decode_file_name(file_name),
        markdown_reference_path=f"{prefix}/{file_name}",
    )


def localized_output_path(
    file_name: str, locale: str, config: ImageConfig, page: PageContext
) -> Path:
    """Path of the copy that lives in ``locale``'s documentation tree."""
    relative_folder = page.relative_file_path_to_folder_containing_page.strip("/")
    joined = posixpath.join(
        config.locale_docs_dir(locale).as_posix(), relative_folder, decode_file_name(file_name)
    )
    return Path(collapse_separators(joined))


def apply_plan(descriptor: ImageDescriptor, planned: PlannedPaths) -> None:
    descriptor.output_file_name = planned.output_file_name
    descriptor.primary_output_path = planned.primary_output_path
    descriptor.markdown_reference_path = planned.markdown_reference_path
    logger.debug(
        "Planned %s -> %s (markdown: %s)",
        descriptor.primary_url,
        planned.primary_output_path,
        planned.markdown_reference_path,
    )


def persisted_name_pattern(mode: NamingMode) -> Pattern[str]:
    """Shape of the filenames ``mode`` writes; block ids are source UUIDs."""
    return PERSISTED_NAME_PATTERNS[mode]
