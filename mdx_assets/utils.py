"""Utility helpers for url and path handling."""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from urllib.parse import unquote, urlsplit

DUPLICATE_SEPARATORS = re.compile(r"/{2,}")
DEFAULT_IMAGE_EXTENSION = "png"
# Escapes decodeURI leaves alone (reserved characters and "#"), plus backslash.
RESERVED_ESCAPES = re.compile(r"%(2[346bcf]|3[abdf]|40|5c)", re.IGNORECASE)


def url_before_query(url: str) -> str:
    """Drop the query string and fragment from a url."""
    return url.split("?", 1)[0].split("#", 1)[0]


def url_extension(url: str, default: str = DEFAULT_IMAGE_EXTENSION) -> str:
    """Extension of the last path segment of ``url``, without the dot."""
    suffix = PurePosixPath(urlsplit(url).path).suffix
    return suffix[1:].lower() if len(suffix) > 1 else default


def collapse_separators(path: str) -> str:
    return DUPLICATE_SEPARATORS.sub("/", path)


def normalize_slug(slug: str) -> str:
    """Page slugs arrive rooted ("/intro"); filenames want them bare."""
    return slug.lstrip("/") if slug else ""


def decode_file_name(name: str) -> str:
    """Percent-decode a filename without turning "%2F" into a path separator."""
    return unquote(RESERVED_ESCAPES.sub(r"%25\1", name))
