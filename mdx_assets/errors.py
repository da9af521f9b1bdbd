"""Exceptions raised by the image pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Union


class AssetPipelineError(Exception):
    """Base class for every error the pipeline raises."""


class ConfigurationError(AssetPipelineError):
    """The pipeline was used before it was configured, or configured badly."""


class FetchError(AssetPipelineError):
    """Retrieving image bytes failed (transport error, bad status or timeout)."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Failed to fetch {url}: {message}")
        self.url = url


class WriteError(AssetPipelineError):
    """Writing an asset to disk failed."""

    def __init__(self, path: Union[str, Path], message: str) -> None:
        super().__init__(f"Failed to write {path}: {message}")
        self.path = Path(path)


class CleanupError(AssetPipelineError):
    """Removing a stale asset failed. Logged, never raised out of a sweep."""

    def __init__(self, path: Union[str, Path], message: str) -> None:
        super().__init__(f"Failed to remove {path}: {message}")
        self.path = Path(path)


class InvalidBlockError(AssetPipelineError, ValueError):
    """An image block has neither a hosted-file nor an external URL."""
