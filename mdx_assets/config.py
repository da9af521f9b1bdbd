"""Configuration objects and constants for the image pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

from .errors import ConfigurationError

DEFAULT_FETCH_TIMEOUT = 30.0
DEFAULT_I18N_ROOT = Path("i18n")
DEFAULT_DOCS_PLUGIN_DIR = "docusaurus-plugin-content-docs"


class NamingMode(str, Enum):
    """How output filenames are derived for downloaded images."""

    DEFAULT = "default"
    LEGACY = "legacy"
    CONTENT_HASH = "content-hash"

    @classmethod
    def parse(cls, value: Union[str, "NamingMode"]) -> "NamingMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            choices = ", ".join(mode.value for mode in cls)
            raise ConfigurationError(
                f"Unknown image file name format {value!r} (expected one of: {choices})"
            ) from exc


@dataclass(frozen=True)
class ImageConfig:
    """Settings that control how image blocks are persisted for one run."""

    image_file_name_format: NamingMode = NamingMode.DEFAULT
    force_refresh_images: bool = False
    output_root: Optional[Path] = None
    markdown_prefix: str = ""
    locales: Optional[Tuple[str, ...]] = None
    i18n_root: Path = DEFAULT_I18N_ROOT
    docs_plugin_dir: str = DEFAULT_DOCS_PLUGIN_DIR
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT

    def __post_init__(self) -> None:
        # Frozen, so normalised values go through object.__setattr__.
        object.__setattr__(
            self, "image_file_name_format", NamingMode.parse(self.image_file_name_format)
        )
        object.__setattr__(self, "markdown_prefix", self.markdown_prefix.rstrip("/"))
        if self.output_root is not None:
            object.__setattr__(self, "output_root", Path(self.output_root))
        object.__setattr__(self, "i18n_root", Path(self.i18n_root))
        if self.locales is not None:
            object.__setattr__(self, "locales", tuple(self.locales))

    @property
    def naming_mode(self) -> NamingMode:
        return self.image_file_name_format

    def require_locales(self) -> Tuple[str, ...]:
        """Return the configured locales, failing if they were never set."""
        if self.locales is None:
            raise ConfigurationError(
                "Image handling is not initialised: no locale list was configured"
            )
        return self.locales

    def locale_docs_dir(self, locale: str) -> Path:
        """Root of the translated documentation tree for ``locale``."""
        return self.i18n_root / locale / self.docs_plugin_dir / "current"
