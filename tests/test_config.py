"""Tests for ImageConfig normalisation."""

from __future__ import annotations

from pathlib import Path

import pytest

from mdx_assets.config import ImageConfig, NamingMode
from mdx_assets.errors import ConfigurationError


def test_mode_is_parsed_from_option_string() -> None:
    config = ImageConfig(image_file_name_format="content-hash")
    assert config.naming_mode is NamingMode.CONTENT_HASH


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="content-hash"):
        ImageConfig(image_file_name_format="sha1")


def test_trailing_slash_is_removed_from_prefix() -> None:
    assert ImageConfig(markdown_prefix="/img/").markdown_prefix == "/img"


def test_locales_become_a_tuple() -> None:
    config = ImageConfig(locales=["fr", "es"])
    assert config.require_locales() == ("fr", "es")


def test_config_is_immutable() -> None:
    config = ImageConfig()
    with pytest.raises(AttributeError):
        config.force_refresh_images = True


def test_locale_docs_dir() -> None:
    config = ImageConfig(i18n_root="site/i18n")
    assert config.locale_docs_dir("fr") == Path(
        "site/i18n/fr/docusaurus-plugin-content-docs/current"
    )
