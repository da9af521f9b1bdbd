"""Tests for caption parsing and locale override resolution."""

from __future__ import annotations

import pytest

from conftest import image_block
from mdx_assets.captions import (
    CaptionFragment,
    OverrideLine,
    classify_caption_lines,
    fold_caption,
    parse_image_block,
    resolve_localized_urls,
)
from mdx_assets.config import ImageConfig
from mdx_assets.errors import ConfigurationError
from mdx_assets.models import ImageBlock, LocalizedUrl

MIXED_CAPTION = "Intro text.\nfr https://example.com/a.png\nES https://example.com/b.png\nOutro."


def test_locale_lines_are_extracted_and_lowercased() -> None:
    block = ImageBlock.from_dict(image_block(caption=MIXED_CAPTION))
    descriptor = parse_image_block(block, ImageConfig(locales=()))

    assert descriptor.caption == "Intro text. Outro."
    assert descriptor.localized_urls == [
        LocalizedUrl("fr", "https://example.com/a.png"),
        LocalizedUrl("es", "https://example.com/b.png"),
    ]


def test_placeholders_come_first_in_configured_order() -> None:
    block = ImageBlock.from_dict(image_block(caption=MIXED_CAPTION))
    descriptor = parse_image_block(block, ImageConfig(locales=("de", "fr")))

    assert [entry.locale for entry in descriptor.localized_urls] == ["de", "fr", "fr", "es"]
    assert descriptor.localized_urls[0].url == ""
    assert descriptor.localized_urls[1].url == ""


def test_primary_url_comes_from_external_source() -> None:
    block = ImageBlock.from_dict(
        image_block(url="https://docs.example.com/pic.jpg", kind="external")
    )
    descriptor = parse_image_block(block, ImageConfig(locales=()))

    assert descriptor.primary_url == "https://docs.example.com/pic.jpg"
    assert descriptor.caption == ""


def test_caption_runs_are_joined_before_splitting() -> None:
    raw = image_block()
    raw["image"]["caption"] = [
        {"plain_text": "A diagram\nfr https://exa"},
        {"plain_text": "mple.com/fr.png"},
    ]
    descriptor = parse_image_block(ImageBlock.from_dict(raw), ImageConfig(locales=()))

    assert descriptor.caption == "A diagram"
    assert descriptor.localized_urls == [LocalizedUrl("fr", "https://example.com/fr.png")]


def test_parsing_without_locales_is_a_configuration_error() -> None:
    block = ImageBlock.from_dict(image_block(caption="hello"))
    with pytest.raises(ConfigurationError):
        parse_image_block(block, ImageConfig())


def test_http_urls_are_not_overrides() -> None:
    lines = classify_caption_lines("fr http://example.com/a.png")
    assert lines == [CaptionFragment("fr http://example.com/a.png")]


def test_fold_caption_ignores_override_lines() -> None:
    lines = [
        CaptionFragment("  first"),
        OverrideLine("fr", "https://example.com/a.png"),
        CaptionFragment("second  "),
    ]
    assert fold_caption(lines) == "first second"


def test_resolve_prefers_override_over_placeholder() -> None:
    block = ImageBlock.from_dict(image_block(caption="es https://example.com/es.png"))
    descriptor = parse_image_block(block, ImageConfig(locales=("es", "fr")))

    resolved = resolve_localized_urls(descriptor)

    assert resolved == [
        LocalizedUrl("es", "https://example.com/es.png"),
        LocalizedUrl("fr", ""),
    ]


def test_resolve_keeps_unconfigured_override_locales() -> None:
    block = ImageBlock.from_dict(image_block(caption="ja https://example.com/ja.png"))
    descriptor = parse_image_block(block, ImageConfig(locales=("fr",)))

    assert [entry.locale for entry in resolve_localized_urls(descriptor)] == ["fr", "ja"]
