"""Per-block orchestration: plan, fetch, persist and rewrite image blocks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from .cache import CacheDecision, CacheGate, PathLike, SeenRegistry, SweepReport
from .captions import parse_image_block, resolve_localized_urls
from .config import ImageConfig
from .errors import ConfigurationError, WriteError
from .images import FetchedImage, ImageFetcher, write_asset
from .models import ImageBlock, ImageDescriptor, PageContext, RichText
from .naming import (
    apply_plan,
    file_name_from_bytes,
    file_name_without_bytes,
    localized_output_path,
    persisted_name_pattern,
    plan_paths,
)

logger = logging.getLogger("mdx_assets")

AssetWriter = Callable[[Path, bytes], None]


@dataclass
class RunStats:
    """Counters for one run of the pipeline."""

    blocks: int = 0
    fetched: int = 0
    written: int = 0
    skipped: int = 0


class ImagePipeline:
    """Copies images referenced by blocks into the docs tree and rewrites the blocks.

    One instance covers one run: call :meth:`begin_run` once, then
    :meth:`process_image_block` for every image block of every page, then
    :meth:`cleanup_old_images` to remove images nothing referenced.
    """

    def __init__(
        self,
        config: ImageConfig,
        fetcher: Optional[ImageFetcher] = None,
        writer: AssetWriter = write_asset,
    ) -> None:
        self.config = config
        self.fetcher = fetcher or ImageFetcher(timeout=config.fetch_timeout)
        self.writer = writer
        self.gate = CacheGate(force_refresh=config.force_refresh_images)
        self.stats = RunStats()
        self._registry: Optional[SeenRegistry] = None
        self._finished = False

    @property
    def registry(self) -> SeenRegistry:
        if self._registry is None:
            raise ConfigurationError("Image handling is not initialised; call begin_run() first")
        if self._finished:
            raise ConfigurationError("This run has already been cleaned up")
        return self._registry

    def existing_image_directories(self, page_directories: Iterable[PathLike] = ()) -> List[Path]:
        """Directories the pipeline writes images into.

        Without an output root, primary images sit next to each page, so the
        caller must name those page directories.
        """
        directories = [
            self.config.locale_docs_dir(locale) for locale in self.config.require_locales()
        ]
        if self.config.output_root is not None:
            directories.insert(0, self.config.output_root)
        else:
            directories[:0] = [Path(directory) for directory in page_directories]
        return directories

    def begin_run(
        self,
        existing: Optional[Iterable[PathLike]] = None,
        page_directories: Iterable[PathLike] = (),
    ) -> SeenRegistry:
        """Prepare the output tree and record which images already exist.

        Existing images are found by scanning the output root (or
        ``page_directories`` when there is none) and every locale tree for
        files named the way the configured naming mode names them.
        ``existing`` replaces the scan with an explicit list.
        """
        if self._registry is not None:
            raise ConfigurationError("begin_run() may only be called once per pipeline")
        self.config.require_locales()

        # Images are never wiped up front: an unchanged image keeps its name,
        # so keeping the directory is what lets later runs skip the download.
        if self.config.output_root is not None:
            try:
                self.config.output_root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise WriteError(self.config.output_root, str(exc)) from exc

        if existing is None:
            self._registry = SeenRegistry.from_directories(
                self.existing_image_directories(page_directories),
                persisted_name_pattern(self.config.naming_mode),
            )
        else:
            self._registry = SeenRegistry(existing)
        logger.debug("Tracking %d existing images for cleanup", len(self._registry))
        return self._registry

    def process_image_block(self, block: Dict[str, Any], page: PageContext) -> ImageDescriptor:
        """Persist the images of one block and point the block at the local copy."""
        registry = self.registry
        image_block = ImageBlock.from_dict(block)
        logger.debug("Processing image block %s (%s)", image_block.id, image_block.source.url)

        descriptor = parse_image_block(image_block, self.config)
        descriptor.page = page
        mode = self.config.naming_mode

        file_name = file_name_without_bytes(mode, descriptor.primary_url, image_block.id, page.slug)
        if file_name is None:
            # content-hash: the name depends on the bytes, so download first.
            self._read_primary_image(descriptor)
            file_name = file_name_from_bytes(
                mode,
                descriptor.primary_url,
                image_block.id,
                page.slug,
                descriptor.primary_bytes or b"",
                descriptor.detected_type,
            )
        apply_plan(descriptor, plan_paths(file_name, self.config, page))

        self._save_primary_image(descriptor, registry)
        self._save_localized_images(descriptor, registry)

        image_block.source.url = descriptor.markdown_reference_path or ""
        image_block.caption = [RichText(descriptor.caption)] if descriptor.caption else []
        image_block.apply_to(block)
        self.stats.blocks += 1
        return descriptor

    def cleanup_old_images(self) -> SweepReport:
        """Remove every pre-existing image that no block referenced this run."""
        report = self.registry.sweep()
        self._finished = True
        if report.failed:
            logger.warning("Could not remove %d old images", len(report.failed))
        return report

    def _fetch(self, url: str) -> FetchedImage:
        fetched = self.fetcher.fetch(url)
        self.stats.fetched += 1
        return fetched

    def _write(self, path: Path, data: bytes) -> None:
        self.writer(path, data)
        self.stats.written += 1

    def _read_primary_image(self, descriptor: ImageDescriptor) -> None:
        fetched = self._fetch(descriptor.primary_url)
        descriptor.primary_bytes = fetched.data
        descriptor.detected_type = fetched.detected_type

    def _primary_bytes_for_fallback(self, descriptor: ImageDescriptor) -> bytes:
        if descriptor.primary_bytes is not None:
            return descriptor.primary_bytes
        path = descriptor.primary_output_path
        if path is not None and path.exists():
            # The primary was skipped as current; its file holds the same bytes.
            try:
                descriptor.primary_bytes = path.read_bytes()
                return descriptor.primary_bytes
            except OSError as exc:
                logger.debug("Could not read %s, downloading instead: %s", path, exc)
        self._read_primary_image(descriptor)
        return descriptor.primary_bytes or b""

    def _save_primary_image(self, descriptor: ImageDescriptor, registry: SeenRegistry) -> None:
        path = descriptor.primary_output_path
        if path is None:
            raise ConfigurationError(f"No output path planned for {descriptor.primary_url}")
        registry.mark_seen(path)

        if self.gate.decide(path) is CacheDecision.SKIP:
            logger.debug("Primary image already exists, skipping: %s", path)
            self.stats.skipped += 1
            return
        if descriptor.primary_bytes is None:
            self._read_primary_image(descriptor)
        self._write(path, descriptor.primary_bytes or b"")
        logger.info("Saved primary image: %s", path)

    def _save_localized_images(self, descriptor: ImageDescriptor, registry: SeenRegistry) -> None:
        page = descriptor.page
        file_name = descriptor.output_file_name
        if page is None or file_name is None:
            raise ConfigurationError(f"No output path planned for {descriptor.primary_url}")

        for localized in resolve_localized_urls(descriptor):
            path = localized_output_path(file_name, localized.locale, self.config, page)
            registry.mark_seen(path)

            if self.gate.decide(path) is CacheDecision.SKIP:
                logger.debug(
                    "Localized (%s) image already exists, skipping: %s", localized.locale, path
                )
                self.stats.skipped += 1
                continue

            if localized.url:
                logger.debug("Retrieving %s version...", localized.locale)
                data = self._fetch(localized.url).data
            else:
                logger.debug(
                    "No localized image specified for %s, will use primary image.",
                    localized.locale,
                )
                data = self._primary_bytes_for_fallback(descriptor)
            self._write(path, data)
            logger.info("Saved localized (%s) image: %s", localized.locale, path)


def image_markdown(block: Dict[str, Any]) -> str:
    """Render a processed image block as a markdown image."""
    image_block = ImageBlock.from_dict(block)
    return f"![{image_block.caption_text}]({image_block.source.url})"
