"""Command-line entry point for persisting image blocks locally."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence, Tuple

from .config import (
    DEFAULT_DOCS_PLUGIN_DIR,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_I18N_ROOT,
    ImageConfig,
    NamingMode,
)
from .errors import AssetPipelineError
from .models import PageContext
from .pipeline import ImagePipeline, image_markdown

logger = logging.getLogger("mdx_assets.cli")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Download the images referenced by exported image blocks, rewrite the "
            "blocks to point at the local copies and remove images no longer used."
        ),
    )
    parser.add_argument(
        "blocks",
        type=Path,
        help='JSON file of the form {"pages": [{"slug", "directory", "relative_folder", "blocks"}]}',
    )
    parser.add_argument(
        "--output-root",
        type=Path,
        default=None,
        help="Directory for images (default: next to each page's markdown)",
    )
    parser.add_argument(
        "--prefix",
        default="",
        help="Path prefix used for image references in markdown (default: '.')",
    )
    parser.add_argument(
        "--locale",
        dest="locales",
        action="append",
        default=[],
        help="Locale code that needs its own copy of every image (repeatable)",
    )
    parser.add_argument(
        "--format",
        dest="image_file_name_format",
        choices=[mode.value for mode in NamingMode],
        default=NamingMode.DEFAULT.value,
        help="How image filenames are derived",
    )
    parser.add_argument(
        "--force-refresh",
        action="store_true",
        help="Download and rewrite images even when the file already exists",
    )
    parser.add_argument(
        "--i18n-root",
        type=Path,
        default=DEFAULT_I18N_ROOT,
        help="Root of the translated documentation trees",
    )
    parser.add_argument(
        "--docs-plugin-dir",
        default=DEFAULT_DOCS_PLUGIN_DIR,
        help="Name of the docs plugin directory inside each locale tree",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_FETCH_TIMEOUT,
        help="Timeout in seconds for each image download",
    )
    parser.add_argument(
        "--write-json",
        type=Path,
        default=None,
        help="Write the rewritten blocks here instead of back to the input file",
    )
    parser.add_argument(
        "--emit-markdown",
        action="store_true",
        help="Print a markdown image line for every processed block to STDOUT",
    )
    parser.add_argument(
        "--no-cleanup",
        action="store_true",
        help="Keep images that were not referenced during this run",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def iter_image_blocks(document: Dict[str, Any]) -> Iterator[Tuple[PageContext, Dict[str, Any]]]:
    """Yield every image block of every page together with its page context."""
    for page in document.get("pages", []):
        context = PageContext(
            slug=page.get("slug", ""),
            directory_containing_markdown=Path(page.get("directory", ".")),
            relative_file_path_to_folder_containing_page=page.get("relative_folder", ""),
        )
        for block in page.get("blocks", []):
            if block.get("type", "image") == "image":
                yield context, block


def page_directories(document: Dict[str, Any]) -> List[Path]:
    """Directories of every page, where images land without an output root."""
    return [Path(page.get("directory", ".")) for page in document.get("pages", [])]


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    config = ImageConfig(
        image_file_name_format=NamingMode.parse(args.image_file_name_format),
        force_refresh_images=args.force_refresh,
        output_root=args.output_root.resolve() if args.output_root else None,
        markdown_prefix=args.prefix,
        locales=tuple(code.lower() for code in args.locales),
        i18n_root=args.i18n_root,
        docs_plugin_dir=args.docs_plugin_dir,
        fetch_timeout=args.timeout,
    )

    document = json.loads(args.blocks.read_text(encoding="utf-8"))
    pipeline = ImagePipeline(config)
    overall_start = time.perf_counter()
    markdown_lines: List[str] = []
    try:
        pipeline.begin_run(page_directories=page_directories(document))
        for page, block in iter_image_blocks(document):
            pipeline.process_image_block(block, page)
            markdown_lines.append(image_markdown(block))
    except AssetPipelineError as exc:
        logger.error("%s", exc)
        return 1
    finally:
        pipeline.fetcher.close()

    destination = args.write_json or args.blocks
    destination.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Saved rewritten blocks to %s", destination)

    if not args.no_cleanup:
        report = pipeline.cleanup_old_images()
        logger.info("Removed %d old images", len(report.removed))

    stats = pipeline.stats
    logger.info(
        "Finished in %.2fs (%d blocks, %d downloads, %d written, %d skipped)",
        time.perf_counter() - overall_start,
        stats.blocks,
        stats.fetched,
        stats.written,
        stats.skipped,
    )

    if args.emit_markdown:
        for line in markdown_lines:
            sys.stdout.write(line + "\n")
        sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
