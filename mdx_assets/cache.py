"""Skip-if-present decisions and end-of-run removal of unreferenced images."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Pattern, Set, Union

from .errors import CleanupError

logger = logging.getLogger("mdx_assets")

PathLike = Union[str, Path]


class CacheDecision(str, Enum):
    SKIP = "skip"
    WRITE = "write"


def _normalize(path: PathLike) -> Path:
    return Path(os.path.abspath(os.fspath(path)))


class CacheGate:
    """Decides whether an existing file can be trusted as current."""

    def __init__(self, force_refresh: bool = False) -> None:
        self.force_refresh = force_refresh

    def decide(self, path: PathLike) -> CacheDecision:
        if not self.force_refresh and Path(path).exists():
            return CacheDecision.SKIP
        return CacheDecision.WRITE


@dataclass
class SweepReport:
    """Outcome of removing the images that were not seen during a run."""

    removed: List[Path] = field(default_factory=list)
    failed: List[CleanupError] = field(default_factory=list)


class SeenRegistry:
    """Images that existed before the run and have not been referenced yet.

    Every path the pipeline evaluates is marked seen, whether or not it was
    rewritten. Whatever is still unseen once every block has been processed is
    no longer referenced and gets swept.
    """

    def __init__(self, existing: Iterable[PathLike] = ()) -> None:
        self._not_seen: Set[Path] = {_normalize(path) for path in existing}

    @classmethod
    def from_directories(
        cls, directories: Iterable[PathLike], name_pattern: Pattern[str]
    ) -> "SeenRegistry":
        """Seed the registry with the files under ``directories`` named like ours.

        Only names matching ``name_pattern`` count; anything else in those
        directories was not written by the pipeline and is left alone.
        """
        found: List[Path] = []
        for directory in directories:
            root = Path(directory)
            if not root.is_dir():
                continue
            found.extend(
                path
                for path in root.rglob("*")
                if path.is_file() and name_pattern.match(path.name)
            )
        logger.debug("Found %d existing images", len(found))
        return cls(found)

    def __len__(self) -> int:
        return len(self._not_seen)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return _normalize(path) in self._not_seen

    def mark_seen(self, path: PathLike) -> None:
        self._not_seen.discard(_normalize(path))

    def remaining(self) -> List[Path]:
        return sorted(self._not_seen)

    def sweep(self) -> SweepReport:
        """Delete every path that was never marked seen."""
        report = SweepReport()
        for path in self.remaining():
            logger.info("Removing old image: %s", path)
            try:
                path.unlink()
            except FileNotFoundError:
                logger.debug("Old image already gone: %s", path)
                continue
            except OSError as exc:
                error = CleanupError(path, str(exc))
                logger.warning("%s", error)
                report.failed.append(error)
                continue
            report.removed.append(path)
        self._not_seen.clear()
        return report
