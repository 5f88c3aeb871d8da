"""
File discovery.

Walks the root paths and yields CandidateFile records whose index is the
traversal position. Traversal order is fixed so that the index, and with
it the output order, is reproducible:

- roots in the order given;
- within a directory, files sorted by name, then subdirectories sorted
  by name, depth first (pre-order).

Ignored, hidden and too-deep directories are pruned before descending.
"""

import logging
from pathlib import Path
from typing import Generator, List, Set

from ..config import RunConfig
from ..core.types import CandidateFile
from ..parsing.languages import detect_language
from .filters import IgnoreRules

logger = logging.getLogger(__name__)


class Discoverer:
    def __init__(self, config: RunConfig, ignore_rules: IgnoreRules | None = None):
        self.config = config
        self.ignore_rules = ignore_rules or IgnoreRules.from_config(config)
        self.missing_roots: List[Path] = []

    def discover(self) -> Generator[CandidateFile, None, None]:
        """Yield candidates with monotonically increasing indices."""
        index = 0
        seen: Set[Path] = set()
        for root in self.config.paths:
            for path in self._walk_root(root):
                key = path.resolve()
                if key in seen:
                    continue
                seen.add(key)
                yield CandidateFile(
                    index=index,
                    root=root,
                    path=path,
                    language=detect_language(path),
                )
                index += 1

    def _walk_root(self, root: Path) -> Generator[Path, None, None]:
        if not root.exists():
            logger.error(f"Cannot access {root}: no such file or directory")
            self.missing_roots.append(root)
            return

        if not root.is_dir():
            yield root
            return

        logger.info(f"Processing directory: {root}")
        for dirpath, dirnames, filenames in root.walk(
            follow_symlinks=self.config.follow_links,
            on_error=self._on_walk_error,
        ):
            self.ignore_rules.load_directory(dirpath)
            depth = len(dirpath.relative_to(root).parts)

            # Prune in place; Path.walk descends into what is left, in order
            dirnames[:] = [
                name for name in sorted(dirnames)
                if self._should_descend(root, dirpath / name, depth)
            ]

            for name in sorted(filenames):
                if name.startswith("."):
                    continue
                path = dirpath / name
                if not self.config.follow_links and path.is_symlink():
                    continue
                if path.is_file():
                    yield path

    def _should_descend(self, root: Path, directory: Path, depth: int) -> bool:
        # Files directly in root are at depth 1
        if depth + 2 > self.config.max_depth:
            return False
        if directory.name.startswith("."):
            return False
        if self.ignore_rules.skip_directory(root, directory):
            logger.debug(f"Skipping ignored directory {directory}")
            return False
        return True

    @staticmethod
    def _on_walk_error(error: OSError) -> None:
        logger.warning(f"Cannot read directory {error.filename}: {error.strerror}")
