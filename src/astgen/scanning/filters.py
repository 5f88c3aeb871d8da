"""
Path filtering.

PathFilter decides whether a candidate is in scope. The evaluation order
is fixed: ignore rules, exclude patterns, include patterns, extension,
then size. Size comes from a stat call so huge files are never read just
to be rejected.

Include, exclude and ignore patterns are fnmatch globs matched against
every run of whole path components, so they apply at any depth. Include
and exclude patterns also see the path as given on the command line, so
`astgen src --exclude "src/gen/*"` works from the current directory.

.gitignore and .ignore files use gitignore semantics via gitignore_parser.
"""

import logging
import os
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Iterable, List, Sequence, Tuple

import gitignore_parser

from ..config import IGNORE_DIRECTORIES, IGNORE_FILE_NAME, RunConfig
from ..core.types import CandidateFile, Decision, Language
from ..parsing.languages import detect_language

logger = logging.getLogger(__name__)

GIT_IGNORE_FILES = (".gitignore", ".ignore")


def read_ignore_file(path: Path) -> List[str]:
    """Read glob patterns from an ignore file, one per line."""
    patterns = []
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#"):
                    patterns.append(line)
    except OSError as e:
        logger.warning(f"Cannot read ignore file {path}: {e}")
    return patterns


def _pattern_matches(pattern: str, segment: str, is_dir: bool) -> bool:
    if pattern.endswith("/"):
        if not is_dir:
            return False
        pattern = pattern.rstrip("/")
    return fnmatch(segment, pattern)


def matches_path(patterns: Iterable[str], rel_path: str, is_dir: bool = False) -> bool:
    """
    True if any pattern matches the path at any depth.

    Every run of whole components is tried, so a pattern behaves like
    "**/pattern": "tests/*" matches "pkg/tests/t.py", and "generated"
    matches everything below a generated/ directory.
    """
    patterns = tuple(patterns)
    if not patterns:
        return False
    parts = rel_path.split("/")
    for end in range(len(parts), 0, -1):
        segment_is_dir = is_dir or end < len(parts)
        for start in range(end):
            segment = "/".join(parts[start:end])
            if any(_pattern_matches(p, segment, segment_is_dir) for p in patterns):
                return True
    return False


class IgnoreRules:
    """
    Ignore rules for one run.

    Holds the default ignored directory names, run-level ignore patterns,
    and the rules of every ignore file loaded during discovery. Ignore-file
    rules apply to the subtree of the directory that contains the file.
    .gitignore and .ignore files are honoured unless git is False.
    Rules are only added during discovery; workers only read them.
    """

    def __init__(
        self,
        patterns: Sequence[str] = (),
        directories: FrozenSet[str] = IGNORE_DIRECTORIES,
        file_name: str = IGNORE_FILE_NAME,
        git: bool = True,
    ):
        self.patterns: Tuple[str, ...] = tuple(patterns)
        self.directories = directories
        self.file_name = file_name
        self.git = git
        self._dir_rules: Dict[Path, Tuple[str, ...]] = {}
        self._git_matchers: Dict[Path, List[Callable[[str], bool]]] = {}

    @classmethod
    def from_config(cls, config: RunConfig) -> "IgnoreRules":
        return cls(
            patterns=config.ignore_patterns,
            directories=config.ignore_directories,
            file_name=config.ignore_file_name,
            git=not config.no_gitignore,
        )

    def load_directory(self, directory: Path) -> None:
        """Load the ignore files of a directory, if it has any."""
        if directory in self._dir_rules:
            return
        ignore_file = directory / self.file_name
        rules: Tuple[str, ...] = ()
        if ignore_file.is_file():
            rules = tuple(read_ignore_file(ignore_file))
            if rules:
                logger.debug(f"Loaded {len(rules)} ignore rules from {ignore_file}")
        self._dir_rules[directory] = rules
        if self.git:
            self._git_matchers[directory] = self._load_git_matchers(directory)

    @staticmethod
    def _load_git_matchers(directory: Path) -> List[Callable[[str], bool]]:
        matchers = []
        for name in GIT_IGNORE_FILES:
            ignore_file = directory / name
            if not ignore_file.is_file():
                continue
            try:
                matchers.append(gitignore_parser.parse_gitignore(str(ignore_file), base_dir=str(directory)))
                logger.debug(f"Loaded {ignore_file}")
            except OSError as e:
                logger.warning(f"Cannot read ignore file {ignore_file}: {e}")
        return matchers

    def skip_directory(self, root: Path, directory: Path) -> bool:
        """Prune check used by the Discoverer before descending."""
        if directory.name in self.directories:
            return True
        return self._matches(root, directory, is_dir=True)

    def is_ignored(self, root: Path, path: Path) -> bool:
        if path != root:
            try:
                parents = path.relative_to(root).parts[:-1]
            except ValueError:
                parents = ()
            if any(part in self.directories for part in parents):
                return True
        return self._matches(root, path, is_dir=False)

    def _matches(self, root: Path, path: Path, is_dir: bool) -> bool:
        if matches_path(self.patterns, _relative(root, path), is_dir):
            return True
        if path == root:
            return False

        # Ignore files of every ancestor directory up to and including root
        for directory in path.parents:
            rules = self._dir_rules.get(directory)
            if rules and matches_path(rules, _relative(directory, path), is_dir):
                return True
            if any(matcher(str(path)) for matcher in self._git_matchers.get(directory, ())):
                return True
            if directory == root:
                break
        return False


def _relative(base: Path, path: Path) -> str:
    if path == base:
        return path.name
    try:
        return path.relative_to(base).as_posix()
    except ValueError:
        return path.as_posix()


@dataclass(frozen=True)
class Verdict:
    """PathFilter result: the decision plus what the worker needs next."""

    decision: Decision
    language: Language | None = None
    size: int | None = None
    detail: str = ""

    @property
    def accepted(self) -> bool:
        return self.decision.accepted


class PathFilter:
    """Pure in-scope decision for a candidate file."""

    def __init__(self, config: RunConfig, ignore_rules: IgnoreRules | None = None):
        self.config = config
        self.ignore_rules = ignore_rules or IgnoreRules.from_config(config)

    def accept(self, candidate: CandidateFile, size: int | None = None) -> Verdict:
        # Relative roots keep their prefix so "src/gen/*" matches under root "src"
        if candidate.path.is_absolute():
            scope = candidate.relative_path
        else:
            scope = candidate.path.as_posix()

        # 1. Ignore rules
        if self.ignore_rules.is_ignored(candidate.root, candidate.path):
            return Verdict(Decision.IGNORED, detail="matched an ignore rule")

        # 2. Exclude always wins over include
        if matches_path(self.config.excludes, scope):
            return Verdict(Decision.EXCLUDED, detail="matched an exclude pattern")

        # 3. Include patterns, when configured, must match
        if self.config.includes and not matches_path(self.config.includes, scope):
            return Verdict(Decision.NOT_INCLUDED, detail="did not match any include pattern")

        # 4. Extension lookup
        language = candidate.language or detect_language(candidate.path)
        if language is None:
            ext = candidate.path.suffix or "(none)"
            return Verdict(Decision.UNSUPPORTED, detail=f"unsupported file type {ext}")

        # 5. Size from metadata, never by reading
        if size is None:
            try:
                size = os.stat(candidate.path).st_size
            except OSError:
                # Left for the read to report as an io error
                return Verdict(Decision.ACCEPT, language=language)

        if size > self.config.max_file_size:
            return Verdict(
                Decision.TOO_LARGE,
                language=language,
                size=size,
                detail=f"file is {size} bytes, limit is {self.config.max_file_size} bytes",
            )

        return Verdict(Decision.ACCEPT, language=language, size=size)
