"""
Global Configuration and Safety Defaults.

This module centralizes the defaults that protect a run from huge files,
runaway traversal and oversubscribed thread pools, together with the
resolved, immutable RunConfig that the pipeline reads.

Resolution order: built-in defaults, then the YAML config file
(.astgenrc or --config), then command line values.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .core.errors import ConfigError
from .core.types import OutputFormat

logger = logging.getLogger(__name__)

# --- Safety Limits ---
BYTES_PER_MB = 1_000_000
DEFAULT_MAX_FILE_SIZE_MB = 10
MAX_FILE_SIZE_MB_LIMIT = 1000

# Upper bound for the worker pool regardless of available cores
MAX_THREADS = 64

DEFAULT_MAX_DEPTH = 100

# Directory progress bars are shown automatically above this many files
AUTO_PROGRESS_THRESHOLD = 10

# --- Blocklists ---

# Directories pruned during traversal (build artifacts, VCS metadata)
IGNORE_DIRECTORIES: FrozenSet[str] = frozenset({
    # Version Control
    ".git",
    ".svn",
    ".hg",
    # Build output & dependencies
    "target",
    "node_modules",
    "build",
    "dist",
    ".venv",
    "__pycache__",
    # Tool caches
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    ".tox",
})

IGNORE_FILE_NAME = ".astgenignore"
CONFIG_FILE_NAME = ".astgenrc"

# Config file key -> RunConfig field. max_file_size is in MB in the file.
_FILE_KEYS: Dict[str, str] = {
    "include": "includes",
    "includes": "includes",
    "exclude": "excludes",
    "excludes": "excludes",
    "max_file_size": "max_file_size_mb",
    "maxFileSize": "max_file_size_mb",
    "parallel": "threads",
    "truncate": "truncate",
    "format": "format",
    "output": "output_path",
    "outputPath": "output_path",
    "max_depth": "max_depth",
    "maxDepth": "max_depth",
    "follow_links": "follow_links",
    "followLinks": "follow_links",
    "no_gitignore": "no_gitignore",
    "noGitignore": "no_gitignore",
    "fail_on_error": "fail_on_error",
    "failOnError": "fail_on_error",
}


def default_thread_count() -> int:
    """Available parallelism, clamped to MAX_THREADS."""
    return max(1, min(os.cpu_count() or 1, MAX_THREADS))


class RunConfig(BaseModel):
    """
    Fully resolved settings for one run.

    Built once before the pipeline starts and shared read-only by every
    worker thread.
    """

    model_config = ConfigDict(frozen=True)

    paths: Tuple[Path, ...] = ()
    includes: Tuple[str, ...] = ()
    excludes: Tuple[str, ...] = ()
    ignore_patterns: Tuple[str, ...] = ()
    ignore_directories: FrozenSet[str] = IGNORE_DIRECTORIES
    ignore_file_name: str = IGNORE_FILE_NAME
    max_file_size: int = DEFAULT_MAX_FILE_SIZE_MB * BYTES_PER_MB
    threads: int = Field(default_factory=default_thread_count)
    truncate: int | None = None
    format: OutputFormat = OutputFormat.JSON
    output_path: Path | None = None
    max_depth: int = DEFAULT_MAX_DEPTH
    follow_links: bool = False
    no_gitignore: bool = False
    quiet: bool = False
    verbose: bool = False
    dry_run: bool = False
    progress: bool = False
    fail_on_error: bool = False

    @field_validator("threads")
    @classmethod
    def _check_threads(cls, value: int) -> int:
        if value < 1:
            raise ValueError(
                "Thread count must be at least 1. Try --parallel 1 or omit the flag to use the default."
            )
        if value > MAX_THREADS:
            raise ValueError(
                f"Thread count cannot exceed {MAX_THREADS}. Try a smaller number like --parallel 8."
            )
        return value

    @field_validator("max_file_size")
    @classmethod
    def _check_max_file_size(cls, value: int) -> int:
        if value < BYTES_PER_MB:
            raise ValueError("Max file size must be at least 1 MB. Try --max-file-size 1.")
        if value > MAX_FILE_SIZE_MB_LIMIT * BYTES_PER_MB:
            raise ValueError(
                f"Max file size cannot exceed {MAX_FILE_SIZE_MB_LIMIT} MB. "
                "Try a smaller limit like --max-file-size 100."
            )
        return value

    @field_validator("max_depth")
    @classmethod
    def _check_max_depth(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Max depth must be at least 1.")
        return value

    @field_validator("truncate")
    @classmethod
    def _check_truncate(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("Truncate limit must be a positive number of bytes.")
        return value

    @field_validator("includes", "excludes", "ignore_patterns")
    @classmethod
    def _check_patterns(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        for pattern in value:
            if not pattern.strip():
                raise ValueError("Patterns cannot be empty. Use a valid glob pattern like '*.rs'.")
        return value

    @model_validator(mode="after")
    def _check_combinations(self) -> "RunConfig":
        if self.verbose and self.quiet:
            raise ValueError("Cannot use both --verbose and --quiet. Choose one or neither.")
        if self.output_path is not None:
            parent = self.output_path.parent
            if str(parent) and not parent.exists():
                raise ValueError(
                    f"Output directory does not exist: {parent}. Create the directory first."
                )
        return self


def find_config_file(cwd: Path | None = None, home: Path | None = None) -> Path | None:
    """Look for .astgenrc in the current directory, then the home directory."""
    for base in (cwd or Path.cwd(), home or Path.home()):
        candidate = base / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Read a YAML config file into a flat mapping of RunConfig field names.

    Raises:
        ConfigError: If the file cannot be read or is not a YAML mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config file {path}: expected a mapping of settings")

    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key == "ignore":
            if not isinstance(value, dict):
                raise ConfigError(f"Invalid config file {path}: 'ignore' must be a mapping")
            if value.get("patterns"):
                values["ignore_patterns"] = tuple(value["patterns"])
            if value.get("directories"):
                values["extra_ignore_directories"] = tuple(value["directories"])
            continue

        field_name = _FILE_KEYS.get(key)
        if field_name is None:
            logger.warning(f"Ignoring unknown config key '{key}' in {path}")
            continue
        if field_name in ("includes", "excludes") and isinstance(value, str):
            value = (value,)
        values[field_name] = value

    logger.debug(f"Loaded config file {path}: {sorted(values)}")
    return values


def resolve_config(
    cli_values: Mapping[str, Any],
    file_values: Mapping[str, Any] | None = None,
) -> RunConfig:
    """
    Merge config file values with command line overrides into a RunConfig.

    Command line values that were not given (None, False or empty) leave
    the config file value in place.

    Raises:
        ConfigError: On any invalid or conflicting setting.
    """
    merged: Dict[str, Any] = dict(file_values or {})
    for key, value in cli_values.items():
        if value is None or value is False or value == ():
            continue
        merged[key] = value

    if not merged.get("paths"):
        raise ConfigError("No input files specified")

    extra_dirs = merged.pop("extra_ignore_directories", ())
    if extra_dirs:
        merged["ignore_directories"] = IGNORE_DIRECTORIES | frozenset(extra_dirs)

    size_mb = merged.pop("max_file_size_mb", None)
    if size_mb is not None:
        if not isinstance(size_mb, int) or isinstance(size_mb, bool):
            raise ConfigError(f"max_file_size must be a whole number of MB, got {size_mb!r}")
        merged["max_file_size"] = size_mb * BYTES_PER_MB

    try:
        return RunConfig(**merged)
    except ValidationError as e:
        raise ConfigError(_describe_validation_error(e)) from e


def _describe_validation_error(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        message = item["msg"].removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)
