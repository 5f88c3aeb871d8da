"""
astgen CLI - Main entry point.

Resolves a RunConfig from the config file and flags, then either lists
what would be parsed (--dry-run) or runs the scan pipeline and writes one
record per discovered file.

Exit status: 0 on success, including runs where some files failed to
parse (the failure is in that file's record); 1 with --fail-on-error when
any file failed, or when the output cannot be written; 2 on invalid
configuration.
"""

import logging
import sys
from pathlib import Path
from typing import Tuple

import click

from ..config import AUTO_PROGRESS_THRESHOLD, find_config_file, load_config_file, resolve_config
from ..core.errors import ConfigError, SinkError
from ..core.types import OutputFormat
from ..output.progress import ProgressReporter
from ..output.writer import OutputWriter
from ..scanning.engine import ScanEngine
from .utils import echo_error, echo_info, echo_success, echo_warning, print_languages

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.WARNING
    if verbose:
        level = logging.INFO
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _make_reporter(progress: bool, quiet: bool) -> ProgressReporter:
    if progress:
        return ProgressReporter(enabled=True)
    auto = not quiet and sys.stderr.isatty()
    return ProgressReporter(enabled=auto, min_total=AUTO_PROGRESS_THRESHOLD)


@click.command()
@click.argument("paths", nargs=-1, type=click.Path(path_type=Path))
@click.option(
    "-f", "--format", "fmt",
    type=click.Choice([f.value for f in OutputFormat]),
    default=None,
    help="Output format (default: json)",
)
@click.option("--include", "includes", multiple=True, help="Only parse paths matching this glob")
@click.option("--exclude", "excludes", multiple=True, help="Skip paths matching this glob")
@click.option("-o", "--output", "output_path", type=click.Path(path_type=Path), help="Write records to a file instead of stdout")
@click.option("--truncate", type=int, help="Stop output at the last whole record within this many bytes")
@click.option("--parallel", "threads", type=int, help="Number of worker threads")
@click.option("--max-file-size", "max_file_size_mb", type=int, help="Skip files larger than this many MB (default: 10)")
@click.option("--max-depth", type=int, help="Maximum directory depth to descend (default: 100)")
@click.option("--follow-links", is_flag=True, help="Follow symbolic links")
@click.option("--no-gitignore", is_flag=True, help="Do not apply .gitignore and .ignore files")
@click.option("--progress", is_flag=True, help="Always show a progress bar on stderr")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output and skip records")
@click.option("-q", "--quiet", is_flag=True, help="Only show errors")
@click.option("--dry-run", is_flag=True, help="List files that would be parsed without parsing them")
@click.option("--fail-on-error", is_flag=True, help="Exit 1 if any file failed to parse")
@click.option("-c", "--config", "config_path", type=click.Path(path_type=Path), help="Config file (default: .astgenrc)")
@click.option("--list-languages", is_flag=True, help="List supported languages and exit")
@click.version_option(package_name="astgen")
def main(
    paths: Tuple[Path, ...],
    fmt: str | None,
    includes: Tuple[str, ...],
    excludes: Tuple[str, ...],
    output_path: Path | None,
    truncate: int | None,
    threads: int | None,
    max_file_size_mb: int | None,
    max_depth: int | None,
    follow_links: bool,
    no_gitignore: bool,
    progress: bool,
    verbose: bool,
    quiet: bool,
    dry_run: bool,
    fail_on_error: bool,
    config_path: Path | None,
    list_languages: bool,
):
    """astgen: Parse source trees into ordered AST records.

    Walks PATHS, parses every supported file in parallel and writes one
    record per file in discovery order.

    \b
    Examples:
      astgen src/
      astgen . --include '*.rs' --format yaml -o ast.yaml
      astgen . --dry-run
    """
    _configure_logging(verbose, quiet)

    if list_languages:
        print_languages()
        return

    try:
        config_file = config_path or find_config_file()
        file_values = load_config_file(config_file) if config_file else {}
        config = resolve_config(
            {
                "paths": paths,
                "format": fmt,
                "includes": includes,
                "excludes": excludes,
                "output_path": output_path,
                "truncate": truncate,
                "threads": threads,
                "max_file_size_mb": max_file_size_mb,
                "max_depth": max_depth,
                "follow_links": follow_links,
                "no_gitignore": no_gitignore,
                "progress": progress,
                "verbose": verbose,
                "quiet": quiet,
                "dry_run": dry_run,
                "fail_on_error": fail_on_error,
            },
            file_values,
        )
        engine = ScanEngine(config, reporter=_make_reporter(config.progress, config.quiet))
        engine.preflight()
    except ConfigError as e:
        echo_error(str(e))
        sys.exit(e.exit_code)

    if config.dry_run:
        _print_dry_run(engine, config.verbose, config.quiet)
        return

    try:
        with OutputWriter.from_config(config) as writer:
            result = engine.run(writer)
    except SinkError as e:
        echo_error(str(e))
        sys.exit(e.exit_code)

    if result.is_err():
        error = result.unwrap_err()
        echo_error(error.message)
        sys.exit(error.exit_code)

    stats = result.unwrap()
    if config.verbose:
        for key, value in stats.summary().model_dump().items():
            echo_info(f"{key}: {value}")
    if stats.truncated and not config.quiet:
        echo_warning(f"Output truncated after {stats.written} records ({stats.bytes} bytes)")
    if config.output_path and not config.quiet:
        echo_success(f"Wrote {stats.written} records to {config.output_path}")

    if config.fail_on_error and stats.failed:
        echo_error(f"{stats.failed} file(s) failed to parse")
        sys.exit(1)


def _print_dry_run(engine: ScanEngine, verbose: bool, quiet: bool) -> None:
    would_parse = 0
    for candidate, verdict in engine.dry_run():
        if verdict.accepted:
            would_parse += 1
            if not quiet:
                click.echo(f"Would parse: {candidate.path} ({verdict.language.display_name})")
        elif verbose:
            click.echo(f"Would skip: {candidate.path} ({verdict.detail})")
    logger.info(f"Dry run: {would_parse} files would be parsed")


if __name__ == "__main__":
    main()
