"""
Scan Engine for astgen.

Wires one run together: Discoverer -> WorkerPool -> ResultAggregator ->
OutputWriter, with the ProgressReporter as a side channel. Returns a
Result so the CLI decides exit status from values, not from exceptions
leaking out of worker threads.
"""

import logging
import time
from dataclasses import dataclass
from typing import List, Tuple

from pydantic import BaseModel

from ..config import RunConfig
from ..core.errors import AstgenError, ConfigError
from ..core.result import Err, Ok, Result
from ..core.types import CandidateFile, ParseOutcome
from ..output.progress import ProgressReporter
from ..output.writer import OutputWriter
from ..parsing.adapter import ParserAdapter, create_default_adapter
from .aggregator import ResultAggregator
from .discovery import Discoverer
from .filters import IgnoreRules, PathFilter, Verdict
from .pool import WorkerPool

logger = logging.getLogger(__name__)


@dataclass
class ScanStats:
    discovered: int = 0
    parsed: int = 0
    failed: int = 0
    skipped: int = 0
    written: int = 0
    bytes: int = 0
    truncated: bool = False
    duration_ms: float = 0.0

    def summary(self) -> "ScanSummary":
        return ScanSummary(
            files_discovered=self.discovered,
            files_parsed=self.parsed,
            files_failed=self.failed,
            files_skipped=self.skipped,
            records_written=self.written,
            bytes_written=self.bytes,
            truncated=self.truncated,
            duration_sec=round(self.duration_ms / 1000, 2),
        )


class ScanSummary(BaseModel):
    """
    Structured run summary, as shown on stderr in verbose mode.
    """
    files_discovered: int
    files_parsed: int
    files_failed: int
    files_skipped: int
    records_written: int
    bytes_written: int
    truncated: bool
    duration_sec: float


@dataclass
class ScanError:
    """Structured error for a run that could not complete."""
    message: str
    cause: Exception | None = None

    @property
    def exit_code(self) -> int:
        return getattr(self.cause, "exit_code", 1)


class ScanEngine:
    """
    Central orchestrator for one run.

    Discovery and filtering share one IgnoreRules instance: the Discoverer
    loads ignore files while walking, workers only read them afterwards.
    """

    def __init__(
        self,
        config: RunConfig,
        adapter: ParserAdapter | None = None,
        reporter: ProgressReporter | None = None,
    ):
        self.config = config
        self._adapter = adapter
        self.reporter = reporter or ProgressReporter(enabled=False)
        self.ignore_rules = IgnoreRules.from_config(config)
        self.discoverer = Discoverer(config, self.ignore_rules)
        self.path_filter = PathFilter(config, self.ignore_rules)

    @property
    def adapter(self) -> ParserAdapter:
        if self._adapter is None:
            self._adapter = create_default_adapter()
        return self._adapter

    def preflight(self) -> None:
        """
        Fail before any output is produced if no root exists.

        Raises:
            ConfigError: If every root path is missing.
        """
        if not any(path.exists() for path in self.config.paths):
            names = ", ".join(str(p) for p in self.config.paths)
            raise ConfigError(f"No valid input paths: {names}")

    def discover(self) -> List[CandidateFile]:
        candidates = list(self.discoverer.discover())
        logger.debug(f"Discovered {len(candidates)} files")
        return candidates

    def dry_run(self) -> List[Tuple[CandidateFile, Verdict]]:
        """Discovery and filtering only; nothing is read or parsed."""
        return [(c, self.path_filter.accept(c)) for c in self.discover()]

    def run(self, writer: OutputWriter) -> Result[ScanStats, ScanError]:
        """
        Parse every discovered file and write records in discovery order.

        Returns Ok(ScanStats) or Err(ScanError).
        """
        start_time = time.perf_counter()
        stats = ScanStats()

        try:
            candidates = self.discover()
        except OSError as e:
            return Err(ScanError(f"File discovery failed: {e}", cause=e))

        total = len(candidates)
        stats.discovered = total
        pool = WorkerPool(self.path_filter, self.adapter, self.config.threads, self.reporter)
        aggregator = ResultAggregator()

        outcomes = pool.run(candidates)
        self.reporter.start(total)
        try:
            for outcome in aggregator.drain(outcomes):
                self._tally(stats, outcome)
                writer.write(outcome)
            aggregator.finish(total)
        except AstgenError as e:
            return Err(ScanError(str(e), cause=e))
        except ValueError as e:
            logger.error(f"Result ordering failed: {e}")
            return Err(ScanError(str(e), cause=e))
        finally:
            outcomes.close()
            self.reporter.stop()

        stats.written = writer.records_written
        stats.bytes = writer.bytes_written
        stats.truncated = writer.truncated
        stats.duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            f"Processed {stats.discovered} files: {stats.parsed} parsed, "
            f"{stats.failed} failed, {stats.skipped} skipped "
            f"({stats.duration_ms:.0f}ms)"
        )
        return Ok(stats)

    @staticmethod
    def _tally(stats: ScanStats, outcome: ParseOutcome) -> None:
        if outcome.is_skip:
            stats.skipped += 1
        elif outcome.is_error:
            stats.failed += 1
        else:
            stats.parsed += 1
