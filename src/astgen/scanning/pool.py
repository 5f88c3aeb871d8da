"""
Worker Pool.

A fixed set of threads claims candidates from a shared FIFO queue,
applies the PathFilter, reads and parses accepted files, and puts one
ParseOutcome per candidate on a completion queue. Outcomes come back in
completion order; restoring discovery order is the aggregator's job.

Claims are throttled by a window: a worker may only claim a new
candidate while fewer than `window` claimed candidates are ahead of the
contiguous completed prefix. This bounds how many finished trees can be
waiting behind one slow file.
"""

import logging
import queue
import threading
import time
from typing import Generator, Sequence, Set, Tuple

from ..core.types import (
    CandidateFile,
    Decision,
    ErrorKind,
    FileError,
    ParseOutcome,
    ProgressEvent,
)
from ..output.progress import FINISHED, SKIPPED, STARTED, ProgressReporter
from ..parsing.adapter import ParserAdapter
from .filters import PathFilter, Verdict

logger = logging.getLogger(__name__)

# Claimed-but-unreleased candidates allowed per worker
WINDOW_PER_WORKER = 2

_STOP = None


class WorkerPool:
    def __init__(
        self,
        path_filter: PathFilter,
        adapter: ParserAdapter,
        threads: int,
        reporter: ProgressReporter | None = None,
        window: int | None = None,
    ):
        self.path_filter = path_filter
        self.adapter = adapter
        self.threads = max(1, threads)
        self.reporter = reporter or ProgressReporter(enabled=False)
        self.window = window or self.threads * WINDOW_PER_WORKER
        self._cancelled = threading.Event()

    def run(self, candidates: Sequence[CandidateFile]) -> Generator[ParseOutcome, None, None]:
        """
        Process every candidate and yield outcomes as they complete.

        Exactly one outcome is yielded per candidate. Closing the generator
        early stops workers from claiming further candidates.
        """
        if not candidates:
            return

        work: "queue.Queue[Tuple[int, CandidateFile] | None]" = queue.Queue()
        done: "queue.Queue[Tuple[int, ParseOutcome]]" = queue.Queue()
        for position, candidate in enumerate(candidates):
            work.put((position, candidate))

        count = min(self.threads, len(candidates))
        for _ in range(count):
            work.put(_STOP)

        slots = threading.Semaphore(max(self.window, count))
        self._cancelled.clear()
        workers = [
            threading.Thread(
                target=self._work,
                args=(work, done, slots),
                name=f"astgen-worker-{i}",
                daemon=True,
            )
            for i in range(count)
        ]
        logger.debug(f"Starting {count} workers for {len(candidates)} files")
        for worker in workers:
            worker.start()

        completed: Set[int] = set()
        cursor = 0
        try:
            for _ in range(len(candidates)):
                position, outcome = done.get()
                completed.add(position)
                while cursor in completed:
                    completed.discard(cursor)
                    cursor += 1
                    slots.release()
                yield outcome
        finally:
            self._cancelled.set()
            slots.release(count)
            for worker in workers:
                worker.join()

    def _work(self, work: queue.Queue, done: queue.Queue, slots: threading.Semaphore) -> None:
        while True:
            slots.acquire()
            if self._cancelled.is_set():
                return
            item = work.get()
            if item is _STOP:
                return
            position, candidate = item
            done.put((position, self.process(candidate)))

    def process(self, candidate: CandidateFile) -> ParseOutcome:
        """Filter, read and parse one candidate. Never raises."""
        try:
            verdict = self.path_filter.accept(candidate)
            if not verdict.accepted:
                return self._skip(candidate, verdict)

            self.reporter.emit(ProgressEvent(STARTED, candidate.index, candidate.path))
            outcome = self._parse(candidate, verdict)
        except Exception as e:
            logger.error(f"Failed to process {candidate.path}: {e}")
            outcome = ParseOutcome(
                index=candidate.index,
                path=candidate.path,
                language=candidate.language,
                payload=FileError(ErrorKind.INTERNAL, f"{type(e).__name__}: {e}"),
            )

        if not outcome.is_skip:
            self.reporter.emit(ProgressEvent(
                FINISHED, candidate.index, candidate.path, error=outcome.is_error
            ))
        return outcome

    def _parse(self, candidate: CandidateFile, verdict: Verdict) -> ParseOutcome:
        limit = self.path_filter.config.max_file_size
        start = time.perf_counter_ns()

        try:
            with open(candidate.path, "rb") as f:
                content = f.read(limit + 1)
        except OSError as e:
            logger.warning(f"Cannot read {candidate.path}: {e.strerror or e}")
            return ParseOutcome(
                index=candidate.index,
                path=candidate.path,
                language=verdict.language,
                payload=FileError(ErrorKind.IO, f"Cannot read file: {e.strerror or e}"),
                duration_us=(time.perf_counter_ns() - start) // 1000,
            )

        if len(content) > limit:
            # Grew past the limit between stat and read
            return self._skip(candidate, Verdict(
                Decision.TOO_LARGE,
                language=verdict.language,
                detail=f"file exceeds the {limit} byte limit",
            ))

        result = self.adapter.parse(verdict.language, content)
        duration_us = (time.perf_counter_ns() - start) // 1000

        if result.is_err():
            error = result.unwrap_err()
            logger.info(f"Error parsing file {candidate.path}: {error.message}")
            payload = error
        else:
            logger.debug(f"Parsed file: {candidate.path}")
            payload = result.unwrap()

        return ParseOutcome(
            index=candidate.index,
            path=candidate.path,
            language=verdict.language,
            payload=payload,
            duration_us=duration_us,
        )

    def _skip(self, candidate: CandidateFile, verdict: Verdict) -> ParseOutcome:
        logger.debug(f"Skipping {candidate.path}: {verdict.detail}")
        self.reporter.emit(ProgressEvent(SKIPPED, candidate.index, candidate.path))
        return ParseOutcome(
            index=candidate.index,
            path=candidate.path,
            language=verdict.language or candidate.language,
            decision=verdict.decision,
            detail=verdict.detail,
        )
