"""
Progress reporting.

Workers never touch the progress bar. They emit events into a queue and
move on; a single reporter thread owns the counters and the rich
progress display. Disabling the reporter drops events and changes
nothing else about the run.
"""

import logging
import queue
import threading

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from ..core.types import ProgressEvent

logger = logging.getLogger(__name__)

STARTED = "started"
FINISHED = "finished"
SKIPPED = "skipped"


class ProgressReporter:
    """Renders processed vs. discovered counts from worker events."""

    def __init__(
        self,
        enabled: bool = True,
        console: Console | None = None,
        min_total: int = 0,
    ):
        self.enabled = enabled
        self.min_total = min_total
        self.console = console or Console(stderr=True)
        self.total = 0
        self.processed = 0
        self.skipped = 0
        self.failed = 0
        self._events: "queue.Queue[ProgressEvent | None]" = queue.Queue()
        self._thread: threading.Thread | None = None

    def start(self, total: int) -> None:
        self.total = total
        # Auto mode: no bar at or below min_total files
        if total <= self.min_total:
            self.enabled = False
        if not self.enabled or self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="astgen-progress", daemon=True)
        self._thread.start()

    def emit(self, event: ProgressEvent) -> None:
        """Fire-and-forget; never blocks the caller."""
        if self.enabled:
            self._events.put_nowait(event)

    def stop(self) -> None:
        if self._thread is None:
            return
        self._events.put_nowait(None)
        self._thread.join()
        self._thread = None
        logger.debug(
            f"Progress: {self.processed} processed, {self.skipped} skipped, "
            f"{self.failed} failed of {self.total}"
        )

    def _run(self) -> None:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=False,
        ) as progress:
            task = progress.add_task("Processing files", total=self.total)
            while True:
                event = self._events.get()
                if event is None:
                    break
                self._apply(event)
                if event.kind == STARTED:
                    progress.update(task, description=f"Processing {event.path.name}"[:50])
                else:
                    progress.update(task, completed=self.processed + self.skipped)
            progress.update(task, description="Complete")

    def _apply(self, event: ProgressEvent) -> None:
        if event.kind == FINISHED:
            self.processed += 1
            if event.error:
                self.failed += 1
        elif event.kind == SKIPPED:
            self.skipped += 1
