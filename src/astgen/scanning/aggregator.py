"""
Result Aggregator.

Turns outcomes arriving in arbitrary completion order back into strict
discovery order. Outcomes ahead of the cursor wait in a buffer keyed by
index; whenever the expected index arrives, it and every buffered
outcome contiguous with it are released together.
"""

import logging
from typing import Dict, Generator, Iterable, List

from ..core.types import ParseOutcome

logger = logging.getLogger(__name__)


class ResultAggregator:
    def __init__(self):
        self.next_expected = 0
        self._buffer: Dict[int, ParseOutcome] = {}
        self.max_buffered = 0

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def push(self, outcome: ParseOutcome) -> List[ParseOutcome]:
        """
        Accept one completion and return the outcomes it releases, in order.

        Raises:
            ValueError: If the index was already released or is buffered.
        """
        index = outcome.index
        if index < self.next_expected or index in self._buffer:
            raise ValueError(f"Duplicate outcome for index {index}")

        if index != self.next_expected:
            self._buffer[index] = outcome
            self.max_buffered = max(self.max_buffered, len(self._buffer))
            return []

        released = [outcome]
        self.next_expected += 1
        while self.next_expected in self._buffer:
            released.append(self._buffer.pop(self.next_expected))
            self.next_expected += 1
        return released

    def drain(self, completions: Iterable[ParseOutcome]) -> Generator[ParseOutcome, None, None]:
        """Yield every outcome of an unordered stream in index order."""
        for outcome in completions:
            yield from self.push(outcome)

    def finish(self, total: int) -> None:
        """
        Check the terminal condition: every index below total was released.

        Raises:
            ValueError: If outcomes are missing or still buffered.
        """
        if self._buffer or self.next_expected != total:
            missing = self.next_expected
            raise ValueError(
                f"Incomplete results: expected {total}, released {self.next_expected}, "
                f"{len(self._buffer)} buffered (first missing index {missing})"
            )
        logger.debug(f"Aggregated {total} outcomes, peak buffer {self.max_buffered}")
