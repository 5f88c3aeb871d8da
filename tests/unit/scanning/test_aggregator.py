"""Unit tests for ordered aggregation with synthetic completion orders."""

import random
from pathlib import Path

import pytest

from astgen.core.types import ParseOutcome
from astgen.scanning.aggregator import ResultAggregator


def outcome(index: int) -> ParseOutcome:
    return ParseOutcome(index=index, path=Path(f"f{index}.py"), language=None)


class TestResultAggregator:
    def test_in_order_passes_through(self):
        aggregator = ResultAggregator()
        for i in range(3):
            assert [o.index for o in aggregator.push(outcome(i))] == [i]
        assert aggregator.pending == 0

    def test_buffers_until_contiguous(self):
        aggregator = ResultAggregator()
        assert aggregator.push(outcome(2)) == []
        assert aggregator.push(outcome(1)) == []
        assert aggregator.pending == 2
        assert [o.index for o in aggregator.push(outcome(0))] == [0, 1, 2]
        assert aggregator.next_expected == 3
        assert aggregator.max_buffered == 2

    @pytest.mark.parametrize("seed", range(5))
    def test_any_completion_order_yields_sorted(self, seed):
        order = list(range(200))
        random.Random(seed).shuffle(order)
        aggregator = ResultAggregator()

        released = [o.index for o in aggregator.drain(outcome(i) for i in order)]

        assert released == list(range(200))
        aggregator.finish(200)

    def test_duplicate_rejected(self):
        aggregator = ResultAggregator()
        aggregator.push(outcome(0))
        with pytest.raises(ValueError, match="Duplicate"):
            aggregator.push(outcome(0))

        aggregator.push(outcome(3))
        with pytest.raises(ValueError, match="Duplicate"):
            aggregator.push(outcome(3))

    def test_finish_detects_gap(self):
        aggregator = ResultAggregator()
        list(aggregator.drain([outcome(0), outcome(2)]))
        with pytest.raises(ValueError, match="first missing index 1"):
            aggregator.finish(3)

    def test_finish_empty_run(self):
        ResultAggregator().finish(0)
