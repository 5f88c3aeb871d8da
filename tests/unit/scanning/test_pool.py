"""Unit tests for the worker pool."""

import threading
import time
from unittest.mock import MagicMock

from astgen.core.types import CandidateFile, Decision, ErrorKind
from astgen.output.progress import FINISHED, SKIPPED, STARTED
from astgen.parsing.languages import detect_language
from astgen.scanning.discovery import Discoverer
from astgen.scanning.filters import PathFilter
from astgen.scanning.pool import WorkerPool


def make_pool(config, adapter, reporter=None, window=None):
    return WorkerPool(PathFilter(config), adapter, config.threads, reporter=reporter, window=window)


class TestWorkerPool:
    def test_one_outcome_per_candidate(self, make_config, make_tree, fake_adapter):
        files = {f"f{i:02}.py": f"sleep={(7 * i) % 5}\n" for i in range(30)}
        files["notes.md"] = "# not code\n"
        make_tree(files)
        config = make_config(threads=4)
        candidates = list(Discoverer(config).discover())

        outcomes = list(make_pool(config, fake_adapter).run(candidates))

        assert sorted(o.index for o in outcomes) == list(range(31))
        skipped = [o for o in outcomes if o.is_skip]
        assert len(skipped) == 1
        assert skipped[0].decision == Decision.UNSUPPORTED

    def test_failures_are_isolated(self, make_config, make_tree, fake_adapter):
        make_tree({"a.py": "x = 1\n", "b.py": "RAISE\n", "c.py": "SYNTAX\n", "d.py": b"\xff\xfe\n"})
        config = make_config(threads=2)
        candidates = list(Discoverer(config).discover())

        by_name = {o.path.name: o for o in make_pool(config, fake_adapter).run(candidates)}

        assert not by_name["a.py"].is_error
        assert by_name["b.py"].payload.kind == ErrorKind.INTERNAL
        assert by_name["c.py"].payload.kind == ErrorKind.SYNTAX
        assert by_name["d.py"].payload.kind == ErrorKind.ENCODING

    def test_unreadable_file_is_io_error(self, make_config, tmp_path, fake_adapter):
        config = make_config()
        path = tmp_path / "gone.py"
        candidate = CandidateFile(0, tmp_path, path, detect_language(path))

        outcome = make_pool(config, fake_adapter).process(candidate)

        assert outcome.payload.kind == ErrorKind.IO
        assert outcome.index == 0

    def test_unexpected_exception_is_contained(self, make_config, make_tree, fake_adapter):
        make_tree({"a.py": "x\n"})
        config = make_config()
        path_filter = MagicMock()
        path_filter.accept.side_effect = RuntimeError("filter exploded")
        pool = WorkerPool(path_filter, fake_adapter, 1)
        candidate = next(Discoverer(config).discover())

        outcome = pool.process(candidate)

        assert outcome.payload.kind == ErrorKind.INTERNAL
        assert "filter exploded" in outcome.payload.message

    def test_progress_events(self, make_config, make_tree, fake_adapter):
        make_tree({"a.py": "x\n", "b.py": "RAISE\n", "c.txt": "plain\n"})
        config = make_config()
        reporter = MagicMock()
        candidates = list(Discoverer(config).discover())

        list(make_pool(config, fake_adapter, reporter=reporter).run(candidates))

        events = [c.args[0] for c in reporter.emit.call_args_list]
        kinds = sorted(e.kind for e in events)
        assert kinds == sorted([STARTED, STARTED, FINISHED, FINISHED, SKIPPED])
        failed = [e for e in events if e.kind == FINISHED and e.error]
        assert [e.path.name for e in failed] == ["b.py"]

    def test_window_bounds_claims_ahead_of_slow_file(self, make_config, make_tree, fake_adapter):
        # f00 blocks; a window of 3 allows only f01 and f02 to be claimed behind it
        files = {f"f{i:02}.py": "x\n" for i in range(20)}
        files["f00.py"] = "BLOCK\n"
        make_tree(files)
        config = make_config(threads=2)
        candidates = list(Discoverer(config).discover())

        gate = threading.Event()
        third = threading.Event()
        claimed = []
        lock = threading.Lock()
        original = fake_adapter.parse

        def parse(language, content):
            with lock:
                claimed.append(language)
                if len(claimed) == 3:
                    third.set()
            if b"BLOCK" in content:
                gate.wait(timeout=5)
            return original(language, content)

        fake_adapter.parse = parse
        pool = make_pool(config, fake_adapter, window=3)
        collected = []
        consumer = threading.Thread(target=lambda: collected.extend(pool.run(candidates)))
        consumer.start()

        assert third.wait(timeout=5)
        # Give a fourth claim time to show up if the window leaked
        time.sleep(0.1)
        with lock:
            assert len(claimed) == 3
        gate.set()
        consumer.join(timeout=10)

        assert len(collected) == 20

    def test_empty_input(self, make_config, fake_adapter):
        assert list(make_pool(make_config(), fake_adapter).run([])) == []

    def test_closing_early_stops_workers(self, make_config, make_tree, fake_adapter):
        make_tree({f"f{i:02}.py": "sleep=5\n" for i in range(40)})
        config = make_config(threads=2)
        candidates = list(Discoverer(config).discover())

        results = make_pool(config, fake_adapter).run(candidates)
        next(results)
        results.close()

        assert fake_adapter.grammar_for(candidates[0].language).calls < 40
        assert not [t for t in threading.enumerate() if t.name.startswith("astgen-worker")]
