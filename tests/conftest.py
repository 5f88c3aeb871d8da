"""
Shared fixtures.

FakeGrammar lets pipeline tests run without tree-sitter. Its behaviour is
driven by the file content:

- "RAISE"      -> build_tree raises RuntimeError
- "SYNTAX"     -> returns a syntax FileError
- "sleep=<ms>" -> sleeps before returning
"""

import re
import threading
import time
from pathlib import Path
from typing import Dict

import pytest

from astgen.config import RunConfig
from astgen.core.result import Err, Ok
from astgen.core.types import AstNode, ErrorKind, FileError, Language
from astgen.parsing.adapter import ParserAdapter
from astgen.parsing.base import GrammarAdapter

_SLEEP = re.compile(rb"sleep=(\d+)")


class FakeGrammar(GrammarAdapter):
    def __init__(self, name: str = "fake"):
        super().__init__()
        self._name = name
        self.calls = 0
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    def build_tree(self, content: bytes):
        with self._lock:
            self.calls += 1
        if b"RAISE" in content:
            raise RuntimeError("grammar crashed")
        match = _SLEEP.search(content)
        if match:
            time.sleep(int(match.group(1)) / 1000)
        if b"SYNTAX" in content:
            return Err(FileError(ErrorKind.SYNTAX, "Unexpected syntax at line 1, column 1", line=1, column=1, byte=0))
        return Ok(AstNode("source_file", 0, len(content), text=content.decode("utf-8").strip() or None))


@pytest.fixture
def fake_grammar():
    return FakeGrammar()


@pytest.fixture
def fake_adapter(fake_grammar):
    """Adapter that routes every language to one FakeGrammar."""
    return ParserAdapter({language: fake_grammar for language in Language})


@pytest.fixture
def make_config(tmp_path):
    """Build a RunConfig rooted at tmp_path unless paths are given."""
    def _make(**overrides) -> RunConfig:
        overrides.setdefault("paths", (tmp_path,))
        overrides.setdefault("threads", 2)
        return RunConfig(**overrides)
    return _make


@pytest.fixture
def make_tree(tmp_path):
    """Write a mapping of relative path -> content under tmp_path."""
    def _make(files: Dict[str, str | bytes]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content)
        return tmp_path
    return _make
