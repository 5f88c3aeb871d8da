"""
Core type definitions for astgen.

These are the values that flow through the scan pipeline: discovered
candidates, filter decisions, parse trees, per-file errors and the
outcome that pairs them with the discovery index.
"""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Dict, List

RECORD_VERSION = "astgen-0.1"


class Language(StrEnum):
    """Closed set of languages with a bundled grammar."""
    RUST = "rust"
    JAVA = "java"
    CSHARP = "csharp"
    GO = "go"
    PYTHON = "python"
    TYPESCRIPT = "typescript"
    TSX = "tsx"
    JAVASCRIPT = "javascript"
    RUBY = "ruby"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: Dict[Language, str] = {
    Language.RUST: "Rust",
    Language.JAVA: "Java",
    Language.CSHARP: "C#",
    Language.GO: "Go",
    Language.PYTHON: "Python",
    Language.TYPESCRIPT: "TypeScript",
    Language.TSX: "TSX",
    Language.JAVASCRIPT: "JavaScript",
    Language.RUBY: "Ruby",
}


class OutputFormat(StrEnum):
    JSON = "json"
    PRETTY_JSON = "pretty-json"
    YAML = "yaml"


class Decision(StrEnum):
    """Outcome of PathFilter for one candidate."""
    ACCEPT = "accept"
    IGNORED = "ignored"
    EXCLUDED = "excluded"
    NOT_INCLUDED = "not_included"
    UNSUPPORTED = "unsupported_extension"
    TOO_LARGE = "file_too_large"

    @property
    def accepted(self) -> bool:
        return self is Decision.ACCEPT


class ErrorKind(StrEnum):
    """Per-file failure categories. None of these abort a run."""
    IO = "io"
    ENCODING = "encoding"
    SYNTAX = "syntax"
    INTERNAL = "internal"
    SERIALIZATION = "serialization"


@dataclass(frozen=True)
class FileError:
    """A failure scoped to one file, recorded in its output record."""

    kind: ErrorKind
    message: str
    line: int | None = None
    column: int | None = None
    byte: int | None = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": str(self.kind), "message": self.message}
        for key in ("line", "column", "byte"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(slots=True)
class AstNode:
    """
    One node of a parse tree.

    The pipeline never looks inside a tree; it only forwards it to the
    encoder. Leaf nodes carry their source text, inner nodes carry children.
    """

    kind: str
    start_byte: int
    end_byte: int
    children: List["AstNode"] | None = None
    text: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "kind": self.kind,
            "start_byte": self.start_byte,
            "end_byte": self.end_byte,
        }
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        if self.text is not None:
            data["text"] = self.text
        return data


@dataclass(frozen=True)
class CandidateFile:
    """A discovered file, before any filtering decision."""

    index: int
    root: Path
    path: Path
    language: Language | None = None

    @property
    def relative_path(self) -> str:
        """POSIX path relative to the root it was discovered under."""
        if self.path == self.root:
            return self.path.name
        try:
            return self.path.relative_to(self.root).as_posix()
        except ValueError:
            return self.path.as_posix()


@dataclass
class ParseOutcome:
    """
    Result of processing one candidate.

    Accepted candidates carry an AstNode or FileError payload. Rejected
    candidates carry the rejecting decision and no payload.
    """

    index: int
    path: Path
    language: Language | None
    payload: AstNode | FileError | None = None
    decision: Decision = Decision.ACCEPT
    duration_us: int = 0
    detail: str | None = None

    @property
    def is_skip(self) -> bool:
        return not self.decision.accepted

    @property
    def is_error(self) -> bool:
        return isinstance(self.payload, FileError)

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "version": RECORD_VERSION,
            "index": self.index,
            "filename": str(self.path),
            "language": self.language.display_name if self.language else None,
        }
        if self.is_skip:
            record["skipped"] = {"reason": str(self.decision), "message": self.detail or ""}
            return record

        record["duration_us"] = self.duration_us
        if isinstance(self.payload, FileError):
            record["error"] = self.payload.to_dict()
        elif isinstance(self.payload, AstNode):
            record["ast"] = self.payload.to_dict()
        return record


@dataclass
class ProgressEvent:
    """Fire-and-forget notification from a worker to the progress reporter."""

    kind: str  # "started" | "finished" | "skipped"
    index: int
    path: Path
    error: bool = False
