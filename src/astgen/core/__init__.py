"""
Core modules for astgen.

This package contains the fundamental building blocks:
- types: values that flow through the pipeline
- result: Ok/Err result type
- errors: fatal error taxonomy
"""

from .errors import AstgenError, ConfigError, SinkError
from .result import Err, Ok, Result
from .types import (
    AstNode,
    CandidateFile,
    Decision,
    ErrorKind,
    FileError,
    Language,
    OutputFormat,
    ParseOutcome,
)

__all__ = [
    "AstgenError",
    "AstNode",
    "CandidateFile",
    "ConfigError",
    "Decision",
    "Err",
    "ErrorKind",
    "FileError",
    "Language",
    "Ok",
    "OutputFormat",
    "ParseOutcome",
    "Result",
    "SinkError",
]
