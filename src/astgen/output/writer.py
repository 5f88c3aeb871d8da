"""
Output Writer.

Receives outcomes already in discovery order, encodes each one and
writes it to standard output or a file. With a truncate limit the writer
stops at the last whole unit that fits: a unit that would cross the limit
is dropped along with every unit after it, so the output is always a
complete sequence of records.
"""

import logging
from pathlib import Path
from typing import BinaryIO

import click
import yaml

from ..config import RunConfig
from ..core.errors import SinkError
from ..core.types import ErrorKind, FileError, OutputFormat, ParseOutcome
from .encoders import encode

logger = logging.getLogger(__name__)


class OutputWriter:
    def __init__(
        self,
        fmt: OutputFormat = OutputFormat.JSON,
        output_path: Path | None = None,
        truncate: int | None = None,
        verbose: bool = False,
        stream: BinaryIO | None = None,
    ):
        self.format = fmt
        self.output_path = output_path
        self.limit = truncate
        self.verbose = verbose
        self.bytes_written = 0
        self.records_written = 0
        self.truncated = False
        self._owns_sink = False

        if output_path is not None:
            # Fail fast: opened before any file is read
            try:
                self._sink: BinaryIO = open(output_path, "wb")
            except OSError as e:
                raise SinkError(f"Cannot open output file {output_path}: {e.strerror or e}") from e
            self._owns_sink = True
        else:
            self._sink = stream or click.get_binary_stream("stdout")

    @classmethod
    def from_config(cls, config: RunConfig) -> "OutputWriter":
        return cls(
            fmt=config.format,
            output_path=config.output_path,
            truncate=config.truncate,
            verbose=config.verbose,
        )

    def write(self, outcome: ParseOutcome) -> bool:
        """
        Encode and write one outcome.

        Returns:
            True if a unit was written, False if it was filtered or truncated.

        Raises:
            SinkError: If the sink cannot be written.
        """
        if outcome.is_skip and not self.verbose:
            return False
        if self.truncated:
            return False

        unit = self._encode(outcome)
        if self.limit is not None and self.bytes_written + len(unit) > self.limit:
            self.truncated = True
            logger.info(
                f"Output truncated at {self.bytes_written} bytes after "
                f"{self.records_written} records (limit {self.limit})"
            )
            return False

        try:
            self._sink.write(unit)
        except OSError as e:
            raise SinkError(f"Cannot write output: {e.strerror or e}") from e

        self.bytes_written += len(unit)
        self.records_written += 1
        return True

    def _encode(self, outcome: ParseOutcome) -> bytes:
        try:
            return encode(outcome.to_record(), self.format)
        except (ValueError, TypeError, RecursionError, yaml.YAMLError) as e:
            logger.error(f"Failed to serialize record for {outcome.path}: {e}")
            fallback = ParseOutcome(
                index=outcome.index,
                path=outcome.path,
                language=outcome.language,
                payload=FileError(ErrorKind.SERIALIZATION, f"{type(e).__name__}: {e}"),
                duration_us=outcome.duration_us,
            )
            return encode(fallback.to_record(), self.format)

    def close(self) -> None:
        try:
            self._sink.flush()
        except OSError as e:
            raise SinkError(f"Cannot flush output: {e.strerror or e}") from e
        finally:
            if self._owns_sink:
                self._sink.close()

    def __enter__(self) -> "OutputWriter":
        return self

    def __exit__(self, *args) -> None:
        self.close()
