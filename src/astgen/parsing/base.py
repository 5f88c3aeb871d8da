"""
Base Grammar Infrastructure.

Defines the capability interface every grammar implements. The public
parse() method is the isolation boundary of the pipeline: whatever a
grammar engine does with a bad file, the caller receives a FileError
value instead of an exception.
"""

import logging
from abc import ABC, abstractmethod

from ..core.result import Err, Result
from ..core.types import AstNode, ErrorKind, FileError

logger = logging.getLogger(__name__)


class GrammarAdapter(ABC):
    """
    Abstract Base Class for all grammars.

    Subclasses implement build_tree(); callers use parse().
    """

    # Grammars that expose source text need valid UTF-8 input
    requires_text: bool = True

    def __init__(self):
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def build_tree(self, content: bytes) -> Result[AstNode, FileError]:
        """Parse content into a tree, or return a syntax FileError."""
        pass

    def parse(self, content: bytes) -> Result[AstNode, FileError]:
        if self.requires_text:
            try:
                content.decode("utf-8")
            except UnicodeDecodeError as e:
                return Err(FileError(
                    kind=ErrorKind.ENCODING,
                    message=(
                        f"File contains invalid UTF-8 at byte {e.start}. "
                        "Try converting the file to UTF-8 encoding first."
                    ),
                    byte=e.start,
                ))

        try:
            return self.build_tree(content)
        except Exception as e:
            self._logger.debug(f"Grammar {self.name} failed: {e!r}")
            return Err(FileError(
                kind=ErrorKind.INTERNAL,
                message=f"{self.name} grammar failed: {type(e).__name__}: {e}",
            ))
