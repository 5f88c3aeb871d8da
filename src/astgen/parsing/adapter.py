"""
Parser Adapter.

Static dispatch from the closed Language enum to the grammar that parses
it. There is no runtime plugin discovery: the table is built from
SUPPORTED_LANGUAGES once per process.
"""

from typing import Dict, Mapping

from ..core.result import Err, Result
from ..core.types import AstNode, ErrorKind, FileError, Language
from .base import GrammarAdapter
from .languages import SUPPORTED_LANGUAGES


class ParserAdapter:
    """Facade mapping a detected language to its grammar."""

    def __init__(self, grammars: Mapping[Language, GrammarAdapter]):
        self._grammars: Dict[Language, GrammarAdapter] = dict(grammars)

    @property
    def languages(self) -> list[Language]:
        return list(self._grammars)

    def grammar_for(self, language: Language) -> GrammarAdapter | None:
        return self._grammars.get(language)

    def parse(self, language: Language, content: bytes) -> Result[AstNode, FileError]:
        grammar = self._grammars.get(language)
        if grammar is None:
            return Err(FileError(
                kind=ErrorKind.INTERNAL,
                message=f"No grammar registered for {language.display_name}",
            ))
        return grammar.parse(content)


def create_default_adapter() -> ParserAdapter:
    """Adapter with a tree-sitter grammar for every supported language."""
    from .treesitter import TreeSitterGrammar

    return ParserAdapter({
        info.language: TreeSitterGrammar(info.grammar) for info in SUPPORTED_LANGUAGES
    })
