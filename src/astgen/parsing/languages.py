"""
Supported languages and extension lookup.

The language set is fixed per release: each entry names the file
extensions it claims and the tree-sitter grammar that parses it.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from ..core.types import Language


@dataclass(frozen=True)
class LanguageInfo:
    language: Language
    extensions: Tuple[str, ...]
    grammar: str

    @property
    def name(self) -> str:
        return self.language.display_name


SUPPORTED_LANGUAGES: List[LanguageInfo] = [
    LanguageInfo(Language.RUST, (".rs",), "rust"),
    LanguageInfo(Language.JAVA, (".java",), "java"),
    LanguageInfo(Language.CSHARP, (".cs",), "csharp"),
    LanguageInfo(Language.GO, (".go",), "go"),
    LanguageInfo(Language.PYTHON, (".py",), "python"),
    LanguageInfo(Language.TYPESCRIPT, (".ts",), "typescript"),
    LanguageInfo(Language.TSX, (".tsx",), "tsx"),
    LanguageInfo(Language.JAVASCRIPT, (".js",), "javascript"),
    LanguageInfo(Language.RUBY, (".rb",), "ruby"),
]

_EXTENSION_MAP: Dict[str, Language] = {
    ext: info.language for info in SUPPORTED_LANGUAGES for ext in info.extensions
}

_INFO_BY_LANGUAGE: Dict[Language, LanguageInfo] = {
    info.language: info for info in SUPPORTED_LANGUAGES
}


def detect_language(path: Path) -> Language | None:
    """Map a file to its language by extension (case-insensitive)."""
    return _EXTENSION_MAP.get(path.suffix.lower())


def language_info(language: Language) -> LanguageInfo:
    return _INFO_BY_LANGUAGE[language]
