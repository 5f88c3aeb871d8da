"""
Tree-sitter grammars.

Each TreeSitterGrammar wraps one grammar from tree-sitter-language-pack.
tree-sitter parsers are not safe to share between threads, so every
worker thread lazily gets its own parser instance.
"""

import threading
from typing import Any

from tree_sitter_language_pack import get_parser

from ..core.result import Err, Ok, Result
from ..core.types import AstNode, ErrorKind, FileError
from .base import GrammarAdapter

# Type alias for tree-sitter nodes, using Any as strict typing requires the library
Node = Any


class TreeSitterGrammar(GrammarAdapter):
    def __init__(self, grammar: str):
        super().__init__()
        self._grammar = grammar
        self._local = threading.local()

    @property
    def name(self) -> str:
        return self._grammar

    def _parser(self):
        """Per-thread parser, created on first use."""
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = get_parser(self._grammar)
            self._local.parser = parser
        return parser

    def build_tree(self, content: bytes) -> Result[AstNode, FileError]:
        tree = self._parser().parse(content)
        root = tree.root_node

        if root.has_error:
            return Err(syntax_error(first_error_node(root)))

        return Ok(node_to_ast(content, root))


def node_to_ast(source: bytes, node: Node) -> AstNode:
    """Convert a tree-sitter node and its subtree into AstNode values."""
    children = [node_to_ast(source, child) for child in node.children]
    text = None
    if not children:
        raw = source[node.start_byte:node.end_byte]
        if raw:
            text = raw.decode("utf-8", errors="replace")
    return AstNode(
        kind=node.type,
        start_byte=node.start_byte,
        end_byte=node.end_byte,
        children=children or None,
        text=text,
    )


def first_error_node(root: Node) -> Node:
    """Depth-first search for the earliest ERROR or MISSING node."""
    stack = [root]
    while stack:
        current = stack.pop()
        if current.is_error or current.is_missing:
            return current
        flagged = [c for c in current.children if c.has_error or c.is_missing]
        stack.extend(reversed(flagged))
    return root


def syntax_error(node: Node) -> FileError:
    row, column = node.start_point[0], node.start_point[1]
    if node.is_missing:
        message = f"Missing {node.type}"
    else:
        message = "Unexpected syntax"
    return FileError(
        kind=ErrorKind.SYNTAX,
        message=f"{message} at line {row + 1}, column {column + 1}",
        line=row + 1,
        column=column + 1,
        byte=node.start_byte,
    )
