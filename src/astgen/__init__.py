"""
astgen - Parallel source-tree to AST record converter.

Walks source trees, parses every supported file with tree-sitter on a
pool of worker threads and writes one record per file in discovery
order.

Key Components:
- scanning: discovery, filtering, worker pool, ordered aggregation
- parsing: language table and tree-sitter grammars
- output: record encoders, truncating writer, progress reporting
"""

__version__ = "0.8.0"
