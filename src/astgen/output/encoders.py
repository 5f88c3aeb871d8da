"""
Record encoders.

Every record is encoded as an independent unit so that truncation can
cut between units: one JSON line, one pretty-printed JSON object, or one
YAML document starting with '---'.
"""

import json
from typing import Any, Callable, Dict

import yaml

from ..core.types import OutputFormat

_YamlDumper = getattr(yaml, "CSafeDumper", yaml.SafeDumper)


def _encode_json(record: Dict[str, Any]) -> str:
    return json.dumps(record, ensure_ascii=False, separators=(",", ":")) + "\n"


def _encode_pretty_json(record: Dict[str, Any]) -> str:
    return json.dumps(record, ensure_ascii=False, indent=2) + "\n"


def _encode_yaml(record: Dict[str, Any]) -> str:
    return yaml.dump(
        record,
        Dumper=_YamlDumper,
        sort_keys=False,
        allow_unicode=True,
        explicit_start=True,
    )


ENCODERS: Dict[OutputFormat, Callable[[Dict[str, Any]], str]] = {
    OutputFormat.JSON: _encode_json,
    OutputFormat.PRETTY_JSON: _encode_pretty_json,
    OutputFormat.YAML: _encode_yaml,
}


def encode(record: Dict[str, Any], fmt: OutputFormat) -> bytes:
    """Encode one record as a complete, independently decodable unit."""
    return ENCODERS[fmt](record).encode("utf-8")
