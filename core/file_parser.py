# Statecheck v1.0.0
"""
Document loading for Statecheck.

Observed documents are plain JSON objects (field -> value).
Declared documents are either a plain JSON object, or an object with
"values" and optional "kinds" sections to pin comparison kinds:

    {"values": {"Port": 80, "Tags": ["a"]}, "kinds": {"Port": "Int16"}}
"""
import json
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from core.comparison import FilteredParameterConfig, OrderedMapConfig, ValueKind
from core.exceptions import InputTypeError


def parse_json_content(content: str, source: str = "<content>") -> dict:
    """
    Parse JSON text that must hold an object.

    Raises:
        ValueError: content is not valid JSON or not a JSON object
    """
    try:
        document = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {source}: {e}") from e

    if not isinstance(document, dict):
        raise ValueError(f"Expected a JSON object in {source}, got {type(document).__name__}")
    return document


def parse_json_file(file_path: Union[str, Path]) -> dict:
    """Read and parse a JSON object from disk."""
    path = Path(file_path)
    with open(path, 'r', encoding='utf-8-sig') as f:
        return parse_json_content(f.read(), source=path.name)


def split_declared_document(document: dict) -> Tuple[dict, dict]:
    """
    Separate declared values from explicit kinds.

    Returns:
        (values, kinds) where kinds maps field name -> ValueKind
    """
    if "values" in document and isinstance(document["values"], dict):
        values = document["values"]
        raw_kinds = document.get("kinds") or {}
    else:
        values, raw_kinds = document, {}

    if not isinstance(raw_kinds, dict):
        raise InputTypeError(raw_kinds, "The 'kinds' section must be a JSON object")

    kinds = {}
    for name, kind_name in raw_kinds.items():
        try:
            kinds[name] = ValueKind.from_name(kind_name)
        except ValueError as e:
            raise InputTypeError(kind_name, f"Field {name!r}: {e}") from e
    return values, kinds


def load_observed(source: Union[str, Path, dict]) -> dict:
    """Load an observed configuration from a path or an already parsed dict."""
    if isinstance(source, dict):
        return dict(source)
    return parse_json_file(source)


def load_declared(
    source: Union[str, Path, dict],
    allowed_keys: Optional[Iterable[str]] = None,
    kinds: Optional[dict] = None
) -> OrderedMapConfig:
    """
    Load a declared configuration.

    Args:
        source: Path to a declared document, or the parsed document
        allowed_keys: When given, build a FilteredParameterConfig that only
            exposes these keys
        kinds: Extra explicit kinds, overriding those in the document

    Returns:
        OrderedMapConfig or FilteredParameterConfig
    """
    document = source if isinstance(source, dict) else parse_json_file(source)
    values, document_kinds = split_declared_document(document)
    if kinds:
        _, extra = split_declared_document({"values": {}, "kinds": kinds})
        document_kinds.update(extra)

    if allowed_keys is not None:
        return FilteredParameterConfig.from_mapping(values, allowed_keys, document_kinds)
    return OrderedMapConfig.from_mapping(values, document_kinds)


def parse_key_list(value: Optional[str]) -> list[str]:
    """Split a comma-separated key list, dropping blanks."""
    if not value:
        return []
    return [key.strip() for key in value.split(',') if key.strip()]

