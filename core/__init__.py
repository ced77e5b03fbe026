# Statecheck v1.0.0
"""
Core package for Statecheck.
Contains the configuration state comparator and document loading.
"""
from core.comparison import (
    compare_state,
    infer_kind,
    kind_from_annotation,
    log_diagnostics,
    group_diagnostics_by_signature,
    format_value_compact,
    ComparisonResult,
    DeclaredConfig,
    Diagnostic,
    DiagnosticReason,
    FieldDescriptor,
    FilteredParameterConfig,
    Int16,
    OrderedMapConfig,
    PropertyBagConfig,
    RESERVED_KEYS,
    ValueKind
)
from core.exceptions import (
    StatecheckError,
    InputTypeError,
    AmbiguousFilterError,
    NotFoundError
)
from core.file_parser import (
    parse_json_file,
    parse_json_content,
    parse_key_list,
    load_observed,
    load_declared,
    split_declared_document
)

__all__ = [
    "compare_state",
    "infer_kind",
    "kind_from_annotation",
    "log_diagnostics",
    "group_diagnostics_by_signature",
    "format_value_compact",
    "ComparisonResult",
    "DeclaredConfig",
    "Diagnostic",
    "DiagnosticReason",
    "FieldDescriptor",
    "FilteredParameterConfig",
    "Int16",
    "OrderedMapConfig",
    "PropertyBagConfig",
    "RESERVED_KEYS",
    "ValueKind",
    "StatecheckError",
    "InputTypeError",
    "AmbiguousFilterError",
    "NotFoundError",
    "parse_json_file",
    "parse_json_content",
    "parse_key_list",
    "load_observed",
    "load_declared",
    "split_declared_document"
]
