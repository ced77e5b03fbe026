# Statecheck v1.0.0
"""
Configuration State Comparator

Decides whether an observed configuration matches a declared one and
reports every drifting field as a Diagnostic.

Comparison rules are chosen from the kind tag carried by each declared
field, never from the live type of the value being compared:
- String: null and empty are equivalent, otherwise equal as strings
- Int16 / Int32: an unset observed value matches a declared 0
- Array: compared as an unordered multiset
- anything else is reported as unsupported and never approved
"""
import hashlib
import json
import logging
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from types import UnionType
from typing import Annotated, Any, Iterable, Mapping, Optional, Union, get_args, get_origin

from core.exceptions import AmbiguousFilterError, InputTypeError

logger = logging.getLogger(__name__)

# Never compared, whatever the filter says
RESERVED_KEYS = frozenset({"Verbose"})

INT32_RANGE = (-2147483648, 2147483647)


class ValueKind(str, Enum):
    STRING = "String"
    INT16 = "Int16"
    INT32 = "Int32"
    ARRAY = "Array"
    NULL = "Null"
    UNSUPPORTED = "Unsupported"

    @classmethod
    def from_name(cls, name: str) -> "ValueKind":
        """Look up a kind by its name, case-insensitively."""
        for kind in cls:
            if kind.value.lower() == str(name).strip().lower():
                return kind
        raise ValueError(f"Unknown value kind: {name!r}")


# Marks a pydantic field as a 16-bit integer for PropertyBagConfig.from_model
Int16 = Annotated[int, ValueKind.INT16]


def infer_kind(value: Any) -> ValueKind:
    """
    Derive the kind tag for a JSON-style value.

    Only used when building a declared configuration; the comparator
    itself reads the stored tag.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.UNSUPPORTED
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, int):
        if INT32_RANGE[0] <= value <= INT32_RANGE[1]:
            return ValueKind.INT32
        return ValueKind.UNSUPPORTED
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    return ValueKind.UNSUPPORTED


def kind_from_annotation(annotation: Any, metadata: Iterable = ()) -> ValueKind:
    """Derive the kind tag for a declared field from its type annotation."""
    for item in metadata:
        if isinstance(item, ValueKind):
            return item

    origin = get_origin(annotation)
    if origin is Annotated:
        base, *extra = get_args(annotation)
        return kind_from_annotation(base, extra)
    if origin is Union or origin is UnionType:
        # Optional[X] behaves like X
        members = [a for a in get_args(annotation) if a is not type(None)]
        if len(members) == 1:
            return kind_from_annotation(members[0])
        return ValueKind.UNSUPPORTED
    if annotation is str:
        return ValueKind.STRING
    if annotation is int:
        return ValueKind.INT32
    if annotation in (list, tuple) or origin in (list, tuple):
        return ValueKind.ARRAY
    return ValueKind.UNSUPPORTED


def _resolve_kind(key: str, value: Any, kinds: Optional[Mapping[str, Any]]) -> ValueKind:
    if kinds and key in kinds:
        kind = kinds[key]
        return kind if isinstance(kind, ValueKind) else ValueKind.from_name(kind)
    return infer_kind(value)


@dataclass(frozen=True)
class FieldDescriptor:
    """A declared value together with its comparison kind."""
    value: Any
    kind: ValueKind


# ============================================================
# DECLARED CONFIGURATION VARIANTS
# ============================================================

class DeclaredConfig(ABC):
    """
    Capability shared by every declared-configuration variant.

    Callers pick the variant explicitly; the comparator only uses
    has_key / get_value / get_kind and, for enumerable variants, keys().
    """

    enumerable = True

    @abstractmethod
    def has_key(self, key: str) -> bool:
        ...

    @abstractmethod
    def get_value(self, key: str) -> Any:
        ...

    @abstractmethod
    def get_kind(self, key: str) -> ValueKind:
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        ...


class OrderedMapConfig(DeclaredConfig):
    """Ordered key -> FieldDescriptor map."""

    def __init__(self, fields: Optional[Mapping[str, FieldDescriptor]] = None):
        self._fields: dict[str, FieldDescriptor] = dict(fields or {})

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], kinds: Optional[Mapping[str, Any]] = None):
        """
        Build from plain values.

        kinds may name a ValueKind (or its string name) per field; fields
        without one get a kind derived from their value.
        """
        return cls({
            key: FieldDescriptor(value, _resolve_kind(key, value, kinds))
            for key, value in values.items()
        })

    def has_key(self, key: str) -> bool:
        return key in self._fields

    def get_value(self, key: str) -> Any:
        descriptor = self._fields.get(key)
        return descriptor.value if descriptor else None

    def get_kind(self, key: str) -> ValueKind:
        descriptor = self._fields.get(key)
        return descriptor.kind if descriptor else ValueKind.UNSUPPORTED

    def keys(self) -> list[str]:
        return list(self._fields)

    def __len__(self):
        return len(self._fields)

    def __repr__(self):
        return f"{type(self).__name__}({self._fields!r})"


class FilteredParameterConfig(OrderedMapConfig):
    """
    Map restricted to a bounded set of named parameters.

    Keys outside allowed_keys are invisible, even when present in the
    supplied values.
    """

    def __init__(self, fields: Optional[Mapping[str, FieldDescriptor]], allowed_keys: Iterable[str]):
        self.allowed_keys = frozenset(allowed_keys)
        super().__init__({
            key: descriptor
            for key, descriptor in (fields or {}).items()
            if key in self.allowed_keys
        })

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], allowed_keys: Iterable[str] = (),
                     kinds: Optional[Mapping[str, Any]] = None):
        return cls({
            key: FieldDescriptor(value, _resolve_kind(key, value, kinds))
            for key, value in values.items()
        }, allowed_keys)


class PropertyBagConfig(DeclaredConfig):
    """
    Structured object exposing named fields as attributes.

    A field exists when the object carries it (or, for a model, when the
    model declares it). Fields missing from the kind table are Unsupported.
    The bag has no key list of its own.
    """

    enumerable = False

    def __init__(self, source: Any, kinds: Mapping[str, Any], fields: Optional[Iterable[str]] = None):
        self.source = source
        self._fields = frozenset(fields) if fields is not None else None
        self._kinds = {
            name: kind if isinstance(kind, ValueKind) else ValueKind.from_name(kind)
            for name, kind in kinds.items()
        }

    @classmethod
    def from_model(cls, model: Any, kinds: Optional[Mapping[str, Any]] = None):
        """Build from a pydantic model instance, taking kinds from its field annotations."""
        table = {
            name: kind_from_annotation(info.annotation, info.metadata)
            for name, info in type(model).model_fields.items()
        }
        table.update(kinds or {})
        return cls(model, table, fields=type(model).model_fields)

    def has_key(self, key: str) -> bool:
        if self._fields is not None:
            return key in self._fields
        return hasattr(self.source, key)

    def get_value(self, key: str) -> Any:
        return getattr(self.source, key, None)

    def get_kind(self, key: str) -> ValueKind:
        return self._kinds.get(key, ValueKind.UNSUPPORTED)

    def keys(self) -> list[str]:
        raise AmbiguousFilterError()


# ============================================================
# DIAGNOSTICS
# ============================================================

class DiagnosticReason(str, Enum):
    MISSING_ARRAY = "missing_array"
    OBSERVED_ONLY = "observed_only"
    DECLARED_ONLY = "declared_only"
    VALUE_MISMATCH = "value_mismatch"
    UNSUPPORTED_TYPE = "unsupported_type"


@dataclass
class Diagnostic:
    """A single drifting field."""
    field: str
    reason: DiagnosticReason
    observed: Any = None
    declared: Any = None
    kind: ValueKind = ValueKind.UNSUPPORTED

    # Computed signature for grouping identical drift across nodes
    signature: str = ""

    def __post_init__(self):
        if not self.signature:
            self.signature = self.compute_signature()

    def compute_signature(self) -> str:
        sig_parts = [
            self.field,
            self.reason.value,
            json.dumps(self.observed, sort_keys=True, default=str),
            json.dumps(self.declared, sort_keys=True, default=str),
        ]
        sig_str = "|".join(sig_parts)
        return hashlib.sha256(sig_str.encode()).hexdigest()[:16]

    @property
    def message(self) -> str:
        if self.reason == DiagnosticReason.MISSING_ARRAY:
            return f"{self.field}: expected array {format_value_compact(self.declared)} but no value was found"
        if self.reason == DiagnosticReason.OBSERVED_ONLY:
            return f"{self.field}: element {format_value_compact(self.observed)} is present but not declared"
        if self.reason == DiagnosticReason.DECLARED_ONLY:
            return f"{self.field}: element {format_value_compact(self.declared)} is declared but missing"
        if self.reason == DiagnosticReason.UNSUPPORTED_TYPE:
            return f"{self.field}: declared kind {self.kind.value} cannot be compared"
        return (
            f"{self.field}: expected {format_value_compact(self.declared)} "
            f"but found {format_value_compact(self.observed)}"
        )

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "reason": self.reason.value,
            "kind": self.kind.value,
            "observed": self.observed,
            "declared": self.declared,
            "message": self.message,
            "signature": self.signature,
        }


@dataclass
class ComparisonResult:
    """Verdict and diagnostics for one comparison."""
    in_desired_state: bool = True
    diagnostics: list[Diagnostic] = field(default_factory=list)
    checked_keys: list[str] = field(default_factory=list)

    @property
    def diagnostic_count(self) -> int:
        return len(self.diagnostics)

    @property
    def drifted_fields(self) -> list[str]:
        seen = []
        for diagnostic in self.diagnostics:
            if diagnostic.field not in seen:
                seen.append(diagnostic.field)
        return seen

    def diagnostics_for(self, key: str) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.field == key]

    def to_dict(self) -> dict:
        return {
            "in_desired_state": self.in_desired_state,
            "checked_keys": self.checked_keys,
            "diagnostic_count": self.diagnostic_count,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


# ============================================================
# PER-KIND RULES
# ============================================================

def _is_null_or_empty(value: Any) -> bool:
    return value is None or value == ""


def _as_items(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _element_key(item: Any) -> Any:
    """Hashable key for an array element."""
    try:
        hash(item)
    except TypeError:
        return ("unhashable", json.dumps(item, sort_keys=True, default=str))
    return item


def _multiset_difference(items: list, other: list) -> list:
    """Elements of items not matched one-for-one by an element of other, in order."""
    remaining = Counter(_element_key(item) for item in other)
    leftover = []
    for item in items:
        key = _element_key(item)
        if remaining[key] > 0:
            remaining[key] -= 1
        else:
            leftover.append(item)
    return leftover


def _check_array(key: str, kind: ValueKind, observed: Any, declared: Any) -> list[Diagnostic]:
    if observed is None:
        return [Diagnostic(key, DiagnosticReason.MISSING_ARRAY, None, declared, kind)]

    observed_items = _as_items(observed)
    declared_items = _as_items(declared)

    diagnostics = [
        Diagnostic(key, DiagnosticReason.OBSERVED_ONLY, item, None, kind)
        for item in _multiset_difference(observed_items, declared_items)
    ]
    diagnostics.extend(
        Diagnostic(key, DiagnosticReason.DECLARED_ONLY, None, item, kind)
        for item in _multiset_difference(declared_items, observed_items)
    )
    return diagnostics


def _check_string(key: str, kind: ValueKind, observed: Any, declared: Any) -> list[Diagnostic]:
    if _is_null_or_empty(observed) and _is_null_or_empty(declared):
        return []
    # Only scalars are compared by their string form
    if isinstance(observed, (str, int)) and not isinstance(observed, bool):
        if declared is not None and str(observed) == str(declared):
            return []
    return [Diagnostic(key, DiagnosticReason.VALUE_MISMATCH, observed, declared, kind)]


def _check_integer(key: str, kind: ValueKind, observed: Any, declared: Any) -> list[Diagnostic]:
    # An unset observed value matches the default
    if declared == 0 and observed is None:
        return []
    if observed == declared:
        return []
    return [Diagnostic(key, DiagnosticReason.VALUE_MISMATCH, observed, declared, kind)]


def _check_unsupported(key: str, kind: ValueKind, observed: Any, declared: Any) -> list[Diagnostic]:
    return [Diagnostic(key, DiagnosticReason.UNSUPPORTED_TYPE, observed, declared, kind)]


KIND_RULES = {
    ValueKind.ARRAY: _check_array,
    ValueKind.STRING: _check_string,
    ValueKind.INT16: _check_integer,
    ValueKind.INT32: _check_integer,
}


# ============================================================
# COMPARATOR
# ============================================================

def _select_keys(declared: DeclaredConfig, keys_to_check: Optional[Iterable[str]]) -> list[str]:
    requested = list(keys_to_check or [])
    if not requested:
        if not declared.enumerable:
            raise AmbiguousFilterError()
        requested = declared.keys()

    selected = []
    for key in requested:
        if key not in selected:
            selected.append(key)
    return selected


def _evaluate_key(key: str, observed: Mapping[str, Any], declared: DeclaredConfig) -> list[Diagnostic]:
    observed_value = observed.get(key)
    declared_value = declared.get_value(key)
    declares_key = declared.has_key(key)
    kind = declared.get_kind(key) if declares_key else None

    is_candidate = (
        key not in observed
        or observed_value != declared_value
        or kind == ValueKind.ARRAY
    )
    if not is_candidate:
        return []

    # Nothing declared to violate
    if not declares_key:
        return []

    rule = KIND_RULES.get(kind, _check_unsupported)
    return rule(key, kind, observed_value, declared_value)


def compare_state(
    observed: Optional[Mapping[str, Any]],
    declared: DeclaredConfig,
    keys_to_check: Optional[Iterable[str]] = None
) -> ComparisonResult:
    """
    Compare an observed configuration with a declared one.

    Args:
        observed: Snapshot of the real system state (field -> value)
        declared: OrderedMapConfig, FilteredParameterConfig or PropertyBagConfig
        keys_to_check: Fields to compare. When empty, every declared key
            is compared (not allowed for a PropertyBagConfig)

    Returns:
        ComparisonResult; in_desired_state is True only when no checked
        field drifts. Every checked field is evaluated.

    Raises:
        InputTypeError: declared is not a supported variant
        AmbiguousFilterError: declared is a property bag and no keys were given
    """
    if not isinstance(declared, (OrderedMapConfig, FilteredParameterConfig, PropertyBagConfig)):
        raise InputTypeError(declared)

    observed = observed if observed is not None else {}
    checked_keys = [k for k in _select_keys(declared, keys_to_check) if k not in RESERVED_KEYS]

    result = ComparisonResult(checked_keys=checked_keys)
    for key in checked_keys:
        diagnostics = _evaluate_key(key, observed, declared)
        if diagnostics:
            result.in_desired_state = False
            result.diagnostics.extend(diagnostics)

    logger.debug(
        f"Compared {len(checked_keys)} key(s): "
        f"{'in desired state' if result.in_desired_state else f'{result.diagnostic_count} diagnostic(s)'}"
    )
    return result


# ============================================================
# REPORTING HELPERS
# ============================================================

def format_value_compact(value: Any) -> str:
    """Format a value for display in a compact way."""
    if value is None:
        return "null"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(',', ':'), default=str)
    if isinstance(value, str):
        return f"'{value}'"
    return str(value)


def log_diagnostics(result: ComparisonResult, log: Optional[logging.Logger] = None,
                    level: int = logging.INFO) -> None:
    """Write one log line per diagnostic in result."""
    log = log or logger
    for diagnostic in result.diagnostics:
        log.log(level, f"Drift detected - {diagnostic.message}")


def group_diagnostics_by_signature(diagnostics_with_nodes: list[tuple[str, Diagnostic]]) -> dict:
    """
    Group drift across several nodes by diagnostic signature.

    Args:
        diagnostics_with_nodes: List of (node_name, Diagnostic) tuples

    Returns:
        Dict mapping signature to {diagnostic: Diagnostic, nodes: [node_names]}
    """
    grouped = {}

    for node_name, diagnostic in diagnostics_with_nodes:
        sig = diagnostic.signature
        if sig not in grouped:
            grouped[sig] = {
                "diagnostic": diagnostic,
                "nodes": []
            }
        grouped[sig]["nodes"].append(node_name)

    return grouped
