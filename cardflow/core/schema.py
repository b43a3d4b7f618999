"""
Declarative Field Validation
----------------------------
Validates a submitted record against a set of FieldSpecs.

Per field: required-presence, then coercion to the declared kind, then value
constraints in a fixed order. The first failing constraint wins and only its
message is recorded. Fields that are not passed in are never evaluated, which
is what makes per-step validation possible.

Record-level (cross-field) constraints only run when every field passed.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from cardflow.core.errors import WorkflowDefinitionError

STRING = "string"
NUMBER = "number"
INTEGER = "integer"
ENUM = "enum"
BOOLEAN = "boolean"
ARRAY = "array"

KINDS = (STRING, NUMBER, INTEGER, ENUM, BOOLEAN, ARRAY)

EMAIL_PATTERN = r"[^\s@]+@[^\s@]+\.[A-Za-z]{2,}"

DEFAULT_MESSAGES: Dict[str, str] = {
    "required": "This field is required.",
    "type": "Invalid value.",
    "min_length": "Value is too short.",
    "max_length": "Value is too long.",
    "pattern": "Invalid format.",
    "minimum": "Value is too small.",
    "maximum": "Value is too large.",
    "choices": "Please select a valid option.",
    "must_be_true": "This field must be accepted.",
    "min_items": "Please add at least one item.",
    "items": "Invalid items.",
}

_TRUE_WORDS = {"true", "on", "yes", "1"}
_FALSE_WORDS = {"false", "off", "no", "0"}

# Sentinel for optional fields that were not supplied
_ABSENT = object()


class _CoercionError(ValueError):
    pass


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: str = STRING
    required: bool = True
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    choices: Tuple[Any, ...] = ()
    must_be_true: bool = False
    min_items: Optional[int] = None
    item_fields: Tuple["FieldSpec", ...] = ()
    label: str = ""
    messages: Mapping[str, str] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self):
        if not self.name:
            raise WorkflowDefinitionError("FieldSpec.name must be non-empty")
        if self.kind not in KINDS:
            raise WorkflowDefinitionError(f"{self.name}: unknown kind {self.kind!r}")
        if self.kind == ENUM and not self.choices:
            raise WorkflowDefinitionError(f"{self.name}: enum fields need choices")
        unknown = set(self.messages) - set(DEFAULT_MESSAGES)
        if unknown:
            raise WorkflowDefinitionError(f"{self.name}: unknown message keys {sorted(unknown)}")

    def message(self, constraint: str) -> str:
        return self.messages.get(constraint) or DEFAULT_MESSAGES[constraint]


@dataclass(frozen=True)
class RecordConstraint:
    """Cross-field invariant; its error is attached to `anchor`."""

    name: str
    check: Callable[[Mapping[str, Any]], bool]
    message: str
    anchor: str


@dataclass(frozen=True)
class ValidationOutcome:
    ok: bool
    # Normalized values of every field that passed (complete only when ok)
    values: Dict[str, Any]
    errors: Dict[str, List[str]]

    def first_error(self, order: Sequence[str]) -> Tuple[Optional[str], Optional[str]]:
        return first_error(self.errors, order)


def first_error(errors: Mapping[str, List[str]], order: Sequence[str]) -> Tuple[Optional[str], Optional[str]]:
    """Return (field, message) for the first field in `order` that has an error."""
    for name in order:
        msgs = errors.get(name)
        if msgs:
            return name, msgs[0]
    for name, msgs in errors.items():
        if msgs:
            return name, msgs[0]
    return None, None


# -----------------------------
# Coercion
# -----------------------------
def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _to_string(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        raise _CoercionError("bool is not a string")
    if isinstance(value, (int, float)):
        return str(value)
    raise _CoercionError(f"cannot read {type(value).__name__} as string")


def _to_number(value: Any, *, integral: bool) -> Any:
    if isinstance(value, bool):
        raise _CoercionError("bool is not a number")
    if isinstance(value, int):
        # Exact; never routed through float
        return value
    if isinstance(value, float):
        num = value
    elif isinstance(value, str):
        s = value.strip()
        try:
            return int(s)
        except ValueError:
            pass
        try:
            num = float(s)
        except (ValueError, OverflowError):
            raise _CoercionError(f"not numeric: {value!r}")
    else:
        raise _CoercionError(f"cannot read {type(value).__name__} as number")

    if not math.isfinite(num):
        raise _CoercionError("number must be finite")
    if num.is_integer():
        return int(num)
    if integral:
        raise _CoercionError("number must be whole")
    return num


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise _CoercionError(f"not a boolean: {value!r}")


def _to_array(value: Any) -> List[Any]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise _CoercionError("array string is not valid JSON")
    if isinstance(value, (list, tuple)):
        return list(value)
    raise _CoercionError(f"cannot read {type(value).__name__} as array")


def _coerce(spec: FieldSpec, value: Any) -> Any:
    if spec.kind in (STRING, ENUM):
        return _to_string(value)
    if spec.kind == NUMBER:
        return _to_number(value, integral=False)
    if spec.kind == INTEGER:
        return _to_number(value, integral=True)
    if spec.kind == BOOLEAN:
        return _to_boolean(value)
    return _to_array(value)


def _match_choice(spec: FieldSpec, value: Any) -> Any:
    # Compare on string form so "2000" selects the declared choice 2000.
    wanted = str(value)
    for choice in spec.choices:
        if str(choice) == wanted:
            return choice
    return _ABSENT


# -----------------------------
# Field checks
# -----------------------------
def _check_field(spec: FieldSpec, raw: Any) -> Tuple[bool, Any, Optional[str]]:
    """Return (ok, normalized_value, message)."""
    if _is_missing(raw):
        if spec.required:
            return False, None, spec.message("required")
        return True, _ABSENT, None

    try:
        value = _coerce(spec, raw)
    except _CoercionError:
        return False, None, spec.message("type")

    if isinstance(value, str):
        if spec.min_length is not None and len(value) < spec.min_length:
            return False, None, spec.message("min_length")
        if spec.max_length is not None and len(value) > spec.max_length:
            return False, None, spec.message("max_length")
        if spec.pattern is not None and not re.fullmatch(spec.pattern, value):
            return False, None, spec.message("pattern")

    if spec.kind in (NUMBER, INTEGER):
        if spec.minimum is not None and value < spec.minimum:
            return False, None, spec.message("minimum")
        if spec.maximum is not None and value > spec.maximum:
            return False, None, spec.message("maximum")

    if spec.choices:
        chosen = _match_choice(spec, value)
        if chosen is _ABSENT:
            return False, None, spec.message("choices")
        value = chosen

    if spec.must_be_true and value is not True:
        return False, None, spec.message("must_be_true")

    if spec.kind == ARRAY:
        if spec.min_items is not None and len(value) < spec.min_items:
            return False, None, spec.message("min_items")
        if spec.item_fields:
            items = []
            for item in value:
                if not isinstance(item, Mapping):
                    return False, None, spec.message("items")
                nested = validate(item, spec.item_fields)
                if not nested.ok:
                    return False, None, spec.message("items")
                items.append(nested.values)
            value = items

    return True, value, None


def validate(
    record: Optional[Mapping[str, Any]],
    fields: Iterable[FieldSpec],
    record_constraints: Iterable[RecordConstraint] = (),
) -> ValidationOutcome:
    """Validate `record` against `fields` (and, if given, record-level constraints).

    Never raises for bad input: coercion failures become field errors.
    The input mapping is not mutated.
    """
    record = record or {}
    values: Dict[str, Any] = {}
    errors: Dict[str, List[str]] = {}

    for spec in fields:
        ok, value, msg = _check_field(spec, record.get(spec.name))
        if not ok:
            errors[spec.name] = [msg]
        elif value is not _ABSENT:
            values[spec.name] = value

    if not errors:
        for rc in record_constraints:
            if rc.anchor in errors:
                continue
            try:
                passed = bool(rc.check(values))
            except (KeyError, TypeError, ValueError):
                passed = False
            if not passed:
                errors[rc.anchor] = [rc.message]

    return ValidationOutcome(ok=not errors, values=values, errors=errors)
