from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from cardflow.core.errors import WorkflowDefinitionError
from cardflow.core.schema import FieldSpec, RecordConstraint


@dataclass(frozen=True)
class StepDefinition:
    label: str
    fields: Tuple[str, ...]


@dataclass(frozen=True)
class TerminalCheck:
    """Rejection-by-policy: runs at submit, independent of field-level schema.

    `rejects` receives the normalized values and returns True when the
    submission must fail with `message`. The check only runs when every field
    it names in `fields` normalized cleanly.
    """

    name: str
    fields: Tuple[str, ...]
    rejects: Callable[[Mapping[str, Any]], bool]
    message: str


@dataclass(frozen=True)
class VerificationSpec:
    service: str
    fields: Tuple[str, ...]
    # Caller-supplied context forwarded alongside the fields (ip address, timestamp...)
    context_keys: Tuple[str, ...] = ()

    def build_subset(self, values: Mapping[str, Any], context: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        subset = {k: values[k] for k in self.fields if k in values}
        ctx = context or {}
        for k in self.context_keys:
            if ctx.get(k) is not None:
                subset[k] = ctx[k]
        return subset


def reject_prefix(field: str, prefix: str, message: str) -> TerminalCheck:
    """Reject when `field` starts with `prefix` (case-sensitive)."""

    def _rejects(values: Mapping[str, Any]) -> bool:
        return bool(prefix) and str(values.get(field) or "").startswith(prefix)

    return TerminalCheck(name=f"reject_prefix:{field}", fields=(field,), rejects=_rejects, message=message)


@dataclass(frozen=True)
class WorkflowDefinition:
    name: str
    fields: Tuple[FieldSpec, ...]
    steps: Tuple[StepDefinition, ...]
    success_message: str
    redirect: Optional[str] = None
    record_constraints: Tuple[RecordConstraint, ...] = ()
    terminal_checks: Tuple[TerminalCheck, ...] = ()
    verification: Optional[VerificationSpec] = None
    description: str = ""

    def __post_init__(self):
        names = [f.name for f in self.fields]
        if len(set(names)) != len(names):
            raise WorkflowDefinitionError(f"{self.name}: duplicate field names")
        if not self.steps:
            raise WorkflowDefinitionError(f"{self.name}: at least one step is required")

        known = set(names)
        owned: Dict[str, str] = {}
        for step in self.steps:
            for fname in step.fields:
                if fname not in known:
                    raise WorkflowDefinitionError(f"{self.name}: step {step.label!r} references unknown field {fname!r}")
                if fname in owned:
                    raise WorkflowDefinitionError(
                        f"{self.name}: field {fname!r} owned by both {owned[fname]!r} and {step.label!r}"
                    )
                owned[fname] = step.label
        orphans = [n for n in names if n not in owned]
        if orphans:
            raise WorkflowDefinitionError(f"{self.name}: fields not owned by any step: {orphans}")

        for rc in self.record_constraints:
            if rc.anchor not in known:
                raise WorkflowDefinitionError(f"{self.name}: constraint {rc.name!r} anchors unknown field {rc.anchor!r}")
        for check in self.terminal_checks:
            missing = [f for f in check.fields if f not in known]
            if missing:
                raise WorkflowDefinitionError(f"{self.name}: check {check.name!r} uses unknown fields {missing}")
        if self.verification is not None:
            missing = [f for f in self.verification.fields if f not in known]
            if missing:
                raise WorkflowDefinitionError(f"{self.name}: verification forwards unknown fields {missing}")

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def field(self, name: str) -> FieldSpec:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def step_fields(self, index: int) -> Tuple[FieldSpec, ...]:
        return tuple(self.field(n) for n in self.steps[index].fields)

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "steps": [{"label": s.label, "fields": list(s.fields)} for s in self.steps],
            "fields": [{"name": f.name, "kind": f.kind, "required": f.required} for f in self.fields],
            "recordConstraints": [rc.name for rc in self.record_constraints],
            "terminalChecks": [c.name for c in self.terminal_checks],
            "verification": self.verification.service if self.verification else None,
            "redirect": self.redirect,
        }
