import asyncio
import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import cardflow.observability.metrics as metrics
from cardflow.core import state_machine as sm
from cardflow.core.definitions import WorkflowDefinition
from cardflow.core.errors import WorkflowStateError
from cardflow.core.schema import first_error, validate
from cardflow.observability.logging import log
from cardflow.queue.jobs import enqueue_verification
from cardflow.settings import settings
from cardflow.utils.time import now_ms
from cardflow.verification.gateway import VerificationGateway, get_gateway
from cardflow.verification.models import VerificationResult


@dataclass
class SubmissionRecord:
    workflow: str
    submissionId: str = field(default_factory=lambda: uuid.uuid4().hex)

    # Raw values as entered by the client, keyed by field name
    values: Dict[str, Any] = field(default_factory=dict)

    # 0-based active step; equals the step count once terminal
    stepIndex: int = 0
    status: str = sm.STEP
    errors: Dict[str, List[str]] = field(default_factory=dict)

    createdAtMs: int = field(default_factory=now_ms)

    @property
    def terminal(self) -> bool:
        return self.status in sm.TERMINAL

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SubmissionRecord":
        """Rebuild a caller-held record. Unknown keys are ignored."""
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data and data[k] is not None}
        rec = cls(**known)
        rec.values = dict(rec.values or {})
        rec.errors = {k: list(v) for k, v in (rec.errors or {}).items()}
        rec.stepIndex = int(rec.stepIndex or 0)
        if rec.status != sm.STEP and rec.status not in sm.TERMINAL:
            raise WorkflowStateError(f"unknown run status {rec.status!r}")
        return rec


@dataclass
class WorkflowResult:
    status: str  # "success" | "error"
    message: str
    redirect: Optional[str] = None
    # Field the error message is anchored to (None for success)
    field: Optional[str] = None
    verification: Optional[VerificationResult] = None

    @property
    def ok(self) -> bool:
        return self.status == sm.OUTCOME_SUCCESS

    def to_outcome(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"status": self.status, "message": self.message}
        if self.ok and self.redirect:
            out["redirect"] = self.redirect
        return out


def _ensure_active(definition: WorkflowDefinition, record: SubmissionRecord) -> None:
    if record.workflow != definition.name:
        raise WorkflowStateError(f"record belongs to {record.workflow!r}, not {definition.name!r}")
    if record.terminal:
        raise WorkflowStateError(f"run {record.submissionId} already finished ({record.status})")
    if not 0 <= record.stepIndex < definition.step_count:
        raise WorkflowStateError(f"step index {record.stepIndex} out of range for {definition.name!r}")


def start_run(definition: WorkflowDefinition) -> SubmissionRecord:
    record = SubmissionRecord(workflow=definition.name)
    metrics.record_workflow_event(definition.name, "started")
    log("workflow_started", workflow=definition.name, submissionId=record.submissionId)
    return record


def set_values(definition: WorkflowDefinition, record: SubmissionRecord, values: Optional[Mapping[str, Any]]) -> SubmissionRecord:
    """Merge client-entered values; names the workflow does not declare are dropped."""
    _ensure_active(definition, record)
    known = set(definition.field_names)
    for k, v in (values or {}).items():
        if k in known:
            record.values[k] = v
    return record


def advance(definition: WorkflowDefinition, record: SubmissionRecord) -> bool:
    """Validate the active step; move forward only when it passes.

    Returns True when the run moved to the next step.
    """
    _ensure_active(definition, record)
    if record.stepIndex >= definition.step_count - 1:
        raise WorkflowStateError("advance is not allowed from the last step; use submit")

    step = definition.steps[record.stepIndex]
    outcome = validate(record.values, definition.step_fields(record.stepIndex))

    for name in step.fields:
        record.errors.pop(name, None)

    if not outcome.ok:
        record.errors.update(outcome.errors)
        metrics.record_workflow_event(definition.name, "advance_blocked")
        log(
            "workflow_advance_blocked",
            workflow=definition.name,
            submissionId=record.submissionId,
            step=step.label,
            error_fields=sorted(outcome.errors),
        )
        return False

    record.stepIndex += 1
    metrics.record_workflow_event(definition.name, "advanced")
    log("workflow_advanced", workflow=definition.name, submissionId=record.submissionId, step_index=record.stepIndex)
    return True


def back(definition: WorkflowDefinition, record: SubmissionRecord) -> None:
    """Step back without validating; every entered value is kept."""
    _ensure_active(definition, record)
    if record.stepIndex == 0:
        raise WorkflowStateError("back is not allowed from the first step")
    record.stepIndex -= 1
    metrics.record_workflow_event(definition.name, "back")


def _finish(definition: WorkflowDefinition, record: SubmissionRecord, status: str) -> None:
    record.status = status
    record.stepIndex = definition.step_count
    metrics.record_workflow_event(definition.name, "succeeded" if status == sm.SUCCEEDED else "failed")


def _fail(definition: WorkflowDefinition, record: SubmissionRecord, message: str, field_name: Optional[str], reason: str, started: float) -> WorkflowResult:
    _finish(definition, record, sm.FAILED)
    log(
        "workflow_failed",
        workflow=definition.name,
        submissionId=record.submissionId,
        reason=reason,
        field=field_name,
        total_latency_ms=int((time.time() - started) * 1000),
    )
    return WorkflowResult(status=sm.OUTCOME_ERROR, message=message, field=field_name)


async def _verify(
    definition: WorkflowDefinition,
    record: SubmissionRecord,
    values: Mapping[str, Any],
    gateway: Optional[VerificationGateway],
    context: Optional[Mapping[str, Any]],
) -> Optional[VerificationResult]:
    spec = definition.verification
    mode = settings.VERIFICATION_MODE
    if spec is None or mode == "off":
        return None

    subset = spec.build_subset(values, context)
    if mode == "rq":
        try:
            # Blocking Redis round-trip; keep it off the event loop
            await asyncio.to_thread(enqueue_verification, spec.service, subset, record.submissionId)
        except Exception as e:
            # Queue outage must not block the submission
            log("verification_enqueue_failed", service=spec.service, submissionId=record.submissionId, error=type(e).__name__)
        return None

    gw = gateway or get_gateway()
    return await gw.verify(spec.service, subset, submission_id=record.submissionId)


async def submit(
    definition: WorkflowDefinition,
    record: SubmissionRecord,
    gateway: Optional[VerificationGateway] = None,
    context: Optional[Mapping[str, Any]] = None,
) -> WorkflowResult:
    """Terminal transition from the last step.

    Order: full-record validation (with cross-field constraints), terminal
    policy checks, advisory verification, then Succeeded. A policy check whose
    fields are valid wins over other field errors.
    """
    started = time.time()
    _ensure_active(definition, record)
    if record.stepIndex != definition.step_count - 1:
        raise WorkflowStateError("submit is only allowed from the last step")

    outcome = validate(record.values, definition.fields, definition.record_constraints)

    for check in definition.terminal_checks:
        if any(name not in outcome.values for name in check.fields):
            continue
        if check.rejects(outcome.values):
            record.errors = {check.fields[0]: [check.message]} if check.fields else {}
            return _fail(definition, record, check.message, check.fields[0] if check.fields else None, f"policy:{check.name}", started)

    if not outcome.ok:
        record.errors = {k: list(v) for k, v in outcome.errors.items()}
        name, message = first_error(outcome.errors, definition.field_names)
        return _fail(definition, record, message, name, "validation", started)

    verification = await _verify(definition, record, outcome.values, gateway, context)

    record.errors = {}
    _finish(definition, record, sm.SUCCEEDED)
    log(
        "workflow_succeeded",
        workflow=definition.name,
        submissionId=record.submissionId,
        verification=verification.to_dict() if verification else None,
        total_latency_ms=int((time.time() - started) * 1000),
    )
    return WorkflowResult(
        status=sm.OUTCOME_SUCCESS,
        message=definition.success_message,
        redirect=definition.redirect,
        verification=verification,
    )
