from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from pydantic import ValidationError

from cardflow.api.auth import require_api_key
from cardflow.api.normalize import normalize_transition_payload
from cardflow.api.schemas import (
    RecordModel,
    StartResponse,
    StepModel,
    SubmitResponse,
    TransitionRequest,
    TransitionResponse,
    WorkflowSummary,
)
from cardflow.core import orchestrator
from cardflow.core.definitions import WorkflowDefinition
from cardflow.core.errors import UnknownWorkflowError, WorkflowStateError
from cardflow.core.orchestrator import SubmissionRecord
from cardflow.utils.time import iso_from_ms, now_ms
from cardflow.workflows.catalog import get_workflow, list_workflows

router = APIRouter(prefix="/workflows", tags=["workflows"])


def _summary(d: WorkflowDefinition) -> WorkflowSummary:
    return WorkflowSummary(
        name=d.name,
        description=d.description,
        steps=[StepModel(label=s.label, fields=list(s.fields)) for s in d.steps],
        verification=d.verification.service if d.verification else None,
    )


def _definition(name: str) -> WorkflowDefinition:
    try:
        return get_workflow(name)
    except UnknownWorkflowError as e:
        raise HTTPException(status_code=404, detail=str(e))


async def _parse(request: Request, payload: Any) -> TransitionRequest:
    """Accept ANY JSON payload (envelope or flat field map) and normalize into TransitionRequest."""
    if payload is None:
        try:
            payload = await request.json()
        except ValueError:
            payload = {}
    try:
        return TransitionRequest.model_validate(normalize_transition_payload(payload))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))


def _load(definition: WorkflowDefinition, req: TransitionRequest) -> SubmissionRecord:
    if req.record is None:
        return orchestrator.start_run(definition)
    try:
        return SubmissionRecord.from_dict(req.record.model_dump())
    except WorkflowStateError as e:
        raise HTTPException(status_code=409, detail=str(e))


def _record_model(record: SubmissionRecord) -> RecordModel:
    return RecordModel.model_validate(record.to_dict())


# Observed server-side; client values for these keys are never trusted
SERVER_CONTEXT_KEYS = ("ipAddress", "timestamp")


def _submit_context(request: Request, context: Dict[str, Any]) -> Dict[str, Any]:
    ctx = {k: v for k, v in (context or {}).items() if k not in SERVER_CONTEXT_KEYS}
    ctx["ipAddress"] = request.client.host if request.client else "unavailable"
    ctx["timestamp"] = iso_from_ms(now_ms())
    return ctx


@router.get("", response_model=list[WorkflowSummary], dependencies=[Depends(require_api_key)])
def get_workflows():
    return [_summary(d) for d in list_workflows()]


@router.get("/{name}", response_model=WorkflowSummary, dependencies=[Depends(require_api_key)])
def get_workflow_summary(name: str):
    return _summary(_definition(name))


@router.post("/{name}/start", response_model=StartResponse, dependencies=[Depends(require_api_key)])
def start(name: str):
    definition = _definition(name)
    return StartResponse(record=_record_model(orchestrator.start_run(definition)))


@router.post("/{name}/advance", response_model=TransitionResponse, dependencies=[Depends(require_api_key)])
async def advance(name: str, request: Request, payload: Any = Body(None)):
    definition = _definition(name)
    req = await _parse(request, payload)
    record = _load(definition, req)
    try:
        orchestrator.set_values(definition, record, req.values)
        moved = orchestrator.advance(definition, record)
    except WorkflowStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return TransitionResponse(record=_record_model(record), moved=moved, errors=record.errors)


@router.post("/{name}/back", response_model=TransitionResponse, dependencies=[Depends(require_api_key)])
async def back(name: str, request: Request, payload: Any = Body(None)):
    definition = _definition(name)
    req = await _parse(request, payload)
    record = _load(definition, req)
    try:
        orchestrator.set_values(definition, record, req.values)
        orchestrator.back(definition, record)
    except WorkflowStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return TransitionResponse(record=_record_model(record), moved=True, errors=record.errors)


@router.post(
    "/{name}/submit",
    response_model=SubmitResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_api_key)],
)
async def submit(name: str, request: Request, payload: Any = Body(None)):
    definition = _definition(name)
    req = await _parse(request, payload)
    record = _load(definition, req)
    try:
        orchestrator.set_values(definition, record, req.values)
        result = await orchestrator.submit(definition, record, context=_submit_context(request, req.context))
    except WorkflowStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    # Verification stays server-side; only the outcome is shown to the user
    return SubmitResponse(record=_record_model(record), outcome=result.to_outcome())
