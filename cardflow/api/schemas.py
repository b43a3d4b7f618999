from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

RunStatus = Literal["STEP", "SUCCEEDED", "FAILED"]

class RecordModel(BaseModel):
    workflow: str
    submissionId: str
    values: Dict[str, Any] = Field(default_factory=dict)
    stepIndex: int = 0
    status: RunStatus = "STEP"
    errors: Dict[str, List[str]] = Field(default_factory=dict)
    createdAtMs: int = 0

class TransitionRequest(BaseModel):
    # None means "start a fresh run" (single-shot form posts)
    record: Optional[RecordModel] = None
    values: Dict[str, Any] = Field(default_factory=dict)
    context: Dict[str, Any] = Field(default_factory=dict)

class StepModel(BaseModel):
    label: str
    fields: List[str]

class WorkflowSummary(BaseModel):
    name: str
    description: str = ""
    steps: List[StepModel]
    verification: Optional[str] = None

class StartResponse(BaseModel):
    record: RecordModel

class TransitionResponse(BaseModel):
    record: RecordModel
    moved: bool
    errors: Dict[str, List[str]] = Field(default_factory=dict)

class Outcome(BaseModel):
    status: Literal["success", "error"]
    message: str
    redirect: Optional[str] = None

class SubmitResponse(BaseModel):
    record: RecordModel
    outcome: Outcome
