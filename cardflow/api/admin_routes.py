from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Header
from cardflow.settings import settings
from cardflow.verification.gateway import get_gateway
from cardflow.verification.services import SERVICES
from cardflow.core.errors import UnknownWorkflowError
from cardflow.workflows.catalog import get_workflow, list_workflows
import cardflow.observability.metrics as metrics

router = APIRouter(prefix="/admin", tags=["admin"])

def require_admin(x_admin_key: str = Header(default="", alias="x-admin-key")):
    if not settings.ADMIN_RBAC_ENABLED:
        return
    # Secure default: if enabled but no key configured, reject all.
    if not settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail="Admin access disabled (no key configured)")
    if x_admin_key != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail="Invalid admin key")

@router.get("/metrics")
def get_metrics(_=Depends(require_admin)):
    """Workflow transition counters and verification fallback rates."""
    return metrics.get_metrics_snapshot([d.name for d in list_workflows()], list(SERVICES))

@router.get("/workflows/{name}")
def describe_workflow(name: str, _=Depends(require_admin)):
    """Full definition dump (fields, constraints, checks) for operators."""
    try:
        return get_workflow(name).describe()
    except UnknownWorkflowError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.post("/verify/{service_id}")
async def run_verification(service_id: str, subset: Any = Body(None), _=Depends(require_admin)):
    """Dry-run a scoring call against the configured backend. Nothing is stored."""
    if service_id not in SERVICES:
        raise HTTPException(status_code=404, detail=f"Unknown verification service: {service_id}")
    if not isinstance(subset, dict):
        subset = {}
    result = await get_gateway().verify(service_id, subset)
    return result.to_dict()
