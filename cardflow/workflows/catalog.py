from typing import Dict, List

from cardflow.core.definitions import WorkflowDefinition
from cardflow.core.errors import UnknownWorkflowError, WorkflowDefinitionError
from cardflow.workflows.login import build_login
from cardflow.workflows.orders import build_campaign_order, build_dashboard_order
from cardflow.workflows.redemption import build_payout_details, build_redemption

_REGISTRY: Dict[str, WorkflowDefinition] = {}


def register(definition: WorkflowDefinition) -> WorkflowDefinition:
    if definition.name in _REGISTRY:
        raise WorkflowDefinitionError(f"workflow {definition.name!r} is already registered")
    _REGISTRY[definition.name] = definition
    return definition


def get_workflow(name: str) -> WorkflowDefinition:
    try:
        return _REGISTRY[name]
    except KeyError:
        raise UnknownWorkflowError(name) from None


def list_workflows() -> List[WorkflowDefinition]:
    return list(_REGISTRY.values())


for _build in (build_redemption, build_payout_details, build_campaign_order, build_dashboard_order, build_login):
    register(_build())
