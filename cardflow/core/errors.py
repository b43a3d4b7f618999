class WorkflowError(Exception):
    """Base class for workflow engine errors."""


class WorkflowDefinitionError(WorkflowError, ValueError):
    """A workflow definition violates a configuration invariant."""


class WorkflowStateError(WorkflowError):
    """A transition was requested from a state that does not allow it."""


class UnknownWorkflowError(WorkflowError, KeyError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown workflow: {self.name}"
