from __future__ import annotations


class WorkflowError(Exception):
    """Base class for workflow definition and run errors."""


class StepOutOfRangeError(IndexError):
    """Raised when a step index is outside the defined sequence.

    Reaching the end of the sequence is the terminal state of a run, so the
    engine treats this as "workflow complete" rather than a failure.
    """

    def __init__(self, index: int, length: int) -> None:
        super().__init__(f"Step index {index} is out of range (workflow has {length} steps)")
        self.index = index
        self.length = length


class IllegalTransitionError(WorkflowError, ValueError):
    pass


class InvalidWorkflowDefinitionError(WorkflowError, ValueError):
    pass


class UnknownWorkflowError(WorkflowError, KeyError):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown workflow: {self.name}"


class RunNotFoundError(WorkflowError, KeyError):
    def __init__(self, run_id: str) -> None:
        super().__init__(run_id)
        self.run_id = run_id

    def __str__(self) -> str:
        return f"Workflow run not found: {self.run_id}"
