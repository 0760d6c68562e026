"""Explicit workflow domain concepts.

This package introduces first-class types for:
- Step definitions with STOP/AUTO transitions
- Workflow runs and the permission gate
- The step interpreter (engine)
- Deterministic step handlers (local usage scan, rule file generation)

A suspended run is a plain value that can be persisted and resumed later.
"""

from .engine import AdvanceResult, EngineState, EngineStatus, WorkflowEngine
from .run import WorkflowRun, decline, grant, is_declined, is_granted
from .steps import InputKind, Step, StepDefinitionStore, Transition

__all__ = [
    "AdvanceResult",
    "EngineState",
    "EngineStatus",
    "InputKind",
    "Step",
    "StepDefinitionStore",
    "Transition",
    "WorkflowEngine",
    "WorkflowRun",
    "decline",
    "grant",
    "is_declined",
    "is_granted",
]
