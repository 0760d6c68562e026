"""Workflow run state and the permission gate.

A run is an explicit value handed between calls. Nothing about an
in-progress workflow lives in module globals.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from .errors import IllegalTransitionError


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class WorkflowRun(BaseModel):
    """One in-progress execution of a step sequence."""

    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    workflow: str

    current_step_index: int = 0
    granted_permissions: set[str] = Field(default_factory=set)
    declined_permissions: set[str] = Field(default_factory=set)
    collected_outputs: list[str] = Field(default_factory=list)

    inputs: dict[str, str] = Field(default_factory=dict)
    artifacts: dict[str, str] = Field(default_factory=dict)

    awaiting_input: bool = False
    completed: bool = False

    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    def move_to(self, index: int) -> None:
        if index < self.current_step_index:
            raise IllegalTransitionError(
                f"Illegal transition: step {self.current_step_index} -> {index}"
            )
        self.current_step_index = index
        self.awaiting_input = False
        self.touch()

    def record_output(self, text: str) -> None:
        self.collected_outputs.append(text)
        self.touch()

    def touch(self) -> None:
        self.updated_at = _utc_now()


def grant(run: WorkflowRun, flag: str) -> None:
    """Grant a permission flag for the rest of the run.

    An explicit grant wins over an earlier refusal.
    """

    flag = flag.strip()
    if not flag:
        raise ValueError("Permission flag must not be empty")
    run.declined_permissions.discard(flag)
    run.granted_permissions.add(flag)
    run.touch()


def decline(run: WorkflowRun, flag: str) -> None:
    """Record that the actor refused a permission.

    Declining never revokes a grant.
    """

    flag = flag.strip()
    if not flag or flag in run.granted_permissions:
        return
    run.declined_permissions.add(flag)
    run.touch()


def is_granted(run: WorkflowRun, flag: str) -> bool:
    return flag in run.granted_permissions


def is_declined(run: WorkflowRun, flag: str) -> bool:
    return flag in run.declined_permissions and flag not in run.granted_permissions
