"""Pydantic models for the REST server."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class StartRunRequest(BaseModel):
    workflow: str = "library-rules"
    input: str | None = None


class AdvanceRequest(BaseModel):
    input: str | None = None


class GrantRequest(BaseModel):
    permission: str = Field(min_length=1)


class ApiStep(BaseModel):
    name: str
    ordinal: int
    transition: str
    actions: list[str]
    requires_permission: str | None = None
    grants_permission: str | None = None


class ApiRun(BaseModel):
    run_id: str
    workflow: str
    status: str
    current_step_index: int
    granted_permissions: list[str]
    declined_permissions: list[str]
    inputs: dict[str, str]
    artifacts: dict[str, str]
    collected_outputs: list[str]
    created_at: datetime
    updated_at: datetime


class ApiAdvanceResult(BaseModel):
    run: ApiRun
    output: str
    outputs: list[str] = Field(default_factory=list)
    transition: str | None = None
