"""FastAPI app factory.

Endpoints are intentionally thin wrappers over `WorkflowService`.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from library_rules_workflow import __version__
from library_rules_workflow.assistant.config import WorkflowSettings
from library_rules_workflow.assistant.service import WorkflowService
from library_rules_workflow.assistant.workflow.engine import AdvanceResult, WorkflowEngine
from library_rules_workflow.assistant.workflow.errors import (
    RunNotFoundError,
    UnknownWorkflowError,
)
from library_rules_workflow.assistant.workflow.run import WorkflowRun
from library_rules_workflow.server.models import (
    AdvanceRequest,
    ApiAdvanceResult,
    ApiRun,
    ApiStep,
    GrantRequest,
    StartRunRequest,
)

logger = logging.getLogger(__name__)


def _to_api_run(run: WorkflowRun, engine: WorkflowEngine) -> ApiRun:
    return ApiRun(
        run_id=run.run_id,
        workflow=run.workflow,
        status=engine.state(run).status.value,
        current_step_index=run.current_step_index,
        granted_permissions=sorted(run.granted_permissions),
        declined_permissions=sorted(run.declined_permissions),
        inputs=dict(run.inputs),
        artifacts=dict(run.artifacts),
        collected_outputs=list(run.collected_outputs),
        created_at=run.created_at,
        updated_at=run.updated_at,
    )


def _to_api_result(
    run: WorkflowRun, result: AdvanceResult, engine: WorkflowEngine
) -> ApiAdvanceResult:
    return ApiAdvanceResult(
        run=_to_api_run(run, engine),
        output=result.output,
        outputs=list(result.outputs),
        transition=result.transition.value if result.transition is not None else None,
    )


def create_app(settings: WorkflowSettings | None = None) -> FastAPI:
    settings = settings or WorkflowSettings()
    service = WorkflowService.from_settings(settings)

    app = FastAPI(
        title="Library Rules Workflow",
        version=__version__,
        description="REST API over step-gated workflow runs.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.settings = settings
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _engine(workflow: str) -> WorkflowEngine:
        try:
            return service.engine_for(workflow)
        except UnknownWorkflowError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

    def _load(run_id: str) -> WorkflowRun:
        try:
            return service.get(run_id)
        except RunNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.get("/api/v1/workflows")
    def list_workflows() -> list[dict[str, str]]:
        return [
            {"name": name, "description": service.catalog.get(name).description}
            for name in service.catalog.names()
        ]

    @app.get("/api/v1/workflows/{name}/steps", response_model=list[ApiStep])
    def list_steps(name: str) -> list[ApiStep]:
        engine = _engine(name)
        return [
            ApiStep(
                name=step.name,
                ordinal=step.ordinal,
                transition=step.transition.value,
                actions=list(step.actions),
                requires_permission=step.requires_permission,
                grants_permission=step.grants_permission,
            )
            for step in engine.store
        ]

    @app.post("/api/v1/runs", response_model=ApiAdvanceResult, status_code=201)
    def start_run(req: StartRunRequest) -> ApiAdvanceResult:
        engine = _engine(req.workflow)
        run, result = service.start(req.workflow, req.input)
        return _to_api_result(run, result, engine)

    @app.get("/api/v1/runs/{run_id}", response_model=ApiRun)
    def get_run(run_id: str) -> ApiRun:
        run = _load(run_id)
        return _to_api_run(run, _engine(run.workflow))

    @app.post("/api/v1/runs/{run_id}/advance", response_model=ApiAdvanceResult)
    def advance_run(run_id: str, req: AdvanceRequest) -> ApiAdvanceResult:
        existing = _load(run_id)
        engine = _engine(existing.workflow)
        run, result = service.advance(run_id, req.input)
        return _to_api_result(run, result, engine)

    @app.post("/api/v1/runs/{run_id}/permissions", response_model=ApiRun)
    def grant_permission(run_id: str, req: GrantRequest) -> ApiRun:
        existing = _load(run_id)
        try:
            run = service.grant(run_id, req.permission)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        return _to_api_run(run, _engine(existing.workflow))

    return app
