"""Workflow run service.

Wires the workflow catalog, step handlers and the run store together so the
CLI and the REST API share one code path.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path

from library_rules_workflow.assistant.config import WorkflowSettings
from library_rules_workflow.assistant.workflow.actions import Action, ScanLocalUsages, WriteRuleFile
from library_rules_workflow.assistant.workflow.definitions import (
    LIBRARY_RULES_WORKFLOW,
    WorkflowCatalog,
)
from library_rules_workflow.assistant.workflow.engine import AdvanceResult, WorkflowEngine
from library_rules_workflow.assistant.workflow.run import WorkflowRun, grant
from library_rules_workflow.assistant.workflow.steps import StepDefinitionStore
from library_rules_workflow.assistant.workflow.store import RunStore

logger = logging.getLogger(__name__)

HandlerFactory = Callable[[StepDefinitionStore], Mapping[str, Action]]


def default_handlers(settings: WorkflowSettings) -> HandlerFactory:
    """Bind the library rules workflow's steps to their handlers."""

    def _factory(store: StepDefinitionStore) -> Mapping[str, Action]:
        if store.name != LIBRARY_RULES_WORKFLOW:
            return {}
        return {
            "search_local_files": ScanLocalUsages(
                root=settings.search_root,
                suffixes=settings.parsed_search_suffixes(),
                max_hits=settings.search_max_hits,
                exclude=(settings.rules_dir, settings.agent_state_path),
            ),
            "generate_rules": WriteRuleFile(rules_dir=settings.rules_dir),
        }

    return _factory


class WorkflowService:
    def __init__(
        self,
        *,
        catalog: WorkflowCatalog,
        store: RunStore,
        handlers: HandlerFactory | None = None,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self._handlers = handlers or (lambda _store: {})

    @classmethod
    def from_settings(cls, settings: WorkflowSettings) -> WorkflowService:
        return cls(
            catalog=WorkflowCatalog(settings.definitions_dir),
            store=RunStore(settings.runs_state_file),
            handlers=default_handlers(settings),
        )

    def engine_for(self, workflow: str) -> WorkflowEngine:
        definition = self.catalog.get(workflow)
        return WorkflowEngine(definition, self._handlers(definition))

    def start(
        self, workflow: str = LIBRARY_RULES_WORKFLOW, user_input: str | None = None
    ) -> tuple[WorkflowRun, AdvanceResult]:
        engine = self.engine_for(workflow)
        run = engine.new_run()
        logger.info("Workflow run started", extra={"run_id": run.run_id, "workflow": workflow})
        result = engine.advance(run, user_input)
        self.store.save(run)
        return run, result

    def advance(self, run_id: str, user_input: str | None) -> tuple[WorkflowRun, AdvanceResult]:
        def _advance(run: WorkflowRun) -> AdvanceResult:
            return self.engine_for(run.workflow).advance(run, user_input)

        run, result = self.store.update(run_id, _advance)
        logger.info(
            "Workflow run advanced",
            extra={
                "run_id": run.run_id,
                "step_index": run.current_step_index,
                "status": result.state.status.value,
            },
        )
        return run, result

    def grant(self, run_id: str, flag: str) -> WorkflowRun:
        run, _ = self.store.update(run_id, lambda r: grant(r, flag))
        logger.info("Permission granted", extra={"run_id": run_id, "permission": flag})
        return run

    def get(self, run_id: str) -> WorkflowRun:
        return self.store.get(run_id)

    def list_rule_files(self, rules_dir: Path) -> list[Path]:
        if not rules_dir.is_dir():
            return []
        return sorted(rules_dir.glob("library-*-rules.md"), key=lambda p: p.name)
