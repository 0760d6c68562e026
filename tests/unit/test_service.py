"""Unit tests for the workflow service (store + engine wiring)."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from library_rules_workflow.assistant.config import WorkflowSettings
from library_rules_workflow.assistant.service import WorkflowService
from library_rules_workflow.assistant.workflow.engine import EngineStatus
from library_rules_workflow.assistant.workflow.errors import (
    RunNotFoundError,
    UnknownWorkflowError,
)


def test_run_survives_service_restart(settings: WorkflowSettings) -> None:
    run, result = WorkflowService.from_settings(settings).start()
    assert result.state.status == EngineStatus.AWAITING_INPUT

    # A fresh service instance resumes the persisted run.
    service = WorkflowService.from_settings(settings)
    run, result = service.advance(run.run_id, "React")
    assert run.current_step_index == 1

    run, result = service.advance(run.run_id, "yes")
    assert result.completed

    stored = service.get(run.run_id)
    assert stored.completed
    assert stored.granted_permissions == {"search_local_files"}
    assert Path(stored.artifacts["rule_file"]) == settings.rules_dir / "library-react-rules.md"
    assert service.list_rule_files(settings.rules_dir) == [
        settings.rules_dir / "library-react-rules.md"
    ]


def test_start_with_input_answers_first_step(service: WorkflowService) -> None:
    run, result = service.start(user_input="Spring Boot")

    assert run.inputs["library_info"] == "Spring Boot"
    assert "May I search" in result.output


def test_external_grant_is_persisted(service: WorkflowService) -> None:
    run, _ = service.start()
    service.grant(run.run_id, "search_local_files")

    assert service.get(run.run_id).granted_permissions == {"search_local_files"}


def test_unknown_run_and_workflow(service: WorkflowService) -> None:
    with pytest.raises(RunNotFoundError):
        service.advance("missing", "React")
    with pytest.raises(UnknownWorkflowError):
        service.start("missing")


def test_list_rule_files_without_directory(service: WorkflowService, tmp_path: Path) -> None:
    assert service.list_rule_files(tmp_path / "nowhere") == []


def test_concurrent_grants_are_not_lost(service: WorkflowService) -> None:
    run, _ = service.start()
    flags = [f"permission_{i}" for i in range(8)]
    barrier = threading.Barrier(len(flags))
    errors: list[Exception] = []

    def _grant(flag: str) -> None:
        try:
            barrier.wait()
            service.grant(run.run_id, flag)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=_grant, args=(flag,)) for flag in flags]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert service.get(run.run_id).granted_permissions == set(flags)


def test_concurrent_advance_and_grant_keep_both_updates(service: WorkflowService) -> None:
    run, _ = service.start()
    barrier = threading.Barrier(2)

    def _advance() -> None:
        barrier.wait()
        service.advance(run.run_id, "React")

    def _grant() -> None:
        barrier.wait()
        service.grant(run.run_id, "network")

    threads = [threading.Thread(target=_advance), threading.Thread(target=_grant)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    stored = service.get(run.run_id)
    assert stored.inputs["library_info"] == "React"
    assert "network" in stored.granted_permissions
    assert stored.current_step_index == 1
