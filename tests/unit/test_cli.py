"""Unit tests for the command line interface."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pytest

from library_rules_workflow.assistant.config import WorkflowSettings
from library_rules_workflow.assistant.main import main
from library_rules_workflow.assistant.workflow.store import RunStore


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    # main() reconfigures the root logger; undo that after each test.
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def _only_run_id(settings: WorkflowSettings) -> str:
    runs = RunStore(settings.runs_state_file).list()
    assert len(runs) == 1
    return runs[0].run_id


def test_cli_full_run(settings: WorkflowSettings, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["start"]) == 0
    out = capsys.readouterr().out
    assert "please provide the library information" in out
    assert "waiting for input at step 0" in out

    run_id = _only_run_id(settings)

    assert main(["advance", "--run-id", run_id, "--input", "React"]) == 0
    assert "May I search" in capsys.readouterr().out

    assert main(["advance", "--run-id", run_id, "--input", "no"]) == 0
    out = capsys.readouterr().out
    assert "Generated rules for React" in out
    assert f"[run {run_id}] completed" in out
    assert (settings.rules_dir / "library-react-rules.md").exists()

    assert main(["rules"]) == 0
    assert "library-react-rules.md" in capsys.readouterr().out


def test_cli_status_and_grant(
    settings: WorkflowSettings, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["start"]) == 0
    run_id = _only_run_id(settings)
    capsys.readouterr()

    assert main(["grant", "--run-id", run_id, "--permission", "search_local_files"]) == 0
    capsys.readouterr()

    assert main(["status", "--run-id", run_id]) == 0
    status = json.loads(capsys.readouterr().out)
    assert status["run_id"] == run_id
    assert status["granted_permissions"] == ["search_local_files"]
    assert status["current_step_index"] == 0


def test_cli_steps_and_workflows(
    settings: WorkflowSettings, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["steps"]) == 0
    out = capsys.readouterr().out
    assert "0. collect_library_info (stop)" in out
    assert "2. search_local_files (auto) [requires search_local_files]" in out

    assert main(["workflows"]) == 0
    assert capsys.readouterr().out.startswith("library-rules: ")


def test_cli_unknown_run_exit_code(
    settings: WorkflowSettings, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["advance", "--run-id", "missing", "--input", "React"]) == 3
    assert "Workflow run not found: missing" in capsys.readouterr().err


def test_cli_configuration_error(
    settings: WorkflowSettings,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    assert main(["workflows"]) == 2
    assert "Configuration error" in capsys.readouterr().err
