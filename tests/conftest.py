"""Test configuration and fixtures."""

from pathlib import Path

import pytest

from library_rules_workflow.assistant.config import WorkflowSettings
from library_rules_workflow.assistant.service import WorkflowService
from library_rules_workflow.assistant.workflow.definitions import library_rules_workflow
from library_rules_workflow.assistant.workflow.engine import WorkflowEngine
from library_rules_workflow.assistant.workflow.steps import (
    InputKind,
    Step,
    StepDefinitionStore,
    Transition,
)

_SETTINGS_ENV = (
    "LOG_LEVEL",
    "LOG_FORMAT",
    "AGENT_STATE_PATH",
    "RULES_DIR",
    "WORKFLOW_SEARCH_ROOT",
    "WORKFLOW_SEARCH_SUFFIXES",
    "WORKFLOW_SEARCH_MAX_HITS",
    "WORKFLOW_DEFINITIONS_DIR",
    "RULES_WORKFLOW_CORS_ORIGINS",
)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Provide a small project tree for the local usage scan."""
    project = tmp_path / "project"
    (project / "src").mkdir(parents=True)
    (project / "src" / "App.jsx").write_text(
        "import React from 'react';\n\nexport const App = () => null;\n",
        encoding="utf-8",
    )
    (project / "src" / "util.py").write_text("print('no library here')\n", encoding="utf-8")
    (project / "node_modules" / "react").mkdir(parents=True)
    (project / "node_modules" / "react" / "index.js").write_text(
        "module.exports = React;\n", encoding="utf-8"
    )
    return project


@pytest.fixture
def settings(
    tmp_path: Path, project_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> WorkflowSettings:
    """Provide settings rooted in a temporary directory."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("AGENT_STATE_PATH", str(tmp_path / "agent_state"))
    monkeypatch.setenv("RULES_DIR", str(tmp_path / "rules"))
    monkeypatch.setenv("WORKFLOW_SEARCH_ROOT", str(project_dir))
    monkeypatch.setenv("LOG_FORMAT", "text")
    return WorkflowSettings()


@pytest.fixture
def service(settings: WorkflowSettings) -> WorkflowService:
    return WorkflowService.from_settings(settings)


@pytest.fixture
def library_store() -> StepDefinitionStore:
    return library_rules_workflow()


@pytest.fixture
def plain_engine(library_store: StepDefinitionStore) -> WorkflowEngine:
    """The library rules workflow without any step handlers bound."""
    return WorkflowEngine(library_store)


@pytest.fixture
def gated_store() -> StepDefinitionStore:
    """A workflow whose first step is an AUTO step behind a permission."""
    return StepDefinitionStore(
        "gated",
        [
            Step(
                name="fetch",
                ordinal=0,
                transition=Transition.AUTO,
                requires_permission="network",
                output_template="Fetched docs.",
            ),
            Step(
                name="confirm",
                ordinal=1,
                transition=Transition.STOP,
                input_kind=InputKind.TEXT,
                output_template="Anything else?",
            ),
        ],
    )
