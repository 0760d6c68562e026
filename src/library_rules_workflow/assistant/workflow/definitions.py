"""Workflow definitions: the built-in library rules workflow and JSON loading.

A JSON definition looks like:

    {
      "name": "my-workflow",
      "description": "...",
      "steps": [
        {"name": "ask", "transition": "stop", "output_template": "What is {thing}?"},
        {"name": "done", "transition": "auto", "output_template": "Thanks."}
      ]
    }

Ordinals are assigned from list position.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .actions import LIBRARY_INPUT_KEY, validate_library_info
from .errors import InvalidWorkflowDefinitionError, UnknownWorkflowError
from .steps import InputKind, InputValidator, Step, StepDefinitionStore, Transition

logger = logging.getLogger(__name__)

LIBRARY_RULES_WORKFLOW = "library-rules"
SEARCH_PERMISSION = "search_local_files"


class StepModel(BaseModel):
    name: str = Field(min_length=1)
    transition: Transition
    output_template: str
    actions: list[str] = Field(default_factory=list)
    input_kind: InputKind = InputKind.TEXT
    input_key: str | None = None
    grants_permission: str | None = None
    requires_permission: str | None = None
    permission_template: str | None = None

    def to_step(self, ordinal: int) -> Step:
        return Step(
            name=self.name,
            ordinal=ordinal,
            transition=self.transition,
            output_template=self.output_template,
            actions=tuple(self.actions),
            input_kind=self.input_kind,
            input_key=self.input_key,
            grants_permission=self.grants_permission,
            requires_permission=self.requires_permission,
            permission_template=self.permission_template,
        )


class WorkflowDefinitionModel(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    steps: list[StepModel]

    def to_store(self) -> StepDefinitionStore:
        return StepDefinitionStore(
            self.name,
            [s.to_step(i) for i, s in enumerate(self.steps)],
            description=self.description,
        )


def load_workflow_definition(path: Path) -> StepDefinitionStore:
    """Load and validate a workflow definition from a JSON file."""

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidWorkflowDefinitionError(f"{path}: invalid JSON: {e}") from e
    try:
        model = WorkflowDefinitionModel.model_validate(raw)
    except ValidationError as e:
        raise InvalidWorkflowDefinitionError(f"{path}: {e}") from e
    return model.to_store()


def library_rules_workflow() -> StepDefinitionStore:
    """Collect library information, optionally search local usage, write rules."""

    steps = [
        Step(
            name="collect_library_info",
            ordinal=0,
            transition=Transition.STOP,
            input_kind=InputKind.TEXT,
            input_key=LIBRARY_INPUT_KEY,
            output_template=(
                "To generate rules for a library, please provide the library information:\n"
                "{actions}"
            ),
            actions=(
                "Library name (first line), e.g. React",
                "Version you are using",
                "Links to official documentation or a summary of its key APIs",
                "Any team conventions that must be respected",
            ),
        ),
        Step(
            name="request_search_permission",
            ordinal=1,
            transition=Transition.STOP,
            input_kind=InputKind.DECISION,
            input_key="search_permission",
            grants_permission=SEARCH_PERMISSION,
            output_template=(
                "Thanks. May I search the local project files for existing usage of "
                "the library to tailor the rules? (yes/no)"
            ),
        ),
        Step(
            name="search_local_files",
            ordinal=2,
            transition=Transition.AUTO,
            requires_permission=SEARCH_PERMISSION,
            output_template=(
                "Searched local files for {library_name}: {local_usage_count} usage(s) found.\n"
                "{local_usages}"
            ),
            actions=(
                "Look for import statements and dependency declarations",
                "Note recurring usage patterns",
            ),
        ),
        Step(
            name="generate_rules",
            ordinal=3,
            transition=Transition.AUTO,
            output_template="Generated rules for {library_name} at {rule_file}.",
            actions=(
                "Prefer the APIs recommended by the official documentation",
                "Follow the version-specific conventions listed above",
                "Keep usage consistent with the existing code in this project",
                "Avoid deprecated APIs",
            ),
        ),
    ]
    return StepDefinitionStore(
        LIBRARY_RULES_WORKFLOW,
        steps,
        description="Generate a library-<name>-rules.md rule file from library information",
    )


def input_validators(store: StepDefinitionStore) -> dict[str, InputValidator]:
    """Validators for free-text answers, keyed by step name."""

    if store.name != LIBRARY_RULES_WORKFLOW:
        return {}
    return {"collect_library_info": validate_library_info}


class WorkflowCatalog:
    """Built-in workflows plus any JSON definitions found on disk."""

    def __init__(self, definitions_dir: Path | None = None) -> None:
        self._stores: dict[str, StepDefinitionStore] = {}
        self.register(library_rules_workflow())
        if definitions_dir is not None:
            self.load_dir(definitions_dir)

    def register(self, store: StepDefinitionStore) -> None:
        if store.name in self._stores:
            logger.warning("Workflow definition replaced", extra={"workflow": store.name})
        self._stores[store.name] = store

    def load_dir(self, definitions_dir: Path) -> None:
        if not definitions_dir.is_dir():
            logger.warning(
                "Workflow definitions directory not found", extra={"path": str(definitions_dir)}
            )
            return
        for path in sorted(definitions_dir.glob("*.json")):
            self.register(load_workflow_definition(path))
            logger.info("Workflow definition loaded", extra={"path": str(path)})

    def get(self, name: str) -> StepDefinitionStore:
        try:
            return self._stores[name]
        except KeyError:
            raise UnknownWorkflowError(name) from None

    def names(self) -> list[str]:
        return sorted(self._stores)
