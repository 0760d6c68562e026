"""Unit tests for the step definition store."""

from __future__ import annotations

import pytest

from library_rules_workflow.assistant.workflow.errors import (
    InvalidWorkflowDefinitionError,
    StepOutOfRangeError,
)
from library_rules_workflow.assistant.workflow.steps import (
    InputKind,
    Step,
    StepDefinitionStore,
    Transition,
)


def _step(name: str, ordinal: int, **kwargs: object) -> Step:
    return Step(
        name=name,
        ordinal=ordinal,
        transition=kwargs.pop("transition", Transition.AUTO),  # type: ignore[arg-type]
        output_template=f"{name} output",
        **kwargs,  # type: ignore[arg-type]
    )


def test_step_at_returns_identical_definition(library_store: StepDefinitionStore) -> None:
    first = library_store.step_at(1)
    assert library_store.step_at(1) is first
    assert library_store.step_at(1) == first


def test_step_at_out_of_range_fails(library_store: StepDefinitionStore) -> None:
    with pytest.raises(StepOutOfRangeError) as exc_info:
        library_store.step_at(len(library_store))
    assert exc_info.value.length == len(library_store)

    with pytest.raises(IndexError):
        library_store.step_at(-1)


def test_steps_are_immutable(library_store: StepDefinitionStore) -> None:
    step = library_store.step_at(0)
    with pytest.raises(AttributeError):
        step.name = "other"  # type: ignore[misc]


def test_store_rejects_empty_workflow() -> None:
    with pytest.raises(InvalidWorkflowDefinitionError):
        StepDefinitionStore("empty", [])


def test_store_rejects_out_of_order_ordinals() -> None:
    with pytest.raises(InvalidWorkflowDefinitionError, match="ordinal"):
        StepDefinitionStore("bad", [_step("a", 0), _step("b", 2)])


def test_store_rejects_duplicate_names() -> None:
    with pytest.raises(InvalidWorkflowDefinitionError, match="duplicate"):
        StepDefinitionStore("bad", [_step("a", 0), _step("a", 1)])


def test_decision_step_requires_permission_flag() -> None:
    with pytest.raises(InvalidWorkflowDefinitionError, match="grants_permission"):
        StepDefinitionStore(
            "bad",
            [_step("ask", 0, transition=Transition.STOP, input_kind=InputKind.DECISION)],
        )


def test_index_of_and_answer_key(library_store: StepDefinitionStore) -> None:
    assert library_store.index_of("generate_rules") == 3
    assert library_store.step_at(0).answer_key == "library_info"
    assert library_store.step_at(3).answer_key == "generate_rules"
    assert library_store.step_at(2).is_gated
    assert not library_store.step_at(3).is_gated
