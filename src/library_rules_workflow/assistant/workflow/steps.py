from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum

from .errors import InvalidWorkflowDefinitionError, StepOutOfRangeError

# Returns a description of what is wrong with an answer, or None to accept it.
InputValidator = Callable[[str], str | None]


class Transition(str, Enum):
    """What happens after a step has rendered its output."""

    STOP = "stop"
    AUTO = "auto"


class InputKind(str, Enum):
    """The kind of answer a STOP step waits for."""

    TEXT = "text"
    DECISION = "decision"


@dataclass(frozen=True, slots=True)
class Step:
    """A single, immutable unit of a workflow.

    `actions` are human-readable instructions. They are rendered into output
    but never executed; executable behaviour is bound to a step by name via
    step handlers.
    """

    name: str
    ordinal: int
    transition: Transition
    output_template: str
    actions: tuple[str, ...] = ()
    input_kind: InputKind = InputKind.TEXT
    input_key: str | None = None
    grants_permission: str | None = None
    requires_permission: str | None = None
    permission_template: str | None = None

    @property
    def answer_key(self) -> str:
        return self.input_key or self.name

    @property
    def is_gated(self) -> bool:
        return self.requires_permission is not None


class StepDefinitionStore:
    """Ordered, read-only sequence of steps for one workflow."""

    def __init__(self, name: str, steps: Sequence[Step], *, description: str = "") -> None:
        self.name = name
        self.description = description
        self._steps: tuple[Step, ...] = tuple(steps)
        _validate(name, self._steps)

    def step_at(self, index: int) -> Step:
        if index < 0 or index >= len(self._steps):
            raise StepOutOfRangeError(index, len(self._steps))
        return self._steps[index]

    def index_of(self, name: str) -> int:
        for step in self._steps:
            if step.name == name:
                return step.ordinal
        raise KeyError(name)

    @property
    def steps(self) -> tuple[Step, ...]:
        return self._steps

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self._steps)


def _validate(name: str, steps: tuple[Step, ...]) -> None:
    if not steps:
        raise InvalidWorkflowDefinitionError(f"Workflow '{name}' defines no steps")

    seen: set[str] = set()
    for position, step in enumerate(steps):
        if step.ordinal != position:
            raise InvalidWorkflowDefinitionError(
                f"Workflow '{name}': step '{step.name}' has ordinal {step.ordinal}, "
                f"expected {position}"
            )
        if not step.name.strip():
            raise InvalidWorkflowDefinitionError(
                f"Workflow '{name}': step {position} has an empty name"
            )
        if step.name in seen:
            raise InvalidWorkflowDefinitionError(
                f"Workflow '{name}': duplicate step name '{step.name}'"
            )
        seen.add(step.name)

        if (
            step.transition == Transition.STOP
            and step.input_kind == InputKind.DECISION
            and not step.grants_permission
        ):
            raise InvalidWorkflowDefinitionError(
                f"Workflow '{name}': decision step '{step.name}' must declare grants_permission"
            )
