"""The step interpreter.

`WorkflowEngine.advance` walks a run forward from its current step until it
either reaches a step that needs external input (STOP) or runs out of steps.
AUTO steps chain within a single call.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from .actions import Action, ActionResult
from .definitions import input_validators
from .errors import StepOutOfRangeError
from .rendering import build_context, parse_decision, render_template
from .run import WorkflowRun, decline, grant, is_declined, is_granted
from .steps import InputKind, InputValidator, Step, StepDefinitionStore, Transition

logger = logging.getLogger(__name__)

DEFAULT_PERMISSION_TEMPLATE = (
    "Before step {step_number} ({step}) can run I need your permission: {permission}.\n"
    "Reply yes to allow it or no to skip this step."
)
INVALID_TEXT_NOTICE = "I still need this information to continue."
INVALID_DECISION_NOTICE = "Please answer yes or no."


class EngineStatus(str, Enum):
    AWAITING_INPUT = "awaiting_input"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class EngineState:
    status: EngineStatus
    step_index: int | None = None

    @staticmethod
    def completed() -> EngineState:
        return EngineState(status=EngineStatus.COMPLETED)


@dataclass(frozen=True, slots=True)
class AdvanceResult:
    outputs: tuple[str, ...]
    transition: Transition | None
    state: EngineState
    messages: tuple[str, ...] = field(default=())

    @property
    def output(self) -> str:
        return "\n\n".join(self.outputs)

    @property
    def completed(self) -> bool:
        return self.state.status == EngineStatus.COMPLETED


class WorkflowEngine:
    """Interpret one workflow definition over any number of independent runs."""

    def __init__(
        self,
        store: StepDefinitionStore,
        handlers: Mapping[str, Action] | None = None,
        validators: Mapping[str, InputValidator] | None = None,
    ) -> None:
        self._store = store
        self._handlers: dict[str, Action] = dict(handlers or {})
        self._validators: dict[str, InputValidator] = (
            dict(validators) if validators is not None else input_validators(store)
        )

    @property
    def store(self) -> StepDefinitionStore:
        return self._store

    def new_run(self) -> WorkflowRun:
        return WorkflowRun(workflow=self._store.name)

    def state(self, run: WorkflowRun) -> EngineState:
        if run.completed:
            return EngineState.completed()
        if run.awaiting_input:
            return EngineState(EngineStatus.AWAITING_INPUT, run.current_step_index)
        step = self._store.step_at(run.current_step_index)
        if step.transition == Transition.STOP:
            return EngineState(EngineStatus.AWAITING_INPUT, run.current_step_index)
        return EngineState(EngineStatus.RUNNING, run.current_step_index)

    def advance(self, run: WorkflowRun, user_input: str | None = None) -> AdvanceResult:
        if run.workflow != self._store.name:
            raise ValueError(
                f"Run {run.run_id} belongs to workflow '{run.workflow}', "
                f"not '{self._store.name}'"
            )
        if run.completed:
            return AdvanceResult(outputs=(), transition=None, state=EngineState.completed())

        pending_input = _clean(user_input)
        outputs: list[str] = []
        messages: list[str] = []

        while True:
            try:
                step = self._store.step_at(run.current_step_index)
            except StepOutOfRangeError:
                run.completed = True
                run.awaiting_input = False
                run.touch()
                logger.info("Workflow run completed", extra={"run_id": run.run_id})
                return AdvanceResult(
                    outputs=tuple(outputs),
                    transition=None,
                    state=EngineState.completed(),
                    messages=tuple(messages),
                )

            if step.is_gated and not is_granted(run, step.requires_permission or ""):
                flag = step.requires_permission or ""
                if not is_declined(run, flag):
                    decision = parse_decision(pending_input)
                    if decision is None:
                        self._emit(run, outputs, self._permission_request(run, step))
                        return self._suspend(run, step, outputs, messages)
                    pending_input = None
                    if decision:
                        grant(run, flag)
                    else:
                        decline(run, flag)

                if is_declined(run, flag):
                    logger.info(
                        "Skipping step without permission",
                        extra={"run_id": run.run_id, "step": step.name, "permission": flag},
                    )
                    run.move_to(run.current_step_index + 1)
                    continue

            if step.transition == Transition.STOP:
                if pending_input is None:
                    self._emit(run, outputs, self._render(run, step))
                    return self._suspend(run, step, outputs, messages)

                problem = self._accept(run, step, pending_input)
                if problem is not None:
                    self._emit(run, outputs, f"{problem}\n\n{self._render(run, step)}")
                    return self._suspend(run, step, outputs, messages)

                pending_input = None
                result = self._run_handler(run, step)
                if result is not None and not result.ok:
                    messages.append(result.message)
                    self._emit(run, outputs, result.message)
                    return self._suspend(run, step, outputs, messages)
                run.move_to(run.current_step_index + 1)
                continue

            result = self._run_handler(run, step)
            if result is not None:
                messages.append(result.message)
                if not result.ok:
                    self._emit(run, outputs, result.message)
                    return self._suspend(run, step, outputs, messages)
            self._emit(run, outputs, self._render(run, step))
            run.move_to(run.current_step_index + 1)

    def _accept(self, run: WorkflowRun, step: Step, text: str) -> str | None:
        """Store a STOP step's answer. Returns a notice if the answer is unusable."""

        if step.input_kind == InputKind.DECISION:
            decision = parse_decision(text)
            if decision is None:
                return INVALID_DECISION_NOTICE
            flag = step.grants_permission or ""
            if decision:
                grant(run, flag)
            else:
                decline(run, flag)
            run.inputs[step.answer_key] = "yes" if decision else "no"
        else:
            validator = self._validators.get(step.name)
            problem = validator(text) if validator is not None else None
            if problem is not None:
                logger.info(
                    "Step input rejected",
                    extra={"run_id": run.run_id, "step": step.name, "reason": problem},
                )
                return f"{INVALID_TEXT_NOTICE} {problem}"
            run.inputs[step.answer_key] = text
        run.touch()
        logger.debug(
            "Step input accepted",
            extra={"run_id": run.run_id, "step": step.name, "input_kind": step.input_kind.value},
        )
        return None

    def _run_handler(self, run: WorkflowRun, step: Step) -> ActionResult | None:
        handler = self._handlers.get(step.name)
        if handler is None:
            return None
        if step.is_gated and not is_granted(run, step.requires_permission or ""):
            raise PermissionError(f"Step '{step.name}' requires '{step.requires_permission}'")
        result = handler.execute(run, step)
        if result.ok and result.details:
            run.artifacts.update(result.details)
            run.touch()
        return result

    def _render(self, run: WorkflowRun, step: Step) -> str:
        return render_template(step.output_template, build_context(run, step))

    def _permission_request(self, run: WorkflowRun, step: Step) -> str:
        template = step.permission_template or DEFAULT_PERMISSION_TEMPLATE
        return render_template(template, build_context(run, step))

    @staticmethod
    def _emit(run: WorkflowRun, outputs: list[str], text: str) -> None:
        outputs.append(text)
        run.record_output(text)

    @staticmethod
    def _suspend(
        run: WorkflowRun, step: Step, outputs: list[str], messages: list[str]
    ) -> AdvanceResult:
        run.awaiting_input = True
        run.touch()
        return AdvanceResult(
            outputs=tuple(outputs),
            transition=Transition.STOP,
            state=EngineState(EngineStatus.AWAITING_INPUT, step.ordinal),
            messages=tuple(messages),
        )


def _clean(user_input: str | None) -> str | None:
    if user_input is None:
        return None
    stripped = user_input.strip()
    return stripped or None
