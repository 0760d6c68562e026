from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

from .run import WorkflowRun
from .steps import Step

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")

# Yes/no vocabulary for decision steps and permission requests.
_AFFIRMATIVE = {"y", "yes", "ok", "okay", "sure", "allow", "true", "granted"}
_NEGATIVE = {"n", "no", "nope", "deny", "false", "skip", "denied"}


def render_template(template: str, context: Mapping[str, object]) -> str:
    """Substitute `{name}` placeholders from `context`.

    Unknown placeholders are left in place so partially-filled templates
    remain readable.
    """

    def _sub(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in context:
            return str(context[key])
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_sub, template)


def numbered(items: Sequence[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def build_context(run: WorkflowRun, step: Step) -> dict[str, object]:
    context: dict[str, object] = {}
    context.update(run.inputs)
    context.update(run.artifacts)
    context.update(
        {
            "step": step.name,
            "ordinal": step.ordinal,
            "step_number": step.ordinal + 1,
            "workflow": run.workflow,
            "actions": numbered(step.actions),
            "permission": step.requires_permission or step.grants_permission or "",
        }
    )
    return context


def parse_decision(text: str | None) -> bool | None:
    """Interpret a yes/no answer. Returns None if the answer is neither."""

    if text is None:
        return None
    normalized = text.strip().lower().rstrip(".!")
    if not normalized:
        return None
    first = normalized.split()[0].rstrip(",.!")
    if normalized in _AFFIRMATIVE or first in _AFFIRMATIVE:
        return True
    if normalized in _NEGATIVE or first in _NEGATIVE:
        return False
    return None
