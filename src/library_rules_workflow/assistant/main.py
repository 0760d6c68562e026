"""CLI entrypoint for the workflow runner.

Each invocation loads the persisted run, advances it until the next STOP
step (or completion), prints the rendered output and saves the run again.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from library_rules_workflow import __version__
from library_rules_workflow.assistant.config import WorkflowSettings
from library_rules_workflow.assistant.logging import configure_logging
from library_rules_workflow.assistant.service import WorkflowService
from library_rules_workflow.assistant.workflow.definitions import LIBRARY_RULES_WORKFLOW
from library_rules_workflow.assistant.workflow.engine import AdvanceResult
from library_rules_workflow.assistant.workflow.errors import (
    InvalidWorkflowDefinitionError,
    RunNotFoundError,
    UnknownWorkflowError,
)
from library_rules_workflow.assistant.workflow.rendering import numbered
from library_rules_workflow.assistant.workflow.run import WorkflowRun

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rules-workflow",
        description="Run step-gated assistant workflows (library rule file generation)",
    )
    parser.add_argument(
        "--version", action="version", version=f"library-rules-workflow {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    start = subparsers.add_parser("start", help="Start a new workflow run")
    start.add_argument(
        "--workflow",
        default=LIBRARY_RULES_WORKFLOW,
        help=f"Workflow name (default: {LIBRARY_RULES_WORKFLOW})",
    )
    start.add_argument(
        "--input",
        dest="user_input",
        default=None,
        help="Optional answer for the first step",
    )

    advance = subparsers.add_parser(
        "advance", help="Answer the current step of a suspended run and continue"
    )
    advance.add_argument("--run-id", required=True, help="Run identifier printed by 'start'")
    advance.add_argument(
        "--input",
        dest="user_input",
        default=None,
        help="Answer for the current step (omit to re-display the request)",
    )

    grant = subparsers.add_parser("grant", help="Grant a permission flag to a run")
    grant.add_argument("--run-id", required=True, help="Run identifier")
    grant.add_argument("--permission", required=True, help="Permission flag, e.g. search_local_files")

    status = subparsers.add_parser("status", help="Show the persisted state of a run")
    status.add_argument("--run-id", required=True, help="Run identifier")

    steps = subparsers.add_parser("steps", help="List the steps of a workflow")
    steps.add_argument("--workflow", default=LIBRARY_RULES_WORKFLOW, help="Workflow name")

    subparsers.add_parser("workflows", help="List available workflows")
    subparsers.add_parser("rules", help="List generated library rule files")

    return parser


def _print_result(run: WorkflowRun, result: AdvanceResult) -> None:
    if result.output:
        print(result.output)
        print()
    if result.completed:
        print(f"[run {run.run_id}] completed")
    else:
        print(f"[run {run.run_id}] waiting for input at step {run.current_step_index}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = WorkflowSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level, settings.log_format)

    try:
        service = WorkflowService.from_settings(settings)

        if args.command == "start":
            run, result = service.start(args.workflow, args.user_input)
            _print_result(run, result)
            return 0

        if args.command == "advance":
            run, result = service.advance(args.run_id, args.user_input)
            _print_result(run, result)
            return 0

        if args.command == "grant":
            run = service.grant(args.run_id, args.permission)
            print(f"Granted {args.permission} to run {run.run_id}")
            return 0

        if args.command == "status":
            run = service.get(args.run_id)
            payload = run.model_dump(mode="json")
            print(json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True))
            return 0

        if args.command == "steps":
            definition = service.catalog.get(args.workflow)
            for step in definition:
                gate = f" [requires {step.requires_permission}]" if step.requires_permission else ""
                print(f"{step.ordinal}. {step.name} ({step.transition.value}){gate}")
                if step.actions:
                    print("   " + numbered(step.actions).replace("\n", "\n   "))
            return 0

        if args.command == "workflows":
            for name in service.catalog.names():
                description = service.catalog.get(name).description
                print(f"{name}: {description}" if description else name)
            return 0

        if args.command == "rules":
            files = service.list_rule_files(settings.rules_dir)
            if not files:
                print(f"No rule files in {settings.rules_dir}")
            for path in files:
                print(path)
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except (RunNotFoundError, UnknownWorkflowError) as e:
        logger.warning(str(e))
        print(str(e), file=sys.stderr)
        return 3

    except InvalidWorkflowDefinitionError as e:
        logger.error("Invalid workflow definition", extra={"error": str(e)})
        print(str(e), file=sys.stderr)
        return 2

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
