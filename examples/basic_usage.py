#!/usr/bin/env python3
"""Programmatic workflow run example.

This demonstrates using the workflow components directly:

* load settings from `.env`
* start a library rules run and answer each STOP step
* write `rules/library-<name>-rules.md`

Answers are passed as arguments instead of being read interactively.
"""

from __future__ import annotations

import argparse
from typing import Sequence

from library_rules_workflow.assistant.config import WorkflowSettings
from library_rules_workflow.assistant.logging import configure_logging
from library_rules_workflow.assistant.service import WorkflowService


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a library rule file (example).")
    parser.add_argument("--library", required=True, help='Library information, e.g. "React 18"')
    parser.add_argument(
        "--allow-search",
        action="store_true",
        help="Allow the workflow to search local files for existing usage",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = WorkflowSettings()
    configure_logging(settings.log_level, "text")

    service = WorkflowService.from_settings(settings)

    run, result = service.start()
    print(result.output)

    for answer in (args.library, "yes" if args.allow_search else "no"):
        print(f"> {answer}")
        run, result = service.advance(run.run_id, answer)
        print(result.output)

    if not result.completed:
        print(f"Run {run.run_id} is still waiting for input")
        return 1

    print(f"Rule file: {run.artifacts.get('rule_file')}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
