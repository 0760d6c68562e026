"""Console script entrypoint.

The CLI is implemented in `library_rules_workflow.assistant.main`.
"""

from __future__ import annotations

from library_rules_workflow.assistant.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
