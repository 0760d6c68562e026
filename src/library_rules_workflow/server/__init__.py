"""FastAPI server adapter for library-rules-workflow.

Design intent:
- Keep workflow logic in `library_rules_workflow.assistant.*`
- Keep server-specific concerns (routing, CORS, request models) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from library_rules_workflow.server.app import create_app
