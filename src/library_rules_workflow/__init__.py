"""Library Rules Workflow.

A small interpreter for linear, user-gated assistant workflows:
- steps that either stop for input or chain automatically
- explicit permission flags for optional capabilities
- persisted runs that can be resumed from the CLI or the REST API
"""

__version__ = "0.1.0"

from library_rules_workflow.assistant.config import WorkflowSettings

__all__ = ["__version__", "WorkflowSettings"]
