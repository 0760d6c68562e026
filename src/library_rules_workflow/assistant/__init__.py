"""Local-first runner for step-gated assistant workflows.

Provides:
- Settings loaded from .env
- Structured logging
- A small CLI surface
- Persisted workflow runs and generated rule files
"""
