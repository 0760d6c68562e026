"""Configuration for the workflow runner.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from library_rules_workflow.assistant.workflow.actions import DEFAULT_SEARCH_SUFFIXES


class WorkflowSettings(BaseSettings):
    """Settings for the workflow runner.

    Environment variables:
    - LOG_LEVEL                  (optional)
    - LOG_FORMAT                 (optional, json | text)
    - AGENT_STATE_PATH           (optional)
    - RULES_DIR                  (optional)
    - WORKFLOW_SEARCH_ROOT       (optional)
    - WORKFLOW_SEARCH_SUFFIXES   (optional, comma-separated)
    - WORKFLOW_SEARCH_MAX_HITS   (optional)
    - WORKFLOW_DEFINITIONS_DIR   (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `WorkflowSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        validation_alias="LOG_FORMAT",
        description="Log output format",
    )

    agent_state_path: Path = Field(
        default=Path("agent_state"),
        validation_alias="AGENT_STATE_PATH",
        description="Directory where workflow runs are persisted",
    )
    rules_dir: Path = Field(
        default=Path("rules"),
        validation_alias="RULES_DIR",
        description="Directory where generated library rule files are written",
    )

    search_root: Path = Field(
        default=Path("."),
        validation_alias="WORKFLOW_SEARCH_ROOT",
        description="Root directory scanned when local file search is permitted",
    )
    search_suffixes: str = Field(
        default=",".join(DEFAULT_SEARCH_SUFFIXES),
        validation_alias="WORKFLOW_SEARCH_SUFFIXES",
        description="Comma-separated file suffixes included in the local usage scan",
    )
    search_max_hits: int = Field(
        default=20,
        validation_alias="WORKFLOW_SEARCH_MAX_HITS",
        ge=1,
        le=500,
    )

    definitions_dir: Path | None = Field(
        default=None,
        validation_alias="WORKFLOW_DEFINITIONS_DIR",
        description="Optional directory of additional JSON workflow definitions",
    )

    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="RULES_WORKFLOW_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins for the API.",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unsupported LOG_LEVEL: {value}")
        return level

    @property
    def runs_state_file(self) -> Path:
        """Path where workflow runs are persisted."""

        return self.agent_state_path / "runs.json"

    def parsed_search_suffixes(self) -> tuple[str, ...]:
        parts = [p.strip() for p in self.search_suffixes.split(",")]
        return tuple(p if p.startswith(".") else f".{p}" for p in parts if p)

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
