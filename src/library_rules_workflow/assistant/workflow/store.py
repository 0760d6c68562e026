from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from pydantic import ValidationError

from .errors import RunNotFoundError
from .run import WorkflowRun

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RunStore:
    """Persist workflow runs explicitly so a suspended run can be resumed.

    Runs live in a single JSON list keyed by `run_id`. Entries that no longer
    validate are skipped on load and dropped on the next save.
    """

    path: Path

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def _load_unlocked(self) -> list[WorkflowRun]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return []
        if not isinstance(raw, list):
            return []
        runs: list[WorkflowRun] = []
        for position, item in enumerate(raw):
            if not isinstance(item, dict):
                continue
            try:
                runs.append(WorkflowRun.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed workflow run",
                    extra={
                        "path": str(self.path),
                        "position": position,
                        "run_id": item.get("run_id"),
                        "errors": e.error_count(),
                    },
                )
        return runs

    def _save_unlocked(self, runs: list[WorkflowRun]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.model_dump(mode="json") for r in runs]
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        tmp.replace(self.path)

    def list(self) -> list[WorkflowRun]:
        with self._lock:
            return self._load_unlocked()

    def get(self, run_id: str) -> WorkflowRun:
        with self._lock:
            for run in self._load_unlocked():
                if run.run_id == run_id:
                    return run
        raise RunNotFoundError(run_id)

    def save(self, run: WorkflowRun) -> WorkflowRun:
        with self._lock:
            runs = self._load_unlocked()
            for idx, existing in enumerate(runs):
                if existing.run_id == run.run_id:
                    runs[idx] = run
                    break
            else:
                runs.append(run)
            self._save_unlocked(runs)
            return run

    def update(self, run_id: str, fn: Callable[[WorkflowRun], T]) -> tuple[WorkflowRun, T]:
        """Load, mutate and save one run while holding the store lock.

        The run is saved even when `fn` returns normally without changing it;
        if `fn` raises, nothing is written.
        """

        with self._lock:
            runs = self._load_unlocked()
            for idx, run in enumerate(runs):
                if run.run_id == run_id:
                    result = fn(run)
                    runs[idx] = run
                    self._save_unlocked(runs)
                    return run, result
        raise RunNotFoundError(run_id)
