from __future__ import annotations

import logging
import os
import re
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from .run import WorkflowRun
from .steps import Step

logger = logging.getLogger(__name__)

LIBRARY_INPUT_KEY = "library_info"
RULE_FILE_ARTIFACT = "rule_file"
USAGES_ARTIFACT = "local_usages"
USAGE_COUNT_ARTIFACT = "local_usage_count"

DEFAULT_SEARCH_SUFFIXES: tuple[str, ...] = (
    ".py",
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    ".java",
    ".kt",
    ".go",
    ".rb",
    ".json",
    ".toml",
    ".xml",
    ".gradle",
)

_SKIPPED_DIRS = {"node_modules", "venv", "__pycache__", "build", "dist", "target"}
_NAME_LABEL_RE = re.compile(r"^\s*(?:library name|library|name)\s*[:=]\s*", re.IGNORECASE)
_SLUG_RE = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True, slots=True)
class ActionResult:
    ok: bool
    message: str
    details: dict[str, str] | None = None


class Action(Protocol):
    """A deterministic step handler bound to a step by name."""

    def execute(self, run: WorkflowRun, step: Step) -> ActionResult: ...


def library_name_from(info: str) -> str:
    """Extract the library name from free-form library information.

    The first non-blank line is the name, with an optional `name:` or
    `library:` label removed.
    """

    for line in info.splitlines():
        if line.strip():
            return _NAME_LABEL_RE.sub("", line).strip().strip("`'\"")
    return ""


def rule_filename(library_name: str) -> str:
    slug = _SLUG_RE.sub("-", library_name.strip().lower()).strip("-")
    if not slug:
        raise ValueError(f"Library name resolves to an empty filename: {library_name!r}")
    return f"library-{slug}-rules.md"


def validate_library_info(info: str) -> str | None:
    """Return a problem description, or None if a rule file can be named from `info`."""

    name = library_name_from(info)
    if not name:
        return "The first line must name the library."
    try:
        rule_filename(name)
    except ValueError:
        return f"{name!r} cannot be used as a library name; use letters or digits."
    return None


@dataclass(frozen=True, slots=True)
class ScanLocalUsages(Action):
    """Find lines mentioning the library in local files.

    Plain case-insensitive substring matching; no source parsing.
    """

    root: Path
    suffixes: tuple[str, ...] = DEFAULT_SEARCH_SUFFIXES
    max_hits: int = 20
    exclude: tuple[Path, ...] = field(default=())

    def execute(self, run: WorkflowRun, step: Step) -> ActionResult:
        name = library_name_from(run.inputs.get(LIBRARY_INPUT_KEY, ""))
        if not name:
            return ActionResult(ok=False, message="No library name available to search for")

        needle = name.lower()
        hits: list[str] = []
        for path in self._candidates():
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue
            for lineno, line in enumerate(text.splitlines(), start=1):
                if needle in line.lower():
                    rel = path.relative_to(self.root).as_posix()
                    hits.append(f"{rel}:{lineno}: {line.strip()}")
                    if len(hits) >= self.max_hits:
                        break
            if len(hits) >= self.max_hits:
                break

        logger.info(
            "Local usage scan finished",
            extra={"run_id": run.run_id, "library": name, "hits": len(hits)},
        )
        summary = "\n".join(f"- {h}" for h in hits) if hits else "- (no local usages found)"
        return ActionResult(
            ok=True,
            message=f"Found {len(hits)} local usage(s) of {name}",
            details={
                USAGES_ARTIFACT: summary,
                USAGE_COUNT_ARTIFACT: str(len(hits)),
                "library_name": name,
            },
        )

    def _candidates(self) -> Iterable[Path]:
        if not self.root.is_dir():
            return []
        excluded = {p.resolve() for p in self.exclude}
        found: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            current = Path(dirpath)
            dirnames[:] = sorted(
                d
                for d in dirnames
                if not d.startswith(".")
                and d not in _SKIPPED_DIRS
                and (current / d).resolve() not in excluded
            )
            for filename in sorted(filenames):
                if filename.endswith(self.suffixes):
                    found.append(current / filename)
        return found


@dataclass(frozen=True, slots=True)
class WriteRuleFile(Action):
    """Write the generated `library-<name>-rules.md` rule file.

    The write is atomic: the file either holds the complete new document or
    is left untouched.
    """

    rules_dir: Path

    def execute(self, run: WorkflowRun, step: Step) -> ActionResult:
        info = run.inputs.get(LIBRARY_INPUT_KEY, "").strip()
        name = library_name_from(info)
        if not name:
            return ActionResult(ok=False, message="Library information is missing")

        try:
            dest = self.rules_dir / rule_filename(name)
        except ValueError as e:
            return ActionResult(ok=False, message=str(e))

        document = render_rule_document(
            library_name=name,
            library_info=info,
            usages=run.artifacts.get(USAGES_ARTIFACT),
            guidelines=step.actions,
        )
        try:
            _atomic_write(dest, document)
        except OSError as e:
            logger.exception("Rule file write failed", extra={"path": str(dest)})
            return ActionResult(ok=False, message=f"Could not write {dest}: {e}")

        logger.info("Rule file written", extra={"run_id": run.run_id, "path": str(dest)})
        return ActionResult(
            ok=True,
            message=f"Wrote {dest}",
            details={RULE_FILE_ARTIFACT: str(dest), "library_name": name},
        )


def render_rule_document(
    *,
    library_name: str,
    library_info: str,
    usages: str | None,
    guidelines: Iterable[str],
) -> str:
    lines = [
        f"# {library_name} Rules",
        "",
        f"Rules for working with {library_name} in this project.",
        "",
        "## Library Information",
        "",
        library_info.strip(),
        "",
        "## Local Usage",
        "",
    ]
    if usages is None:
        lines.append("Local files were not searched; rules are based on the supplied information.")
    else:
        lines.append(usages)
    guideline_list = list(guidelines)
    if guideline_list:
        lines.extend(["", "## Guidelines", ""])
        lines.extend(f"- {g}" for g in guideline_list)
    return "\n".join(lines).rstrip() + "\n"


def _atomic_write(dest: Path, content: str) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.name}.", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.replace(dest)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
