"""Helpers for reading the build artifacts handed over by the job runner."""

from collections import deque
from pathlib import Path

import structlog

from ci_issue_reconciler.schemas.build import ChangeEntry, ChangesFileModel
from ci_issue_reconciler.utils.yaml import load_yaml_file

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def read_last_lines(log_path: Path, max_lines: int) -> str:
    """Return the last ``max_lines`` lines of a build log without loading all of it."""
    if max_lines <= 0:
        return ""
    with open(log_path, encoding="utf-8", errors="replace") as f:
        tail = deque(f, maxlen=max_lines)
    return "".join(tail).rstrip("\n")


def load_build_output(log_path: Path | None, max_lines: int) -> str:
    """Load the tail of the build log, or an empty string when it is unavailable."""
    if log_path is None:
        return ""
    try:
        return read_last_lines(log_path, max_lines)
    except OSError as exc:
        logger.warning("Unable to read build output", log_path=str(log_path), error=str(exc))
        return ""


def load_changes(changes_path: Path | None) -> list[ChangeEntry]:
    """Load the changes since the last successful build from a YAML file.

    The file either holds a list of changes or a mapping with a ``changes`` key.
    """
    if changes_path is None:
        return []
    content = load_yaml_file(changes_path)
    if content is None:
        return []
    if isinstance(content, list):
        content = {"changes": content}
    return ChangesFileModel.model_validate(content).changes
