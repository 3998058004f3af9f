"""Unit tests for reading build artifacts."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from ci_issue_reconciler.utils.build_output import load_build_output, load_changes, read_last_lines


def test_read_last_lines(tmp_path: Path) -> None:
    """Test that only the tail of the log is returned."""
    log_path = tmp_path / "build.log"
    log_path.write_text("".join(f"line {i}\n" for i in range(1, 101)), encoding="utf-8")

    assert read_last_lines(log_path, 2) == "line 99\nline 100"


def test_load_build_output_missing_file(tmp_path: Path) -> None:
    """Test that a missing log yields empty output."""
    assert load_build_output(tmp_path / "missing.log", 50) == ""
    assert load_build_output(None, 50) == ""


def test_load_changes_from_list(tmp_path: Path) -> None:
    """Test that a plain list of changes is accepted, including the commit alias."""
    changes_path = tmp_path / "changes.yaml"
    changes_path.write_text(
        "- author: alice\n  commit: abc123\n  message: Fix parser\n- message: Update docs\n",
        encoding="utf-8",
    )

    changes = load_changes(changes_path)

    assert [(c.author, c.revision, c.message) for c in changes] == [
        ("alice", "abc123", "Fix parser"),
        ("unknown", "", "Update docs"),
    ]


def test_load_changes_from_mapping(tmp_path: Path) -> None:
    """Test that a mapping with a changes key is accepted."""
    changes_path = tmp_path / "changes.yaml"
    changes_path.write_text("changes:\n  - author: bob\n    revision: def456\n    message: Bump\n", encoding="utf-8")

    changes = load_changes(changes_path)

    assert len(changes) == 1
    assert changes[0].revision == "def456"


def test_load_changes_empty_file(tmp_path: Path) -> None:
    """Test that an empty changes file means no changes."""
    changes_path = tmp_path / "changes.yaml"
    changes_path.write_text("", encoding="utf-8")

    assert load_changes(changes_path) == []
    assert load_changes(None) == []


def test_load_changes_invalid_content(tmp_path: Path) -> None:
    """Test that malformed changes are rejected."""
    changes_path = tmp_path / "changes.yaml"
    changes_path.write_text("changes: 5\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_changes(changes_path)
