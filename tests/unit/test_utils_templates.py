"""Unit tests for issue text templating."""

import pytest

from ci_issue_reconciler.notifier.exceptions import RenderError
from ci_issue_reconciler.schemas.build import BuildContext, ChangeEntry
from ci_issue_reconciler.utils.constants import DEFAULT_ISSUE_BODY_TEMPLATE, DEFAULT_ISSUE_TITLE_TEMPLATE
from ci_issue_reconciler.utils.templates import last_lines, render_text_strict


@pytest.mark.parametrize(
    "text, count, expected",
    [
        pytest.param("a\nb\nc", 2, "b\nc", id="tail"),
        pytest.param("a\nb", 5, "a\nb", id="fewer_lines_than_count"),
        pytest.param("a\nb", 0, "", id="zero"),
        pytest.param("", 3, "", id="empty"),
        pytest.param(None, 3, "", id="none"),
    ],
)
def test_last_lines(text: str | None, count: int, expected: str) -> None:
    """Test that the filter keeps only the trailing lines."""
    assert last_lines(text, count) == expected


def test_default_templates_render() -> None:
    """Test the default title and body for a failing build."""
    context = BuildContext(
        job_name="team/api",
        build_number=12,
        build_display_name="#12",
        build_url="https://ci.example.com/12",
        build_output="\n".join(f"line {i}" for i in range(1, 11)),
        changes=[ChangeEntry(author="bob", revision="def456", message="Bump dependency")],
        max_log_lines=3,
    )

    title = render_text_strict(DEFAULT_ISSUE_TITLE_TEMPLATE, context)
    body = render_text_strict(DEFAULT_ISSUE_BODY_TEMPLATE, context)

    assert title == "team/api #12 failed"
    assert body.startswith("Build 'team/api' is failing!")
    assert "Last 3 lines of build output:" in body
    assert "line 8\nline 9\nline 10" in body
    assert "line 7" not in body
    assert "- [bob] def456 - Bump dependency" in body
    assert body.endswith("[View full output](https://ci.example.com/12)")


def test_default_body_without_changes() -> None:
    """Test that the default body says so when there are no changes."""
    body = render_text_strict(DEFAULT_ISSUE_BODY_TEMPLATE, BuildContext(job_name="job"))

    assert "No changes" in body


def test_render_text_strict_raises_on_undefined_variable() -> None:
    """Test that unknown variables are reported instead of rendered empty."""
    with pytest.raises(RenderError) as exc_info:
        render_text_strict("{{ nope }}", BuildContext(job_name="job"))

    assert exc_info.value.template == "{{ nope }}"


def test_render_text_strict_raises_on_syntax_error() -> None:
    """Test that malformed templates are reported."""
    with pytest.raises(RenderError):
        render_text_strict("{% for %}", BuildContext(job_name="job"))
