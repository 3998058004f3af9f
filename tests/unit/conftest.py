"""Fixtures for unit tests."""

from types import SimpleNamespace
from typing import Any, Callable, Generator

import httpx
import pytest
import structlog
from githubkit import Response
from githubkit.exception import RequestFailed

from ci_issue_reconciler.github.abc import TrackerClientBase
from ci_issue_reconciler.notifier.exceptions import TrackerError


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    yield
    structlog.reset_defaults()


class FakeTracker(TrackerClientBase):
    """In-memory tracker recording every call made against it."""

    def __init__(self, issues: dict[int, str] | None = None, next_issue_number: int = 42) -> None:
        self.issues: dict[int, str] = dict(issues or {})
        self.labels: dict[int, list[str]] = {}
        self.next_issue_number = next_issue_number
        self.calls: list[tuple[Any, ...]] = []
        self.failures: dict[str, TrackerError] = {}

    def _issue(self, number: int) -> SimpleNamespace:
        return SimpleNamespace(number=number, state=self.issues[number], html_url=f"https://github.com/owner/repo/issues/{number}")

    def _maybe_fail(self, step: str) -> None:
        if step in self.failures:
            raise self.failures[step]

    @property
    def mutating_calls(self) -> list[tuple[Any, ...]]:
        """Every call except issue lookups."""
        return [call for call in self.calls if call[0] != "get_issue"]

    async def get_issue(self, issue_number: int) -> Any:
        self.calls.append(("get_issue", issue_number))
        self._maybe_fail("get_issue")
        if issue_number not in self.issues:
            raise TrackerError("Not Found", status_code=404, category="not_found")
        return self._issue(issue_number)

    async def create_issue(self, title: str, body: str | None = None, labels: list[str] | None = None, **kwargs: Any) -> Any:
        self.calls.append(("create_issue", title, body, labels))
        self._maybe_fail("create_issue")
        number = self.next_issue_number
        self.next_issue_number += 1
        self.issues[number] = "open"
        self.labels[number] = list(labels or [])
        return self._issue(number)

    async def add_comment(self, issue_number: int, body: str) -> Any:
        self.calls.append(("add_comment", issue_number, body))
        self._maybe_fail("add_comment")
        return SimpleNamespace(html_url=f"https://github.com/owner/repo/issues/{issue_number}#issuecomment-1")

    async def reopen_issue(self, issue_number: int) -> Any:
        self.calls.append(("reopen_issue", issue_number))
        self._maybe_fail("reopen_issue")
        self.issues[issue_number] = "open"
        return self._issue(issue_number)

    async def close_issue(self, issue_number: int, **kwargs: Any) -> Any:
        self.calls.append(("close_issue", issue_number))
        self._maybe_fail("close_issue")
        self.issues[issue_number] = "closed"
        return self._issue(issue_number)

    async def set_labels_on_issue(self, issue_number: int, labels: list[str]) -> None:
        self.calls.append(("set_labels_on_issue", issue_number, labels))
        self._maybe_fail("set_labels_on_issue")
        self.labels[issue_number] = list(labels)


@pytest.fixture
def fake_tracker() -> FakeTracker:
    """A fake tracker with no issues."""
    return FakeTracker()


@pytest.fixture
def request_failed() -> Callable[..., RequestFailed]:
    """Factory building the githubkit error raised for a failed GitHub API call."""

    def build(status_code: int, body: dict[str, Any] | None = None, headers: dict[str, str] | None = None) -> RequestFailed:
        raw_response = httpx.Response(
            status_code,
            headers=headers or {},
            json=body or {},
            request=httpx.Request("GET", "https://api.github.com/repos/owner/repo/issues/1"),
        )
        return RequestFailed(Response(raw_response, Any))

    return build
