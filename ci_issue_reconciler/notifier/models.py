"""Models shared by the outcome evaluator, transition executor, and linkage store."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class BuildOutcome(str, Enum):
    """Result of a completed build, as reported by the job runner."""

    SUCCESS = "success"
    FAILURE = "failure"
    UNSTABLE = "unstable"
    OTHER = "other"


class RemoteIssueState(str, Enum):
    """State of the tracked issue on GitHub."""

    OPEN = "open"
    CLOSED = "closed"


class TransitionDecision(str, Enum):
    """The single action taken in response to one build outcome."""

    CREATE_ISSUE = "create_issue"
    COMMENT_OPEN = "comment_open"
    REOPEN_AND_COMMENT = "reopen_and_comment"
    CLOSE_ISSUE = "close_issue"
    NOOP = "noop"


class TransitionAction(str, Enum):
    """Transition recorded in the per-job history log."""

    OPEN = "open"
    CLOSE = "close"
    REOPEN = "reopen"
    CONTINUE = "continue"


@dataclass(frozen=True)
class IssueLinkage:
    """Persisted association between a job and the issue tracking its failure streak.

    An issue number of ``None`` means that no issue is tracked. ``version`` is
    bumped by the store on every save and is used to detect concurrent writers.
    """

    issue_number: int | None = None
    version: int = 0

    @property
    def is_absent(self) -> bool:
        """Whether no issue is currently tracked for the job."""
        return self.issue_number is None

    def with_issue(self, issue_number: int | None) -> "IssueLinkage":
        """Return a copy of this linkage pointing at another issue (or none)."""
        return IssueLinkage(issue_number=issue_number, version=self.version)


@dataclass(frozen=True)
class RenderedText:
    """Issue title and body after template expansion."""

    title: str
    body: str


class TransitionRecord(BaseModel):
    """One entry of a job's transition history."""

    build_number: int | None = None
    action: TransitionAction
    issue_number: int
    issue_url: str | None = None
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
