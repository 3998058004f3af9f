"""Errors raised while reconciling a build outcome with its tracking issue."""

from ci_issue_reconciler.notifier.models import IssueLinkage


class ReconcilerError(Exception):
    """Base class for every error the reconciler reports."""

    pass


class ConfigurationError(ReconcilerError):
    """Raised when the repository or tracker target cannot be resolved."""

    pass


class RenderError(ReconcilerError):
    """Raised when an issue title or body template cannot be expanded."""

    def __init__(self, template: str, message: str) -> None:
        """Initializes the exception with the template that failed to render."""
        super().__init__(f"Unable to expand template: {message}")
        self.template = template


class StoreError(ReconcilerError):
    """Raised when the linkage record cannot be written."""

    def __init__(self, job_id: str, message: str) -> None:
        """Initializes the exception with the job whose record could not be written."""
        super().__init__(f"Unable to save linkage for job '{job_id}': {message}")
        self.job_id = job_id


class StoreConflictError(ReconcilerError):
    """Raised when another writer saved the job's linkage since it was loaded."""

    def __init__(self, job_id: str, expected_version: int, actual_version: int) -> None:
        """Initializes the exception with the versions that disagreed."""
        super().__init__(f"Linkage for job '{job_id}' changed concurrently (expected version {expected_version}, found {actual_version})")
        self.job_id = job_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class TrackerError(ReconcilerError):
    """Raised when a call to the issue tracker fails.

    ``step`` names the tracker operation that failed (for example ``reopen_issue``),
    ``status_code`` is the HTTP status when one was received, and ``category`` is
    a coarse classification such as ``not_found`` or ``rate_limited``.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        category: str = "unknown",
        step: str | None = None,
    ) -> None:
        """Initializes the exception with the HTTP details of the failed call."""
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.category = category
        self.step = step

    @property
    def is_missing_issue(self) -> bool:
        """Whether the error means the issue was deleted or never existed."""
        return self.status_code in (404, 410)

    def __str__(self) -> str:
        """Render the error with its step and status code."""
        parts = [self.message]
        if self.step:
            parts.append(f"step={self.step}")
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        return " | ".join(parts)


class TransitionExecutionError(ReconcilerError):
    """Raised when a transition fails partway through its tracker calls.

    ``committable_linkage`` is set when the steps that did succeed must still be
    persisted (a reopened issue stays reopened even if commenting on it failed).
    """

    def __init__(self, tracker_error: TrackerError, committable_linkage: IssueLinkage | None = None) -> None:
        """Initializes the exception from the underlying tracker error."""
        super().__init__(str(tracker_error))
        self.tracker_error = tracker_error
        self.committable_linkage = committable_linkage
