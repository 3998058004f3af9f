"""Contains results of reconciling build outcomes with tracking issues."""

from ci_issue_reconciler.notifier.exceptions import ReconcilerError
from ci_issue_reconciler.notifier.models import BuildOutcome, IssueLinkage, TransitionAction, TransitionDecision


class TransitionResult:
    """Contains the outcome of executing one transition against the tracker."""

    def __init__(
        self,
        linkage: IssueLinkage,
        action: TransitionAction | None = None,
        issue_number: int | None = None,
        issue_url: str | None = None,
    ) -> None:
        """Initialize the result with the linkage to persist and what happened to the issue."""
        self.linkage = linkage
        self.action = action
        self.issue_number = issue_number
        self.issue_url = issue_url


class ReconciliationResult:
    """Contains the result of reconciling one completed build."""

    def __init__(
        self,
        job_id: str,
        outcome: BuildOutcome,
        decision: TransitionDecision,
        linkage: IssueLinkage,
        errors: list[ReconcilerError] | None = None,
        committed: bool = False,
        warnings: list[ReconcilerError] | None = None,
    ) -> None:
        """Initialize the result with the decision taken and any errors encountered."""
        self.job_id = job_id
        self.outcome = outcome
        self.decision = decision
        self.linkage = linkage
        self.errors = errors or []
        self.committed = committed
        self.warnings = warnings or []

    @property
    def ok(self) -> bool:
        """Whether the build was reconciled without errors."""
        return not self.errors
