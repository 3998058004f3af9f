"""Unit tests for the outcome evaluator."""

import pytest

from ci_issue_reconciler.configuration.models import NotifierPolicy
from ci_issue_reconciler.notifier.evaluator import decide, decide_without_remote, is_failure
from ci_issue_reconciler.notifier.models import BuildOutcome, IssueLinkage, RemoteIssueState, TransitionDecision

NO_ISSUE = IssueLinkage()
LINKED = IssueLinkage(issue_number=42, version=3)


@pytest.mark.parametrize(
    "outcome, linkage, remote_state, policy, expected",
    [
        pytest.param(BuildOutcome.FAILURE, NO_ISSUE, None, NotifierPolicy(), TransitionDecision.CREATE_ISSUE, id="failure_without_issue_creates"),
        pytest.param(BuildOutcome.SUCCESS, NO_ISSUE, None, NotifierPolicy(), TransitionDecision.NOOP, id="success_without_issue_noop"),
        pytest.param(
            BuildOutcome.FAILURE, LINKED, RemoteIssueState.OPEN, NotifierPolicy(), TransitionDecision.NOOP, id="repeat_failure_without_append_noop"
        ),
        pytest.param(
            BuildOutcome.FAILURE,
            LINKED,
            RemoteIssueState.OPEN,
            NotifierPolicy(append_on_repeat_failure=True),
            TransitionDecision.COMMENT_OPEN,
            id="repeat_failure_with_append_comments",
        ),
        pytest.param(BuildOutcome.SUCCESS, LINKED, RemoteIssueState.OPEN, NotifierPolicy(), TransitionDecision.CLOSE_ISSUE, id="success_closes_open_issue"),
        pytest.param(
            BuildOutcome.FAILURE,
            LINKED,
            RemoteIssueState.CLOSED,
            NotifierPolicy(reopen_existing=True),
            TransitionDecision.REOPEN_AND_COMMENT,
            id="failure_with_closed_issue_reopens",
        ),
        pytest.param(
            BuildOutcome.FAILURE,
            LINKED,
            RemoteIssueState.CLOSED,
            NotifierPolicy(reopen_existing=False),
            TransitionDecision.CREATE_ISSUE,
            id="failure_with_closed_issue_without_reopen_creates",
        ),
        pytest.param(BuildOutcome.SUCCESS, LINKED, RemoteIssueState.CLOSED, NotifierPolicy(), TransitionDecision.NOOP, id="success_with_closed_issue_noop"),
        pytest.param(BuildOutcome.FAILURE, LINKED, None, NotifierPolicy(), TransitionDecision.CREATE_ISSUE, id="failure_with_deleted_issue_creates"),
        pytest.param(BuildOutcome.SUCCESS, LINKED, None, NotifierPolicy(), TransitionDecision.NOOP, id="success_with_deleted_issue_noop"),
        pytest.param(BuildOutcome.UNSTABLE, LINKED, RemoteIssueState.OPEN, NotifierPolicy(), TransitionDecision.NOOP, id="unstable_is_ignored"),
        pytest.param(BuildOutcome.OTHER, NO_ISSUE, None, NotifierPolicy(), TransitionDecision.NOOP, id="other_is_ignored"),
        pytest.param(
            BuildOutcome.UNSTABLE,
            NO_ISSUE,
            None,
            NotifierPolicy(treat_unstable_as_failure=True),
            TransitionDecision.CREATE_ISSUE,
            id="unstable_as_failure_creates",
        ),
        pytest.param(
            BuildOutcome.FAILURE,
            LINKED,
            RemoteIssueState.OPEN,
            NotifierPolicy(append_on_repeat_failure=True, skip_remote_lookup_on_repeat_failure=True),
            TransitionDecision.NOOP,
            id="skip_remote_lookup_wins_over_append",
        ),
    ],
)
def test_decide(
    outcome: BuildOutcome,
    linkage: IssueLinkage,
    remote_state: RemoteIssueState | None,
    policy: NotifierPolicy,
    expected: TransitionDecision,
) -> None:
    """Test the decision taken for every outcome, linkage, and remote state."""
    assert decide(outcome, linkage, remote_state, policy) == expected


def test_decide_ignores_remote_state_without_linkage() -> None:
    """Test that a remote state is irrelevant when no issue is linked."""
    assert decide(BuildOutcome.FAILURE, NO_ISSUE, RemoteIssueState.OPEN, NotifierPolicy()) == TransitionDecision.CREATE_ISSUE


@pytest.mark.parametrize(
    "outcome, linkage, policy, expected",
    [
        pytest.param(BuildOutcome.FAILURE, NO_ISSUE, NotifierPolicy(), TransitionDecision.CREATE_ISSUE, id="first_failure"),
        pytest.param(BuildOutcome.SUCCESS, NO_ISSUE, NotifierPolicy(), TransitionDecision.NOOP, id="success_without_issue"),
        pytest.param(BuildOutcome.OTHER, LINKED, NotifierPolicy(), TransitionDecision.NOOP, id="other_outcome"),
        pytest.param(BuildOutcome.FAILURE, LINKED, NotifierPolicy(), None, id="repeat_failure_needs_remote_state"),
        pytest.param(BuildOutcome.SUCCESS, LINKED, NotifierPolicy(), None, id="success_with_issue_needs_remote_state"),
        pytest.param(
            BuildOutcome.FAILURE,
            LINKED,
            NotifierPolicy(skip_remote_lookup_on_repeat_failure=True),
            TransitionDecision.NOOP,
            id="repeat_failure_with_skip_lookup",
        ),
        pytest.param(
            BuildOutcome.SUCCESS,
            LINKED,
            NotifierPolicy(skip_remote_lookup_on_repeat_failure=True),
            None,
            id="success_always_needs_remote_state",
        ),
    ],
)
def test_decide_without_remote(outcome: BuildOutcome, linkage: IssueLinkage, policy: NotifierPolicy, expected: TransitionDecision | None) -> None:
    """Test which decisions can be taken without looking up the tracked issue."""
    assert decide_without_remote(outcome, linkage, policy) == expected


def test_is_failure_respects_unstable_policy() -> None:
    """Test that unstable builds only count as failures when configured."""
    assert is_failure(BuildOutcome.FAILURE, NotifierPolicy()) is True
    assert is_failure(BuildOutcome.UNSTABLE, NotifierPolicy()) is False
    assert is_failure(BuildOutcome.UNSTABLE, NotifierPolicy(treat_unstable_as_failure=True)) is True
    assert is_failure(BuildOutcome.SUCCESS, NotifierPolicy(treat_unstable_as_failure=True)) is False
