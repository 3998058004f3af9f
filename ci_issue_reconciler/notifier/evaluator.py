"""Decides which transition a build outcome requires for the job's tracking issue.

Everything in this module is pure: the decision only depends on the build
outcome, the persisted linkage, the state of the tracked issue on GitHub, and
the notifier policy. Fetching that state and acting on the decision happen in
the driver and the executor.
"""

from ci_issue_reconciler.configuration.models import NotifierPolicy
from ci_issue_reconciler.notifier.models import BuildOutcome, IssueLinkage, RemoteIssueState, TransitionDecision


def is_failure(outcome: BuildOutcome, policy: NotifierPolicy) -> bool:
    """Whether the outcome extends (or starts) a failure streak."""
    if outcome == BuildOutcome.FAILURE:
        return True
    return outcome == BuildOutcome.UNSTABLE and policy.treat_unstable_as_failure


def is_success(outcome: BuildOutcome) -> bool:
    """Whether the outcome ends a failure streak."""
    return outcome == BuildOutcome.SUCCESS


def decide_without_remote(outcome: BuildOutcome, linkage: IssueLinkage, policy: NotifierPolicy) -> TransitionDecision | None:
    """Decide without asking GitHub about the tracked issue, when that is possible.

    Returns None when the decision depends on whether the tracked issue is
    open or closed, in which case the caller must fetch its state and call
    ``decide``.
    """
    if not is_failure(outcome, policy) and not is_success(outcome):
        return TransitionDecision.NOOP
    if linkage.is_absent:
        return decide(outcome, linkage, None, policy)
    if is_failure(outcome, policy) and policy.skip_remote_lookup_on_repeat_failure:
        return TransitionDecision.NOOP
    return None


def decide(
    outcome: BuildOutcome,
    linkage: IssueLinkage,
    remote_issue_state: RemoteIssueState | None,
    policy: NotifierPolicy,
) -> TransitionDecision:
    """Decide the transition for one build outcome.

    ``remote_issue_state`` is None when no issue is linked, or when the linked
    issue no longer exists on GitHub; both are handled as "no tracked issue".
    A closed tracked issue is reopened when ``policy.reopen_existing`` is set,
    otherwise a new issue supersedes it.
    """
    failing = is_failure(outcome, policy)
    if not failing and not is_success(outcome):
        return TransitionDecision.NOOP

    if linkage.is_absent or remote_issue_state is None:
        return TransitionDecision.CREATE_ISSUE if failing else TransitionDecision.NOOP

    if remote_issue_state == RemoteIssueState.OPEN:
        if not failing:
            return TransitionDecision.CLOSE_ISSUE
        if policy.append_on_repeat_failure and not policy.skip_remote_lookup_on_repeat_failure:
            return TransitionDecision.COMMENT_OPEN
        return TransitionDecision.NOOP

    # The tracked issue was closed outside of a fixed build.
    if not failing:
        return TransitionDecision.NOOP
    if policy.reopen_existing:
        return TransitionDecision.REOPEN_AND_COMMENT
    return TransitionDecision.CREATE_ISSUE
