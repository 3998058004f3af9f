"""Performs the tracker calls a transition decision requires."""

from typing import Any, Awaitable, TypeVar

import structlog

from ci_issue_reconciler.github.abc import TrackerClientBase
from ci_issue_reconciler.notifier.exceptions import TrackerError, TransitionExecutionError
from ci_issue_reconciler.notifier.models import IssueLinkage, RenderedText, TransitionAction, TransitionDecision
from ci_issue_reconciler.notifier.results import TransitionResult
from ci_issue_reconciler.utils.constants import DEFAULT_FIXED_COMMENT

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")


async def run_step(step: str, call: Awaitable[T]) -> T:
    """Await a tracker call, making sure a failure reports which step it was."""
    try:
        return await call
    except TrackerError as exc:
        exc.step = step
        raise
    except Exception as exc:
        raise TrackerError(f"Unexpected tracker failure: {exc}", step=step) from exc


def issue_url_of(issue: Any) -> str | None:
    """Return the HTML URL of an issue object, if it carries one."""
    url = getattr(issue, "html_url", None)
    return str(url) if url else None


def require_rendered_text(decision: TransitionDecision, rendered_text: RenderedText | None) -> RenderedText:
    """Return the rendered text, which every issue-writing transition needs."""
    if rendered_text is None:
        raise ValueError(f"Transition {decision.value} requires a rendered issue title and body")
    return rendered_text


def require_issue_number(decision: TransitionDecision, linkage: IssueLinkage) -> int:
    """Return the linked issue number, which every transition on an existing issue needs."""
    if linkage.issue_number is None:
        raise ValueError(f"Transition {decision.value} requires a linked issue")
    return linkage.issue_number


async def create_issue(linkage: IssueLinkage, rendered_text: RenderedText, labels: set[str], tracker: TrackerClientBase) -> TransitionResult:
    """File a new issue; it supersedes whatever the linkage pointed to before."""
    try:
        issue = await run_step("create_issue", tracker.create_issue(title=rendered_text.title, body=rendered_text.body, labels=sorted(labels)))
    except TrackerError as exc:
        raise TransitionExecutionError(exc) from exc
    logger.info(
        "Build has started failing, filed GitHub issue",
        issue_number=issue.number,
        superseded_issue_number=linkage.issue_number,
    )
    return TransitionResult(linkage.with_issue(issue.number), TransitionAction.OPEN, issue.number, issue_url_of(issue))


async def comment_on_open_issue(issue_number: int, linkage: IssueLinkage, rendered_text: RenderedText, tracker: TrackerClientBase) -> TransitionResult:
    """Append the failure details of another failing build to the open issue."""
    try:
        comment = await run_step("add_comment", tracker.add_comment(issue_number, rendered_text.body))
    except TrackerError as exc:
        raise TransitionExecutionError(exc) from exc
    logger.info("Build is still failing, commented on existing GitHub issue", issue_number=issue_number)
    return TransitionResult(linkage, TransitionAction.CONTINUE, issue_number, issue_url_of(comment))


async def reopen_and_comment(
    issue_number: int,
    linkage: IssueLinkage,
    rendered_text: RenderedText,
    labels: set[str],
    tracker: TrackerClientBase,
) -> TransitionResult:
    """Reopen the closed issue, comment on it, then reset its labels.

    A failure after the reopen leaves the issue open; the linkage still points at
    it, so the error carries it as committable.
    """
    try:
        issue = await run_step("reopen_issue", tracker.reopen_issue(issue_number))
    except TrackerError as exc:
        raise TransitionExecutionError(exc) from exc
    logger.info("Build has started failing again, reopened GitHub issue", issue_number=issue_number)

    try:
        await run_step("add_comment", tracker.add_comment(issue_number, rendered_text.body))
        if labels:
            await run_step("set_labels_on_issue", tracker.set_labels_on_issue(issue_number, sorted(labels)))
    except TrackerError as exc:
        logger.warning("Reopened GitHub issue but could not finish updating it", issue_number=issue_number, step=exc.step, error=str(exc))
        raise TransitionExecutionError(exc, committable_linkage=linkage) from exc
    return TransitionResult(linkage, TransitionAction.REOPEN, issue_number, issue_url_of(issue))


async def close_issue(issue_number: int, linkage: IssueLinkage, fixed_comment: str, tracker: TrackerClientBase) -> TransitionResult:
    """Comment that the build was fixed and close the issue."""
    try:
        await run_step("add_comment", tracker.add_comment(issue_number, fixed_comment))
        issue = await run_step("close_issue", tracker.close_issue(issue_number))
    except TrackerError as exc:
        raise TransitionExecutionError(exc) from exc
    logger.info("Build was fixed, closed GitHub issue", issue_number=issue_number)
    return TransitionResult(linkage.with_issue(None), TransitionAction.CLOSE, issue_number, issue_url_of(issue))


async def execute_transition(
    decision: TransitionDecision,
    linkage: IssueLinkage,
    rendered_text: RenderedText | None,
    labels: set[str],
    tracker: TrackerClientBase,
    fixed_comment: str = DEFAULT_FIXED_COMMENT,
) -> TransitionResult:
    """Carry out ``decision`` against the tracker and return the linkage to persist.

    Raises:
        TransitionExecutionError: If a tracker call fails. Its ``committable_linkage``
            is set only when the steps that succeeded must still be persisted.
    """
    if decision == TransitionDecision.NOOP:
        return TransitionResult(linkage)
    if decision == TransitionDecision.CREATE_ISSUE:
        return await create_issue(linkage, require_rendered_text(decision, rendered_text), labels, tracker)

    issue_number = require_issue_number(decision, linkage)
    if decision == TransitionDecision.COMMENT_OPEN:
        return await comment_on_open_issue(issue_number, linkage, require_rendered_text(decision, rendered_text), tracker)
    if decision == TransitionDecision.REOPEN_AND_COMMENT:
        return await reopen_and_comment(issue_number, linkage, require_rendered_text(decision, rendered_text), labels, tracker)
    if decision == TransitionDecision.CLOSE_ISSUE:
        return await close_issue(issue_number, linkage, fixed_comment, tracker)
    raise ValueError(f"Unknown transition decision: {decision}")
