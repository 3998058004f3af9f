"""Orchestrates the reconciliation of one completed build with its tracking issue."""

import time
from typing import Awaitable, Callable

import structlog

from ci_issue_reconciler.configuration.exceptions import RepositoryNotConfiguredError
from ci_issue_reconciler.configuration.models import NotifierPolicy
from ci_issue_reconciler.github.abc import TrackerClientBase
from ci_issue_reconciler.notifier.evaluator import decide, decide_without_remote, is_failure
from ci_issue_reconciler.notifier.exceptions import (
    ConfigurationError,
    ReconcilerError,
    RenderError,
    StoreConflictError,
    StoreError,
    TrackerError,
    TransitionExecutionError,
)
from ci_issue_reconciler.notifier.executor import execute_transition
from ci_issue_reconciler.notifier.history import TransitionHistory
from ci_issue_reconciler.notifier.models import (
    BuildOutcome,
    IssueLinkage,
    RemoteIssueState,
    RenderedText,
    TransitionAction,
    TransitionDecision,
    TransitionRecord,
)
from ci_issue_reconciler.notifier.results import ReconciliationResult, TransitionResult
from ci_issue_reconciler.notifier.store import LinkageStore
from ci_issue_reconciler.schemas.build import BuildContext
from ci_issue_reconciler.utils.templates import render_text_strict

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

TrackerFactory = Callable[[str], Awaitable[TrackerClientBase]]

DECISIONS_NEEDING_TEXT = {
    TransitionDecision.CREATE_ISSUE,
    TransitionDecision.COMMENT_OPEN,
    TransitionDecision.REOPEN_AND_COMMENT,
}


def load_linkage(job_id: str, store: LinkageStore, history: TransitionHistory | None) -> IssueLinkage:
    """Load the job's linkage, seeding it from the transition history for jobs the store has never seen."""
    if store.exists(job_id) or history is None:
        return store.load(job_id)
    linkage = history.linkage_from_latest(job_id)
    if not linkage.is_absent:
        logger.info("Seeded issue linkage from transition history", job_id=job_id, issue_number=linkage.issue_number)
    return linkage


async def fetch_remote_issue_state(issue_number: int, tracker: TrackerClientBase) -> RemoteIssueState | None:
    """Fetch the state of the tracked issue; a deleted or missing issue yields None."""
    try:
        issue = await tracker.get_issue(issue_number)
    except TrackerError as exc:
        if exc.is_missing_issue:
            logger.warning("Tracked GitHub issue no longer exists, treating job as having no tracked issue", issue_number=issue_number)
            return None
        exc.step = "get_issue"
        raise
    state = getattr(issue.state, "value", issue.state)
    return RemoteIssueState(str(state).lower())


def render_issue_text(policy: NotifierPolicy, build_context: BuildContext, warnings: list[ReconcilerError]) -> RenderedText:
    """Render the issue title and body, falling back to the raw templates when expansion fails."""
    rendered: list[str] = []
    for template in (policy.issue_title_template, policy.issue_body_template):
        try:
            rendered.append(render_text_strict(template, build_context))
        except RenderError as exc:
            logger.warning("Unable to expand template, using it unrendered", job_name=build_context.job_name, error=str(exc))
            warnings.append(exc)
            rendered.append(template)
    title, body = rendered
    return RenderedText(title=title, body=body)


def record_transition(job_id: str, history: TransitionHistory | None, build_context: BuildContext, transition: TransitionResult) -> None:
    """Append the applied transition to the job's history, if it touched an issue."""
    if history is None or transition.action is None or transition.issue_number is None:
        return
    record = TransitionRecord(
        build_number=build_context.build_number,
        action=transition.action,
        issue_number=transition.issue_number,
        issue_url=transition.issue_url,
    )
    try:
        history.append(job_id, record)
    except OSError as exc:
        logger.warning("Unable to record transition history", job_id=job_id, error=str(exc))


def log_unsaved_linkage(job_id: str, decision: TransitionDecision, issue_number: int | None, error: StoreError) -> None:
    """Report a transition that reached GitHub but whose linkage could not be saved, so the record can be fixed by hand."""
    logger.error(
        "GitHub issue was updated but the issue linkage could not be saved, the linkage record must be fixed by hand",
        job_id=job_id,
        decision=decision.value,
        issue_number=issue_number,
        error=str(error),
    )


async def reconcile_build(
    job_id: str,
    outcome: BuildOutcome,
    build_context: BuildContext,
    policy: NotifierPolicy,
    store: LinkageStore,
    get_tracker: TrackerFactory,
    history: TransitionHistory | None = None,
) -> ReconciliationResult:
    """Run one read-decide-execute-write pass for a completed build.

    A linkage that cannot be written is reported in the result; the tracker
    calls already made are not undone.

    Raises:
        StoreConflictError: If another build of the job saved its linkage first.
    """
    linkage = load_linkage(job_id, store, history)
    decision = decide_without_remote(outcome, linkage, policy)
    if decision == TransitionDecision.NOOP:
        logger.info("No GitHub issue transition required", job_id=job_id, outcome=outcome.value, issue_number=linkage.issue_number)
        return ReconciliationResult(job_id, outcome, decision, linkage)

    if not policy.repository_override:
        error = RepositoryNotConfiguredError("No GitHub repository configured for this job")
        logger.warning("No GitHub config available for this job, issue notifier will not run", job_id=job_id, error=str(error))
        return ReconciliationResult(job_id, outcome, TransitionDecision.NOOP, linkage, errors=[error])

    try:
        tracker = await get_tracker(policy.repository_override)
        if decision is None:
            remote_issue_state = await fetch_remote_issue_state(linkage.issue_number, tracker)  # type: ignore[arg-type]
            decision = decide(outcome, linkage, remote_issue_state, policy)
    except ConfigurationError as exc:
        logger.warning("No GitHub config available for this job, issue notifier will not run", job_id=job_id, error=str(exc))
        return ReconciliationResult(job_id, outcome, TransitionDecision.NOOP, linkage, errors=[exc])
    except TrackerError as exc:
        logger.error("Unable to look up tracked GitHub issue", job_id=job_id, issue_number=linkage.issue_number, error=str(exc))
        return ReconciliationResult(job_id, outcome, TransitionDecision.NOOP, linkage, errors=[exc])

    logger.info("Decided GitHub issue transition", job_id=job_id, outcome=outcome.value, decision=decision.value, issue_number=linkage.issue_number)
    if decision == TransitionDecision.NOOP:
        if is_failure(outcome, policy) and not linkage.is_absent:
            logger.info("Build is still failing and GitHub issue already exists, not sending anything", job_id=job_id, issue_number=linkage.issue_number)
        return ReconciliationResult(job_id, outcome, decision, linkage)

    warnings: list[ReconcilerError] = []
    rendered_text = render_issue_text(policy, build_context, warnings) if decision in DECISIONS_NEEDING_TEXT else None

    try:
        transition = await execute_transition(decision, linkage, rendered_text, policy.issue_labels, tracker, fixed_comment=policy.fixed_comment)
    except TransitionExecutionError as exc:
        logger.error(
            "GitHub issue transition failed",
            job_id=job_id,
            decision=decision.value,
            step=exc.tracker_error.step,
            status_code=exc.tracker_error.status_code,
            error=str(exc),
        )
        errors: list[ReconcilerError] = [exc.tracker_error]
        committed = False
        saved = linkage
        if exc.committable_linkage is not None:
            try:
                saved = store.save(job_id, exc.committable_linkage)
            except StoreError as store_exc:
                log_unsaved_linkage(job_id, decision, exc.committable_linkage.issue_number, store_exc)
                errors.append(store_exc)
            else:
                committed = True
                record_transition(job_id, history, build_context, TransitionResult(saved, TransitionAction.REOPEN, saved.issue_number))
        return ReconciliationResult(job_id, outcome, decision, saved, errors=errors, committed=committed, warnings=warnings)

    try:
        saved = store.save(job_id, transition.linkage)
    except StoreError as exc:
        log_unsaved_linkage(job_id, decision, transition.issue_number, exc)
        return ReconciliationResult(job_id, outcome, decision, linkage, errors=[exc], warnings=warnings)
    record_transition(job_id, history, build_context, transition)
    return ReconciliationResult(job_id, outcome, decision, saved, committed=True, warnings=warnings)


async def on_build_complete(
    job_id: str,
    outcome: BuildOutcome,
    build_context: BuildContext,
    policy: NotifierPolicy,
    store: LinkageStore,
    tracker_factory: TrackerFactory,
    history: TransitionHistory | None = None,
) -> ReconciliationResult:
    """Reconcile the job's tracking issue with the outcome of its just-completed build.

    Never raises for reconciliation problems: configuration, tracker, and store
    errors are logged and returned in the result so the build itself is never
    failed by issue tracking. A concurrent linkage write is retried once from a
    fresh load before it is reported.
    """
    trackers: dict[str, TrackerClientBase] = {}

    async def get_tracker(repository: str) -> TrackerClientBase:
        if repository not in trackers:
            trackers[repository] = await tracker_factory(repository)
        return trackers[repository]

    start_time = time.time()
    logger.info("Reconciling build outcome with GitHub issue", job_id=job_id, outcome=outcome.value, build_number=build_context.build_number)
    try:
        result = await reconcile_build(job_id, outcome, build_context, policy, store, get_tracker, history)
    except StoreConflictError as exc:
        logger.warning("Issue linkage changed concurrently, retrying from a fresh load", job_id=job_id, error=str(exc))
        try:
            result = await reconcile_build(job_id, outcome, build_context, policy, store, get_tracker, history)
        except StoreConflictError as retry_exc:
            logger.error("Issue linkage changed concurrently again, giving up", job_id=job_id, error=str(retry_exc))
            result = ReconciliationResult(job_id, outcome, TransitionDecision.NOOP, store.load(job_id), errors=[retry_exc])

    logger.info(
        "Reconciled build outcome with GitHub issue",
        job_id=job_id,
        decision=result.decision.value,
        issue_number=result.linkage.issue_number,
        error_count=len(result.errors),
        duration=round(time.time() - start_time, 2),
    )
    return result
