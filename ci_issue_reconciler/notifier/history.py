"""Append-only log of the transitions applied to each job's tracking issue.

The log is for display and for seeding the linkage of jobs that predate the
linkage store; the store stays the source of truth.
"""

from pathlib import Path

import structlog
from filelock import FileLock
from pydantic import ValidationError

from ci_issue_reconciler.notifier.models import IssueLinkage, TransitionAction, TransitionRecord
from ci_issue_reconciler.notifier.store import job_file_stem
from ci_issue_reconciler.utils.constants import HISTORY_FILE_SUFFIX, STORE_LOCK_TIMEOUT

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class TransitionHistory:
    """JSON-lines transition log, one file per job."""

    def __init__(self, state_dir: Path, lock_timeout: float = STORE_LOCK_TIMEOUT) -> None:
        """Initialize the history rooted at ``state_dir``."""
        self.state_dir = Path(state_dir)
        self.lock_timeout = lock_timeout

    def _history_path(self, job_id: str) -> Path:
        return self.state_dir / f"{job_file_stem(job_id)}{HISTORY_FILE_SUFFIX}"

    def append(self, job_id: str, record: TransitionRecord) -> None:
        """Append one transition to the job's log."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        history_path = self._history_path(job_id)
        with FileLock(history_path.with_name(history_path.name + ".lock"), timeout=self.lock_timeout):
            with open(history_path, "a", encoding="utf-8") as f:
                f.write(record.model_dump_json() + "\n")
        logger.debug("Recorded transition", job_id=job_id, action=record.action.value, issue_number=record.issue_number)

    def records(self, job_id: str) -> list[TransitionRecord]:
        """Return every transition recorded for the job, oldest first. Malformed lines are skipped."""
        history_path = self._history_path(job_id)
        if not history_path.exists():
            return []
        records: list[TransitionRecord] = []
        with open(history_path, encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(TransitionRecord.model_validate_json(line))
                except ValidationError as exc:
                    logger.warning("Skipping malformed transition record", job_id=job_id, line_number=line_number, error=str(exc))
        return records

    def latest(self, job_id: str) -> TransitionRecord | None:
        """Return the most recent transition recorded for the job."""
        records = self.records(job_id)
        return records[-1] if records else None

    def linkage_from_latest(self, job_id: str) -> IssueLinkage:
        """Derive a linkage from the latest recorded transition.

        A job whose last transition closed its issue has no tracked issue; any
        other transition leaves its issue tracked.
        """
        record = self.latest(job_id)
        if record is None or record.action == TransitionAction.CLOSE:
            return IssueLinkage()
        return IssueLinkage(issue_number=record.issue_number)
