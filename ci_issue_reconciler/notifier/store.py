"""Durable per-job storage of the issue linkage.

Each job gets one small YAML record under the state directory::

    ---
    issue_number: 42
    version: 7

``issue_number: 0`` means no issue is tracked. Saves happen under a per-job file
lock and are rejected when the record's version moved on since it was loaded,
so two builds of the same job can never silently overwrite each other.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote

import structlog
from filelock import FileLock, Timeout

from ci_issue_reconciler.notifier.exceptions import StoreConflictError, StoreError
from ci_issue_reconciler.notifier.models import IssueLinkage
from ci_issue_reconciler.utils.constants import LINKAGE_FILE_SUFFIX, STORE_LOCK_TIMEOUT
from ci_issue_reconciler.utils.yaml import load_yaml_file, write_yaml_atomically

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def job_file_stem(job_id: str) -> str:
    """Encode a job identifier (which may contain slashes) into a safe file name."""
    return quote(job_id, safe="")


class LinkageStore(ABC):
    """Base ABC for linkage stores."""

    @abstractmethod
    def exists(self, job_id: str) -> bool:
        """Whether a linkage record was ever saved for the job."""
        pass

    @abstractmethod
    def load(self, job_id: str) -> IssueLinkage:
        """Load the job's linkage; never fails and returns an absent linkage by default."""
        pass

    @abstractmethod
    def save(self, job_id: str, linkage: IssueLinkage) -> IssueLinkage:
        """Persist ``linkage`` if nobody saved since it was loaded; return it with its new version.

        Raises:
            StoreConflictError: If the stored version differs from ``linkage.version``.
            StoreError: If the linkage cannot be written.
        """
        pass


class YAMLLinkageStore(LinkageStore):
    """Linkage store keeping one YAML record per job in a directory."""

    def __init__(self, state_dir: Path, lock_timeout: float = STORE_LOCK_TIMEOUT) -> None:
        """Initialize the store rooted at ``state_dir``."""
        self.state_dir = Path(state_dir)
        self.lock_timeout = lock_timeout

    def _record_path(self, job_id: str) -> Path:
        return self.state_dir / f"{job_file_stem(job_id)}{LINKAGE_FILE_SUFFIX}"

    def _lock_path(self, job_id: str) -> Path:
        return self.state_dir / f"{job_file_stem(job_id)}.lock"

    def _read(self, job_id: str) -> IssueLinkage:
        record_path = self._record_path(job_id)
        if not record_path.exists():
            return IssueLinkage()
        try:
            data = load_yaml_file(record_path) or {}
            issue_number = int(data.get("issue_number", 0) or 0)
            version = int(data.get("version", 0) or 0)
        except Exception as exc:
            logger.error("Unreadable linkage record, treating job as having no tracked issue", job_id=job_id, path=str(record_path), error=str(exc))
            return IssueLinkage()
        return IssueLinkage(issue_number=issue_number if issue_number > 0 else None, version=version)

    def exists(self, job_id: str) -> bool:
        """Whether a linkage record was ever saved for the job."""
        return self._record_path(job_id).exists()

    def load(self, job_id: str) -> IssueLinkage:
        """Load the job's linkage; never fails and returns an absent linkage by default."""
        linkage = self._read(job_id)
        logger.debug("Loaded issue linkage", job_id=job_id, issue_number=linkage.issue_number, version=linkage.version)
        return linkage

    def save(self, job_id: str, linkage: IssueLinkage) -> IssueLinkage:
        """Persist ``linkage`` atomically if nobody saved since it was loaded.

        Raises:
            StoreConflictError: If the stored version differs from ``linkage.version``,
                or if the job's lock could not be acquired in time.
            StoreError: If the state directory or the record cannot be written.
        """
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            with FileLock(self._lock_path(job_id), timeout=self.lock_timeout):
                current = self._read(job_id)
                if current.version != linkage.version:
                    logger.warning(
                        "Issue linkage changed concurrently",
                        job_id=job_id,
                        expected_version=linkage.version,
                        actual_version=current.version,
                    )
                    raise StoreConflictError(job_id, linkage.version, current.version)

                saved = IssueLinkage(issue_number=linkage.issue_number, version=linkage.version + 1)
                write_yaml_atomically({"issue_number": saved.issue_number or 0, "version": saved.version}, self._record_path(job_id))
        except Timeout as exc:
            logger.error("Timed out waiting for the issue linkage lock", job_id=job_id, timeout=self.lock_timeout)
            raise StoreConflictError(job_id, linkage.version, -1) from exc
        except OSError as exc:
            logger.error("Unable to write issue linkage", job_id=job_id, path=str(self._record_path(job_id)), error=str(exc))
            raise StoreError(job_id, str(exc)) from exc

        logger.info("Saved issue linkage", job_id=job_id, issue_number=saved.issue_number, version=saved.version)
        return saved
