"""Base ABC for issue tracker clients."""

from abc import ABC, abstractmethod
from typing import Any


class TrackerClientBase(ABC):
    """Commands the transition executor issues against the tracker.

    Every side effect of a transition goes through one of these methods, so a
    fake implementation is enough to observe what a transition did.
    """

    @abstractmethod
    async def get_issue(self, issue_number: int) -> Any:
        """Get an issue; the returned object exposes ``number``, ``state`` and ``html_url``."""
        pass

    @abstractmethod
    async def create_issue(self, title: str, body: str | None = None, labels: list[str] | None = None, **kwargs: Any) -> Any:
        """Create an issue; the returned object exposes ``number`` and ``html_url``."""
        pass

    @abstractmethod
    async def add_comment(self, issue_number: int, body: str) -> Any:
        """Add a comment to an issue."""
        pass

    @abstractmethod
    async def reopen_issue(self, issue_number: int) -> Any:
        """Reopen a closed issue."""
        pass

    @abstractmethod
    async def close_issue(self, issue_number: int, **kwargs: Any) -> Any:
        """Close an issue."""
        pass

    @abstractmethod
    async def set_labels_on_issue(self, issue_number: int, labels: list[str]) -> None:
        """Replace the labels of an issue."""
        pass
