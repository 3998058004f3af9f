"""Tracker client adapter for the githubkit library."""

from functools import wraps
from pathlib import Path
from typing import Any, Awaitable, Callable, Self, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import RequestError, RequestFailed
from githubkit.versions.latest.models import Issue, IssueComment

from ci_issue_reconciler.configuration.models import GitHubAuthenticationType
from ci_issue_reconciler.notifier.exceptions import TrackerError
from ci_issue_reconciler.utils.github import split_repository_in_configuration
from ci_issue_reconciler.utils.retry import retry_on_rate_limit

from .abc import TrackerClientBase
from .client import GitHubClient, get_github_client

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

STATUS_CATEGORIES = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    410: "not_found",
    422: "validation",
    429: "rate_limited",
}


def categorize_status(status_code: int) -> str:
    """Map an HTTP status code onto a coarse tracker error category."""
    if status_code in STATUS_CATEGORIES:
        return STATUS_CATEGORIES[status_code]
    if status_code >= 500:
        return "server_error"
    return "client_error"


def raise_tracker_errors(func: F) -> F:
    """Decorator translating githubkit failures into TrackerError, logging GitHub's error details."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except RequestFailed as exc:
            status_code = exc.response.status_code
            try:
                error_data = exc.response.raw_response.json()
            except ValueError:
                error_data = {}
            message = error_data.get("message", str(exc)) if isinstance(error_data, dict) else str(exc)
            category = categorize_status(status_code)
            if status_code == 403 and "rate limit" in str(message).lower():
                category = "rate_limited"
            logger.error(
                "GitHub request failed",
                function=func.__name__,
                message=message,
                errors=error_data.get("errors", []) if isinstance(error_data, dict) else [],
                status_code=status_code,
                category=category,
            )
            raise TrackerError(f"GitHub error in {func.__name__}: {message}", status_code=status_code, category=category, step=func.__name__) from exc
        except RequestError as exc:
            logger.error("GitHub request could not be sent", function=func.__name__, error=str(exc))
            raise TrackerError(f"GitHub request error in {func.__name__}: {exc}", category="network", step=func.__name__) from exc

    return wrapper  # type: ignore


class GitHubKitAdapter(TrackerClientBase):
    """Tracker client adapter for the githubkit library."""

    def __init__(self, client: GitHubClient, owner: str, repo_name: str) -> None:
        """Initialize the GitHub client adapter with an already-initialized client."""
        self.client = client
        self.owner = owner
        self.repo_name = repo_name

    def _omit_null_parameters(self, **kwargs: Any) -> dict[str, Any]:
        """Omit parameters that are None."""
        return {k: v for k, v in kwargs.items() if v is not None}

    @classmethod
    async def create(
        cls,
        repo: str,
        github_auth_type: GitHubAuthenticationType,
        github_pat_token: str | None = None,
        github_app_id: int | None = None,
        github_app_private_key_path: Path | None = None,
        github_app_installation_id: int | None = None,
        github_api_url: str = "https://api.github.com",
    ) -> Self:
        """Create a new GitHub client adapter.

        Args:
            repo: Repository in 'owner/repo' format, or a repository URL
            github_auth_type: Type of authentication (PAT or APP)
            github_pat_token: Personal access token (required for PAT auth)
            github_app_id: GitHub App ID (required for APP auth)
            github_app_private_key_path: Path to private key file (required for APP auth)
            github_app_installation_id: Installation ID (required for APP auth)
            github_api_url: GitHub API URL (defaults to https://api.github.com)

        Returns:
            Configured GitHubKitAdapter instance

        Raises:
            ConfigurationError: If the repository cannot be parsed or credentials are incomplete
        """
        owner, repo_name = await split_repository_in_configuration(repo=repo)
        logger.info(
            "Creating client for GitHub instance and repository",
            github_api_url=github_api_url,
            owner=owner,
            repo_name=repo_name,
        )
        client = await get_github_client(
            github_auth_type=github_auth_type,
            github_pat_token=github_pat_token,
            github_app_id=github_app_id,
            github_app_private_key_path=github_app_private_key_path,
            github_app_installation_id=github_app_installation_id,
            github_api_url=github_api_url,
        )
        return cls(client, owner, repo_name)

    @raise_tracker_errors
    @retry_on_rate_limit()
    async def get_issue(self, issue_number: int) -> Issue:
        """Get an issue from the repository."""
        response: Response[Issue] = await self.client.rest.issues.async_get(owner=self.owner, repo=self.repo_name, issue_number=issue_number)
        return response.parsed_data

    @raise_tracker_errors
    @retry_on_rate_limit()
    async def create_issue(self, title: str, body: str | None = None, labels: list[str] | None = None, **kwargs: Any) -> Issue:
        """Create an issue for a repository."""
        params = self._omit_null_parameters(
            title=title,
            body=body,
            labels=labels or None,
            **kwargs,
        )
        response: Response[Issue] = await self.client.rest.issues.async_create(
            owner=self.owner,
            repo=self.repo_name,
            **params,
        )
        return response.parsed_data

    @raise_tracker_errors
    @retry_on_rate_limit()
    async def add_comment(self, issue_number: int, body: str) -> IssueComment:
        """Add a comment to an issue."""
        response: Response[IssueComment] = await self.client.rest.issues.async_create_comment(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
            body=body,
        )
        return response.parsed_data

    @raise_tracker_errors
    @retry_on_rate_limit()
    async def reopen_issue(self, issue_number: int) -> Issue:
        """Reopen a closed issue."""
        response: Response[Issue] = await self.client.rest.issues.async_update(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
            state="open",
        )
        return response.parsed_data

    @raise_tracker_errors
    @retry_on_rate_limit()
    async def close_issue(self, issue_number: int, **kwargs: Any) -> Issue:
        """Close an issue for a repository."""
        response: Response[Issue] = await self.client.rest.issues.async_update(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
            state="closed",
            **kwargs,
        )
        return response.parsed_data

    @raise_tracker_errors
    @retry_on_rate_limit()
    async def set_labels_on_issue(self, issue_number: int, labels: list[str]) -> None:
        """Replace the labels of an issue, removing them all when ``labels`` is empty."""
        if labels:
            await self.client.rest.issues.async_set_labels(
                owner=self.owner,
                repo=self.repo_name,
                issue_number=issue_number,
                labels=labels,
            )
        else:
            await self.client.rest.issues.async_remove_all_labels(
                owner=self.owner,
                repo=self.repo_name,
                issue_number=issue_number,
            )
