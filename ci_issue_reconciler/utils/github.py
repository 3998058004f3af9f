"""Contains utility functions for GitHub interactions."""

import re

from ci_issue_reconciler.notifier.exceptions import ConfigurationError

REPOSITORY_URL_PATTERN = re.compile(r"^(?:https?://|git@)[^/:]+[/:](?P<path>[^?#]+?)(?:\.git)?/*$")


async def split_repository_in_configuration(repo: str | None) -> tuple[str, str]:
    """Splits the repository in the configuration into owner and repository.

    Accepts ``owner/repo`` as well as repository URLs such as
    ``https://github.com/owner/repo`` or ``git@github.com:owner/repo.git``.
    """
    if repo is None or not repo.strip():
        raise ConfigurationError("GitHub repository is not configured for this job.")
    repo = repo.strip()
    match = REPOSITORY_URL_PATTERN.match(repo)
    if match:
        repo = match.group("path")
    repo = repo.strip("/")
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ConfigurationError(f"Repository '{repo}' must be in the format 'owner/repo' or be a repository URL.")
    owner, repository = parts
    return owner, repository
