"""Unit tests for GitHub repository parsing helpers."""

import pytest

from ci_issue_reconciler.notifier.exceptions import ConfigurationError
from ci_issue_reconciler.utils.github import split_repository_in_configuration


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "repo, expected",
    [
        pytest.param("owner/repo", ("owner", "repo"), id="owner_repo"),
        pytest.param("  owner/repo  ", ("owner", "repo"), id="surrounding_whitespace"),
        pytest.param("https://github.com/owner/repo", ("owner", "repo"), id="https_url"),
        pytest.param("https://github.example.com/owner/repo.git", ("owner", "repo"), id="https_url_with_git_suffix"),
        pytest.param("https://github.com/owner/repo/", ("owner", "repo"), id="https_url_trailing_slash"),
        pytest.param("git@github.com:owner/repo.git", ("owner", "repo"), id="ssh_url"),
    ],
)
async def test_split_repository_in_configuration(repo: str, expected: tuple[str, str]) -> None:
    """Test that repositories are split into owner and name."""
    assert await split_repository_in_configuration(repo) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "repo",
    [
        pytest.param(None, id="none"),
        pytest.param("", id="empty"),
        pytest.param("repo-only", id="missing_owner"),
        pytest.param("owner/group/repo", id="too_many_parts"),
        pytest.param("https://github.com/owner", id="url_without_repo"),
    ],
)
async def test_split_repository_in_configuration_invalid(repo: str | None) -> None:
    """Test that unusable repositories raise a configuration error."""
    with pytest.raises(ConfigurationError):
        await split_repository_in_configuration(repo)
