"""Sets up the authenticated githubkit client."""

from pathlib import Path
from typing import TypeAlias

from githubkit import GitHub
from githubkit.auth import (
    AppAuthStrategy,
    AppInstallationAuthStrategy,
    TokenAuthStrategy,
)

from ci_issue_reconciler.configuration.exceptions import GitHubAuthenticationConfigurationUndefinedError
from ci_issue_reconciler.configuration.models import GitHubAuthenticationType

GitHubClient: TypeAlias = GitHub[AppInstallationAuthStrategy] | GitHub[TokenAuthStrategy]


async def get_github_app_client(
    github_app_id: int,
    github_app_private_key_path: Path,
    github_api_url: str,
    github_app_installation_id: int,
) -> GitHub[AppInstallationAuthStrategy]:
    """Returns a GitHub client authenticated as the given GitHub App installation."""
    with open(github_app_private_key_path, encoding="utf-8") as f:
        private_key = f.read()
    auth = AppAuthStrategy(app_id=github_app_id, private_key=private_key)
    # Disable HTTP caching so issue state is always fresh
    app_client = GitHub(auth=auth, base_url=github_api_url, http_cache=False)
    return app_client.with_auth(app_client.auth.as_installation(github_app_installation_id))


async def get_github_pat_client(github_pat_token: str, github_api_url: str) -> GitHub[TokenAuthStrategy]:
    """Returns an authenticated GitHub client using GitHub PAT credentials."""
    if not github_pat_token:
        raise GitHubAuthenticationConfigurationUndefinedError("GitHub PAT authentication requires github_pat_token in config.")
    # Disable HTTP caching so issue state is always fresh
    return GitHub(auth=TokenAuthStrategy(github_pat_token), base_url=github_api_url, http_cache=False)


async def get_github_client(
    github_auth_type: GitHubAuthenticationType,
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
    github_api_url: str,
) -> GitHubClient:
    """Returns an authenticated GitHub client using either GitHub App or PAT credentials.

    Supports a custom base URL for GitHub Enterprise Server (GHES).
    """
    if github_auth_type == GitHubAuthenticationType.APP:
        if not (github_app_id and github_app_private_key_path and github_app_installation_id):
            raise GitHubAuthenticationConfigurationUndefinedError(
                "GitHub App authentication requires app_id, private_key_path, and installation_id in config."
            )
        return await get_github_app_client(github_app_id, github_app_private_key_path, github_api_url, github_app_installation_id)
    if not github_pat_token:
        raise GitHubAuthenticationConfigurationUndefinedError("GitHub PAT authentication requires github_pat_token in config.")
    return await get_github_pat_client(github_pat_token, github_api_url)
