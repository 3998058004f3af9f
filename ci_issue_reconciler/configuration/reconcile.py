"""Reconcile per-job settings, global defaults, and GitHub authentication configuration."""

import re
from pathlib import Path

import structlog

from ci_issue_reconciler.configuration.exceptions import GitHubAuthenticationConfigurationUndefinedError
from ci_issue_reconciler.configuration.models import (
    GitHubAuthenticationType,
    GitHubConfig,
    NotifierPolicy,
    PolicyDefaults,
    PolicyOverrides,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

LABEL_SEPARATOR_PATTERN = re.compile(r"[,\s]+")


def default_if_blank(value: str | None, default: str | None) -> str | None:
    """Return ``value`` unless it is None or only whitespace, in which case return ``default``."""
    if value is None or not value.strip():
        return default
    return value


def split_labels(labels: str | None) -> set[str]:
    """Split a label setting such as ``"ci, flaky build"`` on commas and whitespace."""
    if not labels:
        return set()
    return {label for label in LABEL_SEPARATOR_PATTERN.split(labels) if label}


def resolve_policy(overrides: PolicyOverrides, defaults: PolicyDefaults) -> NotifierPolicy:
    """Layer the job's overrides on top of the global defaults, one field at a time."""
    title = default_if_blank(overrides.issue_title_template, defaults.issue_title_template)
    body = default_if_blank(overrides.issue_body_template, defaults.issue_body_template)
    labels = default_if_blank(overrides.issue_labels, defaults.issue_labels)
    repository = default_if_blank(overrides.repository, defaults.repository)
    policy = NotifierPolicy(
        reopen_existing=overrides.reopen_existing,
        append_on_repeat_failure=overrides.append_on_repeat_failure,
        issue_title_template=title or "",
        issue_body_template=body or "",
        issue_labels=split_labels(labels),
        repository_override=repository.strip() if repository else None,
        skip_remote_lookup_on_repeat_failure=overrides.skip_remote_lookup_on_repeat_failure,
        treat_unstable_as_failure=overrides.treat_unstable_as_failure,
    )
    logger.debug(
        "Resolved notifier policy",
        reopen_existing=policy.reopen_existing,
        append_on_repeat_failure=policy.append_on_repeat_failure,
        issue_labels=sorted(policy.issue_labels),
        repository=policy.repository_override,
    )
    return policy


async def validate_github_authentication_configuration(
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> GitHubAuthenticationType:
    """Validates the GitHub authentication configuration.

    Args:
        github_pat_token (str | None): The GitHub PAT token.
        github_app_id (int | None): The GitHub App ID.
        github_app_private_key_path (Path | None): The path to the GitHub App private key.
        github_app_installation_id (int | None): The GitHub App installation ID.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If both or neither of the PAT and App configurations are defined.

    Returns:
        GitHubAuthenticationType: The type of GitHub authentication used.
    """
    if github_pat_token and (github_app_id or github_app_private_key_path or github_app_installation_id):
        raise GitHubAuthenticationConfigurationUndefinedError("Both PAT and GitHub App configurations are defined. Please use one or the other.")

    if github_pat_token:
        return GitHubAuthenticationType.PAT

    if github_app_id and github_app_private_key_path and github_app_installation_id:
        return GitHubAuthenticationType.APP
    elif github_app_id or github_app_private_key_path or github_app_installation_id:
        missing_settings: list[dict[str, str]] = []
        if not github_app_id:
            missing_settings.append({"name": "GitHub App ID", "cli_name": "github_app_id", "env_name": "GITHUB_APP_ID"})
        if not github_app_private_key_path:
            missing_settings.append(
                {"name": "GitHub App private key path", "cli_name": "github_app_private_key_path", "env_name": "GITHUB_APP_PRIVATE_KEY_PATH"}
            )
        if not github_app_installation_id:
            missing_settings.append(
                {"name": "GitHub App installation ID", "cli_name": "github_app_installation_id", "env_name": "GITHUB_APP_INSTALLATION_ID"}
            )
        msg = "Incomplete GitHub App configuration - missing settings include " + ", ".join(
            f"{setting['name']} (command line option {setting['cli_name']}, environment variable {setting['env_name']})"
            for setting in missing_settings
        )
        raise GitHubAuthenticationConfigurationUndefinedError(msg)
    else:
        raise GitHubAuthenticationConfigurationUndefinedError(
            "No GitHub authentication configuration provided. Please provide either a PAT or a GitHub App configuration."
        )


async def reconcile_github_configuration(
    github_api_url: str,
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> GitHubConfig:
    """Validate the GitHub credentials and bundle them with the API URL."""
    github_auth_type = await validate_github_authentication_configuration(
        github_pat_token=github_pat_token,
        github_app_id=github_app_id,
        github_app_private_key_path=github_app_private_key_path,
        github_app_installation_id=github_app_installation_id,
    )
    return GitHubConfig(
        github_api_url=github_api_url,
        github_authentication_type=github_auth_type,
        github_pat_token=github_pat_token,
        github_app_id=github_app_id,
        github_app_private_key_path=str(github_app_private_key_path) if github_app_private_key_path else None,
        github_app_installation_id=github_app_installation_id,
    )
