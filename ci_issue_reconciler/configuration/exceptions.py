"""Contains exceptions raised when reconciling application configuration."""

from ci_issue_reconciler.notifier.exceptions import ConfigurationError


class GitHubAuthenticationConfigurationUndefinedError(ConfigurationError):
    """Raised when the GitHub authentication configuration is undefined."""

    pass


class RepositoryNotConfiguredError(ConfigurationError):
    """Raised when neither the job nor the global defaults name a repository."""

    pass
