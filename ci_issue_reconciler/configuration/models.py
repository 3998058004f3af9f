"""Models for configuration between CLI arguments, environment variables, and defaults."""

from dataclasses import dataclass, field
from enum import Enum

from ci_issue_reconciler.utils.constants import DEFAULT_FIXED_COMMENT


class GitHubAuthenticationType(str, Enum):
    """Enum for GitHub authentication types."""

    PAT = "pat"
    APP = "app"


@dataclass
class NotifierPolicy:
    """Effective policy applied when reconciling one build of a job."""

    reopen_existing: bool = False
    append_on_repeat_failure: bool = False
    issue_title_template: str = ""
    issue_body_template: str = ""
    issue_labels: set[str] = field(default_factory=set)
    repository_override: str | None = None
    skip_remote_lookup_on_repeat_failure: bool = False
    treat_unstable_as_failure: bool = False
    fixed_comment: str = DEFAULT_FIXED_COMMENT


@dataclass
class PolicyDefaults:
    """Global defaults shared by every job."""

    issue_title_template: str
    issue_body_template: str
    issue_labels: str | None = None
    repository: str | None = None


@dataclass
class PolicyOverrides:
    """Per-job settings; ``None`` or blank values fall back to the global defaults."""

    reopen_existing: bool = False
    append_on_repeat_failure: bool = False
    issue_title_template: str | None = None
    issue_body_template: str | None = None
    issue_labels: str | None = None
    repository: str | None = None
    skip_remote_lookup_on_repeat_failure: bool = False
    treat_unstable_as_failure: bool = False


@dataclass
class GitHubConfig:
    """Reconciled GitHub connection settings."""

    github_api_url: str
    github_authentication_type: GitHubAuthenticationType
    github_pat_token: str | None
    github_app_id: int | None
    github_app_private_key_path: str | None
    github_app_installation_id: int | None
