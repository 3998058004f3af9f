"""Pydantic Settings model for application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from ci_issue_reconciler.utils.constants import DEFAULT_ISSUE_BODY_TEMPLATE, DEFAULT_ISSUE_TITLE_TEMPLATE, DEFAULT_MAX_LOG_LINES


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False
    STATE_DIR: Path = Path(".ci-issue-reconciler")

    # GitHub API settings
    GITHUB_API_URL: str = "https://api.github.com"
    REPO: str | None = None

    # GitHub PAT settings
    GITHUB_PAT_TOKEN: str | None = None

    # GitHub App settings
    GITHUB_APP_ID: int | None = None
    GITHUB_APP_PRIVATE_KEY_PATH: Path | None = None
    GITHUB_APP_INSTALLATION_ID: int | None = None

    # Global issue defaults, overridable per job
    ISSUE_TITLE_TEMPLATE: str = DEFAULT_ISSUE_TITLE_TEMPLATE
    ISSUE_BODY_TEMPLATE: str = DEFAULT_ISSUE_BODY_TEMPLATE
    ISSUE_LABELS: str | None = None
    MAX_LOG_LINES: int = DEFAULT_MAX_LOG_LINES


def get_settings() -> Settings:
    """Read the settings from the environment (and ``.env``) at call time."""
    return Settings()
