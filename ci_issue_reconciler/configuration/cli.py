"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import logging
import sys
from pathlib import Path

import structlog
import typer
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from ci_issue_reconciler.configuration.env import get_settings
from ci_issue_reconciler.configuration.models import PolicyDefaults, PolicyOverrides
from ci_issue_reconciler.configuration.reconcile import reconcile_github_configuration, resolve_policy
from ci_issue_reconciler.github.abc import TrackerClientBase
from ci_issue_reconciler.github.adapter import GitHubKitAdapter
from ci_issue_reconciler.notifier.driver import TrackerFactory, on_build_complete
from ci_issue_reconciler.notifier.exceptions import ConfigurationError, ReconcilerError
from ci_issue_reconciler.notifier.history import TransitionHistory
from ci_issue_reconciler.notifier.models import BuildOutcome
from ci_issue_reconciler.notifier.store import YAMLLinkageStore
from ci_issue_reconciler.schemas.build import BuildContext, ChangeEntry
from ci_issue_reconciler.utils.build_output import load_build_output, load_changes
from ci_issue_reconciler.utils.templates import read_template_file

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Keep a GitHub issue in step with the failure streak of a CI job.")


def configure_logging(debug: bool) -> None:
    """Configure structlog to render to stderr at INFO, or DEBUG when requested."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else logging.INFO),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def build_tracker_factory(
    github_api_url: str,
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> TrackerFactory:
    """Return a coroutine creating the GitHub tracker for a repository on first use.

    Credentials are only validated once a build actually needs GitHub, so a
    passing build of a job without a tracked issue never requires them.
    """

    async def create_tracker(repository: str) -> TrackerClientBase:
        github_config = await reconcile_github_configuration(
            github_api_url=github_api_url,
            github_pat_token=github_pat_token,
            github_app_id=github_app_id,
            github_app_private_key_path=github_app_private_key_path,
            github_app_installation_id=github_app_installation_id,
        )
        try:
            return await GitHubKitAdapter.create(
                repo=repository,
                github_auth_type=github_config.github_authentication_type,
                github_pat_token=github_config.github_pat_token,
                github_app_id=github_config.github_app_id,
                github_app_private_key_path=github_app_private_key_path,
                github_app_installation_id=github_config.github_app_installation_id,
                github_api_url=github_config.github_api_url,
            )
        except ReconcilerError:
            raise
        except Exception as exc:
            raise ConfigurationError(
                f"Could not connect to GitHub repository {repository}. Please double-check that you have correctly configured GitHub credentials: {exc}"
            ) from exc

    return create_tracker


def load_changes_or_warn(changes_file: Path | None) -> list[ChangeEntry]:
    """Load the change list, warning instead of failing when the file is unusable."""
    try:
        return load_changes(changes_file)
    except Exception as exc:
        typer.echo(f"WARNING: Unable to load changes from {changes_file}: {exc}", err=True)
        return []


def read_body_template_or_warn(body_template_file: Path | None) -> str | None:
    """Read the job's body template, falling back to the global default when it cannot be read."""
    if body_template_file is None:
        return None
    try:
        return read_template_file(body_template_file)
    except OSError as exc:
        typer.echo(f"WARNING: Unable to read issue body template {body_template_file}, using the default: {exc}", err=True)
        return None


@typer_app.command(name="notify")
def notify_cli(
    job_id: Annotated[str, Argument(help="Identifier of the CI job (for example 'team/api').")],
    outcome: Annotated[BuildOutcome, Option("--outcome", case_sensitive=False, help="Result of the build that just completed.")],
    build_number: Annotated[int | None, Option(help="Number of the build that just completed.")] = None,
    build_display_name: Annotated[str | None, Option(help="Display name of the build (defaults to '#<build number>').")] = None,
    build_url: Annotated[str, Option(help="URL of the build's page.")] = "",
    log_file: Annotated[Path | None, Option(help="Path to the build's output log.")] = None,
    changes_file: Annotated[Path | None, Option(help="YAML file listing changes since the last successful build.")] = None,
    max_log_lines: Annotated[int | None, Option(help="Number of trailing log lines available to templates.")] = None,
    repo: Annotated[str | None, Option(help="Repository (owner/repo or URL) to file issues in; overrides REPO.")] = None,
    reopen: Annotated[bool, Option("--reopen/--no-reopen", help="Reopen the previous issue instead of filing a new one.")] = False,
    append: Annotated[bool, Option("--append/--no-append", help="Comment on the open issue on every repeated failure.")] = False,
    title_template: Annotated[str | None, Option(help="Issue title template; overrides ISSUE_TITLE_TEMPLATE.")] = None,
    body_template_file: Annotated[Path | None, Option(help="File holding the issue body template; overrides ISSUE_BODY_TEMPLATE.")] = None,
    labels: Annotated[str | None, Option(help="Comma or space separated issue labels; overrides ISSUE_LABELS.")] = None,
    treat_unstable_as_failure: Annotated[bool, Option(help="Count unstable builds as failures.")] = False,
    skip_remote_lookup: Annotated[bool, Option(help="Do not contact GitHub at all while a tracked failure continues.")] = False,
    state_dir: Annotated[Path | None, Option(help="Directory holding linkage records; overrides STATE_DIR.")] = None,
    github_api_url: Annotated[str, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = "https://api.github.com",
    github_pat_token: Annotated[str | None, Option(envvar="GITHUB_PAT_TOKEN", help="GitHub Personal Access Token.")] = None,
    github_app_id: Annotated[int | None, Option(envvar="GITHUB_APP_ID", help="GitHub App ID.")] = None,
    github_app_private_key_path: Annotated[Path | None, Option(envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")] = None,
    github_app_installation_id: Annotated[int | None, Option(envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")] = None,
    fail_on_error: Annotated[bool, Option(help="Exit non-zero when the issue could not be reconciled.")] = False,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")] = False,
) -> None:
    """Reconcile the job's GitHub issue with the outcome of its latest build."""
    configure_logging(debug)
    settings = get_settings()

    policy = resolve_policy(
        PolicyOverrides(
            reopen_existing=reopen,
            append_on_repeat_failure=append,
            issue_title_template=title_template,
            issue_body_template=read_body_template_or_warn(body_template_file),
            issue_labels=labels,
            repository=repo,
            skip_remote_lookup_on_repeat_failure=skip_remote_lookup,
            treat_unstable_as_failure=treat_unstable_as_failure,
        ),
        PolicyDefaults(
            issue_title_template=settings.ISSUE_TITLE_TEMPLATE,
            issue_body_template=settings.ISSUE_BODY_TEMPLATE,
            issue_labels=settings.ISSUE_LABELS,
            repository=settings.REPO,
        ),
    )

    log_lines = max_log_lines if max_log_lines is not None else settings.MAX_LOG_LINES
    build_context = BuildContext(
        job_name=job_id,
        build_number=build_number,
        build_display_name=build_display_name or (f"#{build_number}" if build_number is not None else ""),
        build_url=build_url,
        build_output=load_build_output(log_file, log_lines),
        changes=load_changes_or_warn(changes_file),
        max_log_lines=log_lines,
    )

    resolved_state_dir = state_dir or settings.STATE_DIR
    result = asyncio.run(
        on_build_complete(
            job_id=job_id,
            outcome=outcome,
            build_context=build_context,
            policy=policy,
            store=YAMLLinkageStore(resolved_state_dir),
            tracker_factory=build_tracker_factory(
                github_api_url=github_api_url,
                github_pat_token=github_pat_token,
                github_app_id=github_app_id,
                github_app_private_key_path=github_app_private_key_path,
                github_app_installation_id=github_app_installation_id,
            ),
            history=TransitionHistory(resolved_state_dir),
        )
    )

    issue = f"#{result.linkage.issue_number}" if result.linkage.issue_number else "none"
    typer.echo(f"GitHub Issue Notifier: {result.decision.value} (tracked issue: {issue})")
    for warning in result.warnings:
        typer.echo(f"WARNING: {warning}", err=True)
    if result.errors:
        typer.echo("Error(s) encountered while reconciling the GitHub issue:", err=True)
        for err in result.errors:
            typer.echo(f"  {type(err).__name__}: {err}", err=True)
        if fail_on_error:
            raise typer.Exit(1)


@typer_app.command(name="show-linkage")
def show_linkage_cli(
    job_id: Annotated[str, Argument(help="Identifier of the CI job.")],
    state_dir: Annotated[Path | None, Option(help="Directory holding linkage records; overrides STATE_DIR.")] = None,
) -> None:
    """Show the issue currently tracked for a job."""
    store = YAMLLinkageStore(state_dir or get_settings().STATE_DIR)
    linkage = store.load(job_id)
    if linkage.is_absent:
        typer.echo(f"{job_id}: no tracked issue (version {linkage.version})")
    else:
        typer.echo(f"{job_id}: issue #{linkage.issue_number} (version {linkage.version})")


@typer_app.command(name="history")
def history_cli(
    job_id: Annotated[str, Argument(help="Identifier of the CI job.")],
    state_dir: Annotated[Path | None, Option(help="Directory holding linkage records; overrides STATE_DIR.")] = None,
) -> None:
    """Show every issue transition recorded for a job."""
    history = TransitionHistory(state_dir or get_settings().STATE_DIR)
    records = history.records(job_id)
    if not records:
        typer.echo(f"No transitions recorded for {job_id}")
        return
    for record in records:
        build = f"build #{record.build_number}" if record.build_number is not None else "build ?"
        url = f" {record.issue_url}" if record.issue_url else ""
        typer.echo(f"{record.recorded_at.isoformat(timespec='seconds')} {build}: {record.action.value.upper()} issue #{record.issue_number}{url}")


if __name__ == "__main__":
    typer_app()
