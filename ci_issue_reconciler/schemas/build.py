"""Pydantic schemas describing the build that is being reconciled."""

from pydantic import BaseModel, ConfigDict, Field

from ci_issue_reconciler.utils.constants import DEFAULT_MAX_LOG_LINES


class ChangeEntry(BaseModel):
    """A single change made since the last successful build."""

    model_config = ConfigDict(populate_by_name=True)

    author: str = "unknown"
    revision: str = Field(default="", alias="commit")
    message: str = ""


class ChangesFileModel(BaseModel):
    """Pydantic model for a YAML file listing changes since the last successful build."""

    changes: list[ChangeEntry] = Field(default_factory=list)


class BuildContext(BaseModel):
    """Values available to issue title and body templates."""

    job_name: str
    build_number: int | None = None
    build_display_name: str = ""
    build_url: str = ""
    build_output: str = ""
    changes: list[ChangeEntry] = Field(default_factory=list)
    max_log_lines: int = DEFAULT_MAX_LOG_LINES
