"""Shared constants used across the application."""

# Issue Text Defaults
# -------------------

DEFAULT_ISSUE_TITLE_TEMPLATE = "{{ job_name }} {{ build_display_name }} failed"
"""Default title of the issue filed when a job starts failing."""

DEFAULT_ISSUE_BODY_TEMPLATE = (
    "Build '{{ job_name }}' is failing!\n\n"
    "Last {{ max_log_lines }} lines of build output:\n\n"
    "```\n"
    "{{ build_output | last_lines(max_log_lines) }}\n"
    "```\n\n"
    "Changes since last successful build:\n"
    "{% for change in changes %}- [{{ change.author }}] {{ change.revision }} - {{ change.message }}\n{% else %}No changes\n{% endfor %}\n"
    "[View full output]({{ build_url }})"
)
"""Default body used both for new issues and for comments on repeat failures."""

DEFAULT_FIXED_COMMENT = "Build was fixed!"
"""Comment posted on the tracked issue right before it is closed."""

DEFAULT_MAX_LOG_LINES = 50
"""Number of trailing build output lines made available to templates."""

# Persistence Constants
# ---------------------

LINKAGE_FILE_SUFFIX = ".yaml"
"""Suffix of the per-job linkage record files."""

HISTORY_FILE_SUFFIX = ".history.jsonl"
"""Suffix of the per-job append-only transition history files."""

STORE_LOCK_TIMEOUT = 30.0
"""Seconds to wait for another build of the same job to release the linkage lock."""
