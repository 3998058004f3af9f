"""Utility modules for shared functionality."""

from .constants import (
    DEFAULT_FIXED_COMMENT,
    DEFAULT_ISSUE_BODY_TEMPLATE,
    DEFAULT_ISSUE_TITLE_TEMPLATE,
    DEFAULT_MAX_LOG_LINES,
)
from .retry import retry_on_rate_limit

__all__ = [
    "DEFAULT_FIXED_COMMENT",
    "DEFAULT_ISSUE_BODY_TEMPLATE",
    "DEFAULT_ISSUE_TITLE_TEMPLATE",
    "DEFAULT_MAX_LOG_LINES",
    "retry_on_rate_limit",
]
