"""Contains utilities for rendering issue titles and bodies with Jinja2 templates."""

from pathlib import Path

import jinja2
import structlog
from pydantic import BaseModel

from ci_issue_reconciler.notifier.exceptions import RenderError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def last_lines(text: str | None, count: int = 50) -> str:
    """Jinja2 filter returning the last ``count`` lines of ``text``."""
    if not text:
        return ""
    lines = text.splitlines()
    if count <= 0:
        return ""
    return "\n".join(lines[-count:])


def construct_jinja2_environment() -> jinja2.Environment:
    """Construct a Jinja2 environment."""
    jinja_env = jinja2.Environment(undefined=jinja2.StrictUndefined, keep_trailing_newline=True)
    jinja_env.filters["last_lines"] = last_lines
    return jinja_env


def construct_jinja2_template_from_string(template_string: str, environment: jinja2.Environment | None = None) -> jinja2.Template:
    """Construct a Jinja2 template from a string."""
    if environment is None:
        environment = construct_jinja2_environment()
    return environment.from_string(template_string)


def read_template_file(template_path: Path | str) -> str:
    """Read the raw contents of a template file."""
    try:
        with open(template_path, encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        logger.error("Jinja2 template not found", template_path=str(template_path))
        raise


def render_template_with_model(model: BaseModel, template: jinja2.Template) -> str:
    """Render a Jinja2 template against a Pydantic model."""
    try:
        rendered_template = template.render(model.model_dump())
    except jinja2.UndefinedError as exc:
        logger.error("Failed to render template with model", model_type=type(model).__name__, error=str(exc))
        raise
    return rendered_template


def render_text_strict(template_string: str, model: BaseModel) -> str:
    """Render ``template_string`` against ``model``, raising RenderError on any template failure."""
    try:
        template = construct_jinja2_template_from_string(template_string)
        return render_template_with_model(model, template)
    except jinja2.TemplateError as exc:
        raise RenderError(template_string, str(exc)) from exc
