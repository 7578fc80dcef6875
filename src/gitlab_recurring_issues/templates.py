"""Recurring issue templates.

A template is a markdown file with a YAML front-matter block:

    ---
    title: Rotate credentials
    confidential: true
    assignees: ["alice"]
    labels: ["ops", "security"]
    duein: 72h
    crontab: "0 9 1 * *"
    ---
    Body text used verbatim as the issue description.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Any

import yaml
from frontmatter.default_handlers import YAMLHandler
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gitlab_recurring_issues.errors import TemplateError

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".md"

# Front-matter keys we read; everything else in the block is ignored.
_FRONT_MATTER_KEYS = frozenset(
    {"title", "confidential", "assignees", "labels", "duein", "crontab"}
)


class IssueTemplate(BaseModel):
    """Metadata of one recurring issue template."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    title: str = Field(default="")
    description: str = Field(default="")
    confidential: bool = Field(default=False)
    assignees: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    due_in: str = Field(default="", alias="duein")
    crontab: str = Field(default="")

    @field_validator("title", "due_in", "crontab", mode="before")
    @classmethod
    def _scalar_as_text(cls, value: Any) -> Any:
        return _render_scalar(value)

    @field_validator("assignees", "labels", mode="before")
    @classmethod
    def _items_as_text(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_render_scalar(item) for item in value]
        return value


def _render_scalar(value: Any) -> Any:
    """Render YAML-typed scalars (`true`, `2024-01-01`) back to text."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    return value


def _split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Return the front-matter mapping and the stripped body.

    Text without a front-matter block is all body.
    """

    handler = YAMLHandler()
    text = text.strip()
    if not handler.detect(text):
        return {}, text

    try:
        block, body = handler.split(text)
    except ValueError:
        # An opening delimiter with no closing one.
        return {}, text

    try:
        metadata = handler.load(block)
    except yaml.YAMLError as e:
        raise TemplateError(f"Malformed front matter: {e}") from e

    if metadata is None:
        return {}, body.strip()
    if not isinstance(metadata, dict):
        raise TemplateError(
            f"Front matter must be a mapping of keys to values, not {type(metadata).__name__}"
        )
    return metadata, body.strip()


def parse_template(contents: bytes | str) -> IssueTemplate:
    """Split front matter from body and build an `IssueTemplate`.

    Raises:
        TemplateError: If the content is not UTF-8, the front matter is not
            a valid YAML mapping, or a recognised key has the wrong type.
    """

    if isinstance(contents, bytes):
        try:
            text = contents.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TemplateError(f"Template is not valid UTF-8: {e}") from e
    else:
        text = contents

    metadata, body = _split_front_matter(text)

    # An empty value (`title:`) leaves the field at its default.
    fields = {
        key: value
        for key, value in metadata.items()
        if key in _FRONT_MATTER_KEYS and value is not None
    }
    fields["description"] = body

    try:
        return IssueTemplate.model_validate(fields)
    except ValidationError as e:
        raise TemplateError(f"Invalid front matter: {e}") from e


def load_template(path: Path) -> IssueTemplate:
    """Read and parse a template file, naming the file in any error."""

    try:
        contents = path.read_bytes()
    except OSError as e:
        raise TemplateError(f"Cannot read template {path}: {e}") from e

    try:
        return parse_template(contents)
    except TemplateError as e:
        raise TemplateError(f"{path}: {e}") from e


def discover_templates(directory: Path) -> list[Path]:
    """Return every markdown template below `directory`, sorted by path.

    Raises:
        TemplateError: If the directory does not exist.
    """

    if not directory.is_dir():
        raise TemplateError(f"Templates directory not found: {directory}")

    candidates = directory.rglob(f"*{TEMPLATE_SUFFIX}")
    found = sorted(p for p in candidates if p.is_file() and p.suffix == TEMPLATE_SUFFIX)
    logger.debug("Discovered templates", extra={"directory": str(directory), "count": len(found)})
    return found
