"""Rendering of per-test configuration and query templates."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

log = logging.getLogger(__name__)


class TemplateRenderError(Exception):
    """Raised when a template cannot be read or rendered."""

    def __init__(self, source_path: Path, reason: str) -> None:
        super().__init__(f"Cannot render {source_path}: {reason}")
        self.source_path = source_path


def _environment() -> Environment:
    return Environment(undefined=StrictUndefined, keep_trailing_newline=True)


@dataclass(frozen=True, kw_only=True)
class TemplateRenderer:
    """Renders files with ``{{ ... }}`` placeholders against a unit's state."""

    environment: Environment = field(default_factory=_environment, repr=False)

    def render(self, source_path: Path, context: Mapping[str, Any]) -> str:
        """Render ``source_path`` and return the text.

        Raises:
            TemplateRenderError: If the file is missing, is not UTF-8 or fails
                to render

        """
        try:
            source = source_path.read_text(encoding="utf-8")
            return self.environment.from_string(source).render(context)
        except (OSError, UnicodeDecodeError, TemplateError) as exc:
            raise TemplateRenderError(source_path, str(exc)) from exc

    def render_to(
        self,
        source_path: Path,
        destination_dir: Path,
        context: Mapping[str, Any],
        default: str | None = None,
    ) -> Path:
        """Render ``source_path`` into ``destination_dir`` under the same name.

        Args:
            source_path: Template to render
            destination_dir: Directory receiving the rendered file
            context: Template variables
            default: Text written instead when rendering fails; without it
                the error propagates

        Returns:
            Path of the rendered file

        """
        try:
            rendered = self.render(source_path, context)
        except TemplateRenderError:
            if default is None:
                raise
            log.debug("Using default content for %s", source_path)
            rendered = default

        destination = destination_dir / source_path.name
        destination.write_text(rendered, encoding="utf-8")
        return destination
