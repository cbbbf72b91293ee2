"""
Jinja2 rendering for generated headers.

Templates are plain strings registered by the language generator.
Rendering is strict: a missing context variable is an error, never an
empty string in the output.
"""

from typing import Any, Dict, Mapping, Optional

from jinja2 import (
    DictLoader,
    Environment,
    StrictUndefined,
    TemplateError as JinjaTemplateError,
)


class TemplateError(Exception):
    """Exception raised for template-related errors."""

    pass


def indent_lines(value: str, spaces: int = 2) -> str:
    """Indent every non-blank line of ``value``."""
    prefix = " " * spaces
    return "\n".join(prefix + line if line.strip() else line for line in str(value).split("\n"))


def line_comment(value: str, marker: str = "//") -> str:
    """Turn a (possibly multi-line) text into C++ line comments."""
    lines = str(value).strip().split("\n")
    return "\n".join(f"{marker} {line.rstrip()}".rstrip() for line in lines)


class TemplateEngine:
    """In-memory Jinja2 environment configured for source generation."""

    def __init__(self, templates: Optional[Mapping[str, str]] = None):
        """
        Args:
            templates: Initial template name to source mapping
        """
        self._loader = DictLoader(dict(templates or {}))
        # Output is C++, so no HTML escaping
        self._env = Environment(
            loader=self._loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self._env.filters["indent_lines"] = indent_lines
        self._env.filters["comment"] = line_comment

    def add_template(self, name: str, source: str) -> None:
        """Register (or replace) a template."""
        self._loader.mapping[name] = source

    def template_exists(self, name: str) -> bool:
        return name in self._loader.mapping

    def render_template(self, name: str, context: Dict[str, Any]) -> str:
        """
        Render a registered template.

        Raises:
            TemplateError: Unknown template, syntax error or missing variable
        """
        try:
            return self._env.get_template(name).render(**context)
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render template {name}: {e}") from e


def create_template_engine(templates: Optional[Mapping[str, str]] = None) -> TemplateEngine:
    """Create a template engine preloaded with ``templates``."""
    return TemplateEngine(templates)
