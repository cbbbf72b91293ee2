from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Sequence

from rich.console import Console
from rich.table import Table
from rich import box

from . import __version__
from .codegen import build_protocol
from .codegen.core.config import ConfigError, get_config_manager, load_config
from .codegen.core.generator import generate_code
from .codegen.core.naming import InvalidIdentifier
from .codegen.core.schema import SchemaError
from .codegen.languages.cpp import CppGenerator
from .logging_config import LOG_LEVELS, get_logger, setup_logging
from .utils import ProtocolLoadError, load_include_experimental, load_protocol

logger = get_logger(__name__)


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="inspector-msggen",
        description="Generate C++ message declarations from protocol JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  inspector-msggen js_protocol.json -o MessageTypes.h
  inspector-msggen js_protocol.json browser_protocol.json --ignore-experimental \\
      --include-experimental experimental.txt -o MessageTypes.h
  inspector-msggen --url https://example.com/protocol.json
        """.strip(),
    )

    parser.add_argument("schemas", nargs="*", help="Protocol JSON files")
    parser.add_argument("--url", help="URL to fetch protocol JSON from")
    parser.add_argument("--output", "-o", help="Output header (default: stdout)")
    parser.add_argument("--config", help="JSON configuration file")

    experimental_group = parser.add_argument_group("experimental filtering")
    experimental_group.add_argument(
        "--ignore-experimental",
        action="store_true",
        default=None,
        help="Skip experimental domains, types, commands, events and properties",
    )
    experimental_group.add_argument(
        "--include-experimental",
        metavar="FILE",
        help="File of Domain.name entries generated even when experimental",
    )

    output_group = parser.add_argument_group("output options")
    output_group.add_argument("--root-namespace", help="Enclosing C++ namespace")
    output_group.add_argument(
        "--no-comments",
        action="store_true",
        help="Don't copy descriptions into the generated header",
    )
    output_group.add_argument(
        "--verbose",
        action="store_true",
        help="Show generation summary",
    )
    output_group.add_argument(
        "--log-level",
        choices=sorted(LOG_LEVELS),
        default="warning",
        help="Logging verbosity (default: warning)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


class CLIHandler:
    """Handle command-line generation runs."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize CLI handler with a console for status output."""
        self.console = console or Console(stderr=True)

    def run(self, args: Any) -> int:
        """Run one generation.

        Args:
            args: Parsed CLI arguments.

        Returns:
            Exit code (0 for success, 1 for failure).
        """
        try:
            config = self._build_config(args)
            raw_documents, sources = self._load_inputs(args)

            protocol = build_protocol(raw_documents, config)
            result = generate_code(CppGenerator(config), protocol, sources)
        except (CLIError, ConfigError, ProtocolLoadError, FileNotFoundError) as e:
            logger.error("%s", e)
            self.console.print(f"[red]✗ Error:[/red] {e}")
            return 1
        except (SchemaError, InvalidIdentifier) as e:
            logger.error("Invalid protocol: %s", e)
            self.console.print(f"[red]✗ Invalid protocol:[/red] {e}")
            return 1

        if not result.success:
            self.console.print(f"[red]✗ {result.error_message}[/red]")
            return 1

        for warning in result.warnings:
            self.console.print(f"[yellow]⚠ {warning}[/yellow]")

        try:
            self._write_output(result.code, config.output_file)
        except CLIError as e:
            logger.error("%s", e)
            self.console.print(f"[red]✗ Error:[/red] {e}")
            return 1

        if getattr(args, "verbose", False):
            self._print_summary(result.metadata)
        return 0

    def _build_config(self, args: Any):
        overrides: dict[str, Any] = {}
        if getattr(args, "ignore_experimental", None):
            overrides["ignore_experimental"] = True
        if getattr(args, "include_experimental", None):
            overrides["include_experimental"] = load_include_experimental(
                args.include_experimental
            )
        if getattr(args, "root_namespace", None):
            overrides["root_namespace"] = args.root_namespace
        if getattr(args, "no_comments", False):
            overrides["add_comments"] = False
        if getattr(args, "output", None):
            overrides["output_file"] = args.output

        config = load_config(custom_config=overrides, config_file=getattr(args, "config", None))
        for warning in get_config_manager().validate_config(config):
            logger.warning("Config: %s", warning)
        return config

    def _load_inputs(self, args: Any) -> tuple[list[Any], list[str]]:
        schemas = list(getattr(args, "schemas", None) or [])
        url = getattr(args, "url", None)
        if not schemas and not url:
            raise CLIError("Input required (schema files or --url)")

        documents = []
        sources = []
        for schema in schemas:
            source, data = load_protocol(file_path=schema)
            documents.append(data)
            sources.append(source)
        if url:
            source, data = load_protocol(url=url)
            documents.append(data)
            sources.append(source)
        return documents, sources

    def _write_output(self, code: str, output_file: str | None) -> None:
        if output_file:
            path = Path(output_file)
            try:
                path.write_text(code, encoding="utf-8")
            except OSError as e:
                raise CLIError(f"Cannot write {path}: {e}") from e
            self.console.print(f"[green]✓[/green] Wrote {path}")
            logger.info("Wrote %s", path)
        else:
            sys.stdout.write(code)

    def _print_summary(self, metadata: dict[str, Any]) -> None:
        table = Table(title="Generation summary", box=box.SIMPLE)
        table.add_column("Item", style="cyan")
        table.add_column("Value", justify="right")
        for key in (
            "domain_count",
            "type_count",
            "command_count",
            "event_count",
            "ignore_experimental",
        ):
            table.add_row(key.replace("_", " "), str(metadata.get(key)))
        self.console.print(table)


def main(argv: Sequence[str] | None = None) -> int:
    """Console script entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)
    return CLIHandler().run(args)


if __name__ == "__main__":
    sys.exit(main())
