"""
Base generator interface and the error-handling run wrapper.

A language generator turns a fully constructed :class:`Protocol` into
source text. Schema problems never reach this layer: they are raised
while the protocol is built.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ...logging_config import get_logger
from .config import GeneratorConfig
from .protocol import Protocol
from .templates import TemplateEngine, TemplateError, create_template_engine

logger = get_logger(__name__)

_BLANK_RUN = re.compile(r"\n{3,}")


class GeneratorError(Exception):
    """Base exception for code generation errors."""

    pass


class CodeGenerator(ABC):
    """Abstract base class for all code generators."""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()
        self.template_engine: TemplateEngine = create_template_engine()
        self.register_templates(self.template_engine)

    @property
    @abstractmethod
    def language_name(self) -> str:
        """Name of the target language (e.g. 'cpp')."""

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Extension of the generated file (e.g. '.h')."""

    def register_templates(self, engine: TemplateEngine) -> None:
        """Hook for generators to add their templates."""

    @abstractmethod
    def generate(self, protocol: Protocol, sources: Optional[List[str]] = None) -> str:
        """
        Generate code for a whole protocol.

        Args:
            protocol: Fully constructed protocol
            sources: Input file names mentioned in the generated banner
        """

    def validate_protocol(self, protocol: Protocol) -> List[str]:
        """Report oddities that do not stop generation, as warning strings."""
        warnings = []
        if not protocol.domains:
            warnings.append("Protocol has no domains")

        for domain in protocol.domains:
            if not (domain.types or domain.commands or domain.events):
                warnings.append(f"Domain '{domain.name}' is empty")
            for command in domain.commands:
                warnings.extend(
                    f"Deprecated property {prop.get_qualified_name()}"
                    for prop in (*command.parameters, *command.returns)
                    if prop.deprecated
                )
        return warnings

    def format_code(self, code: str) -> str:
        """Strip trailing whitespace, keep at most one blank line in a row."""
        stripped = "\n".join(line.rstrip() for line in code.split("\n"))
        return _BLANK_RUN.sub("\n\n", stripped).strip("\n") + "\n"

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        return self.template_engine.render_template(template_name, context)

    def template_exists(self, template_name: str) -> bool:
        return self.template_engine.template_exists(template_name)


class GenerationResult:
    """Generated code plus warnings and run metadata."""

    def __init__(
        self,
        code: str,
        warnings: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.success = True
        self.error_message: Optional[str] = None
        self.exception: Optional[Exception] = None

    @classmethod
    def error(cls, message: str, exception: Optional[Exception] = None) -> "GenerationResult":
        """Create a failed generation result."""
        result = cls(code="")
        result.success = False
        result.error_message = message
        result.exception = exception
        return result


def generate_code(
    generator: CodeGenerator,
    protocol: Protocol,
    sources: Optional[List[str]] = None,
) -> GenerationResult:
    """
    Run a generator over a protocol.

    Generator and template failures are turned into an error result;
    warnings are logged and returned with the code.

    Args:
        generator: Code generator instance
        protocol: Protocol to generate code for
        sources: Input file names for the banner
    """
    try:
        warnings = generator.validate_protocol(protocol)
        code = generator.format_code(generator.generate(protocol, sources))
    except (GeneratorError, TemplateError) as e:
        logger.error("Code generation failed: %s", e)
        return GenerationResult.error(f"Code generation failed: {e}", exception=e)

    for warning in warnings:
        logger.warning(warning)

    metadata = {
        "language": generator.language_name,
        "file_extension": generator.file_extension,
        "domain_count": len(protocol.domains),
        "type_count": protocol.count("types"),
        "command_count": protocol.count("commands"),
        "event_count": protocol.count("events"),
        "ignore_experimental": protocol.ignore_experimental,
    }
    return GenerationResult(code, warnings, metadata)
