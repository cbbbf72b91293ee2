"""
Inspector Message Generator Code Generation Module

Generates C++ message declarations from protocol descriptions.
"""

from .core.generator import CodeGenerator, GenerationResult, generate_code
from .core.protocol import Command, Domain, Event, Protocol, TypeDefinition
from .core.schema import Property, SchemaError, UnresolvedTypeReference
from .core.naming import InvalidIdentifier, to_cpp_namespace, to_cpp_type
from .core.config import GeneratorConfig, ConfigManager, load_config
from .languages.cpp import CppGenerator


def build_protocol(raw_protocol, config=None):
    """
    Build a Protocol honouring the experimental settings of a config.

    Args:
        raw_protocol: Parsed protocol JSON (or a list of documents)
        config: GeneratorConfig, or None for defaults

    Returns:
        Protocol
    """
    config = config or load_config()
    return Protocol.from_raw(
        raw_protocol,
        ignore_experimental=config.ignore_experimental,
        include_experimental=config.include_experimental,
    )


def generate_from_protocol(raw_protocol, config=None, sources=None):
    """
    Generate a C++ header from raw protocol JSON.

    Args:
        raw_protocol: Parsed protocol JSON (or a list of documents)
        config: GeneratorConfig, override dict, or None for defaults
        sources: Input names recorded in the header banner

    Returns:
        GenerationResult with generated code

    Raises:
        SchemaError: If the protocol cannot be turned into code
        InvalidIdentifier: If a name cannot be mapped to C++
    """
    if isinstance(config, dict):
        config = load_config(custom_config=config)

    protocol = build_protocol(raw_protocol, config)
    generator = CppGenerator(config)
    return generate_code(generator, protocol, sources)


def quick_generate(raw_protocol, **options):
    """
    Quick code generation from protocol JSON.

    Args:
        raw_protocol: Protocol as dict/list or JSON string
        **options: Configuration overrides

    Returns:
        Generated header text
    """
    if isinstance(raw_protocol, str):
        import json

        raw_protocol = json.loads(raw_protocol)

    result = generate_from_protocol(raw_protocol, options)

    if result.success:
        return result.code
    else:
        raise RuntimeError(f"Code generation failed: {result.error_message}")


__all__ = [
    "CodeGenerator",
    "CppGenerator",
    "GenerationResult",
    "Command",
    "Domain",
    "Event",
    "Property",
    "Protocol",
    "TypeDefinition",
    "SchemaError",
    "UnresolvedTypeReference",
    "InvalidIdentifier",
    "to_cpp_namespace",
    "to_cpp_type",
    "GeneratorConfig",
    "ConfigManager",
    "load_config",
    "build_protocol",
    "generate_code",
    "generate_from_protocol",
    "quick_generate",
]
