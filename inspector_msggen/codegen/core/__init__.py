"""
Core code generation components.

Provides the protocol object model, naming rules and base classes
used by the language generators.
"""

from .generator import CodeGenerator, GeneratorError, GenerationResult, generate_code
from .schema import (
    ArrayType,
    EnumType,
    ObjectType,
    PrimitiveType,
    Property,
    PropertyKind,
    PropertyType,
    RefType,
    SchemaError,
    TypeIndex,
    UnresolvedTypeReference,
    create_properties,
    is_filtered_out,
)
from .protocol import Command, Domain, Event, Protocol, TypeDefinition
from .naming import (
    InvalidIdentifier,
    NameCollision,
    NameSanitizer,
    NamingCase,
    to_cpp_identifier,
    to_cpp_namespace,
    to_cpp_type,
)
from .config import GeneratorConfig, ConfigManager, ConfigError, load_config
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Base generator interface
    "CodeGenerator",
    "GeneratorError",
    "GenerationResult",
    "generate_code",
    # Schema system - property types
    "ArrayType",
    "EnumType",
    "ObjectType",
    "PrimitiveType",
    "Property",
    "PropertyKind",
    "PropertyType",
    "RefType",
    "SchemaError",
    "TypeIndex",
    "UnresolvedTypeReference",
    "create_properties",
    "is_filtered_out",
    # Protocol object model
    "Command",
    "Domain",
    "Event",
    "Protocol",
    "TypeDefinition",
    # Naming utilities
    "InvalidIdentifier",
    "NameCollision",
    "NameSanitizer",
    "NamingCase",
    "to_cpp_identifier",
    "to_cpp_namespace",
    "to_cpp_type",
    # Configuration system
    "GeneratorConfig",
    "ConfigManager",
    "ConfigError",
    "load_config",
    # Template system
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
