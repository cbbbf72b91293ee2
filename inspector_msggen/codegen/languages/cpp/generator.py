"""
C++ code generator implementation.

Generates a header with forward declarations, type definitions and
request/response/notification structs for every protocol domain.
"""

from typing import Any, Dict, List, Optional, Tuple

from ....logging_config import get_logger
from ...core.config import GeneratorConfig
from ...core.generator import CodeGenerator, GeneratorError
from ...core.naming import nested_struct_name
from ...core.protocol import Command, Domain, Event, Protocol, TypeDefinition
from ...core.schema import ArrayType, EnumType, ObjectType, Property, PropertyType
from ...core.templates import TemplateEngine
from .templates import ALIAS_TEMPLATE, HEADER_TEMPLATE, STRUCT_TEMPLATE
from .types import CppType, CppTypeConfig, CppTypeMapper

logger = get_logger(__name__)

BANNER = "Generated by inspector-msggen. DO NOT EDIT."


class CppGenerator(CodeGenerator):
    """Code generator for C++ message structs."""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        """Initialize C++ generator with configuration."""
        super().__init__(config)

        self.root_namespace = self.config.root_namespace
        self.add_comments = self.config.add_comments
        self.indent = " " * self.config.indent_size

        self.type_config = CppTypeConfig.from_custom(self.config.custom)
        self.type_mapper = CppTypeMapper(self.type_config)

        # Qualified names of types whose definitions form a cycle
        self.cycles: List[Tuple[str, str]] = []

    def register_templates(self, engine: TemplateEngine) -> None:
        engine.add_template("header.h.j2", HEADER_TEMPLATE)
        engine.add_template("struct.h.j2", STRUCT_TEMPLATE)
        engine.add_template("alias.h.j2", ALIAS_TEMPLATE)

    @property
    def language_name(self) -> str:
        return "cpp"

    @property
    def file_extension(self) -> str:
        return ".h"

    def generate(self, protocol: Protocol, sources: Optional[List[str]] = None) -> str:
        """Generate the complete header for a protocol."""
        self.cycles = []

        forward_decls = []
        for domain in protocol.sorted_domains():
            decls = domain.get_forward_decls()
            if decls:
                forward_decls.append(
                    {"namespace": domain.get_cpp_namespace(), "decls": decls}
                )

        definitions = []
        self._append_blocks(definitions, self._render_type_definitions(protocol))
        for domain in protocol.sorted_domains():
            self._append_blocks(definitions, self._render_messages(domain))

        context = {
            "banner": BANNER,
            "sources": sources or [],
            "includes": self.config.includes,
            "root_namespace": self.root_namespace,
            "forward_decls": forward_decls,
            "definitions": definitions,
        }
        return self.render_template("header.h.j2", context)

    @staticmethod
    def _append_blocks(blocks: List[Dict[str, Any]], items: List[Tuple[str, str]]) -> None:
        """Group consecutive definitions of the same namespace into one block."""
        for namespace, text in items:
            if blocks and blocks[-1]["namespace"] == namespace:
                blocks[-1]["definitions"].append(text)
            else:
                blocks.append({"namespace": namespace, "definitions": [text]})

    # Type definitions

    def _render_type_definitions(self, protocol: Protocol) -> List[Tuple[str, str]]:
        types = protocol.get_types()
        rendered = []
        for qualified_name in self.get_definition_order(types):
            type_def = types[qualified_name]
            namespace = type_def.get_cpp_namespace()
            for text in self.generate_type_definition(type_def):
                rendered.append((namespace, text))
        return rendered

    def generate_type_definition(self, type_def: TypeDefinition) -> List[str]:
        """Render one named type plus any inline structs it needs first."""
        namespace = type_def.get_cpp_namespace()
        description = type_def.description if self.add_comments else None

        if isinstance(type_def.type, ObjectType):
            return self._render_struct_with_nested(
                type_def.get_cpp_type(), type_def.type.properties, namespace, description
            )

        values = []
        if isinstance(type_def.type, EnumType):
            values = [f'"{value}"' for value in type_def.type.values]

        alias_name = type_def.get_cpp_type()
        target = self.type_mapper.map_type(
            type_def.type, namespace, nested_struct_name(alias_name, "Item")
        )
        parts = self._render_nested_structs(alias_name, "Item", type_def.type, namespace)
        parts.append(
            self.render_template(
                "alias.h.j2",
                {
                    "alias_name": alias_name,
                    "target": target.name,
                    "description": description,
                    "values": values if self.add_comments else [],
                },
            )
        )
        return parts

    def get_definition_order(self, types: Dict[str, TypeDefinition]) -> List[str]:
        """
        Order type definitions so dependencies come first.

        Ties are broken alphabetically by qualified name, so the order is
        stable across runs. Cycles are recorded in ``self.cycles``.
        """
        visited = set()
        visiting = set()
        ordered = []

        def visit(name: str, parent: Optional[str]):
            if name in visited or name not in types:
                return
            if name in visiting:
                self.cycles.append((parent, name))
                return

            visiting.add(name)
            for dependency in types[name].get_dependencies():
                visit(dependency, name)
            visiting.remove(name)
            visited.add(name)
            ordered.append(name)

        for name in sorted(types):
            visit(name, None)

        return ordered

    # Commands and events

    def _render_messages(self, domain: Domain) -> List[Tuple[str, str]]:
        namespace = domain.get_cpp_namespace()
        rendered = []
        for entry in domain.get_forward_decl_entries():
            if isinstance(entry, Command):
                texts = self.generate_command(entry)
            elif isinstance(entry, Event):
                texts = self.generate_event(entry)
            else:
                continue
            rendered.extend((namespace, text) for text in texts)
        return rendered

    def generate_command(self, command: Command) -> List[str]:
        """Render the request struct and, if any, the response struct."""
        namespace = command.get_cpp_namespace()
        description = command.description if self.add_comments else None

        parts = self._render_struct_with_nested(
            command.get_request_cpp_type(),
            command.parameters,
            namespace,
            description,
            method=command.get_debugger_name(),
        )

        response_type = command.get_response_cpp_type()
        if response_type:
            parts.extend(
                self._render_struct_with_nested(response_type, command.returns, namespace)
            )
        return parts

    def generate_event(self, event: Event) -> List[str]:
        """Render the notification struct."""
        return self._render_struct_with_nested(
            event.get_cpp_type(),
            event.parameters,
            event.get_cpp_namespace(),
            event.description if self.add_comments else None,
            method=event.get_debugger_name(),
        )

    # Struct rendering

    def _render_struct_with_nested(
        self,
        struct_name: str,
        props: Tuple[Property, ...],
        namespace: str,
        description: Optional[str] = None,
        method: Optional[str] = None,
    ) -> List[str]:
        parts = []
        for prop in props:
            parts.extend(
                self._render_nested_structs(struct_name, prop.name, prop.type, namespace)
            )
        parts.append(self._render_struct(struct_name, props, namespace, description, method))
        return parts

    def _render_nested_structs(
        self, scope: str, name: str, prop_type: PropertyType, namespace: str
    ) -> List[str]:
        """Inline objects become structs named after the enclosing struct."""
        if isinstance(prop_type, ArrayType):
            return self._render_nested_structs(scope, name, prop_type.items, namespace)
        if isinstance(prop_type, ObjectType) and prop_type.properties:
            return self._render_struct_with_nested(
                nested_struct_name(scope, name), prop_type.properties, namespace
            )
        return []

    def _render_struct(
        self,
        struct_name: str,
        props: Tuple[Property, ...],
        namespace: str,
        description: Optional[str] = None,
        method: Optional[str] = None,
    ) -> str:
        fields = [self._generate_field_data(prop, namespace, struct_name) for prop in props]
        return self.render_template(
            "struct.h.j2",
            {
                "struct_name": struct_name,
                "description": description,
                "method": method,
                "fields": fields,
                "indent": self.indent,
            },
        )

    def _generate_field_data(
        self, prop: Property, namespace: str, scope: Optional[str] = None
    ) -> Dict[str, Any]:
        cpp_type: CppType = self.type_mapper.map_property(prop, namespace, scope)

        comment_parts = []
        if self.add_comments:
            if prop.description:
                comment_parts.append(prop.description.strip())
            comment_parts.extend(cpp_type.validation_hints)
            if prop.deprecated:
                comment_parts.append("Deprecated.")

        return {
            "name": prop.get_cpp_name(),
            "type": cpp_type.name,
            "init": cpp_type.is_scalar,
            "comment": "\n".join(comment_parts),
        }

    def validate_protocol(self, protocol: Protocol) -> List[str]:
        """Add definition-cycle warnings to the base checks."""
        warnings = super().validate_protocol(protocol)

        self.cycles = []
        self.get_definition_order(protocol.get_types())
        for parent, child in self.cycles:
            warnings.append(
                f"Type {parent} and {child} depend on each other by value; "
                f"the generated header will not compile"
            )

        if not self.root_namespace:
            raise GeneratorError("root_namespace must not be empty")

        return warnings


def create_cpp_generator(config: Optional[Dict[str, Any]] = None) -> CppGenerator:
    """Create a C++ generator from a plain override dict."""
    from ...core.config import load_config

    return CppGenerator(load_config(custom_config=config))
