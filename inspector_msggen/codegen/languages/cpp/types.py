"""
C++-specific type system for code generation.

Maps resolved property types onto C++ spellings, honouring the
configured container, optional and pointer templates.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...core.naming import nested_struct_name, to_cpp_namespace, to_cpp_type
from ...core.schema import (
    ArrayType,
    EnumType,
    ObjectType,
    PrimitiveType,
    Property,
    PropertyType,
    RefType,
)
from ...core.config import DEFAULT_TYPE_SETTINGS


@dataclass(frozen=True)
class CppType:
    """
    Immutable representation of a C++ type with its metadata.

    ``name`` is the full spelling used in a declaration; ``base_name``
    is the spelling without optional/pointer wrapping.
    """

    name: str
    base_name: str = field(default="")
    is_optional: bool = field(default=False)
    is_pointer: bool = field(default=False)
    is_scalar: bool = field(default=False)  # Needs value-initialization
    validation_hints: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.base_name:
            object.__setattr__(self, "base_name", self.name)

    def wrapped(self, template: str, **changes: Any) -> "CppType":
        """Return this type wrapped in ``template<...>``."""
        return CppType(
            name=f"{template}<{self.name}>",
            base_name=self.base_name,
            is_optional=changes.get("is_optional", self.is_optional),
            is_pointer=changes.get("is_pointer", self.is_pointer),
            is_scalar=False,
            validation_hints=self.validation_hints,
        )


@dataclass
class CppTypeConfig:
    """Configuration for C++ type mapping behavior."""

    bool_type: str = "bool"
    int_type: str = "int"
    double_type: str = "double"
    string_type: str = "std::string"
    dynamic_type: str = "folly::dynamic"
    optional_template: str = "std::optional"
    array_template: str = "std::vector"
    pointer_template: str = "std::unique_ptr"

    @classmethod
    def from_custom(cls, custom: Optional[Dict[str, Any]] = None) -> "CppTypeConfig":
        """Build from the ``custom`` section of a GeneratorConfig."""
        settings = dict(DEFAULT_TYPE_SETTINGS)
        settings.update(
            {k: v for k, v in (custom or {}).items() if k in DEFAULT_TYPE_SETTINGS}
        )
        return cls(**settings)


class CppTypeMapper:
    """Maps schema property types to C++ types."""

    def __init__(self, config: Optional[CppTypeConfig] = None):
        """Initialize with type configuration."""
        self.config = config or CppTypeConfig()
        self._primitive_types = self._build_primitive_type_map()

    def _build_primitive_type_map(self) -> Dict[str, CppType]:
        dynamic = CppType(name=self.config.dynamic_type)
        string = CppType(name=self.config.string_type)
        return {
            "boolean": CppType(name=self.config.bool_type, is_scalar=True),
            "integer": CppType(name=self.config.int_type, is_scalar=True),
            "number": CppType(name=self.config.double_type, is_scalar=True),
            "string": string,
            "binary": string,
            "any": dynamic,
            "object": dynamic,
        }

    def map_property(
        self, prop: Property, namespace: str, scope: Optional[str] = None
    ) -> CppType:
        """
        Map a property to the C++ type of its struct member.

        Args:
            prop: Property to map
            namespace: Namespace the enclosing struct lives in
            scope: Enclosing struct name, used to name inline object members
        """
        base_type = self.map_type(
            prop.type, namespace, nested_struct_name(scope or prop.owner, prop.name)
        )

        if base_type.is_pointer:
            # unique_ptr already models absence
            return base_type
        if prop.optional:
            return base_type.wrapped(self.config.optional_template, is_optional=True)
        return base_type

    def map_type(self, prop_type: PropertyType, namespace: str, nested_name: str = "") -> CppType:
        """Map a property type without considering optionality."""
        if isinstance(prop_type, PrimitiveType):
            return self._primitive_types[prop_type.name]

        elif isinstance(prop_type, EnumType):
            return CppType(
                name=self.config.string_type,
                validation_hints=[f"One of: {', '.join(prop_type.values)}"],
            )

        elif isinstance(prop_type, ArrayType):
            item_type = self.map_type(prop_type.items, namespace, nested_name)
            return CppType(name=f"{self.config.array_template}<{item_type.name}>")

        elif isinstance(prop_type, RefType):
            return self._map_ref_type(prop_type, namespace)

        elif isinstance(prop_type, ObjectType):
            if prop_type.properties:
                return CppType(name=nested_name)
            return self._primitive_types["object"]

        raise TypeError(f"Unsupported property type: {prop_type!r}")

    def _map_ref_type(self, ref: RefType, namespace: str) -> CppType:
        """Qualify references that cross namespaces; box recursive ones."""
        ref_namespace = to_cpp_namespace(ref.domain)
        type_name = to_cpp_type(ref.type_id)
        if ref_namespace != namespace:
            type_name = f"{ref_namespace}::{type_name}"

        ref_type = CppType(name=type_name)
        if ref.recursive:
            return ref_type.wrapped(self.config.pointer_template, is_pointer=True)
        return ref_type

