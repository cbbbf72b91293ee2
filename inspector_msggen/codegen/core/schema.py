"""
Core schema representation for code generation.

Parses the loosely typed protocol JSON (parameters, return values and
type members) into frozen, validated properties. Each property carries
a tagged type variant so the emitters never touch raw dictionaries.
"""

from dataclasses import dataclass
from typing import (
    AbstractSet,
    Any,
    ClassVar,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)
from enum import Enum

from ...logging_config import get_logger
from .naming import to_cpp_identifier

logger = get_logger(__name__)


class SchemaError(ValueError):
    """Raised for protocol fragments that cannot be turned into code."""

    pass


class UnresolvedTypeReference(SchemaError):
    """Raised when a ``$ref`` names a type no loaded domain declares."""

    def __init__(self, owner: str, reference: str):
        self.owner = owner
        self.reference = reference
        super().__init__(f"{owner}: unresolved type reference '{reference}'")


class PropertyKind(Enum):
    """Shapes a property type can take."""

    PRIMITIVE = "primitive"
    ENUM = "enum"
    ARRAY = "array"
    REF = "ref"
    OBJECT = "object"


# Protocol primitive type names
PRIMITIVE_TYPES = frozenset(
    {"boolean", "integer", "number", "string", "binary", "any", "object"}
)


@dataclass(frozen=True)
class PrimitiveType:
    """A builtin protocol type (``object`` here means free-form JSON)."""

    name: str
    kind: ClassVar[PropertyKind] = PropertyKind.PRIMITIVE


@dataclass(frozen=True)
class EnumType:
    """A string restricted to a fixed member list."""

    values: Tuple[str, ...]
    kind: ClassVar[PropertyKind] = PropertyKind.ENUM


@dataclass(frozen=True)
class ArrayType:
    """A homogeneous list; ``items`` is itself a property type."""

    items: "PropertyType"
    kind: ClassVar[PropertyKind] = PropertyKind.ARRAY


@dataclass(frozen=True)
class RefType:
    """A reference to a named type declared in some domain."""

    domain: str
    type_id: str
    recursive: bool = False
    kind: ClassVar[PropertyKind] = PropertyKind.REF

    @property
    def qualified_name(self) -> str:
        return f"{self.domain}.{self.type_id}"


@dataclass(frozen=True)
class ObjectType:
    """An inline object with its own ordered members."""

    properties: Tuple["Property", ...] = ()
    kind: ClassVar[PropertyKind] = PropertyKind.OBJECT


PropertyType = Union[PrimitiveType, EnumType, ArrayType, RefType, ObjectType]


def is_filtered_out(
    domain: str,
    name: str,
    experimental: Optional[bool],
    ignore_experimental: bool,
    include_experimental: AbstractSet[str],
) -> bool:
    """
    Decide whether an experimental entity is dropped.

    An entity is dropped only when experimental entities are being ignored,
    the entity is experimental, and ``"{domain}.{name}"`` is not on the
    inclusion allow-list.
    """
    return bool(
        ignore_experimental
        and experimental
        and f"{domain}.{name}" not in include_experimental
    )


class TypeIndex:
    """Read-only lookup of every type declared by the loaded domains."""

    def __init__(self, entries: Optional[Mapping[str, str]] = None):
        """
        Args:
            entries: Qualified type name (``Domain.Type``) to raw type kind
        """
        self._entries: Dict[str, str] = dict(entries or {})

    @classmethod
    def from_raw_domains(cls, raw_domains: List[Mapping[str, Any]]) -> "TypeIndex":
        """Collect type ids from raw domain objects."""
        entries = {}
        for raw_domain in raw_domains:
            if not isinstance(raw_domain, Mapping):
                raise SchemaError("Domain entries must be objects")
            domain = raw_domain.get("domain") or raw_domain.get("name")
            raw_types = raw_domain.get("types") or []
            if not isinstance(raw_types, list):
                raise SchemaError(f"{domain}: 'types' must be an array")
            for raw_type in raw_types:
                type_id = raw_type.get("id") if isinstance(raw_type, Mapping) else None
                if not isinstance(type_id, str) or not type_id:
                    raise SchemaError(f"{domain}: type without an 'id'")
                entries[f"{domain}.{type_id}"] = raw_type.get("type", "object")
        return cls(entries)

    def __contains__(self, qualified_name: str) -> bool:
        return qualified_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def kind_of(self, qualified_name: str) -> Optional[str]:
        """Raw ``type`` of a declared type, or None if unknown."""
        return self._entries.get(qualified_name)

    def names(self) -> List[str]:
        return sorted(self._entries)


def split_reference(domain: str, ref: str) -> Tuple[str, str]:
    """Split ``Runtime.RemoteObject`` or a domain-local ``Location``."""
    if "." in ref:
        ref_domain, _, type_id = ref.partition(".")
        return ref_domain, type_id
    return domain, ref


@dataclass(frozen=True)
class Property:
    """A single typed field of a command, event or object type."""

    domain: str
    owner: str
    name: str
    type: PropertyType
    optional: bool = False
    description: Optional[str] = None
    experimental: Optional[bool] = None
    deprecated: Optional[bool] = None

    @classmethod
    def create(
        cls,
        domain: str,
        owner: str,
        raw: Mapping[str, Any],
        ignore_experimental: bool = False,
        include_experimental: AbstractSet[str] = frozenset(),
        type_index: Optional[TypeIndex] = None,
        self_type: Optional[str] = None,
    ) -> "Property":
        """
        Build a property from its raw schema fragment.

        Args:
            domain: Owning domain name
            owner: Owning command, event or type name (dotted for nested members)
            raw: Raw property object
            ignore_experimental: Drop experimental nested members
            include_experimental: Qualified names exempt from filtering
            type_index: Declared types used to check ``$ref`` targets
            self_type: Qualified name of the type being defined, if any

        Raises:
            SchemaError: For malformed fragments
            UnresolvedTypeReference: For unknown ``$ref`` targets
            InvalidIdentifier: For names that are not legal identifiers
        """
        if not isinstance(raw, Mapping):
            raise SchemaError(f"{domain}.{owner}: property must be an object")

        name = raw.get("name")
        if not isinstance(name, str) or not name:
            raise SchemaError(f"{domain}.{owner}: property without a 'name'")
        to_cpp_identifier(name)

        prop_type = parse_property_type(
            domain,
            owner,
            name,
            raw,
            ignore_experimental,
            include_experimental,
            type_index,
            self_type,
        )

        return cls(
            domain=domain,
            owner=owner,
            name=name,
            type=prop_type,
            optional=bool(raw.get("optional", False)),
            description=raw.get("description"),
            experimental=raw.get("experimental"),
            deprecated=raw.get("deprecated"),
        )

    @classmethod
    def create_array(
        cls,
        domain: str,
        owner: str,
        raw_fields: Optional[List[Mapping[str, Any]]],
        ignore_experimental: bool = False,
        include_experimental: AbstractSet[str] = frozenset(),
        type_index: Optional[TypeIndex] = None,
        self_type: Optional[str] = None,
    ) -> Tuple["Property", ...]:
        """
        Build the ordered properties of one owner, dropping filtered ones.

        A property is kept when any dotted prefix of its qualified name
        passes the experimental filter, so listing a command (or a nested
        member) on the allow-list keeps everything below it.
        """
        if raw_fields is None:
            return ()
        if not isinstance(raw_fields, list):
            raise SchemaError(f"{domain}.{owner}: property list must be an array")

        props = []
        for raw in raw_fields:
            name = raw.get("name") if isinstance(raw, Mapping) else None
            experimental = raw.get("experimental") if isinstance(raw, Mapping) else None

            parts = f"{owner}.{name}".split(".")
            keys = [".".join(parts[:end]) for end in range(1, len(parts) + 1)]
            if all(
                is_filtered_out(
                    domain, key, experimental, ignore_experimental, include_experimental
                )
                for key in keys
            ):
                logger.debug("Skipping experimental property %s.%s.%s", domain, owner, name)
                continue

            props.append(
                cls.create(
                    domain,
                    owner,
                    raw,
                    ignore_experimental,
                    include_experimental,
                    type_index,
                    self_type,
                )
            )

        return tuple(props)

    def get_qualified_name(self) -> str:
        return f"{self.domain}.{self.owner}.{self.name}"

    def get_cpp_name(self) -> str:
        return to_cpp_identifier(self.name)

    def iter_references(self) -> Iterator[RefType]:
        """Yield every type reference reachable from this property."""
        yield from iter_type_references(self.type)


def iter_type_references(prop_type: PropertyType) -> Iterator[RefType]:
    """Walk a property type and yield the references it contains."""
    if isinstance(prop_type, RefType):
        yield prop_type
    elif isinstance(prop_type, ArrayType):
        yield from iter_type_references(prop_type.items)
    elif isinstance(prop_type, ObjectType):
        for prop in prop_type.properties:
            yield from prop.iter_references()


def parse_property_type(
    domain: str,
    owner: str,
    name: str,
    raw: Mapping[str, Any],
    ignore_experimental: bool = False,
    include_experimental: AbstractSet[str] = frozenset(),
    type_index: Optional[TypeIndex] = None,
    self_type: Optional[str] = None,
    allow_recursive: bool = True,
) -> PropertyType:
    """
    Resolve the type variant of a raw property, type or array item.

    Args:
        domain: Domain the fragment belongs to
        owner: Owning entity name, used for diagnostics and nested scoping
        name: Property name (or type id for type definitions)
        raw: Raw fragment with ``type``/``$ref``/``enum``/``items``/``properties``
        self_type: Qualified name of the enclosing type definition
        allow_recursive: False inside containers, which tolerate incomplete types
    """
    context = f"{domain}.{owner}"

    if "$ref" in raw:
        ref = raw["$ref"]
        if not isinstance(ref, str) or not ref:
            raise SchemaError(f"{context}: '$ref' of {name!r} must be a string")
        ref_domain, type_id = split_reference(domain, ref)
        qualified = f"{ref_domain}.{type_id}"
        if type_index is not None and qualified not in type_index:
            raise UnresolvedTypeReference(context, qualified)
        return RefType(
            domain=ref_domain,
            type_id=type_id,
            recursive=allow_recursive and qualified == self_type,
        )

    raw_type = raw.get("type")
    if raw_type is None:
        raise SchemaError(f"{context}: {name!r} has neither 'type' nor '$ref'")

    if raw_type == "array":
        items = raw.get("items")
        if not isinstance(items, Mapping):
            raise SchemaError(f"{context}: array {name!r} has no 'items'")
        return ArrayType(
            items=parse_property_type(
                domain,
                owner,
                name,
                items,
                ignore_experimental,
                include_experimental,
                type_index,
                self_type,
                allow_recursive=False,
            )
        )

    if "enum" in raw:
        values = raw["enum"]
        if (
            raw_type != "string"
            or not isinstance(values, list)
            or not all(isinstance(v, str) for v in values)
        ):
            raise SchemaError(f"{context}: enum {name!r} must list string values")
        return EnumType(values=tuple(values))

    if raw_type == "object" and raw.get("properties"):
        return ObjectType(
            properties=Property.create_array(
                domain,
                f"{owner}.{name}",
                raw["properties"],
                ignore_experimental,
                include_experimental,
                type_index,
                self_type,
            )
        )

    if raw_type not in PRIMITIVE_TYPES:
        raise SchemaError(f"{context}: unknown type {raw_type!r} for {name!r}")

    return PrimitiveType(name=raw_type)


def create_properties(
    domain: str,
    owner: str,
    raw_fields: Optional[List[Mapping[str, Any]]],
    ignore_experimental: bool = False,
    include_experimental: AbstractSet[str] = frozenset(),
    type_index: Optional[TypeIndex] = None,
) -> Tuple[Property, ...]:
    """Convenience wrapper around :meth:`Property.create_array`."""
    return Property.create_array(
        domain, owner, raw_fields, ignore_experimental, include_experimental, type_index
    )
