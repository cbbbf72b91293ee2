"""
Protocol object model: domains, types, commands and events.

Every entity is built once from the raw protocol JSON and is frozen
afterwards. Experimental entities are dropped by the ``create``
factories, which return None instead of raising.
"""

from dataclasses import dataclass
from typing import AbstractSet, Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from ...logging_config import get_logger
from .naming import NameCollision, nested_struct_name, to_cpp_namespace, to_cpp_type
from .schema import (
    ArrayType,
    ObjectType,
    Property,
    PropertyType,
    SchemaError,
    TypeIndex,
    UnresolvedTypeReference,
    is_filtered_out,
    iter_type_references,
    parse_property_type,
)

logger = get_logger(__name__)


def _require_name(raw: Any, key: str, context: str) -> str:
    """Fetch a mandatory name field from a raw schema object."""
    if not isinstance(raw, Mapping):
        raise SchemaError(f"{context}: expected an object, got {type(raw).__name__}")
    value = raw.get(key)
    if not isinstance(value, str) or not value:
        raise SchemaError(f"{context}: missing '{key}'")
    return value


def nested_struct_names(scope: str, member: str, prop_type: PropertyType) -> List[str]:
    """Structs generated for an inline object member, outermost first."""
    while isinstance(prop_type, ArrayType):
        prop_type = prop_type.items
    if not (isinstance(prop_type, ObjectType) and prop_type.properties):
        return []

    name = nested_struct_name(scope, member)
    names = [name]
    for prop in prop_type.properties:
        names.extend(nested_struct_names(name, prop.name, prop.type))
    return names


def _members_nested_names(scope: str, props: Tuple[Property, ...]) -> List[str]:
    names = []
    for prop in props:
        names.extend(nested_struct_names(scope, prop.name, prop.type))
    return names


@dataclass(frozen=True)
class Command:
    """A request/response protocol method."""

    domain: str
    name: str
    description: Optional[str] = None
    experimental: Optional[bool] = None
    parameters: Tuple[Property, ...] = ()
    returns: Tuple[Property, ...] = ()

    def __post_init__(self):
        # Invalid names fail at construction
        self.get_cpp_namespace()
        self.get_request_cpp_type()
        self.get_response_cpp_type()

    @classmethod
    def create(
        cls,
        domain: str,
        raw: Mapping[str, Any],
        ignore_experimental: bool = False,
        include_experimental: AbstractSet[str] = frozenset(),
        type_index: Optional[TypeIndex] = None,
    ) -> Optional["Command"]:
        """
        Build a command, or return None if it is filtered out.

        Args:
            domain: Owning domain name
            raw: Raw command object
            ignore_experimental: Drop experimental entities
            include_experimental: Qualified names exempt from filtering
            type_index: Declared types used to check ``$ref`` targets
        """
        name = _require_name(raw, "name", f"{domain} command")
        if is_filtered_out(
            domain, name, raw.get("experimental"), ignore_experimental, include_experimental
        ):
            logger.debug("Skipping experimental command %s.%s", domain, name)
            return None

        return cls(
            domain=domain,
            name=name,
            description=raw.get("description"),
            experimental=raw.get("experimental"),
            parameters=Property.create_array(
                domain,
                name,
                raw.get("parameters"),
                ignore_experimental,
                include_experimental,
                type_index,
            ),
            returns=Property.create_array(
                domain,
                name,
                raw.get("returns"),
                ignore_experimental,
                include_experimental,
                type_index,
            ),
        )

    def get_debugger_name(self) -> str:
        return f"{self.domain}.{self.name}"

    def get_cpp_namespace(self) -> str:
        return to_cpp_namespace(self.domain)

    def get_request_cpp_type(self) -> str:
        return to_cpp_type(self.name + "Request")

    def get_response_cpp_type(self) -> Optional[str]:
        """Response struct name; None for commands that return nothing."""
        if self.returns:
            return to_cpp_type(self.name + "Response")
        return None

    def get_cpp_types(self) -> List[str]:
        types = [self.get_request_cpp_type()]
        response = self.get_response_cpp_type()
        if response:
            types.append(response)
        return types

    def get_nested_cpp_types(self) -> List[str]:
        """Structs for inline objects, scoped by the request or response type."""
        names = _members_nested_names(self.get_request_cpp_type(), self.parameters)
        response = self.get_response_cpp_type()
        if response:
            names.extend(_members_nested_names(response, self.returns))
        return names

    def get_forward_decls(self) -> List[str]:
        """Request declaration first, then the response one if present."""
        return [f"struct {cpp_type};" for cpp_type in self.get_cpp_types()]

    def get_forward_decl_sort_key(self) -> str:
        return self.get_request_cpp_type()


@dataclass(frozen=True)
class Event:
    """A one-way protocol notification."""

    domain: str
    name: str
    description: Optional[str] = None
    experimental: Optional[bool] = None
    parameters: Tuple[Property, ...] = ()

    def __post_init__(self):
        self.get_cpp_namespace()
        self.get_cpp_type()

    @classmethod
    def create(
        cls,
        domain: str,
        raw: Mapping[str, Any],
        ignore_experimental: bool = False,
        include_experimental: AbstractSet[str] = frozenset(),
        type_index: Optional[TypeIndex] = None,
    ) -> Optional["Event"]:
        """Build an event, or return None if it is filtered out."""
        name = _require_name(raw, "name", f"{domain} event")
        if is_filtered_out(
            domain, name, raw.get("experimental"), ignore_experimental, include_experimental
        ):
            logger.debug("Skipping experimental event %s.%s", domain, name)
            return None

        return cls(
            domain=domain,
            name=name,
            description=raw.get("description"),
            experimental=raw.get("experimental"),
            parameters=Property.create_array(
                domain,
                name,
                raw.get("parameters"),
                ignore_experimental,
                include_experimental,
                type_index,
            ),
        )

    def get_debugger_name(self) -> str:
        return f"{self.domain}.{self.name}"

    def get_cpp_namespace(self) -> str:
        return to_cpp_namespace(self.domain)

    def get_cpp_type(self) -> str:
        return to_cpp_type(self.name + "Notification")

    def get_cpp_types(self) -> List[str]:
        return [self.get_cpp_type()]

    def get_nested_cpp_types(self) -> List[str]:
        return _members_nested_names(self.get_cpp_type(), self.parameters)

    def get_forward_decls(self) -> List[str]:
        return [f"struct {self.get_cpp_type()};"]

    def get_forward_decl_sort_key(self) -> str:
        return self.get_cpp_type()


@dataclass(frozen=True)
class TypeDefinition:
    """A named type from a domain's ``types`` section."""

    domain: str
    id: str
    type: PropertyType
    description: Optional[str] = None
    experimental: Optional[bool] = None

    def __post_init__(self):
        self.get_cpp_namespace()
        self.get_cpp_type()

    @classmethod
    def create(
        cls,
        domain: str,
        raw: Mapping[str, Any],
        ignore_experimental: bool = False,
        include_experimental: AbstractSet[str] = frozenset(),
        type_index: Optional[TypeIndex] = None,
    ) -> Optional["TypeDefinition"]:
        """Build a type definition, or return None if it is filtered out."""
        type_id = _require_name(raw, "id", f"{domain} type")
        if is_filtered_out(
            domain, type_id, raw.get("experimental"), ignore_experimental, include_experimental
        ):
            logger.debug("Skipping experimental type %s.%s", domain, type_id)
            return None

        # Object types keep their members even when the list is empty
        if raw.get("type") == "object" and "properties" in raw:
            body = ObjectType(
                properties=Property.create_array(
                    domain,
                    type_id,
                    raw.get("properties"),
                    ignore_experimental,
                    include_experimental,
                    type_index,
                    self_type=f"{domain}.{type_id}",
                )
            )
        else:
            body = parse_property_type(
                domain,
                type_id,
                type_id,
                raw,
                ignore_experimental,
                include_experimental,
                type_index,
                self_type=f"{domain}.{type_id}",
            )

        return cls(
            domain=domain,
            id=type_id,
            type=body,
            description=raw.get("description"),
            experimental=raw.get("experimental"),
        )

    @property
    def is_object(self) -> bool:
        return isinstance(self.type, ObjectType)

    def get_debugger_name(self) -> str:
        return f"{self.domain}.{self.id}"

    def get_cpp_namespace(self) -> str:
        return to_cpp_namespace(self.domain)

    def get_cpp_type(self) -> str:
        return to_cpp_type(self.id)

    def get_cpp_types(self) -> List[str]:
        return [self.get_cpp_type()]

    def get_nested_cpp_types(self) -> List[str]:
        """Structs for inline objects; an alias of inline objects uses ``Item``."""
        if isinstance(self.type, ObjectType):
            return _members_nested_names(self.get_cpp_type(), self.type.properties)
        return nested_struct_names(self.get_cpp_type(), "Item", self.type)

    def get_forward_decls(self) -> List[str]:
        """Only structs can be forward declared; aliases and enums cannot."""
        if self.is_object:
            return [f"struct {self.get_cpp_type()};"]
        return []

    def get_forward_decl_sort_key(self) -> str:
        return self.get_cpp_type()

    def get_dependencies(self) -> List[str]:
        """Qualified names of other types needed before this definition."""
        deps = []
        for ref in iter_type_references(self.type):
            if ref.recursive or ref.qualified_name == self.get_debugger_name():
                continue
            if ref.qualified_name not in deps:
                deps.append(ref.qualified_name)
        return deps


Declarable = Union[TypeDefinition, Command, Event]


@dataclass(frozen=True)
class Domain:
    """A named group of types, commands and events; one C++ namespace."""

    name: str
    description: Optional[str] = None
    experimental: Optional[bool] = None
    deprecated: Optional[bool] = None
    dependencies: Tuple[str, ...] = ()
    types: Tuple[TypeDefinition, ...] = ()
    commands: Tuple[Command, ...] = ()
    events: Tuple[Event, ...] = ()

    def __post_init__(self):
        self.get_cpp_namespace()

    @classmethod
    def create(
        cls,
        raw: Mapping[str, Any],
        ignore_experimental: bool = False,
        include_experimental: AbstractSet[str] = frozenset(),
        type_index: Optional[TypeIndex] = None,
    ) -> Optional["Domain"]:
        """
        Build a domain and everything it owns.

        Experimental domains are filtered on their bare name, so listing
        ``Profiler`` in the inclusion set keeps an experimental Profiler.
        """
        if isinstance(raw, Mapping) and "domain" in raw:
            name = _require_name(raw, "domain", "domain")
        else:
            name = _require_name(raw, "name", "domain")

        experimental = raw.get("experimental")
        if ignore_experimental and experimental and name not in include_experimental:
            logger.debug("Skipping experimental domain %s", name)
            return None

        for key in ("types", "commands", "events"):
            if raw.get(key) is not None and not isinstance(raw.get(key), list):
                raise SchemaError(f"{name}: '{key}' must be an array")

        types = _create_all(
            TypeDefinition, name, raw.get("types"), ignore_experimental,
            include_experimental, type_index,
        )
        commands = _create_all(
            Command, name, raw.get("commands"), ignore_experimental,
            include_experimental, type_index,
        )
        events = _create_all(
            Event, name, raw.get("events"), ignore_experimental,
            include_experimental, type_index,
        )

        domain = cls(
            name=name,
            description=raw.get("description"),
            experimental=experimental,
            deprecated=raw.get("deprecated"),
            dependencies=tuple(raw.get("dependencies") or ()),
            types=types,
            commands=commands,
            events=events,
        )
        domain.check_collisions()
        return domain

    def get_cpp_namespace(self) -> str:
        return to_cpp_namespace(self.name)

    def get_forward_decl_entries(self) -> List[Declarable]:
        """Types, commands and events sorted by generated type name."""
        entries: List[Declarable] = [*self.types, *self.commands, *self.events]
        return sorted(entries, key=lambda e: e.get_forward_decl_sort_key())

    def get_forward_decls(self) -> List[str]:
        decls = []
        for entry in self.get_forward_decl_entries():
            decls.extend(entry.get_forward_decls())
        return decls

    def get_type(self, type_id: str) -> Optional[TypeDefinition]:
        for type_def in self.types:
            if type_def.id == type_id:
                return type_def
        return None

    def check_collisions(self) -> None:
        """Raise if two structs or aliases would get the same C++ name."""
        seen: Dict[str, str] = {}
        for entry in [*self.types, *self.commands, *self.events]:
            for cpp_type in [*entry.get_cpp_types(), *entry.get_nested_cpp_types()]:
                previous = seen.get(cpp_type)
                if previous is not None:
                    raise NameCollision(
                        f"{self.get_cpp_namespace()}::{cpp_type}",
                        previous,
                        entry.get_debugger_name(),
                    )
                seen[cpp_type] = entry.get_debugger_name()


def _create_all(factory, domain, raw_items, ignore_experimental, include_experimental, type_index):
    created = (
        factory.create(domain, raw, ignore_experimental, include_experimental, type_index)
        for raw in raw_items or []
    )
    return tuple(item for item in created if item is not None)


@dataclass(frozen=True)
class Protocol:
    """All domains of one generation run."""

    domains: Tuple[Domain, ...] = ()
    type_index: TypeIndex = None
    ignore_experimental: bool = False
    include_experimental: frozenset = frozenset()

    @classmethod
    def from_raw(
        cls,
        raw: Union[Mapping[str, Any], List[Any]],
        ignore_experimental: bool = False,
        include_experimental: Iterable[str] = (),
    ) -> "Protocol":
        """
        Build the protocol from one or more raw protocol documents.

        Accepts ``{"domains": [...]}``, a single domain object, or a list
        of either (e.g. the JS and browser protocol files together).

        Raises:
            SchemaError: Malformed input or unresolved references
            InvalidIdentifier: Names that cannot be generated
        """
        include = frozenset(include_experimental)
        raw_domains = collect_raw_domains(raw)

        # Every declared type is known before any reference is resolved
        type_index = TypeIndex.from_raw_domains(raw_domains)

        domains = []
        namespaces: Dict[str, str] = {}
        for raw_domain in raw_domains:
            domain = Domain.create(raw_domain, ignore_experimental, include, type_index)
            if domain is None:
                continue

            namespace = domain.get_cpp_namespace()
            if namespace in namespaces:
                raise NameCollision(namespace, namespaces[namespace], domain.name)
            namespaces[namespace] = domain.name
            domains.append(domain)

        protocol = cls(
            domains=tuple(domains),
            type_index=type_index,
            ignore_experimental=ignore_experimental,
            include_experimental=include,
        )
        protocol.check_references()

        logger.info(
            "Loaded %d domains (%d types, %d commands, %d events)",
            len(protocol.domains),
            protocol.count("types"),
            protocol.count("commands"),
            protocol.count("events"),
        )
        return protocol

    def count(self, collection: str) -> int:
        return sum(len(getattr(domain, collection)) for domain in self.domains)

    def get_domain(self, name: str) -> Optional[Domain]:
        for domain in self.domains:
            if domain.name == name:
                return domain
        return None

    def sorted_domains(self) -> List[Domain]:
        return sorted(self.domains, key=lambda d: d.get_cpp_namespace())

    def get_types(self) -> Dict[str, TypeDefinition]:
        """All surviving type definitions keyed by qualified name."""
        return {
            type_def.get_debugger_name(): type_def
            for domain in self.domains
            for type_def in domain.types
        }

    def check_references(self) -> None:
        """
        Fail if a kept entity references a type that filtering removed.

        The type index covers every declared type, so this only triggers
        for experimental types dropped by ``ignore_experimental``.
        """
        available: Set[str] = set(self.get_types())
        for domain in self.domains:
            for entry in [*domain.types, *domain.commands, *domain.events]:
                for ref_name in _entry_references(entry):
                    if ref_name not in available:
                        raise UnresolvedTypeReference(entry.get_debugger_name(), ref_name)


def _entry_references(entry: Declarable) -> List[str]:
    if isinstance(entry, TypeDefinition):
        return [ref.qualified_name for ref in iter_type_references(entry.type)]
    props = list(entry.parameters)
    if isinstance(entry, Command):
        props.extend(entry.returns)
    return [ref.qualified_name for prop in props for ref in prop.iter_references()]


def collect_raw_domains(raw: Union[Mapping[str, Any], List[Any]]) -> List[Mapping[str, Any]]:
    """Flatten protocol documents into a list of raw domain objects."""
    if isinstance(raw, list):
        domains = []
        for item in raw:
            domains.extend(collect_raw_domains(item))
        return domains

    if not isinstance(raw, Mapping):
        raise SchemaError(f"Protocol must be an object or array, got {type(raw).__name__}")

    if "domains" in raw:
        if not isinstance(raw["domains"], list):
            raise SchemaError("'domains' must be an array")
        return list(raw["domains"])

    if "domain" in raw or "name" in raw:
        return [raw]

    raise SchemaError("Protocol object has no 'domains'")
