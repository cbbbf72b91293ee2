"""
Naming utilities for safe code generation.

Maps protocol names (domains, commands, events, types, properties)
onto legal C++ identifiers. Every mapping is a pure function of its
input so generated names are reproducible across runs.
"""

import re
from typing import Dict, Optional, Set, Tuple
from enum import Enum


class InvalidIdentifier(ValueError):
    """Raised when a schema name cannot become a legal C++ identifier."""

    def __init__(self, name: str, reason: str = "not a valid identifier"):
        self.name = name
        self.reason = reason
        super().__init__(f"Cannot convert {name!r} to a C++ identifier: {reason}")


class NameCollision(InvalidIdentifier):
    """Raised when two distinct schema names map to the same identifier."""

    def __init__(self, name: str, first: str, second: str):
        self.first = first
        self.second = second
        super().__init__(name, f"generated for both {first!r} and {second!r}")


class NamingCase(Enum):
    """Case adjustments applied to the leading character."""
    NAMESPACE = "namespace"  # debugger
    TYPE = "type"            # SetBreakpointRequest
    MEMBER = "member"        # callFrames (unchanged)


IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

CPP_RESERVED_WORDS = {
    'alignas', 'alignof', 'and', 'and_eq', 'asm', 'auto', 'bitand', 'bitor',
    'bool', 'break', 'case', 'catch', 'char', 'char8_t', 'char16_t',
    'char32_t', 'class', 'compl', 'concept', 'const', 'consteval',
    'constexpr', 'constinit', 'const_cast', 'continue', 'co_await',
    'co_return', 'co_yield', 'decltype', 'default', 'delete', 'do', 'double',
    'dynamic_cast', 'else', 'enum', 'explicit', 'export', 'extern', 'false',
    'float', 'for', 'friend', 'goto', 'if', 'inline', 'int', 'long',
    'mutable', 'namespace', 'new', 'noexcept', 'not', 'not_eq', 'nullptr',
    'operator', 'or', 'or_eq', 'private', 'protected', 'public', 'register',
    'reinterpret_cast', 'requires', 'return', 'short', 'signed', 'sizeof',
    'static', 'static_assert', 'static_cast', 'struct', 'switch', 'template',
    'this', 'thread_local', 'throw', 'true', 'try', 'typedef', 'typeid',
    'typename', 'union', 'unsigned', 'using', 'virtual', 'void', 'volatile',
    'wchar_t', 'while', 'xor', 'xor_eq',
}

# Names that clash with macros or std names commonly pulled into scope
CPP_BUILTIN_NAMES = {'NULL', 'EOF', 'errno', 'assert', 'std'}

DEFAULT_CACHE_SIZE = 4096


class NameSanitizer:
    """Converts schema names to C++ identifiers."""

    def __init__(self, reserved_words: Set[str] = None, builtin_names: Set[str] = None,
                 cache_size: int = DEFAULT_CACHE_SIZE):
        """
        Initialize name sanitizer.

        Args:
            reserved_words: Set of language reserved words
            builtin_names: Set of builtin names that might conflict
            cache_size: Converted names kept before the cache is reset
        """
        self.reserved_words = reserved_words or set()
        self.builtin_names = builtin_names or set()
        self.cache_size = cache_size
        self._name_cache: Dict[Tuple[str, NamingCase, str], str] = {}

    def sanitize_name(self, name: str, target_case: NamingCase = NamingCase.MEMBER,
                      suffix_on_conflict: str = "_") -> str:
        """
        Sanitize a name for use in generated C++.

        Args:
            name: Original schema name
            target_case: Case adjustment for the leading character
            suffix_on_conflict: Suffix appended to reserved words

        Returns:
            Legal identifier

        Raises:
            InvalidIdentifier: If the name is empty or has illegal characters
        """
        self._check_identifier(name)

        cache_key = (name, target_case, suffix_on_conflict)
        if cache_key in self._name_cache:
            return self._name_cache[cache_key]

        converted = self._convert_case(name, target_case)
        final_name = self._resolve_conflicts(converted, suffix_on_conflict)

        if len(self._name_cache) >= self.cache_size:
            self._name_cache.clear()
        self._name_cache[cache_key] = final_name
        return final_name

    def _check_identifier(self, name: str) -> None:
        """Reject names no sanitization rule can repair."""
        if not isinstance(name, str):
            raise InvalidIdentifier(repr(name), "not a string")
        if not name:
            raise InvalidIdentifier(name, "empty name")
        if not IDENTIFIER_PATTERN.match(name):
            raise InvalidIdentifier(name, "contains characters outside [A-Za-z0-9_]")

    def _convert_case(self, name: str, target_case: NamingCase) -> str:
        """Adjust the leading character only; the rest is kept verbatim."""
        if target_case == NamingCase.NAMESPACE:
            return name[0].lower() + name[1:]
        elif target_case == NamingCase.TYPE:
            return name[0].upper() + name[1:]
        return name

    def _resolve_conflicts(self, name: str, suffix: str) -> str:
        """Escape reserved words and builtin names."""
        if name in self.reserved_words or name in self.builtin_names:
            return f"{name}{suffix}"
        return name


def create_cpp_sanitizer() -> NameSanitizer:
    """Create a name sanitizer configured for C++."""
    return NameSanitizer(CPP_RESERVED_WORDS, CPP_BUILTIN_NAMES)


_default_sanitizer: Optional[NameSanitizer] = None


def _sanitizer() -> NameSanitizer:
    global _default_sanitizer
    if _default_sanitizer is None:
        _default_sanitizer = create_cpp_sanitizer()
    return _default_sanitizer


def to_cpp_namespace(domain: str) -> str:
    """Map a domain name to its namespace (``Debugger`` -> ``debugger``)."""
    return _sanitizer().sanitize_name(domain, NamingCase.NAMESPACE)


def to_cpp_type(type_name: str) -> str:
    """Map a schema type name to a C++ type (``pausedNotification`` -> ``PausedNotification``)."""
    return _sanitizer().sanitize_name(type_name, NamingCase.TYPE)


def to_cpp_identifier(name: str) -> str:
    """Map a property name to a struct member name (``this`` -> ``this_``)."""
    return _sanitizer().sanitize_name(name, NamingCase.MEMBER)


def nested_struct_name(scope: str, member: str) -> str:
    """
    Name of the struct generated for an inline object member.

    ``scope`` is the enclosing struct (``SetBreakpointRequest``) or a
    dotted schema owner (``setBreakpoint.options``).
    """
    parts = scope.split(".") + [member]
    return "".join(to_cpp_type(part) for part in parts)
