"""
C++ code generator module.

Generates C++ message structs and forward declarations from a protocol.
"""

from ...core.naming import nested_struct_name
from .generator import CppGenerator, create_cpp_generator
from .types import CppType, CppTypeConfig, CppTypeMapper

__all__ = [
    "CppGenerator",
    "CppType",
    "CppTypeConfig",
    "CppTypeMapper",
    "create_cpp_generator",
    "nested_struct_name",
]
