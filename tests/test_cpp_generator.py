"""Tests for the C++ header generator."""

import pytest

from inspector_msggen.codegen import generate_from_protocol, quick_generate
from inspector_msggen.codegen.core.config import GeneratorConfig, load_config
from inspector_msggen.codegen.core.generator import generate_code
from inspector_msggen.codegen.core.protocol import Protocol
from inspector_msggen.codegen.languages.cpp import (
    CppGenerator,
    CppTypeConfig,
    CppTypeMapper,
    create_cpp_generator,
    nested_struct_name,
)
from inspector_msggen.codegen.core.schema import Property, TypeIndex


CONSOLE_PROTOCOL = {
    "domains": [
        {
            "domain": "Console",
            "types": [{"id": "MessageId", "type": "string"}],
            "commands": [{"name": "clear"}],
            "events": [
                {
                    "name": "messageAdded",
                    "parameters": [
                        {"name": "id", "$ref": "MessageId"},
                        {"name": "level", "type": "integer", "optional": True},
                    ],
                }
            ],
        }
    ]
}

CONSOLE_HEADER = """\
// Generated by inspector-msggen. DO NOT EDIT.

#pragma once

#include <string>

namespace test {

namespace console {
struct ClearRequest;
struct MessageAddedNotification;
} // namespace console

namespace console {

using MessageId = std::string;

struct ClearRequest {
  static constexpr const char *kMethod = "Console.clear";
};

struct MessageAddedNotification {
  static constexpr const char *kMethod = "Console.messageAdded";

  MessageId id;
  std::optional<int> level;
};

} // namespace console

} // namespace test
"""


@pytest.fixture
def generator():
    return CppGenerator(GeneratorConfig())


@pytest.fixture
def header(generator, protocol):
    result = generate_code(generator, protocol, ["js_protocol.json"])
    assert result.success, result.error_message
    return result.code


def test_small_protocol_header():
    config = GeneratorConfig(root_namespace="test", includes=["<string>"])
    result = generate_code(CppGenerator(config), Protocol.from_raw(CONSOLE_PROTOCOL))
    assert result.code == CONSOLE_HEADER


class TestHeaderLayout:
    def test_banner_and_sources(self, header):
        assert header.startswith("// Generated by inspector-msggen. DO NOT EDIT.\n")
        assert "// Generated from: js_protocol.json" in header
        assert "#pragma once" in header
        assert "#include <folly/dynamic.h>" in header

    def test_root_namespace(self, header):
        assert "namespace facebook::hermes::inspector::chrome::message {" in header
        assert header.rstrip().endswith(
            "} // namespace facebook::hermes::inspector::chrome::message"
        )

    def test_forward_decls_grouped_by_namespace(self, header):
        assert "namespace debugger {\nstruct CallFrame;\nstruct EnableRequest;\n" in header
        assert header.index("struct CallFrame;") < header.index("struct EvaluateRequest;")

    def test_forward_decls_precede_definitions(self, header):
        assert header.index("struct PausedNotification;") < header.index(
            "struct PausedNotification {"
        )

    def test_templates_registered(self, generator):
        assert generator.template_exists("header.h.j2")
        assert generator.template_exists("struct.h.j2")
        assert not generator.template_exists("class.h.j2")

    def test_output_is_deterministic(self, generator, protocol):
        first = generate_code(generator, protocol).code
        second = generate_code(CppGenerator(GeneratorConfig()), protocol).code
        assert first == second


class TestTypeDefinitions:
    def test_definition_order(self, generator, protocol):
        order = generator.get_definition_order(protocol.get_types())
        assert order == [
            "Debugger.Location",
            "Runtime.RemoteObjectId",
            "Runtime.RemoteObject",
            "Debugger.Scope",
            "Debugger.CallFrame",
        ]
        assert generator.cycles == []

    def test_struct_fields(self, header):
        assert "struct Location {" in header
        assert "  int lineNumber{};" in header
        assert "  std::optional<int> columnNumber;" in header
        assert "  std::string scriptId;" in header

    def test_cross_namespace_reference(self, header):
        assert "  runtime::RemoteObject this_;" in header
        assert "  runtime::RemoteObject object;" in header
        assert "  std::vector<Scope> scopeChain;" in header

    def test_alias_and_dynamic(self, header):
        assert "using RemoteObjectId = std::string;" in header
        assert "  std::optional<folly::dynamic> value;" in header
        assert "  std::optional<RemoteObjectId> objectId;" in header

    def test_enum_comment(self, header):
        assert "  // One of: object, function, undefined\n  std::string type;" in header

    def test_description_comment(self, header):
        assert "// Mirror object referencing original JavaScript object.\nstruct RemoteObject {" in header

    def test_enum_alias_lists_values(self, generator):
        protocol = Protocol.from_raw(
            {"domain": "Page", "types": [{"id": "Mode", "type": "string", "enum": ["a", "b"]}]}
        )
        code = generate_code(generator, protocol).code
        assert '// Allowed values: "a", "b"\nusing Mode = std::string;' in code

    def test_recursive_member_is_boxed(self, generator):
        protocol = Protocol.from_raw(
            {
                "domain": "DOM",
                "types": [
                    {
                        "id": "Node",
                        "type": "object",
                        "properties": [
                            {"name": "parent", "$ref": "Node", "optional": True},
                            {"name": "children", "type": "array", "items": {"$ref": "Node"}},
                        ],
                    }
                ],
            }
        )
        result = generate_code(generator, protocol)
        assert "  std::unique_ptr<Node> parent;" in result.code
        assert "  std::vector<Node> children;" in result.code
        assert result.warnings == []

    def test_by_value_cycle_warns(self, generator):
        protocol = Protocol.from_raw(
            {
                "domain": "Graph",
                "types": [
                    {"id": "A", "type": "object", "properties": [{"name": "b", "$ref": "B"}]},
                    {"id": "B", "type": "object", "properties": [{"name": "a", "$ref": "A"}]},
                ],
            }
        )
        result = generate_code(generator, protocol)
        assert result.success
        assert any("depend on each other" in w for w in result.warnings)


class TestMessages:
    def test_request_has_method(self, header):
        assert (
            "struct SetBreakpointRequest {\n"
            '  static constexpr const char *kMethod = "Debugger.setBreakpoint";\n'
        ) in header

    def test_response_follows_request(self, header):
        request = header.index("struct SetBreakpointRequest {")
        response = header.index("struct SetBreakpointResponse {")
        assert request < response
        assert "  Location actualLocation;" in header[response:]

    def test_command_without_returns_has_no_response(self, header):
        assert "struct EnableRequest {" in header
        assert "EnableResponse" not in header

    def test_event_notification(self, header):
        assert (
            "struct PausedNotification {\n"
            '  static constexpr const char *kMethod = "Debugger.paused";\n'
        ) in header
        assert "  std::vector<CallFrame> callFrames;" in header

    def test_inline_object_emitted_before_parent(self, generator):
        protocol = Protocol.from_raw(
            {
                "domain": "Debugger",
                "commands": [
                    {
                        "name": "setBreakpoint",
                        "parameters": [
                            {
                                "name": "options",
                                "type": "object",
                                "properties": [{"name": "hitCount", "type": "integer"}],
                            }
                        ],
                    }
                ],
            }
        )
        code = generate_code(generator, protocol).code
        nested = code.index("struct SetBreakpointRequestOptions {")
        parent = code.index("struct SetBreakpointRequest {")
        assert nested < parent
        assert "  SetBreakpointRequestOptions options;" in code

    def test_same_inline_member_in_request_and_response(self, generator):
        location = {
            "name": "location",
            "type": "object",
            "properties": [{"name": "lineNumber", "type": "integer"}],
        }
        protocol = Protocol.from_raw(
            {
                "domain": "Debugger",
                "commands": [
                    {
                        "name": "setBreakpoint",
                        "parameters": [location],
                        "returns": [location],
                    }
                ],
            }
        )
        code = generate_code(generator, protocol).code
        assert code.count("struct SetBreakpointRequestLocation {") == 1
        assert code.count("struct SetBreakpointResponseLocation {") == 1
        assert "  SetBreakpointRequestLocation location;" in code
        assert "  SetBreakpointResponseLocation location;" in code

    def test_alias_of_inline_object_array(self, generator):
        protocol = Protocol.from_raw(
            {
                "domain": "Debugger",
                "types": [
                    {
                        "id": "ScopeList",
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": [{"name": "name", "type": "string"}],
                        },
                    }
                ],
            }
        )
        code = generate_code(generator, protocol).code
        assert "struct ScopeListItem {" in code
        assert "using ScopeList = std::vector<ScopeListItem>;" in code

    def test_experimental_entities_omitted(self, raw_protocol):
        result = generate_from_protocol(
            raw_protocol,
            {"ignore_experimental": True, "include_experimental": ["Debugger.paused"]},
        )
        assert "PausedNotification" in result.code
        assert "SetBlackboxPatternsRequest" not in result.code
        assert "GetHeapUsageRequest" not in result.code
        assert result.metadata["ignore_experimental"] is True


class TestConfiguration:
    def test_no_comments(self, protocol):
        generator = CppGenerator(GeneratorConfig(add_comments=False))
        code = generate_code(generator, protocol).code
        assert "One of:" not in code
        assert "Mirror object" not in code

    def test_custom_templates(self, protocol):
        generator = create_cpp_generator({"optional_template": "folly::Optional"})
        code = generate_code(generator, protocol).code
        assert "  folly::Optional<int> columnNumber;" in code

    def test_indent_size(self, protocol):
        generator = CppGenerator(GeneratorConfig(indent_size=4))
        code = generate_code(generator, protocol).code
        assert "    int lineNumber{};" in code

    def test_empty_root_namespace_fails(self, protocol):
        generator = CppGenerator(load_config({"root_namespace": ""}))
        result = generate_code(generator, protocol)
        assert not result.success
        assert "root_namespace" in result.error_message
        assert result.code == ""

    def test_metadata(self, generator, protocol):
        metadata = generate_code(generator, protocol).metadata
        assert metadata["language"] == "cpp"
        assert metadata["file_extension"] == ".h"
        assert metadata["domain_count"] == 2
        assert metadata["command_count"] == 5


class TestTypeMapper:
    def test_nested_struct_name(self):
        assert nested_struct_name("setBreakpoint.options", "range") == "SetBreakpointOptionsRange"

    def test_primitive_mapping(self):
        mapper = CppTypeMapper()
        prop = Property.create("Runtime", "x", {"name": "ratio", "type": "number"})
        cpp_type = mapper.map_property(prop, "runtime")
        assert cpp_type.name == "double"
        assert cpp_type.is_scalar

    def test_optional_scalar_is_not_value_initialized(self):
        mapper = CppTypeMapper()
        prop = Property.create("Runtime", "x", {"name": "ok", "type": "boolean", "optional": True})
        cpp_type = mapper.map_property(prop, "runtime")
        assert cpp_type.name == "std::optional<bool>"
        assert not cpp_type.is_scalar
        assert cpp_type.base_name == "bool"

    def test_type_config_overrides(self):
        config = CppTypeConfig.from_custom({"string_type": "folly::StringPiece", "other": 1})
        assert config.string_type == "folly::StringPiece"
        assert config.int_type == "int"

    def test_reference_in_same_namespace(self):
        mapper = CppTypeMapper()
        prop = Property.create(
            "Debugger", "x", {"name": "loc", "$ref": "Location"},
            type_index=TypeIndex({"Debugger.Location": "object"}),
        )
        assert mapper.map_property(prop, "debugger").name == "Location"


def test_quick_generate_accepts_json_string():
    import json

    code = quick_generate(json.dumps(CONSOLE_PROTOCOL), root_namespace="test", includes=["<string>"])
    assert code == CONSOLE_HEADER


def test_quick_generate_raises_on_failure():
    with pytest.raises(RuntimeError):
        quick_generate(CONSOLE_PROTOCOL, root_namespace="")
