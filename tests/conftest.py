"""Shared test fixtures for the inspector_msggen test suite.

The sample protocol is a trimmed copy of the Runtime and Debugger
domains of the JavaScript protocol, with a few experimental entries
so filtering can be exercised.
"""

import copy
import json
import logging
from typing import Any, Dict

import pytest

from inspector_msggen.codegen.core.protocol import Protocol
from inspector_msggen.logging_config import ROOT_LOGGER_NAME


SAMPLE_PROTOCOL: Dict[str, Any] = {
    "version": {"major": "1", "minor": "3"},
    "domains": [
        {
            "domain": "Runtime",
            "description": "Runtime domain exposes JavaScript runtime by means of remote evaluation.",
            "types": [
                {"id": "RemoteObjectId", "type": "string", "description": "Unique object identifier."},
                {
                    "id": "RemoteObject",
                    "type": "object",
                    "description": "Mirror object referencing original JavaScript object.",
                    "properties": [
                        {"name": "type", "type": "string", "enum": ["object", "function", "undefined"]},
                        {"name": "value", "type": "any", "optional": True},
                        {"name": "objectId", "$ref": "RemoteObjectId", "optional": True},
                    ],
                },
            ],
            "commands": [
                {
                    "name": "evaluate",
                    "description": "Evaluates expression on global object.",
                    "parameters": [
                        {"name": "expression", "type": "string"},
                        {"name": "silent", "type": "boolean", "optional": True},
                    ],
                    "returns": [{"name": "result", "$ref": "RemoteObject"}],
                },
                {"name": "getHeapUsage", "experimental": True, "returns": [
                    {"name": "usedSize", "type": "number"},
                    {"name": "totalSize", "type": "number"},
                ]},
            ],
            "events": [
                {
                    "name": "consoleAPICalled",
                    "parameters": [
                        {"name": "type", "type": "string"},
                        {"name": "args", "type": "array", "items": {"$ref": "RemoteObject"}},
                    ],
                }
            ],
        },
        {
            "domain": "Debugger",
            "dependencies": ["Runtime"],
            "types": [
                {
                    "id": "Location",
                    "type": "object",
                    "properties": [
                        {"name": "scriptId", "type": "string"},
                        {"name": "lineNumber", "type": "integer"},
                        {"name": "columnNumber", "type": "integer", "optional": True},
                    ],
                },
                {
                    "id": "Scope",
                    "type": "object",
                    "properties": [
                        {"name": "type", "type": "string", "enum": ["global", "local", "closure"]},
                        {"name": "object", "$ref": "Runtime.RemoteObject"},
                    ],
                },
                {
                    "id": "CallFrame",
                    "type": "object",
                    "properties": [
                        {"name": "callFrameId", "type": "string"},
                        {"name": "location", "$ref": "Location"},
                        {"name": "scopeChain", "type": "array", "items": {"$ref": "Scope"}},
                        {"name": "this", "$ref": "Runtime.RemoteObject"},
                    ],
                },
            ],
            "commands": [
                {"name": "enable"},
                {
                    "name": "setBreakpoint",
                    "description": "Sets JavaScript breakpoint at a given location.",
                    "parameters": [
                        {"name": "location", "$ref": "Location"},
                        {"name": "condition", "type": "string", "optional": True},
                    ],
                    "returns": [
                        {"name": "breakpointId", "type": "string"},
                        {"name": "actualLocation", "$ref": "Location"},
                    ],
                },
                {
                    "name": "setBlackboxPatterns",
                    "experimental": True,
                    "parameters": [
                        {"name": "patterns", "type": "array", "items": {"type": "string"}}
                    ],
                },
            ],
            "events": [
                {
                    "name": "paused",
                    "experimental": True,
                    "parameters": [
                        {"name": "callFrames", "type": "array", "items": {"$ref": "CallFrame"}},
                        {"name": "reason", "type": "string", "enum": ["exception", "other"]},
                    ],
                },
                {"name": "resumed"},
            ],
        },
    ],
}


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers installed by setup_logging so caplog keeps working."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def raw_protocol():
    """A fresh copy of the sample protocol."""
    return copy.deepcopy(SAMPLE_PROTOCOL)


@pytest.fixture
def protocol(raw_protocol):
    """The sample protocol with every experimental entity kept."""
    return Protocol.from_raw(raw_protocol)


@pytest.fixture
def protocol_file(tmp_path, raw_protocol):
    """The sample protocol written to disk."""
    path = tmp_path / "js_protocol.json"
    path.write_text(json.dumps(raw_protocol), encoding="utf-8")
    return path
