"""
Core data model shared by every stage of the generator.

Fragments are immutable once created; the unified specification is built
once per run by the merger and only read afterwards.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .utils.paths import extract_path_params

HTTP_METHODS = ("GET", "PUT", "POST", "DELETE", "OPTIONS", "HEAD", "PATCH", "TRACE")

ORIGIN_SCHEMA = "schema"
ORIGIN_SYNTHESIZED = "synthesized"


@dataclass(frozen=True)
class SchemaFragment:
    """One loaded or synthesized unit of API-schema input."""
    name: str
    source_path: str
    raw_document: Dict[str, Any]
    origin: str = ORIGIN_SCHEMA


@dataclass(frozen=True)
class HandlerBinding:
    """Pointer from an operation to its implementation (x-handler / x-function)."""
    implementation_file_path: str
    function_name: str = ""

    @property
    def is_python_module(self) -> bool:
        """Only .py handlers can be imported by the generated router."""
        return self.implementation_file_path.endswith(".py")


@dataclass
class Operation:
    operation_id: str
    method: str
    path: str
    summary: str = ""
    parameters: List[Dict[str, Any]] = field(default_factory=list)
    request_body_schema: Optional[Dict[str, Any]] = None
    request_body_required: bool = False
    responses: Dict[str, Any] = field(default_factory=dict)
    handler_binding: Optional[HandlerBinding] = None
    source: str = ""

    @property
    def path_parameters(self) -> List[str]:
        return extract_path_params(self.path)

    @property
    def has_request_body(self) -> bool:
        return self.request_body_schema is not None

    def describe(self) -> str:
        return f"{self.method} {self.path} ({self.source})"


@dataclass
class PathItem:
    operations_by_method: Dict[str, Operation] = field(default_factory=dict)


@dataclass(frozen=True)
class PathConflict:
    """A same-path-same-method collision resolved by last-writer-wins."""
    path: str
    method: str
    earlier_source: str
    later_source: str


@dataclass
class UnifiedSpecification:
    info: Dict[str, Any] = field(default_factory=dict)
    paths: Dict[str, PathItem] = field(default_factory=dict)
    components: Dict[str, Any] = field(default_factory=dict)
    code_generation: Dict[str, Any] = field(default_factory=dict)
    sources: List[str] = field(default_factory=list)
    conflicts: List[PathConflict] = field(default_factory=list)

    def operations(self) -> Iterator[Operation]:
        """Yield every operation sorted by path, then method."""
        for path in sorted(self.paths):
            item = self.paths[path]
            for method in sorted(item.operations_by_method):
                yield item.operations_by_method[method]

    def to_document(self) -> Dict[str, Any]:
        """Render the specification back into an OpenAPI-shaped mapping."""
        paths: Dict[str, Any] = {}
        for op in self.operations():
            entry: Dict[str, Any] = {"operationId": op.operation_id}
            if op.summary:
                entry["summary"] = op.summary
            if op.parameters:
                entry["parameters"] = op.parameters
            if op.request_body_schema is not None:
                entry["requestBody"] = {
                    "required": op.request_body_required,
                    "content": {"application/json": {"schema": op.request_body_schema}},
                }
            entry["responses"] = op.responses
            if op.handler_binding:
                entry["x-handler"] = op.handler_binding.implementation_file_path
                entry["x-function"] = op.handler_binding.function_name
            paths.setdefault(op.path, {})[op.method.lower()] = entry
        document: Dict[str, Any] = {
            "openapi": "3.0.3",
            "info": dict(self.info),
            "paths": paths,
            "components": {"schemas": {k: self.components[k] for k in sorted(self.components)}},
        }
        if self.code_generation:
            document["x-code-generation"] = dict(self.code_generation)
        return document


@dataclass
class PropertySpec:
    """Leaf description of one configurable component value."""
    type: str
    default: Any = None
    min: Optional[float] = None
    max: Optional[float] = None
    enum_values: Optional[List[Any]] = None
    description: str = ""

    # Foreign property types -> JSON schema (type, format)
    _SCHEMA_TYPES = {
        "number": ("number", None),
        "int": ("integer", None),
        "integer": ("integer", None),
        "boolean": ("boolean", None),
        "bool": ("boolean", None),
        "string": ("string", None),
        "color": ("string", "color"),
        "vec2": ("object", "vec2"),
        "vec3": ("object", "vec3"),
        "vec4": ("object", "vec4"),
        "array": ("array", None),
        "asset": ("string", "uri"),
        "map": ("string", "uri"),
        "model": ("string", "uri"),
        "audio": ("string", "uri"),
        "selector": ("string", "selector"),
        "selectorAll": ("string", "selector"),
    }

    def to_schema(self) -> Dict[str, Any]:
        json_type, fmt = self._SCHEMA_TYPES.get(self.type, ("string", None))
        schema: Dict[str, Any] = {"type": json_type}
        if fmt:
            schema["format"] = fmt
        if self.type != json_type:
            schema["x-property-type"] = self.type
        if self.default is not None:
            schema["default"] = self.default
        if self.min is not None:
            schema["minimum"] = self.min
        if self.max is not None:
            schema["maximum"] = self.max
        if self.enum_values:
            schema["enum"] = list(self.enum_values)
        if self.description:
            schema["description"] = self.description
        return schema


@dataclass
class ComponentCapabilitySpec:
    name: str
    category: str
    property_schema: Dict[str, PropertySpec] = field(default_factory=dict)
    source_file: str = ""

    @property
    def schema_name(self) -> str:
        """Component schema key, e.g. 'light-point' -> 'LightPoint'."""
        return "".join(part.capitalize() for part in re.split(r"[^A-Za-z0-9]+", self.name) if part)

    def to_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "description": f"Component '{self.name}' from {self.source_file}" if self.source_file
            else f"Component '{self.name}'",
            "x-component": self.name,
            "x-category": self.category,
            "properties": {
                name: self.property_schema[name].to_schema()
                for name in sorted(self.property_schema)
            },
        }


@dataclass
class GenerationArtifact:
    kind: str
    output_path: Path
    changed: bool = True


ARTIFACT_ROUTER = "router"
ARTIFACT_CLI = "cli"
ARTIFACT_SCRIPTING = "scripting-client"
