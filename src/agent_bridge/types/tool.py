"""
Provider-neutral tool definitions.

They are intentionally minimal: everything provider-specific lives in adapters.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

from agent_bridge.errors import InvalidSchemaError

__all__ = [
    "PARAMETER_TYPES",
    "ToolHandler",
    "ParameterSpec",
    "ToolParameters",
    "ToolDefinition",
]

PARAMETER_TYPES = frozenset({"string", "number", "boolean", "enum"})

# Handlers receive the raw JSON argument text and return the tool output.
ToolHandler = Callable[[str], Union[str, Awaitable[str]]]


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    type: str
    description: str = ""
    enum: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "enum", tuple(self.enum))

    def to_json_schema(self) -> dict[str, Any]:
        json_type = "string" if self.type == "enum" else self.type
        schema: dict[str, Any] = {"type": json_type, "description": self.description}
        if self.enum:
            schema["enum"] = list(self.enum)
        return schema

    @classmethod
    def from_json_schema(cls, schema: Mapping[str, Any]) -> "ParameterSpec":
        """Read one JSON-schema property, coercing types we cannot express."""
        description = str(schema.get("description") or "")
        enum = tuple(str(v) for v in schema.get("enum") or ())
        if enum:
            return cls("enum", description, enum)

        json_type = schema.get("type")
        if isinstance(json_type, list):
            # ["string", "null"] style nullable types
            json_type = next((t for t in json_type if t != "null"), None)
        if isinstance(json_type, str):
            json_type = json_type.lower()

        if json_type in ("string", "number", "boolean"):
            return cls(json_type, description)
        if json_type == "integer":
            return cls("number", description)

        note = f"(JSON {json_type or 'value'})"
        return cls("string", f"{description} {note}".strip())


@dataclass(frozen=True, slots=True)
class ToolParameters:
    """The ``{type: object, properties, required}`` block of a tool."""

    properties: Mapping[str, ParameterSpec] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    type: str = "object"

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))
        object.__setattr__(self, "required", tuple(self.required))

    def validate(self) -> None:
        if self.type != "object":
            raise InvalidSchemaError(f"parameters must be an object, got {self.type!r}")
        for name, spec in self.properties.items():
            if spec.type not in PARAMETER_TYPES:
                raise InvalidSchemaError(
                    f"parameter {name!r} has unsupported type {spec.type!r}; "
                    f"expected one of {sorted(PARAMETER_TYPES)}"
                )
            if spec.type == "enum" and not spec.enum:
                raise InvalidSchemaError(f"enum parameter {name!r} declares no values")
        for name in self.required:
            if name not in self.properties:
                raise InvalidSchemaError(
                    f"required parameter {name!r} is not a declared property"
                )

    def to_json_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                name: spec.to_json_schema() for name, spec in self.properties.items()
            },
            "required": list(self.required),
        }

    @classmethod
    def from_json_schema(cls, schema: Optional[Mapping[str, Any]]) -> "ToolParameters":
        schema = schema or {}
        raw_props = schema.get("properties") or {}
        properties = {
            name: ParameterSpec.from_json_schema(prop if isinstance(prop, Mapping) else {})
            for name, prop in raw_props.items()
        }
        required = tuple(r for r in schema.get("required") or () if r in properties)
        return cls(properties, required)


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """A tool the model may call, plus the handler that runs it."""

    name: str
    description: str = ""
    parameters: ToolParameters = field(default_factory=ToolParameters)
    handler: Optional[ToolHandler] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidSchemaError("tool name must not be empty")
        self.parameters.validate()

    @classmethod
    def create(
        cls,
        name: str,
        description: str,
        properties: Mapping[str, ParameterSpec],
        required: Sequence[str] = (),
        handler: Optional[ToolHandler] = None,
    ) -> "ToolDefinition":
        return cls(name, description, ToolParameters(properties, tuple(required)), handler)

    @property
    def json_schema(self) -> dict[str, Any]:
        return self.parameters.to_json_schema()
