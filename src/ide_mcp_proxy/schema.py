"""
Primitive argument checking derived from a tool's JSON-Schema inputSchema.

Only the top-level property types are checked. Nested schemas,
formats and constraints are left to the IDE.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple


class FieldKind(Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    ANY = "any"

    @classmethod
    def from_json_type(cls, json_type: Any) -> "FieldKind":
        """Map a JSON-Schema "type" value onto a kind. Total: unknown means ANY."""
        if json_type == "integer":
            return cls.NUMBER
        if isinstance(json_type, str):
            try:
                return cls(json_type)
            except ValueError:
                return cls.ANY
        return cls.ANY

    def accepts(self, value: Any) -> bool:
        if self is FieldKind.STRING:
            return isinstance(value, str)
        if self is FieldKind.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if self is FieldKind.BOOLEAN:
            return isinstance(value, bool)
        if self is FieldKind.ARRAY:
            return isinstance(value, (list, tuple))
        return True


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind
    required: bool = False


@dataclass(frozen=True)
class ArgumentShape:
    fields: Tuple[FieldSpec, ...] = ()

    @classmethod
    def from_input_schema(cls, schema: Dict[str, Any]) -> "ArgumentShape":
        if not isinstance(schema, dict) or schema.get("type") != "object":
            return cls()
        properties = schema.get("properties") or {}
        required = set(schema.get("required") or [])
        return cls(tuple(
            FieldSpec(
                name=name,
                kind=FieldKind.from_json_type(prop.get("type") if isinstance(prop, dict) else None),
                required=name in required,
            )
            for name, prop in properties.items()
        ))

    def validate(self, arguments: Dict[str, Any]) -> List[str]:
        """
        Check arguments against the shape.

        Returns:
            list: One message per problem; empty when the arguments fit.
            Keys not in the shape are ignored.
        """
        problems = []
        for field_spec in self.fields:
            value = arguments.get(field_spec.name)
            if value is None:
                if field_spec.required:
                    problems.append(f"'{field_spec.name}' is required")
                continue
            if not field_spec.kind.accepts(value):
                problems.append(
                    f"'{field_spec.name}' must be {field_spec.kind.value}, got {type(value).__name__}"
                )
        return problems
