"""
Structured-output schema sanitizer.

Strict structured outputs accept only a subset of JSON Schema:

* the root is an explicit ``object``, never a bare ``$ref``
* every object sets ``additionalProperties: false``
* every property key is listed under ``required``
* ``$ref`` never sits next to a ``type`` keyword
* ``format: "uri"`` is rejected

``SchemaSanitizer`` rewrites any schema tree (pydantic output or hand-written)
into that dialect by inlining references against the local definitions
table. The rewrite works on the tree shape only, so it can be applied to
every response schema the project sends.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel

JsonSchema = dict[str, Any]

_DEFINITION_KEYS = ("$defs", "definitions")
_REF_PREFIXES = ("#/$defs/", "#/definitions/")
_COMPOSITE_KEYS = ("anyOf", "oneOf", "allOf")
_UNSUPPORTED_FORMATS = {"uri"}


def _empty_object() -> JsonSchema:
    return {
        "type": "object",
        "properties": {},
        "required": [],
        "additionalProperties": False,
    }


def _has_type(node: JsonSchema, name: str) -> bool:
    declared = node.get("type")
    if isinstance(declared, list):
        return name in declared
    return declared == name


def _collect_definitions(node: JsonSchema) -> dict[str, JsonSchema]:
    defs: dict[str, JsonSchema] = {}
    for key in _DEFINITION_KEYS:
        table = node.get(key)
        if isinstance(table, dict):
            defs.update(table)
    return defs


class SchemaSanitizer:
    """Recursive rewrite of a schema tree into the strict dialect."""

    def __init__(self, definitions: dict[str, JsonSchema] | None = None) -> None:
        self.definitions: dict[str, JsonSchema] = dict(definitions or {})

    # -- entry point -------------------------------------------------------

    def sanitize(self, schema: JsonSchema) -> JsonSchema:
        definitions = {**self.definitions, **_collect_definitions(schema)}
        root = self.visit(schema, definitions, ())

        if not _has_type(root, "object"):
            # Strict mode only accepts object roots.
            root = {
                "type": "object",
                "properties": {"value": root},
                "required": ["value"],
                "additionalProperties": False,
            }
        return root

    # -- dispatch ----------------------------------------------------------

    def visit(
        self,
        node: Any,
        definitions: dict[str, JsonSchema],
        resolving: tuple[str, ...],
    ) -> Any:
        if not isinstance(node, dict):
            return node

        if isinstance(node.get("$ref"), str) and "properties" not in node:
            return self.visit_reference(node, definitions, resolving)

        sanitized = {k: v for k, v in node.items() if k not in _DEFINITION_KEYS}

        if sanitized.get("format") in _UNSUPPORTED_FORMATS:
            del sanitized["format"]

        if _has_type(sanitized, "object") or "properties" in sanitized:
            sanitized = self.visit_object(sanitized, definitions, resolving)

        if _has_type(sanitized, "array") or "items" in sanitized:
            sanitized = self.visit_array(sanitized, definitions, resolving)

        for key in _COMPOSITE_KEYS:
            if isinstance(sanitized.get(key), list):
                sanitized[key] = [
                    self.visit(option, definitions, resolving) for option in sanitized[key]
                ]

        if "$ref" in sanitized and "type" in sanitized:
            del sanitized["$ref"]

        return sanitized

    # -- node kinds --------------------------------------------------------

    def visit_reference(
        self,
        node: JsonSchema,
        definitions: dict[str, JsonSchema],
        resolving: tuple[str, ...],
    ) -> JsonSchema:
        ref: str = node["$ref"]
        target = self.resolve(ref, definitions)
        if target is None or ref in resolving:
            # Unknown or self-recursive references cannot be inlined.
            return _empty_object()

        merged = dict(target)
        for key, value in node.items():
            if key != "$ref" and key not in merged:
                merged[key] = value
        return self.visit(merged, definitions, resolving + (ref,))

    def visit_object(
        self,
        node: JsonSchema,
        definitions: dict[str, JsonSchema],
        resolving: tuple[str, ...],
    ) -> JsonSchema:
        if not isinstance(node.get("type"), list):
            node["type"] = "object"
        node["additionalProperties"] = False

        properties = node.get("properties")
        if not isinstance(properties, dict):
            properties = {}
        node["properties"] = {
            key: self.visit(value, definitions, resolving)
            for key, value in properties.items()
        }

        declared = node.get("required")
        required: list[str] = list(declared) if isinstance(declared, list) else []
        for key in properties:
            if key not in required:
                required.append(key)
        node["required"] = required
        return node

    def visit_array(
        self,
        node: JsonSchema,
        definitions: dict[str, JsonSchema],
        resolving: tuple[str, ...],
    ) -> JsonSchema:
        if not isinstance(node.get("type"), list):
            node["type"] = "array"

        items = node.get("items")
        if isinstance(items, dict):
            node["items"] = self.visit(items, definitions, resolving)
        elif isinstance(items, list):
            node["items"] = [self.visit(item, definitions, resolving) for item in items]

        if isinstance(node.get("prefixItems"), list):
            node["prefixItems"] = [
                self.visit(item, definitions, resolving) for item in node["prefixItems"]
            ]
        return node

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def resolve(ref: str, definitions: dict[str, JsonSchema]) -> JsonSchema | None:
        for prefix in _REF_PREFIXES:
            if ref.startswith(prefix):
                target = definitions.get(ref[len(prefix):])
                return target if isinstance(target, dict) else None
        return None


def sanitize_schema(schema: JsonSchema) -> JsonSchema:
    """Return a strict-mode copy of *schema*; the input is left untouched."""
    return SchemaSanitizer().sanitize(schema)


def response_schema(model: type[BaseModel]) -> JsonSchema:
    """Sanitized JSON schema for a pydantic response model."""
    return sanitize_schema(model.model_json_schema())
