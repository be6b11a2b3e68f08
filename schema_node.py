"""
Schema node model.

One frozen dataclass per JSON schema type, so a node carries exactly the
fields of its own type. Nodes are never mutated; edits build new ones (see
schema_ops).
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

logger = logging.getLogger(__name__)

PRIMITIVE_TYPES = ("string", "number", "integer", "boolean", "object", "array")


class SchemaParseError(ValueError):
    pass


@dataclass(frozen=True)
class StringNode:
    description: Optional[str] = None
    format: Optional[str] = None
    content_media_type: Optional[str] = None
    # keys the editor doesn't model, e.g. "title", "minLength"
    extra: Dict[str, Any] = field(default_factory=dict)
    type = "string"


@dataclass(frozen=True)
class NumberNode:
    description: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    type = "number"


@dataclass(frozen=True)
class IntegerNode:
    description: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    type = "integer"


@dataclass(frozen=True)
class BooleanNode:
    description: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    type = "boolean"


@dataclass(frozen=True)
class ObjectNode:
    description: Optional[str] = None
    properties: Dict[str, "SchemaNode"] = field(default_factory=dict)
    required: Tuple[str, ...] = ()
    extra: Dict[str, Any] = field(default_factory=dict)
    type = "object"


@dataclass(frozen=True)
class ArrayNode:
    description: Optional[str] = None
    items: "SchemaNode" = field(default_factory=StringNode)
    extra: Dict[str, Any] = field(default_factory=dict)
    type = "array"


@dataclass(frozen=True)
class UnknownNode:
    """Nested schema outside the supported subset, kept exactly as written.

    Type lists, nodes without a type, boolean schemas and the like end up
    here, so one of them doesn't lock the whole document out of the
    visual editor.
    """
    raw: Any = None

    @property
    def type(self) -> str:
        """Type as written, shown in the type selector."""
        if isinstance(self.raw, dict):
            return json.dumps(self.raw["type"]) if "type" in self.raw else "any"
        return json.dumps(self.raw)

    @property
    def description(self) -> Optional[str]:
        if isinstance(self.raw, dict) and isinstance(self.raw.get("description"), str):
            return self.raw["description"]
        return None


SchemaNode = Union[
    StringNode, NumberNode, IntegerNode, BooleanNode, ObjectNode, ArrayNode, UnknownNode,
]

NODE_CLASSES = {
    "string": StringNode,
    "number": NumberNode,
    "integer": IntegerNode,
    "boolean": BooleanNode,
    "object": ObjectNode,
    "array": ArrayNode,
}

_COMMON_KEYS = {"type", "description"}
_MODELED_KEYS = {
    "string": _COMMON_KEYS | {"format", "contentMediaType"},
    "number": _COMMON_KEYS,
    "integer": _COMMON_KEYS,
    "boolean": _COMMON_KEYS,
    "object": _COMMON_KEYS | {"properties", "required"},
    "array": _COMMON_KEYS | {"items"},
}


def _optional_str(value, key, path):
    if value is None or isinstance(value, str):
        return value
    raise SchemaParseError(f"At {path}, \"{key}\" must be a string.")


def _normalize_required(required, properties) -> Tuple[str, ...]:
    if not isinstance(required, list):
        return ()
    names = []
    for name in required:
        # dangling and repeated names would break required ⊆ properties
        if isinstance(name, str) and name in properties and name not in names:
            names.append(name)
    return tuple(names)


def node_from_json(value, path="schema") -> SchemaNode:
    """Build a schema node from a decoded JSON value.

    Raises SchemaParseError when the value falls outside the supported
    subset (single string type from PRIMITIVE_TYPES, object ``properties``,
    one ``items`` schema). Children outside that subset don't raise; they
    are kept as UnknownNode.
    """
    if not isinstance(value, dict):
        raise SchemaParseError(f"At {path}, schema node must be an object.")
    type_ = value.get("type")
    if type_ not in PRIMITIVE_TYPES:
        raise SchemaParseError(f"At {path}, type {type_!r} is unsupported.")
    description = _optional_str(value.get("description"), "description", path)
    extra = {k: v for k, v in value.items() if k not in _MODELED_KEYS[type_]}

    match type_:
        case "string":
            return StringNode(
                description=description,
                format=_optional_str(value.get("format"), "format", path),
                content_media_type=_optional_str(
                    value.get("contentMediaType"), "contentMediaType", path),
                extra=extra,
            )
        case "object":
            raw_properties = value.get("properties")
            if raw_properties is None:
                raw_properties = {}
            if not isinstance(raw_properties, dict):
                raise SchemaParseError(f"At {path}, \"properties\" must be an object.")
            properties = {
                name: _child_from_json(child, f"{path}[\"{name}\"]")
                for name, child in raw_properties.items()
            }
            return ObjectNode(
                description=description,
                properties=properties,
                required=_normalize_required(value.get("required"), properties),
                extra=extra,
            )
        case "array":
            raw_items = value.get("items")
            if raw_items is None:
                items = StringNode()
            elif isinstance(raw_items, dict):
                items = _child_from_json(raw_items, f"{path}[items]")
            else:
                raise SchemaParseError(
                    f"At {path}, \"items\" must be a single schema object.")
            return ArrayNode(description=description, items=items, extra=extra)
        case _:
            return NODE_CLASSES[type_](description=description, extra=extra)


def _child_from_json(value, path) -> SchemaNode:
    try:
        return node_from_json(value, path)
    except SchemaParseError as e:
        logger.debug("Keeping %s as written: %s", path, e)
        return UnknownNode(value)


def node_to_json(node: SchemaNode) -> Dict[str, Any]:
    if isinstance(node, UnknownNode):
        return node.raw
    data: Dict[str, Any] = {"type": node.type}
    if node.description is not None:
        data["description"] = node.description
    if isinstance(node, StringNode):
        if node.format is not None:
            data["format"] = node.format
        if node.content_media_type is not None:
            data["contentMediaType"] = node.content_media_type
    data.update(node.extra)
    if isinstance(node, ObjectNode):
        data["properties"] = {
            name: node_to_json(child) for name, child in node.properties.items()
        }
        data["required"] = list(node.required)
    elif isinstance(node, ArrayNode):
        data["items"] = node_to_json(node.items)
    return data


def document_from_json(value) -> ObjectNode:
    """The document root must be an object schema with a ``properties`` field."""
    if not isinstance(value, dict):
        raise SchemaParseError("Root of schema must be a JSON object.")
    if value.get("type") != "object":
        raise SchemaParseError("Root of schema must have type \"object\".")
    # null passes, as it would for a typeof check in the browser
    if "properties" not in value or not isinstance(value["properties"], (dict, type(None))):
        raise SchemaParseError("Root of schema must have an object \"properties\" field.")
    return node_from_json(value)


def default_document() -> ObjectNode:
    return ObjectNode()
