"""
Edits on schema trees.

Every function returns a new node and leaves its arguments untouched, so
sibling branches of the old tree can be shared safely with the new one.
Paths follow the layout of the JSON document: ``("properties", "user",
"items", "properties", "name")``.
"""
import logging
import re
from dataclasses import replace
from typing import Optional, Sequence

from media import MEDIA_KINDS, media_node
from schema_node import (
    NODE_CLASSES, ArrayNode, ObjectNode, SchemaNode, StringNode, UnknownNode,
)

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]*$")
NEW_PROPERTY_NAME = "newProperty"


def is_valid_name(name: str) -> bool:
    return bool(NAME_PATTERN.match(name))


def sanitize_name(text: str) -> str:
    return re.sub(r"[^A-Za-z0-9_]", "", text)


def new_property_name(obj: ObjectNode) -> str:
    name = NEW_PROPERTY_NAME
    counter = 1
    while name in obj.properties:
        name = f"{NEW_PROPERTY_NAME}{counter}"
        counter += 1
    return name


def add_property(obj: ObjectNode) -> ObjectNode:
    properties = dict(obj.properties)
    properties[new_property_name(obj)] = StringNode()
    return replace(obj, properties=properties)


def update_property(obj: ObjectNode, name: str, node: SchemaNode) -> ObjectNode:
    properties = dict(obj.properties)
    properties[name] = node
    return replace(obj, properties=properties)


def remove_property(obj: ObjectNode, name: str) -> ObjectNode:
    properties = {k: v for k, v in obj.properties.items() if k != name}
    required = tuple(r for r in obj.required if r != name)
    return replace(obj, properties=properties, required=required)


def rename_property(obj: ObjectNode, old_name: str, new_name: Optional[str]) -> ObjectNode:
    if not new_name or new_name == old_name or old_name not in obj.properties:
        return obj
    if not is_valid_name(new_name):
        logger.debug("Rename of %r ignored: %r is not a valid name.", old_name, new_name)
        return obj
    if new_name in obj.properties:
        logger.debug("Rename of %r ignored: %r is taken by a sibling.", old_name, new_name)
        return obj
    properties = {
        (new_name if key == old_name else key): value
        for key, value in obj.properties.items()
    }
    required = tuple(new_name if r == old_name else r for r in obj.required)
    return replace(obj, properties=properties, required=required)


def toggle_required(obj: ObjectNode, name: str) -> ObjectNode:
    if name in obj.required:
        return replace(obj, required=tuple(r for r in obj.required if r != name))
    if name not in obj.properties:
        return obj
    return replace(obj, required=obj.required + (name,))


def _on_items(array: ArrayNode, operation, *args) -> ArrayNode:
    if not isinstance(array.items, ObjectNode):
        raise TypeError("Array items are not an object schema.")
    return replace(array, items=operation(array.items, *args))


def add_item_property(array: ArrayNode) -> ArrayNode:
    return _on_items(array, add_property)


def update_item_property(array: ArrayNode, name: str, node: SchemaNode) -> ArrayNode:
    return _on_items(array, update_property, name, node)


def remove_item_property(array: ArrayNode, name: str) -> ArrayNode:
    return _on_items(array, remove_property, name)


def rename_item_property(array: ArrayNode, old_name: str, new_name: Optional[str]) -> ArrayNode:
    return _on_items(array, rename_property, old_name, new_name)


def toggle_item_required(array: ArrayNode, name: str) -> ArrayNode:
    return _on_items(array, toggle_required, name)


def retype(node: SchemaNode, display_type: str) -> SchemaNode:
    """Fresh node for a type selector change; only the description survives."""
    if display_type in MEDIA_KINDS:
        return media_node(display_type, node.description)
    if display_type not in NODE_CLASSES:
        raise ValueError(f"Type \"{display_type}\" is unsupported.")
    return NODE_CLASSES[display_type](description=node.description)


def set_item_type(array: ArrayNode, item_type: str) -> ArrayNode:
    if item_type not in NODE_CLASSES:
        raise ValueError(f"Type \"{item_type}\" is unsupported.")
    return replace(array, items=NODE_CLASSES[item_type]())


def set_description(node: SchemaNode, text: Optional[str]) -> SchemaNode:
    if isinstance(node, UnknownNode):
        if not isinstance(node.raw, dict):
            return node
        raw = dict(node.raw)
        if text:
            raw["description"] = text
        else:
            raw.pop("description", None)
        return UnknownNode(raw)
    return replace(node, description=text or None)


def node_at(root: SchemaNode, path: Sequence[str]) -> SchemaNode:
    node = root
    steps = iter(path)
    for step in steps:
        if step == "properties" and isinstance(node, ObjectNode):
            name = next(steps, None)
            if name not in node.properties:
                raise KeyError(f"No property {name!r} in path {tuple(path)}.")
            node = node.properties[name]
        elif step == "items" and isinstance(node, ArrayNode):
            node = node.items
        else:
            raise KeyError(f"Step {step!r} doesn't fit path {tuple(path)}.")
    return node


def replace_at(root: SchemaNode, path: Sequence[str], node: SchemaNode) -> SchemaNode:
    if not path:
        return node
    step = path[0]
    if step == "properties" and isinstance(root, ObjectNode) and len(path) > 1:
        name = path[1]
        if name not in root.properties:
            raise KeyError(f"No property {name!r} in path {tuple(path)}.")
        return update_property(root, name, replace_at(root.properties[name], path[2:], node))
    if step == "items" and isinstance(root, ArrayNode):
        return replace(root, items=replace_at(root.items, path[1:], node))
    raise KeyError(f"Step {step!r} doesn't fit path {tuple(path)}.")
