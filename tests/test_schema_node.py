import pytest

from schema_node import (
    ArrayNode, BooleanNode, IntegerNode, NumberNode, ObjectNode, SchemaParseError,
    StringNode, UnknownNode, default_document, document_from_json, node_from_json,
    node_to_json,
)


@pytest.fixture()
def order_schema():
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "id": {"type": "integer", "description": "Order id"},
            "paid": {"type": "boolean"},
            "total": {"type": "number", "minimum": 0},
            "lines": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "sku": {"type": "string", "maxLength": 12},
                        "photo": {
                            "type": "string",
                            "format": "binary",
                            "contentMediaType": "image/*",
                        },
                    },
                    "required": ["sku"],
                },
            },
        },
        "required": ["id", "lines"],
    }


def test_parse_builds_typed_nodes(order_schema):
    doc = document_from_json(order_schema)
    assert isinstance(doc, ObjectNode)
    assert list(doc.properties) == ["id", "paid", "total", "lines"]
    assert doc.required == ("id", "lines")
    assert doc.properties["id"] == IntegerNode(description="Order id")
    assert isinstance(doc.properties["paid"], BooleanNode)
    assert isinstance(doc.properties["total"], NumberNode)
    lines = doc.properties["lines"]
    assert isinstance(lines, ArrayNode)
    assert isinstance(lines.items, ObjectNode)
    assert lines.items.required == ("sku",)
    photo = lines.items.properties["photo"]
    assert photo.format == "binary"
    assert photo.content_media_type == "image/*"


def test_unmodeled_keys_survive(order_schema):
    doc = document_from_json(order_schema)
    assert doc.extra == {"$schema": "http://json-schema.org/draft-07/schema#"}
    assert doc.properties["total"].extra == {"minimum": 0}
    assert node_to_json(doc) == order_schema


def test_dump_key_order():
    node = StringNode(description="Avatar", format="binary", content_media_type="image/*")
    assert list(node_to_json(node)) == ["type", "description", "format", "contentMediaType"]
    assert list(node_to_json(ObjectNode())) == ["type", "properties", "required"]


def test_unset_description_is_omitted():
    assert node_to_json(ArrayNode()) == {"type": "array", "items": {"type": "string"}}


def test_array_without_items_defaults_to_string():
    assert node_from_json({"type": "array"}) == ArrayNode(items=StringNode())


def test_object_without_properties_is_empty():
    assert node_from_json({"type": "object"}) == ObjectNode()


def test_required_keeps_only_known_names():
    node = node_from_json({
        "type": "object",
        "properties": {"a": {"type": "string"}, "b": {"type": "string"}},
        "required": ["b", "ghost", "b", 3, "a"],
    })
    assert node.required == ("b", "a")


def test_required_not_a_list_is_empty():
    node = node_from_json({
        "type": "object",
        "properties": {"a": {"type": "string"}},
        "required": "a",
    })
    assert node.required == ()


@pytest.mark.parametrize("value", [
    "string",
    {"description": "no type"},
    {"type": "null"},
    {"type": ["string", "null"]},
    {"type": "string", "description": 3},
    {"type": "object", "properties": []},
    {"type": "array", "items": [{"type": "string"}]},
])
def test_unsupported_nodes_raise(value):
    with pytest.raises(SchemaParseError):
        node_from_json(value)


NESTED_AS_WRITTEN = [
    {"type": ["string", "null"], "description": "Nickname"},
    {"enum": ["draft", "sent"]},
    {"type": "string", "description": 3},
    {"type": "object", "properties": []},
    {"type": "array", "items": [{"type": "string"}]},
    True,
]


@pytest.mark.parametrize("child", NESTED_AS_WRITTEN)
def test_unsupported_children_are_kept_as_written(child):
    value = {"type": "object", "properties": {"a": child}, "required": ["a"]}
    node = node_from_json(value)
    assert node.properties["a"] == UnknownNode(child)
    assert node.required == ("a",)
    assert node_to_json(node) == value


def test_unsupported_items_are_kept_as_written():
    node = node_from_json({"type": "array", "items": {"type": "tuple"}})
    assert node.items == UnknownNode({"type": "tuple"})
    assert node_to_json(node) == {"type": "array", "items": {"type": "tuple"}}


def test_deep_unsupported_child_keeps_its_parents():
    node = node_from_json({
        "type": "object",
        "properties": {"user": {
            "type": "object",
            "properties": {"tags": {"type": "set"}, "name": {"type": "string"}},
        }},
    })
    user = node.properties["user"]
    assert isinstance(user, ObjectNode)
    assert user.properties["tags"] == UnknownNode({"type": "set"})
    assert user.properties["name"] == StringNode()


@pytest.mark.parametrize("raw, type_, description", [
    ({"type": ["string", "null"], "description": "Nickname"}, '["string", "null"]', "Nickname"),
    ({"enum": ["draft", "sent"]}, "any", None),
    ({"type": "string", "description": 3}, '"string"', None),
    (True, "true", None),
])
def test_unknown_node_type_text(raw, type_, description):
    node = UnknownNode(raw)
    assert node.type == type_
    assert node.description == description


@pytest.mark.parametrize("value", [
    [],
    {"type": "array", "items": {"type": "string"}},
    {"type": "object"},
    {"type": "object", "properties": "x"},
])
def test_document_root_must_be_object_schema(value):
    with pytest.raises(SchemaParseError):
        document_from_json(value)


def test_document_null_properties_are_empty():
    assert document_from_json({"type": "object", "properties": None}) == ObjectNode()


def test_default_document():
    assert node_to_json(default_document()) == {
        "type": "object", "properties": {}, "required": [],
    }


def test_nodes_are_immutable():
    node = StringNode()
    with pytest.raises(AttributeError):
        node.description = "changed"
