import pytest

from media import DISPLAY_TYPES, MEDIA_KINDS, display_type, media_node
from schema_node import (
    ArrayNode, IntegerNode, ObjectNode, StringNode, UnknownNode, node_to_json,
)


@pytest.mark.parametrize("kind", MEDIA_KINDS)
def test_media_node_displays_as_its_kind(kind):
    assert display_type(media_node(kind)) == kind


def test_media_node_encoding():
    node = media_node("audio", "Voice note")
    assert node_to_json(node) == {
        "type": "string",
        "description": "Voice note",
        "format": "binary",
        "contentMediaType": "audio/*",
    }


def test_concrete_media_types_are_recognized():
    node = StringNode(format="binary", content_media_type="video/mp4")
    assert display_type(node) == "video"


@pytest.mark.parametrize("node", [
    StringNode(),
    StringNode(format="binary"),
    StringNode(format="binary", content_media_type="application/pdf"),
    StringNode(format="date-time", content_media_type="image/png"),
    StringNode(content_media_type="image/png"),
])
def test_other_strings_stay_strings(node):
    assert display_type(node) == "string"


@pytest.mark.parametrize("node, expected", [
    (IntegerNode(), "integer"),
    (ObjectNode(), "object"),
    (ArrayNode(), "array"),
])
def test_non_strings_keep_their_type(node, expected):
    assert display_type(node) == expected


def test_unknown_media_kind():
    with pytest.raises(ValueError):
        media_node("document")


def test_display_types_cover_primitives_and_media():
    assert DISPLAY_TYPES == (
        "string", "number", "integer", "boolean", "object", "array",
        "image", "audio", "video",
    )


def test_kept_node_displays_its_type_as_written():
    assert display_type(UnknownNode({"type": ["integer", "null"]})) == '["integer", "null"]'
