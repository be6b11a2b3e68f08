"""
Media pseudo-types.

image/audio/video are shown as types of their own but stored as plain JSON
schema: ``{"type": "string", "format": "binary", "contentMediaType": "image/*"}``.
"""
from typing import Optional

from schema_node import PRIMITIVE_TYPES, SchemaNode, StringNode

MEDIA_KINDS = ("image", "audio", "video")
DISPLAY_TYPES = PRIMITIVE_TYPES + MEDIA_KINDS
# array item selector, no nested arrays or media
ITEM_TYPES = ("string", "number", "integer", "boolean", "object")


def display_type(node: SchemaNode) -> str:
    if (isinstance(node, StringNode) and node.format == "binary"
            and node.content_media_type):
        for kind in MEDIA_KINDS:
            if node.content_media_type.startswith(kind + "/"):
                return kind
    return node.type


def media_node(kind: str, description: Optional[str] = None) -> StringNode:
    if kind not in MEDIA_KINDS:
        raise ValueError(f"Media kind \"{kind}\" is unsupported.")
    return StringNode(
        description=description,
        format="binary",
        content_media_type=f"{kind}/*",
    )
