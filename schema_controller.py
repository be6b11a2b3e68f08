"""
Canonical text of one schema editor, and the Raw/Visual switch over it.

The text is the only state handed back to the caller. The tree is derived
from it again after every change.
"""
import json
import logging
from enum import Enum
from typing import Callable, List, Optional, Sequence

import schema_ops
from schema_node import (
    ObjectNode, SchemaParseError, default_document, document_from_json, node_to_json,
)

logger = logging.getLogger(__name__)

DEFAULT_INDENT = 2


class EditorMode(Enum):
    RAW = "raw"
    VISUAL = "visual"


def parse_document(text: str) -> Optional[ObjectNode]:
    """Tree of the text, or None when the visual editor can't show it."""
    try:
        return document_from_json(json.loads(text))
    except (json.JSONDecodeError, SchemaParseError, RecursionError) as e:
        logger.debug("Visual mode unavailable: %s", e)
        return None


def serialize_document(document: ObjectNode, indent: int = DEFAULT_INDENT) -> str:
    return json.dumps(node_to_json(document), indent=indent, ensure_ascii=False)


class SchemaEditorController:
    def __init__(self, text: Optional[str] = None, mode: EditorMode = EditorMode.VISUAL,
                 indent: int = DEFAULT_INDENT):
        self.indent = indent
        if text is None:
            text = serialize_document(default_document(), indent)
        self._text = text
        self._document = parse_document(text)
        self._mode = mode
        self._listeners: List[Callable[[str], None]] = []

    @property
    def text(self) -> str:
        return self._text

    @property
    def document(self) -> Optional[ObjectNode]:
        return self._document

    @property
    def can_use_visual(self) -> bool:
        return self._document is not None

    @property
    def mode(self) -> EditorMode:
        """Mode the user asked for."""
        return self._mode

    @property
    def effective_mode(self) -> EditorMode:
        """Mode actually shown; unparsable text pins the editor to raw."""
        if self._mode is EditorMode.VISUAL and self.can_use_visual:
            return EditorMode.VISUAL
        return EditorMode.RAW

    def subscribe(self, callback: Callable[[str], None]):
        self._listeners.append(callback)

    def set_mode(self, mode: EditorMode) -> bool:
        if mode is EditorMode.VISUAL and not self.can_use_visual:
            return False
        self._mode = mode
        return True

    def set_text(self, text: str):
        """Raw edit. The text is kept verbatim, parsable or not."""
        if text == self._text:
            return
        self._text = text
        self._document = parse_document(text)
        self._notify()

    def apply(self, document: ObjectNode) -> str:
        """Visual edit: the new tree replaces the text."""
        if not isinstance(document, ObjectNode):
            raise TypeError("Root of schema must stay an object.")
        text = serialize_document(document, self.indent)
        if text != self._text:
            self._text = text
            self._document = parse_document(text)
            self._notify()
        return self._text

    def edit(self, path: Sequence[str], operation, *args) -> str:
        """Apply ``operation(node, *args)`` to the node at ``path`` and commit."""
        if self._document is None:
            logger.debug("Edit at %s ignored: text isn't a visual schema.", tuple(path))
            return self._text
        node = schema_ops.node_at(self._document, path)
        return self.apply(schema_ops.replace_at(self._document, path, operation(node, *args)))

    def _notify(self):
        for callback in self._listeners:
            callback(self._text)
