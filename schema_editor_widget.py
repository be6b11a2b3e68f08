import logging
from dataclasses import replace
from typing import Dict, Optional

from PyQt6.QtCore import Qt, pyqtSignal, QSignalBlocker
from PyQt6.QtGui import QFontDatabase
from PyQt6.QtWidgets import *

import schema_ops
from media import ITEM_TYPES, MEDIA_KINDS, display_type
from schema_controller import DEFAULT_INDENT, EditorMode, SchemaEditorController
from schema_node import PRIMITIVE_TYPES, ArrayNode, ObjectNode, SchemaNode, UnknownNode

logger = logging.getLogger(__name__)

# levels below this start collapsed
EXPAND_DEPTH = 2


class PropertyEditor(QWidget):
    """One property row; recurses into object properties and array item schemas."""

    updated = pyqtSignal(str, object)
    removed = pyqtSignal(str)
    renamed = pyqtSignal(str, str)
    requiredToggled = pyqtSignal(str)

    def __init__(self, name: str, node: SchemaNode, is_required: bool, depth=0,
                 expand_depth=EXPAND_DEPTH, parent=None):
        super().__init__(parent)
        self.name = name
        self.node = node
        self.depth = depth
        self.expand_depth = expand_depth
        self.children_widget: Optional[QWidget] = None
        self.child_list: Optional[PropertyListEditor] = None
        self._editing_name = False

        layout = QVBoxLayout(self)
        if depth > 0:
            layout.setContentsMargins(16, 4, 0, 4)
        else:
            layout.setContentsMargins(0, 4, 0, 4)

        # Header -> Expand / collapse
        header = QHBoxLayout()
        self.expand_button = QToolButton()
        self.expand_button.setCheckable(True)
        self.expand_button.setChecked(depth < expand_depth)
        self.expand_button.toggled.connect(self._refresh_expanded)
        header.addWidget(self.expand_button)

        # Header -> Name
        self.name_button = QPushButton(name)
        self.name_button.setToolTip("Click to edit name")
        self.name_button.clicked.connect(self.start_rename)
        header.addWidget(self.name_button)
        self.name_edit = QLineEdit(name)
        self.name_edit.setVisible(False)
        self.name_edit.textEdited.connect(self.on_name_edited)
        self.name_edit.editingFinished.connect(self.commit_rename)
        header.addWidget(self.name_edit)

        # Header -> Type
        self.type_combo = QComboBox()
        self.type_combo.addItems(PRIMITIVE_TYPES)
        self.type_combo.insertSeparator(len(PRIMITIVE_TYPES))
        self.type_combo.addItems(MEDIA_KINDS)
        self._type_count = self.type_combo.count()
        self.type_combo.currentTextChanged.connect(self.on_type_changed)
        header.addWidget(self.type_combo)

        # Header -> Array item type
        self.items_label = QLabel("of")
        header.addWidget(self.items_label)
        self.item_type_combo = QComboBox()
        self.item_type_combo.addItems(ITEM_TYPES)
        self.item_type_combo.currentTextChanged.connect(self.on_item_type_changed)
        header.addWidget(self.item_type_combo)

        # Header -> Required / remove
        self.required_check = QCheckBox("Required")
        self.required_check.setChecked(is_required)
        self.required_check.toggled.connect(self.on_required_toggled)
        header.addWidget(self.required_check)
        self.remove_button = QPushButton("Remove")
        self.remove_button.clicked.connect(self.on_remove_clicked)
        header.addWidget(self.remove_button)
        header.addStretch()
        layout.addLayout(header)

        # Description
        self.description_edit = QLineEdit(node.description or "")
        self.description_edit.setPlaceholderText("Description (optional)")
        self.description_edit.textEdited.connect(self.on_description_changed)
        layout.addWidget(self.description_edit)

        # Nested properties
        self.children_layout = QVBoxLayout()
        self.children_layout.setContentsMargins(0, 0, 0, 0)
        layout.addLayout(self.children_layout)
        self._refresh_body()

    def is_expanded(self) -> bool:
        return self.expand_button.isChecked()

    def set_name(self, name: str):
        self.name = name
        self.name_button.setText(name)
        self.name_edit.setText(name)

    def start_rename(self):
        self._editing_name = True
        self.name_edit.setText(self.name)
        self.name_button.setVisible(False)
        self.name_edit.setVisible(True)
        self.name_edit.setFocus()
        self.name_edit.selectAll()

    def on_name_edited(self, text):
        clean = schema_ops.sanitize_name(text)
        if clean != text:
            cursor = self.name_edit.cursorPosition() - (len(text) - len(clean))
            self.name_edit.setText(clean)
            self.name_edit.setCursorPosition(max(cursor, 0))

    def commit_rename(self):
        # editingFinished fires again on focus loss after Enter
        if not self._editing_name:
            return
        self._editing_name = False
        new_name = self.name_edit.text()
        self.name_edit.setVisible(False)
        self.name_button.setVisible(True)
        if new_name and new_name != self.name:
            self.renamed.emit(self.name, new_name)
        else:
            self.name_edit.setText(self.name)

    def on_type_changed(self, type_):
        if not type_:
            return
        self.node = schema_ops.retype(self.node, type_)
        self._refresh_body()
        self.updated.emit(self.name, self.node)

    def on_item_type_changed(self, item_type):
        if not item_type or not isinstance(self.node, ArrayNode):
            return
        self.node = schema_ops.set_item_type(self.node, item_type)
        self._refresh_body()
        self.updated.emit(self.name, self.node)

    def on_description_changed(self, text):
        self.node = schema_ops.set_description(self.node, text)
        self.updated.emit(self.name, self.node)

    def on_required_toggled(self):
        self.requiredToggled.emit(self.name)

    def on_remove_clicked(self):
        self.removed.emit(self.name)

    def on_children_changed(self, obj: ObjectNode):
        if isinstance(self.node, ObjectNode):
            self.node = replace(
                self.node, properties=obj.properties, required=obj.required)
        else:  # array of objects
            items = replace(
                self.node.items, properties=obj.properties, required=obj.required)
            self.node = replace(self.node, items=items)
        self.updated.emit(self.name, self.node)

    def _refresh_body(self):
        node = self.node
        type_ = display_type(node)
        with QSignalBlocker(self.type_combo):
            # type text of a node kept as written, dropped again after a retype
            while self.type_combo.count() > self._type_count:
                self.type_combo.removeItem(self.type_combo.count() - 1)
            if self.type_combo.findText(type_) < 0:
                self.type_combo.addItem(type_)
            self.type_combo.setCurrentText(type_)
        # boolean schemas have nowhere to keep a description
        self.description_edit.setEnabled(
            not isinstance(node, UnknownNode) or isinstance(node.raw, dict))

        is_array = isinstance(node, ArrayNode)
        self.items_label.setVisible(is_array)
        self.item_type_combo.setVisible(is_array)
        if is_array:
            with QSignalBlocker(self.item_type_combo):
                # item types the selector doesn't offer, e.g. nested arrays typed in raw
                if self.item_type_combo.findText(node.items.type) < 0:
                    self.item_type_combo.addItem(node.items.type)
                self.item_type_combo.setCurrentText(node.items.type)
        self.expand_button.setVisible(isinstance(node, (ObjectNode, ArrayNode)))

        if self.children_widget is not None:
            self.children_layout.removeWidget(self.children_widget)
            self.children_widget.deleteLater()
            self.children_widget = None
            self.child_list = None
        if isinstance(node, ObjectNode):
            self.child_list = PropertyListEditor(node, self.depth + 1, self.expand_depth)
            self.children_widget = self.child_list
        elif is_array and isinstance(node.items, ObjectNode):
            self.child_list = PropertyListEditor(node.items, self.depth + 1, self.expand_depth)
            self.children_widget = QWidget()
            container = QVBoxLayout(self.children_widget)
            container.setContentsMargins(16, 0, 0, 0)
            container.addWidget(QLabel("Array item schema:"))
            container.addWidget(self.child_list)
        if self.child_list is not None:
            self.child_list.changed.connect(self.on_children_changed)
            self.children_layout.addWidget(self.children_widget)
        self._refresh_expanded()

    def _refresh_expanded(self):
        expanded = self.is_expanded()
        self.expand_button.setArrowType(
            Qt.ArrowType.DownArrow if expanded else Qt.ArrowType.RightArrow)
        if self.children_widget is not None:
            self.children_widget.setVisible(expanded)


class PropertyListEditor(QWidget):
    """Properties of one object node, plus the "add property" button."""

    changed = pyqtSignal(object)

    def __init__(self, obj: ObjectNode, depth=0, expand_depth=EXPAND_DEPTH, parent=None):
        super().__init__(parent)
        self.obj = obj
        self.depth = depth
        self.expand_depth = expand_depth
        self.rows: Dict[str, PropertyEditor] = {}

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self.rows_layout = QVBoxLayout()
        layout.addLayout(self.rows_layout)
        self.empty_label = QLabel("No properties defined.")
        layout.addWidget(self.empty_label)
        add_layout = QHBoxLayout()
        self.add_button = QPushButton("+ Add property")
        self.add_button.clicked.connect(self.add_property)
        add_layout.addWidget(self.add_button)
        add_layout.addStretch()
        layout.addLayout(add_layout)

        for name, node in obj.properties.items():
            self._add_row(name, node)
        self._refresh_empty()

    def add_property(self):
        name = schema_ops.new_property_name(self.obj)
        obj = schema_ops.add_property(self.obj)
        self._add_row(name, obj.properties[name], obj)
        self._commit(obj)

    def update_property(self, name, node):
        self._commit(schema_ops.update_property(self.obj, name, node))

    def remove_property(self, name):
        row = self.rows.pop(name, None)
        if row is not None:
            self.rows_layout.removeWidget(row)
            row.deleteLater()
        self._commit(schema_ops.remove_property(self.obj, name))

    def rename_property(self, old_name, new_name):
        obj = schema_ops.rename_property(self.obj, old_name, new_name)
        row = self.rows[old_name]
        if obj is self.obj:  # declined
            row.set_name(old_name)
            return
        del self.rows[old_name]
        row.set_name(new_name)
        self.rows[new_name] = row
        self._commit(obj)

    def toggle_required(self, name):
        obj = schema_ops.toggle_required(self.obj, name)
        row = self.rows[name]
        with QSignalBlocker(row.required_check):
            row.required_check.setChecked(name in obj.required)
        self._commit(obj)

    def _add_row(self, name, node, obj=None):
        obj = obj or self.obj
        row = PropertyEditor(
            name, node, name in obj.required, self.depth, self.expand_depth)
        row.updated.connect(self.update_property)
        row.removed.connect(self.remove_property)
        row.renamed.connect(self.rename_property)
        row.requiredToggled.connect(self.toggle_required)
        self.rows_layout.addWidget(row)
        self.rows[name] = row

    def _refresh_empty(self):
        self.empty_label.setVisible(not self.obj.properties)

    def _commit(self, obj: ObjectNode):
        self.obj = obj
        self._refresh_empty()
        self.changed.emit(obj)


class SchemaEditor(QFrame):
    """Schema text editor with a visual (tree) and a raw (JSON) surface."""

    valueChanged = pyqtSignal(str)

    def __init__(self, value=None, parent=None, mode=EditorMode.VISUAL,
                 expand_depth=EXPAND_DEPTH, indent=DEFAULT_INDENT):
        super().__init__(parent)
        self.setObjectName("schemaEditor")
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self.expand_depth = expand_depth
        self.controller = SchemaEditorController(value, mode=mode, indent=indent)
        self.controller.subscribe(self.valueChanged.emit)
        self.visual_tree: Optional[PropertyListEditor] = None

        layout = QVBoxLayout(self)

        # Mode toggle
        header = QHBoxLayout()
        header.addWidget(QLabel("Schema editor"))
        header.addStretch()
        self.visual_button = QPushButton("Visual")
        self.visual_button.setCheckable(True)
        self.visual_button.clicked.connect(self.show_visual)
        header.addWidget(self.visual_button)
        self.raw_button = QPushButton("JSON")
        self.raw_button.setCheckable(True)
        self.raw_button.clicked.connect(self.show_raw)
        header.addWidget(self.raw_button)
        layout.addLayout(header)

        # Editor content
        self.stack = QStackedWidget()
        self.raw_edit = QPlainTextEdit()
        self.raw_edit.setFont(QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont))
        self.raw_edit.setPlainText(self.controller.text)
        self.raw_edit.textChanged.connect(self.on_raw_edited)
        self.stack.addWidget(self.raw_edit)
        self.scroll = QScrollArea()
        self.scroll.setWidgetResizable(True)
        self.stack.addWidget(self.scroll)
        layout.addWidget(self.stack)

        self._refresh_mode(rebuild=True)

    def value(self) -> str:
        return self.controller.text

    def setValue(self, text: str):
        if text == self.controller.text:
            return
        self.controller.set_text(text)
        self._sync_raw()
        self._refresh_mode(rebuild=True)

    def setError(self, error: bool):
        if error:
            self.setStyleSheet("#schemaEditor { border: 1px solid #dc2626; }")
        else:
            self.setStyleSheet("")

    def show_visual(self):
        was_raw = self.controller.effective_mode is EditorMode.RAW
        self.controller.set_mode(EditorMode.VISUAL)
        self._refresh_mode(rebuild=was_raw)

    def show_raw(self):
        self.controller.set_mode(EditorMode.RAW)
        self._refresh_mode()

    def on_raw_edited(self):
        self.controller.set_text(self.raw_edit.toPlainText())
        self._refresh_mode(rebuild=True)

    def on_visual_changed(self, document: ObjectNode):
        self.controller.apply(document)

    def _sync_raw(self):
        if self.raw_edit.toPlainText() != self.controller.text:
            with QSignalBlocker(self.raw_edit):
                self.raw_edit.setPlainText(self.controller.text)

    def _rebuild_visual(self):
        tree = PropertyListEditor(self.controller.document, 0, self.expand_depth)
        tree.changed.connect(self.on_visual_changed)
        # the scroll area deletes the previous tree
        self.scroll.setWidget(tree)
        self.visual_tree = tree

    def _refresh_mode(self, rebuild=False):
        effective = self.controller.effective_mode
        self.visual_button.setEnabled(self.controller.can_use_visual)
        self.visual_button.setChecked(effective is EditorMode.VISUAL)
        self.raw_button.setChecked(self.controller.mode is EditorMode.RAW)
        if effective is EditorMode.VISUAL:
            if rebuild or self.visual_tree is None:
                self._rebuild_visual()
            self.stack.setCurrentWidget(self.scroll)
        else:
            self._sync_raw()
            self.stack.setCurrentWidget(self.raw_edit)
