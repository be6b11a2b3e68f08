import json
import logging

import jsonschema
from PyQt6.QtGui import QAction
from PyQt6.QtWidgets import *

from schema_controller import EditorMode
from schema_editor_widget import EXPAND_DEPTH, SchemaEditor

logger = logging.getLogger(__name__)


class SchemaEditorDialog(QDialog):
    def __init__(self, path=None, parent=None, mode=EditorMode.VISUAL,
                 expand_depth=EXPAND_DEPTH, indent=2):
        super().__init__(parent)
        self.setWindowTitle("Schema Editor")
        screen_size = self.screen().size()
        window_width = round(0.5 * screen_size.width())
        window_height = round(window_width / 1.6)
        self.setMinimumWidth(window_width)
        self.setMinimumHeight(window_height)
        self.filepath = None

        # Main window
        layout = QVBoxLayout()
        self.editor = SchemaEditor(
            parent=self, mode=mode, expand_depth=expand_depth, indent=indent)
        layout.addWidget(self.editor)

        # Menu bar -> Edit
        help_ = QAction("&Help", self)
        help_.triggered.connect(self.help)
        help_.setShortcut("F1")

        # Menu bar -> Validate
        v_schema = QAction("Validate &schema", self)
        v_schema.triggered.connect(self.validate_schema)
        v_ins = QAction("Validate &data", self)
        v_ins.triggered.connect(self.validate_data)

        # Menu bar -> First-level buttons
        edit_ = QMenu('&Edit', self)
        edit_.addActions([
            help_,
        ])
        validate = QMenu("&Validate", self)
        validate.addActions([
            v_schema,
            v_ins
        ])

        # Menu bar
        menu = QMenuBar(self)
        menu.addMenu(edit_)
        menu.addMenu(validate)
        layout.setMenuBar(menu)

        # Dialog buttons
        dialog_buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        dialog_buttons.accepted.connect(self.accept_)
        dialog_buttons.rejected.connect(self.reject)
        layout.addWidget(dialog_buttons)
        self.setLayout(layout)

        if path is None:
            fp, _ = QFileDialog.getSaveFileName(filter='JSON (*.json)')
            if fp:
                self.filepath = fp
                self.initial_valid = True
            else:
                self.icon_message(
                    "Fail",
                    "Fail to confirm the file path to save.",
                    QStyle.StandardPixmap.SP_DirOpenIcon,
                )
                self.initial_valid = False
            return
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
            json.loads(text)
        # path="" is possible when the open dialog is cancelled
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            self.initial_valid = False
            self.icon_message(
                "File",
                "Fail to open the schema. The file doesn't exist or isn't a "
                "schema.",
                QStyle.StandardPixmap.SP_FileIcon,
            )
            return
        logger.info("Opened schema %s", path)
        self.editor.setValue(text)
        self.filepath = path
        self.initial_valid = True
        if not self.editor.controller.can_use_visual:
            self.silent_message(
                "info", "Schema Editor",
                "This schema uses features the visual editor doesn't support. "
                "It can still be edited as JSON."
            )

    def help(self):
        self.icon_message(
            "Help",
            "[Modes]\n"
            "Visual: edit properties as a tree\n"
            "JSON: edit the schema text directly; the visual mode is disabled "
            "while the text isn't a valid object schema\n"
            "\n"
            "[Types]\n"
            "image / audio / video: saved as a binary string with a media type\n"
            "\n"
            "[Names]\n"
            "Property names may contain letters, digits and underscores.\n"
        )

    def _validate_schema(self):
        return check_schema_text(self.editor.value())

    def validate_schema(self):
        is_valid, message = self._validate_schema()
        if is_valid:
            level = "info"
        else:
            level = "warn"
        self.silent_message(level, "Validator", message)

    def silent_message(self, level, title, text):
        match level:
            case "info":
                icon = QStyle.StandardPixmap.SP_MessageBoxInformation
            case "warn":
                icon = QStyle.StandardPixmap.SP_MessageBoxWarning
            case "critical":
                icon = QStyle.StandardPixmap.SP_MessageBoxCritical
            case "question":
                icon = QStyle.StandardPixmap.SP_MessageBoxQuestion
            case _:
                raise ValueError("Function silent_message gets unsupported level.")
        size = QApplication.style().pixelMetric(QStyle.PixelMetric.PM_MessageBoxIconSize)
        message = QMessageBox(self)
        pix = QApplication.style().standardIcon(icon).pixmap(size, size)
        message.setIconPixmap(pix)
        message.setWindowTitle(title)
        message.setText(text)
        message.exec()

    def icon_message(self, title, text, icon=None):
        size = QApplication.style().pixelMetric(QStyle.PixelMetric.PM_MessageBoxIconSize)
        message = QMessageBox(self)
        if icon is not None:
            pix = QApplication.style().standardIcon(icon).pixmap(size, size)
            message.setIconPixmap(pix)
        message.setWindowTitle(title)
        message.setText(text)
        message.exec()

    def accept_(self):
        is_valid, message = self._validate_schema()
        if not is_valid:
            self.silent_message("warn", "Validator", message)
            return
        with open(self.filepath, "w", encoding="utf-8") as f:
            f.write(self.editor.value())
        logger.info("Saved schema %s", self.filepath)
        self.accept()

    def validate_data(self):
        try:
            schema = json.loads(self.editor.value())
        except json.JSONDecodeError as e:
            self.silent_message("warn", "Validator", f"Schema isn't valid JSON: {e}.")
            return
        fp, _ = QFileDialog.getOpenFileName(filter="JSON (*.json)")
        if not fp:
            return
        try:
            with open(fp, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            self.icon_message(
                "File",
                "Fail to open the data file. The file doesn't exist or has "
                "incompatible format.",
                QStyle.StandardPixmap.SP_FileIcon,
            )
            return
        is_valid, message = check_data(schema, data)
        self.silent_message("info" if is_valid else "warn", "Validator", message)


def format_error_path(root, path) -> str:
    path_str = root
    for p in path:
        if isinstance(p, str):
            p_ = "\"" + p + "\""
        else:
            p_ = str(p)
        path_str += "[" + p_ + "]"
    return path_str


def check_schema_text(text):
    """Whether the text is JSON and a Draft-7 schema, with a message for the user."""
    try:
        schema = json.loads(text)
    except json.JSONDecodeError as e:
        return False, f"Schema isn't valid JSON: {e}."
    try:
        jsonschema.Draft7Validator.check_schema(schema)
    except jsonschema.exceptions.SchemaError as e:
        error_message = "Schema is invalid:\n"
        error_message += f"At {format_error_path('schema', e.path)}, {e.message}.\n"
        return False, error_message
    else:
        return True, "Schema is valid."


def check_data(schema, data):
    validator = jsonschema.Draft7Validator(schema)
    errors = sorted(
        validator.iter_errors(data), key=lambda e: format_error_path('$', e.path))
    if not errors:
        return True, "Data fits this schema."
    error_message = "Data doesn't fit this schema:\n"
    for e in errors:
        error_message += f"At {format_error_path('$', e.path)}, {e.message}.\n"
    return False, error_message
