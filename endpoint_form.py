import json
import logging
import os

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction
from PyQt6.QtWidgets import *

from config import Config
from json_schema_dialog import SchemaEditorDialog, check_schema_text
from schema_controller import EditorMode
from schema_editor_widget import SchemaEditor

logger = logging.getLogger(__name__)


class EndpointForm(QMainWindow):
    """Endpoint definition form; owns the input and output schema texts."""

    def __init__(self, config=None, endpoint=None):
        super(EndpointForm, self).__init__(flags=Qt.WindowType.Window)

        # Logical, e.g. 2560*1440 150% -> 1707*960
        screen_size = self.screen().size()
        window_height = round(0.7 * screen_size.height())
        window_width = round(1.2 * window_height)
        self.resize(window_width, window_height)
        self.setWindowTitle('Endpoint')
        self.center()

        self.config = Config() if config is None else config
        endpoint = endpoint or {}
        self.create_menu_bar()

        self.name_edit = QLineEdit(endpoint.get("name", ""), self)
        self.name_error = QLabel(self)
        self.description_edit = QPlainTextEdit(endpoint.get("description", ""), self)
        self.description_edit.setMaximumHeight(80)

        self.use_input_schema = QCheckBox("Use input schema", self)
        self.use_input_schema.setChecked(endpoint.get("input_schema") is not None)
        self.input_schema = self._schema_editor(endpoint.get("input_schema"))
        self.input_error = QLabel(self)
        self.use_output_schema = QCheckBox("Use output schema", self)
        self.use_output_schema.setChecked(endpoint.get("output_schema") is not None)
        self.output_schema = self._schema_editor(endpoint.get("output_schema"))
        self.output_error = QLabel(self)
        for label in (self.name_error, self.input_error, self.output_error):
            label.setStyleSheet("color: #dc2626;")
            label.setVisible(False)

        self.use_input_schema.toggled.connect(self.refresh_schema_visibility)
        self.use_output_schema.toggled.connect(self.refresh_schema_visibility)
        # once an error is shown, re-check on every change
        self.input_schema.valueChanged.connect(self.on_schema_changed)
        self.output_schema.valueChanged.connect(self.on_schema_changed)

        export_button = QPushButton("Export request", self)
        export_button.clicked.connect(self.export_request)
        export_row = QHBoxLayout()
        export_row.addStretch()
        export_row.addWidget(export_button)

        main_part = QWidget()
        main_layout = QFormLayout(main_part)
        main_layout.addRow('Name:', self.name_edit)
        main_layout.addRow('', self.name_error)
        main_layout.addRow('Description:', self.description_edit)
        main_layout.addRow(self.use_input_schema)
        main_layout.addRow(self.input_schema)
        main_layout.addRow(self.input_error)
        main_layout.addRow(self.use_output_schema)
        main_layout.addRow(self.output_schema)
        main_layout.addRow(self.output_error)
        main_layout.addRow(export_row)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(main_part)
        self.setCentralWidget(scroll)

        self.status = QStatusBar(self)
        self.status.showMessage('Ready.', 0)
        self.setStatusBar(self.status)
        self.refresh_schema_visibility()

    def create_menu_bar(self):
        # File menu
        load_input = QAction("Load &input schema", self)
        load_input.triggered.connect(self.load_input_schema)
        load_output = QAction("Load &output schema", self)
        load_output.triggered.connect(self.load_output_schema)
        export = QAction("&Export request", self)
        export.triggered.connect(self.export_request)
        export.setShortcut("Ctrl+E")

        # Schema menu
        json_schema_existed = QAction("Edit schema file: open &existed", self)
        json_schema_existed.triggered.connect(self.existed_json_schema)
        json_schema_new = QAction("Edit schema file: create &new", self)
        json_schema_new.triggered.connect(self.new_json_schema)

        # First-level buttons
        file_ = QMenu('&File', self)
        file_.addActions([load_input, load_output, export])
        schema = QMenu('&Schema', self)
        schema.addActions([json_schema_existed, json_schema_new])

        # Menu bar
        menu = QMenuBar(self)
        menu.addMenu(file_)
        menu.addMenu(schema)
        self.setMenuBar(menu)

    def _default_mode(self):
        try:
            return EditorMode(self.config["default_mode"])
        except ValueError:
            logger.warning("Unknown editor mode %r in config.", self.config["default_mode"])
            return EditorMode.VISUAL

    def _schema_editor(self, schema):
        indent = self.config["indent"]
        text = None if schema is None else json.dumps(schema, indent=indent, ensure_ascii=False)
        return SchemaEditor(
            text, parent=self, mode=self._default_mode(),
            expand_depth=self.config["expand_depth"], indent=indent,
        )

    def _schema_fields(self):
        return [
            (self.use_input_schema, self.input_schema, self.input_error),
            (self.use_output_schema, self.output_schema, self.output_error),
        ]

    def refresh_schema_visibility(self):
        for use, editor, error in self._schema_fields():
            editor.setVisible(use.isChecked())
            if not use.isChecked():
                self._show_error(editor, error, None)

    def on_schema_changed(self):
        for use, editor, error in self._schema_fields():
            if error.text():
                self._check_schema(use, editor, error)

    @staticmethod
    def _show_error(editor, label, message):
        if editor is not None:
            editor.setError(message is not None)
        label.setText(message or "")
        label.setVisible(message is not None)

    def _check_schema(self, use, editor, error) -> bool:
        message = None
        if use.isChecked():
            is_valid, text = check_schema_text(editor.value())
            if not is_valid:
                message = text
        self._show_error(editor, error, message)
        return message is None

    def validate(self) -> bool:
        valid = True
        name_message = None if self.name_edit.text().strip() else "Name is required."
        self._show_error(None, self.name_error, name_message)
        valid = valid and name_message is None
        for use, editor, error in self._schema_fields():
            valid = self._check_schema(use, editor, error) and valid
        return valid

    def build_payload(self):
        """Request body for creating or updating the endpoint, or None when invalid."""
        if not self.validate():
            return None
        return {
            "name": self.name_edit.text().strip(),
            "description": self.description_edit.toPlainText(),
            "input_schema": json.loads(self.input_schema.value())
            if self.use_input_schema.isChecked() else None,
            "output_schema": json.loads(self.output_schema.value())
            if self.use_output_schema.isChecked() else None,
        }

    def export_request(self):
        payload = self.build_payload()
        if payload is None:
            self.silent_message(
                "warn", "Endpoint", "Some fields are invalid. Fix the highlighted fields.")
            return
        fp, _ = QFileDialog.getSaveFileName(filter='JSON (*.json)')
        if not fp:
            return
        with open(fp, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=4, ensure_ascii=False)
        logger.info("Exported request %s", fp)
        self.status.showMessage(f'Exported to {fp}.', 0)

    def load_input_schema(self):
        self._load_schema(self.use_input_schema, self.input_schema)

    def load_output_schema(self):
        self._load_schema(self.use_output_schema, self.output_schema)

    def _load_schema(self, use, editor):
        fp, _ = QFileDialog.getOpenFileName(
            directory=self.config["last_schema_dir"], filter='Schema (*.json)')
        if not fp:
            return
        try:
            with open(fp, "r", encoding="utf-8") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError):
            self.icon_message(
                "File", "Fail to read the schema file. It doesn't exist or isn't UTF-8 text.",
                QStyle.StandardPixmap.SP_FileIcon,
            )
            return
        use.setChecked(True)
        editor.setValue(text)
        self.remember_schema_dir(fp)

    def remember_schema_dir(self, fp):
        self.config["last_schema_dir"] = os.path.dirname(fp)
        self.config.dump()

    def existed_json_schema(self):
        fp, _ = QFileDialog.getOpenFileName(
            directory=self.config["last_schema_dir"], filter='Schema (*.json)')
        if fp:
            self.remember_schema_dir(fp)
        dialog = self._schema_dialog(fp)
        if not dialog.initial_valid:
            return
        if dialog.exec() == QDialog.DialogCode.Accepted:
            self.status.showMessage(f'Saved {dialog.filepath}.', 0)

    def new_json_schema(self):
        dialog = self._schema_dialog(None)
        if not dialog.initial_valid:
            return
        if dialog.exec() == QDialog.DialogCode.Accepted:
            self.status.showMessage(f'Saved {dialog.filepath}.', 0)

    def _schema_dialog(self, path):
        return SchemaEditorDialog(
            path, parent=self, mode=self._default_mode(),
            expand_depth=self.config["expand_depth"], indent=self.config["indent"],
        )

    def center(self):
        frame = self.frameGeometry()
        center = self.screen().availableGeometry().center()
        frame.moveCenter(center)
        self.move(frame.topLeft())

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
