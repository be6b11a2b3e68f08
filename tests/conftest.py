import os

# widgets are built without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtWidgets import QMessageBox


@pytest.fixture()
def message_boxes(monkeypatch):
    """ Records message boxes instead of blocking on them. """
    shown = []

    def fake_exec(self):
        shown.append((self.windowTitle(), self.text()))
        return 0

    monkeypatch.setattr(QMessageBox, "exec", fake_exec)
    return shown


@pytest.fixture()
def config(tmp_path, monkeypatch):
    """ Fresh config living in a temporary working directory. """
    from config import Config

    monkeypatch.chdir(tmp_path)
    return Config()
