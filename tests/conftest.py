"""
Shared fixtures for the QuickView test suite.
"""

import pytest

from quickview import paths
from quickview.config import reset_config


@pytest.fixture(autouse=True)
def clean_view_state(monkeypatch):
    """Start every test with no search paths and default configuration."""
    for name in ("QUICKVIEW_DISPLAY_ERRORS", "QUICKVIEW_TEMPLATE_PATHS", "QUICKVIEW_TEMPLATE_ENCODING"):
        monkeypatch.delenv(name, raising=False)
    paths.clear_paths()
    reset_config()
    yield
    paths.clear_paths()
    reset_config()


@pytest.fixture
def templates(tmp_path):
    """Return a helper that writes a template file and returns its directory."""

    def write(name, content, directory=None):
        directory = directory or tmp_path
        directory.mkdir(parents=True, exist_ok=True)
        (directory / name).write_text(content, encoding="utf-8")
        return directory

    return write
