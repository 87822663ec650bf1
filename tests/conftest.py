"""Shared fixtures for pomerge tests."""
import shutil
import sys
from pathlib import Path

import pytest

# Ensure src is on path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir():
    return FIXTURES


@pytest.fixture(autouse=True)
def isolate_settings(tmp_path, monkeypatch):
    """Point settings at a temp file so the user's config never leaks in."""
    settings_file = tmp_path / "settings.json"
    monkeypatch.setattr("pomerge.services.settings._SETTINGS_FILE", settings_file)
    from pomerge.services.settings import Settings
    Settings.reset_instance()
    yield settings_file
    Settings.reset_instance()


@pytest.fixture
def languages(tmp_path):
    """Copy of the fr (reference) and fr_CA (target) fixture directories."""
    root = tmp_path / "locales"
    shutil.copytree(FIXTURES, root)
    return root / "fr_CA", root / "fr"


@pytest.fixture
def write_po(tmp_path):
    """Write ``lines`` to ``<tmp>/<lang>/<name>`` and return the path."""
    def _write(lang, name, lines, eol="\n"):
        directory = tmp_path / lang
        directory.mkdir(exist_ok=True)
        path = directory / name
        path.write_bytes((eol.join(lines) + eol).encode("utf-8"))
        return path
    return _write
