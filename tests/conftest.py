import os
from pathlib import Path

import pytest

import cfgtree.config

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def default_config(tmp_path, monkeypatch):
    """Every test starts from built-in defaults, whatever the environment holds."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for key in list(os.environ):
        if key.startswith("CFGTREE_"):
            monkeypatch.delenv(key)
    cfgtree.config._config = None
    yield
    cfgtree.config._config = None


@pytest.fixture
def app_php() -> str:
    return (FIXTURES / "app.php").read_text()
