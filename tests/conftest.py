"""Shared fixtures for the test suite."""
import os
from pathlib import Path

import pytest

from gamecloud_toolkit.secrets.domains import preferences

from .fakes import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Fixture to create a temporary home directory for testing."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setattr(Path, "home", lambda: fake_home)

    fake_config_dir = fake_home / ".config" / "gamecloud-toolkit"
    monkeypatch.setattr(preferences, "PREFERENCES_DIR", fake_config_dir)
    monkeypatch.setattr(preferences, "PREFERENCES_FILE", fake_config_dir / "preferences.json")

    return fake_home


@pytest.fixture(autouse=True)
def clean_gamecloud_env(monkeypatch):
    """Keep developer environment variables from leaking into config resolution."""
    for name in list(os.environ):
        if name.startswith("GAMECLOUD_") or name == "GCP_PROJECT":
            monkeypatch.delenv(name, raising=False)
