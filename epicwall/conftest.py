"""
conftest.py

Test configuration for epicwall tests.

Defines Pytest fixtures for supplying test data to tests across the entire
test suite. Fixtures used within only a single module are defined
directly in that module. Conftest.py should only be used for universal
fixtures.
"""

import json
from pathlib import Path

import pytest
from PIL import Image

from epicwall.runner import CommandResult
from epicwall.cli_utils.console import console
from epicwall.cli_utils.console import error_console


EPIC_RECORDS = [
    {
        "identifier": "20231231220000",
        "caption": "This image was taken by NASA's EPIC camera onboard the NOAA DSCOVR spacecraft",
        "image": "epic_1b_20231231220000",
        "version": "03",
        "date": "2023-12-31 22:00:00",
    },
    {
        "identifier": "20240101000000",
        "caption": "This image was taken by NASA's EPIC camera onboard the NOAA DSCOVR spacecraft",
        "image": "epic_1b_20240101000000",
        "version": "03",
        "date": "2024-01-01 00:00:00",
    },
]


class FakeRunner:
    """
    Stand-in for CommandRunner. `tools` lists the executables that are "installed" and
    `results` maps an executable name to the CommandResult every call to it returns
    (success with no output by default). Every call is recorded in `calls`.
    """

    def __init__(self, tools=(), results=None):
        self.tools = set(tools)
        self.results = results or {}
        self.calls = []

    def exists(self, name: str) -> bool:
        return name in self.tools

    def run(self, name: str, args: list[str]) -> CommandResult:
        self.calls.append([name, *args])
        return self.results.get(name, CommandResult(returncode=0))

    def called(self, name: str) -> list[list[str]]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def epic_records() -> list[dict]:
    """A copy of a realistic EPIC metadata response, newest record last."""

    return json.loads(json.dumps(EPIC_RECORDS))


@pytest.fixture
def fake_runner():
    """Factory for FakeRunner objects."""

    return FakeRunner


@pytest.fixture
def test_image(tmp_path) -> Path:
    """
    Write a small PNG to the test's temporary directory and return its path. Generated on
    the fly so the suite doesn't depend on binary fixtures.
    """

    path = tmp_path / "earth.png"
    Image.new("RGB", (200, 100), color=(10, 40, 120)).save(path, format="PNG")
    return path


@pytest.fixture
def png_bytes(test_image) -> bytes:
    return test_image.read_bytes()


@pytest.fixture
def config_dir(tmp_path, monkeypatch) -> Path:
    """
    Point EPICWALL_CONFIG_DIR at a temporary directory holding a config.json that stores
    wallpapers in the temporary directory too.
    """

    directory = tmp_path / "config"
    directory.mkdir()
    (directory / "config.json").write_text(
        json.dumps({"EPICWALL_WALLPAPER_DIR": str(tmp_path / "Pictures")})
    )
    monkeypatch.setenv("EPICWALL_CONFIG_DIR", str(directory))
    return directory


@pytest.fixture(autouse=True)
def reset_consoles():
    """
    --quiet swaps the stdout console's file for a StringIO. Undo that after every test, and
    make both consoles wide enough that rich never wraps a message we assert on.
    """

    console.width = error_console.width = 1000
    yield
    console.file = None
