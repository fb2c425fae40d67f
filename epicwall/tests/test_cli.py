"""
Test the CLI driver for epicwall

cli.py is the entry point for the epicwall program. Verify that invocation returns the correct
exit code on success or failure, that bad arguments are rejected before anything touches the
network, and that the whole pipeline wires the pieces together.

The network is replaced by patching requests.get once for both handlers, answering by URL, and
the desktop by patching shutil.which in the command runner so that no settings tool is "installed".

*** Fixtures ***
- config_dir, epic_records, png_bytes (defined in conftest.py)
"""

import json
import unittest.mock
from pathlib import Path

import pytest
from click.testing import CliRunner
from PIL import Image

from epicwall.cli import cli
from epicwall.cli import output_path
from epicwall.epic_handler import ImageRecord

runner = CliRunner()

ARCHIVE_URL = (
    "https://epic.gsfc.nasa.gov/archive/natural/2024/01/01/png/epic_1b_20240101000000.png"
)


@pytest.fixture
def mock_epic(epic_records, png_bytes):
    """
    Patch the HTTP calls of the pipeline: requests to the metadata endpoint answer with
    epic_records and requests to the archive stream a small PNG. Yields the patched
    requests.get and the archive response.
    """

    metadata = unittest.mock.MagicMock()
    metadata.status_code = 200
    metadata.text = json.dumps(epic_records)
    metadata.json.return_value = epic_records

    image = unittest.mock.MagicMock()
    image.status_code = 200
    image.iter_content.return_value = [png_bytes]

    def answer(url, *args, **kwargs):
        return metadata if "/api/" in url else image

    with unittest.mock.patch("requests.get", autospec=True, side_effect=answer) as get:
        yield get, image


@pytest.fixture
def no_desktop_tools():
    with unittest.mock.patch("epicwall.runner.shutil.which", return_value=None) as which:
        yield which


@pytest.mark.parametrize("resolution", ["1920", "x1080", "abcxdef", "", "1920x", "0x1080", "1920X1080"])
@unittest.mock.patch("requests.get", autospec=True)
def test_invalid_resolution(mock_get, config_dir, resolution):
    result = runner.invoke(cli, [resolution])

    assert result.exit_code == 1
    assert "WIDTHxHEIGHT" in result.output
    mock_get.assert_not_called()


@pytest.mark.parametrize("args", [[], ["1920x1080", "1280x720"]])
@unittest.mock.patch("requests.get", autospec=True)
def test_wrong_argument_count(mock_get, config_dir, args):
    result = runner.invoke(cli, args)

    assert result.exit_code == 1
    assert "Usage:" in result.output
    mock_get.assert_not_called()


def test_help():
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "WIDTHxHEIGHT" in result.output


def test_end_to_end(config_dir, tmp_path, mock_epic, no_desktop_tools):
    """
    No desktop tool is available, so the wallpaper can't be applied. The image is still
    downloaded, resized and stored, and the run still succeeds.
    """

    get, _ = mock_epic

    result = runner.invoke(cli, ["1920x1080"])

    assert result.exit_code == 0, result.output

    requested = [call.args[0] for call in get.call_args_list]
    assert requested == ["https://epic.gsfc.nasa.gov/api/natural/images", ARCHIVE_URL]

    stored = tmp_path / "Pictures" / "epic_earth_epic_1b_20240101000000_1920x1080.png"
    assert stored.exists()
    with Image.open(stored) as img:
        assert img.size == (1920, 960)

    assert "No known method worked" in result.output
    assert "Not installed" in result.output


def test_end_to_end_quiet(config_dir, tmp_path, mock_epic, no_desktop_tools):
    result = runner.invoke(cli, ["--quiet", "1280x720"])

    assert result.exit_code == 0
    assert "Fetching latest EPIC image" not in result.output
    assert (tmp_path / "Pictures" / "epic_earth_epic_1b_20240101000000_1280x720.png").exists()


@unittest.mock.patch("requests.get", autospec=True)
def test_fetch_failure_exits_1(mock_get, config_dir):
    metadata = unittest.mock.MagicMock()
    metadata.status_code = 200
    metadata.text = "[]"
    metadata.json.return_value = []
    mock_get.return_value = metadata

    result = runner.invoke(cli, ["1920x1080"])

    assert result.exit_code == 1
    assert "Could not parse latest image data" in result.output
    assert mock_get.call_count == 1


def test_download_failure_exits_1(config_dir, tmp_path, mock_epic):
    _, image = mock_epic
    image.iter_content.return_value = []

    result = runner.invoke(cli, ["1920x1080"])

    assert result.exit_code == 1
    assert list((tmp_path / "Pictures").iterdir()) == []


def test_bad_config_exits_1(config_dir):
    (config_dir / "config.json").write_text(json.dumps({"EPIC_LATEST_RECORD": "middle"}))

    result = runner.invoke(cli, ["1920x1080"])

    assert result.exit_code == 1
    assert "EPIC_LATEST_RECORD" in result.output


def test_output_path():
    record = ImageRecord(
        remote_url="https://epic.gsfc.nasa.gov/archive/natural/2024/01/01/png/epic_1b_20240101000000.png",
        filename_component="epic_1b_20240101000000",
    )

    assert output_path(Path("/wallpapers"), record, (1920, 1080)) == Path(
        "/wallpapers/epic_earth_epic_1b_20240101000000_1920x1080.png"
    )
