"""
epicwall Configuration Management

This file handles utilities related to generating and loading variables from a configuration file.
EpicwallConfig should be loaded by the CLI before any work is done. Raise an EpicwallConfigError
for any issues that arise in processing or retrieving these configuration variables.

The configuration file is "config.json" and is saved at ~/.config/epicwall/config.json as per
modern Linux app conventions. Set EPICWALL_CONFIG_DIR in the environment to read it from
somewhere else.
"""

import json
import os
from dataclasses import dataclass
from dataclasses import asdict
from dataclasses import fields
from pathlib import Path, PurePath


DEFAULT_API_URL = "https://epic.gsfc.nasa.gov/api/natural/images"
DEFAULT_ARCHIVE_URL = "https://epic.gsfc.nasa.gov/archive/natural"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64; rv:109.0) Gecko/20100101 Firefox/115.0"
)

LATEST_RECORD_CHOICES = ("first", "last")


class EpicwallConfigError(Exception):
    """Raise when an issue occurs with handling epicwall configuration."""

    pass


class PathEncoder(json.JSONEncoder):
    """
    custom encoder adds support for serializing pathlib objects as strings
    """

    def default(self, o):
        if isinstance(o, PurePath):
            return str(o)

        else:
            return json.JSONEncoder.default(self, o)


@dataclass
class EpicwallConfig:
    """
    Dataclass to represent configuration variables for epicwall: where wallpapers are
    stored, which EPIC endpoints are queried and how the HTTP client behaves.

    The pattern applied is to instantiate an EpicwallConfig by supplying variadic keyword arguments from
    a deserialized json object. That way application code can reference the identifiers in the
    dataclass without ever touching brittle dictionary keys. The json object is kept fully flat.

    EPIC_LATEST_RECORD tells the locator where the newest image sits in the metadata array. The
    default endpoint lists the latest day in capture order, so the newest entry is the "last" one.
    The api.nasa.gov mirror lists the newest first and needs "first".
    """

    EPICWALL_CONFIG_DIR: Path = Path("~/.config/epicwall").expanduser()
    EPICWALL_WALLPAPER_DIR: Path = Path("~/Pictures/SatelliteWallpaper").expanduser()
    EPIC_API_URL: str = DEFAULT_API_URL
    EPIC_ARCHIVE_URL: str = DEFAULT_ARCHIVE_URL
    EPIC_LATEST_RECORD: str = "last"
    FILE_PREFIX: str = "epic_earth"
    USER_AGENT: str = DEFAULT_USER_AGENT
    CONNECT_TIMEOUT: float = 10
    READ_TIMEOUT: float = 60

    def __post_init__(self):
        """
        Handle the case where a new EpicwallConfig is created from JSON, which cannot
        deserialize a str into a Path, then check the values that the pipeline relies on.
        """

        self.EPICWALL_CONFIG_DIR = Path(self.EPICWALL_CONFIG_DIR).expanduser()
        self.EPICWALL_WALLPAPER_DIR = Path(self.EPICWALL_WALLPAPER_DIR).expanduser()

        if self.EPIC_LATEST_RECORD not in LATEST_RECORD_CHOICES:
            raise EpicwallConfigError(
                f"EPIC_LATEST_RECORD must be one of {', '.join(LATEST_RECORD_CHOICES)}, "
                f"got '{self.EPIC_LATEST_RECORD}'."
            )

        for name in ("CONNECT_TIMEOUT", "READ_TIMEOUT"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise EpicwallConfigError(
                    f"{name} must be a positive number of seconds, got {value!r}."
                )

    @property
    def timeout(self) -> tuple[float, float]:
        """(connect, read) timeout pair in the form requests expects."""

        return (self.CONNECT_TIMEOUT, self.READ_TIMEOUT)

    def generate_config_json(self) -> Path:
        """
        Write the EpicwallConfig to file, serializing to JSON. Returns filepath of written
        config.json file which is located at EPICWALL_CONFIG_DIR.

        Will overwrite any existing config file.
        """

        try:
            to_json = json.dumps(
                asdict(self), sort_keys=True, indent=4, cls=PathEncoder
            )

        except TypeError as error:
            raise EpicwallConfigError(
                f"There was an error trying to serialize config data to JSON: {error}"
            ) from error

        try:
            self.EPICWALL_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
            dest_file = self.EPICWALL_CONFIG_DIR / "config.json"
            dest_file.write_text(to_json)

        except OSError as error:
            raise EpicwallConfigError(
                f"There was an error saving the configuration file: {error}."
            ) from error

        return dest_file


def config_dir() -> Path:
    """Directory holding config.json, honouring EPICWALL_CONFIG_DIR."""

    try:
        return Path(os.environ["EPICWALL_CONFIG_DIR"]).expanduser()

    except KeyError:
        return Path("~/.config/epicwall").expanduser()


def init() -> EpicwallConfig:
    """Load the epicwall config, writing a default one on first run."""

    try:
        config: EpicwallConfig = load_config()

    except FileNotFoundError:

        config = EpicwallConfig(EPICWALL_CONFIG_DIR=config_dir())
        config.generate_config_json()

    return config


def load_config() -> EpicwallConfig:
    """
    Load a config.json from environment variable EPICWALL_CONFIG_DIR or alternatively ~/.config/epicwall
    and instantiate variables as an EpicwallConfig dataclass.

    Raise FileNotFoundError if there is no config file yet, EpicwallConfigError if the file
    exists but can't be used.
    """

    config_src = config_dir() / "config.json"

    try:
        from_json = json.loads(config_src.read_text())

    except json.JSONDecodeError as error:
        raise EpicwallConfigError(
            f"There was an issue reading the config at {config_src}: {error}"
        ) from error

    except FileNotFoundError:
        raise

    except OSError as error:
        raise EpicwallConfigError(
            f"There was an issue opening the config at {config_src}: {error}"
        ) from error

    if not isinstance(from_json, dict):
        raise EpicwallConfigError(f"The config at {config_src} is not a JSON object.")

    known = {field.name for field in fields(EpicwallConfig)}
    unknown = sorted(set(from_json) - known)
    if unknown:
        raise EpicwallConfigError(
            f"Unknown setting(s) in {config_src}: {', '.join(unknown)}"
        )

    # the directory we actually read from wins over whatever the file says
    from_json["EPICWALL_CONFIG_DIR"] = config_src.parent

    return EpicwallConfig(**from_json)
