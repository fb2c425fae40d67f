"""
Desktop Wallpaper Handler

This module sets the desktop background on Linux. There is no cross-desktop API for
wallpapers, so the handler works out which desktop environment is running and drops into
that desktop's own settings tool:

    GNOME, Cinnamon, Unity, Ubuntu   gsettings   org.gnome.desktop.background picture-uri(-dark)
    MATE                             gsettings   org.mate.background picture-filename
    XFCE                             xfconf-query   xfce4-desktop /backdrop/.../image-path
    KDE Plasma                       qdbus       org.kde.PlasmaShell.evaluateScript

If the desktop is unknown, or its tool is missing or refuses the change, `feh --bg-scale`
is tried as a generic X11 fallback.

Failing to set the wallpaper is never fatal: by the time we get here the resized image is
already on disk. apply_wallpaper() reports the outcome in an ApplyResult and issues a
WallpaperApplyWarning when nothing worked.

More on the GNOME schema:
https://github.com/GNOME/gsettings-desktop-schemas/blob/master/schemas/org.gnome.desktop.background.gschema.xml.in
"""

import os
import re
import logging
import warnings
from enum import Enum
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional

from epicwall.runner import CommandRunner
from epicwall.cli_utils.console import describe

logger = logging.getLogger(__name__)

GNOME_SCHEMA = "org.gnome.desktop.background"
CINNAMON_SCHEMA = "org.cinnamon.desktop.background"
MATE_SCHEMA = "org.mate.background"
XFCE_CHANNEL = "xfce4-desktop"
XFCE_IMAGE_PROPERTY = re.compile(r"/backdrop/screen.*/monitor.*/(image-path|last-image)")
QDBUS_TOOLS = ("qdbus6", "qdbus")

PLASMA_SCRIPT = """
var allDesktops = desktops();
for (var i = 0; i < allDesktops.length; i++) {{
    var d = allDesktops[i];
    d.wallpaperPlugin = "org.kde.image";
    d.currentConfigGroup = Array("Wallpaper", "org.kde.image", "General");
    d.writeConfig("Image", "{uri}");
}}
"""


class WallpaperApplyWarning(UserWarning):
    """
    Issued when no desktop specific method nor the fallback could set the wallpaper.
    """

    pass


class DesktopEnvironment(Enum):
    GNOME = "gnome-family"
    MATE = "mate"
    XFCE = "xfce"
    KDE = "kde-plasma"
    UNKNOWN = "unknown"


# checked in order, first match wins
DESKTOP_PATTERNS = [
    (DesktopEnvironment.GNOME, ("gnome", "cinnamon", "unity", "ubuntu")),
    (DesktopEnvironment.MATE, ("mate",)),
    (DesktopEnvironment.XFCE, ("xfce",)),
    (DesktopEnvironment.KDE, ("kde", "plasma")),
]


@dataclass
class BranchResult:
    applied: bool = False
    tool_missing: bool = False


@dataclass
class ApplyResult:
    """What apply_wallpaper managed to do. missing lists the methods skipped for lack of a tool."""

    applied: bool
    desktop: DesktopEnvironment
    desktop_name: str
    method: Optional[str] = None
    missing: List[str] = field(default_factory=list)


def detect_desktop(environ=None) -> str:
    """
    Return the lowercased name of the running desktop. XDG_CURRENT_DESKTOP is preferred,
    DESKTOP_SESSION is used when it is unset or empty, "unknown" when both are.
    """

    if environ is None:
        environ = os.environ

    for variable in ("XDG_CURRENT_DESKTOP", "DESKTOP_SESSION"):
        value = environ.get(variable, "")
        if value:
            return value.lower()

    return "unknown"


def classify_desktop(name: str) -> DesktopEnvironment:
    name = name.lower()

    for desktop, patterns in DESKTOP_PATTERNS:
        if any(pattern in name for pattern in patterns):
            return desktop

    return DesktopEnvironment.UNKNOWN


def _set_gnome(path: Path, runner: CommandRunner, desktop_name: str) -> BranchResult:
    """
    GNOME and friends. Every key is set on a best effort basis: older GNOME has no
    picture-uri-dark, and only Cinnamon has the Cinnamon schema.
    """

    if not runner.exists("gsettings"):
        logger.warning("Detected GNOME/Cinnamon but 'gsettings' command not found.")
        return BranchResult(tool_missing=True)

    describe("Using gsettings (GNOME/Cinnamon)...")
    uri = path.as_uri()
    keys = [(GNOME_SCHEMA, "picture-uri"), (GNOME_SCHEMA, "picture-uri-dark")]
    if "cinnamon" in desktop_name:
        keys.append((CINNAMON_SCHEMA, "picture-uri"))

    for schema, key in keys:
        result = runner.run("gsettings", ["set", schema, key, uri])
        if not result.ok:
            logger.info("could not set %s %s: %s", schema, key, result.stderr.strip())

    return BranchResult(applied=True)


def _set_mate(path: Path, runner: CommandRunner, desktop_name: str) -> BranchResult:
    if not runner.exists("gsettings"):
        logger.warning("Detected MATE but 'gsettings' command not found.")
        return BranchResult(tool_missing=True)

    describe("Using gsettings (MATE)...")

    # MATE wants a plain path here, not a URI
    result = runner.run("gsettings", ["set", MATE_SCHEMA, "picture-filename", str(path)])
    if not result.ok:
        logger.warning(
            "gsettings could not set the MATE background: %s", result.stderr.strip()
        )

    return BranchResult(applied=result.ok)


def _set_xfce(path: Path, runner: CommandRunner, desktop_name: str) -> BranchResult:
    """
    XFCE keeps one image property per screen, monitor and workspace. Only properties that
    already exist are updated; xfconf-query can't tell us which new ones would take effect.
    """

    if not runner.exists("xfconf-query"):
        logger.warning("Detected XFCE but 'xfconf-query' command not found.")
        return BranchResult(tool_missing=True)

    describe("Using xfconf-query (XFCE)...")
    listing = runner.run("xfconf-query", ["-c", XFCE_CHANNEL, "-l"])
    properties = [
        line.strip()
        for line in listing.stdout.splitlines()
        if XFCE_IMAGE_PROPERTY.search(line)
    ]

    if not properties:
        logger.warning("Could not find XFCE wallpaper properties via xfconf-query.")
        return BranchResult()

    applied = False
    for prop in properties:
        describe(f"Setting property: {prop}")
        result = runner.run(
            "xfconf-query", ["-c", XFCE_CHANNEL, "-p", prop, "-s", str(path)]
        )
        if result.ok:
            applied = True
        else:
            logger.warning("could not set %s: %s", prop, result.stderr.strip())

    return BranchResult(applied=applied)


def _set_kde(path: Path, runner: CommandRunner, desktop_name: str) -> BranchResult:
    qdbus = next((tool for tool in QDBUS_TOOLS if runner.exists(tool)), None)
    if qdbus is None:
        logger.warning("Detected KDE Plasma but no 'qdbus' command found.")
        return BranchResult(tool_missing=True)

    describe(f"Using {qdbus} (KDE Plasma)...")
    script = PLASMA_SCRIPT.format(uri=path.as_uri())
    result = runner.run(
        qdbus,
        [
            "org.kde.plasmashell",
            "/PlasmaShell",
            "org.kde.PlasmaShell.evaluateScript",
            script,
        ],
    )

    if not result.ok:
        logger.warning(
            "Plasma shell refused the wallpaper script: %s", result.stderr.strip()
        )

    return BranchResult(applied=result.ok)


DESKTOP_SETTERS = {
    DesktopEnvironment.GNOME: _set_gnome,
    DesktopEnvironment.MATE: _set_mate,
    DesktopEnvironment.XFCE: _set_xfce,
    DesktopEnvironment.KDE: _set_kde,
}


def _set_feh(path: Path, runner: CommandRunner) -> BranchResult:
    if not runner.exists("feh"):
        return BranchResult(tool_missing=True)

    describe("Falling back to 'feh' to set wallpaper...")
    result = runner.run("feh", ["--bg-scale", str(path)])
    if not result.ok:
        logger.warning("feh could not set the wallpaper: %s", result.stderr.strip())
        return BranchResult()

    describe(
        f"Note: For 'feh' persistence across reboots, add 'feh --bg-scale \"{path}\"' "
        "to your ~/.xsessionrc or equivalent startup script."
    )
    return BranchResult(applied=True)


def apply_wallpaper(path, runner: CommandRunner = None, environ=None) -> ApplyResult:
    """
    Set the image at path as the desktop background using whatever the running desktop
    supports, falling back to feh. Never raises because a tool failed; check
    ApplyResult.applied or catch WallpaperApplyWarning instead.
    """

    runner = runner or CommandRunner()
    path = Path(path).expanduser().resolve()

    desktop_name = detect_desktop(environ)
    desktop = classify_desktop(desktop_name)
    describe(f"Detected DE: {desktop_name}")

    setter = DESKTOP_SETTERS.get(desktop)
    missing = []

    if setter is not None:
        branch = setter(path, runner, desktop_name)
        if branch.applied:
            return ApplyResult(
                applied=True,
                desktop=desktop,
                desktop_name=desktop_name,
                method=desktop.value,
            )
        if branch.tool_missing:
            logger.info("no tool for %s installed, trying feh", desktop.value)
            missing.append(desktop.value)

    feh = _set_feh(path, runner)
    if feh.applied:
        return ApplyResult(
            applied=True,
            desktop=desktop,
            desktop_name=desktop_name,
            method="feh",
            missing=missing,
        )
    if feh.tool_missing:
        missing.append("feh")

    warnings.warn(
        f"Could not set wallpaper. No known method worked for your environment "
        f"({desktop_name}). You may need to set it manually: {path}. "
        "Consider installing 'feh' for broader compatibility.",
        WallpaperApplyWarning,
        stacklevel=2,
    )

    return ApplyResult(
        applied=False, desktop=desktop, desktop_name=desktop_name, missing=missing
    )
