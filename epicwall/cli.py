"""
epicwall

Set your desktop wallpaper to today's view of the whole Earth from NASA's EPIC camera.

This module defines the entry point to the epicwall CLI. The command runs a short,
strictly linear pipeline:

    locate the newest EPIC image -> download it -> resize it -> set it as wallpaper

The first three steps abort the run on failure with a message and exit code 1. The last
step only warns when it fails, because the resized image is still saved for the user to
set by hand.
"""

import re
import warnings
from pathlib import Path

import click

from epicwall import config as epicwall_config
from epicwall import epic_handler
from epicwall import image_handler
from epicwall import wallpaper_handler

from epicwall.cli_utils.console import *
from epicwall.cli_utils.decorators import catch_errors

RESOLUTION = re.compile(r"^[0-9]+x[0-9]+$")


class Resolution(click.ParamType):
    """A WIDTHxHEIGHT screen size, e.g. 1920x1080, converted to a (width, height) tuple."""

    name = "WIDTHxHEIGHT"

    def convert(self, value, param, ctx):
        if isinstance(value, tuple):
            return value

        if not RESOLUTION.match(value):
            self.fail(
                f"Invalid size format '{value}'. Use WIDTHxHEIGHT (e.g., 1920x1080).",
                param,
                ctx,
            )

        width, height = (int(part) for part in value.split("x"))
        if width == 0 or height == 0:
            self.fail(f"Invalid size '{value}'. Width and height must be positive.", param, ctx)

        return (width, height)


class EpicwallCommand(click.Command):
    """
    click exits with status 2 on usage errors. epicwall reports every failure, usage
    included, with status 1.
    """

    def parse_args(self, ctx, args):
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as error:
            error.exit_code = 1
            raise


def format_resolution(size: tuple[int, int]) -> str:
    return f"{size[0]}x{size[1]}"


def output_path(
    directory: Path,
    record: epic_handler.ImageRecord,
    size: tuple[int, int],
    prefix: str = "epic_earth",
) -> Path:
    """Where the wallpaper is stored, e.g. epic_earth_epic_1b_20240101000000_1920x1080.png"""

    return Path(directory) / (
        f"{prefix}_{record.filename_component}_{format_resolution(size)}.{record.file_extension}"
    )


@click.command(cls=EpicwallCommand)
@click.argument("resolution", metavar="WIDTHxHEIGHT", type=Resolution())
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Silence all output printed to stdout. Warnings and errors still go to stderr.",
)
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Log every request and external command that epicwall runs.",
)
@click.version_option(package_name="epicwall")
@catch_errors
def cli(resolution: tuple[int, int], quiet: bool, verbose: bool):
    """
    Download the latest NASA EPIC image of Earth, resize it to WIDTHxHEIGHT and
    set it as your desktop wallpaper.

    Example:

        $ epicwall 1920x1080

    Supported desktops are GNOME, Cinnamon, Unity, MATE, XFCE and KDE Plasma. On
    anything else 'feh' is used if it is installed. Images are stored in
    ~/Pictures/SatelliteWallpaper unless configured otherwise in
    ~/.config/epicwall/config.json.
    """

    if quiet:
        silence()

    setup_logging(verbose=verbose)

    config = epicwall_config.init()
    size = format_resolution(resolution)
    describe(f"Target wallpaper size: {size}")

    describe("Fetching latest EPIC image data from NASA...")
    record = epic_handler.locate(
        api_url=config.EPIC_API_URL,
        archive_url=config.EPIC_ARCHIVE_URL,
        latest=config.EPIC_LATEST_RECORD,
        timeout=config.timeout,
    )
    describe(f"Latest EPIC image found: {record.filename_component} from {record.date}")

    wallpaper_dir = config.EPICWALL_WALLPAPER_DIR
    try:
        wallpaper_dir.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        raise image_handler.ImageDownloadError(
            f"Could not create directory: {wallpaper_dir} ({error})"
        ) from error
    describe(f"Wallpaper directory: {wallpaper_dir}")

    download_path = output_path(wallpaper_dir, record, resolution, prefix=config.FILE_PREFIX)
    describe(f"Downloading image from {record.remote_url}")
    describe(f"Saving to: {download_path}")
    image_handler.download_image(
        record.remote_url,
        download_path,
        user_agent=config.USER_AGENT,
        timeout=config.timeout,
    )
    confirm_success(":white_check_mark-emoji: Download complete.")

    describe(f"Resizing image to {size}...")
    image_handler.resize_image(download_path, resolution)
    confirm_success(":white_check_mark-emoji: Image resized.")

    describe("Attempting to detect Desktop Environment to set wallpaper...")
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", wallpaper_handler.WallpaperApplyWarning)
        result = wallpaper_handler.apply_wallpaper(download_path)

    for warning in caught:
        warn(str(warning.message))

    describe("----------------------------------------")
    if result.applied:
        confirm_success(
            f"EPIC satellite wallpaper updated successfully using {result.method}!"
        )
    else:
        confirm_success("EPIC satellite wallpaper saved, but not applied.")
    if result.missing:
        describe(f"Not installed: tools for {', '.join(result.missing)}")
    describe("Source: NASA EPIC")
    describe(f"Image URL: {record.remote_url}")
    describe(f"Wallpaper stored at: {download_path}")
    describe("----------------------------------------")


def main():
    cli()


if __name__ == "__main__":
    main()
