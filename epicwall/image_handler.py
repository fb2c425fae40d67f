"""
Image Handler

Utilities for downloading and resizing images.

Downloading images: plain GET requests for an image file specified by URL, with no
expectation of authentication or other API requests. Finding out *which* image to
download is the job of the EPIC handler.

Image manipulation: limited to scaling the downloaded image to the size of the
user's screen. It is not intended to be a photo manipulation program.
"""

import os
import logging
import tempfile
from pathlib import Path

import requests
from PIL import Image, ImageOps, UnidentifiedImageError

from epicwall.config import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class InvalidImageError(Exception):
    """
    Raised when a provided binary input file is not an image. Wrapper around the PIL
    UnidentifiedImageError for better identification of errors and custom error messaging.
    """

    pass


class ImageDownloadError(Exception):
    """
    Raised when an image download is unsuccessful.
    """

    pass


class ResizeError(Exception):
    """
    Raised when an image can't be resized. The message names the detected type of the
    offending file, which is usually the quickest way to see what went wrong (an HTML
    error page saved as .png, a truncated file, ...).
    """

    pass


def validate_image(input) -> str:
    """
    Determine whether input is a valid image and return its format, e.g. "PNG". PIL only reads
    the header to identify the file so this does not load the pixel data.
    """

    try:
        with Image.open(input) as image:

            return image.format

    except UnidentifiedImageError as error:
        raise InvalidImageError(
            f"Input {str(input)} does not appear to be an image."
        ) from error

    except FileNotFoundError as error:
        raise InvalidImageError(f"Input {str(input)} could not be found.") from error


def describe_file_type(path: Path) -> str:
    """
    Short human readable description of what a file appears to be, for error messages.
    """

    path = Path(path)

    try:
        return validate_image(path)

    except InvalidImageError:
        pass

    try:
        return f"unknown ({path.stat().st_size} bytes)"

    except OSError:
        return "missing"


def _remove(path: Path):
    try:
        path.unlink(missing_ok=True)
    except OSError as error:
        logger.warning("could not remove partial download %s: %s", path, error)


def download_image(
    url: str,
    file_path,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout=(10, 60),
) -> Path:
    """
    Download the image at url to file_path and return the path it was saved to.

    Redirects are followed and the body is streamed into a temporary file next to file_path,
    which only replaces file_path once the download is complete and not empty. If the download
    fails for any reason, the temporary file is removed, any previous file at file_path is left
    untouched, and ImageDownloadError is raised.
    """

    destination_path = Path(file_path).expanduser().resolve()

    # edge case where destination path is a folder
    if destination_path.is_dir():
        raise ImageDownloadError(f"Destination file {destination_path} is a directory.")

    try:
        destination_path.parent.mkdir(parents=True, exist_ok=True)
        partial = tempfile.NamedTemporaryFile(
            dir=destination_path.parent,
            prefix=f".{destination_path.stem}.",
            suffix=".part",
            delete=False,
        )
    except OSError as error:
        raise ImageDownloadError(
            f"Could not write to directory: {destination_path.parent} ({error})"
        ) from error

    partial_path = Path(partial.name)
    logger.debug("downloading %s to %s", url, partial_path)

    try:

        with partial:

            # requests follows redirects (3XX) for GET out of the box
            r = requests.get(
                url,
                headers={"User-Agent": user_agent},
                timeout=timeout,
                stream=True,
                allow_redirects=True,
            )

            try:
                r.raise_for_status()

                for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        partial.write(chunk)

            finally:
                r.close()

    except requests.exceptions.HTTPError as error:
        _remove(partial_path)
        raise ImageDownloadError(
            f"Failed to download image from: {url} (status code {r.status_code})"
        ) from error

    except (requests.exceptions.RequestException, OSError) as error:
        _remove(partial_path)
        raise ImageDownloadError(
            f"Failed to download image from: {url} ({error})"
        ) from error

    # successful request, but make sure we actually got something.
    if not partial_path.is_file() or partial_path.stat().st_size == 0:
        _remove(partial_path)
        raise ImageDownloadError(
            "Downloaded file is empty or download failed. Check URL or network connection."
        )

    try:
        os.replace(partial_path, destination_path)
    except OSError as error:
        _remove(partial_path)
        raise ImageDownloadError(
            f"Could not save image to {destination_path} ({error})"
        ) from error

    return destination_path


def resize_image(img_path: Path, size: tuple[int, int]) -> Path:
    """
    Resize the image at img_path in place so that it fits inside size (width, height).

    Aspect ratio is preserved and smaller images are scaled up, the same result
    `mogrify -resize WIDTHxHEIGHT` gives. The file keeps its original format.
    """

    img_path = Path(img_path)
    width, height = size

    try:
        with Image.open(img_path) as image:
            image_format = image.format
            image.load()
            resized = ImageOps.contain(image, (width, height))
            resized.save(img_path, format=image_format)

    except (OSError, ValueError) as error:
        # UnidentifiedImageError is an OSError
        raise ResizeError(
            f"Image resizing failed for '{img_path}' (file type: {describe_file_type(img_path)}): {error}"
        ) from error

    logger.debug("resized %s to %sx%s", img_path, *resized.size)

    return img_path
