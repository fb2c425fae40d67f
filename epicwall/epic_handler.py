"""
NASA EPIC API - Image Locator

This module is a thin wrapper around the public EPIC (Earth Polychromatic Imaging Camera)
API. It asks the metadata endpoint for the latest natural color images, picks the newest
record and builds the archive URL of its full resolution PNG. Downloading that URL is left
to the image handler, which keeps this file limited to talking to the metadata endpoint and
constructing well-formed archive URLs.

A metadata record looks like:

    {"image": "epic_1b_20240101000000", "date": "2024-01-01 00:00:00", "caption": ..., ...}

and the matching image lives at:

    https://epic.gsfc.nasa.gov/archive/natural/2024/01/01/png/epic_1b_20240101000000.png
"""

import re
import logging
from dataclasses import dataclass

import requests

from epicwall.config import DEFAULT_API_URL
from epicwall.config import DEFAULT_ARCHIVE_URL

logger = logging.getLogger(__name__)

DATE_PATH = re.compile(r"^\d{4}/\d{2}/\d{2}$")

# the image id becomes part of the archive URL and of the local file name
IMAGE_ID = re.compile(r"[A-Za-z0-9_.-]+")


class FetchError(Exception):
    """
    Raised when the metadata endpoint can't be reached or returns nothing.
    """

    pass


class ParseError(Exception):
    """
    Raised when the metadata endpoint answers with something that is not a usable list of records.
    """

    pass


@dataclass
class ImageRecord:
    """The newest EPIC image: where to get it and what to call it."""

    remote_url: str
    filename_component: str
    file_extension: str = "png"
    date: str = ""


def date_path(date: str) -> str:
    """
    Convert an EPIC capture date "YYYY-MM-DD HH:MM:SS" into the "YYYY/MM/DD" path
    segment used by the archive.
    """

    path = date.strip().split(" ")[0].replace("-", "/")

    if not DATE_PATH.match(path):
        raise ParseError(
            f"Unexpected date format '{date}' in EPIC API response, expected 'YYYY-MM-DD HH:MM:SS'."
        )

    return path


def make_archive_url(archive_url: str, date_path: str, image_id: str) -> str:
    return "/".join([archive_url.removesuffix("/"), date_path, "png", f"{image_id}.png"])


def fetch_records(api_url: str = DEFAULT_API_URL, timeout=(10, 60)) -> list:
    """
    GET the metadata endpoint and return the decoded list of records. Raise FetchError for
    transport problems and ParseError for a body that isn't a non-empty JSON array.
    """

    logger.debug("requesting %s", api_url)

    try:
        r = requests.get(api_url, timeout=timeout)

    except requests.exceptions.RequestException as error:
        raise FetchError(
            f"Failed to fetch data from EPIC API: {api_url} ({error})"
        ) from error

    # successful request but received a bad response from the server.
    try:
        r.raise_for_status()
    except requests.exceptions.HTTPError as error:
        raise FetchError(
            f"Failed to fetch data from EPIC API: {api_url} (status code {r.status_code})"
        ) from error

    if not r.text or not r.text.strip():
        raise FetchError(
            "EPIC API response was empty. Check API status or network connection."
        )

    try:
        records = r.json()

    except ValueError as error:
        raise ParseError(
            f"Invalid JSON received from EPIC API. URL was: {api_url}. Response was: {r.text[:200]}"
        ) from error

    if not isinstance(records, list) or not records:
        raise ParseError("Could not parse latest image data from EPIC API response.")

    return records


def latest_record(records: list, latest: str = "last") -> dict:
    """Pick the newest record, which is either the last or the first element depending on the endpoint."""

    if latest == "last":
        record = records[-1]
    elif latest == "first":
        record = records[0]
    else:
        raise ValueError(f"latest must be 'first' or 'last', not '{latest}'")

    if not isinstance(record, dict):
        raise ParseError("Could not parse latest image data from EPIC API response.")

    return record


def locate(
    api_url: str = DEFAULT_API_URL,
    archive_url: str = DEFAULT_ARCHIVE_URL,
    latest: str = "last",
    timeout=(10, 60),
) -> ImageRecord:
    """
    Find the most recent natural color EPIC image and return an ImageRecord pointing at
    its PNG in the archive.
    """

    record = latest_record(fetch_records(api_url, timeout=timeout), latest=latest)

    image_name = record.get("image")
    date = record.get("date")

    if not isinstance(image_name, str) or not image_name.strip():
        raise ParseError("Could not extract image name from EPIC API response.")

    if not isinstance(date, str) or not date.strip():
        raise ParseError("Could not extract image date from EPIC API response.")

    image_name = image_name.strip()

    if not IMAGE_ID.fullmatch(image_name) or ".." in image_name:
        raise ParseError(f"Unexpected image name in EPIC API response: {image_name!r}")

    url = make_archive_url(archive_url, date_path(date), image_name)
    logger.debug("latest EPIC image %s from %s", image_name, date)

    return ImageRecord(
        remote_url=url,
        filename_component=image_name,
        file_extension="png",
        date=date.strip(),
    )
