"""
Helper Utility Module

This module provides various helper functions used throughout SkyPost.
"""

import threading
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urljoin, urlparse

from skypost.config import settings
from skypost.utils.exceptions import PublishCancelledError
from skypost.utils.logger import get_logger

logger = get_logger(__name__)


def is_valid_url(url: str) -> bool:
    """
    Check if a URL is valid.

    Args:
        url: The URL to validate

    Returns:
        bool: True if the URL is valid, False otherwise
    """
    try:
        result = urlparse(url)
        return all([result.scheme, result.netloc])
    except Exception:
        return False


def get_file_extension_from_url(url: Optional[str]) -> str:
    """
    Extract the file extension (including the dot) from a URL path.

    Args:
        url: The URL to inspect

    Returns:
        str: The extension, e.g. ".jpg", or an empty string if there is none
    """
    if not url or not is_valid_url(url):
        return ""

    path = urlparse(url).path
    last_index = path.rfind(".")
    if last_index == -1 or last_index == len(path) - 1:
        return ""

    extension = path[last_index:]
    # A dot in a directory name is not an extension
    if "/" in extension:
        return ""
    return extension


def get_mime_type(extension: Optional[str]) -> str:
    """
    Map a file extension to an image MIME type.

    Args:
        extension: The extension with or without the leading dot

    Returns:
        str: The MIME type, or application/octet-stream when unknown
    """
    if not extension:
        return settings.DEFAULT_MIME_TYPE

    if not extension.startswith("."):
        extension = "." + extension

    return settings.IMAGE_MIME_TYPES.get(extension.lower(), settings.DEFAULT_MIME_TYPE)


def get_mime_type_from_url(url: Optional[str]) -> str:
    """Determine the MIME type of a resource from its URL's extension."""
    return get_mime_type(get_file_extension_from_url(url))


def resolve_image_url(page_url: str, image_url: str) -> str:
    """
    Make an image URL found on a page absolute.

    Args:
        page_url: The URL of the page the image was found on
        image_url: The image URL as written on the page

    Returns:
        str: ``image_url`` unchanged when it already names a scheme, otherwise
        resolved against ``page_url``
    """
    if "://" in image_url:
        return image_url
    return urljoin(page_url, image_url)


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """
    Format a timestamp as an ISO-8601 UTC string with a ``Z`` suffix.

    Args:
        now: The moment to format, defaults to the current time

    Returns:
        str: e.g. ``2024-01-15T10:00:00.000000Z``
    """
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def raise_if_cancelled(cancel_event: Optional[threading.Event], step: str = "") -> None:
    """
    Abort the current pipeline step if cancellation was requested.

    Args:
        cancel_event: Event set by the caller to request cancellation, or None
        step: Name of the step about to run, used in the error message

    Raises:
        PublishCancelledError: If the event is set
    """
    if cancel_event is not None and cancel_event.is_set():
        logger.info(f"Publish cancelled before {step or 'next step'}")
        raise PublishCancelledError(f"Publish cancelled before {step or 'next step'}")
