"""
Configuration Settings for SkyPost

This module centralizes all configuration settings for SkyPost,
including environment variables, service credentials, and protocol constants.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Determine the project root directory
APP_ROOT = Path(__file__).resolve().parent.parent.parent

# Load environment variables from .env file
load_dotenv(dotenv_path=os.path.join(APP_ROOT, '.env'))


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


def _env_list(name: str, default: list) -> list:
    value = os.getenv(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


# =============================================================================
# AT Protocol (BlueSky) Service
# =============================================================================

BLUESKY_SERVICE_URL = os.getenv("BLUESKY_SERVICE_URL", "https://bsky.social")
BLUESKY_IDENTIFIER = os.getenv("BLUESKY_IDENTIFIER")
BLUESKY_PASSWORD = os.getenv("BLUESKY_PASSWORD")

# Reuse one session across publish calls instead of logging in every time
BLUESKY_REUSE_SESSION = _env_bool("BLUESKY_REUSE_SESSION", False)
SESSION_REUSE_MINUTES = int(os.getenv("SESSION_REUSE_MINUTES", "90"))

# Languages attached to every post unless the post names its own
DEFAULT_LANGUAGES = _env_list("DEFAULT_LANGUAGES", ["en", "en-US"])

# =============================================================================
# Record and Blob Settings
# =============================================================================

POST_COLLECTION = "app.bsky.feed.post"
MAX_IMAGE_BYTES = 1000000            # Service blob limit for images (inclusive)
DEFAULT_MIME_TYPE = "application/octet-stream"

# A resolved mention must contain one of these DID method prefixes
DID_NAMESPACE_MARKERS = ("did:plc:", "did:web:")

# File extension to MIME type table for link card thumbnails
IMAGE_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".tiff": "image/tiff",
    ".tif": "image/tiff",
    ".avif": "image/avif",
    ".heic": "image/heic",
    ".bmp": "image/bmp",
    ".ico": "image/x-icon",
    ".icon": "image/x-icon",
}

# =============================================================================
# HTTP Settings
# =============================================================================

HTTP_TIMEOUT = int(os.getenv("HTTP_TIMEOUT", "30"))             # Seconds for XRPC calls
METADATA_TIMEOUT = int(os.getenv("METADATA_TIMEOUT", "10"))     # Seconds for page/thumbnail fetches

USER_AGENT = os.getenv("USER_AGENT", "SkyPost/1.0 (+https://github.com/skypost/skypost)")
REQUEST_HEADERS = {
    'User-Agent': USER_AGENT,
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/*;q=0.8,*/*;q=0.5',
    'Accept-Language': 'en-US,en;q=0.5',
    'Accept-Encoding': 'gzip, deflate',
}
