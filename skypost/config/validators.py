"""
Configuration Validation for SkyPost

This module contains configuration validation logic.
Kept apart from settings.py so importing settings never raises.
"""

import logging
from urllib.parse import urlparse

from skypost.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def validate_settings(require_credentials: bool = True):
    """
    Validate that all required settings are properly configured.

    Args:
        require_credentials: Whether BLUESKY_IDENTIFIER and BLUESKY_PASSWORD must be set.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    # Import settings here to avoid circular imports
    from skypost.config import settings

    errors = []

    if require_credentials:
        required_vars = [
            ("BLUESKY_IDENTIFIER", settings.BLUESKY_IDENTIFIER),
            ("BLUESKY_PASSWORD", settings.BLUESKY_PASSWORD),
        ]
        for var_name, var_value in required_vars:
            if not var_value:
                errors.append(f"Missing required environment variable: {var_name}")

    parsed = urlparse(settings.BLUESKY_SERVICE_URL or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        errors.append(f"BLUESKY_SERVICE_URL must be an http(s) URL, got {settings.BLUESKY_SERVICE_URL!r}")

    if not settings.DEFAULT_LANGUAGES:
        logger.warning("DEFAULT_LANGUAGES is empty; posts without explicit languages will carry none")

    # Validate numeric settings are within reasonable bounds
    numeric_validations = [
        ("SESSION_REUSE_MINUTES", settings.SESSION_REUSE_MINUTES, 1, 24 * 60),
        ("MAX_IMAGE_BYTES", settings.MAX_IMAGE_BYTES, 1, 1000000),
    ]

    for name, value, min_val, max_val in numeric_validations:
        if value < min_val or value > max_val:
            errors.append(f"{name} must be between {min_val} and {max_val}, got {value}")

    # Validate timeout values are positive
    timeout_settings = [
        ("HTTP_TIMEOUT", settings.HTTP_TIMEOUT),
        ("METADATA_TIMEOUT", settings.METADATA_TIMEOUT),
    ]

    for name, value in timeout_settings:
        if value <= 0:
            errors.append(f"{name} must be positive, got {value}")

    # Raise all errors at once
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)

    return True


def get_config_summary() -> dict:
    """
    Returns a summary of current configuration (without sensitive values).
    Useful for logging startup state.
    """
    from skypost.config import settings

    return {
        "service": {
            "url": settings.BLUESKY_SERVICE_URL,
            "identifier": settings.BLUESKY_IDENTIFIER,
            "password_configured": bool(settings.BLUESKY_PASSWORD),
        },
        "session": {
            "reuse": settings.BLUESKY_REUSE_SESSION,
            "reuse_minutes": settings.SESSION_REUSE_MINUTES,
        },
        "post_settings": {
            "languages": list(settings.DEFAULT_LANGUAGES),
            "max_image_bytes": settings.MAX_IMAGE_BYTES,
        },
        "http": {
            "timeout": settings.HTTP_TIMEOUT,
            "metadata_timeout": settings.METADATA_TIMEOUT,
        },
    }
