"""
Custom Exception Classes for SkyPost

This module defines custom exceptions for better error handling and
categorization of failures across the posting pipeline.
"""

from typing import Optional


class SkyPostError(Exception):
    """Base exception for all SkyPost errors."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(SkyPostError):
    """Raised when configuration validation fails or required settings are missing."""
    pass


# =============================================================================
# Session Errors
# =============================================================================

class AuthenticationError(SkyPostError):
    """Raised when no usable session could be obtained from the service."""
    pass


# =============================================================================
# Transport Errors
# =============================================================================

class TransportError(SkyPostError):
    """Raised when a service call fails or returns a non-success status.

    Attributes:
        endpoint: The XRPC method or URL that was called.
        status_code: HTTP status code, or None when no response was received.
        body: Response body text, if any.
    """

    def __init__(self, message: str, endpoint: str = "",
                 status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body


class MediaUploadError(TransportError):
    """Raised when the blob upload response does not describe a blob."""
    pass


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(SkyPostError):
    """Base exception for invalid post input."""
    pass


class ImageValidationError(ValidationError):
    """Raised when image content is empty."""
    pass


class ImageTooLargeError(ValidationError):
    """Raised when image content exceeds the blob size limit."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"image file size too large. {limit} bytes maximum, got: {size}")
        self.size = size
        self.limit = limit


# =============================================================================
# Rich Text Errors
# =============================================================================

class ResolutionFormatError(SkyPostError):
    """Raised when a mention is finalized with a value that is not a DID."""
    pass


# =============================================================================
# Link Card Errors
# =============================================================================

class MetadataExtractionError(SkyPostError):
    """Raised when page metadata for a link card cannot be extracted."""
    pass


# =============================================================================
# Pipeline Control
# =============================================================================

class PublishCancelledError(SkyPostError):
    """Raised when a publish call is cancelled before the record is submitted."""
    pass
