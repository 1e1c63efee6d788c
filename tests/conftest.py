"""
Shared Test Fixtures for SkyPost

This module provides common fixtures used across all test modules.
Fixtures include a ready session, mock XRPC clients, HTTP response
factories and data factories for images and blob responses.
"""

import pytest
from unittest.mock import MagicMock
from typing import Optional, Dict, Any
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from skypost.data.models import Image, Session
from skypost.services.http_client import XrpcClient


# =============================================================================
# Session Fixtures
# =============================================================================

@pytest.fixture
def session():
    """A usable session for the test account."""
    return Session(access_jwt="test-access-jwt", did="did:plc:testuser123", handle="test.bsky.social")


@pytest.fixture
def session_provider(session):
    """
    Mock session provider returning the test session.

    Usage:
        def test_something(session_provider):
            session_provider.get_session.return_value = None
    """
    provider = MagicMock()
    provider.get_session.return_value = session
    return provider


# =============================================================================
# XRPC Fixtures
# =============================================================================

@pytest.fixture
def blob_response_factory():
    """
    Factory fixture for uploadBlob response bodies.

    The service's ``$type`` marker is left out on purpose; the client must
    not depend on it.
    """
    def _create_blob_response(link: str = "bafkreitestblob", mime_type: str = "image/jpeg",
                              size: int = 100) -> Dict[str, Any]:
        return {"blob": {"ref": {"$link": link}, "mimeType": mime_type, "size": size}}

    return _create_blob_response


@pytest.fixture
def mock_xrpc(blob_response_factory):
    """
    Mock XrpcClient with successful defaults for every call.

    Returns:
        MagicMock: A mock constrained to XrpcClient's interface.
    """
    xrpc = MagicMock(spec=XrpcClient)
    xrpc.upload_blob.return_value = blob_response_factory()
    xrpc.create_record.return_value = {
        "uri": "at://did:plc:testuser123/app.bsky.feed.post/3kabc",
        "cid": "bafyreitestcid",
    }
    xrpc.resolve_handle.return_value = {"did": "did:plc:resolved123"}
    xrpc.fetch_bytes.return_value = b"\x89PNG thumbnail bytes"
    return xrpc


# =============================================================================
# HTTP Response Fixtures
# =============================================================================

@pytest.fixture
def mock_http_response():
    """
    Factory fixture for creating mock HTTP responses.

    Usage:
        def test_http_request(mock_http_response):
            response = mock_http_response(status_code=200, json_data={'did': 'did:plc:x'})

    Returns:
        callable: A factory function for creating mock responses.
    """
    def _create_response(
        status_code: int = 200,
        content: bytes = b'',
        text: str = '',
        json_data: Optional[Dict[str, Any]] = None,
    ) -> MagicMock:
        import json

        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.ok = 200 <= status_code < 300

        if text:
            mock_response.text = text
        elif json_data is not None:
            mock_response.text = json.dumps(json_data)
        else:
            mock_response.text = content.decode('utf-8', errors='replace') if content else ''

        if json_data is not None:
            mock_response.json.return_value = json_data
            mock_response.content = content or mock_response.text.encode('utf-8')
        else:
            mock_response.json.side_effect = ValueError("No JSON data")
            mock_response.content = content

        return mock_response

    return _create_response


# =============================================================================
# Data Model Factories
# =============================================================================

@pytest.fixture
def image_factory():
    """
    Factory fixture for creating Image test objects.

    Usage:
        def test_gallery(image_factory):
            image = image_factory(alt="A", size=10)
    """
    def _create_image(alt: str = "", size: int = 3, mime_type: str = "image/jpeg",
                      width: Optional[int] = None, height: Optional[int] = None) -> Image:
        return Image(content=b"\x01" * size, mime_type=mime_type, alt=alt, width=width, height=height)

    return _create_image


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def capture_logs():
    """
    Capture log messages for assertion in tests.

    Returns:
        list: A list that will contain captured log records.
    """
    import logging

    class LogCapture(logging.Handler):
        def __init__(self):
            super().__init__()
            self.records = []

        def emit(self, record):
            self.records.append(record)

    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    package_logger = logging.getLogger("skypost")
    original_level = package_logger.level
    package_logger.setLevel(logging.DEBUG)
    package_logger.addHandler(handler)

    yield handler.records

    package_logger.removeHandler(handler)
    package_logger.setLevel(original_level)
