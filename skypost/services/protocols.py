"""
Service Protocol Definitions

This module defines typing.Protocol interfaces for the collaborators the
posting pipeline depends on. These protocols enable loose coupling,
dependency injection, and easier testing.

Protocols defined:
- SessionProviderProtocol: Supplies a bearer credential and repository DID
- MentionResolverProtocol: Resolves a handle to a DID
- BlobUploaderProtocol: Uploads binary content and returns a blob object
- MetadataExtractorProtocol: Extracts title, description and images from a web page
"""

import threading
from typing import Any, Dict, Optional, Protocol

from skypost.data.models import PageMetadata, ResolutionResult, Session


class SessionProviderProtocol(Protocol):
    """Protocol for anything that can hand out an authenticated session.

    Implementations may cache the session between calls.
    """

    def get_session(self) -> Optional[Session]:
        """Return a session for the configured account.

        Returns:
            The session, or None when none could be obtained.
        """
        ...


class MentionResolverProtocol(Protocol):
    """Protocol for resolving mentions to DIDs."""

    def resolve(self, mention: str) -> ResolutionResult:
        """Resolve a mention such as ``@alice.example.com``.

        Args:
            mention: The handle, with or without the leading ``@``.

        Returns:
            A ResolutionResult; failures are reported in the result, not raised.
        """
        ...


class BlobUploaderProtocol(Protocol):
    """Protocol for authenticated blob uploads."""

    def upload_blob(self, content: bytes, mime_type: str, access_jwt: str) -> Dict[str, Any]:
        """Upload raw bytes.

        Args:
            content: The bytes to upload.
            mime_type: Content-Type sent with the upload.
            access_jwt: Bearer token of the session.

        Returns:
            The decoded uploadBlob response body.
        """
        ...


class MetadataExtractorProtocol(Protocol):
    """Protocol for web page metadata extraction."""

    def extract(self, url: str, cancel_event: Optional[threading.Event] = None) -> PageMetadata:
        """Fetch a page and read its title, description and image URLs.

        Args:
            url: The page URL.
            cancel_event: Optional event that aborts the call when set.

        Returns:
            PageMetadata for the page.
        """
        ...
