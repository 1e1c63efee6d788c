"""
Mention Service Module

This module resolves mentions (``@alice.example.com``) to account DIDs using
com.atproto.identity.resolveHandle. Lookups never raise: a failed lookup is
reported as an unsuccessful ResolutionResult and it is up to the caller to
refuse to post an unresolved mention.
"""

from typing import Optional

from skypost.data.models import ResolutionResult
from skypost.services.http_client import XrpcClient
from skypost.utils.exceptions import TransportError
from skypost.utils.logger import get_logger

logger = get_logger(__name__)


class MentionResolver:
    """Resolves handles to DIDs."""

    def __init__(self, xrpc: Optional[XrpcClient] = None):
        """
        Initialize the resolver.

        Args:
            xrpc: XRPC client to use, a default client is created when omitted.
        """
        self.xrpc = xrpc or XrpcClient()

    def resolve(self, mention: str) -> ResolutionResult:
        """
        Resolve a mention to a DID.

        Args:
            mention: The handle, with or without the leading ``@``.

        Returns:
            ResolutionResult: ``did`` is set on success, ``error`` on failure.
        """
        handle = mention.lstrip("@")

        try:
            data = self.xrpc.resolve_handle(handle)
        except TransportError as e:
            logger.error(f"Error resolving handle {handle}: {e}")
            return ResolutionResult(handle=handle, error=str(e))

        did = data.get("did")
        if not did:
            logger.error(f"resolveHandle returned no DID for {handle}")
            return ResolutionResult(handle=handle, error="response did not include a DID")

        logger.debug(f"Resolved {handle} to {did}")
        return ResolutionResult(handle=handle, did=str(did))
