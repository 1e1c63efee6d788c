"""
Authorization Service Module

This module obtains sessions from the AT Protocol service. AuthorizationClient
creates a fresh session on every call through the atproto SDK;
ReusableAuthorizationClient wraps any session provider and hands out the same
session until the reuse window expires.
"""

import threading
import time
from typing import Callable, Optional

from atproto import Client, models

from skypost.config import settings
from skypost.data.models import Session
from skypost.services.protocols import SessionProviderProtocol
from skypost.utils.exceptions import AuthenticationError, TransportError
from skypost.utils.logger import get_logger

logger = get_logger(__name__)


class AuthorizationClient:
    """Creates sessions with com.atproto.server.createSession."""

    def __init__(self, identifier: Optional[str] = None, password: Optional[str] = None,
                 base_url: Optional[str] = None):
        """
        Initialize the authorization client.

        Args:
            identifier: Handle, DID or email, defaults to settings.BLUESKY_IDENTIFIER.
            password: App password, defaults to settings.BLUESKY_PASSWORD.
            base_url: Service base URL, defaults to settings.BLUESKY_SERVICE_URL.
        """
        self.identifier = identifier or settings.BLUESKY_IDENTIFIER
        self.password = password or settings.BLUESKY_PASSWORD
        self.base_url = (base_url or settings.BLUESKY_SERVICE_URL).rstrip("/")

    def get_session(self) -> Session:
        """
        Create a new session for the configured account.

        Returns:
            Session: The access token and DID of the account.

        Raises:
            AuthenticationError: If credentials are missing or the response has no token.
            TransportError: If the service rejects the request.
        """
        if not self.identifier or not self.password:
            logger.error("Missing AT Protocol credentials")
            raise AuthenticationError("Missing AT Protocol credentials")

        try:
            at_client = Client(base_url=f"{self.base_url}/xrpc")
            response = at_client.com.atproto.server.create_session(
                models.ComAtprotoServerCreateSession.Data(
                    identifier=self.identifier,
                    password=self.password,
                )
            )
        except Exception as e:
            status_code = getattr(getattr(e, "response", None), "status_code", None)
            logger.error(f"Failed to authenticate with AT Protocol: {e}")
            raise TransportError(
                f"createSession failed for {self.identifier}: {e}",
                endpoint="com.atproto.server.createSession",
                status_code=status_code,
            ) from e

        session = Session(
            access_jwt=getattr(response, "access_jwt", "") or "",
            did=getattr(response, "did", "") or "",
            handle=getattr(response, "handle", None),
        )
        if not session.is_usable:
            raise AuthenticationError(f"createSession returned no usable session for {self.identifier}")

        logger.info(f"Successfully created AT Protocol session for {self.identifier}")
        return session


class ReusableAuthorizationClient:
    """
    Session provider that reuses a session for a fixed window.

    The freshness check and the refresh happen under one lock, so concurrent
    callers wait for a single createSession call instead of racing.
    """

    def __init__(self, authorization_client: SessionProviderProtocol,
                 reuse_minutes: Optional[int] = None,
                 clock: Callable[[], float] = time.monotonic):
        self._authorization_client = authorization_client
        self._reuse_seconds = (reuse_minutes or settings.SESSION_REUSE_MINUTES) * 60
        self._clock = clock
        self._lock = threading.Lock()
        self._session: Optional[Session] = None
        self._refreshed_at: Optional[float] = None

    def _is_fresh(self) -> bool:
        return (
            self._session is not None
            and self._refreshed_at is not None
            and self._clock() - self._refreshed_at < self._reuse_seconds
        )

    def get_session(self) -> Optional[Session]:
        """Return the cached session, creating a new one if it is missing or stale."""
        with self._lock:
            if self._is_fresh():
                logger.debug("Reusing cached session")
                return self._session

            self._session = self._authorization_client.get_session()
            self._refreshed_at = self._clock()
            return self._session

    def invalidate(self) -> None:
        """Drop the cached session so the next call creates a new one."""
        with self._lock:
            self._session = None
            self._refreshed_at = None
