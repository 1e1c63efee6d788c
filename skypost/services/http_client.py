"""
XRPC HTTP Client Module

This module wraps the AT Protocol XRPC endpoints the posting pipeline uses
(handle resolution, blob upload, record creation) and plain downloads of
link card thumbnails. All calls go through one ``requests.Session``.
Any network failure or non-success status becomes a TransportError.
"""

from typing import Any, Dict, Optional

import requests

from skypost.config import settings
from skypost.utils.exceptions import TransportError
from skypost.utils.logger import get_logger

logger = get_logger(__name__)


class XrpcClient:
    """Thin client for the service's XRPC endpoints."""

    def __init__(self, base_url: Optional[str] = None,
                 session: Optional[requests.Session] = None,
                 timeout: Optional[int] = None):
        """
        Initialize the client.

        Args:
            base_url: Service base URL, defaults to settings.BLUESKY_SERVICE_URL.
            session: Optional requests session to reuse; its headers are left untouched.
            timeout: Request timeout in seconds, defaults to settings.HTTP_TIMEOUT.
        """
        self.base_url = (base_url or settings.BLUESKY_SERVICE_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": settings.USER_AGENT})
        self.http = session

    def xrpc_url(self, nsid: str) -> str:
        return f"{self.base_url}/xrpc/{nsid}"

    def _send(self, method: str, nsid: str, **kwargs) -> requests.Response:
        url = self.xrpc_url(nsid)
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Request to {nsid} failed: {e}")
            raise TransportError(f"Request to {nsid} failed: {e}", endpoint=nsid) from e

        if not response.ok:
            logger.error(f"Error: {nsid} returned {response.status_code}: {response.text}")
            raise TransportError(
                f"{nsid} returned HTTP {response.status_code}",
                endpoint=nsid,
                status_code=response.status_code,
                body=response.text,
            )
        return response

    @staticmethod
    def _json(response: requests.Response, nsid: str) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"{nsid} returned a non-JSON body", endpoint=nsid,
                                 status_code=response.status_code, body=response.text) from e
        if not isinstance(data, dict):
            raise TransportError(f"{nsid} returned an unexpected body", endpoint=nsid,
                                 status_code=response.status_code, body=response.text)
        return data

    @staticmethod
    def _auth_headers(access_jwt: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_jwt}"}

    def resolve_handle(self, handle: str) -> Dict[str, Any]:
        """
        Call com.atproto.identity.resolveHandle.

        Args:
            handle: The handle without a leading ``@``.

        Returns:
            Dict[str, Any]: The response body, normally ``{"did": ...}``.
        """
        nsid = "com.atproto.identity.resolveHandle"
        response = self._send("GET", nsid, params={"handle": handle})
        return self._json(response, nsid)

    def upload_blob(self, content: bytes, mime_type: str, access_jwt: str) -> Dict[str, Any]:
        """
        Call com.atproto.repo.uploadBlob with the raw bytes as the body.

        Args:
            content: The bytes to upload.
            mime_type: Content-Type of the upload.
            access_jwt: Bearer token of the session.

        Returns:
            Dict[str, Any]: The response body, normally ``{"blob": {...}}``.
        """
        nsid = "com.atproto.repo.uploadBlob"
        headers = self._auth_headers(access_jwt)
        headers["Content-Type"] = mime_type
        response = self._send("POST", nsid, data=content, headers=headers)
        return self._json(response, nsid)

    def create_record(self, repo: str, collection: str, record: Dict[str, Any],
                      access_jwt: str) -> Dict[str, Any]:
        """
        Call com.atproto.repo.createRecord.

        Args:
            repo: DID of the repository to write to.
            collection: NSID of the collection, e.g. app.bsky.feed.post.
            record: The record body.
            access_jwt: Bearer token of the session.

        Returns:
            Dict[str, Any]: The response body, normally ``{"uri": ..., "cid": ...}``.
        """
        nsid = "com.atproto.repo.createRecord"
        body = {"repo": repo, "collection": collection, "record": record}
        response = self._send("POST", nsid, json=body, headers=self._auth_headers(access_jwt))
        if not response.content:
            return {}
        return self._json(response, nsid)

    def fetch_bytes(self, url: str) -> bytes:
        """
        Download a resource that lives outside the service, such as a thumbnail.

        Args:
            url: Absolute URL of the resource.

        Returns:
            bytes: The response body.
        """
        try:
            response = self.http.get(url, headers=settings.REQUEST_HEADERS,
                                     timeout=settings.METADATA_TIMEOUT)
        except requests.RequestException as e:
            logger.error(f"Download of {url} failed: {e}")
            raise TransportError(f"Download of {url} failed: {e}", endpoint=url) from e

        if not response.ok:
            logger.error(f"Download of {url} returned {response.status_code}")
            raise TransportError(f"Download of {url} returned HTTP {response.status_code}",
                                 endpoint=url, status_code=response.status_code)
        return response.content
