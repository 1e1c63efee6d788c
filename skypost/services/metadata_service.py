"""
Metadata Service Module

This module reads link card metadata (title, description and preview images)
from a web page using newspaper.
"""

import threading
from typing import List, Optional

from newspaper import Article

from skypost.config import settings
from skypost.data.models import PageMetadata
from skypost.utils.exceptions import MetadataExtractionError
from skypost.utils.helpers import raise_if_cancelled
from skypost.utils.logger import get_logger

logger = get_logger(__name__)


class MetadataService:
    """Extracts page metadata for external link cards."""

    def __init__(self, timeout: Optional[int] = None):
        self.timeout = timeout or settings.METADATA_TIMEOUT

    def extract(self, url: str, cancel_event: Optional[threading.Event] = None) -> PageMetadata:
        """
        Download a page and read its card metadata.

        Args:
            url (str): The page URL.
            cancel_event: Optional event that aborts the call when set.

        Returns:
            PageMetadata: Title, description and candidate image URLs, best first.

        Raises:
            MetadataExtractionError: If the page cannot be downloaded or parsed.
        """
        raise_if_cancelled(cancel_event, "metadata extraction")

        try:
            article = Article(url)
            article.config.browser_user_agent = settings.USER_AGENT
            article.config.headers = settings.REQUEST_HEADERS
            article.config.request_timeout = self.timeout

            article.download()
            article.parse()
        except Exception as e:
            logger.error(f"Error extracting metadata: {e} on URL {url}")
            raise MetadataExtractionError(f"Could not extract metadata from {url}: {e}") from e

        metadata = PageMetadata(
            title=(article.title or "").strip(),
            description=(getattr(article, "meta_description", "") or "").strip(),
            images=self._collect_images(article),
        )
        logger.info(f"Extracted metadata for {url}: {metadata.title!r} with {len(metadata.images)} images")
        return metadata

    @staticmethod
    def _collect_images(article: Article) -> List[str]:
        # og:image first, then newspaper's pick of the main image
        candidates = [getattr(article, "meta_img", ""), getattr(article, "top_image", "")]
        images = []
        for candidate in candidates:
            if candidate and candidate not in images:
                images.append(candidate)
        return images
