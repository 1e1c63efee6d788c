"""
Facet Service Module

This module finds links, mentions and hashtags in post text and describes them
as rich-text facets. Facet ranges are UTF-8 byte offsets into the exact text
being posted, since that is how the service indexes post text.
"""

import re
from typing import List, Optional

from skypost.data.models import (
    Facet,
    FacetFeature,
    FacetIndex,
    LinkFeature,
    MentionFeature,
    TagFeature,
)
from skypost.utils.logger import get_logger

logger = get_logger(__name__)

LINK_PATTERN = re.compile(r"https?://\S+")
MENTION_PATTERN = re.compile(r"@\w+(?:\.\w+)*")
TAG_PATTERN = re.compile(r"#\w+")


def byte_offset(text: str, char_index: int) -> int:
    """
    Convert a character index into an offset in the text's UTF-8 encoding.

    Args:
        text: The full text
        char_index: Index of a character in ``text``

    Returns:
        int: Number of UTF-8 bytes needed to encode ``text[:char_index]``
    """
    return len(text[:char_index].encode("utf-8"))


class FacetExtractor:
    """Extracts link, mention and tag facets from post text.

    Facets are emitted grouped by kind: all links, then all mentions, then
    all tags, each group in text order. A mention or tag that falls inside
    a link (``https://example.com/#top``) is dropped in favour of the link.

    Mentions are matched anywhere, so the domain part of an email address
    (``me@example.com``) becomes an ``@example.com`` mention. Such text can only
    be posted if that domain resolves as a handle.
    """

    def extract(self, text: str) -> List[Facet]:
        """
        Extract facets from text.

        Args:
            text: The post text

        Returns:
            List[Facet]: One facet per entity found, each with a single feature
        """
        if not text:
            return []

        links = [
            self._create_facet(text, match, LinkFeature(uri=match.group(0)))
            for match in LINK_PATTERN.finditer(text)
        ]
        mentions = [
            self._create_facet(text, match, MentionFeature(handle=match.group(0)))
            for match in MENTION_PATTERN.finditer(text)
        ]
        tags = [
            self._create_facet(text, match, TagFeature(tag=match.group(0).lstrip("#")))
            for match in TAG_PATTERN.finditer(text)
        ]

        facets = list(links)
        for facet in mentions + tags:
            if any(facet.index.overlaps(link.index) for link in links):
                logger.debug(f"Dropping facet inside a link at bytes "
                             f"{facet.index.byte_start}-{facet.index.byte_end}")
                continue
            facets.append(facet)

        logger.debug(f"Extracted {len(facets)} facets from text")
        return facets

    @staticmethod
    def _create_facet(text: str, match: "re.Match", feature: FacetFeature) -> Facet:
        start = byte_offset(text, match.start())
        end = byte_offset(text, match.end())
        return Facet(index=FacetIndex(byte_start=start, byte_end=end), features=[feature])

    @staticmethod
    def first_link(facets: List[Facet]) -> Optional[str]:
        """
        Return the URI of the first link feature among the facets.

        Args:
            facets: Facets as returned by extract()

        Returns:
            Optional[str]: The URI, or None if there is no link
        """
        for facet in facets:
            for feature in facet.features:
                if isinstance(feature, LinkFeature):
                    return feature.uri
        return None

    @staticmethod
    def mentions(facets: List[Facet]) -> List[MentionFeature]:
        """Return every mention feature among the facets, in order."""
        return [
            feature
            for facet in facets
            for feature in facet.features
            if isinstance(feature, MentionFeature)
        ]
