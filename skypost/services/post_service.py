"""
Post Service Module

This module publishes posts. PostService runs the whole pipeline for one
post: get a session, extract facets and resolve mentions, pick and build the
embed, assemble the app.bsky.feed.post record and submit it with
com.atproto.repo.createRecord. Nothing is written to the service until the
record is fully assembled.
"""

import threading
from typing import Dict, Iterable, List, Optional, Sequence

from skypost.config import settings
from skypost.data.models import (
    Embed,
    Facet,
    Image,
    Post,
    PostRecord,
    PublishResult,
    ResolutionResult,
    Session,
)
from skypost.services.auth_service import AuthorizationClient, ReusableAuthorizationClient
from skypost.services.embed_service import ExternalEmbedBuilder, ImageEmbedBuilder
from skypost.services.facet_service import FacetExtractor
from skypost.services.http_client import XrpcClient
from skypost.services.mention_service import MentionResolver
from skypost.services.metadata_service import MetadataService
from skypost.services.protocols import (
    MentionResolverProtocol,
    MetadataExtractorProtocol,
    SessionProviderProtocol,
)
from skypost.utils.exceptions import AuthenticationError
from skypost.utils.helpers import raise_if_cancelled, utc_timestamp
from skypost.utils.logger import get_logger

logger = get_logger(__name__)


class PostService:
    """Composes and publishes posts to the AT Protocol service."""

    def __init__(self, session_provider: SessionProviderProtocol,
                 xrpc: Optional[XrpcClient] = None,
                 mention_resolver: Optional[MentionResolverProtocol] = None,
                 metadata_extractor: Optional[MetadataExtractorProtocol] = None,
                 facet_extractor: Optional[FacetExtractor] = None,
                 languages: Optional[Sequence[str]] = None):
        """
        Initialize the post service.

        Args:
            session_provider: Supplies the session used for every write.
            xrpc: XRPC client for uploads and record creation.
            mention_resolver: Resolves mentions, defaults to a MentionResolver on ``xrpc``.
            metadata_extractor: Reads link card metadata, defaults to MetadataService.
            facet_extractor: Finds facets in post text.
            languages: Languages for posts that do not name their own.
        """
        self.session_provider = session_provider
        self.xrpc = xrpc or XrpcClient()
        self.mention_resolver = mention_resolver or MentionResolver(self.xrpc)
        self.metadata_extractor = metadata_extractor or MetadataService()
        self.facet_extractor = facet_extractor or FacetExtractor()
        self.languages = list(languages) if languages is not None else list(settings.DEFAULT_LANGUAGES)

    # =========================================================================
    # Pipeline
    # =========================================================================

    def publish(self, post: Post, cancel_event: Optional[threading.Event] = None) -> PublishResult:
        """
        Publish a post.

        Args:
            post: The post to publish.
            cancel_event: Optional event; when set, the pipeline stops before its
                next network call and nothing is submitted.

        Returns:
            PublishResult: URI and CID of the created record.

        Raises:
            AuthenticationError: If no usable session is available.
            ResolutionFormatError: If a mention cannot be resolved to a DID.
            ValidationError: If an image breaks the upload rules.
            TransportError: If any service call fails.
            MetadataExtractionError: If link card metadata cannot be read.
            PublishCancelledError: If ``cancel_event`` was set.
        """
        raise_if_cancelled(cancel_event, "session")
        session = self._require_session()

        facets = self.extract_facets(post.text, cancel_event=cancel_event)
        embed = self.build_embed(post, facets, session, cancel_event=cancel_event)

        record = self.build_record(post, facets, embed)
        payload = record.to_dict()

        raise_if_cancelled(cancel_event, "record submission")
        response = self.xrpc.create_record(
            repo=session.did,
            collection=settings.POST_COLLECTION,
            record=payload,
            access_jwt=session.access_jwt,
        )

        result = PublishResult(uri=response.get("uri"), cid=response.get("cid"))
        logger.info(f"Successfully posted to AT Protocol: {result.uri}")
        return result

    def _require_session(self) -> Session:
        session = self.session_provider.get_session()
        if session is None or not session.is_usable:
            logger.error("Unable to get session")
            raise AuthenticationError("Unable to get session")
        return session

    def extract_facets(self, text: str, cancel_event: Optional[threading.Event] = None) -> List[Facet]:
        """
        Extract facets from text and resolve every mention to a DID.

        Args:
            text: The post text.
            cancel_event: Optional event that aborts resolution when set.

        Returns:
            List[Facet]: Facets with all mentions resolved.

        Raises:
            ResolutionFormatError: If a mention does not resolve to a DID.
        """
        facets = self.facet_extractor.extract(text)

        results: Dict[str, ResolutionResult] = {}
        for mention in FacetExtractor.mentions(facets):
            if mention.handle not in results:
                raise_if_cancelled(cancel_event, f"resolving {mention.handle}")
                results[mention.handle] = self.mention_resolver.resolve(mention.handle)

            result = results[mention.handle]
            if not result.succeeded:
                logger.error(f"Mention {mention.handle} could not be resolved: {result.error}")
            mention.resolve(result.did or "")

        return facets

    def build_embed(self, post: Post, facets: List[Facet], session: Session,
                    cancel_event: Optional[threading.Event] = None) -> Optional[Embed]:
        """
        Pick and build the embed for a post.

        Images always win. Otherwise, when card generation is on, a link card is
        built for the explicit URL or, failing that, the first link in the text.

        Args:
            post: The post being published.
            facets: Facets extracted from the post text.
            session: Session used for uploads.
            cancel_event: Optional event that aborts the build when set.

        Returns:
            Optional[Embed]: The embed, or None when the post gets none.
        """
        if post.images:
            builder = ImageEmbedBuilder(session, self.xrpc)
            return builder.build(post.images, cancel_event=cancel_event)

        if not post.generate_card:
            return None

        url = post.url or FacetExtractor.first_link(facets)
        if not url:
            return None

        builder = ExternalEmbedBuilder(session, self.xrpc, self.metadata_extractor)
        return builder.build(url, cancel_event=cancel_event)

    def build_record(self, post: Post, facets: List[Facet], embed: Optional[Embed]) -> PostRecord:
        """Assemble the app.bsky.feed.post record for a post."""
        languages = list(post.languages) if post.languages is not None else list(self.languages)
        return PostRecord(
            text=post.text,
            created_at=utc_timestamp(),
            langs=languages,
            facets=facets,
            embed=embed,
        )

    # =========================================================================
    # Convenience wrappers
    # =========================================================================

    def post_text(self, text: str) -> PublishResult:
        """Publish text only; a link in the text still gets a card."""
        return self.publish(Post(text=text))

    def post_link(self, text: str, url: str, generate_card: bool = True) -> PublishResult:
        """Publish text with an explicit link for the card."""
        return self.publish(Post(text=text, url=url, generate_card=generate_card))

    def post_image(self, text: str, image: Image, url: Optional[str] = None) -> PublishResult:
        """Publish text with a single image."""
        return self.publish(Post(text=text, url=url, images=(image,)))

    def post_images(self, text: str, images: Iterable[Image], url: Optional[str] = None) -> PublishResult:
        """Publish text with several images, shown in the given order."""
        return self.publish(Post(text=text, url=url, images=tuple(images)))


def create_post_service(identifier: Optional[str] = None, password: Optional[str] = None,
                        base_url: Optional[str] = None, reuse_session: Optional[bool] = None,
                        languages: Optional[Sequence[str]] = None) -> PostService:
    """
    Build a PostService wired with the default collaborators.

    Args:
        identifier: Account handle or DID, defaults to settings.BLUESKY_IDENTIFIER.
        password: App password, defaults to settings.BLUESKY_PASSWORD.
        base_url: Service base URL, defaults to settings.BLUESKY_SERVICE_URL.
        reuse_session: Cache the session between posts, defaults to settings.BLUESKY_REUSE_SESSION.
        languages: Default post languages, defaults to settings.DEFAULT_LANGUAGES.

    Returns:
        PostService: A ready-to-use service.
    """
    if reuse_session is None:
        reuse_session = settings.BLUESKY_REUSE_SESSION

    session_provider: SessionProviderProtocol = AuthorizationClient(identifier, password, base_url)
    if reuse_session:
        session_provider = ReusableAuthorizationClient(session_provider)

    return PostService(
        session_provider=session_provider,
        xrpc=XrpcClient(base_url),
        languages=languages,
    )
