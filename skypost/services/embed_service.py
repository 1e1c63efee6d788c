"""
Embed Service Module

This module builds the embed attached to a post: either an image gallery of
caller-supplied images, or an external link card with an optional thumbnail
taken from the linked page. Both upload their images through
ImageEmbedBuilder.upload_image so the size rules apply everywhere.
"""

import threading
from typing import Iterable, List, Optional

from skypost.config import settings
from skypost.data.models import (
    AspectRatio,
    BlobRef,
    ExternalLinkEmbed,
    GalleryImage,
    Image,
    ImageGalleryEmbed,
    Session,
)
from skypost.services.http_client import XrpcClient
from skypost.services.protocols import BlobUploaderProtocol, MetadataExtractorProtocol
from skypost.utils.exceptions import ImageTooLargeError, ImageValidationError, MediaUploadError
from skypost.utils.helpers import get_mime_type_from_url, raise_if_cancelled, resolve_image_url
from skypost.utils.logger import get_logger

logger = get_logger(__name__)


class EmbedBuilder:
    """Base class for embed builders; holds the session used for uploads."""

    def __init__(self, session: Session, uploader: BlobUploaderProtocol):
        self.session = session
        self.uploader = uploader


class ImageEmbedBuilder(EmbedBuilder):
    """Uploads images and assembles an image gallery embed."""

    def __init__(self, session: Session, uploader: BlobUploaderProtocol,
                 max_image_bytes: Optional[int] = None):
        super().__init__(session, uploader)
        self.max_image_bytes = max_image_bytes or settings.MAX_IMAGE_BYTES

    def validate_image(self, content: bytes) -> None:
        """
        Check image content against the upload rules.

        Args:
            content: Raw image bytes.

        Raises:
            ImageValidationError: If the content is empty.
            ImageTooLargeError: If the content is larger than the blob limit.
        """
        if not content:
            logger.error("Image content is empty")
            raise ImageValidationError("Image content is empty")

        if len(content) > self.max_image_bytes:
            logger.error(f"image file size too large. {self.max_image_bytes} bytes maximum, got: {len(content)}")
            raise ImageTooLargeError(len(content), self.max_image_bytes)

    def upload_image(self, content: bytes, mime_type: str) -> BlobRef:
        """
        Validate and upload one image.

        Args:
            content: Raw image bytes.
            mime_type: MIME type sent as the upload's Content-Type.

        Returns:
            BlobRef: Reference to the uploaded blob.

        Raises:
            ValidationError: If the content breaks the upload rules.
            TransportError: If the upload call fails.
            MediaUploadError: If the response does not describe a blob.
        """
        self.validate_image(content)

        response = self.uploader.upload_blob(content, mime_type, self.session.access_jwt)

        try:
            blob = BlobRef.from_dict(response.get("blob"))
        except ValueError as e:
            logger.error("Failed to upload image")
            raise MediaUploadError("Failed to upload image", endpoint="com.atproto.repo.uploadBlob") from e

        logger.debug(f"Uploaded {blob.size} bytes as {blob.link}")
        return blob

    def build(self, images: Iterable[Image],
              cancel_event: Optional[threading.Event] = None) -> ImageGalleryEmbed:
        """
        Upload images in order and build the gallery embed.

        Every image is validated before the first upload, so an invalid image
        later in the list does not leave earlier uploads behind.

        Args:
            images: The images, in display order.
            cancel_event: Optional event that aborts the build when set.

        Returns:
            ImageGalleryEmbed: One entry per image, in input order.
        """
        images = list(images)
        for image in images:
            self.validate_image(image.content)

        entries: List[GalleryImage] = []
        for position, image in enumerate(images, start=1):
            raise_if_cancelled(cancel_event, f"upload of image {position}")
            blob = self.upload_image(image.content, image.mime_type)

            aspect_ratio = None
            if image.has_aspect_ratio:
                aspect_ratio = AspectRatio(width=image.width, height=image.height)

            entries.append(GalleryImage(image=blob, alt=image.alt, aspect_ratio=aspect_ratio))

        logger.info(f"Image embed created with {len(entries)} images")
        return ImageGalleryEmbed(images=entries)


class ExternalEmbedBuilder(EmbedBuilder):
    """Builds an external link card, uploading the page's preview image as thumbnail."""

    def __init__(self, session: Session, xrpc: XrpcClient,
                 metadata_extractor: MetadataExtractorProtocol,
                 image_builder: Optional[ImageEmbedBuilder] = None):
        super().__init__(session, xrpc)
        self.xrpc = xrpc
        self.metadata_extractor = metadata_extractor
        self.image_builder = image_builder or ImageEmbedBuilder(session, xrpc)

    def build(self, uri: str, cancel_event: Optional[threading.Event] = None) -> ExternalLinkEmbed:
        """
        Build a link card for a URL.

        Args:
            uri: The linked page.
            cancel_event: Optional event that aborts the build when set.

        Returns:
            ExternalLinkEmbed: The card; ``thumb`` is set when the page names an image.

        Raises:
            MetadataExtractionError: If the page metadata cannot be read.
            TransportError: If the thumbnail download or upload fails.
            ValidationError: If the thumbnail breaks the upload rules.
        """
        metadata = self.metadata_extractor.extract(uri, cancel_event=cancel_event)

        card = ExternalLinkEmbed(uri=uri, title=metadata.title, description=metadata.description)

        image_url = next((url for url in metadata.images if url and url.strip()), None)
        if image_url:
            card.thumb = self.upload_thumbnail(resolve_image_url(uri, image_url.strip()), cancel_event)
            logger.info("EmbedCard created")

        return card

    def upload_thumbnail(self, image_url: str,
                         cancel_event: Optional[threading.Event] = None) -> BlobRef:
        """
        Download an image and upload it as a blob.

        Args:
            image_url: Absolute URL of the image.
            cancel_event: Optional event that aborts the call when set.

        Returns:
            BlobRef: Reference to the uploaded thumbnail.
        """
        raise_if_cancelled(cancel_event, "thumbnail download")
        content = self.xrpc.fetch_bytes(image_url)
        mime_type = get_mime_type_from_url(image_url)

        raise_if_cancelled(cancel_event, "thumbnail upload")
        return self.image_builder.upload_image(content, mime_type)
