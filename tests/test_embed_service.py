"""
Tests for Embed Service - image galleries and external link cards

Tests cover upload order, the blob size limit, validation before upload,
aspect ratios, and thumbnail handling for link cards.
"""

import threading

import pytest
from unittest.mock import MagicMock, call
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from skypost.data.models import ExternalLinkEmbed, ImageGalleryEmbed, PageMetadata
from skypost.services.embed_service import ExternalEmbedBuilder, ImageEmbedBuilder
from skypost.utils.exceptions import (
    ImageTooLargeError,
    ImageValidationError,
    MediaUploadError,
    MetadataExtractionError,
    PublishCancelledError,
    TransportError,
)


@pytest.fixture
def image_builder(session, mock_xrpc):
    return ImageEmbedBuilder(session, mock_xrpc)


@pytest.fixture
def metadata_extractor():
    extractor = MagicMock()
    extractor.extract.return_value = PageMetadata(
        title="Example Title",
        description="Example description",
        images=["https://example.com/og.png"],
    )
    return extractor


@pytest.fixture
def external_builder(session, mock_xrpc, metadata_extractor):
    return ExternalEmbedBuilder(session, mock_xrpc, metadata_extractor)


# =============================================================================
# Image Validation Tests
# =============================================================================

class TestValidateImage:
    """Tests for the upload size rules."""

    def test_exact_limit_allowed(self, image_builder):
        image_builder.validate_image(b"\x00" * 1000000)

    def test_one_byte_over_limit(self, image_builder):
        with pytest.raises(ImageTooLargeError) as exc_info:
            image_builder.validate_image(b"\x00" * 1000001)

        assert exc_info.value.size == 1000001
        assert exc_info.value.limit == 1000000
        assert str(exc_info.value) == "image file size too large. 1000000 bytes maximum, got: 1000001"

    def test_empty_content(self, image_builder):
        with pytest.raises(ImageValidationError):
            image_builder.validate_image(b"")

    def test_custom_limit(self, session, mock_xrpc):
        builder = ImageEmbedBuilder(session, mock_xrpc, max_image_bytes=10)

        with pytest.raises(ImageTooLargeError):
            builder.validate_image(b"\x00" * 11)


# =============================================================================
# Image Upload Tests
# =============================================================================

class TestUploadImage:
    """Tests for ImageEmbedBuilder.upload_image."""

    def test_uploads_with_session_token(self, image_builder, mock_xrpc):
        blob = image_builder.upload_image(b"abc", "image/png")

        mock_xrpc.upload_blob.assert_called_once_with(b"abc", "image/png", "test-access-jwt")
        assert blob.link == "bafkreitestblob"
        assert blob.to_dict()["$type"] == "blob"

    def test_oversized_not_uploaded(self, image_builder, mock_xrpc):
        with pytest.raises(ImageTooLargeError):
            image_builder.upload_image(b"\x00" * 1000001, "image/jpeg")

        mock_xrpc.upload_blob.assert_not_called()

    def test_response_without_blob(self, image_builder, mock_xrpc):
        mock_xrpc.upload_blob.return_value = {"unexpected": True}

        with pytest.raises(MediaUploadError, match="Failed to upload image"):
            image_builder.upload_image(b"abc", "image/png")

    @pytest.mark.parametrize("size", [None, "not-a-number"])
    def test_response_with_invalid_size(self, image_builder, mock_xrpc, size):
        mock_xrpc.upload_blob.return_value = {
            "blob": {"ref": {"$link": "bafy"}, "mimeType": "image/png", "size": size}
        }

        with pytest.raises(MediaUploadError, match="Failed to upload image"):
            image_builder.upload_image(b"abc", "image/png")

    def test_transport_error_propagates(self, image_builder, mock_xrpc):
        mock_xrpc.upload_blob.side_effect = TransportError("uploadBlob returned HTTP 413", status_code=413)

        with pytest.raises(TransportError):
            image_builder.upload_image(b"abc", "image/png")


# =============================================================================
# Gallery Build Tests
# =============================================================================

class TestImageGalleryBuild:
    """Tests for ImageEmbedBuilder.build."""

    def test_keeps_order_and_alt_text(self, image_builder, mock_xrpc, image_factory, blob_response_factory):
        mock_xrpc.upload_blob.side_effect = [
            blob_response_factory(link="bafkreifirst"),
            blob_response_factory(link="bafkreisecond"),
        ]
        images = [image_factory(alt="First", size=1), image_factory(alt="Second", size=2)]

        embed = image_builder.build(images)

        assert isinstance(embed, ImageGalleryEmbed)
        assert [entry.image.link for entry in embed.images] == ["bafkreifirst", "bafkreisecond"]
        assert [entry.alt for entry in embed.images] == ["First", "Second"]
        assert mock_xrpc.upload_blob.call_args_list == [
            call(b"\x01", "image/jpeg", "test-access-jwt"),
            call(b"\x01\x01", "image/jpeg", "test-access-jwt"),
        ]

    def test_aspect_ratio_only_when_both_dimensions(self, image_builder, image_factory):
        images = [image_factory(width=1200, height=800), image_factory(width=1200)]

        data = image_builder.build(images).to_dict()

        assert data["images"][0]["aspectRatio"] == {"width": 1200, "height": 800}
        assert "aspectRatio" not in data["images"][1]

    def test_invalid_image_blocks_all_uploads(self, image_builder, mock_xrpc, image_factory):
        images = [image_factory(size=5), image_factory(size=0)]

        with pytest.raises(ImageValidationError):
            image_builder.build(images)

        mock_xrpc.upload_blob.assert_not_called()

    def test_oversized_later_image_blocks_all_uploads(self, image_builder, mock_xrpc, image_factory):
        images = [image_factory(size=5), image_factory(size=1000001)]

        with pytest.raises(ImageTooLargeError):
            image_builder.build(images)

        mock_xrpc.upload_blob.assert_not_called()

    def test_empty_list(self, image_builder, mock_xrpc):
        embed = image_builder.build([])

        assert embed.images == []
        mock_xrpc.upload_blob.assert_not_called()

    def test_cancelled(self, image_builder, mock_xrpc, image_factory):
        event = threading.Event()
        event.set()

        with pytest.raises(PublishCancelledError):
            image_builder.build([image_factory()], cancel_event=event)

        mock_xrpc.upload_blob.assert_not_called()


# =============================================================================
# External Link Card Tests
# =============================================================================

class TestExternalEmbedBuild:
    """Tests for ExternalEmbedBuilder.build."""

    def test_card_with_thumbnail(self, external_builder, mock_xrpc, metadata_extractor):
        embed = external_builder.build("https://example.com/story")

        assert isinstance(embed, ExternalLinkEmbed)
        assert embed.uri == "https://example.com/story"
        assert embed.title == "Example Title"
        assert embed.description == "Example description"
        assert embed.thumb.link == "bafkreitestblob"

        metadata_extractor.extract.assert_called_once_with("https://example.com/story", cancel_event=None)
        mock_xrpc.fetch_bytes.assert_called_once_with("https://example.com/og.png")
        mock_xrpc.upload_blob.assert_called_once_with(
            b"\x89PNG thumbnail bytes", "image/png", "test-access-jwt"
        )

    def test_card_without_images(self, external_builder, mock_xrpc, metadata_extractor):
        metadata_extractor.extract.return_value = PageMetadata(title="T", description="D", images=[])

        embed = external_builder.build("https://example.com")

        assert embed.thumb is None
        assert "thumb" not in embed.to_dict()["external"]
        mock_xrpc.fetch_bytes.assert_not_called()
        mock_xrpc.upload_blob.assert_not_called()

    def test_blank_images_skipped(self, external_builder, mock_xrpc, metadata_extractor):
        metadata_extractor.extract.return_value = PageMetadata(
            title="T", description="D", images=["", "   ", "https://example.com/second.jpg"]
        )

        external_builder.build("https://example.com")

        mock_xrpc.fetch_bytes.assert_called_once_with("https://example.com/second.jpg")

    def test_relative_image_resolved_against_page(self, external_builder, mock_xrpc, metadata_extractor):
        metadata_extractor.extract.return_value = PageMetadata(
            title="T", description="D", images=["/static/preview.jpg"]
        )

        external_builder.build("https://example.com/news/story")

        mock_xrpc.fetch_bytes.assert_called_once_with("https://example.com/static/preview.jpg")
        assert mock_xrpc.upload_blob.call_args[0][1] == "image/jpeg"

    def test_unknown_extension_uses_octet_stream(self, external_builder, mock_xrpc, metadata_extractor):
        metadata_extractor.extract.return_value = PageMetadata(
            title="T", description="D", images=["https://cdn.example.com/image?id=42"]
        )

        external_builder.build("https://example.com")

        assert mock_xrpc.upload_blob.call_args[0][1] == "application/octet-stream"

    def test_thumbnail_download_failure_propagates(self, external_builder, mock_xrpc):
        mock_xrpc.fetch_bytes.side_effect = TransportError("Download returned HTTP 404", status_code=404)

        with pytest.raises(TransportError):
            external_builder.build("https://example.com")

        mock_xrpc.upload_blob.assert_not_called()

    def test_oversized_thumbnail(self, external_builder, mock_xrpc):
        mock_xrpc.fetch_bytes.return_value = b"\x00" * 1000001

        with pytest.raises(ImageTooLargeError):
            external_builder.build("https://example.com")

        mock_xrpc.upload_blob.assert_not_called()

    def test_metadata_failure_propagates(self, external_builder, metadata_extractor):
        metadata_extractor.extract.side_effect = MetadataExtractionError("Could not extract metadata")

        with pytest.raises(MetadataExtractionError):
            external_builder.build("https://example.com")
