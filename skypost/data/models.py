"""
Data Models for SkyPost

This module contains the data classes used throughout the posting pipeline:
the caller's post input, rich-text facets, embeds, blob references and the
outbound ``app.bsky.feed.post`` record. Every wire-facing class exposes
``to_dict()`` producing the camelCase JSON shape the service expects,
with absent optional fields omitted.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from skypost.config import settings
from skypost.utils.exceptions import ResolutionFormatError


# =============================================================================
# Caller Input
# =============================================================================

@dataclass(frozen=True)
class Image:
    """An image supplied by the caller for an image gallery embed."""
    content: bytes
    mime_type: str
    alt: str = ""
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def has_aspect_ratio(self) -> bool:
        return self.width is not None and self.height is not None


@dataclass(frozen=True)
class Post:
    """A post to publish.

    Attributes:
        text: The post text, submitted exactly as given.
        languages: Language tags for the record; a single string is one tag, None uses the client default.
        url: Explicit link for the preview card; takes precedence over links in the text.
        images: Images for a gallery embed; when present they win over any link card.
        generate_card: Whether to build a link preview card when no images are given.
    """
    text: str
    languages: Optional[Tuple[str, ...]] = None
    url: Optional[str] = None
    images: Tuple[Image, ...] = ()
    generate_card: bool = True

    def __post_init__(self):
        object.__setattr__(self, "images", tuple(self.images or ()))
        if isinstance(self.languages, str):
            object.__setattr__(self, "languages", (self.languages,))
        elif self.languages is not None:
            object.__setattr__(self, "languages", tuple(self.languages))


@dataclass(frozen=True)
class Session:
    """Bearer credential and repository DID for one account."""
    access_jwt: str
    did: str
    handle: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        return bool(self.access_jwt and self.did)


# =============================================================================
# Blobs
# =============================================================================

@dataclass(frozen=True)
class BlobRef:
    """Reference to an uploaded blob.

    The ``$type`` marker is always written on output and never read back
    from the upload response.
    """
    TYPE: ClassVar[str] = "blob"

    link: str
    mime_type: str
    size: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlobRef":
        """Build a reference from the ``blob`` object of an uploadBlob response.

        Raises:
            ValueError: If the object has no usable ``ref.$link`` or ``size``.
        """
        if not isinstance(data, dict):
            raise ValueError("blob is not an object")
        ref = data.get("ref")
        link = ref.get("$link") if isinstance(ref, dict) else None
        if not link:
            raise ValueError("blob has no ref link")
        try:
            size = int(data.get("size"))
        except (TypeError, ValueError) as e:
            raise ValueError("blob has no valid size") from e
        return cls(link=str(link), mime_type=data.get("mimeType", ""), size=size)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "$type": self.TYPE,
            "ref": {"$link": self.link},
            "mimeType": self.mime_type,
            "size": self.size,
        }


# =============================================================================
# Rich Text Facets
# =============================================================================

@dataclass(frozen=True)
class FacetIndex:
    """Half-open ``[byte_start, byte_end)`` range into the UTF-8 encoded text."""
    byte_start: int
    byte_end: int

    def overlaps(self, other: "FacetIndex") -> bool:
        return self.byte_start < other.byte_end and other.byte_start < self.byte_end

    def to_dict(self) -> Dict[str, int]:
        return {"byteStart": self.byte_start, "byteEnd": self.byte_end}


class FacetFeature:
    """Base class for the closed set of facet features."""
    TYPE: ClassVar[str] = ""

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass
class LinkFeature(FacetFeature):
    TYPE: ClassVar[str] = "app.bsky.richtext.facet#link"

    uri: str

    def to_dict(self) -> Dict[str, Any]:
        return {"$type": self.TYPE, "uri": self.uri}


@dataclass
class MentionFeature(FacetFeature):
    """A mention of an account.

    ``handle`` keeps the text as written (``@alice.example.com``); ``did`` is
    filled in by ``resolve()``. The feature cannot be serialized until resolved.
    """
    TYPE: ClassVar[str] = "app.bsky.richtext.facet#mention"

    handle: str
    did: Optional[str] = None

    @staticmethod
    def is_valid_did(value: Optional[str]) -> bool:
        if not value or not value.strip():
            return False
        return any(marker in value for marker in settings.DID_NAMESPACE_MARKERS)

    @property
    def resolved(self) -> bool:
        return self.is_valid_did(self.did)

    def resolve(self, value: Optional[str]) -> None:
        """Set the DID for this mention.

        Raises:
            ResolutionFormatError: If ``value`` is empty or not a recognized DID.
        """
        if not self.is_valid_did(value):
            raise ResolutionFormatError(
                f"Could not resolve mention {self.handle!r}: {value!r} is not a recognized DID"
            )
        self.did = value

    def to_dict(self) -> Dict[str, Any]:
        if not self.resolved:
            raise ResolutionFormatError(f"Mention {self.handle!r} has not been resolved to a DID")
        return {"$type": self.TYPE, "did": self.did}


@dataclass
class TagFeature(FacetFeature):
    TYPE: ClassVar[str] = "app.bsky.richtext.facet#tag"

    tag: str

    def to_dict(self) -> Dict[str, Any]:
        return {"$type": self.TYPE, "tag": self.tag}


@dataclass
class Facet:
    index: FacetIndex
    features: List[FacetFeature] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index.to_dict(),
            "features": [feature.to_dict() for feature in self.features],
        }


# =============================================================================
# Embeds
# =============================================================================

class Embed:
    """Base class for the closed set of post embeds."""
    TYPE: ClassVar[str] = ""

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class AspectRatio:
    width: int
    height: int

    def to_dict(self) -> Dict[str, int]:
        return {"width": self.width, "height": self.height}


@dataclass
class GalleryImage:
    image: BlobRef
    alt: str = ""
    aspect_ratio: Optional[AspectRatio] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"image": self.image.to_dict(), "alt": self.alt}
        if self.aspect_ratio is not None:
            data["aspectRatio"] = self.aspect_ratio.to_dict()
        return data


@dataclass
class ImageGalleryEmbed(Embed):
    TYPE: ClassVar[str] = "app.bsky.embed.images"

    images: List[GalleryImage] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"$type": self.TYPE, "images": [image.to_dict() for image in self.images]}


@dataclass
class ExternalLinkEmbed(Embed):
    TYPE: ClassVar[str] = "app.bsky.embed.external"

    uri: str
    title: str = ""
    description: str = ""
    thumb: Optional[BlobRef] = None

    def to_dict(self) -> Dict[str, Any]:
        external = {"uri": self.uri, "title": self.title, "description": self.description}
        if self.thumb is not None:
            external["thumb"] = self.thumb.to_dict()
        return {"$type": self.TYPE, "external": external}


@dataclass
class PageMetadata:
    """Title, description and image URLs discovered on a web page."""
    title: str = ""
    description: str = ""
    images: List[str] = field(default_factory=list)


# =============================================================================
# Records and Results
# =============================================================================

@dataclass
class PostRecord:
    TYPE: ClassVar[str] = "app.bsky.feed.post"

    text: str
    created_at: str
    langs: List[str] = field(default_factory=list)
    facets: List[Facet] = field(default_factory=list)
    embed: Optional[Embed] = None

    def to_dict(self) -> Dict[str, Any]:
        record = {
            "$type": self.TYPE,
            "text": self.text,
            "createdAt": self.created_at,
            "langs": list(self.langs),
            "facets": [facet.to_dict() for facet in self.facets],
        }
        if self.embed is not None:
            record["embed"] = self.embed.to_dict()
        return record


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of resolving one handle to a DID."""
    handle: str
    did: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return bool(self.did) and self.error is None


@dataclass(frozen=True)
class PublishResult:
    """Identifiers of the created record, as reported by createRecord."""
    uri: Optional[str] = None
    cid: Optional[str] = None
