"""Plugin-related data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class SortOrder(str, Enum):
    """Sort keys accepted by the plugin listing."""

    NEWEST = "newest"
    POPULAR = "popular"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    RATING = "rating"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortOrder":
        """Map a query value to a sort key, falling back to newest first.

        Args:
            value: Raw ``sort`` query value.

        Returns:
            Matching sort order.
        """
        if value == "popularity":
            return cls.POPULAR
        try:
            return cls(value)
        except ValueError:
            return cls.NEWEST


@dataclass
class PluginVersion:
    """One released archive of a plugin.

    Attributes:
        version_number: Free-text version label.
        file_path: Path of the archive in the artifact store.
        minecraft_version: Game server compatibility tag.
        changelog: Release notes.
        checksum_sha256: SHA256 checksum of the archive.
        size_bytes: Archive size in bytes.
        release_date: Release timestamp.
        download_count: Downloads of this version.
        position: Index in the plugin's version history.
    """

    version_number: str
    file_path: str
    minecraft_version: str
    changelog: Optional[str] = None
    checksum_sha256: Optional[str] = None
    size_bytes: Optional[int] = None
    release_date: datetime = field(default_factory=utcnow)
    download_count: int = 0
    position: int = 0


@dataclass
class Review:
    """A user's review of a plugin.

    Attributes:
        user_id: Reviewer's user ID.
        rating: Integer rating from 1 to 5.
        comment: Review text.
        helpful_count: Helpful votes.
        position: Index in the plugin's review list.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    user_id: str
    rating: int
    comment: str
    helpful_count: int = 0
    position: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Plugin:
    """Complete plugin listing.

    Attributes:
        id: Unique plugin ID.
        author_id: Owning user ID, fixed at creation.
        name: Plugin name.
        description: Plugin description.
        category: Catalog category.
        price: Price, 0 for free plugins.
        features: Ordered feature list.
        requirements: Free-text requirements.
        thumbnail_url: Public thumbnail URL.
        versions: Version history, oldest first.
        reviews: Reviews, oldest first.
        average_rating: Mean review rating.
        download_count: Total downloads across versions.
        featured: Whether the plugin is featured.
        author_name: Author's username when loaded with the author.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    id: str
    author_id: str
    name: str
    description: str
    category: str
    price: float = 0.0
    features: list[str] = field(default_factory=list)
    requirements: Optional[str] = None
    thumbnail_url: Optional[str] = None
    versions: list[PluginVersion] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)
    average_rating: float = 0.0
    download_count: int = 0
    featured: bool = False
    author_name: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def latest_version(self) -> Optional[PluginVersion]:
        """The most recently appended version."""
        return self.versions[-1] if self.versions else None

    def is_author(self, user_id: Optional[str]) -> bool:
        """Check whether a user owns this plugin."""
        return user_id is not None and user_id == self.author_id


@dataclass
class PluginFilters:
    """Listing filters.

    Attributes:
        category: Exact category match.
        featured: Featured flag match.
        search: Case-insensitive substring of name or description.
    """

    category: Optional[str] = None
    featured: Optional[bool] = None
    search: Optional[str] = None


@dataclass
class PluginDraft:
    """Metadata submitted when creating a plugin."""

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    features: Optional[str] = None
    requirements: Optional[str] = None
    version: Optional[str] = None
    minecraft_version: Optional[str] = None


@dataclass
class PluginChanges:
    """Partial metadata submitted when updating a plugin.

    Text fields left empty and a ``None`` price mean "keep the current value".
    """

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    features: Optional[str] = None
    requirements: Optional[str] = None


@dataclass
class VersionDraft:
    """Metadata submitted with a new version."""

    version_number: Optional[str] = None
    minecraft_version: Optional[str] = None
    changelog: Optional[str] = None


# Pydantic Models for API


class ReviewCreate(BaseModel):
    """Request model for submitting a review.

    Attributes:
        rating: Integer rating from 1 to 5.
        comment: Review text.
    """

    rating: int
    comment: str = ""


class VersionDetail(BaseModel):
    """Version information exposed by the API."""

    version_number: str
    minecraft_version: str
    changelog: Optional[str]
    release_date: datetime
    download_count: int
    size_bytes: Optional[int]
    checksum_sha256: Optional[str]

    @classmethod
    def from_version(cls, version: PluginVersion) -> "VersionDetail":
        return cls(
            version_number=version.version_number,
            minecraft_version=version.minecraft_version,
            changelog=version.changelog,
            release_date=version.release_date,
            download_count=version.download_count,
            size_bytes=version.size_bytes,
            checksum_sha256=version.checksum_sha256,
        )


class ReviewDetail(BaseModel):
    """Review information exposed by the API."""

    user_id: str
    rating: int
    comment: str
    helpful_count: int
    created_at: datetime


class PluginSummary(BaseModel):
    """Summary model for plugin listings.

    Attributes:
        id: Plugin ID.
        name: Plugin name.
        author_id: Author's user ID.
        author_name: Author's username.
        description: Plugin description.
        category: Catalog category.
        price: Current price.
        thumbnail_url: Public thumbnail URL.
        latest_version: Version number of the latest release.
        average_rating: Mean review rating.
        review_count: Number of reviews.
        download_count: Total downloads.
        featured: Featured flag.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    id: str
    name: str
    author_id: str
    author_name: Optional[str] = None
    description: str
    category: str
    price: float
    thumbnail_url: Optional[str]
    latest_version: Optional[str]
    average_rating: float
    review_count: int
    download_count: int
    featured: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_plugin(cls, plugin: Plugin) -> "PluginSummary":
        latest = plugin.latest_version
        return cls(
            id=plugin.id,
            name=plugin.name,
            author_id=plugin.author_id,
            author_name=plugin.author_name,
            description=plugin.description,
            category=plugin.category,
            price=plugin.price,
            thumbnail_url=plugin.thumbnail_url,
            latest_version=latest.version_number if latest else None,
            average_rating=plugin.average_rating,
            review_count=len(plugin.reviews),
            download_count=plugin.download_count,
            featured=plugin.featured,
            created_at=plugin.created_at,
            updated_at=plugin.updated_at,
        )


class PluginDetail(PluginSummary):
    """Detailed model for single plugin view."""

    features: list[str] = Field(default_factory=list)
    requirements: Optional[str] = None
    versions: list[VersionDetail] = Field(default_factory=list)
    reviews: list[ReviewDetail] = Field(default_factory=list)

    @classmethod
    def from_plugin(cls, plugin: Plugin) -> "PluginDetail":
        summary = PluginSummary.from_plugin(plugin)
        return cls(
            **summary.model_dump(),
            features=list(plugin.features),
            requirements=plugin.requirements,
            versions=[VersionDetail.from_version(v) for v in plugin.versions],
            reviews=[
                ReviewDetail(
                    user_id=r.user_id,
                    rating=r.rating,
                    comment=r.comment,
                    helpful_count=r.helpful_count,
                    created_at=r.created_at,
                )
                for r in plugin.reviews
            ],
        )
