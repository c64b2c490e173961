"""
Domain models for the content operations console

Entities are persisted as JSON with camelCase keys; Python code uses the
snake_case attribute names. Both spellings are accepted on input.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ConsoleModel(BaseModel):
    """Base model: camelCase wire format, immutable instances"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        """JSON-compatible dict in the persisted (camelCase) form"""
        return self.model_dump(mode="json", by_alias=True)


class EntityKind(str, Enum):
    """Entity collections; values double as persistence keys"""
    MEDIA_FILES = "mediaFiles"
    PODCAST_EPISODES = "podcastEpisodes"
    SOCIAL_MEDIA_POSTS = "socialMediaPosts"


class PostStatus(str, Enum):
    """Social media post lifecycle statuses"""
    REVIEW = "Review"
    APPROVED = "Approved For Publishing"
    SCHEDULED = "Scheduled For Publishing"
    POSTED = "Posted"
    REJECTED = "Rejected"


class Platform(str, Enum):
    """Supported social platforms"""
    TWITTER = "Twitter"
    LINKEDIN = "LinkedIn"
    INSTAGRAM = "Instagram"
    FACEBOOK = "Facebook"


class MediaFile(ConsoleModel):
    id: str = Field(min_length=1)
    title: str
    url: str
    type: str = Field(description="MIME type, e.g. image/png")
    uploaded: datetime
    file_size: int = Field(ge=0, description="Size in bytes")

    @field_validator("uploaded")
    @classmethod
    def normalize_uploaded(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class PodcastEpisode(ConsoleModel):
    id: str = Field(min_length=1)
    title: str
    description: str
    audio_url: str
    image_url: str
    duration: int = Field(ge=0, description="Length in seconds")
    publish_date: datetime
    processed: bool = False

    @field_validator("publish_date")
    @classmethod
    def normalize_publish_date(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class SocialMediaPost(ConsoleModel):
    id: str = Field(min_length=1)
    content: str
    image_url: str = ""
    platforms: List[Platform]
    status: PostStatus = PostStatus.REVIEW
    scheduled_date: Optional[datetime] = None
    created_date: datetime
    podcast_episode_id: Optional[str] = None

    @field_validator("platforms")
    @classmethod
    def dedupe_platforms(cls, value: List[Platform]) -> List[Platform]:
        return list(dict.fromkeys(value))

    @field_validator("scheduled_date", "created_date")
    @classmethod
    def normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @model_validator(mode="after")
    def scheduled_needs_date(self):
        if self.status == PostStatus.SCHEDULED and self.scheduled_date is None:
            raise ValueError("scheduled posts require a scheduledDate")
        return self


class PostDraft(ConsoleModel):
    """Caller-supplied fields for a new post; id and createdDate are assigned by the store"""
    content: str
    image_url: str = ""
    platforms: List[Platform] = Field(min_length=1)
    status: PostStatus = PostStatus.REVIEW
    scheduled_date: Optional[datetime] = None
    podcast_episode_id: Optional[str] = None


class Statistics(ConsoleModel):
    approved: int = 0
    posted: int = 0
    rejected: int = 0
    review: int = 0
    scheduled: int = 0
    platform_counts: Dict[str, int] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.approved + self.posted + self.rejected + self.review + self.scheduled


# Airtable metadata

class AirtableBase(ConsoleModel):
    id: str
    name: str


class AirtableView(ConsoleModel):
    id: str
    name: str


class AirtableTable(ConsoleModel):
    id: str
    name: str
    views: List[AirtableView] = Field(default_factory=list)


class BindingTarget(str, Enum):
    """Local entity types that can be bound to a remote table"""
    POSTS = "posts"
    EPISODES = "episodes"
    MEDIA = "media"


class TableBinding(ConsoleModel):
    id: str = ""
    view_id: str = ""


class AirtableConfig(ConsoleModel):
    """Persisted connector binding: credential plus base and per-entity table/view ids"""
    token: str
    base_id: str = ""
    tables: Dict[BindingTarget, TableBinding] = Field(default_factory=dict)


class WorkflowAction(str, Enum):
    """Logical actions that can be bound to an external workflow endpoint"""
    GET_DATA = "get-data"
    UPDATE_DB = "update-db"
    PROCESS_EPISODE = "process-episode"
    PROCESS_ALL_EPISODES = "process-all-episodes"
    PUBLISH_POST = "publish-post"
