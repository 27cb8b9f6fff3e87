"""Domain models for tubescout."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, computed_field


class TranscriptSegment(BaseModel):
    """A single caption entry from the video transcript."""

    start: float  # start time in seconds
    duration: float  # duration in seconds
    text: str

    @computed_field
    @property
    def end(self) -> float:
        """End time in seconds."""
        return self.start + self.duration


class VideoRecord(BaseModel):
    """Normalized single-video metadata, whichever source produced it.

    Missing values are empty strings or zero rather than None, so records
    from different sources compare and serialize the same way.
    """

    video_id: str
    title: str = ""
    description: str = ""
    thumbnail_url: str = ""
    channel: str = ""
    channel_id: str = ""
    channel_url: str = ""
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    published_at: str = ""  # raw upstream date text
    published_ts: float = 0.0  # epoch seconds, 0.0 when unknown
    duration: int = 0  # seconds
    tags: list[str] = Field(default_factory=list)
    category: str = ""
    transcript: str = ""
    source: str = ""  # name of the source that produced the record

    @computed_field
    @property
    def url(self) -> str:
        """Full YouTube URL derived from video_id."""
        return f"https://www.youtube.com/watch?v={self.video_id}"


class ExtractionOptions(BaseModel):
    """Field-selection flags for extraction responses.

    Every flag is on unless the caller sends an explicit ``false``.
    """

    title: bool = True
    description: bool = True
    thumbnail: bool = True
    transcript: bool = True
    metadata: bool = True

    @classmethod
    def from_payload(cls, payload: Any) -> "ExtractionOptions":
        """Build options from a loosely-typed request body value."""
        if not isinstance(payload, dict):
            return cls()
        return cls(**{
            name: payload.get(name) is not False
            for name in cls.model_fields
        })


class ChannelVideoSummary(BaseModel):
    """One long-form upload in a channel listing."""

    id: str
    title: str = "Untitled"
    thumbnail: str = ""
    url: str
    views: str = "0"  # as formatted by the Data API
    published_at: str = "Unknown"


class ChannelListing(BaseModel):
    """Result of paging through a channel's uploads."""

    channel_id: str
    videos: list[ChannelVideoSummary] = Field(default_factory=list)
    pages_fetched: int = 0
    truncated: bool = False  # page cap reached before the last page
    missing_details: int = 0  # uploads dropped for lack of duration data

    def meta(self) -> dict:
        """Response metadata block for the channel_list endpoint."""
        return {
            "totalVideos": len(self.videos),
            "channelId": self.channel_id,
            "pagesFetched": self.pages_fetched,
            "truncated": self.truncated,
            "missingDetails": self.missing_details,
        }


class PerformanceMetrics(BaseModel):
    """Derived performance indicators for one video."""

    views_per_day: int = 0
    engagement_rate: float = 0.0  # percent, two decimal places
    watch_time_percentage: str = "N/A"


class PublishingSchedule(BaseModel):
    """When a video went out."""

    day_of_week: str = "Unknown"
    time_posted: str = "Unknown"
    frequency: str = "N/A"


class Analysis(BaseModel):
    """A saved analysis in a user's history."""

    id: int | None = None
    user_id: str
    type: str
    title: str
    thumbnail: str = ""
    data: Any = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
