"""Single-video metadata sources, tried in priority order by the service."""

import logging
from abc import ABC, abstractmethod

from tubescout.ingestion.data_api import DataApiClient, DataApiError
from tubescout.ingestion.normalize import parse_date_to_instant, to_iso_date
from tubescout.ingestion.scrape import ScrapeError, WatchPageScraper
from tubescout.ingestion.youtube import ExtractionError, YouTubeClient
from tubescout.models import VideoRecord

logger = logging.getLogger(__name__)


class SourceError(Exception):
    """Raised when a source cannot produce metadata for a video."""


def _to_int(value) -> int:
    """Coerce upstream counts ('1234', 1234, None) to int, 0 when unusable."""
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def channel_url_for(channel_id: str) -> str:
    return f"https://www.youtube.com/channel/{channel_id}" if channel_id else ""


class MetadataSource(ABC):
    """Capability shared by every single-video metadata source.

    Implementations map their upstream response shape into a VideoRecord
    and signal any failure with SourceError, so the caller can move on to
    the next source.
    """

    name: str = ""

    @property
    def available(self) -> bool:
        """Whether the source is configured well enough to be tried."""
        return True

    @abstractmethod
    def fetch_metadata(self, video_id: str) -> VideoRecord:
        """Return a VideoRecord for the video. Raises SourceError on failure."""


class DataApiSource(MetadataSource):
    """Official YouTube Data API (requires an API key)."""

    name = "data_api"

    def __init__(self, client: DataApiClient) -> None:
        self._client = client

    @property
    def available(self) -> bool:
        return self._client.available

    def fetch_metadata(self, video_id: str) -> VideoRecord:
        try:
            item = self._client.get_video(video_id)
        except DataApiError as e:
            raise SourceError(str(e)) from e
        if not item:
            raise SourceError(f"Video not found via Data API: {video_id}")

        snippet = item.get("snippet") or {}
        stats = item.get("statistics") or {}
        thumbnails = snippet.get("thumbnails") or {}
        thumb = thumbnails.get("high") or thumbnails.get("default") or {}
        published_at = snippet.get("publishedAt", "")
        channel_id = snippet.get("channelId", "")

        return VideoRecord(
            video_id=video_id,
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            thumbnail_url=thumb.get("url", ""),
            channel=snippet.get("channelTitle", ""),
            channel_id=channel_id,
            channel_url=channel_url_for(channel_id),
            view_count=_to_int(stats.get("viewCount")),
            like_count=_to_int(stats.get("likeCount")),
            comment_count=_to_int(stats.get("commentCount")),
            published_at=published_at,
            published_ts=parse_date_to_instant(published_at),
            tags=snippet.get("tags") or [],
            category=snippet.get("categoryId", ""),
            source=self.name,
        )


class YtDlpSource(MetadataSource):
    """yt-dlp info extraction, no key required."""

    name = "yt_dlp"

    def __init__(self, client: YouTubeClient) -> None:
        self._client = client

    def fetch_metadata(self, video_id: str) -> VideoRecord:
        try:
            info = self._client.get_info(video_id)
        except ExtractionError as e:
            raise SourceError(str(e)) from e
        return record_from_info(video_id, info, source=self.name)


class WatchPageSource(MetadataSource):
    """Direct scrape of the watch page; the last resort."""

    name = "watch_page"

    def __init__(self, scraper: WatchPageScraper) -> None:
        self._scraper = scraper

    def fetch_metadata(self, video_id: str) -> VideoRecord:
        try:
            player = self._scraper.fetch_player_response(video_id)
        except ScrapeError as e:
            raise SourceError(str(e)) from e

        page = WatchPageScraper.summarize(player)
        return VideoRecord(
            video_id=video_id,
            title=page["title"],
            description=page["description"],
            thumbnail_url=page["thumbnail_url"],
            channel=page["channel"],
            channel_id=page["channel_id"],
            channel_url=channel_url_for(page["channel_id"]),
            view_count=_to_int(page["view_count"]),
            published_at=page["published_at"],
            published_ts=parse_date_to_instant(page["published_at"]),
            duration=_to_int(page["duration"]),
            tags=page["tags"],
            category=page["category"],
            source=self.name,
        )


def record_from_info(video_id: str, info: dict, source: str = YtDlpSource.name) -> VideoRecord:
    """Map a yt-dlp info dict to a VideoRecord."""
    thumbnails = info.get("thumbnails") or []
    thumbnail = info.get("thumbnail") or (thumbnails[0].get("url", "") if thumbnails else "")
    channel_id = info.get("channel_id") or ""
    published_at = to_iso_date(info.get("upload_date")) or "Unknown"
    published_ts = float(info.get("timestamp") or 0) or parse_date_to_instant(published_at)
    categories = info.get("categories") or []

    return VideoRecord(
        video_id=info.get("id") or video_id,
        title=info.get("title") or "",
        description=info.get("description") or "",
        thumbnail_url=thumbnail,
        channel=info.get("channel") or info.get("uploader") or "",
        channel_id=channel_id,
        channel_url=info.get("channel_url") or channel_url_for(channel_id),
        view_count=_to_int(info.get("view_count")),
        like_count=_to_int(info.get("like_count")),
        comment_count=_to_int(info.get("comment_count")),
        published_at=published_at,
        published_ts=published_ts,
        duration=_to_int(info.get("duration")),
        tags=info.get("tags") or [],
        category=categories[0] if categories else "",
        source=source,
    )


def default_sources(
    data_api: DataApiClient,
    client: YouTubeClient,
    scraper: WatchPageScraper,
) -> list[MetadataSource]:
    """Sources in fixed priority order: official API, yt-dlp, page scrape."""
    return [
        DataApiSource(data_api),
        YtDlpSource(client),
        WatchPageSource(scraper),
    ]
