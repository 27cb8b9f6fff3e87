"""Channel upload listing via the Data API uploads playlist."""

import logging
import re
import time

from tubescout.ingestion.data_api import DataApiClient, DataApiError
from tubescout.ingestion.normalize import parse_duration
from tubescout.ingestion.youtube import ExtractionError, YouTubeClient
from tubescout.models import ChannelListing, ChannelVideoSummary

logger = logging.getLogger(__name__)


class ChannelResolutionError(Exception):
    """Raised when a channel URL cannot be turned into a channel ID."""


class ChannelPager:
    """Pages through every upload of a channel and keeps the long-form ones.

    Uploads are listed from the channel's uploads playlist, then their
    durations and view counts are looked up in batches. Paging stops at
    the last page or at ``max_pages``, whichever comes first.
    """

    _CHANNEL_ID_RE = re.compile(r"channel/(UC[\w-]{22})")

    SHORT_FORM_SECONDS = 60

    def __init__(
        self,
        data_api: DataApiClient,
        client: YouTubeClient,
        *,
        max_pages: int = 200,
        request_delay: float = 0.1,
        batch_size: int = DataApiClient.MAX_BATCH_SIZE,
    ) -> None:
        self._api = data_api
        self._client = client
        self._max_pages = max_pages
        self._delay = request_delay
        self._batch_size = max(1, min(batch_size, DataApiClient.MAX_BATCH_SIZE))

    def resolve_channel_id(self, url: str) -> str:
        """Turn a channel URL (direct, @handle, /user/, /c/) into a UC... ID.

        Raises:
            ChannelResolutionError: With a user-facing message.
        """
        match = self._CHANNEL_ID_RE.search(url)
        if match:
            return match.group(1)

        try:
            channel_id = self._client.resolve_channel_id(url)
        except ExtractionError as e:
            logger.error("Failed to resolve channel URL %s: %s", url, e)
            raise ChannelResolutionError(
                "Could not resolve channel URL. Please use a direct channel URL "
                "(youtube.com/channel/UC...)"
            ) from e

        if not channel_id:
            raise ChannelResolutionError("Could not extract channel ID from URL")
        return channel_id

    @staticmethod
    def uploads_playlist_id(channel_id: str) -> str:
        """UC... channel IDs map to their UU... uploads playlist."""
        return re.sub(r"^UC", "UU", channel_id)

    def list_all_uploads(self, channel_id: str) -> ChannelListing:
        """List every long-form (60s+) upload of a channel.

        Raises:
            DataApiError: If the API is not configured or a page fetch fails.
        """
        items, pages, truncated = self._fetch_playlist_items(channel_id)
        self._log_date_range(items)

        video_ids = [
            item.get("contentDetails", {}).get("videoId")
            for item in items
            if item.get("contentDetails", {}).get("videoId")
        ]
        details = self._fetch_details(video_ids)

        videos = []
        missing = 0
        for item in items:
            video_id = item.get("contentDetails", {}).get("videoId")
            if not video_id:
                continue
            detail = details.get(video_id)
            if detail is None:
                missing += 1
                continue
            if detail["duration"] < self.SHORT_FORM_SECONDS:
                continue
            videos.append(self._summary(item, video_id, detail["views"]))

        logger.info(
            "Filtered to %d long-form videos (excluded %d shorts, %d without details)",
            len(videos), len(items) - len(videos) - missing, missing,
        )
        return ChannelListing(
            channel_id=channel_id,
            videos=videos,
            pages_fetched=pages,
            truncated=truncated,
            missing_details=missing,
        )

    def _fetch_playlist_items(self, channel_id: str) -> tuple[list[dict], int, bool]:
        """Page through the uploads playlist up to the page cap."""
        playlist_id = self.uploads_playlist_id(channel_id)
        items: list[dict] = []
        page_token = None
        pages = 0

        while True:
            pages += 1
            logger.info("Fetching page %d (%d videos so far)", pages, len(items))
            response = self._api.list_playlist_page(playlist_id, page_token)
            items.extend(response.get("items") or [])
            page_token = response.get("nextPageToken") or None

            if not page_token:
                truncated = False
                break
            if pages >= self._max_pages:
                logger.warning(
                    "Stopped paging %s after %d pages; result truncated",
                    channel_id, pages,
                )
                truncated = True
                break
            time.sleep(self._delay)

        logger.info("Fetched %d total videos across %d pages", len(items), pages)
        return items, pages, truncated

    def _fetch_details(self, video_ids: list[str]) -> dict[str, dict]:
        """Look up views and duration in batches; failed batches are skipped."""
        details: dict[str, dict] = {}
        for start in range(0, len(video_ids), self._batch_size):
            batch = video_ids[start:start + self._batch_size]
            try:
                for item in self._api.get_video_details(batch):
                    if not item.get("id"):
                        continue
                    details[item["id"]] = {
                        "views": (item.get("statistics") or {}).get("viewCount") or "0",
                        "duration": parse_duration(
                            (item.get("contentDetails") or {}).get("duration") or "PT0S"
                        ),
                    }
            except DataApiError as e:
                logger.error(
                    "Failed to fetch details for batch %d: %s",
                    start // self._batch_size + 1, e,
                )
            if start + self._batch_size < len(video_ids):
                time.sleep(self._delay)
        return details

    @staticmethod
    def _summary(item: dict, video_id: str, views: str) -> ChannelVideoSummary:
        snippet = item.get("snippet") or {}
        thumbnails = snippet.get("thumbnails") or {}
        thumb = thumbnails.get("medium") or thumbnails.get("default") or {}
        return ChannelVideoSummary(
            id=video_id,
            title=snippet.get("title") or "Untitled",
            thumbnail=thumb.get("url", ""),
            url=f"https://www.youtube.com/watch?v={video_id}",
            views=str(views),
            published_at=snippet.get("publishedAt") or "Unknown",
        )

    @staticmethod
    def _log_date_range(items: list[dict]) -> None:
        dates = sorted(
            item["snippet"]["publishedAt"]
            for item in items
            if (item.get("snippet") or {}).get("publishedAt")
        )
        if dates:
            logger.info("Date range: %s (oldest) to %s (newest)", dates[0], dates[-1])
