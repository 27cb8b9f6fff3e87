"""YouTube Data API v3 client (official, key-based)."""

import logging
import threading

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from httplib2 import HttpLib2Error

logger = logging.getLogger(__name__)


class DataApiError(Exception):
    """Raised when the Data API is not configured or a call fails."""


class DataApiClient:
    """Thin wrapper over the googleapiclient YouTube resource.

    The service object is built on first use and shared; its httplib2
    transport is not thread-safe, so building and executing requests is
    serialised under one lock. Without an API key the client reports
    itself unavailable and every call raises DataApiError.
    """

    MAX_BATCH_SIZE = 50  # YouTube API limit for ids / maxResults

    def __init__(self, api_key: str | None) -> None:
        self._api_key = api_key
        self._youtube = None
        self._lock = threading.RLock()

    @property
    def available(self) -> bool:
        """Whether an API key is configured."""
        return bool(self._api_key)

    def _service(self):
        if not self.available:
            raise DataApiError("YouTube Data API key is not configured")
        with self._lock:
            if self._youtube is None:
                self._youtube = build(
                    "youtube",
                    "v3",
                    developerKey=self._api_key,
                    cache_discovery=False,
                )
            return self._youtube

    def _execute(self, request, label: str) -> dict:
        try:
            with self._lock:
                return request.execute()
        except (HttpError, HttpLib2Error, OSError) as e:
            raise DataApiError(f"YouTube API {label} failed: {e}") from e

    def get_video(self, video_id: str) -> dict | None:
        """Fetch snippet and statistics for one video, or None if not found."""
        request = self._service().videos().list(
            part="snippet,statistics",
            id=video_id,
        )
        items = self._execute(request, "videos.list").get("items") or []
        return items[0] if items else None

    def list_playlist_page(self, playlist_id: str, page_token: str | None = None) -> dict:
        """Fetch one page of playlistItems (snippet and contentDetails)."""
        request = self._service().playlistItems().list(
            part="snippet,contentDetails",
            playlistId=playlist_id,
            maxResults=self.MAX_BATCH_SIZE,
            pageToken=page_token,
        )
        return self._execute(request, "playlistItems.list")

    def get_video_details(self, video_ids: list[str]) -> list[dict]:
        """Fetch statistics and contentDetails for up to 50 videos."""
        if len(video_ids) > self.MAX_BATCH_SIZE:
            raise ValueError(f"At most {self.MAX_BATCH_SIZE} ids per request")
        request = self._service().videos().list(
            part="statistics,contentDetails",
            id=",".join(video_ids),
        )
        return self._execute(request, "videos.list").get("items") or []
