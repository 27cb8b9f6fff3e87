"""Last-resort metadata scrape of the public watch page."""

import json
import logging
from http.client import HTTPException
from urllib.request import Request, urlopen

logger = logging.getLogger(__name__)


class ScrapeError(Exception):
    """Raised when the watch page cannot be fetched or decoded."""


class WatchPageScraper:
    """Fetches a watch page and decodes its embedded player response.

    The page carries a `ytInitialPlayerResponse = {...};` assignment whose
    `videoDetails` and `microformat` blocks hold the public metadata.
    """

    _MARKER = "ytInitialPlayerResponse"

    _HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
        ),
        "Accept-Language": "en-US,en;q=0.9",
    }

    def __init__(self, timeout: float = 30.0) -> None:
        self._timeout = timeout

    def fetch_player_response(self, video_id: str) -> dict:
        """Download the watch page and return the decoded player response.

        Raises:
            ScrapeError: On network failure or when no player response is found.
        """
        url = f"https://www.youtube.com/watch?v={video_id}&hl=en"
        request = Request(url, headers=self._HEADERS)
        try:
            with urlopen(request, timeout=self._timeout) as resp:
                html = resp.read().decode("utf-8", errors="replace")
        except (OSError, HTTPException) as e:
            raise ScrapeError(f"Failed to fetch watch page: {e}") from e
        return self.parse_player_response(html)

    @classmethod
    def parse_player_response(cls, html: str) -> dict:
        """Locate and decode the player response JSON inside page HTML.

        Raises:
            ScrapeError: If the marker is missing or the JSON is malformed.
        """
        pos = html.find(cls._MARKER)
        while pos != -1:
            start = html.find("{", pos)
            if start == -1:
                break
            try:
                data, _ = json.JSONDecoder().raw_decode(html, start)
            except ValueError:
                pos = html.find(cls._MARKER, pos + len(cls._MARKER))
                continue
            if isinstance(data, dict) and "videoDetails" in data:
                return data
            pos = html.find(cls._MARKER, pos + len(cls._MARKER))
        raise ScrapeError("No player response found in watch page")

    @staticmethod
    def summarize(player: dict) -> dict:
        """Flatten the parts of a player response that tubescout uses."""
        details = player.get("videoDetails") or {}
        micro = (player.get("microformat") or {}).get("playerMicroformatRenderer") or {}
        thumbnails = (details.get("thumbnail") or {}).get("thumbnails") or []
        return {
            "video_id": details.get("videoId", ""),
            "title": details.get("title", ""),
            "description": details.get("shortDescription", ""),
            # Thumbnails are listed smallest first
            "thumbnail_url": thumbnails[-1].get("url", "") if thumbnails else "",
            "channel": details.get("author", ""),
            "channel_id": details.get("channelId", ""),
            "view_count": details.get("viewCount", "0"),
            "published_at": micro.get("publishDate") or micro.get("uploadDate") or "",
            "duration": details.get("lengthSeconds", "0"),
            "tags": details.get("keywords") or [],
            "category": micro.get("category", ""),
        }
