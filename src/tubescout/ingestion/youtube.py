"""YouTube access via yt-dlp (InnerTube-backed, no API key needed)."""

import json
import logging
import re
import threading
from urllib.parse import parse_qs, urlparse
from urllib.request import urlopen

import yt_dlp

from tubescout.models import TranscriptSegment

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Raised when a video URL cannot be parsed or yt-dlp extraction fails."""


class YouTubeClient:
    """Long-lived yt-dlp client for video info, transcripts and channel resolution.

    The underlying YoutubeDL handle is created on first use and reused for
    the lifetime of the client. YoutubeDL is not thread-safe, so calls on
    the shared handle are serialised; channel resolution uses its own
    short-lived handle. Own one instance per process and inject it
    wherever it is needed.
    """

    _URL_PATTERNS = [
        re.compile(r"(?:youtube\.com/watch\?.*v=)([\w-]{11})"),
        re.compile(r"(?:youtu\.be/)([\w-]{11})"),
        re.compile(r"(?:youtube\.com/embed/)([\w-]{11})"),
        re.compile(r"(?:youtube\.com/v/)([\w-]{11})"),
        re.compile(r"(?:youtube\.com/shorts/)([\w-]{11})"),
        re.compile(r"(?:youtube\.com/live/)([\w-]{11})"),
    ]

    _BARE_ID = re.compile(r"^[\w-]{11}$")

    _LANG_PREFERENCE = ("en", "en-orig", "en-US", "en-GB")

    _YDL_OPTS = {
        "quiet": True,
        "no_warnings": True,
        "skip_download": True,
        "writesubtitles": True,
        "writeautomaticsub": True,
        "subtitleslangs": list(_LANG_PREFERENCE),
        "subtitlesformat": "json3",
    }

    _RESOLVE_OPTS = {
        "quiet": True,
        "no_warnings": True,
        "skip_download": True,
        "extract_flat": True,
        "playlistend": 1,
    }

    def __init__(self, timeout: float = 30.0) -> None:
        self._timeout = timeout
        self._ydl: yt_dlp.YoutubeDL | None = None
        self._ydl_lock = threading.Lock()

    @classmethod
    def parse_video_id(cls, url: str) -> str:
        """Extract the 11-character video ID from a YouTube URL.

        Supports youtube.com/watch, youtu.be, /embed/, /v/, /shorts/,
        /live/ and bare video IDs.

        Raises:
            ExtractionError: If the URL cannot be parsed.
        """
        url = (url or "").strip()
        for pattern in cls._URL_PATTERNS:
            match = pattern.search(url)
            if match:
                return match.group(1)

        if cls._BARE_ID.match(url):
            return url

        # Fallback: query parameter parsing
        parsed = urlparse(url)
        video_id = parse_qs(parsed.query).get("v", [None])[0]
        if video_id and len(video_id) == 11:
            return video_id

        raise ExtractionError(f"Could not extract video ID from URL: {url}")

    def _get_ydl(self) -> yt_dlp.YoutubeDL:
        """Lazily create the shared YoutubeDL handle."""
        if self._ydl is None:
            logger.debug("Initialising yt-dlp client")
            self._ydl = yt_dlp.YoutubeDL(self._YDL_OPTS)
        return self._ydl

    def get_info(self, video_id: str) -> dict:
        """Fetch the full info dict for a video without downloading media.

        Raises:
            ExtractionError: If yt-dlp fails or returns nothing.
        """
        url = f"https://www.youtube.com/watch?v={video_id}"
        try:
            with self._ydl_lock:
                info = self._get_ydl().extract_info(url, download=False)
        except yt_dlp.utils.YoutubeDLError as e:
            raise ExtractionError(f"Failed to extract video info: {e}") from e
        if info is None:
            raise ExtractionError(f"yt-dlp returned no info for: {video_id}")
        return info

    def resolve_channel_id(self, url: str) -> str | None:
        """Resolve a handle, /user/ or /c/ URL to a UC... channel ID.

        Returns None when yt-dlp answers but carries no channel ID.

        Raises:
            ExtractionError: If yt-dlp cannot resolve the URL at all.
        """
        try:
            with yt_dlp.YoutubeDL(self._RESOLVE_OPTS) as ydl:
                info = ydl.extract_info(url, download=False)
        except yt_dlp.utils.YoutubeDLError as e:
            raise ExtractionError(f"Failed to resolve channel URL: {e}") from e
        if not info:
            return None

        for key in ("channel_id", "uploader_id", "id"):
            value = info.get(key) or ""
            if value.startswith("UC"):
                return value
        return None

    def get_transcript(self, info: dict) -> list[TranscriptSegment]:
        """English transcript segments, manual captions before auto-generated ones.

        Tracks are tried in preference order until one downloads; a video
        without a usable English track yields an empty list.
        """
        for track_url in self._english_tracks(info):
            data = self._fetch_track(track_url)
            if data is not None:
                return parse_json3(data)

        logger.warning("No English transcript available for: %s", info.get("id"))
        return []

    def _english_tracks(self, info: dict):
        """Yield json3 track URLs: manual then automatic, preferred languages first."""
        for kind in ("subtitles", "automatic_captions"):
            tracks = info.get(kind) or {}
            others = [lang for lang in tracks if lang.startswith("en") and lang not in self._LANG_PREFERENCE]
            for lang in (*self._LANG_PREFERENCE, *others):
                for fmt in tracks.get(lang) or []:
                    if fmt.get("ext") == "json3" and fmt.get("url"):
                        yield fmt["url"]
                        break

    def _fetch_track(self, url: str) -> dict | None:
        try:
            with urlopen(url, timeout=self._timeout) as resp:
                return json.loads(resp.read().decode("utf-8"))
        except Exception as e:
            logger.warning("Failed to download subtitle track: %s", e)
            return None


def parse_json3(data: dict) -> list[TranscriptSegment]:
    """Turn a json3 caption payload into segments, dropping blank events.

    Shape: {"events": [{"tStartMs": int, "dDurationMs": int, "segs": [{"utf8": str}]}]}
    """
    segments = []
    for event in data.get("events") or []:
        text = "".join(seg.get("utf8", "") for seg in event.get("segs") or []).strip()
        if text:
            segments.append(TranscriptSegment(
                start=event.get("tStartMs", 0) / 1000,
                duration=event.get("dDurationMs", 0) / 1000,
                text=text,
            ))
    return segments


def join_transcript(segments: list[TranscriptSegment]) -> str:
    """Concatenate segment texts in order, separated by single spaces."""
    return " ".join(seg.text for seg in segments)
