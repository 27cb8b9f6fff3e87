"""Bulk video analysis: stats, performance metrics and publishing patterns."""

import logging
import time

from tubescout.ingestion.normalize import day_of_week, format_clock, time_posted
from tubescout.ingestion.sources import record_from_info
from tubescout.ingestion.youtube import YouTubeClient, join_transcript
from tubescout.models import ExtractionOptions, PerformanceMetrics, PublishingSchedule, VideoRecord

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 86400

NO_TRANSCRIPT = "No transcript available."
FAILED_ITEM = "Failed to analyze video"


def compute_performance(
    view_count: int,
    like_count: int,
    comment_count: int,
    published_ts: float,
    now: float | None = None,
) -> PerformanceMetrics:
    """Views per day and engagement rate for one video.

    Elapsed time is floored at one day. An unknown upload instant (0)
    gives 0 views per day; zero views give a 0% engagement rate.
    """
    if published_ts:
        reference = time.time() if now is None else now
        days = max(1.0, (reference - published_ts) / _SECONDS_PER_DAY)
        views_per_day = round(view_count / days)
    else:
        views_per_day = 0

    if view_count > 0:
        engagement = round((like_count + comment_count) / view_count * 100, 2)
    else:
        engagement = 0.0

    return PerformanceMetrics(views_per_day=views_per_day, engagement_rate=engagement)


class BulkAnalyzer:
    """Analyzes a list of video URLs one at a time through yt-dlp.

    A failure on one URL becomes an ``{url, error}`` placeholder in the
    output; the rest of the batch still runs.
    """

    def __init__(self, client: YouTubeClient) -> None:
        self._client = client

    def analyze_many(self, urls: list[str], options: ExtractionOptions | None = None) -> list[dict]:
        """Analyze each URL sequentially, preserving input order."""
        options = options or ExtractionOptions()
        results = []
        for url in urls:
            try:
                results.append(self.analyze_one(url, options))
            except Exception:
                logger.exception("Failed to analyze %s", url)
                results.append({"url": url, "error": FAILED_ITEM})
        return results

    def analyze_one(self, url: str, options: ExtractionOptions) -> dict:
        """Analyze a single URL. Raises on any extraction failure."""
        video_id = YouTubeClient.parse_video_id(url)
        info = self._client.get_info(video_id)
        record = record_from_info(video_id, info)

        transcript = ""
        if options.transcript:
            transcript = self._transcript(url, info)

        return self._shape(url, record, info, transcript, options)

    def _transcript(self, url: str, info: dict) -> str:
        try:
            segments = self._client.get_transcript(info)
        except Exception as e:
            logger.warning("[%s] Transcript fetch failed: %s", url, e)
            return ""
        if segments:
            logger.debug("[%s] Transcript fetched, %d segments", url, len(segments))
        return join_transcript(segments)

    def _shape(
        self,
        url: str,
        record: VideoRecord,
        info: dict,
        transcript: str,
        options: ExtractionOptions,
    ) -> dict:
        """Assemble the output object according to the option flags."""
        metadata = {
            # Always present so the caller can identify the item
            "channel": record.channel or "Unknown Channel",
            "channel_url": record.channel_url or None,
            "title": record.title or "Untitled Video",
        }
        if options.thumbnail:
            metadata["thumbnail"] = record.thumbnail_url
        if options.description:
            metadata["description"] = record.description

        result = {"url": url, "metadata": metadata}

        if options.metadata:
            metadata.update({
                "views": record.view_count,
                "likes": record.like_count,
                "upload_date": "" if record.published_at == "Unknown" else record.published_at,
                "duration": format_clock(record.duration),
                "duration_seconds": record.duration,
                "comment_count": record.comment_count,
            })
            result["performance"] = compute_performance(
                record.view_count,
                record.like_count,
                record.comment_count,
                record.published_ts,
            ).model_dump()
            result["publishing_schedule"] = PublishingSchedule(
                day_of_week=day_of_week(record.published_ts),
                time_posted=time_posted(info.get("timestamp")),
            ).model_dump()
            result["tags"] = record.tags
            result["category"] = record.category or "Unknown"

        if options.transcript:
            result["transcript"] = transcript or NO_TRANSCRIPT

        return result
