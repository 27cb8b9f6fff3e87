"""Core business logic for tubescout."""

import logging

from tubescout.analysis import BulkAnalyzer
from tubescout.channels import ChannelPager, ChannelResolutionError
from tubescout.config import settings
from tubescout.ingestion.data_api import DataApiClient, DataApiError
from tubescout.ingestion.scrape import WatchPageScraper
from tubescout.ingestion.sources import MetadataSource, SourceError, default_sources
from tubescout.ingestion.youtube import ExtractionError, YouTubeClient, join_transcript
from tubescout.models import Analysis, ChannelListing, ExtractionOptions, VideoRecord
from tubescout.storage.repository import AnalysisRepository

logger = logging.getLogger(__name__)

NO_TRANSCRIPT = "No transcript available for this video."

EXTRACT_TYPES = ("video", "bulk_analyze", "channel_list")


class InvalidRequestError(Exception):
    """Raised when a request is missing input or names an unknown type."""


class ConfigurationError(Exception):
    """Raised when an operation needs configuration that is absent."""


class MetadataUnavailableError(Exception):
    """Raised when every metadata source failed for a video."""


class TubeScoutService:
    """Core service layer; single orchestration point for all tubescout operations.

    The CLI, the HTTP routes and the MCP tools are thin wrappers over this
    class. Upstream clients are injected via the constructor; the service
    owns them for its lifetime, so one service per process means one
    long-lived yt-dlp client.
    """

    def __init__(
        self,
        repository: AnalysisRepository | None = None,
        client: YouTubeClient | None = None,
        data_api: DataApiClient | None = None,
        scraper: WatchPageScraper | None = None,
        sources: list[MetadataSource] | None = None,
    ) -> None:
        self._repo = repository
        self._client = client or YouTubeClient(timeout=settings.http_timeout)
        self._data_api = data_api or DataApiClient(settings.youtube_api_key)
        self._scraper = scraper or WatchPageScraper(timeout=settings.http_timeout)
        self._sources = sources if sources is not None else default_sources(
            self._data_api, self._client, self._scraper,
        )
        self._analyzer = BulkAnalyzer(self._client)
        self._pager = ChannelPager(
            self._data_api,
            self._client,
            max_pages=settings.max_channel_pages,
            request_delay=settings.request_delay,
            batch_size=settings.page_size,
        )

    # ------------------------------------------------------------------
    # Single video
    # ------------------------------------------------------------------

    def fetch_metadata(self, video_id: str) -> VideoRecord:
        """Try each source in priority order; the first non-empty title wins.

        Raises:
            MetadataUnavailableError: If no source produced a title.
        """
        for source in self._sources:
            if not source.available:
                logger.debug("Skipping unavailable source: %s", source.name)
                continue
            try:
                record = source.fetch_metadata(video_id)
            except SourceError as e:
                logger.warning("Source %s failed for %s: %s", source.name, video_id, e)
                continue
            except Exception:
                logger.exception("Source %s crashed for %s", source.name, video_id)
                continue
            if record.title:
                logger.info("Metadata for %s from %s", video_id, source.name)
                return record
            logger.warning("Source %s returned no title for %s", source.name, video_id)

        raise MetadataUnavailableError("Failed to fetch video metadata")

    def fetch_transcript(self, video_id: str) -> str:
        """Transcript text via yt-dlp; empty string when unavailable."""
        try:
            info = self._client.get_info(video_id)
            return join_transcript(self._client.get_transcript(info))
        except Exception as e:
            logger.warning("Transcript fetch failed for %s: %s", video_id, e)
            return ""

    def extract_video(self, url: str, options: ExtractionOptions | None = None) -> dict:
        """Extract one video's metadata and transcript, shaped by options.

        Raises:
            InvalidRequestError: If the URL holds no video ID.
            MetadataUnavailableError: If every metadata source failed.
        """
        options = options or ExtractionOptions()
        try:
            video_id = YouTubeClient.parse_video_id(url)
        except ExtractionError as e:
            raise InvalidRequestError(str(e)) from e

        record = self.fetch_metadata(video_id)

        # Transcript always comes from yt-dlp, whichever source won above
        if options.transcript:
            record.transcript = self.fetch_transcript(video_id)

        result: dict = {}
        if options.title:
            result["title"] = record.title
        if options.description:
            result["description"] = record.description
        if options.thumbnail:
            result["thumbnail"] = record.thumbnail_url
        if options.transcript:
            result["transcript"] = record.transcript or NO_TRANSCRIPT

        result["url"] = url
        result["channel"] = record.channel
        if options.metadata:
            result.update({
                "channel_url": record.channel_url,
                "views": str(record.view_count),
                "published_at": record.published_at,
                "duration": record.duration,
                "source": record.source,
            })
        return result

    # ------------------------------------------------------------------
    # Bulk and channel
    # ------------------------------------------------------------------

    def analyze_videos(self, urls: list[str], options: ExtractionOptions | None = None) -> list[dict]:
        """Analyze many videos sequentially; failures become placeholders."""
        logger.info("Bulk analysis of %d videos", len(urls))
        return self._analyzer.analyze_many(urls, options)

    def list_channel_videos(self, url: str) -> ChannelListing:
        """List a channel's long-form uploads.

        Raises:
            ConfigurationError: If no Data API key is configured.
            InvalidRequestError: If the channel URL cannot be resolved.
            DataApiError: If paging through the uploads fails.
        """
        if not self._data_api.available:
            raise ConfigurationError(
                "YouTube API key required for channel fetching. "
                "Set YOUTUBE_API_KEY in the environment."
            )
        try:
            channel_id = self._pager.resolve_channel_id(url)
        except ChannelResolutionError as e:
            raise InvalidRequestError(str(e)) from e

        logger.info("Fetching all videos for channel: %s", channel_id)
        return self._pager.list_all_uploads(channel_id)

    # ------------------------------------------------------------------
    # Request dispatch
    # ------------------------------------------------------------------

    def extract(self, payload: dict) -> tuple[dict, int]:
        """Dispatch an extract request body to the operation named by ``type``.

        Returns a (response body, HTTP status) pair; never raises for
        request-level failures.
        """
        if not isinstance(payload, dict):
            return {"error": "Request body must be a JSON object"}, 400

        kind = payload.get("type")
        url = payload.get("url")
        urls = payload.get("urls")
        options = ExtractionOptions.from_payload(payload.get("options"))

        if kind == "bulk_analyze":
            if not isinstance(urls, list):
                return {"error": "URLs array is required for bulk_analyze"}, 400
        elif not url:
            return {"error": "URL is required"}, 400

        try:
            if kind == "video":
                return {"data": self.extract_video(url, options)}, 200
            if kind == "bulk_analyze":
                return {"data": self.analyze_videos([str(u) for u in urls], options)}, 200
            if kind == "channel_list":
                listing = self.list_channel_videos(url)
                return {
                    "data": [v.model_dump() for v in listing.videos],
                    "meta": listing.meta(),
                }, 200
        except (InvalidRequestError, ConfigurationError) as e:
            return {"error": str(e)}, 400
        except MetadataUnavailableError as e:
            logger.error("Extraction failed for %s: %s", url, e)
            return {"error": str(e)}, 500
        except DataApiError as e:
            logger.error("YouTube API error: %s", e)
            return {"error": f"Failed to fetch channel videos: {e}"}, 500

        return {"error": "Invalid type"}, 400

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def _require_repo(self) -> AnalysisRepository:
        if self._repo is None:
            raise RuntimeError("History requires a repository.")
        return self._repo

    def save_analysis(self, user_id: str, payload: dict) -> Analysis:
        """Store an analysis for a user; ``data`` is kept verbatim.

        Raises:
            InvalidRequestError: If type, title or data is missing.
        """
        if not isinstance(payload, dict):
            raise InvalidRequestError("Missing required fields")
        kind, title, data = payload.get("type"), payload.get("title"), payload.get("data")
        if not kind or not title or not data:
            raise InvalidRequestError("Missing required fields")

        analysis = Analysis(
            user_id=user_id,
            type=str(kind),
            title=str(title),
            thumbnail=payload.get("thumbnail") or "",
            data=data,
        )
        saved = self._require_repo().save(analysis)
        logger.info("Saved %s analysis %s for user %s", saved.type, saved.id, user_id)
        return saved

    def get_analysis(self, user_id: str, analysis_id: int) -> Analysis | None:
        """One of a user's saved analyses, or None."""
        return self._require_repo().get(analysis_id, user_id)

    def list_history(self, user_id: str, type: str | None = None) -> list[Analysis]:
        """A user's saved analyses, newest first."""
        return self._require_repo().list_for_user(user_id, type=type)

    def delete_analysis(self, user_id: str, analysis_id: int) -> bool:
        """Delete one of a user's analyses; False when it does not exist."""
        return self._require_repo().delete(analysis_id, user_id)
