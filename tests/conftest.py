"""Shared fixtures for tubescout tests."""

from unittest.mock import MagicMock

import pytest

from tubescout.ingestion.data_api import DataApiClient
from tubescout.ingestion.sources import MetadataSource, SourceError
from tubescout.ingestion.youtube import YouTubeClient
from tubescout.models import TranscriptSegment, VideoRecord
from tubescout.storage.sqlite import SQLiteAnalysisRepository


class FakeSource(MetadataSource):
    """Metadata source returning a canned record or raising SourceError."""

    def __init__(self, name, record=None, error=None, available=True):
        self.name = name
        self._record = record
        self._error = error
        self._available = available
        self.calls = []

    @property
    def available(self):
        return self._available

    def fetch_metadata(self, video_id):
        self.calls.append(video_id)
        if self._error:
            raise SourceError(self._error)
        return self._record or VideoRecord(video_id=video_id, source=self.name)


@pytest.fixture
def sample_record():
    """Pre-built VideoRecord as the Data API would produce it."""
    return VideoRecord(
        video_id="dQw4w9WgXcQ",
        title="Intro to Machine Learning",
        description="A beginner's guide to ML concepts.",
        thumbnail_url="https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg",
        channel="TechChannel",
        channel_id="UCabcdefghijklmnopqrstuv",
        channel_url="https://www.youtube.com/channel/UCabcdefghijklmnopqrstuv",
        view_count=12345,
        like_count=678,
        comment_count=90,
        published_at="2025-06-15T12:00:00Z",
        published_ts=1749988800.0,
        duration=754,
        tags=["AI", "Machine Learning"],
        category="28",
        source="data_api",
    )


@pytest.fixture
def sample_segments():
    return [
        TranscriptSegment(start=0.0, duration=5.0, text="Hello and welcome."),
        TranscriptSegment(start=5.0, duration=4.5, text="Today we talk about ML."),
        TranscriptSegment(start=9.5, duration=6.0, text="Thanks for watching."),
    ]


@pytest.fixture
def sample_info():
    """yt-dlp style info dict."""
    return {
        "id": "dQw4w9WgXcQ",
        "title": "Intro to Machine Learning",
        "description": "A beginner's guide to ML concepts.",
        "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
        "channel": "TechChannel",
        "channel_id": "UCabcdefghijklmnopqrstuv",
        "uploader": "TechUploader",
        "view_count": 10000,
        "like_count": 400,
        "comment_count": 100,
        "upload_date": "20250615",
        "timestamp": 1749988800,
        "duration": 754,
        "tags": ["AI", "ML"],
        "categories": ["Education"],
    }


@pytest.fixture
def player_response():
    """Decoded ytInitialPlayerResponse as found on a watch page."""
    return {
        "videoDetails": {
            "videoId": "BpibZSMGtdY",
            "title": "Scraped Title",
            "shortDescription": "Scraped description",
            "author": "ScrapeChannel",
            "channelId": "UCabcdefghijklmnopqrstuv",
            "viewCount": "4321",
            "lengthSeconds": "300",
            "keywords": ["one", "two"],
            "thumbnail": {"thumbnails": [
                {"url": "https://i.ytimg.com/small.jpg"},
                {"url": "https://i.ytimg.com/large.jpg"},
            ]},
        },
        "microformat": {"playerMicroformatRenderer": {
            "publishDate": "2024-01-05",
            "category": "Education",
        }},
    }


@pytest.fixture
def sqlite_repo():
    """SQLiteAnalysisRepository backed by in-memory database."""
    return SQLiteAnalysisRepository(":memory:")


@pytest.fixture
def mock_client(sample_info, sample_segments):
    """YouTubeClient with yt-dlp calls mocked out."""
    client = MagicMock(spec=YouTubeClient)
    client.get_info.return_value = sample_info
    client.get_transcript.return_value = sample_segments
    return client


@pytest.fixture
def mock_data_api():
    """DataApiClient reporting itself configured, with all calls mocked."""
    api = MagicMock(spec=DataApiClient)
    api.available = True
    return api


@pytest.fixture
def service(sqlite_repo, mock_client, mock_data_api, sample_record):
    """TubeScoutService with a winning first source and mocked clients."""
    from tubescout.service import TubeScoutService

    return TubeScoutService(
        repository=sqlite_repo,
        client=mock_client,
        data_api=mock_data_api,
        scraper=MagicMock(),
        sources=[FakeSource("data_api", record=sample_record)],
    )
