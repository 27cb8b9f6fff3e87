"""Tests for channel resolution and upload paging."""

from unittest.mock import MagicMock

import pytest

from tubescout.channels import ChannelPager, ChannelResolutionError
from tubescout.ingestion.data_api import DataApiError
from tubescout.ingestion.youtube import ExtractionError

CHANNEL_ID = "UCabcdefghijklmnopqrstuv"


def _item(n):
    video_id = f"vid{n:08d}"
    return {
        "snippet": {
            "title": f"Video {n}",
            "publishedAt": f"2024-01-{(n % 28) + 1:02d}T00:00:00Z",
            "thumbnails": {"medium": {"url": f"https://i.ytimg.com/{video_id}/mq.jpg"}},
        },
        "contentDetails": {"videoId": video_id},
    }


def _pages(total=150, per_page=50):
    items = [_item(n) for n in range(total)]
    pages = []
    for start in range(0, total, per_page):
        page = {"items": items[start:start + per_page]}
        if start + per_page < total:
            page["nextPageToken"] = f"token-{start + per_page}"
        pages.append(page)
    return pages


def _details(short_ids=(), missing_ids=()):
    def get_video_details(ids):
        return [
            {
                "id": vid,
                "statistics": {"viewCount": "1500"},
                "contentDetails": {"duration": "PT45S" if vid in short_ids else "PT10M2S"},
            }
            for vid in ids
            if vid not in missing_ids
        ]
    return get_video_details


@pytest.fixture
def api(mock_data_api):
    mock_data_api.list_playlist_page.side_effect = _pages()
    mock_data_api.get_video_details.side_effect = _details()
    return mock_data_api


def _pager(api, client=None, **kwargs):
    return ChannelPager(api, client or MagicMock(), request_delay=0, **kwargs)


class TestResolveChannelId:
    def test_direct_url(self):
        client = MagicMock()
        pager = _pager(MagicMock(), client)
        assert pager.resolve_channel_id(f"https://www.youtube.com/channel/{CHANNEL_ID}/videos") == CHANNEL_ID
        client.resolve_channel_id.assert_not_called()

    def test_handle_resolved_by_client(self):
        client = MagicMock()
        client.resolve_channel_id.return_value = CHANNEL_ID
        assert _pager(MagicMock(), client).resolve_channel_id("https://www.youtube.com/@someone") == CHANNEL_ID

    def test_resolution_failure(self):
        client = MagicMock()
        client.resolve_channel_id.side_effect = ExtractionError("404")
        with pytest.raises(ChannelResolutionError, match="direct channel URL"):
            _pager(MagicMock(), client).resolve_channel_id("https://www.youtube.com/@ghost")

    def test_no_id(self):
        client = MagicMock()
        client.resolve_channel_id.return_value = None
        with pytest.raises(ChannelResolutionError, match="Could not extract"):
            _pager(MagicMock(), client).resolve_channel_id("https://www.youtube.com/user/ghost")


class TestListAllUploads:
    def test_uploads_playlist(self, api):
        _pager(api).list_all_uploads(CHANNEL_ID)
        playlist_ids = {c.args[0] for c in api.list_playlist_page.call_args_list}
        assert playlist_ids == {"UUabcdefghijklmnopqrstuv"}

    def test_follows_tokens(self, api):
        _pager(api).list_all_uploads(CHANNEL_ID)
        tokens = [c.args[1] for c in api.list_playlist_page.call_args_list]
        assert tokens == [None, "token-50", "token-100"]

    def test_filters_short_form(self, api):
        short_ids = {f"vid{n:08d}" for n in range(0, 150, 7)[:20]}
        assert len(short_ids) == 20
        api.get_video_details.side_effect = _details(short_ids=short_ids)
        listing = _pager(api).list_all_uploads(CHANNEL_ID)
        assert len(listing.videos) == 130
        assert listing.meta()["totalVideos"] == 130
        assert listing.pages_fetched == 3
        assert listing.truncated is False
        assert not {v.id for v in listing.videos} & short_ids

    def test_detail_batches_of_fifty(self, api):
        _pager(api).list_all_uploads(CHANNEL_ID)
        batches = [c.args[0] for c in api.get_video_details.call_args_list]
        assert [len(b) for b in batches] == [50, 50, 50]

    def test_oversized_batch_clamped(self, api):
        _pager(api, batch_size=200).list_all_uploads(CHANNEL_ID)
        batches = [c.args[0] for c in api.get_video_details.call_args_list]
        assert max(len(b) for b in batches) == 50

    def test_summary_shape(self, api):
        video = _pager(api).list_all_uploads(CHANNEL_ID).videos[0]
        assert video.id == "vid00000000"
        assert video.title == "Video 0"
        assert video.url == "https://www.youtube.com/watch?v=vid00000000"
        assert video.views == "1500"
        assert video.thumbnail == "https://i.ytimg.com/vid00000000/mq.jpg"
        assert video.published_at == "2024-01-01T00:00:00Z"

    def test_missing_details_excluded(self, api):
        api.get_video_details.side_effect = _details(missing_ids={"vid00000003", "vid00000004"})
        listing = _pager(api).list_all_uploads(CHANNEL_ID)
        assert len(listing.videos) == 148
        assert listing.missing_details == 2

    def test_failed_batch_skipped(self, api):
        good = _details()
        calls = []

        def flaky(ids):
            calls.append(ids)
            if len(calls) == 2:
                raise DataApiError("backend error")
            return good(ids)

        api.get_video_details.side_effect = flaky
        listing = _pager(api).list_all_uploads(CHANNEL_ID)
        assert len(listing.videos) == 100
        assert listing.missing_details == 50

    def test_page_cap_truncates(self, mock_data_api):
        # An upstream token that never ends
        mock_data_api.list_playlist_page.return_value = {
            "items": [_item(1)], "nextPageToken": "same-token",
        }
        mock_data_api.get_video_details.side_effect = _details()
        listing = _pager(mock_data_api, max_pages=5).list_all_uploads(CHANNEL_ID)
        assert mock_data_api.list_playlist_page.call_count == 5
        assert listing.truncated is True
        assert listing.meta()["truncated"] is True

    def test_empty_channel(self, mock_data_api):
        mock_data_api.list_playlist_page.return_value = {"items": []}
        listing = _pager(mock_data_api).list_all_uploads(CHANNEL_ID)
        assert listing.videos == []
        mock_data_api.get_video_details.assert_not_called()

    def test_page_failure_propagates(self, mock_data_api):
        mock_data_api.list_playlist_page.side_effect = DataApiError("quota")
        with pytest.raises(DataApiError):
            _pager(mock_data_api).list_all_uploads(CHANNEL_ID)


def test_uploads_playlist_id():
    assert ChannelPager.uploads_playlist_id(CHANNEL_ID) == "UUabcdefghijklmnopqrstuv"
