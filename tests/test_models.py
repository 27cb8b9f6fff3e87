"""Tests for tubescout domain models."""

import json

from tubescout.models import (
    Analysis,
    ChannelListing,
    ChannelVideoSummary,
    ExtractionOptions,
    TranscriptSegment,
    VideoRecord,
)


class TestTranscriptSegment:
    def test_end_computed(self):
        seg = TranscriptSegment(start=10.0, duration=5.0, text="hello")
        assert seg.end == 15.0


class TestVideoRecord:
    def test_url_computed(self):
        record = VideoRecord(video_id="abc12345678")
        assert record.url == "https://www.youtube.com/watch?v=abc12345678"

    def test_absent_values_are_empty_or_zero(self):
        record = VideoRecord(video_id="abc12345678")
        assert record.title == ""
        assert record.view_count == 0
        assert record.published_ts == 0.0
        assert record.tags == []
        assert record.transcript == ""

    def test_serialization_json_roundtrip(self, sample_record):
        sample_record.transcript = "Hello and welcome. Today we talk about ML."
        text = json.dumps(sample_record.model_dump(mode="json"))
        restored = VideoRecord(**json.loads(text))
        assert restored == sample_record


class TestExtractionOptions:
    def test_defaults_all_on(self):
        opts = ExtractionOptions.from_payload({})
        assert opts == ExtractionOptions()
        assert all(opts.model_dump().values())

    def test_none_payload(self):
        assert ExtractionOptions.from_payload(None) == ExtractionOptions()

    def test_only_explicit_false_disables(self):
        opts = ExtractionOptions.from_payload({"transcript": False, "description": 0, "thumbnail": None})
        assert opts.transcript is False
        assert opts.description is True
        assert opts.thumbnail is True

    def test_non_dict_payload(self):
        assert ExtractionOptions.from_payload(["transcript"]) == ExtractionOptions()


class TestChannelListing:
    def test_meta(self):
        listing = ChannelListing(
            channel_id="UCabcdefghijklmnopqrstuv",
            videos=[ChannelVideoSummary(id="a", url="https://www.youtube.com/watch?v=a")],
            pages_fetched=2,
            missing_details=1,
        )
        assert listing.meta() == {
            "totalVideos": 1,
            "channelId": "UCabcdefghijklmnopqrstuv",
            "pagesFetched": 2,
            "truncated": False,
            "missingDetails": 1,
        }


class TestAnalysis:
    def test_created_at_utc(self):
        a = Analysis(user_id="u1", type="video", title="T", data={"k": 1})
        assert a.created_at.tzinfo is not None
        assert a.id is None
