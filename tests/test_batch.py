"""Tests for sequential batch processing."""

import json

from conftest import FakeResponse, FakeSession
from doc_fetcher.batch import BatchSequencer, format_event
from doc_fetcher.models import ConversionResult, EventType, ItemState, ResultKind
from doc_fetcher.orchestrator import Converter


class RecordingConverter:
    """Converter stand-in that fails URLs containing 'bad' and raises for 'boom'."""

    def __init__(self):
        self.seen = []

    def resolve(self, url):
        self.seen.append(url)
        if "boom" in url:
            raise RuntimeError("exploded")
        if "bad" in url:
            return ConversionResult.failure(url, "bad url")
        return ConversionResult(success=True, url=url, kind=ResultKind.DIRECT_PDF)


def make_sequencer(converter=None, pacing=0.0, sleeps=None):
    sleep = sleeps.append if sleeps is not None else (lambda seconds: None)
    return BatchSequencer(converter or RecordingConverter(), pacing=pacing, sleep=sleep)


class TestIterEvents:
    """Test event order and content."""

    def test_event_order(self):
        events = list(make_sequencer().iter_events(["https://a/1", "https://a/2"]))

        assert [e.type for e in events] == [
            EventType.PROGRESS, EventType.RESULT,
            EventType.PROGRESS, EventType.RESULT,
            EventType.COMPLETE,
        ]
        assert [e.current for e in events] == [1, 1, 2, 2, 2]
        assert all(e.total == 2 for e in events)

    def test_result_indexes_are_zero_based(self):
        events = list(make_sequencer().iter_events(["https://a/1", "https://a/2"]))
        assert [e.index for e in events if e.type is EventType.RESULT] == [0, 1]

    def test_complete_event(self):
        events = list(make_sequencer().iter_events(["https://a/1", "https://a/bad"]))
        complete = events[-1]

        assert complete.success_count == 1
        assert [r.url for r in complete.results] == ["https://a/1", "https://a/bad"]

    def test_pacing_between_items_only(self):
        sleeps = []
        list(make_sequencer(pacing=0.5, sleeps=sleeps).iter_events(["https://a/1", "https://a/2", "https://a/3"]))
        assert sleeps == [0.5, 0.5]

    def test_no_pacing_for_single_item(self):
        sleeps = []
        list(make_sequencer(pacing=0.5, sleeps=sleeps).iter_events(["https://a/1"]))
        assert sleeps == []

    def test_pacing_from_converter_config(self, config):
        assert BatchSequencer(Converter(config)).pacing == 0
        assert BatchSequencer(RecordingConverter()).pacing == 1.0

    def test_raising_item_does_not_stop_batch(self):
        converter = RecordingConverter()
        events = list(make_sequencer(converter).iter_events(["https://a/boom", "https://a/2"]))

        results = events[-1].results
        assert not results[0].success
        assert results[0].error == "Unexpected error: exploded"
        assert results[1].success
        assert converter.seen == ["https://a/boom", "https://a/2"]

    def test_item_states(self):
        sequencer = make_sequencer()
        list(sequencer.iter_events(["https://a/1", "https://a/bad"]))
        assert sequencer.states == {0: ItemState.SUCCEEDED, 1: ItemState.FAILED}

    def test_state_during_processing(self):
        sequencer = make_sequencer()
        events = sequencer.iter_events(["https://a/1", "https://a/2"])

        next(events)
        assert sequencer.states == {0: ItemState.IN_PROGRESS, 1: ItemState.PENDING}

    def test_closing_stops_further_items(self):
        converter = RecordingConverter()
        events = make_sequencer(converter).iter_events(["https://a/1", "https://a/2", "https://a/3"])

        for event in events:
            if event.type is EventType.RESULT:
                break
        events.close()

        assert converter.seen == ["https://a/1"]

    def test_empty_batch(self):
        events = list(make_sequencer().iter_events([]))

        assert len(events) == 1
        assert events[0].type is EventType.COMPLETE
        assert events[0].to_dict()["success"] is False


class TestProcessAll:
    """Test the buffered variant."""

    def test_summary(self):
        progress = []
        summary = make_sequencer().process_all(
            ["https://a/1", "https://a/bad", "https://a/3"],
            progress_callback=lambda done, total: progress.append((done, total)),
        )

        assert summary.total == 3
        assert summary.success_count == 2
        assert progress == [(1, 3), (2, 3), (3, 3)]
        assert summary.to_dict()["success"] is True


class TestFormatEvent:
    """Test server-sent event framing."""

    def test_framing(self):
        events = list(make_sequencer().iter_events(["https://a/1"]))
        frame = format_event(events[0])

        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        payload = json.loads(frame[len("data: "):])
        assert payload == {
            "type": "progress",
            "current": 1,
            "total": 1,
            "url": "https://a/1",
            "message": "Processing 1/1: https://a/1",
        }

    def test_non_ascii_is_kept(self):
        converter = RecordingConverter()
        events = list(make_sequencer(converter).iter_events(["https://a/文档"]))
        assert "文档" in format_event(events[0])


class TestMixedBatch:
    """A valid PDF link and an invalid string in one batch."""

    def test_one_success_one_failure(self, config, pdf_bytes):
        url = "https://example.org/files/report.pdf"
        session = FakeSession({url: FakeResponse(pdf_bytes)})
        converter = Converter(config, session_factory=lambda cfg: session)

        events = list(BatchSequencer(converter).iter_events([url, "not a url"]))
        payloads = [json.loads(format_event(e)[len("data: "):]) for e in events]

        assert [p["type"] for p in payloads] == ["progress", "result", "progress", "result", "complete"]
        assert payloads[1]["result"]["kind"] == "direct_pdf"
        assert payloads[3]["result"]["success"] is False
        assert payloads[3]["result"]["error"] == "Invalid URL: not a url"
        assert payloads[4]["successCount"] == 1
        assert payloads[4]["success"] is True
