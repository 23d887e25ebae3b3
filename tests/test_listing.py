"""Tests for arXiv listing and search page extraction."""

import requests

from conftest import FakeResponse, FakeSession
from doc_fetcher.listing import ListingExtractor
from doc_fetcher.models import BatchSummary, ConversionResult, ResultKind

BROWSE_URL = "https://arxiv.org/list/cs.AI/recent"
SEARCH_URL = "https://arxiv.org/search/?query=things&searchtype=all"


class TestParseBrowse:
    """Test dt/dd listing pages."""

    def test_entries_in_document_order_without_duplicates(self, browse_listing_html):
        entries = ListingExtractor(FakeSession()).parse(browse_listing_html, BROWSE_URL)

        assert [e.id for e in entries] == ["2401.00001", "2401.00002", "hep-th/9901001"]
        assert len({e.url for e in entries}) == len(entries)

    def test_titles_without_descriptor(self, browse_listing_html):
        entries = ListingExtractor(FakeSession()).parse(browse_listing_html, BROWSE_URL)

        assert entries[0].title == "First Paper on Things"
        assert entries[1].title == "Second Paper"
        assert entries[2].title == "An Old Style Paper"

    def test_urls_are_canonical(self, browse_listing_html):
        entries = ListingExtractor(FakeSession()).parse(browse_listing_html, BROWSE_URL)

        assert entries[1].url == "https://arxiv.org/abs/2401.00002"
        assert entries[1].pdf_url == "https://arxiv.org/pdf/2401.00002.pdf"
        assert entries[2].pdf_url == "https://arxiv.org/pdf/hep-th/9901001.pdf"

    def test_parse_is_idempotent(self, browse_listing_html):
        extractor = ListingExtractor(FakeSession())
        assert extractor.parse(browse_listing_html, BROWSE_URL) == extractor.parse(browse_listing_html, BROWSE_URL)

    def test_empty_page(self):
        assert ListingExtractor(FakeSession()).parse("<html><body></body></html>", BROWSE_URL) == []


class TestParseSearch:
    """Test search result pages."""

    def test_search_results(self, search_listing_html):
        entries = ListingExtractor(FakeSession()).parse(search_listing_html, SEARCH_URL)

        assert [e.id for e in entries] == ["2402.12345", "2402.54321"]
        assert entries[0].title == "Searching for Things"

    def test_missing_title_falls_back_to_id(self, search_listing_html):
        entries = ListingExtractor(FakeSession()).parse(search_listing_html, SEARCH_URL)
        assert entries[1].title == "arXiv:2402.54321"

    def test_short_title_falls_back_to_id(self):
        html = """<ol><li class="arxiv-result">
            <p class="list-title"><a href="https://arxiv.org/abs/2402.11111">arXiv:2402.11111</a></p>
            <p class="title">AI</p></li></ol>"""
        entries = ListingExtractor(FakeSession()).parse(html, SEARCH_URL)
        assert entries[0].title == "arXiv:2402.11111"


class TestExtract:
    """Test fetching listing pages."""

    def test_extract_returns_listing_result(self, browse_listing_html):
        session = FakeSession({BROWSE_URL: FakeResponse(browse_listing_html.encode())})
        result = ListingExtractor(session).extract(BROWSE_URL)

        assert result.success
        assert result.kind is ResultKind.PREPRINT_LISTING
        assert len(result.items) == 3
        # Never downloads the papers themselves
        assert session.urls() == [BROWSE_URL]

    def test_fetch_error_is_soft(self):
        session = FakeSession({BROWSE_URL: requests.ConnectionError("offline")})
        result = ListingExtractor(session).extract(BROWSE_URL)

        assert not result.success
        assert result.kind is ResultKind.PREPRINT_LISTING
        assert "offline" in result.error
        assert result.suggestion

    def test_http_error_is_soft(self):
        session = FakeSession({BROWSE_URL: FakeResponse(b"", status_code=500)})
        result = ListingExtractor(session).extract(BROWSE_URL)

        assert not result.success
        assert result.suggestion

    def test_to_dict_items(self, browse_listing_html):
        session = FakeSession({BROWSE_URL: FakeResponse(browse_listing_html.encode())})
        data = ListingExtractor(session).extract(BROWSE_URL).to_dict()

        assert data["kind"] == "preprint_listing"
        assert data["items"][0] == {
            "url": "https://arxiv.org/abs/2401.00001",
            "pdfUrl": "https://arxiv.org/pdf/2401.00001.pdf",
            "id": "2401.00001",
            "title": "First Paper on Things",
        }


class RecordingSequencer:
    """Records the URLs it is asked to process."""

    def __init__(self):
        self.batches = []

    def process_all(self, urls):
        self.batches.append(list(urls))
        results = [ConversionResult(success=True, url=u, kind=ResultKind.PREPRINT_PDF) for u in urls]
        return BatchSummary(results=results, success_count=len(results))


class TestDownloadAll:
    """Test downloading every paper of a listing."""

    def test_paper_urls_go_through_sequencer(self, browse_listing_html):
        session = FakeSession({BROWSE_URL: FakeResponse(browse_listing_html.encode())})
        sequencer = RecordingSequencer()

        summary = ListingExtractor(session).download_all(BROWSE_URL, sequencer)

        assert sequencer.batches == [[
            "https://arxiv.org/abs/2401.00001",
            "https://arxiv.org/abs/2401.00002",
            "https://arxiv.org/abs/hep-th/9901001",
        ]]
        assert summary.success_count == 3

    def test_failed_listing_downloads_nothing(self):
        sequencer = RecordingSequencer()
        summary = ListingExtractor(FakeSession()).download_all(BROWSE_URL, sequencer)

        assert sequencer.batches == []
        assert summary.success_count == 0
        assert not summary.results[0].success
