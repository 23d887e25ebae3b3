"""Tests for the conversion orchestrator."""

from unittest.mock import MagicMock

import pytest

from conftest import FakeResponse, FakeSession
from doc_fetcher.models import ConversionRequest, ResultKind
from doc_fetcher.orchestrator import Converter

API_URL = "https://export.arxiv.org/api/query"
ARXIV_PDF = "https://arxiv.org/pdf/1706.03762.pdf"
PAGE_URL = "https://example.org/blog/post"


def make_converter(config, session, **kwargs):
    return Converter(config, session_factory=lambda cfg: session, **kwargs)


class TestResolve:
    """Test routing one URL through the pipeline."""

    def test_arxiv_abstract_page(self, config, arxiv_feed, pdf_bytes):
        session = FakeSession({
            API_URL: FakeResponse(arxiv_feed.encode()),
            ARXIV_PDF: FakeResponse(pdf_bytes),
        })
        result = make_converter(config, session).resolve("https://arxiv.org/abs/1706.03762")

        assert result.success
        assert result.kind is ResultKind.PREPRINT_PDF
        assert result.file_name == "Attention Is All You Need_1706.03762.pdf"
        assert (config.output_dir / result.file_name).exists()
        assert session.closed

    def test_direct_pdf(self, config, pdf_bytes):
        url = "https://example.org/files/report.pdf"
        session = FakeSession({url: FakeResponse(pdf_bytes)})
        result = make_converter(config, session).resolve(url)

        assert result.success
        assert result.kind is ResultKind.DIRECT_PDF

    def test_listing_page(self, config, browse_listing_html):
        url = "https://arxiv.org/list/cs.AI/recent"
        session = FakeSession({url: FakeResponse(browse_listing_html.encode())})
        result = make_converter(config, session).resolve(url)

        assert result.kind is ResultKind.PREPRINT_LISTING
        assert [entry.id for entry in result.items] == ["2401.00001", "2401.00002", "hep-th/9901001"]
        assert list(config.output_dir.iterdir()) == []

    def test_generic_page_without_browser_falls_back_to_markdown(self, config, article_html):
        session = FakeSession({PAGE_URL: FakeResponse(article_html.encode("utf-8"))})
        driver_factory = MagicMock()
        result = make_converter(config, session, headless_available=False, driver_factory=driver_factory).resolve(PAGE_URL)

        driver_factory.assert_not_called()

        assert result.success
        assert result.kind is ResultKind.MARKDOWN
        assert result.tier == "content"
        assert result.content.startswith("# Test Article")

    def test_content_extraction_disabled_gives_guidance(self, config):
        page = b"""<html><head><title>Reports</title></head><body>
            <p>Quarterly numbers.</p><a href="/files/report.pdf">Report</a>
        </body></html>"""
        session = FakeSession({PAGE_URL: FakeResponse(page)})
        converter = make_converter(
            config.with_overrides(content_extraction=False), session, headless_available=False
        )

        result = converter.resolve(PAGE_URL)

        assert result.success
        assert result.kind is ResultKind.WEBPAGE_GUIDANCE
        assert result.tier == "guidance"
        assert [link.url for link in result.guidance.discovered_pdf_links] == [
            "https://example.org/files/report.pdf"
        ]
        assert list(config.output_dir.iterdir()) == []

    def test_text_format(self, config, article_html):
        session = FakeSession({PAGE_URL: FakeResponse(article_html.encode("utf-8"))})
        result = make_converter(config, session, fmt="txt").resolve(PAGE_URL)
        assert result.kind is ResultKind.TEXT

    def test_unreachable_page(self, config):
        result = make_converter(config, FakeSession()).resolve(PAGE_URL)

        assert not result.success
        assert result.error.startswith("Could not access the webpage")
        assert result.suggestion

    def test_conversion_request(self, config, pdf_bytes):
        url = "https://example.org/files/report.pdf"
        session = FakeSession({url: FakeResponse(pdf_bytes)})
        result = make_converter(config, session).resolve(ConversionRequest(url=url))
        assert result.success

    @pytest.mark.parametrize("url", ["", "   ", None])
    def test_empty_url(self, config, url):
        result = make_converter(config, FakeSession()).resolve(url)
        assert not result.success
        assert result.error == "Empty URL"

    @pytest.mark.parametrize("url", ["not a url", "ftp://example.org/file.pdf", "example.org/page"])
    def test_invalid_url(self, config, url):
        session = FakeSession()
        result = make_converter(config, session).resolve(url)

        assert not result.success
        assert result.kind is ResultKind.ERROR
        assert result.error == f"Invalid URL: {url}"
        assert session.calls == []

    def test_fetch_error_becomes_failure(self, config):
        url = "https://example.org/files/report.pdf"
        session = FakeSession({url: FakeResponse(b"", status_code=404)})
        result = make_converter(config, session).resolve(url)

        assert not result.success
        assert "HTTP 404" in result.error

    def test_unexpected_error_becomes_failure(self, config):
        def broken_factory(cfg):
            raise RuntimeError("no sockets")

        converter = Converter(config, session_factory=broken_factory)
        result = converter.resolve(PAGE_URL)

        assert not result.success
        assert result.error == "Unexpected error: no sockets"


class TestPlan:
    """Test the selection preview for many paper URLs."""

    PAPERS = [
        "https://arxiv.org/abs/2301.00001",
        "https://arxiv.org/abs/2301.00002v3",
        "https://arxiv.org/pdf/2301.00003",
    ]

    def test_selection_at_threshold(self, config):
        result = Converter(config).plan(self.PAPERS)

        assert result.success
        assert result.kind is ResultKind.PREPRINT_LISTING
        assert [entry.title for entry in result.items] == [
            "arXiv:2301.00001",
            "arXiv:2301.00002",
            "arXiv:2301.00003",
        ]
        assert result.items[1].url == "https://arxiv.org/abs/2301.00002"

    def test_below_threshold(self, config):
        assert Converter(config).plan(self.PAPERS[:2]) is None

    def test_custom_threshold(self, config):
        assert Converter(config).plan(self.PAPERS[:2], threshold=2) is not None

    def test_non_paper_urls_do_not_count(self, config):
        urls = self.PAPERS[:2] + ["https://example.org/files/report.pdf", "not a url"]
        assert Converter(config).plan(urls) is None

    def test_duplicates_collapse(self, config):
        urls = self.PAPERS + ["https://arxiv.org/abs/2301.00001v2"]
        result = Converter(config).plan(urls)
        assert len(result.items) == 3


class TestFromConfig:
    """Test building a converter from YAML config."""

    def test_overrides(self, temp_dir, monkeypatch):
        monkeypatch.setattr("doc_fetcher.config.USER_CONFIG_PATH", temp_dir / "missing.yaml")
        config_file = temp_dir / "config.yaml"
        config_file.write_text("batch_pacing: 0.25\n", encoding="utf-8")

        converter = Converter.from_config(config_file, output_dir=temp_dir / "out")

        assert converter.config.batch_pacing == 0.25
        assert converter.output_dir == temp_dir / "out"
        assert converter.fmt == "markdown"
