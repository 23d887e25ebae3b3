"""
Conversion Orchestrator

Single entry point for converting one URL:

1. Classify the URL
2. Route it to the matching strategy
   - direct PDF link → BinaryFetcher
   - arXiv paper page → PreprintResolver
   - arXiv listing/search page → ListingExtractor
   - anything else → RenderFallbackChain
3. Normalize the outcome into a ConversionResult

``Converter.resolve`` never raises: every error becomes a failed result.
The converter holds only immutable configuration; sessions and strategy
objects are created fresh for each call.
"""

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

import requests

from .binary_fetcher import BinaryFetcher
from .classifier import UrlCategory, classify
from .config import FetcherConfig
from .exceptions import DocFetchError
from .extractor import ContentExtractor, normalize_format
from .listing import ListingExtractor
from .models import ConversionRequest, ConversionResult, ListingEntry, ResultKind
from .preprint import PreprintResolver, preview_entry
from .session import session_from_config
from .tiers import (
    ContentExtractionTier,
    GuidanceTier,
    HeadlessRenderTier,
    RenderFallbackChain,
    remote_tiers,
)
from .utils import is_http_url

logger = logging.getLogger(__name__)


class Converter:
    """
    Convert document URLs into local artifacts.

    Args:
        config: Immutable pipeline configuration
        headless_available: Whether a headless browser can be used; the
                            headless tier is skipped when False
        fmt: Extraction format for pages that fall back to content
             extraction ('markdown' or 'text')
        session_factory: Builds the requests session for one call
        driver_factory: Builds the WebDriver for the headless tier
                        (default: headless Chrome)

    Example:
        >>> converter = Converter.from_config(headless_available=False)
        >>> result = converter.resolve("https://arxiv.org/abs/1706.03762")
        >>> result.file_name
        'Attention Is All You Need_1706.03762.pdf'
    """

    def __init__(
        self,
        config: Optional[FetcherConfig] = None,
        headless_available: bool = False,
        fmt: str = 'markdown',
        session_factory: Callable[[FetcherConfig], requests.Session] = session_from_config,
        driver_factory: Optional[Callable] = None,
    ):
        self.config = config or FetcherConfig()
        self.headless_available = headless_available
        self.fmt = normalize_format(fmt)
        self.session_factory = session_factory
        self.driver_factory = driver_factory

    @classmethod
    def from_config(
        cls,
        config_path: Optional[Union[str, Path]] = None,
        headless_available: bool = False,
        fmt: str = 'markdown',
        **overrides,
    ) -> "Converter":
        """
        Build a converter from layered YAML config.

        Args:
            config_path: Explicit config file (optional)
            headless_available: See Converter
            fmt: See Converter
            **overrides: Top-level FetcherConfig fields (None values ignored)
        """
        config = FetcherConfig.load(config_path, **overrides)
        return cls(config, headless_available=headless_available, fmt=fmt)

    @property
    def output_dir(self) -> Path:
        return self.config.output_dir

    def _fetcher(self, session: requests.Session) -> BinaryFetcher:
        return BinaryFetcher(
            session,
            timeout=self.config.download_timeout,
            connect_timeout=self.config.timeout,
        )

    def _resolver(self, session: requests.Session) -> PreprintResolver:
        return PreprintResolver(
            session,
            self._fetcher(session),
            settings=self.config.arxiv,
            timeout=self.config.timeout,
        )

    def build_chain(self, session: requests.Session) -> RenderFallbackChain:
        """Render tiers for generic webpages, in fallback order."""
        fetcher = self._fetcher(session)
        extractor = ContentExtractor(
            session,
            timeout=self.config.timeout,
            min_content_length=self.config.min_content_length,
        )
        tiers = [
            HeadlessRenderTier(
                self.output_dir,
                available=self.headless_available,
                settings=self.config.headless,
                user_agent=self.config.user_agent,
                driver_factory=self.driver_factory,
            ),
            *remote_tiers(
                self.output_dir,
                session,
                fetcher,
                self.config.remote_render,
                timeout=self.config.download_timeout,
            ),
            ContentExtractionTier(
                self.output_dir,
                extractor,
                self.fmt,
                enabled=self.config.content_extraction,
            ),
            GuidanceTier(session, timeout=self.config.timeout),
        ]
        return RenderFallbackChain(tiers)

    def resolve(self, url: Union[str, ConversionRequest]) -> ConversionResult:
        """
        Convert one URL.

        Args:
            url: Absolute http(s) URL, or a ConversionRequest

        Returns:
            ConversionResult; failures are reported, never raised
        """
        if isinstance(url, ConversionRequest):
            url = url.url
        url = (url or '').strip()
        if not url:
            return ConversionResult.failure(url, "Empty URL")
        if not is_http_url(url):
            return ConversionResult.failure(url, f"Invalid URL: {url}")

        try:
            category = classify(url)
            logger.info(f"Processing {url} as {category.value}")
            session = self.session_factory(self.config)
            try:
                return self._route(category, url, session)
            finally:
                session.close()
        except DocFetchError as e:
            logger.error(f"✗ {url}: {e}")
            return ConversionResult.failure(url, str(e))
        except Exception as e:
            logger.exception(f"✗ Unexpected error processing {url}")
            return ConversionResult.failure(url, f"Unexpected error: {e}")

    def _route(self, category: UrlCategory, url: str, session: requests.Session) -> ConversionResult:
        if category is UrlCategory.PDF_DIRECT:
            return self._fetcher(session).fetch_direct(url, self.output_dir)

        if category is UrlCategory.PREPRINT_PAGE:
            return self._resolver(session).resolve(url, self.output_dir)

        if category is UrlCategory.PREPRINT_LISTING:
            extractor = ListingExtractor(session, settings=self.config.arxiv, timeout=self.config.timeout)
            return extractor.extract(url)

        return self.build_chain(session).run(url)

    def plan(self, urls: Iterable[str], threshold: Optional[int] = None) -> Optional[ConversionResult]:
        """
        Offer a paper selection instead of downloading many papers at once.

        If the request holds at least ``threshold`` arXiv paper URLs
        (default: ``selection_threshold`` from config), return a
        preprint_listing result with one entry per paper, titled
        ``arXiv:{id}``. No network access.

        Returns:
            The selection result, or None if the request should be
            processed normally
        """
        if threshold is None:
            threshold = self.config.selection_threshold

        paper_urls = [u.strip() for u in urls if u and classify(u.strip()) is UrlCategory.PREPRINT_PAGE]
        if not paper_urls or len(paper_urls) < threshold:
            return None

        items: List[ListingEntry] = []
        seen = set()
        for paper_url in paper_urls:
            entry = preview_entry(paper_url, self.config.arxiv)
            if entry.url in seen:
                continue
            seen.add(entry.url)
            items.append(entry)

        logger.info(f"{len(items)} arXiv papers in request, offering selection")
        return ConversionResult(
            success=True,
            url=paper_urls[0],
            kind=ResultKind.PREPRINT_LISTING,
            title=f"arXiv papers ({len(items)})",
            items=items,
            message=f"Found {len(items)} arXiv papers, select the ones to download",
        )
