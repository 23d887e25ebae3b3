"""
Preprint Listing Extractor

Turns an arXiv listing page (``/list/...``, ``/recent``, ``/new``) or an
arXiv search results page into an ordered list of papers. Nothing is
downloaded here: the caller decides which papers to fetch.

Two page layouts are understood:

- Search results: one ``li.arxiv-result`` per paper, the abstract link in
  ``p.list-title`` and the title in ``p.title``.
- Browse listings: ``dt``/``dd`` pairs, the abstract link in the ``dt`` and
  the title in the ``.list-title`` of the following ``dd`` (minus its
  "Title:" label).
"""

import logging
import re
from typing import List, Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from .config import ArxivSettings
from .models import BatchSummary, ConversionResult, ListingEntry, ResultKind

logger = logging.getLogger(__name__)

# New-style (2401.12345) or old-style (hep-th/9901001) id after /abs/
_ABS_ID_RE = re.compile(r'/abs/(\d{4}\.\d{4,5}|[a-z\-]+(?:\.[A-Z]{2})?/\d{7})')

MIN_TITLE_LENGTH = 3

LISTING_SUGGESTION = "Check that the URL is correct, or copy the individual paper links directly"


class ListingExtractor:
    """
    Extract paper entries from arXiv listing and search pages.

    Args:
        session: requests session used to fetch the listing page
        settings: arXiv endpoints used to build paper and PDF URLs
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        session: requests.Session,
        settings: Optional[ArxivSettings] = None,
        timeout: int = 30,
    ):
        self.session = session
        self.settings = settings or ArxivSettings()
        self.timeout = timeout

    def extract(self, url: str) -> ConversionResult:
        """
        Fetch a listing page and return its papers.

        Failures are soft: the result has ``success=False``, an error and a
        suggestion, no exception is raised.
        """
        logger.info(f"Extracting paper links from listing: {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            entries = self.parse(response.text, url)
        except Exception as e:
            logger.error(f"✗ Listing extraction failed for {url}: {e}")
            return ConversionResult.failure(
                url,
                f"Failed to extract paper list: {e}",
                kind=ResultKind.PREPRINT_LISTING,
                suggestion=LISTING_SUGGESTION,
            )

        logger.info(f"Found {len(entries)} papers on {url}")
        return ConversionResult(
            success=True,
            url=url,
            kind=ResultKind.PREPRINT_LISTING,
            title=f"arXiv listing ({len(entries)} papers)",
            items=entries,
            message=f"Extracted {len(entries)} paper links",
        )

    def parse(self, html: str, url: str) -> List[ListingEntry]:
        """
        Parse listing HTML into entries, deduplicated, in document order.

        Args:
            html: Page source
            url: Page URL; decides the layout and resolves relative links
        """
        soup = BeautifulSoup(html, 'html.parser')
        if '/search' in urlparse(url).path:
            candidates = self._parse_search(soup, url)
        else:
            candidates = self._parse_browse(soup, url)

        entries: List[ListingEntry] = []
        seen = set()
        for arxiv_id, title in candidates:
            entry = self._make_entry(arxiv_id, title)
            if entry.url in seen:
                continue
            seen.add(entry.url)
            entries.append(entry)
        return entries

    def _parse_search(self, soup: BeautifulSoup, url: str):
        for result in soup.select('li.arxiv-result'):
            link = result.select_one('p.list-title a[href*="/abs/"]')
            arxiv_id = self._id_from_link(link, url)
            if not arxiv_id:
                continue
            title_element = result.select_one('p.title')
            title = title_element.get_text(' ') if title_element else ''
            yield arxiv_id, title

    def _parse_browse(self, soup: BeautifulSoup, url: str):
        for dt in soup.find_all('dt'):
            link = dt.select_one('a[href*="/abs/"]')
            arxiv_id = self._id_from_link(link, url)
            if not arxiv_id:
                continue
            title = ''
            dd = dt.find_next_sibling()
            if dd is not None and dd.name == 'dd':
                title_element = dd.select_one('.list-title')
                if title_element is not None:
                    for descriptor in title_element.select('.descriptor'):
                        descriptor.decompose()
                    title = title_element.get_text(' ')
            yield arxiv_id, title

    @staticmethod
    def _id_from_link(link, page_url: str) -> Optional[str]:
        if link is None or not link.get('href'):
            return None
        match = _ABS_ID_RE.search(urljoin(page_url, link['href']))
        return match.group(1) if match else None

    def _make_entry(self, arxiv_id: str, title: str) -> ListingEntry:
        title = ' '.join((title or '').split())
        if len(title) < MIN_TITLE_LENGTH:
            title = f"arXiv:{arxiv_id}"
        return ListingEntry(
            url=f"{self.settings.abs_base.rstrip('/')}/{arxiv_id}",
            pdf_url=f"{self.settings.pdf_base.rstrip('/')}/{arxiv_id}.pdf",
            id=arxiv_id,
            title=title,
        )

    def download_all(self, url: str, sequencer) -> BatchSummary:
        """
        Extract a listing and download every paper on it.

        Args:
            url: Listing or search page URL
            sequencer: BatchSequencer that processes the paper URLs

        Returns:
            BatchSummary of the paper downloads, or a summary holding only
            the failed listing result if extraction failed
        """
        listing = self.extract(url)
        if not listing.success:
            return BatchSummary(results=[listing], success_count=0)
        return sequencer.process_all([entry.url for entry in listing.items])
