"""
Preprint Resolver

Downloads arXiv papers given the URL of their abstract, PDF or HTML page.

PDF URL Pattern:
    https://arxiv.org/pdf/{arxiv_id}.pdf

ArXiv ID Formats:
    - New format: YYMM.NNNNN (e.g., 2301.12345)
    - Old format: archive/YYMMNNN (e.g., math.GT/0309136)

The version suffix (v1, v2, ...) is not part of the identifier used here,
so abstract and PDF links to the same paper resolve to the same PDF URL.

The title used in the filename comes from the arXiv API. Looking it up is
best effort: when it fails, the identifier is used as the title.
"""

import logging
import re
from pathlib import Path
from typing import Optional, Union

import requests
from bs4 import BeautifulSoup

from .binary_fetcher import BinaryFetcher
from .config import ArxivSettings
from .exceptions import IdentifierNotFound
from .models import ConversionResult, ListingEntry, PreprintIdentity, ResultKind
from .utils import sanitize_title

logger = logging.getLogger(__name__)

# Tried in order; the first match wins
ID_PATTERNS = [
    re.compile(r'(?i:arxiv\.org)/abs/(\d{4}\.\d{4,5})'),
    re.compile(r'(?i:arxiv\.org)/abs/([a-z\-]+(?:\.[A-Z]{2})?/\d{7})'),
    re.compile(r'(?i:arxiv\.org)/pdf/(\d{4}\.\d{4,5})'),
    re.compile(r'(?i:arxiv\.org)/pdf/([a-z\-]+(?:\.[A-Z]{2})?/\d{7})'),
    re.compile(r'(?i:arxiv\.org)/html/(\d{4}\.\d{4,5})'),
    re.compile(r'(?i:arxiv\.org)/html/([a-z\-]+(?:\.[A-Z]{2})?/\d{7})'),
]


def extract_arxiv_id(url: str) -> str:
    """
    Extract the arXiv ID from a paper URL.

    Examples:
        "https://arxiv.org/abs/2301.12345v1" → "2301.12345"
        "https://arxiv.org/pdf/2301.12345.pdf" → "2301.12345"
        "https://arxiv.org/abs/math.GT/0309136" → "math.GT/0309136"

    Raises:
        IdentifierNotFound: if no pattern matches
    """
    for pattern in ID_PATTERNS:
        match = pattern.search(url or '')
        if match:
            return match.group(1)
    raise IdentifierNotFound(f"Could not extract arXiv ID from URL: {url}")


def preview_entry(url: str, settings: Optional[ArxivSettings] = None) -> ListingEntry:
    """
    Listing entry for a paper URL without any network access.

    The title is ``arXiv:{id}``; looking up real titles for many papers at
    once tends to trigger arXiv's bot protection.
    """
    settings = settings or ArxivSettings()
    arxiv_id = extract_arxiv_id(url)
    return ListingEntry(
        url=f"{settings.abs_base.rstrip('/')}/{arxiv_id}",
        pdf_url=f"{settings.pdf_base.rstrip('/')}/{arxiv_id}.pdf",
        id=arxiv_id,
        title=f"arXiv:{arxiv_id}",
    )


class PreprintResolver:
    """
    Resolve arXiv paper URLs to PDFs.

    Supports:
    - Abstract pages: "https://arxiv.org/abs/1706.03762"
    - PDF pages: "https://arxiv.org/pdf/1706.03762v5"
    - HTML pages: "https://arxiv.org/html/2301.12345v1"
    - Old-style ids: "https://arxiv.org/abs/hep-th/9901001"
    """

    def __init__(
        self,
        session: requests.Session,
        fetcher: BinaryFetcher,
        settings: Optional[ArxivSettings] = None,
        timeout: int = 30,
    ):
        self.session = session
        self.fetcher = fetcher
        self.settings = settings or ArxivSettings()
        self.timeout = timeout

    def extract_id(self, url: str) -> str:
        return extract_arxiv_id(url)

    def identify(self, url: str) -> PreprintIdentity:
        """Paper identifier and canonical PDF URL for a paper URL."""
        arxiv_id = self.extract_id(url)
        return PreprintIdentity(id=arxiv_id, canonical_pdf_url=self.pdf_url_for(arxiv_id))

    def pdf_url_for(self, arxiv_id: str) -> str:
        return f"{self.settings.pdf_base.rstrip('/')}/{arxiv_id}.pdf"

    def lookup_title(self, arxiv_id: str) -> str:
        """
        Paper title from the arXiv API, or the identifier if that fails.

        Never raises: a missing title must not fail the download.
        """
        try:
            response = self.session.get(
                self.settings.api_url,
                params={'id_list': arxiv_id},
                timeout=self.timeout,
            )
            response.raise_for_status()
            title = self.parse_api_title(response.text)
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Title lookup failed for {arxiv_id}, using ID as title: {e}")
            return arxiv_id

        if not title:
            logger.debug(f"No title in arXiv API response for {arxiv_id}")
            return arxiv_id
        return title

    @staticmethod
    def parse_api_title(feed_xml: str) -> Optional[str]:
        """Title of the first entry in an arXiv API Atom feed."""
        soup = BeautifulSoup(feed_xml, 'html.parser')
        entry = soup.find('entry')
        if entry is None:
            return None
        title = entry.find('title')
        if title is None:
            return None
        text = ' '.join(title.get_text().split())
        # The API reports unknown ids as an entry titled "Error"
        if not text or text.lower() == 'error':
            return None
        return text

    def file_name_for(self, title: str, arxiv_id: str) -> str:
        """``{sanitized-title}_{identifier}.pdf``"""
        safe_id = arxiv_id.replace('/', '_')
        return f"{sanitize_title(title, fallback=safe_id)}_{safe_id}.pdf"

    def resolve(self, url: str, output_dir: Union[str, Path]) -> ConversionResult:
        """
        Download the PDF of the paper behind ``url``.

        Raises:
            IdentifierNotFound: URL has no arXiv ID
            FetchFailed / WriteFailed: from the binary fetcher
        """
        identity = self.identify(url)
        logger.info(f"arXiv ID: {identity.id} → {identity.canonical_pdf_url}")

        title = self.lookup_title(identity.id)
        file_name = self.file_name_for(title, identity.id)

        local_path = self.fetcher.fetch(identity.canonical_pdf_url, output_dir, file_name=file_name)

        return ConversionResult(
            success=True,
            url=url,
            kind=ResultKind.PREPRINT_PDF,
            title=title,
            file_path=str(local_path),
            file_name=local_path.name,
            identifier=identity.id,
            pdf_url=identity.canonical_pdf_url,
        )

    def preview(self, url: str) -> ListingEntry:
        """Selection entry for ``url``, see preview_entry."""
        return preview_entry(url, self.settings)
