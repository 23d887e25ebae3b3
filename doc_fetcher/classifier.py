"""
URL classification.

Decides which resolution strategy a URL goes to. Pure string inspection,
no network access.
"""

import re
from enum import Enum
from urllib.parse import urlparse

from .utils import host_of

# arXiv identifier patterns
# New format: YYMM.NNNNN(vN)?
ARXIV_NEW_ID = r'\d{4}\.\d{4,5}(?:v\d+)?'
# Old format: archive/YYMMNNN or archive.XX/YYMMNNN
ARXIV_OLD_ID = r'[a-z\-]+(?:\.[A-Z]{2})?/\d{7}(?:v\d+)?'

ARXIV_HOSTS = {'arxiv.org', 'export.arxiv.org'}

_PAPER_PATH_RE = re.compile(
    rf'^/(?:abs|pdf|html)/(?:{ARXIV_NEW_ID}|{ARXIV_OLD_ID})(?:\.pdf)?/?$'
)
_LISTING_PATH_RE = re.compile(r'^/(?:list/|search(?:/|$)|a/)|/(?:recent|new|pastweek)/?$')

# Hosts where a "pdf" path segment reliably means a raw PDF
PDF_HOSTING_DOMAINS = {
    'openai.com',
    'cdn.openai.com',
    'openreview.net',
    'aclanthology.org',
    'proceedings.neurips.cc',
    'biorxiv.org',
    'medrxiv.org',
}


class UrlCategory(Enum):
    """Types of input URLs."""
    PDF_DIRECT = "pdf_direct"
    PREPRINT_PAGE = "preprint_page"
    PREPRINT_LISTING = "preprint_listing"
    GENERIC_WEBPAGE = "generic_webpage"


def is_arxiv_host(url: str) -> bool:
    return host_of(url) in ARXIV_HOSTS


def is_preprint_listing(url: str) -> bool:
    """arXiv browse (/list/...), search, or recent/new listing."""
    if not is_arxiv_host(url):
        return False
    return bool(_LISTING_PATH_RE.search(urlparse(url).path))


def is_preprint_page(url: str) -> bool:
    """arXiv abstract, PDF or HTML page of a single paper."""
    if not is_arxiv_host(url):
        return False
    return bool(_PAPER_PATH_RE.match(urlparse(url).path))


def is_pdf_url(url: str) -> bool:
    """
    Raw PDF resource, judged from the URL alone.

    True when the path ends in .pdf, or when a known PDF host serves
    something with "pdf" in its path or query.
    """
    parsed = urlparse(url)
    path = parsed.path.lower()
    if path.endswith('.pdf'):
        return True

    host = host_of(url)
    on_pdf_host = any(host == domain or host.endswith('.' + domain) for domain in PDF_HOSTING_DOMAINS)
    return on_pdf_host and ('pdf' in path or 'pdf' in parsed.query.lower())


def classify(url: str) -> UrlCategory:
    """
    Identify what kind of URL we received.

    Listing check runs first so that a listing is never taken for a single
    paper; the paper check runs before the PDF check so that arXiv
    ``/pdf/...`` links get the title-aware preprint treatment.

    Args:
        url: URL string

    Returns:
        UrlCategory enum value
    """
    url = (url or '').strip()

    if is_preprint_listing(url):
        return UrlCategory.PREPRINT_LISTING

    if is_preprint_page(url):
        return UrlCategory.PREPRINT_PAGE

    if is_pdf_url(url):
        return UrlCategory.PDF_DIRECT

    return UrlCategory.GENERIC_WEBPAGE
